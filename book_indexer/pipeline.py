"""
End-to-end indexing run over one document source.

  1. Locate and parse the TOC, build chapter ranges.
  2. Map physical pages to book pages from page labels.
  3. Collect term candidates (TOC titles, body tokens, parenthetical pairs).
  4. Normalize, dedupe, and filter candidates.
  5. Match terms to pages, compress per chapter, cap, containment dedup.
  6. Sort.

Stages run strictly in order, one page fetch at a time.
"""

import logging

from book_indexer.backends.base import DocumentSource
from book_indexer.context import RunContext
from book_indexer.errors import NotFoundError
from book_indexer.extractors import (
    parenthetical_candidates,
    tech_token_candidates,
    toc_title_candidates,
)
from book_indexer.index_builder import DEFAULT_MAX_PAGES_PER_TERM, build_index_lines
from book_indexer.models import ChapterRange, IndexConfig, IndexResult, TocEntry
from book_indexer.output import sort_index_lines
from book_indexer.page_map import PageMap
from book_indexer.terms import apply_term_filters, dedupe_terms
from book_indexer.toc import build_chapter_ranges, locate_toc_range, parse_toc_pages

log = logging.getLogger(__name__)

TOC_NOT_FOUND_HINT = (
    "Could not find the table of contents in the first {pages} pages (looked for {header!r}). "
    "Set the TOC pages manually (toc_start_page/toc_end_page) or check the TOC header marker."
)
NO_SECTIONS_HINT = (
    "No level-2 TOC entries (like '1.1 Title 12') were parsed from pages {start}-{end}. "
    "Check the manual TOC page range or the diagnostics."
)


def _read_toc(ctx: RunContext) -> tuple[tuple[int, int], list[TocEntry], list[ChapterRange]]:
    cfg = ctx.config
    toc_range = locate_toc_range(ctx)
    if toc_range is None:
        raise NotFoundError(
            TOC_NOT_FOUND_HINT.format(pages=min(ctx.page_count, cfg.max_toc_scan_pages), header=cfg.toc_header),
            diagnostics=ctx.diagnostics,
        )
    start, end = toc_range
    ctx.note("TOC pages: %d-%d", start, end)

    entries = parse_toc_pages(ctx, start, end)
    level1 = [e for e in entries if e.level == 1]
    level2 = [e for e in entries if e.level == 2]
    if not level2:
        raise NotFoundError(NO_SECTIONS_HINT.format(start=start, end=end), diagnostics=ctx.diagnostics)
    ctx.note("TOC parsed: %d level-1, %d level-2 entries", len(level1), len(level2))

    if cfg.use_two_level:
        ranges = build_chapter_ranges(level2, [])
    else:
        ranges = build_chapter_ranges(level1, level2)
    ctx.note("Chapter ranges: %d", len(ranges))
    return toc_range, entries, ranges


def _build_page_map(ctx: RunContext) -> None:
    ctx.page_map = PageMap.from_labels(ctx.page_labels(), ctx.page_count)
    bounds = ctx.page_map.mapped_bounds()
    if bounds is None:
        ctx.note("No usable page labels: book pages are unknown, terms cannot be placed")
        return
    (first_phys, first_book), (last_phys, last_book) = bounds
    ctx.note(
        "Page labels: %d of %d pages mapped, physical %d -> book %d / physical %d -> book %d",
        len(ctx.page_map), ctx.page_count, first_phys, first_book, last_phys, last_book,
    )


def _collect_terms(ctx: RunContext, level2: list[TocEntry]) -> list[str]:
    drop_exact = ctx.config.drop_exact
    toc_terms = toc_title_candidates(level2, drop_exact)
    ctx.note("TOC seed terms: %d", len(toc_terms))
    tech_terms = tech_token_candidates(ctx, drop_exact)
    ctx.note("Body tokens: %d", len(tech_terms))
    paren_terms = parenthetical_candidates(ctx, drop_exact)

    merged = dedupe_terms(toc_terms + tech_terms + paren_terms, drop_exact)
    ctx.note("Term candidates after dedupe: %d", len(merged))
    terms, dropped = apply_term_filters(merged)
    ctx.note(
        "Term candidates after filters: %d (%s)",
        len(terms),
        ", ".join(f"{name} -{count}" for name, count in dropped.items()) or "none dropped",
    )
    return terms


def read_toc(source: DocumentSource, config: IndexConfig) -> IndexResult:
    """Only the TOC stage: TOC range, entries, and chapter ranges."""
    ctx = RunContext.open(source, config)
    toc_range, entries, ranges = _read_toc(ctx)
    return IndexResult(
        success=True,
        toc_range=toc_range,
        toc_entries=entries,
        chapter_ranges=ranges,
        page_count=ctx.page_count,
        diagnostics=ctx.diagnostics,
        message=f"{len(entries)} TOC entries, {len(ranges)} chapters",
    )


def run_pipeline(source: DocumentSource, config: IndexConfig) -> IndexResult:
    """
    Build the index for one document.

    Raises ConfigurationError for a bad manual TOC range, NotFoundError when the TOC
    cannot be located or parsed, ExtractionFailure when the source fails.
    """
    cfg = config
    ctx = RunContext.open(source, cfg)
    toc_range, entries, ranges = _read_toc(ctx)

    chapter_count = len(ranges)
    if cfg.chapter_count is not None:
        chapter_count = cfg.chapter_count
        ctx.note("Chapter count (manual): %d", chapter_count)
    else:
        ctx.note("Chapter count (detected): %d", chapter_count)

    _build_page_map(ctx)

    level2 = [e for e in entries if e.level == 2]
    terms = _collect_terms(ctx, level2)

    max_pages_per_term = cfg.max_pages_per_term or chapter_count or DEFAULT_MAX_PAGES_PER_TERM
    lines = build_index_lines(
        ctx,
        terms,
        ranges,
        max_pages_per_term=max_pages_per_term,
        one_page_per_chapter=cfg.one_page_per_chapter,
        overlap_threshold=cfg.overlap_threshold,
    )
    lines = sort_index_lines(lines)
    ctx.note("Done: %d index lines", len(lines))

    return IndexResult(
        success=True,
        lines=lines,
        toc_range=toc_range,
        toc_entries=entries,
        chapter_ranges=ranges,
        page_count=ctx.page_count,
        diagnostics=ctx.diagnostics,
        message=f"Indexed {len(lines)} terms from {ctx.page_count} pages ({len(ranges)} chapters)",
    )
