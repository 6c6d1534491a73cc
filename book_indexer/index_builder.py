"""
Match terms against page text and build the per-term page lists.

Steps:
  1. Cache the text of every physical page once.
  2. For each term: book pages containing it (exact substring), compressed to the
     earliest page per chapter, capped at max_pages_per_term.
  3. Drop shorter terms mostly covered by a longer containing term
     ("원인 분석" vs "근본 원인 분석").
"""

import logging
from collections.abc import Callable, Mapping, Sequence

from book_indexer.context import RunContext
from book_indexer.models import ChapterRange, IndexLine
from book_indexer.toc import chapter_for_page

log = logging.getLogger(__name__)

DEFAULT_MAX_PAGES_PER_TERM = 11
OVERLAP_THRESHOLD = 0.8


def find_book_pages(
    term: str,
    page_texts: Mapping[int, str],
    book_page: Callable[[int], int | None],
) -> list[int]:
    """Sorted distinct book pages whose text contains term. Unmapped pages are skipped."""
    pages: set[int] = set()
    for physical, text in page_texts.items():
        if not text or term not in text:
            continue
        bp = book_page(physical)
        if bp is not None and bp > 0:
            pages.add(bp)
    return sorted(pages)


def compress_to_chapters(pages: Sequence[int], ranges: Sequence[ChapterRange]) -> list[int]:
    """Earliest page per chapter; pages outside every chapter are dropped."""
    earliest: dict[str, int] = {}
    for bp in pages:
        ch = chapter_for_page(ranges, bp)
        if ch is None:
            continue
        if ch not in earliest or bp < earliest[ch]:
            earliest[ch] = bp
    return sorted(earliest.values())


def _overlap_ratio(short: set[int], long: set[int]) -> float:
    if not short:
        return 0.0
    return len(short & long) / len(short)


def dedupe_by_containment(
    terms: Sequence[str],
    term_pages: Mapping[str, Sequence[int]],
    threshold: float = OVERLAP_THRESHOLD,
) -> set[str]:
    """
    Terms to remove because a strictly longer term contains them and shares at least
    `threshold` of their pages.

    Candidates are ranked by overlap ratio, then length, then position in `terms`.
    One pass: removals are not re-evaluated, but a removed term is never used as
    the containing term for a later one.
    """
    page_sets = {t: set(term_pages[t]) for t in terms if term_pages.get(t)}
    position = {t: i for i, t in enumerate(terms)}
    removed: set[str] = set()

    for short in terms:
        if short in removed or short not in page_sets:
            continue
        best: tuple[float, int, int] | None = None
        for long in terms:
            if long == short or long in removed:
                continue
            if len(long) <= len(short) or short not in long:
                continue
            ratio = _overlap_ratio(page_sets[short], page_sets.get(long, set()))
            if ratio < threshold:
                continue
            # higher ratio, then longer, then earlier
            rank = (ratio, len(long), -position[long])
            if best is None or rank > best:
                best = rank
        if best is not None:
            log.debug("Removing %r: covered by a longer term (overlap %.2f)", short, best[0])
            removed.add(short)
    return removed


def build_index_lines(
    ctx: RunContext,
    terms: Sequence[str],
    chapter_ranges: Sequence[ChapterRange],
    *,
    max_pages_per_term: int = DEFAULT_MAX_PAGES_PER_TERM,
    one_page_per_chapter: bool = True,
    overlap_threshold: float = OVERLAP_THRESHOLD,
) -> list[IndexLine]:
    """Index lines in candidate order (sorting happens later)."""
    ctx.note("Caching page text...")
    page_texts: dict[int, str] = {}
    for physical in range(1, ctx.page_count + 1):
        page_texts[physical] = ctx.page_text(physical)
        if physical % 25 == 0:
            log.info("... cached %d/%d pages", physical, ctx.page_count)
    ctx.note("Page text cache ready (%d pages)", len(page_texts))

    term_pages: dict[str, list[int]] = {}
    for i, term in enumerate(terms, start=1):
        pages = find_book_pages(term, page_texts, ctx.book_page)
        if not pages:
            continue
        if one_page_per_chapter and chapter_ranges:
            pages = compress_to_chapters(pages, chapter_ranges)
        term_pages[term] = pages[:max_pages_per_term]
        if i % 50 == 0:
            log.info("... matched %d/%d terms", i, len(terms))

    removed = dedupe_by_containment(terms, term_pages, overlap_threshold)
    if removed:
        ctx.note("Containment dedup: removed %d terms (threshold %s)", len(removed), overlap_threshold)

    lines: list[IndexLine] = []
    for term in terms:
        if term in removed:
            continue
        pages = term_pages.get(term)
        if pages:
            lines.append(IndexLine(term=term, pages=pages))
    return lines
