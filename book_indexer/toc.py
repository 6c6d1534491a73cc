"""
Table of contents: locate the TOC pages, parse TOC lines, and derive chapter ranges.

Pipeline:
  1. locate_toc_range: manual physical range, or scan for the header marker and
     walk forward to a blank page / end marker.
  2. parse_toc_pages: rebuild lines from fragments and parse each one into a
     TocEntry (level 1 = chapter, level 2 = N.M section).
  3. build_chapter_ranges: contiguous, non-overlapping logical page ranges.
"""

import logging
import re
from collections.abc import Sequence
from functools import lru_cache

from book_indexer.context import RunContext
from book_indexer.errors import ConfigurationError
from book_indexer.layout import group_fragments_into_lines
from book_indexer.models import CHAPTER_END_SENTINEL, ChapterRange, TocEntry

log = logging.getLogger(__name__)

# How many pages past the header page the TOC may extend
TOC_END_WINDOW = 50

_WS_RE = re.compile(r"\s+")
_PAGE_TAIL_RE = re.compile(r"^(.*?)\s+(\d{1,4})\s*$")
_DOTTED_RE = re.compile(r"^(\d+\.\d+)\s+(.*)$")
_BARE_RE = re.compile(r"^(\d+)\s+(.*)$")


# ---------------------------------------------------------------------------
# Phase 1: Locate
# ---------------------------------------------------------------------------

def _manual_toc_range(ctx: RunContext) -> tuple[int, int]:
    start, end = ctx.config.toc_start_page, ctx.config.toc_end_page
    if start is None or end is None:
        raise ConfigurationError("Manual TOC range needs both a start and an end page.")
    if start < 1 or end < start or end > ctx.page_count:
        raise ConfigurationError(
            f"Manual TOC range {start}-{end} is invalid for a document with {ctx.page_count} pages "
            "(expected 1 <= start <= end <= page count)."
        )
    return start, end


def locate_toc_range(ctx: RunContext) -> tuple[int, int] | None:
    """
    Return the 1-based physical (start, end) pages of the TOC, inclusive, or None
    when the header marker is not found in the first max_toc_scan_pages pages.
    """
    cfg = ctx.config
    if cfg.manual_toc:
        return _manual_toc_range(ctx)

    scan_end = min(ctx.page_count, cfg.max_toc_scan_pages)
    ctx.note("TOC search: looking for %r in pages 1-%d", cfg.toc_header, scan_end)
    start = None
    for page in range(1, scan_end + 1):
        if cfg.toc_header in ctx.page_text(page):
            start = page
            ctx.note("TOC start candidate: page %d", page)
            break
    if start is None:
        return None

    end = start
    for page in range(start, min(ctx.page_count, start + TOC_END_WINDOW - 1) + 1):
        text = ctx.page_text(page)
        if not _WS_RE.sub("", text):
            end = page - 1
            break
        end = page
        if cfg.toc_end_marker in text:
            break
    return start, end


# ---------------------------------------------------------------------------
# Phase 2: Parse
# ---------------------------------------------------------------------------

@lru_cache(maxsize=16)
def _chapter_re(keyword: str) -> re.Pattern[str]:
    # "CHAPTER" also matches spaced-out headers like "C H A P T E R"
    spaced = r"\s*".join(re.escape(c) for c in keyword)
    return re.compile(rf"^(?:{spaced})\s*(\d+)\s+(.*)$", re.IGNORECASE)


def parse_toc_line(text: str, chapter_keyword: str = "CHAPTER") -> TocEntry | None:
    """
    Parse one reconstructed TOC line ending in a page number.

    'CHAPTER 3 Title 45' -> level 1; '3.2 Title 47' -> level 2; '3 Title 45' -> level 1.
    Returns None for anything else, including page 0.
    """
    line = _WS_RE.sub(" ", text).strip()
    if not line:
        return None
    m = _PAGE_TAIL_RE.match(line)
    if not m:
        return None
    left = m.group(1).strip()
    page = int(m.group(2))
    if page <= 0:
        return None

    m = _chapter_re(chapter_keyword).match(left)
    if m:
        return TocEntry(level=1, number=m.group(1), title=m.group(2).strip(), page=page)
    m = _DOTTED_RE.match(left)
    if m:
        return TocEntry(level=2, number=m.group(1), title=m.group(2).strip(), page=page)
    m = _BARE_RE.match(left)
    if m:
        return TocEntry(level=1, number=m.group(1), title=m.group(2).strip(), page=page)
    return None


def parse_toc_pages(ctx: RunContext, start: int, end: int) -> list[TocEntry]:
    """Parse every reconstructed line on physical pages start..end (inclusive)."""
    entries: list[TocEntry] = []
    for page in range(start, end + 1):
        ctx.note("Parsing TOC page %d", page)
        for line in group_fragments_into_lines(ctx.page_fragments(page)):
            entry = parse_toc_line(line.text, ctx.config.chapter_keyword)
            if entry is None:
                continue
            log.debug("TOC entry (page %d): %s", page, entry)
            entries.append(entry)
    return [e for e in entries if e.title and e.page > 0]


# ---------------------------------------------------------------------------
# Phase 3: Chapter ranges
# ---------------------------------------------------------------------------

def _synthetic_chapters(level2: list[TocEntry]) -> list[tuple[str, int, str]]:
    """Chapters inferred from N.M sections: the title page precedes the first section."""
    first_page: dict[str, int] = {}
    for entry in level2:
        chapter = entry.number.split(".")[0]
        if not chapter or entry.page <= 0:
            continue
        if chapter not in first_page or entry.page < first_page[chapter]:
            first_page[chapter] = entry.page
    chapters = [(ch, max(1, page - 1), "") for ch, page in first_page.items()]
    return sorted(chapters, key=lambda c: c[1])


def build_chapter_ranges(level1: list[TocEntry], level2: list[TocEntry]) -> list[ChapterRange]:
    """
    Build ascending, non-overlapping logical page ranges, one per chapter.

    Level-1 entries are the chapters when present; otherwise chapters are derived
    from the level-2 numbering. Each range ends where the next one starts; the last
    one runs to CHAPTER_END_SENTINEL.
    """
    if level1:
        chapters = [(e.number, e.page, e.title) for e in sorted(level1, key=lambda e: e.page)]
    else:
        chapters = _synthetic_chapters(level2)

    kept: list[tuple[str, int, str]] = []
    seen: set[str] = set()
    for number, page, title in chapters:
        if number in seen:
            log.debug("Skipping repeated chapter %s (page %d)", number, page)
            continue
        if kept and kept[-1][1] == page:
            log.debug("Skipping chapter %s: starts on the same page as %s", number, kept[-1][0])
            continue
        seen.add(number)
        kept.append((number, page, title))

    ranges: list[ChapterRange] = []
    for i, (number, start, title) in enumerate(kept):
        end = kept[i + 1][1] - 1 if i + 1 < len(kept) else CHAPTER_END_SENTINEL
        ranges.append(ChapterRange(id=str(number), start=start, end=end, title=title))
    return ranges


def chapter_for_page(ranges: Sequence[ChapterRange], book_page: int) -> str | None:
    """Id of the chapter containing book_page, or None if no range covers it."""
    for r in ranges:
        if r.contains(book_page):
            return r.id
    return None
