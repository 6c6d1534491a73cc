"""
Term candidate extractors. Each one returns a flat list of normalized candidate
strings; the pipeline concatenates them (TOC titles, body tokens, parenthetical
pairs) and deduplicates.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from book_indexer.collation import korean_key
from book_indexer.context import RunContext
from book_indexer.models import TocEntry
from book_indexer.terms import dedupe_terms, normalize_term, rejecting_filter

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# TOC titles
# ---------------------------------------------------------------------------

_TITLE_SEPARATORS_RE = re.compile(r"[/:;,()\[\]<>「」『』“”\"']|[-–—]")
_WS_RE = re.compile(r"\s+")


def split_title_into_candidates(title: str) -> list[str]:
    """
    The title itself, its punctuation-separated parts, and (for 2-6 word titles)
    every run of 2 and 3 consecutive words.
    """
    title = title.strip()
    flat = _WS_RE.sub(" ", _TITLE_SEPARATORS_RE.sub("|", title)).strip()
    parts = [p.strip() for p in flat.split("|") if p.strip()]
    candidates = [title, *parts]

    words = title.split()
    if 2 <= len(words) <= 6:
        for i in range(len(words)):
            for k in (2, 3):
                if i + k <= len(words):
                    candidates.append(" ".join(words[i:i + k]))
    return candidates


def toc_title_candidates(level2: Iterable[TocEntry], drop_exact: frozenset[str]) -> list[str]:
    """Seed terms from level-2 TOC titles."""
    out: list[str] = []
    for entry in level2:
        if not entry.title.strip():
            continue
        out.extend(split_title_into_candidates(entry.title))
    return dedupe_terms(out, drop_exact)


# ---------------------------------------------------------------------------
# Latin body tokens
# ---------------------------------------------------------------------------

# ASCII word boundaries: "API가" still yields "API"
TECH_TOKEN_RE = re.compile(r"\b[A-Za-z][A-Za-z0-9][A-Za-z0-9._\-/]{1,28}\b", re.ASCII)
_TOKEN_PUNCT_RE = re.compile(r"[._\-/]")
_DIGITS_RE = re.compile(r"^\d+$")
MAX_TOKEN_PUNCT = 3


@dataclass
class _TokenStats:
    count: int = 0
    pages: set[int] = field(default_factory=set)


def _is_tech_token(tok: str, drop_exact: frozenset[str]) -> bool:
    if tok in drop_exact:
        return False
    if len(tok) < 3 or len(tok) > 30:
        return False
    if _DIGITS_RE.match(tok):
        return False
    return len(_TOKEN_PUNCT_RE.findall(tok)) <= MAX_TOKEN_PUNCT


def tech_token_candidates(ctx: RunContext, drop_exact: frozenset[str]) -> list[str]:
    """
    English-like tokens that recur across the body. Only tokens found on at least
    two distinct book pages are kept, most widespread first.
    """
    stats: dict[str, _TokenStats] = {}
    sample_end = min(ctx.page_count, ctx.config.tech_token_sample_pages)
    for physical in range(1, sample_end + 1):
        book_page = ctx.book_page(physical)
        if book_page is None:
            continue
        for tok in TECH_TOKEN_RE.findall(ctx.page_text(physical)):
            if not _is_tech_token(tok, drop_exact):
                continue
            s = stats.setdefault(tok, _TokenStats())
            s.count += 1
            s.pages.add(book_page)

    kept = [tok for tok, s in stats.items() if len(s.pages) >= 2]
    kept.sort(key=lambda tok: (-len(stats[tok].pages), -stats[tok].count))
    log.debug("Body tokens: %d distinct, %d on 2+ pages", len(stats), len(kept))
    return kept


# ---------------------------------------------------------------------------
# Parenthetical pairs: 관측 가능성(observability) / observability(관측 가능성)
# ---------------------------------------------------------------------------

_KO = r"[가-힣]{2,20}(?:\s+[가-힣]{2,20})?"
_EN = r"[A-Za-z][A-Za-z0-9._\-/ ]{1,30}"
KO_EN_RE = re.compile(rf"({_KO})\s*\(\s*({_EN})\s*\)")
EN_KO_RE = re.compile(rf"({_EN})\s*\(\s*({_KO})\s*\)")


@dataclass
class _PairStats:
    count: int
    first: int


def _tally(stats: dict[str, _PairStats], term: str, book_page: int) -> None:
    s = stats.get(term)
    if s is None:
        stats[term] = _PairStats(count=1, first=book_page)
    else:
        s.count += 1
        s.first = min(s.first, book_page)


def _korean_member(raw: str, drop_exact: frozenset[str]) -> str:
    ko = normalize_term(raw)
    if not ko or ko in drop_exact or rejecting_filter(ko) is not None:
        return ""
    return ko


def parenthetical_candidates(ctx: RunContext, drop_exact: frozenset[str]) -> list[str]:
    """
    Both members of every Korean/Latin parenthetical gloss. Parenthetical glossing
    marks terminology; terms seen too often are page furniture and are dropped.
    """
    cfg = ctx.config
    stats: dict[str, _PairStats] = {}
    for physical in range(1, ctx.page_count + 1):
        book_page = ctx.book_page(physical)
        if book_page is None:
            continue
        text = ctx.page_text(physical)
        if not text:
            continue

        for m in KO_EN_RE.finditer(text):
            ko = _korean_member(m.group(1), drop_exact)
            if ko:
                _tally(stats, ko, book_page)
            en = m.group(2).strip()
            if en and 2 <= len(en) <= 40 and en not in drop_exact:
                _tally(stats, en, book_page)

        for m in EN_KO_RE.finditer(text):
            ko = _korean_member(m.group(2), drop_exact)
            if ko:
                _tally(stats, ko, book_page)
            en = m.group(1).strip()
            if en and en not in drop_exact:
                _tally(stats, en, book_page)

        if physical % 80 == 0:
            log.info("Parenthetical pairs: page %d/%d", physical, ctx.page_count)

    kept = [
        (term, s)
        for term, s in stats.items()
        if cfg.paren_min_count <= s.count <= cfg.paren_max_count
    ]
    kept.sort(key=lambda item: (item[1].first, -item[1].count, korean_key(item[0]), item[0]))
    out = [term for term, _ in kept[: cfg.paren_max_terms]]
    ctx.note(
        "Parenthetical candidates: %d seen, %d within count %d-%d, %d kept",
        len(stats), len(kept), cfg.paren_min_count, cfg.paren_max_count, len(out),
    )
    return out
