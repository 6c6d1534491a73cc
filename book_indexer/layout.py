"""Rebuild reading-order lines from positioned text fragments."""

import re
from collections.abc import Iterable

from book_indexer.models import Line, PositionedFragment

# Tolerance (points) for considering two fragments on the same line
LINE_Y_TOLERANCE = 2.5

_WS_RE = re.compile(r"\s+")
_PAGE_NUMBER_ONLY_RE = re.compile(r"^\d{1,4}$")
_TRAILING_PAGE_NUMBER_RE = re.compile(r"\d{1,4}\s*$")


def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def group_fragments_into_lines(
    fragments: Iterable[PositionedFragment],
    tolerance: float = LINE_Y_TOLERANCE,
) -> list[Line]:
    """
    Cluster fragments into lines, top of page first.

    A fragment joins the first bucket whose y (set by the fragment that opened it)
    lies within tolerance; otherwise it opens a new bucket. A line holding only a
    1-4 digit number is folded into the previous line when that line has no
    trailing page number yet (page numbers are often extracted as their own run).
    """
    buckets: list[tuple[float, list[PositionedFragment]]] = []
    for frag in fragments:
        if not frag.text.strip():
            continue
        for y, parts in buckets:
            if abs(y - frag.y) <= tolerance:
                parts.append(frag)
                break
        else:
            buckets.append((frag.y, [frag]))

    buckets.sort(key=lambda b: b[0], reverse=True)
    lines = [
        Line(y=y, text=_collapse(" ".join(f.text for f in sorted(parts, key=lambda f: f.x))))
        for y, parts in buckets
    ]

    merged: list[Line] = []
    for line in lines:
        prev = merged[-1] if merged else None
        if (
            prev is not None
            and _PAGE_NUMBER_ONLY_RE.match(line.text)
            and not _TRAILING_PAGE_NUMBER_RE.search(prev.text)
        ):
            merged[-1] = Line(y=prev.y, text=_collapse(prev.text + " " + line.text))
            continue
        merged.append(line)
    return merged
