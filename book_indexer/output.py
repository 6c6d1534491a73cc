"""Sort and render index lines the way printed indexes are typeset."""

import json
from collections.abc import Iterable

from book_indexer.collation import default_key, korean_key, latin_key
from book_indexer.models import IndexLine

DEFAULT_SEPARATOR = "    "

CATEGORY_SYMBOL = 0
CATEGORY_DIGIT = 1
CATEGORY_LATIN = 2
CATEGORY_HANGUL = 3
CATEGORY_OTHER = 9


def _is_hangul_syllable(c: str) -> bool:
    return "가" <= c <= "힣"


def term_category(term: str) -> int:
    """0 symbol, 1 digit, 2 Latin letter, 3 Hangul syllable, 9 empty, by first character."""
    t = (term or "").strip()
    if not t:
        return CATEGORY_OTHER
    c = t[0]
    if "0" <= c <= "9":
        return CATEGORY_DIGIT
    if ("A" <= c <= "Z") or ("a" <= c <= "z"):
        return CATEGORY_LATIN
    if _is_hangul_syllable(c):
        return CATEGORY_HANGUL
    return CATEGORY_SYMBOL


def index_sort_key(term: str) -> tuple[int, bytes, str]:
    """
    Symbols, digits, Latin, then Hangul. Hangul terms use Korean collation,
    Latin terms compare case- and accent-insensitively, the rest use the root
    collation. The raw term breaks ties so the order is total.
    """
    cat = term_category(term)
    if cat == CATEGORY_HANGUL:
        return cat, korean_key(term), term
    if cat == CATEGORY_LATIN:
        return cat, latin_key(term), term
    return cat, default_key(term), term


def sort_index_lines(lines: Iterable[IndexLine]) -> list[IndexLine]:
    return sorted(lines, key=lambda line: index_sort_key(line.term))


def format_index_line(line: IndexLine, separator: str = DEFAULT_SEPARATOR) -> str:
    return line.term + separator + ", ".join(str(p) for p in line.pages)


def render_index(lines: Iterable[IndexLine], separator: str = DEFAULT_SEPARATOR) -> str:
    """Newline-joined '<term><separator><p1, p2, ...>' lines, in the given order."""
    return "\n".join(format_index_line(line, separator) for line in lines)


def render_index_json(lines: Iterable[IndexLine]) -> str:
    return json.dumps([line.model_dump() for line in lines], indent=2, ensure_ascii=False)
