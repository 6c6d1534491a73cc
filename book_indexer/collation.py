"""ICU collation keys used for ordering index terms."""

from functools import lru_cache

import icu


@lru_cache(maxsize=None)
def _collator(locale: str, strength: int | None = None) -> icu.Collator:
    loc = icu.Locale.getRoot() if locale == "root" else icu.Locale(locale)
    collator = icu.Collator.createInstance(loc)
    if strength is not None:
        collator.setStrength(strength)
    return collator


def korean_key(term: str) -> bytes:
    """Korean dictionary order: Hangul before Latin, lowercase before uppercase."""
    return _collator("ko_KR").getSortKey(term)


def latin_key(term: str) -> bytes:
    """English order ignoring case and accents ("Résumé" == "resume")."""
    return _collator("en", icu.Collator.PRIMARY).getSortKey(term)


def default_key(term: str) -> bytes:
    return _collator("root").getSortKey(term)
