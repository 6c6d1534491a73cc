"""
Term normalization and the filter pipeline that removes grammatically incomplete
Korean fragments.

N-gram and regex extraction over particle-suffixed text produces phrases such as
"데이터베이스는" or "두 가지 측면". The filters below drop them by exclusion. They
are tuned empirically and applied in a fixed order; reordering changes results.
"""

import re
from collections import Counter
from collections.abc import Callable, Iterable

MIN_TERM_LENGTH = 2
MAX_TERM_LENGTH = 60

_WS_RE = re.compile(r"\s+")
# Edge punctuation stripped together with whitespace so normalization is idempotent
_EDGE_CHARS = ".-–—:;,()[]{}" + " \t"

# Single-character particles (은/는, 이/가, 을/를, ...)
ONE_CHAR_PARTICLES = frozenset("은는이가을를의에도만들뿐")

# Longer particles and expressions; only dropped when the term is clearly longer
MULTI_CHAR_SUFFIXES = (
    "와", "과", "부터", "까지", "이란", "란", "이라는", "라는", "등", "및",
    "에서", "에게", "께서", "으로", "로서", "로써", "처럼", "보다", "밖에", "마다",
    "조차", "마저", "부터는", "까지는",
)

_QUANTIFIER = r"(?:한|두|세|네|다섯|여섯|일곱|여덟|아홉|열|몇|여러)"
_GENERIC_NOUNS = r"(?:측면|관점|방법|이유|문제|사례|경우|요소|항목|기준|조건|측정|접근|특징)"
_GENERIC_NOUNS_TRUNCATED = r"(?:측면|관점|방법|이유|문제|사례|경우|요소|항목|기준|조건|접근|특징)"
_QUANTIFIER_PATTERNS = (
    re.compile(rf"^{_QUANTIFIER}\s*가지$"),
    re.compile(rf"^{_QUANTIFIER}\s*가지\s*{_GENERIC_NOUNS}$"),
    # Leading quantifier cut off by extraction: "가지 측면"
    re.compile(rf"^가지\s*{_GENERIC_NOUNS_TRUNCATED}$"),
)

_DANGLING_MODIFIER_RE = re.compile(r"(?:다른|위한|대한|통한|같은|관련|관련된|이외의|등의)$")


def normalize_term(term: str | None) -> str:
    """
    Canonical form of a candidate: whitespace collapsed, edge punctuation removed.
    Returns "" when the result is not 2-60 characters long.
    """
    t = _WS_RE.sub(" ", term or "").strip(_EDGE_CHARS)
    if len(t) < MIN_TERM_LENGTH or len(t) > MAX_TERM_LENGTH:
        return ""
    return t


def dedupe_terms(terms: Iterable[str], drop_exact: frozenset[str] | set[str]) -> list[str]:
    """Normalize, drop stopwords and empties, keep the first occurrence of each term."""
    seen: set[str] = set()
    out: list[str] = []
    for t in terms:
        norm = normalize_term(t)
        if not norm or norm in drop_exact or norm in seen:
            continue
        seen.add(norm)
        out.append(norm)
    return out


# ---------------------------------------------------------------------------
# Filters (True = drop)
# ---------------------------------------------------------------------------

def ends_with_particle(term: str) -> bool:
    t = term.strip()
    if len(t) < 2:
        return False
    if t[-1] in ONE_CHAR_PARTICLES:
        return True
    return any(len(t) > len(s) + 1 and t.endswith(s) for s in MULTI_CHAR_SUFFIXES)


def is_generic_quantifier_phrase(term: str) -> bool:
    t = term.strip()
    return any(p.match(t) for p in _QUANTIFIER_PATTERNS)


def ends_with_dangling_modifier(term: str) -> bool:
    return bool(_DANGLING_MODIFIER_RE.search(term.strip()))


TERM_FILTERS: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("trailing_particle", ends_with_particle),
    ("generic_quantifier", is_generic_quantifier_phrase),
    ("dangling_modifier", ends_with_dangling_modifier),
)


def rejecting_filter(term: str) -> str | None:
    """Name of the first filter that drops term, or None if it survives all of them."""
    for name, drops in TERM_FILTERS:
        if drops(term):
            return name
    return None


def apply_term_filters(terms: Iterable[str]) -> tuple[list[str], Counter]:
    """Keep terms that pass every filter. Also returns how many each filter dropped."""
    kept: list[str] = []
    dropped: Counter = Counter()
    for term in terms:
        name = rejecting_filter(term)
        if name is None:
            kept.append(term)
        else:
            dropped[name] += 1
    return kept, dropped
