import pytest

from book_indexer.index_builder import (
    build_index_lines,
    compress_to_chapters,
    dedupe_by_containment,
    find_book_pages,
)
from book_indexer.models import CHAPTER_END_SENTINEL, ChapterRange, IndexLine
from book_indexer.page_map import PageMap

from fakes import FakeSource

RANGES = [
    ChapterRange(id="1", start=5, end=19),
    ChapterRange(id="2", start=20, end=39),
    ChapterRange(id="3", start=40, end=CHAPTER_END_SENTINEL),
]


def test_find_book_pages_skips_unmapped_pages():
    texts = {1: "로그 수집", 2: "다른 내용", 3: "로그 수집 도구", 4: "", 5: "로그 수집"}
    mapping = {1: 7, 2: 8, 5: 3}
    assert find_book_pages("로그 수집", texts, mapping.get) == [3, 7]


def test_find_book_pages_is_case_sensitive():
    texts = {1: "kubernetes", 2: "Kubernetes"}
    assert find_book_pages("Kubernetes", texts, {1: 1, 2: 2}.get) == [2]


def test_compress_keeps_earliest_page_per_chapter():
    assert compress_to_chapters([3, 6, 12, 21, 22, 45, 300], RANGES) == [6, 21, 45]


def test_compress_without_matching_chapter():
    assert compress_to_chapters([1, 2, 3], RANGES) == []


# ---------------------------------------------------------------------------
# Containment dedup
# ---------------------------------------------------------------------------

def test_shorter_term_covered_by_longer_term_is_removed():
    terms = ["원인 분석", "근본 원인 분석"]
    pages = {"원인 분석": [5, 9, 20], "근본 원인 분석": [5, 9, 20, 31]}
    assert dedupe_by_containment(terms, pages) == {"원인 분석"}


def test_low_overlap_keeps_both():
    terms = ["원인 분석", "근본 원인 분석"]
    pages = {"원인 분석": [5, 9, 20, 31], "근본 원인 분석": [5, 9]}
    assert dedupe_by_containment(terms, pages) == set()


def test_threshold_is_inclusive():
    terms = ["로그", "로그 수집"]
    pages = {"로그": [1, 2, 3, 4, 5], "로그 수집": [1, 2, 3, 4]}
    assert dedupe_by_containment(terms, pages, threshold=0.8) == {"로그"}
    assert dedupe_by_containment(terms, pages, threshold=0.9) == set()


def test_longer_term_must_contain_shorter_one():
    terms = ["배포", "파이프라인 구성"]
    pages = {"배포": [1, 2], "파이프라인 구성": [1, 2]}
    assert dedupe_by_containment(terms, pages) == set()


def test_terms_without_pages_are_ignored():
    terms = ["원인", "근본 원인"]
    assert dedupe_by_containment(terms, {"원인": [1]}) == set()
    assert dedupe_by_containment(terms, {"근본 원인": [1]}) == set()


def test_removed_term_never_covers_a_later_one():
    # "원인 분석" goes first (covered by "근본 원인 분석"); "분석" only overlaps
    # with the removed term, so it stays.
    terms = ["원인 분석", "분석", "근본 원인 분석"]
    pages = {
        "원인 분석": list(range(1, 11)),
        "근본 원인 분석": list(range(1, 9)),
        "분석": [9, 10],
    }
    removed = dedupe_by_containment(terms, pages)
    assert removed == {"원인 분석"}


def test_every_removed_term_has_a_surviving_cover():
    terms = ["분석", "원인 분석", "근본 원인 분석", "로그", "로그 수집", "수집"]
    pages = {
        "분석": [1, 2, 3],
        "원인 분석": [1, 2, 3],
        "근본 원인 분석": [1, 2, 3, 4],
        "로그": [1, 7],
        "로그 수집": [7, 8],
        "수집": [7, 8],
    }
    removed = dedupe_by_containment(terms, pages)
    assert removed == {"분석", "원인 분석", "수집"}
    kept = [t for t in terms if t not in removed]
    for short in removed:
        covers = [
            t for t in kept
            if short in t and len(t) > len(short)
            and len(set(pages[short]) & set(pages[t])) / len(pages[short]) >= 0.8
        ]
        assert covers, short


# ---------------------------------------------------------------------------
# build_index_lines
# ---------------------------------------------------------------------------

@pytest.fixture
def five_page_ctx(make_ctx):
    pages = [["Helm 차트"], ["Helm 배포"], ["Helm 롤백"], ["Helm 정리"], ["기타"]]
    source = FakeSource(pages, ["1", "2", "3", "4", "5"])
    ctx = make_ctx(source)
    ctx.page_map = PageMap.from_labels(source.page_labels(), ctx.page_count)
    return ctx


def test_pages_capped_without_chapters(five_page_ctx):
    lines = build_index_lines(five_page_ctx, ["Helm", "없음"], [], max_pages_per_term=2)
    assert lines == [IndexLine(term="Helm", pages=[1, 2])]


def test_compression_before_cap(five_page_ctx):
    ranges = [ChapterRange(id="1", start=1, end=2), ChapterRange(id="2", start=3, end=CHAPTER_END_SENTINEL)]
    lines = build_index_lines(five_page_ctx, ["Helm"], ranges, max_pages_per_term=5)
    assert lines == [IndexLine(term="Helm", pages=[1, 3])]

    lines = build_index_lines(five_page_ctx, ["Helm"], ranges, max_pages_per_term=5, one_page_per_chapter=False)
    assert lines == [IndexLine(term="Helm", pages=[1, 2, 3, 4])]


def test_lines_keep_candidate_order(five_page_ctx):
    lines = build_index_lines(five_page_ctx, ["롤백", "Helm 차트", "Helm"], [])
    assert [line.term for line in lines] == ["롤백", "Helm 차트", "Helm"]


def test_containment_dedup_is_noted(five_page_ctx):
    lines = build_index_lines(five_page_ctx, ["Hel", "Helm"], [])
    assert [line.term for line in lines] == ["Helm"]
    assert any(d.startswith("Containment dedup: removed 1") for d in five_page_ctx.diagnostics)
