import json

import pytest

from book_indexer.models import IndexLine
from book_indexer.output import (
    CATEGORY_DIGIT,
    CATEGORY_HANGUL,
    CATEGORY_LATIN,
    CATEGORY_OTHER,
    CATEGORY_SYMBOL,
    format_index_line,
    render_index,
    render_index_json,
    sort_index_lines,
    term_category,
)


def lines_for(*terms):
    return [IndexLine(term=t, pages=[1]) for t in terms]


@pytest.mark.parametrize(
    "term,category",
    [
        ("#tag", CATEGORY_SYMBOL),
        ("(주)", CATEGORY_SYMBOL),
        ("123", CATEGORY_DIGIT),
        ("3D 렌더링", CATEGORY_DIGIT),
        ("API", CATEGORY_LATIN),
        ("kubectl", CATEGORY_LATIN),
        ("가격", CATEGORY_HANGUL),
        ("", CATEGORY_OTHER),
        ("   ", CATEGORY_OTHER),
    ],
)
def test_term_category(term, category):
    assert term_category(term) == category


def test_category_order():
    ordered = sort_index_lines(lines_for("가격", "API", "123", "#tag"))
    assert [line.term for line in ordered] == ["#tag", "123", "API", "가격"]


def test_latin_is_case_and_accent_insensitive():
    ordered = sort_index_lines(lines_for("Zebra", "résumé", "api", "Resume", "API", "abc"))
    assert [line.term for line in ordered] == ["abc", "API", "api", "Resume", "résumé", "Zebra"]


def test_hangul_dictionary_order():
    ordered = sort_index_lines(lines_for("배포 파이프라인", "관측 가능성", "로그 수집", "근본 원인 분석", "가상화"))
    assert [line.term for line in ordered] == ["가상화", "관측 가능성", "근본 원인 분석", "로그 수집", "배포 파이프라인"]


def test_hangul_terms_use_korean_collation():
    # Korean collation: Hangul before Latin, lowercase before uppercase
    ordered = sort_index_lines(lines_for("쿠버네티스 API", "쿠버네티스 관리", "가B", "가a"))
    assert [line.term for line in ordered] == ["가a", "가B", "쿠버네티스 관리", "쿠버네티스 API"]


def test_mixed_categories_with_collation():
    ordered = sort_index_lines(lines_for("캐시 API", "cache", "Cache", "캐시 관리", "2단계", "#설정"))
    assert [line.term for line in ordered] == ["#설정", "2단계", "Cache", "cache", "캐시 관리", "캐시 API"]


def test_sort_is_deterministic():
    terms = ["b", "가", "A", "1", "a", "B", "#"]
    first = [line.term for line in sort_index_lines(lines_for(*terms))]
    second = [line.term for line in sort_index_lines(lines_for(*reversed(terms)))]
    assert first == second


def test_format_index_line():
    line = IndexLine(term="Kubernetes", pages=[2, 8])
    assert format_index_line(line) == "Kubernetes    2, 8"
    assert format_index_line(line, separator="\t") == "Kubernetes\t2, 8"


def test_render_index_keeps_order():
    lines = [IndexLine(term="로그 수집", pages=[4, 11]), IndexLine(term="Prometheus", pages=[4])]
    assert render_index(lines) == "로그 수집    4, 11\nPrometheus    4"
    assert render_index([]) == ""


def test_render_index_json():
    data = json.loads(render_index_json([IndexLine(term="관측 가능성", pages=[2, 10])]))
    assert data == [{"term": "관측 가능성", "pages": [2, 10]}]
    assert "관측 가능성" in render_index_json([IndexLine(term="관측 가능성", pages=[2])])
