import pytest

from book_indexer import build_index
from book_indexer.errors import ConfigurationError, ExtractionFailure, NotFoundError
from book_indexer.models import CHAPTER_END_SENTINEL, IndexConfig, IndexLine
from book_indexer.pipeline import read_toc, run_pipeline

from fakes import FakeSource, make_book

EXPECTED_LINES = [
    ("Kubernetes", [2, 8]),
    ("observability", [2, 10]),
    ("Prometheus", [4]),
    ("관측 가능성", [2, 10]),
    ("근본 원인 분석", [2, 9]),
    ("로그 수집", [4, 11]),
    ("배포 파이프라인", [8]),
]


def as_pairs(result):
    return [(line.term, line.pages) for line in result.lines]


def test_full_run(book_source):
    result = run_pipeline(book_source, IndexConfig())
    assert result.success
    assert as_pairs(result) == EXPECTED_LINES
    assert result.toc_range == (2, 2)
    assert result.page_count == 16
    assert [(r.id, r.start, r.end) for r in result.chapter_ranges] == [
        ("1", 1, 6),
        ("2", 7, CHAPTER_END_SENTINEL),
    ]
    assert [(e.level, e.number, e.page) for e in result.toc_entries] == [
        (1, "1", 1),
        (2, "1.1", 2),
        (2, "1.2", 4),
        (1, "2", 7),
        (2, "2.1", 8),
        (2, "2.2", 10),
    ]


def test_diagnostics_describe_the_run(book_source):
    diagnostics = run_pipeline(book_source, IndexConfig()).diagnostics
    assert "TOC pages: 2-2" in diagnostics
    assert "Chapter count (detected): 2" in diagnostics
    assert "Page labels: 13 of 16 pages mapped, physical 4 -> book 1 / physical 16 -> book 13" in diagnostics
    assert any(d.startswith("Term candidates after filters:") and "trailing_particle -1" in d for d in diagnostics)
    assert diagnostics[-1] == "Done: 7 index lines"


def test_every_output_line_is_well_formed(book_source):
    config = IndexConfig()
    result = run_pipeline(book_source, config)
    cap = len(result.chapter_ranges)
    terms = [line.term for line in result.lines]
    assert len(terms) == len(set(terms))
    for line in result.lines:
        assert line.pages == sorted(set(line.pages))
        assert 0 < len(line.pages) <= cap
        assert line.term not in config.drop_exact
        assert not line.term.endswith("는")


def test_without_labels_nothing_is_placed():
    pages, _ = make_book()
    result = run_pipeline(FakeSource(pages), IndexConfig())
    assert result.success
    assert result.lines == []
    assert any("No usable page labels" in d for d in result.diagnostics)


def test_manual_toc_range(book_source):
    result = run_pipeline(book_source, IndexConfig(toc_start_page=2, toc_end_page=2))
    assert result.toc_range == (2, 2)
    assert as_pairs(result) == EXPECTED_LINES


def test_invalid_manual_range_raises(book_source):
    with pytest.raises(ConfigurationError):
        run_pipeline(book_source, IndexConfig(toc_start_page=3, toc_end_page=20))


def test_toc_header_not_found(book_source):
    with pytest.raises(NotFoundError) as exc_info:
        run_pipeline(book_source, IndexConfig(toc_header="Contents"))
    assert "'Contents'" in str(exc_info.value)


def test_toc_without_sections():
    pages = [["차례", "CHAPTER 1 시작 1", "CHAPTER 2 끝 5"], [""], ["본문"]]
    with pytest.raises(NotFoundError):
        run_pipeline(FakeSource(pages, ["i", "ii", "1"]), IndexConfig())


def test_source_failure_names_the_page():
    pages, labels = make_book()
    with pytest.raises(ExtractionFailure) as exc_info:
        run_pipeline(FakeSource(pages, labels, fail_on=5), IndexConfig())
    assert exc_info.value.page == 5
    assert isinstance(exc_info.value.cause, OSError)
    assert "page 5" in str(exc_info.value)


def test_two_level_chapters(book_source):
    result = run_pipeline(book_source, IndexConfig(use_two_level=True))
    assert [(r.id, r.start, r.end) for r in result.chapter_ranges] == [
        ("1.1", 2, 3),
        ("1.2", 4, 7),
        ("2.1", 8, 9),
        ("2.2", 10, CHAPTER_END_SENTINEL),
    ]
    pairs = dict(as_pairs(result))
    assert pairs["근본 원인 분석"] == [2, 6, 9]
    assert pairs["Kubernetes"] == [2, 8]


def test_chapter_count_override_caps_pages(book_source):
    result = run_pipeline(book_source, IndexConfig(chapter_count=1))
    assert all(len(line.pages) == 1 for line in result.lines)
    assert dict(as_pairs(result))["근본 원인 분석"] == [2]
    assert "Chapter count (manual): 1" in result.diagnostics


def test_all_pages_mode(book_source):
    result = run_pipeline(book_source, IndexConfig(one_page_per_chapter=False))
    assert dict(as_pairs(result))["근본 원인 분석"] == [2, 3]


def test_explicit_page_cap_wins(book_source):
    result = run_pipeline(book_source, IndexConfig(one_page_per_chapter=False, max_pages_per_term=3))
    assert dict(as_pairs(result))["근본 원인 분석"] == [2, 3, 6]


def test_read_toc_only(book_source):
    result = read_toc(book_source, IndexConfig())
    assert result.success
    assert result.lines == []
    assert len(result.toc_entries) == 6
    assert len(result.chapter_ranges) == 2


# ---------------------------------------------------------------------------
# Library API
# ---------------------------------------------------------------------------

def test_build_index_with_options(book_source):
    result = build_index(book_source, toc_start_page=2, toc_end_page=2)
    assert result.lines[0] == IndexLine(term="Kubernetes", pages=[2, 8])


def test_build_index_options_override_config(book_source):
    result = build_index(book_source, IndexConfig(toc_header="Contents"), toc_header="차례")
    assert result.success


def test_build_index_reports_missing_toc(book_source):
    result = build_index(book_source, toc_header="Contents")
    assert not result.success
    assert result.lines == []
    assert "Contents" in result.message
    assert result.diagnostics[0] == "Document loaded: 16 pages (scanning 16)"
    assert "TOC search: looking for 'Contents' in pages 1-16" in result.diagnostics


def test_missing_sections_keep_toc_diagnostics():
    pages = [["차례", "CHAPTER 1 시작 1", "CHAPTER 2 끝 5"], [""], ["본문"]]
    result = build_index(FakeSource(pages, ["i", "ii", "1"]))
    assert not result.success
    assert "TOC pages: 1-1" in result.diagnostics


def test_build_index_rejects_bad_options(book_source):
    with pytest.raises(ConfigurationError):
        build_index(book_source, max_pages=0)
    with pytest.raises(ConfigurationError):
        build_index(book_source, not_an_option=True)
