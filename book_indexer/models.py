"""Data models for index configuration, TOC structures, and results."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

# Last chapter range runs "to the end of the document".
CHAPTER_END_SENTINEL = 1_000_000

DEFAULT_DROP_EXACT = frozenset({"CHAPTER", "개요", "요약"})


class PositionedFragment(BaseModel):
    """One text fragment with its origin. y grows upward (PDF user space)."""

    text: str
    x: float
    y: float

    model_config = {"frozen": True}


class Line(BaseModel):
    """A reading-order line rebuilt from fragments sharing a vertical band."""

    y: float
    text: str

    model_config = {"frozen": True}


class TocEntry(BaseModel):
    """One parsed table-of-contents row."""

    level: Literal[1, 2] = Field(description="1 = chapter/top-level, 2 = N.M subsection")
    number: str = Field(description="Section number as printed, e.g. '3' or '3.2'")
    title: str
    page: int = Field(description="Logical (printed) page number")

    model_config = {"frozen": True}


class ChapterRange(BaseModel):
    """Inclusive range of logical pages belonging to one chapter."""

    id: str = Field(description="Chapter number as text")
    start: int
    end: int
    title: str = ""

    model_config = {"frozen": True}

    def contains(self, page: int) -> bool:
        return self.start <= page <= self.end


class IndexLine(BaseModel):
    """Final output record: a term and its ascending logical pages."""

    term: str
    pages: list[int] = Field(default_factory=list)

    model_config = {"frozen": True}


class IndexConfig(BaseModel):
    """Options for one indexing run."""

    toc_header: str = Field(default="차례", description="Marker string that identifies the first TOC page")
    toc_end_marker: str = Field(default="찾아보기", description="Marker string on the last TOC page, if any")
    toc_start_page: int | None = Field(default=None, ge=1, description="Manual TOC start (physical, 1-based)")
    toc_end_page: int | None = Field(default=None, ge=1, description="Manual TOC end (physical, 1-based)")
    chapter_count: int | None = Field(
        default=None,
        gt=0,
        description="Override for the detected chapter count (used as the per-term page cap)",
    )
    use_two_level: bool = Field(
        default=False,
        description="Use level-2 (N.M) entries as chapter boundaries instead of level-1 entries",
    )
    one_page_per_chapter: bool = Field(default=True, description="Keep only the earliest page per chapter")
    max_pages_per_term: int | None = Field(
        default=None,
        gt=0,
        description="Explicit per-term page cap (default: chapter count, or 11 without chapters)",
    )
    max_pages: int = Field(default=2000, gt=0, description="Safety cap on physical pages scanned")
    max_toc_scan_pages: int = Field(default=60, gt=0, description="Scan the first N pages for the TOC header")
    chapter_keyword: str = Field(default="CHAPTER", min_length=1, description="Level-1 keyword in TOC lines")
    drop_exact: frozenset[str] = Field(default=DEFAULT_DROP_EXACT, description="Terms that are never indexed")
    overlap_threshold: float = Field(default=0.8, gt=0, le=1, description="Containment dedup page-overlap ratio")
    tech_token_sample_pages: int = Field(default=250, gt=0, description="Pages sampled for Latin body tokens")
    paren_min_count: int = Field(default=1, ge=1)
    paren_max_count: int = Field(default=120, ge=1)
    paren_max_terms: int = Field(default=500, gt=0)
    separator: str = Field(default="    ", description="Separator between term and page list")

    model_config = {"extra": "forbid"}

    @field_validator("toc_header", "toc_end_marker")
    @classmethod
    def _marker_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("marker must not be blank")
        return v

    @property
    def manual_toc(self) -> bool:
        return self.toc_start_page is not None or self.toc_end_page is not None


class IndexResult(BaseModel):
    """Result of an indexing run."""

    success: bool = Field(description="Whether the run produced an index")
    lines: list[IndexLine] = Field(default_factory=list, description="Sorted index lines")
    toc_range: tuple[int, int] | None = Field(default=None, description="Physical TOC pages used (1-based)")
    toc_entries: list[TocEntry] = Field(default_factory=list)
    chapter_ranges: list[ChapterRange] = Field(default_factory=list)
    page_count: int = Field(default=0, description="Number of physical pages considered")
    diagnostics: list[str] = Field(default_factory=list, description="Progress and sanity messages")
    message: str = Field(default="", description="Human-readable summary or guidance")
