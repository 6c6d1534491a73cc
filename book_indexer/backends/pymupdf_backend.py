"""PyMuPDF-based document source: page text, positioned spans, and page labels."""

import logging
from collections.abc import Iterator
from pathlib import Path

import fitz  # PyMuPDF

from book_indexer.backends.base import DocumentSource
from book_indexer.errors import ExtractionFailure
from book_indexer.models import PositionedFragment

log = logging.getLogger(__name__)


def _iter_spans(page: fitz.Page) -> Iterator[dict]:
    """Text spans of a page in extraction order."""
    blocks = page.get_text("dict", flags=fitz.TEXT_PRESERVE_WHITESPACE)["blocks"]
    for block in blocks:
        if "lines" not in block:
            continue
        for line in block["lines"]:
            yield from line["spans"]


class PyMuPDFSource(DocumentSource):
    """
    Reads a PDF with PyMuPDF.

    Fragment coordinates are span baseline origins flipped to PDF user space
    (y grows upward), so larger y means higher on the page.
    """

    def __init__(self, pdf_path: str | Path):
        self._path = Path(pdf_path)
        try:
            self._doc = fitz.open(self._path)
        except Exception as e:
            raise ExtractionFailure(None, e) from e
        log.debug("Opened %s (%d pages)", self._path.name, len(self._doc))

    @property
    def name(self) -> str:
        return "pymupdf"

    def _page(self, page: int) -> fitz.Page:
        if not 1 <= page <= len(self._doc):
            raise ExtractionFailure(page, f"page out of range (1-{len(self._doc)})")
        return self._doc[page - 1]

    def page_count(self) -> int:
        return len(self._doc)

    def page_text(self, page: int) -> str:
        return " ".join(span["text"] for span in _iter_spans(self._page(page)) if span.get("text"))

    def page_fragments(self, page: int) -> list[PositionedFragment]:
        p = self._page(page)
        height = p.rect.height
        fragments: list[PositionedFragment] = []
        for span in _iter_spans(p):
            text = span.get("text", "")
            if not text:
                continue
            x, y = span.get("origin", span["bbox"][:2])
            fragments.append(PositionedFragment(text=text, x=x, y=height - y))
        return fragments

    def page_labels(self) -> list[str | None] | None:
        if not self._doc.get_page_labels():
            return None
        return [page.get_label() or None for page in self._doc]

    def close(self) -> None:
        self._doc.close()
