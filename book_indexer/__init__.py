"""
Book Indexer: back-of-book index generation from a PDF's table of contents and text.

Use as a library:

    from book_indexer import build_index_from_pdf, render_index
    result = build_index_from_pdf("path/to/book.pdf", toc_header="차례")
    print(render_index(result.lines))

Or run the CLI:

    book-indexer build path/to/book.pdf -o index.txt
"""

from book_indexer.api import build_index, build_index_from_pdf
from book_indexer.errors import ConfigurationError, ExtractionFailure, NotFoundError
from book_indexer.models import IndexConfig, IndexLine, IndexResult
from book_indexer.output import render_index

__all__ = [
    "build_index",
    "build_index_from_pdf",
    "render_index",
    "IndexConfig",
    "IndexLine",
    "IndexResult",
    "ConfigurationError",
    "ExtractionFailure",
    "NotFoundError",
]
