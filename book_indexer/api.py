"""
Public API: build a back-of-book index from code.

    from book_indexer import build_index_from_pdf
    result = build_index_from_pdf("book.pdf", toc_header="Contents")
    print(render_index(result.lines))
"""

from pathlib import Path
from typing import Any

from book_indexer.backends import get_backend
from book_indexer.backends.base import DocumentSource
from book_indexer.config import make_index_config
from book_indexer.errors import NotFoundError
from book_indexer.models import IndexConfig, IndexResult
from book_indexer.pipeline import run_pipeline


def _resolve_config(config: IndexConfig | None, options: dict[str, Any]) -> IndexConfig:
    if config is None:
        return make_index_config(options)
    if options:
        return make_index_config({**config.model_dump(), **options})
    return config


def build_index(
    source: DocumentSource,
    config: IndexConfig | None = None,
    **options: Any,
) -> IndexResult:
    """
    Build the index for an already opened document source.

    Args:
        source: Document source (page text, fragments, labels).
        config: Full configuration; keyword options override its fields.
        **options: IndexConfig fields (toc_header, toc_start_page, ...).

    Returns:
        IndexResult. When the TOC cannot be found or parsed, success is False and
        message holds the guidance.

    Raises:
        ConfigurationError: invalid options or manual TOC range.
        ExtractionFailure: the source failed to read a page.
    """
    cfg = _resolve_config(config, options)
    try:
        return run_pipeline(source, cfg)
    except NotFoundError as e:
        return IndexResult(success=False, message=str(e), diagnostics=e.diagnostics)


def build_index_from_pdf(
    pdf_path: str | Path,
    *,
    backend: str = "pymupdf",
    config: IndexConfig | None = None,
    **options: Any,
) -> IndexResult:
    """Open the PDF with the named backend and build its index (library entry point)."""
    cfg = _resolve_config(config, options)
    backend_cls = get_backend(backend)
    with backend_cls(Path(pdf_path)) as source:
        return build_index(source, cfg)
