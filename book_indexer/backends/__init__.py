"""Document sources: each provides page text, positioned fragments, and page labels."""

from book_indexer.backends.base import DocumentSource
from book_indexer.backends.pymupdf_backend import PyMuPDFSource

__all__ = ["DocumentSource", "PyMuPDFSource", "get_backend"]

REGISTRY: dict[str, type[DocumentSource]] = {
    "pymupdf": PyMuPDFSource,
}


def get_backend(name: str) -> type[DocumentSource]:
    """Return backend class for the given name. Raises KeyError if unknown."""
    if name not in REGISTRY:
        raise KeyError(f"Unknown backend: {name}. Available: {list(REGISTRY)}")
    return REGISTRY[name]
