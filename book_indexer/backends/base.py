"""Abstract interface for document sources (page text, fragments, labels)."""

from abc import ABC, abstractmethod

from book_indexer.models import PositionedFragment


class DocumentSource(ABC):
    """Interface that each document backend must implement. Pages are 1-based physical pages."""

    @abstractmethod
    def page_count(self) -> int:
        """Total number of physical pages."""
        ...

    @abstractmethod
    def page_text(self, page: int) -> str:
        """
        All text fragments of the page joined with single spaces, in extraction order.
        Used for substring matching; layout need not be preserved.
        """
        ...

    @abstractmethod
    def page_fragments(self, page: int) -> list[PositionedFragment]:
        """Layout-preserving fragments with their origin (y grows upward)."""
        ...

    @abstractmethod
    def page_labels(self) -> list[str | None] | None:
        """
        Declared page labels, one per physical page (index 0 = page 1),
        or None when the document declares no labels.
        """
        ...

    def close(self) -> None:
        """Release the underlying document. Default: nothing to release."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier (e.g. 'pymupdf')."""
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
