"""Per-run state shared by the pipeline stages: config, source, caches, and diagnostics."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from book_indexer.backends.base import DocumentSource
from book_indexer.errors import BookIndexerError, ExtractionFailure
from book_indexer.models import IndexConfig, PositionedFragment
from book_indexer.page_map import PageMap

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RunContext:
    """
    Everything one indexing run owns. Stages read the config and source from here,
    share the page-text cache, and record diagnostics with note() instead of
    writing to a global log sink.
    """

    source: DocumentSource
    config: IndexConfig
    page_count: int
    page_map: PageMap = field(default_factory=PageMap.empty)
    diagnostics: list[str] = field(default_factory=list)
    _texts: dict[int, str] = field(default_factory=dict, repr=False)

    @classmethod
    def open(cls, source: DocumentSource, config: IndexConfig) -> "RunContext":
        """Create a context, capping the page count at config.max_pages."""
        total = _fetch(None, source.page_count)
        ctx = cls(source=source, config=config, page_count=min(total, config.max_pages))
        ctx.note("Document loaded: %d pages (scanning %d)", total, ctx.page_count)
        return ctx

    def note(self, msg: str, *args) -> None:
        """Log at INFO and keep the message for IndexResult.diagnostics."""
        log.info(msg, *args)
        self.diagnostics.append(msg % args if args else msg)

    def page_text(self, page: int) -> str:
        if page not in self._texts:
            self._texts[page] = _fetch(page, self.source.page_text, page) or ""
        return self._texts[page]

    def page_fragments(self, page: int) -> list[PositionedFragment]:
        return _fetch(page, self.source.page_fragments, page)

    def page_labels(self) -> list[str | None] | None:
        return _fetch(None, self.source.page_labels)

    def book_page(self, physical: int) -> int | None:
        return self.page_map.book_page(physical)


def _fetch(page: int | None, fn: Callable[..., T], *args) -> T:
    """Call the source; anything it raises becomes an ExtractionFailure."""
    try:
        return fn(*args)
    except BookIndexerError:
        raise
    except Exception as e:
        raise ExtractionFailure(page, e) from e
