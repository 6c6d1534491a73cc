"""Exceptions raised by the indexing pipeline."""


class BookIndexerError(Exception):
    """Base class for book-indexer errors."""


class ConfigurationError(BookIndexerError):
    """Invalid configuration (manual TOC range, option values, config file keys). Raised before extraction."""


class NotFoundError(BookIndexerError):
    """The TOC could not be located or parsed. Recoverable: the message tells the user what to change."""

    def __init__(self, message: str, diagnostics: list[str] | None = None):
        super().__init__(message)
        self.diagnostics = list(diagnostics or [])


class ExtractionFailure(BookIndexerError):
    """The document source failed while reading a page. Terminal for the whole run."""

    def __init__(self, page: int | None, cause: BaseException | str):
        self.page = page
        self.cause = cause
        where = f"page {page}" if page is not None else "document"
        super().__init__(f"Extraction failed on {where}: {cause}")
