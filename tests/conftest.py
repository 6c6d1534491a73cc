"""Shared fixtures."""

import pytest

from book_indexer.context import RunContext
from book_indexer.models import IndexConfig

from fakes import FakeSource, make_book


@pytest.fixture
def book_source() -> FakeSource:
    pages, labels = make_book()
    return FakeSource(pages, labels)


@pytest.fixture
def make_ctx():
    def _make(source, **options) -> RunContext:
        return RunContext.open(source, IndexConfig(**options))

    return _make
