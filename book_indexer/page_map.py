"""Physical page -> logical (printed) page translation built from declared page labels."""

import re
from collections.abc import Sequence

_NUMERIC_LABEL_RE = re.compile(r"^\s*(\d{1,6})\s*$")


class PageMap:
    """
    Total function physical page (1-based) -> book page or None.

    Built once from page labels. Labels that are not plain numbers (roman front
    matter, "A-1", ...) leave their page unmapped. Without labels every page is
    unmapped; there is no offset guessing.
    """

    def __init__(self, book_pages: dict[int, int] | None = None):
        self._book_pages = dict(book_pages or {})

    @classmethod
    def empty(cls) -> "PageMap":
        return cls()

    @classmethod
    def from_labels(cls, labels: Sequence[str | None] | None, page_count: int) -> "PageMap":
        if not labels:
            return cls()
        mapping: dict[int, int] = {}
        for physical in range(1, min(page_count, len(labels)) + 1):
            label = labels[physical - 1]
            if not label:
                continue
            m = _NUMERIC_LABEL_RE.match(str(label))
            if m and int(m.group(1)) > 0:
                mapping[physical] = int(m.group(1))
        return cls(mapping)

    def book_page(self, physical: int) -> int | None:
        return self._book_pages.get(physical)

    def __len__(self) -> int:
        return len(self._book_pages)

    def mapped_bounds(self) -> tuple[tuple[int, int], tuple[int, int]] | None:
        """First and last mapped (physical, book) pairs, or None if nothing is mapped."""
        if not self._book_pages:
            return None
        first = min(self._book_pages)
        last = max(self._book_pages)
        return (first, self._book_pages[first]), (last, self._book_pages[last])
