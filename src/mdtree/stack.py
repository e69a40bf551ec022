"""Open-item stack used while assembling one section.

Only bleeding constructs are pushed: subsections and extended fields. Each
closer form maps onto one resolution function:

- ``close_top``           ``<!-- / -->``
- ``drop_to_subsection``  ``<!-- /sub -->``
- ``close_matching``      ``<!-- /sub:NAME -->`` and ``<!-- /NAME -->``

Resolutions report which items were closed at the closer and which were only
removed from the stack. Dropped items keep bleeding.

The stack itself is unbounded. Sibling extended fields that were never closed
stay on it until the section ends, so the depth cap is checked against the
resolved line ranges instead (see ``sections.check_nesting``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, NamedTuple, Optional


class OpenKind(str, Enum):
    SUBSECTION = "subsection"
    FIELD = "field"


@dataclass
class OpenItem:
    kind: OpenKind
    name: str
    line: int
    target: Any = field(default=None, repr=False)
    position: int = -1


class Resolution(NamedTuple):
    closed: List[OpenItem]
    dropped: List[OpenItem]

    @property
    def matched(self) -> bool:
        return bool(self.closed or self.dropped)


NO_MATCH = Resolution([], [])


class OpenItemStack:
    def __init__(self):
        self._items: List[OpenItem] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def push(self, item: OpenItem) -> None:
        item.position = len(self._items)
        self._items.append(item)

    def top(self) -> Optional[OpenItem]:
        return self._items[-1] if self._items else None

    def current_subsection(self) -> Optional[OpenItem]:
        return self._find(OpenKind.SUBSECTION)

    def close_top(self) -> Resolution:
        """Universal closer: close the top entry whatever it is."""
        if not self._items:
            return NO_MATCH
        return Resolution([self._items.pop()], [])

    def drop_to_subsection(self) -> Resolution:
        """Close the nearest subsection; entries above it leave the stack unclosed."""
        item = self._find(OpenKind.SUBSECTION)
        if item is None:
            return NO_MATCH
        above = self._items[item.position + 1 :]
        del self._items[item.position :]
        return Resolution([item], above)

    def close_matching(self, kind: OpenKind, name: str) -> Resolution:
        """Close the nearest entry of ``kind`` named ``name`` and everything opened after it."""
        item = self._find(kind, name)
        if item is None:
            return NO_MATCH
        closed = self._items[item.position :]
        del self._items[item.position :]
        return Resolution(closed, [])

    def flush(self) -> Resolution:
        """Close everything, as a section boundary does."""
        closed = list(self._items)
        self._items.clear()
        return Resolution(closed, [])

    def _find(self, kind: OpenKind, name: str = None) -> Optional[OpenItem]:
        for item in reversed(self._items):
            if item.kind is kind and (name is None or item.name == name):
                return item
        return None
