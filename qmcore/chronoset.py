"""A set that remembers where each element was placed and can insert anywhere."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable, Iterable, Iterator, MutableSet
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)


class ChronoSet(MutableSet, Generic[K]):
    """Hash set whose iteration order is the order of placement.

    Elements go to the end with ``append``, to the front with ``prepend`` or
    in front of an existing element with ``insert_before``.  Adding an element
    that is already present never moves it.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, items: Iterable[K] | None = None) -> None:
        self._data: OrderedDict[K, None] = OrderedDict()
        for item in items or ():
            self.append(item)

    def append(self, key: K) -> bool:
        """Add ``key`` at the end; return False if it was already present."""
        if key in self._data:
            return False
        self._data[key] = None
        return True

    def prepend(self, key: K) -> bool:
        """Add ``key`` at the front; return False if it was already present."""
        if key in self._data:
            return False
        self._data[key] = None
        self._data.move_to_end(key, last=False)
        return True

    def insert_before(self, before: K | None, key: K) -> bool:
        """Add ``key`` in front of ``before`` (at the end when ``before`` is None).

        Returns False if ``key`` was already present.  Raises KeyError if
        ``before`` is given but not in the set.
        """
        if key in self._data:
            return False
        if before is None:
            self._data[key] = None
            return True
        if before not in self._data:
            raise KeyError(before)
        keys = list(self._data)
        tail = keys[keys.index(before):]
        self._data[key] = None
        for moved in tail:
            self._data.move_to_end(moved)
        return True

    def remove(self, key: K) -> bool:  # type: ignore[override]
        """Remove ``key``; return whether it was present."""
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def values(self) -> list[K]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()

    def copy(self) -> ChronoSet[K]:
        return ChronoSet(self._data)

    def add(self, value: K) -> None:
        self.append(value)

    def discard(self, value: K) -> None:
        self.remove(value)

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __reversed__(self) -> Iterator[K]:
        return reversed(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChronoSet):
            return NotImplemented
        return list(self._data) == list(other._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._data)!r})"