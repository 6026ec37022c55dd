"""A mapping that remembers where each key was placed and can insert anywhere."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable, Iterable, Iterator, Mapping, MutableMapping
from typing import Any, Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ChronoMap(MutableMapping, Generic[K, V]):
    """Hash map whose iteration order is the order of placement.

    Keys go to the end with ``append``, to the front with ``prepend`` or in
    front of an existing key with ``insert_before``.  Re-adding an existing
    key never moves it; it only replaces its value when asked to.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, items: Mapping[K, V] | Iterable[tuple[K, V]] | None = None) -> None:
        self._data: OrderedDict[K, V] = OrderedDict()
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for key, value in pairs:
            self.append(key, value)

    def _try_replace(self, key: K, value: V, replace: bool) -> bool:
        if key in self._data:
            if replace:
                self._data[key] = value
            return True
        return False

    def append(self, key: K, value: V, replace: bool = True) -> bool:
        """Add ``key`` at the end; return False if it was already present."""
        if self._try_replace(key, value, replace):
            return False
        self._data[key] = value
        return True

    def prepend(self, key: K, value: V, replace: bool = True) -> bool:
        """Add ``key`` at the front; return False if it was already present."""
        if self._try_replace(key, value, replace):
            return False
        self._data[key] = value
        self._data.move_to_end(key, last=False)
        return True

    def insert_before(self, before: K | None, key: K, value: V, replace: bool = True) -> bool:
        """Add ``key`` in front of ``before`` (at the end when ``before`` is None).

        Returns False if ``key`` was already present.  Raises KeyError if
        ``before`` is given but not in the map.
        """
        if self._try_replace(key, value, replace):
            return False
        if before is None:
            self._data[key] = value
            return True
        if before not in self._data:
            raise KeyError(before)
        keys = list(self._data)
        tail = keys[keys.index(before):]
        self._data[key] = value
        for moved in tail:
            self._data.move_to_end(moved)
        return True

    def remove(self, key: K) -> bool:
        """Remove ``key``; return whether it was present."""
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def value(self, key: K, default: Any = None) -> Any:
        """Return the value of ``key`` or ``default`` when it is absent."""
        return self._data.get(key, default)

    def keys(self) -> list[K]:  # type: ignore[override]
        return list(self._data.keys())

    def values(self) -> list[V]:  # type: ignore[override]
        return list(self._data.values())

    def items(self) -> list[tuple[K, V]]:  # type: ignore[override]
        return list(self._data.items())

    def clear(self) -> None:
        self._data.clear()

    def copy(self) -> ChronoMap[K, V]:
        return ChronoMap(self._data.items())

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def __setitem__(self, key: K, value: V) -> None:
        self.append(key, value)

    def __delitem__(self, key: K) -> None:
        if not self.remove(key):
            raise KeyError(key)

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __reversed__(self) -> Iterator[K]:
        return reversed(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChronoMap):
            return NotImplemented
        return list(self._data.items()) == list(other._data.items())

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self._data.items())
        return f"{type(self).__name__}({{{body}}})"