"""A string that may be produced by a translation callback."""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum
from typing import Any, Union


class TranslatePolicy(IntEnum):
    """Where the text of a DisplayString comes from."""

    IGNORED = 0
    ALWAYS = 1
    ALWAYS_EX = 3


GetText = Callable[[], str]
GetTextEx = Callable[["DisplayString"], str]
Source = Union[str, GetText, GetTextEx, None]


class DisplayString:
    """Text that is either plain or recomputed on every read by a callback.

    A plain ``str`` (or None) gives a fixed string.  A callable taking no
    arguments is called each time the text is read; with ``extended=True``
    the callable receives the DisplayString itself, so it can consult the
    properties.
    """

    def __init__(self, source: Source = None, *, extended: bool = False) -> None:
        self._properties: dict[str, Any] = {}
        self._policy = TranslatePolicy.IGNORED
        self._source: Any = ""
        if callable(source):
            if extended:
                self.set_translate_callback_ex(source)
            else:
                self.set_translate_callback(source)
        else:
            self.set_plain_string(source or "")

    def text(self) -> str:
        """Return the plain string or the callback's current result."""
        if self._policy is TranslatePolicy.ALWAYS:
            return self._source()
        if self._policy is TranslatePolicy.ALWAYS_EX:
            return self._source(self)
        return self._source

    def translate_policy(self) -> TranslatePolicy:
        return self._policy

    def set_translate_callback(self, func: GetText | None) -> None:
        """Use a callback without arguments; None makes the string plain and empty."""
        if func is None:
            self.set_plain_string("")
            return
        self._policy = TranslatePolicy.ALWAYS
        self._source = func

    def set_translate_callback_ex(self, func: GetTextEx | None) -> None:
        """Use a callback that receives this object; None makes it plain and empty."""
        if func is None:
            self.set_plain_string("")
            return
        self._policy = TranslatePolicy.ALWAYS_EX
        self._source = func

    def set_plain_string(self, s: str) -> None:
        """Use a fixed string."""
        self._policy = TranslatePolicy.IGNORED
        self._source = s

    def property(self, key: str) -> Any:
        """Return the property ``key`` or None."""
        return self._properties.get(key)

    def set_property(self, key: str, value: Any) -> None:
        """Set the property ``key``; a value of None removes it."""
        if value is None:
            self._properties.pop(key, None)
        else:
            self._properties[key] = value

    def property_map(self) -> dict[str, Any]:
        """Return a copy of all properties."""
        return dict(self._properties)

    def copy(self) -> DisplayString:
        """Return an independent copy with the same source and properties."""
        other = DisplayString()
        other._policy = self._policy
        other._source = self._source
        other._properties = dict(self._properties)
        return other

    def __str__(self) -> str:
        return self.text()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.text()!r}, policy={self._policy.name})"