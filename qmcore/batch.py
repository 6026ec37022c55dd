"""Small string and list helpers."""

from __future__ import annotations

import bisect
import math
import re
from collections.abc import Iterable, MutableSequence
from typing import Any

_INT_RE = re.compile(r"\s*[+-]?\d+\s*", re.ASCII)
_DOUBLE_RE = re.compile(
    r"\s*[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|infinity|nan)\s*",
    re.ASCII | re.IGNORECASE,
)
_SUFFIX_RE = re.compile(r"\s*\(\s*([+-]?\d+)", re.ASCII)

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


def str_unescape(s: str) -> str:
    """Drop each backslash and keep the character after it literally.

    A trailing lone backslash ends the string.
    """
    out: list[str] = []
    chars = iter(s)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, None)
            if nxt is None:
                break
            out.append(nxt)
        else:
            out.append(ch)
    return "".join(out)


def str_remove_side_quote(token: str, unescape: bool = False) -> str:
    """Strip one pair of enclosing double quotes, optionally unescaping the inside."""
    if token and token[0] == '"' and token[-1] == '"':
        inner = token[1:-1]
        return str_unescape(inner) if unescape else inner
    return token


def str_remove_side_paren(token: str) -> str:
    """Strip one pair of enclosing parentheses."""
    if token and token[0] == "(" and token[-1] == ")":
        return token[1:-1]
    return token


def str_list_to_int_list(items: Iterable[str]) -> list[int]:
    """Convert strings to 32-bit integers; any invalid element yields an empty list."""
    result: list[int] = []
    for item in items:
        if not _INT_RE.fullmatch(item):
            return []
        num = int(item)
        if not _INT_MIN <= num <= _INT_MAX:
            return []
        result.append(num)
    return result


def str_list_to_double_list(items: Iterable[str]) -> list[float]:
    """Convert strings to numbers truncated toward zero; any invalid element yields []."""
    result: list[float] = []
    for item in items:
        if not _DOUBLE_RE.fullmatch(item):
            return []
        num = float(item)
        result.append(float(math.trunc(num)) if math.isfinite(num) else num)
    return result


def json_array_to_str_list(arr: Iterable[Any], consider_num: bool = False) -> list[str]:
    """Collect the strings of a JSON array, and its numbers too if asked."""
    result: list[str] = []
    for item in arr:
        if isinstance(item, str):
            result.append(item)
        elif consider_num and isinstance(item, (int, float)) and not isinstance(item, bool):
            result.append(format(float(item), ".6g"))
    return result


def str_is_number(s: str, consider_dot: bool, consider_neg: bool) -> bool:
    """Whether every character is an ASCII digit (or an allowed dot or minus)."""
    allowed = set("0123456789")
    if consider_dot:
        allowed.add(".")
    if consider_neg:
        allowed.add("-")
    return all(ch in allowed for ch in s)


def str_prefixed_with(a: str, b: str) -> bool:
    """Whether ``a`` starts with ``b`` and is longer than it."""
    return a.startswith(b) and a != b


def adjust_repeated_name(names: Iterable[str] | set[str], name: str) -> str:
    """Return ``name``, or ``name (N)`` with the first free N if it is taken."""
    taken = names if isinstance(names, (set, frozenset)) else set(names)
    if name not in taken:
        return name

    body, num = name, 0
    index = name.rfind(" (")
    if index >= 0:
        suffix = name[index:]
        match = _SUFFIX_RE.match(suffix)
        if match:
            rest = suffix[match.end():]
            if not (rest.startswith(")") and len(rest) > 1):
                body = name[:index]
                num = int(match.group(1))

    while True:
        num += 1
        candidate = f"{body} ({num})"
        if candidate not in taken:
            return candidate


def array_move_elements(arr: MutableSequence[Any], index: int, count: int, dest: int) -> None:
    """Move ``count`` elements starting at ``index`` so they sit before position ``dest``.

    ``dest`` is given in terms of the original sequence; moves that would
    leave the block where it is are ignored.
    """
    size = len(arr)
    count = min(count, size - index)
    if index < 0 or count <= 0 or count > size or index <= dest <= index + count:
        return
    block = list(arr[index:index + count])
    del arr[index:index + count]
    target = dest - count if dest > index else dest
    arr[target:target] = block


def array_insert_sort(arr: MutableSequence[Any]) -> None:
    """Sort ``arr`` in place, stably, comparing with ``<`` only."""
    ordered: list[Any] = []
    for item in arr:
        bisect.insort_right(ordered, item)
    arr[:] = ordered