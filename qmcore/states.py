"""Visual states of a button."""

from __future__ import annotations

from enum import IntEnum

_CHECKED_OFFSET = 4


class ButtonState(IntEnum):
    """State of a button, in an unchecked and a checked flavour."""

    NORMAL = 0
    HOVER = 1
    PRESSED = 2
    DISABLED = 3
    NORMAL_CHECKED = 4
    HOVER_CHECKED = 5
    PRESSED_CHECKED = 6
    DISABLED_CHECKED = 7

    def checked(self) -> ButtonState:
        """Return the checked flavour of this state."""
        if self.is_checked():
            return self
        return ButtonState(self.value + _CHECKED_OFFSET)

    def unchecked(self) -> ButtonState:
        """Return the unchecked flavour of this state."""
        if not self.is_checked():
            return self
        return ButtonState(self.value - _CHECKED_OFFSET)

    def is_checked(self) -> bool:
        """Whether this is one of the checked states."""
        return self.value >= _CHECKED_OFFSET