"""Expansion of ``${NAME}`` variables inside strings."""

from __future__ import annotations

import os
import re
import sys
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from qmcore.system import app_data_path

DEFAULT_PATTERN = r"\w+"


def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(r"(?<!\$)(?:\$\$)*\$\{(" + pattern + r")\}", re.ASCII)


def evaluate(s: str, variables: Mapping[str, str], pattern: str = "") -> str:
    """Expand ``${NAME}`` references in ``s`` using ``variables``.

    Names are matched by ``pattern`` (``\\w+`` when empty).  Unknown names
    expand to the name itself.  Expansion repeats until nothing is left to
    expand, then every ``$$`` becomes ``$``.
    """
    regex = _compile(pattern or DEFAULT_PATTERN)

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        return variables.get(name, name)

    while True:
        s, count = regex.subn(substitute, s)
        if not count:
            break
    return s.replace("$$", "$")


def _home() -> str:
    return os.path.expanduser("~").replace("\\", "/")


def _applications_dir() -> str:
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or os.path.join(_home(), "AppData", "Roaming")
        return os.path.join(base, "Microsoft", "Windows", "Start Menu", "Programs").replace(
            "\\", "/"
        )
    if sys.platform == "darwin":
        return "/Applications"
    data_home = os.environ.get("XDG_DATA_HOME") or os.path.join(_home(), ".local", "share")
    return os.path.join(data_home, "applications")


def _root_dir() -> str:
    if sys.platform.startswith("win"):
        drive = os.path.splitdrive(os.path.abspath(os.sep))[0] or "C:"
        return drive + "/"
    return "/"


def system_values(
    application_name: str | None = None,
    organization_name: str = "",
    application_dir: str | None = None,
) -> dict[str, str]:
    """Return common system locations and application facts as variables.

    Keys: DESKTOP, DOCUMENTS, APPLICATIONS, HOME, APPDATA, TEMP, ROOT,
    APPPATH and APPNAME.
    """
    program = os.path.abspath(sys.argv[0]) if sys.argv and sys.argv[0] else os.getcwd()
    if application_name is None:
        application_name = os.path.splitext(os.path.basename(program))[0]
    if application_dir is None:
        application_dir = os.path.dirname(program)
    home = _home()
    return {
        "DESKTOP": home + "/Desktop",
        "DOCUMENTS": home + "/Documents",
        "APPLICATIONS": _applications_dir(),
        "HOME": home,
        "APPDATA": app_data_path(application_name, organization_name),
        "TEMP": tempfile.gettempdir().replace("\\", "/"),
        "ROOT": _root_dir(),
        "APPPATH": application_dir.replace("\\", "/"),
        "APPNAME": application_name,
    }


@dataclass
class SimpleVarExp:
    """A variable table together with the pattern that names variables."""

    pattern: str = DEFAULT_PATTERN
    variables: dict[str, str] = field(default_factory=dict)

    def add_mapping(self, mapping: Mapping[str, Any]) -> None:
        """Add the string-valued entries of ``mapping``; other values are skipped."""
        self.variables.update(
            (key, value) for key, value in mapping.items() if isinstance(value, str)
        )

    def add(self, key: str, value: str) -> None:
        """Set one variable."""
        self.variables[key] = value

    def clear(self) -> None:
        """Forget every variable."""
        self.variables.clear()

    def parse(self, exp: str) -> str:
        """Expand ``exp`` with this table and pattern."""
        return evaluate(exp, self.variables, self.pattern)