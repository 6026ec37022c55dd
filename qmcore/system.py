"""Filesystem and operating-system helpers."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from datetime import datetime


def _is_windows() -> bool:
    return sys.platform.startswith("win")


def _is_mac() -> bool:
    return sys.platform == "darwin"


def is_path_relative(path: str) -> bool:
    """Whether ``path`` is relative."""
    return not os.path.isabs(path)


def is_path_exist(path: str) -> bool:
    """Whether ``path`` is absolute and exists."""
    return not is_path_relative(path) and os.path.exists(path)


def is_file_exist(path: str) -> bool:
    """Whether ``path`` is absolute and is a file."""
    return not is_path_relative(path) and os.path.isfile(path)


def is_dir_exist(path: str) -> bool:
    """Whether ``path`` is absolute and is a directory."""
    return not is_path_relative(path) and os.path.isdir(path)


def _canonical(path: str) -> str:
    return os.path.realpath(path) if path and os.path.exists(path) else ""


def is_same_path(path1: str, path2: str) -> bool:
    """Whether both paths have the same canonical form (missing paths have none)."""
    return _canonical(path1) == _canonical(path2)


def path_find_suffix(path: str) -> str:
    """Return the text after the last dot of the file name."""
    name = os.path.basename(path)
    dot = name.rfind(".")
    return name[dot + 1:] if dot >= 0 else ""


def path_find_dir_path(path: str) -> str:
    """Return the absolute path of the directory holding ``path``."""
    return os.path.dirname(os.path.abspath(path)).replace("\\", "/") if _is_windows() else \
        os.path.dirname(os.path.abspath(path))


def path_find_file_name(path: str) -> str:
    """Return the file name, or ``path`` itself if it is the filesystem root."""
    absolute = os.path.abspath(path) if path else ""
    if absolute and os.path.dirname(absolute) == absolute:
        return path
    return os.path.basename(path)


def path_find_next_dir(path: str, dir: str) -> str:
    """Return the component of ``path`` that comes right after ``dir``."""
    if not path.startswith(dir):
        return ""
    suffix = path[len(dir):]
    if suffix.startswith("/"):
        suffix = suffix[1:]
    head, _, _ = suffix.partition("/")
    return head


def path_get_modify_time(path: str) -> datetime | None:
    """Return the local modification time, or None if ``path`` does not exist."""
    try:
        return datetime.fromtimestamp(os.path.getmtime(path))
    except OSError:
        return None


def mk_dir(dirname: str) -> bool:
    """Make sure the directory exists, creating parents as needed."""
    if is_dir_exist(dirname):
        return True
    try:
        os.makedirs(dirname, exist_ok=True)
    except OSError:
        return False
    return True


def rm_dir(dirname: str) -> bool:
    """Remove a directory recursively; False if it is missing or removal fails."""
    if not is_dir_exist(dirname):
        return False
    try:
        shutil.rmtree(dirname)
    except OSError:
        return False
    return True


def rm_file(filename: str) -> bool:
    """Remove a file; return whether it succeeded."""
    try:
        os.remove(filename)
    except OSError:
        return False
    return True


def copy(file_name: str, new_name: str) -> bool:
    """Copy a file, overwriting the destination."""
    if os.path.lexists(new_name) and not rm_file(new_name):
        return False
    try:
        shutil.copyfile(file_name, new_name)
    except OSError:
        return False
    return True


def combine(file_name1: str, file_name2: str, new_name: str) -> bool:
    """Write the bytes of two files one after the other into a new file."""
    try:
        with open(file_name1, "rb") as f1, open(file_name2, "rb") as f2:
            first = f1.read()
            second = f2.read()
            with open(new_name, "wb") as out:
                out.write(first)
                out.write(second)
    except OSError:
        return False
    return True


def _start_detached(args: list[str]) -> None:
    subprocess.Popen(
        args,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def reveal(filename: str) -> None:
    """Show a file or directory in the system file manager."""
    is_file = os.path.isfile(filename)
    is_dir = os.path.isdir(filename)
    if _is_windows():
        native = filename.replace("/", "\\")
        if is_file:
            _start_detached(["explorer.exe", "/e,", "/select,", native])
        elif is_dir:
            _start_detached(["explorer.exe", "/e,", "/root,", native])
    elif _is_mac():
        if is_dir:
            dirname = filename if filename.endswith("/") else filename + "/"
            _start_detached(["open", dirname])
        elif is_file:
            script = f'tell application "Finder" to reveal POSIX file "{filename}"'
            subprocess.run(["/usr/bin/osascript", "-e", script], check=False)
            subprocess.run(
                ["/usr/bin/osascript", "-e", 'tell application "Finder" to activate'],
                check=False,
            )
    else:
        if is_dir:
            _start_detached(["xdg-open", filename])
        elif is_file:
            _start_detached(["xdg-open", os.path.dirname(os.path.abspath(filename))])


def _files_in(dirname: str) -> list[os.DirEntry]:
    with os.scandir(dirname) as entries:
        files = [e for e in entries if e.is_file()]
    files.sort(key=lambda e: e.name.lower())
    return files


def rm_pre_str(dirname: str, prefix: str) -> int:
    """Remove files whose name starts with ``prefix`` (all files if empty); return the count."""
    if not is_dir_exist(dirname):
        return 0
    return sum(
        1
        for entry in reversed(_files_in(dirname))
        if (not prefix or entry.name.startswith(prefix)) and rm_file(entry.path)
    )


def rm_pre_num(dirname: str, prefix: int) -> int:
    """Remove files whose name starts with the number ``prefix`` not followed by a digit."""
    if not is_dir_exist(dirname):
        return 0
    num = str(prefix)

    def matches(name: str) -> bool:
        return name.startswith(num) and (len(name) == len(num) or not name[len(num)].isnumeric())

    return sum(
        1 for entry in reversed(_files_in(dirname)) if matches(entry.name) and rm_file(entry.path)
    )


def remove_tail_slashes(dirname: str) -> str:
    """Strip trailing forward and back slashes."""
    return dirname.rstrip("/\\")


def app_data_path(application_name: str = "", organization_name: str = "") -> str:
    """Return the per-user configuration root.

    On Windows this is the roaming AppData folder, on macOS ``~/.config``,
    elsewhere ``$XDG_CONFIG_HOME`` or ``~/.config``.  A trailing application
    or organization directory is stripped.
    """
    home = os.path.expanduser("~")
    if _is_windows():
        path = os.environ.get("APPDATA") or os.path.join(home, "AppData", "Roaming")
    elif _is_mac():
        path = os.path.join(home, ".config")
    else:
        path = os.environ.get("XDG_CONFIG_HOME") or os.path.join(home, ".config")
    path = path.replace("\\", "/")
    for name in (application_name, organization_name):
        if name and path.endswith("/" + name):
            path = path[: -(len(name) + 1)]
    return path


def unit_dpi() -> int:
    """Return the system unit DPI: 72 on macOS, 96 elsewhere."""
    return 72 if _is_mac() else 96


def is_user_root() -> bool:
    """Whether the process runs with administrator or root privilege."""
    geteuid = getattr(os, "geteuid", None)
    if geteuid is not None:
        return geteuid() == 0
    try:
        result = subprocess.run(
            ["net", "session"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0