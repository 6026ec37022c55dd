"""Translation registry and locale notification."""

from __future__ import annotations

import bisect
import locale as _locale_module
import os
import re
import struct
import weakref
from collections.abc import Callable
from pathlib import Path
from typing import Any

_QM_MAGIC = bytes(
    [0x3C, 0xB8, 0x64, 0x18, 0xCA, 0xEF, 0x9C, 0x95, 0xCD, 0x21, 0x1C, 0xBF, 0x60, 0xA1, 0xBD, 0xDD]
)

# Section tags of a .qm file
_SECTION_CONTEXTS = 0x2F
_SECTION_HASHES = 0x42
_SECTION_MESSAGES = 0x69
_SECTION_NUMERUS_RULES = 0x88
_SECTION_DEPENDENCIES = 0x96
_SECTION_LANGUAGE = 0xA7

# Record tags inside the message section
_TAG_END = 1
_TAG_TRANSLATION = 3
_TAG_OBSOLETE1 = 5
_TAG_SOURCE_TEXT = 6
_TAG_CONTEXT = 7
_TAG_COMMENT = 8

# Numerus rule opcodes
_EQ = 0x01
_LT = 0x02
_LEQ = 0x03
_BETWEEN = 0x04
_OP_MASK = 0x07
_NOT = 0x08
_MOD_10 = 0x10
_MOD_100 = 0x20
_LEAD_1000 = 0x40
_AND = 0xFD
_OR = 0xFE

_NULL_LENGTH = 0xFFFFFFFF

_U32 = struct.Struct(">I")


def _elf_hash(*parts: bytes) -> int:
    h = 0
    for part in parts:
        for byte in part:
            if byte == 0:
                break
            h = ((h << 4) + byte) & 0xFFFFFFFF
            g = h & 0xF0000000
            if g:
                h ^= g >> 24
            h &= ~g & 0xFFFFFFFF
    return h or 1


def _numerus_form(n: int, rules: bytes) -> int:
    """Evaluate compiled plural rules and return the index of the form for ``n``."""
    if not rules:
        return 0
    size = len(rules)
    result = 0
    i = 0
    try:
        while True:
            or_value = False
            while True:
                and_value = True
                while True:
                    opcode = rules[i]
                    i += 1
                    left = n
                    if opcode & _MOD_10:
                        left %= 10
                    elif opcode & _MOD_100:
                        left %= 100
                    elif opcode & _LEAD_1000:
                        while left >= 1000:
                            left //= 1000
                    op = opcode & _OP_MASK
                    right = rules[i]
                    i += 1
                    if op == _EQ:
                        truth = left == right
                    elif op == _LT:
                        truth = left < right
                    elif op == _LEQ:
                        truth = left <= right
                    elif op == _BETWEEN:
                        top = rules[i]
                        i += 1
                        truth = right <= left <= top
                    else:
                        truth = True
                    if opcode & _NOT:
                        truth = not truth
                    and_value = and_value and truth
                    if i == size or rules[i] != _AND:
                        break
                    i += 1
                or_value = or_value or and_value
                if i == size or rules[i] != _OR:
                    break
                i += 1
            if or_value:
                return result
            result += 1
            if i == size:
                return result
            i += 1
    except IndexError:
        return -1


def _matches(found: bytes, target: bytes) -> bool:
    if found.endswith(b"\0"):
        found = found[:-1]
    return found == target


class QmTranslator:
    """Reader of compiled ``.qm`` translation catalogues."""

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.language = ""
        self.file_path: str | None = None
        self._messages = b""
        self._hashes: list[int] = []
        self._offsets: list[int] = []
        self._numerus_rules = b""
        self._dependencies: list[QmTranslator] = []

    @staticmethod
    def _locate(path: str) -> str | None:
        for candidate in (path + ".qm", path):
            if os.path.isfile(candidate):
                return candidate
        return None

    def load(self, path: str) -> bool:
        """Load a catalogue; ``.qm`` is appended to ``path`` when that file exists."""
        self._reset()
        if not path:
            return False
        file = self._locate(path)
        if file is None:
            return False
        try:
            data = Path(file).read_bytes()
        except OSError:
            return False
        if not self._parse(data, os.path.dirname(os.path.abspath(file))):
            self._reset()
            return False
        self.file_path = file
        return True

    def _parse(self, data: bytes, directory: str) -> bool:
        if not data.startswith(_QM_MAGIC):
            return False
        pos = len(_QM_MAGIC)
        end = len(data)
        dependencies = b""
        while pos + 5 <= end:
            tag = data[pos]
            (length,) = _U32.unpack_from(data, pos + 1)
            pos += 5
            if end - pos < length:
                return False
            block = data[pos:pos + length]
            pos += length
            if tag == _SECTION_HASHES:
                usable = len(block) - len(block) % 8
                pairs = list(struct.iter_unpack(">II", block[:usable]))
                self._hashes = [h for h, _ in pairs]
                self._offsets = [o for _, o in pairs]
            elif tag == _SECTION_MESSAGES:
                self._messages = block
            elif tag == _SECTION_NUMERUS_RULES:
                self._numerus_rules = block
            elif tag == _SECTION_DEPENDENCIES:
                dependencies = block
            elif tag == _SECTION_LANGUAGE:
                self.language = block.decode("utf-8", errors="replace")
            elif tag == _SECTION_CONTEXTS:
                pass
        return self._load_dependencies(dependencies, directory)

    def _load_dependencies(self, block: bytes, directory: str) -> bool:
        pos = 0
        while pos + 4 <= len(block):
            (length,) = _U32.unpack_from(block, pos)
            pos += 4
            if length == _NULL_LENGTH:
                continue
            name = block[pos:pos + length].decode("utf-16-be", errors="replace")
            pos += length
            if not os.path.isabs(name):
                name = os.path.join(directory, name)
            translator = QmTranslator()
            if not translator.load(name):
                return False
            self._dependencies.append(translator)
        return True

    def translate(
        self,
        context: str | None,
        source_text: str | None,
        disambiguation: str | None = None,
        n: int = -1,
    ) -> str | None:
        """Return the translation of ``source_text`` or None when there is none."""
        if source_text is None:
            return None
        ctx = (context or "").encode("utf-8")
        src = source_text.encode("utf-8")
        comment = (disambiguation or "").encode("utf-8")
        numerus = _numerus_form(n, self._numerus_rules) if n >= 0 else 0

        result = self._lookup(ctx, src, comment, numerus)
        if result is not None:
            return result
        for dependency in self._dependencies:
            result = dependency.translate(context, source_text, disambiguation, n)
            if result is not None:
                return result
        return None

    def _lookup(self, ctx: bytes, src: bytes, comment: bytes, numerus: int) -> str | None:
        comments = [comment, b""] if comment else [comment]
        for com in comments:
            h = _elf_hash(src, com)
            i = bisect.bisect_left(self._hashes, h)
            while i < len(self._hashes) and self._hashes[i] == h:
                found = self._message(self._offsets[i], ctx, src, com, numerus)
                if found is not None:
                    return found
                i += 1
        return None

    def _message(
        self, offset: int, ctx: bytes, src: bytes, comment: bytes, numerus: int
    ) -> str | None:
        data = self._messages
        end = len(data)
        pos = offset
        chosen: tuple[int, int] | None = None
        remaining = numerus
        while pos < end:
            tag = data[pos]
            pos += 1
            if tag == _TAG_END:
                break
            if tag == _TAG_OBSOLETE1:
                pos += 4
                continue
            if pos + 4 > end:
                return None
            (length,) = _U32.unpack_from(data, pos)
            pos += 4
            if tag == _TAG_TRANSLATION:
                if remaining == 0:
                    chosen = (pos, length)
                remaining -= 1
                if length != _NULL_LENGTH:
                    pos += length
            elif tag in (_TAG_SOURCE_TEXT, _TAG_CONTEXT, _TAG_COMMENT):
                expected = {_TAG_SOURCE_TEXT: src, _TAG_CONTEXT: ctx, _TAG_COMMENT: comment}[tag]
                if not _matches(data[pos:pos + length], expected):
                    return None
                pos += length
            else:
                return None
        if chosen is None or chosen[1] == _NULL_LENGTH:
            return None
        start, length = chosen
        raw = data[start:start + length]
        raw = raw[: len(raw) - len(raw) % 2]
        return raw.decode("utf-16-be", errors="replace")


_LIKELY_TERRITORY = {
    "af": "ZA", "ar": "EG", "bg": "BG", "bn": "BD", "ca": "ES", "cs": "CZ", "cy": "GB",
    "da": "DK", "de": "DE", "el": "GR", "en": "US", "es": "ES", "et": "EE", "eu": "ES",
    "fa": "IR", "fi": "FI", "fr": "FR", "ga": "IE", "gl": "ES", "he": "IL", "hi": "IN",
    "hr": "HR", "hu": "HU", "hy": "AM", "id": "ID", "is": "IS", "it": "IT", "ja": "JP",
    "ka": "GE", "kk": "KZ", "ko": "KR", "lt": "LT", "lv": "LV", "mn": "MN", "ms": "MY",
    "nb": "NO", "nl": "NL", "pl": "PL", "pt": "BR", "ro": "RO", "ru": "RU", "sk": "SK",
    "sl": "SI", "sq": "AL", "sr": "RS", "sv": "SE", "sw": "TZ", "ta": "IN", "te": "IN",
    "th": "TH", "tr": "TR", "uk": "UA", "ur": "PK", "vi": "VN", "zh": "CN",
}
_LANGUAGE_ALIASES = {"no": "nb", "iw": "he", "in": "id"}
_SCRIPT_TERRITORY = {("zh", "Hant"): "TW", ("zh", "Hans"): "CN"}


def _locale_name(code: str) -> str | None:
    """Normalize a locale code to ``language_TERRITORY``; None for unknown languages."""
    parts = [p for p in code.replace("-", "_").split("_") if p]
    if not parts:
        return None
    lang = parts[0].lower()
    lang = _LANGUAGE_ALIASES.get(lang, lang)
    if lang not in _LIKELY_TERRITORY:
        return None
    script: str | None = None
    territory: str | None = None
    for part in parts[1:]:
        if not part.isascii():
            continue
        if len(part) == 4 and part.isalpha() and script is None and territory is None:
            script = part.title()
        elif territory is None and (
            (len(part) == 2 and part.isalpha()) or (len(part) == 3 and part.isdigit())
        ):
            territory = part.upper()
    if territory is None:
        territory = _SCRIPT_TERRITORY.get((lang, script or ""), _LIKELY_TERRITORY[lang])
    return f"{lang}_{territory}"


def _system_locale() -> str:
    value = ""
    for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
        value = os.environ.get(var, "")
        if value:
            break
    if not value:
        value = _locale_module.getlocale()[0] or ""
    value = value.split(".", 1)[0].split("@", 1)[0]
    if value in ("", "C", "POSIX"):
        return "C"
    return _locale_name(value) or "C"


_FILE_NAME_RE = re.compile(r"(\w+?)_(\w{2})(_\w+|)")


def scan_translations(path: str) -> dict[str, list[str]]:
    """Find ``.qm`` files under ``path`` and group them by the locale in their names."""
    found: list[str] = []
    pending = [path]
    while pending:
        current = pending.pop(0)
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name.lower())
        except OSError:
            continue
        for entry in entries:
            if entry.is_file(follow_symlinks=False) and entry.name.rpartition(".")[2].lower() == "qm" \
                    and "." in entry.name:
                found.append(entry)
        for entry in entries:
            if entry.is_dir():
                pending.append(os.path.abspath(entry.path))

    result: dict[str, list[str]] = {}
    for entry in found:
        match = _FILE_NAME_RE.search(entry.name)
        if not match:
            continue
        name = _locale_name(match.group(2) + match.group(3))
        if name is None:
            continue
        result.setdefault(name, []).append(os.path.abspath(entry.path))
    return dict(sorted(result.items()))


def _install_translations(files: list[str]) -> list[QmTranslator]:
    translators = []
    for file in files:
        translator = QmTranslator()
        if translator.load(file):
            translators.append(translator)
    return translators


def _drop_subscriber(decorator_ref: weakref.ref, key: int) -> None:
    decorator = decorator_ref()
    if decorator is not None:
        decorator._forget_subscriber(key)


_instance_ref: weakref.ref | None = None


class CoreDecorator:
    """Keeps translation search paths, installed translators and locale subscribers."""

    def __init__(self, locale: str | None = None) -> None:
        global _instance_ref
        self._translation_paths: dict[str, None] = {}
        self._translators: list[QmTranslator] = []
        self._current_locale = locale if locale is not None else _system_locale()
        self._subscribers: dict[int, list[Callable[[], Any]]] = {}
        self._strong_owners: dict[int, Any] = {}
        self._finalizers: dict[int, weakref.finalize] = {}
        self._locale_changed: list[Callable[[str], Any]] = []
        self._qm_files_dirty = False
        self._qm_files: dict[str, list[str]] = {}
        _instance_ref = weakref.ref(self)

    @staticmethod
    def instance() -> CoreDecorator | None:
        """Return the most recently created decorator that is still alive."""
        return _instance_ref() if _instance_ref is not None else None

    def _insert_translation_files(self, mapping: dict[str, list[str]]) -> None:
        for name, files in mapping.items():
            if files:
                self._qm_files.setdefault(name, []).extend(files)

    def _scan_translations(self) -> None:
        self._qm_files.clear()
        for path in self._translation_paths:
            self._insert_translation_files(scan_translations(path))
        self._qm_files_dirty = False

    def _notify_subscribers(self) -> None:
        for updaters in list(self._subscribers.values()):
            for updater in list(updaters):
                updater()

    @staticmethod
    def _exists(path: str) -> bool:
        return bool(path) and os.path.exists(path)

    def add_translation_path(self, path: str) -> None:
        """Add a search directory; subscribers are notified at once if it adds translators."""
        if not self._exists(path) or path in self._translation_paths:
            return
        self._translation_paths[path] = None

        if self._qm_files_dirty:
            self.refresh_locale()
            return

        mapping = scan_translations(path)
        self._insert_translation_files(mapping)
        files = mapping.get(self._current_locale)
        if files is None:
            return
        self._translators.extend(_install_translations(files))
        self._notify_subscribers()

    def remove_translation_path(self, path: str) -> None:
        """Drop a search directory; call refresh_locale() to reload subscribers."""
        if not self._exists(path) or path not in self._translation_paths:
            return
        del self._translation_paths[path]
        self._qm_files_dirty = True

    def locales(self) -> list[str]:
        """Return the sorted names of the locales that have translations."""
        if self._qm_files_dirty:
            self._scan_translations()
        return sorted(self._qm_files)

    def locale(self) -> str:
        return self._current_locale

    def set_locale(self, locale: str) -> None:
        """Switch locale, reinstall translators and notify subscribers and listeners."""
        if self._qm_files_dirty:
            self._scan_translations()
        elif self._current_locale == locale:
            return

        self._translators.clear()
        self._current_locale = locale
        files = self._qm_files.get(locale)
        if files is not None:
            self._translators.extend(_install_translations(files))

        self._notify_subscribers()
        for callback in list(self._locale_changed):
            callback(locale)

    def refresh_locale(self) -> None:
        """Reload translators and subscribers for the current locale."""
        self.set_locale(self._current_locale)

    def install_locale(self, owner: Any, updater: Callable[[], Any] | None = None) -> None:
        """Subscribe ``updater`` (default ``owner.reload_strings``) and call it once now."""
        if updater is None:
            updater = getattr(owner, "reload_strings", None)
            if not callable(updater):
                raise TypeError(f"{type(owner).__name__} has no reload_strings method")

        if self._qm_files_dirty:
            self.refresh_locale()

        key = id(owner)
        if key not in self._subscribers:
            try:
                self._finalizers[key] = weakref.finalize(
                    owner, _drop_subscriber, weakref.ref(self), key
                )
            except TypeError:
                self._strong_owners[key] = owner
            self._subscribers[key] = []
        self._subscribers[key].append(updater)
        updater()

    def _forget_subscriber(self, key: int) -> bool:
        if key not in self._subscribers:
            return False
        del self._subscribers[key]
        self._strong_owners.pop(key, None)
        finalizer = self._finalizers.pop(key, None)
        if finalizer is not None:
            finalizer.detach()
        return True

    def uninstall_locale(self, owner: Any) -> bool:
        """Remove every updater of ``owner``; return whether it was subscribed."""
        return self._forget_subscriber(id(owner))

    def connect_locale_changed(self, callback: Callable[[str], Any]) -> Callable[[], None]:
        """Call ``callback(locale)`` after each locale change; returns a disconnect function."""
        self._locale_changed.append(callback)

        def disconnect() -> None:
            if callback in self._locale_changed:
                self._locale_changed.remove(callback)

        return disconnect

    def translators(self) -> list[QmTranslator]:
        """Return the translators installed for the current locale."""
        return list(self._translators)