"""Application-wide directories, configuration file and translation lookup."""

from __future__ import annotations

import json
import locale as _locale_module
import logging
import os
import sys
import tempfile
import weakref
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any

from qmcore.decorator import CoreDecorator
from qmcore.simplevarexp import SimpleVarExp, system_values
from qmcore.system import app_data_path, is_dir_exist, is_path_relative, mk_dir

log = logging.getLogger("qtmediate")

CONFIG_FILE_NAME = "qtmediate.json"


class MessageBoxFlag(IntEnum):
    """Severity of a message shown to the user."""

    NO_ICON = 0
    INFORMATION = 1
    QUESTION = 2
    WARNING = 3
    CRITICAL = 4


class ConfigScope(Enum):
    """Which configuration file to address."""

    USER = "user"
    SYSTEM = "system"


def _is_mac() -> bool:
    return sys.platform == "darwin"


def _slashed(path: str) -> str:
    return path.replace("\\", "/")


def _canonical_dir(path: str) -> str:
    """Return the canonical path of ``path`` if it is a directory, else an empty string."""
    if not os.path.isdir(path):
        return ""
    return _slashed(os.path.realpath(path))


def replace_percent_n(text: str, n: int) -> str:
    """Replace ``%n`` with ``n`` and ``%Ln`` with ``n`` formatted for the locale.

    Nothing is replaced when ``n`` is negative.
    """
    if n < 0:
        return text
    result = text
    percent_pos = 0
    length = 0
    while True:
        percent_pos = result.find("%", percent_pos + length)
        if percent_pos == -1:
            break
        length = 1
        if percent_pos + length == len(result):
            break
        localized = False
        if result[percent_pos + length] == "L":
            length += 1
            if percent_pos + length == len(result):
                break
            localized = True
        if result[percent_pos + length] == "n":
            if localized:
                formatted = _locale_module.format_string("%d", n, grouping=True)
            else:
                formatted = str(n)
            length += 1
            result = result[:percent_pos] + formatted + result[percent_pos + length:]
            length = len(formatted)
    return result


_instance_ref: weakref.ref | None = None


class CoreAppExtension:
    """Global resource manager of an application.

    On construction it works out the default directories, reads the system
    and the user configuration files and creates the translation decorator.
    The directories are plain attributes and may be reassigned.
    """

    def __init__(
        self,
        application_name: str | None = None,
        organization_name: str = "",
        application_dir: str | None = None,
        locale: str | None = None,
    ) -> None:
        global _instance_ref
        program = os.path.abspath(sys.argv[0]) if sys.argv and sys.argv[0] else os.getcwd()
        if application_name is None:
            application_name = os.path.splitext(os.path.basename(program))[0]
        if application_dir is None:
            application_dir = os.path.dirname(program)

        self.application_name = application_name
        self.organization_name = organization_name
        self.application_dir = _slashed(application_dir)

        self.config_vars = SimpleVarExp()
        self._about_to_quit = False

        self.plugin_paths: list[str] = []
        self.translation_paths: list[str] = []
        self.theme_paths: list[str] = []
        self.font_paths: list[str] = []
        self.app_font: dict[str, Any] = {}

        _instance_ref = weakref.ref(self)
        self._init(locale)

    @staticmethod
    def instance() -> CoreAppExtension | None:
        """Return the most recently created extension that is still alive."""
        return _instance_ref() if _instance_ref is not None else None

    def _upper_dir(self) -> str:
        return _slashed(os.path.normpath(self.application_dir + "/.."))

    def _create_decorator(self, locale: str | None) -> CoreDecorator:
        return CoreDecorator(locale)

    def _init(self, locale: str | None) -> None:
        org = self.organization_name
        app = self.application_name
        home = _slashed(os.path.expanduser("~"))

        self.app_data_dir = f"{app_data_path(app, org)}/{org}/{app}"
        self.user_data_dir = f"{home}/Documents/{org}/{app}"
        self.temp_dir = f"{_slashed(tempfile.gettempdir())}/{org}/{app}"

        upper = self._upper_dir()
        self.lib_dir = upper + ("/Frameworks" if _is_mac() else "/lib")
        self.share_dir = upper + ("/Resources" if _is_mac() else "/share")

        self.config_vars.add_mapping(system_values(app, org, self.application_dir))
        self.config_vars.add("DEFAULT_APPDATA", self.app_data_dir)
        self.config_vars.add("DEFAULT_USERDATA", self.user_data_dir)
        self.config_vars.add("DEFAULT_TEMP", self.temp_dir)

        for scope in (ConfigScope.SYSTEM, ConfigScope.USER):
            found = self.read_configuration(self.configuration_path(scope))
            log.debug(
                "%s configuration file %s", scope.value, "found" if found else "not found"
            )

        self.decorator = self._create_decorator(locale)
        log.debug("%s initializing.", type(self.decorator).__name__)

        for path in self.translation_paths:
            self.decorator.add_translation_path(path)

        if _is_mac():
            self.app_share_dir = self.share_dir
            self.app_plugins_dir = upper + "/Plugins"
        else:
            self.app_share_dir = f"{self.share_dir}/{app}"
            self.app_plugins_dir = f"{self.lib_dir}/{app}/plugins"

    def show_message(self, flag: MessageBoxFlag, title: str, text: str) -> None:
        """Report ``text`` to the user: warnings and errors on stderr, the rest on stdout."""
        stream = sys.stderr if flag in (MessageBoxFlag.CRITICAL, MessageBoxFlag.WARNING) else sys.stdout
        stream.write(text)
        stream.flush()

    def about_to_quit(self) -> None:
        """Mark the application as shutting down."""
        self._about_to_quit = True

    def is_about_to_quit(self) -> bool:
        return self._about_to_quit

    def read_configuration(self, file_name: str) -> bool:
        """Apply a JSON configuration file; return False if it is missing or malformed."""
        try:
            data = Path(file_name).read_bytes()
        except OSError:
            return False
        try:
            obj = json.loads(data)
        except ValueError:
            return False
        if not isinstance(obj, dict):
            return False

        if "AppFont" in obj:
            font = obj["AppFont"]
            if isinstance(font, str):
                self.app_font["Family"] = font
            elif isinstance(font, dict):
                self.app_font = dict(font)

        prefix = self.configuration_base_prefix()
        value = obj.get("Prefix")
        if isinstance(value, str):
            directory = self.config_vars.parse(value)
            if is_path_relative(directory):
                directory = self.configuration_base_prefix() + "/" + directory
            canonical = _canonical_dir(directory)
            if canonical:
                prefix = canonical

        def get_dir(path: str) -> str:
            path = self.config_vars.parse(path)
            if is_path_relative(path):
                path = prefix + "/" + path
            return _canonical_dir(path)

        def get_dirs(value: Any) -> list[str]:
            if isinstance(value, str):
                candidates = [value]
            elif isinstance(value, list):
                candidates = [item for item in value if isinstance(item, str)]
            else:
                return []
            return [d for d in map(get_dir, candidates) if d]

        for key, attr in (("Temp", "temp_dir"), ("Libraries", "lib_dir"), ("Share", "share_dir")):
            value = obj.get(key)
            if isinstance(value, str):
                directory = get_dir(value)
                if directory:
                    setattr(self, attr, directory)

        self.plugin_paths.extend(get_dirs(obj.get("Plugins")))
        self.translation_paths.extend(get_dirs(obj.get("Translations")))
        self.theme_paths.extend(get_dirs(obj.get("Themes")))
        self.font_paths.extend(get_dirs(obj.get("Fonts")))
        return True

    def create_app_dirs(self) -> bool:
        """Create the data, user data and temporary directories; False on the first failure."""
        for path in (self.app_data_dir, self.user_data_dir, self.temp_dir):
            log.debug("%s directory %s", "find" if is_dir_exist(path) else "create", path)
            if not mk_dir(path):
                return False
        return True

    def configuration_path(self, scope: ConfigScope = ConfigScope.USER) -> str:
        """Return the path of the configuration file for ``scope``."""
        if scope is ConfigScope.SYSTEM:
            base = self._upper_dir() + "/Resources" if _is_mac() else self.application_dir
            return f"{base}/{CONFIG_FILE_NAME}"
        root = app_data_path(self.application_name, self.organization_name)
        return f"{root}/ChorusKit/{self.application_name}/{CONFIG_FILE_NAME}"

    def configuration_base_prefix(self) -> str:
        """Return the directory relative configuration paths are resolved against."""
        return self._upper_dir() if _is_mac() else self.application_dir

    def translate(
        self,
        context: str | None,
        source_text: str | None,
        disambiguation: str | None = None,
        n: int = -1,
    ) -> tuple[str, bool]:
        """Translate ``source_text`` with the installed translators.

        Returns the text and whether a translation was found; without one the
        source text itself is used.  ``%n`` is replaced by ``n`` either way.
        """
        if source_text is None:
            return "", False
        result: str | None = None
        for translator in reversed(self.decorator.translators()):
            result = translator.translate(context, source_text, disambiguation, n)
            if result is not None:
                break
        found = result is not None
        return replace_percent_n(result if found else source_text, n), found