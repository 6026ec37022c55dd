import json
import os

import pytest

from qmcore.appextension import (
    ConfigScope,
    CoreAppExtension,
    MessageBoxFlag,
    replace_percent_n,
)


@pytest.fixture
def app_dir(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("APPDATA", str(home / "AppData"))
    directory = tmp_path / "app" / "bin"
    directory.mkdir(parents=True)
    return directory


def make(app_dir):
    return CoreAppExtension("demo", "acme", str(app_dir), locale="en_US")


def canon(path):
    return os.path.realpath(str(path)).replace("\\", "/")


def write_json(path, obj):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f)


def test_replace_percent_n_plain():
    assert replace_percent_n("%n items", 3) == "3 items"


def test_replace_percent_n_localized():
    assert replace_percent_n("%Ln", 5) == "5"


def test_replace_percent_n_negative_keeps_text():
    assert replace_percent_n("%n items", -1) == "%n items"


def test_replace_percent_n_ignores_other_sequences():
    assert replace_percent_n("%x and %n", 7) == "%x and 7"
    assert replace_percent_n("100%", 2) == "100%"
    assert replace_percent_n("%L", 2) == "%L"


def test_instance_is_latest(app_dir):
    first = make(app_dir)
    second = make(app_dir)
    assert CoreAppExtension.instance() is second
    assert first is not CoreAppExtension.instance()


def test_about_to_quit(app_dir):
    ext = make(app_dir)
    assert ext.is_about_to_quit() is False
    ext.about_to_quit()
    assert ext.is_about_to_quit() is True


def test_default_directories(app_dir):
    ext = make(app_dir)
    assert ext.app_data_dir.endswith("/acme/demo")
    assert ext.user_data_dir.endswith("/Documents/acme/demo")
    assert ext.temp_dir.endswith("/acme/demo")
    assert ext.app_share_dir.startswith(ext.share_dir)
    assert ext.config_vars.parse("${DEFAULT_TEMP}") == ext.temp_dir
    assert ext.config_vars.parse("${APPNAME}") == "demo"


def test_configuration_paths(app_dir):
    ext = make(app_dir)
    assert ext.configuration_path().endswith("/ChorusKit/demo/qtmediate.json")
    assert ext.configuration_path(ConfigScope.SYSTEM).endswith("/qtmediate.json")


def test_read_configuration_missing_file(app_dir, tmp_path):
    ext = make(app_dir)
    assert ext.read_configuration(str(tmp_path / "missing.json")) is False


def test_read_configuration_rejects_bad_documents(app_dir, tmp_path):
    ext = make(app_dir)
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert ext.read_configuration(str(bad)) is False
    array = tmp_path / "array.json"
    array.write_text("[1, 2]", encoding="utf-8")
    assert ext.read_configuration(str(array)) is False


def test_read_configuration_directories(app_dir, tmp_path):
    ext = make(app_dir)
    base = tmp_path / "base"
    (base / "tmp").mkdir(parents=True)
    (base / "plugins1").mkdir()
    (base / "plugins2").mkdir()
    (base / "libs").mkdir()
    conf = tmp_path / "conf.json"
    write_json(
        str(conf),
        {
            "Prefix": str(base),
            "Temp": "tmp",
            "Libraries": "libs",
            "Plugins": ["plugins1", 3, "plugins2", "absent"],
            "Themes": "absent",
            "AppFont": "Arial",
        },
    )
    assert ext.read_configuration(str(conf)) is True
    assert ext.temp_dir == canon(base / "tmp")
    assert ext.lib_dir == canon(base / "libs")
    assert ext.plugin_paths == [canon(base / "plugins1"), canon(base / "plugins2")]
    assert ext.theme_paths == []
    assert ext.app_font == {"Family": "Arial"}


def test_read_configuration_expands_variables(app_dir, tmp_path):
    ext = make(app_dir)
    target = tmp_path / "fonts"
    target.mkdir()
    ext.config_vars.add("FONTROOT", str(target))
    conf = tmp_path / "conf.json"
    write_json(str(conf), {"Fonts": "${FONTROOT}", "AppFont": {"Family": "Mono", "Size": 12}})
    assert ext.read_configuration(str(conf)) is True
    assert ext.font_paths == [canon(target)]
    assert ext.app_font == {"Family": "Mono", "Size": 12}


def test_read_configuration_skips_missing_dirs(app_dir, tmp_path):
    ext = make(app_dir)
    before = ext.temp_dir
    conf = tmp_path / "conf.json"
    write_json(str(conf), {"Temp": str(tmp_path / "nowhere")})
    assert ext.read_configuration(str(conf)) is True
    assert ext.temp_dir == before


def test_system_configuration_read_at_startup(app_dir):
    probe = make(app_dir)
    share = os.path.join(probe.configuration_base_prefix(), "data")
    os.makedirs(share)
    write_json(probe.configuration_path(ConfigScope.SYSTEM), {"Share": "data"})
    ext = make(app_dir)
    assert ext.share_dir == canon(share)
    assert ext.app_share_dir.startswith(canon(share))


def test_user_configuration_read_at_startup(app_dir, tmp_path):
    probe = make(app_dir)
    libs = tmp_path / "userlibs"
    libs.mkdir()
    translations = tmp_path / "translations"
    translations.mkdir()
    write_json(
        probe.configuration_path(ConfigScope.USER),
        {"Libraries": str(libs), "Translations": [str(translations)]},
    )
    ext = make(app_dir)
    assert ext.lib_dir == canon(libs)
    assert ext.translation_paths == [canon(translations)]


def test_create_app_dirs(app_dir, tmp_path):
    ext = make(app_dir)
    ext.app_data_dir = str(tmp_path / "d" / "appdata")
    ext.user_data_dir = str(tmp_path / "d" / "userdata")
    ext.temp_dir = str(tmp_path / "d" / "temp")
    assert ext.create_app_dirs() is True
    assert all(
        os.path.isdir(p) for p in (ext.app_data_dir, ext.user_data_dir, ext.temp_dir)
    )


def test_create_app_dirs_failure(app_dir, tmp_path):
    ext = make(app_dir)
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    ext.app_data_dir = str(blocker / "sub")
    assert ext.create_app_dirs() is False


def test_show_message_streams(app_dir, capsys):
    ext = make(app_dir)
    ext.show_message(MessageBoxFlag.CRITICAL, "Title", "boom")
    ext.show_message(MessageBoxFlag.INFORMATION, "Title", "hello")
    captured = capsys.readouterr()
    assert captured.err == "boom"
    assert captured.out == "hello"


def test_translate_without_translators(app_dir):
    ext = make(app_dir)
    assert ext.translate("Ctx", "%n files", None, 4) == ("4 files", False)
    assert ext.translate("Ctx", "Open") == ("Open", False)


def test_translate_none_source(app_dir):
    ext = make(app_dir)
    assert ext.translate("Ctx", None) == ("", False)