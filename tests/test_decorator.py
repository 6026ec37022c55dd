import gc
import struct

import pytest

from qmcore.decorator import CoreDecorator, QmTranslator, scan_translations

MAGIC = bytes.fromhex("3cb86418caef9c95cd211cbf60a1bddd")


def _elf(data: bytes) -> int:
    h = 0
    for byte in data:
        h = ((h << 4) + byte) & 0xFFFFFFFF
        g = h & 0xF0000000
        if g:
            h ^= g >> 24
        h &= ~g & 0xFFFFFFFF
    return h or 1


def _u32(value: int) -> bytes:
    return struct.pack(">I", value)


def _block(tag: int, payload: bytes) -> bytes:
    return bytes([tag]) + _u32(len(payload)) + payload


def build_qm(messages, numerus_rules=b"", dependencies=(), language=""):
    body = b""
    hashes = []
    for context, source, comment, translations in messages:
        offset = len(body)
        record = b""
        for text in translations:
            enc = text.encode("utf-16-be")
            record += b"\x03" + _u32(len(enc)) + enc
        src = source.encode()
        com = comment.encode()
        ctx = context.encode()
        record += b"\x06" + _u32(len(src)) + src
        record += b"\x08" + _u32(len(com)) + com
        record += b"\x07" + _u32(len(ctx)) + ctx
        record += b"\x01"
        body += record
        hashes.append((_elf(src + com), offset))
    hashes.sort()
    out = MAGIC
    if language:
        out += _block(0xA7, language.encode())
    if dependencies:
        payload = b""
        for dep in dependencies:
            enc = dep.encode("utf-16-be")
            payload += _u32(len(enc)) + enc
        out += _block(0x96, payload)
    out += _block(0x42, b"".join(_u32(h) + _u32(o) for h, o in hashes))
    out += _block(0x69, body)
    if numerus_rules:
        out += _block(0x88, numerus_rules)
    return out


def write_qm(path, messages, **kwargs):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_qm(messages, **kwargs))
    return path


@pytest.fixture
def translations_dir(tmp_path):
    root = tmp_path / "translations"
    write_qm(root / "app_fr_FR.qm", [("ctx", "Hello", "", ["Bonjour"])])
    write_qm(root / "sub" / "app_de_DE.qm", [("ctx", "Hello", "", ["Hallo"])])
    write_qm(root / "app_zz.qm", [("ctx", "Hello", "", ["Zz"])])
    (root / "notes.txt").write_text("not a catalogue")
    return root


# QmTranslator


def test_load_missing_file(tmp_path):
    translator = QmTranslator()
    assert translator.load(str(tmp_path / "missing.qm")) is False
    assert translator.translate("ctx", "Hello") is None


def test_load_bad_magic(tmp_path):
    path = tmp_path / "bad.qm"
    path.write_bytes(b"\x00" * 32)
    assert QmTranslator().load(str(path)) is False


def test_load_truncated_section(tmp_path):
    path = tmp_path / "short.qm"
    path.write_bytes(MAGIC + bytes([0x69]) + _u32(100) + b"abc")
    assert QmTranslator().load(str(path)) is False


def test_load_appends_suffix(tmp_path):
    write_qm(tmp_path / "app.qm", [("ctx", "Hello", "", ["Bonjour"])])
    translator = QmTranslator()
    assert translator.load(str(tmp_path / "app")) is True
    assert translator.translate("ctx", "Hello") == "Bonjour"


def test_translate_basic_and_unknown(tmp_path):
    path = write_qm(
        tmp_path / "a.qm",
        [("ctx", "Hello", "", ["Bonjour"]), ("ctx", "Bye", "", ["Au revoir"])],
    )
    translator = QmTranslator()
    assert translator.load(str(path))
    assert translator.translate("ctx", "Hello") == "Bonjour"
    assert translator.translate("ctx", "Bye") == "Au revoir"
    assert translator.translate("ctx", "Unknown") is None
    assert translator.translate("ctx", None) is None


def test_translate_context_must_match(tmp_path):
    path = write_qm(
        tmp_path / "a.qm",
        [("one", "Open", "", ["Ouvrir"]), ("two", "Open", "", ["Ouvert"])],
    )
    translator = QmTranslator()
    assert translator.load(str(path))
    assert translator.translate("one", "Open") == "Ouvrir"
    assert translator.translate("two", "Open") == "Ouvert"
    assert translator.translate("three", "Open") is None


def test_translate_disambiguation(tmp_path):
    path = write_qm(
        tmp_path / "a.qm",
        [("ctx", "File", "menu", ["Fichier"]), ("ctx", "Save", "", ["Enregistrer"])],
    )
    translator = QmTranslator()
    assert translator.load(str(path))
    assert translator.translate("ctx", "File", "menu") == "Fichier"
    assert translator.translate("ctx", "File") is None
    # Falls back to the message without a comment
    assert translator.translate("ctx", "Save", "toolbar") == "Enregistrer"


def test_translate_numerus(tmp_path):
    path = write_qm(
        tmp_path / "a.qm",
        [("ctx", "%n file(s)", "", ["%n fichier", "%n fichiers"])],
        numerus_rules=b"\x01\x01",
    )
    translator = QmTranslator()
    assert translator.load(str(path))
    assert translator.translate("ctx", "%n file(s)", None, 1) == "%n fichier"
    assert translator.translate("ctx", "%n file(s)", None, 5) == "%n fichiers"
    assert translator.translate("ctx", "%n file(s)") == "%n fichier"


def test_translate_numerus_form_missing(tmp_path):
    path = write_qm(
        tmp_path / "a.qm",
        [("ctx", "%n item(s)", "", ["%n objet"])],
        numerus_rules=b"\x01\x01",
    )
    translator = QmTranslator()
    assert translator.load(str(path))
    assert translator.translate("ctx", "%n item(s)", None, 3) is None


def test_language_section(tmp_path):
    path = write_qm(tmp_path / "a.qm", [("ctx", "Hello", "", ["Hola"])], language="es_ES")
    translator = QmTranslator()
    assert translator.load(str(path))
    assert translator.language == "es_ES"


def test_dependencies(tmp_path):
    write_qm(tmp_path / "base.qm", [("ctx", "Cancel", "", ["Annuler"])])
    path = write_qm(
        tmp_path / "main.qm", [("ctx", "Hello", "", ["Bonjour"])], dependencies=["base"]
    )
    translator = QmTranslator()
    assert translator.load(str(path))
    assert translator.translate("ctx", "Hello") == "Bonjour"
    assert translator.translate("ctx", "Cancel") == "Annuler"


def test_missing_dependency_fails(tmp_path):
    path = write_qm(
        tmp_path / "main.qm", [("ctx", "Hello", "", ["Bonjour"])], dependencies=["gone"]
    )
    assert QmTranslator().load(str(path)) is False


# scan_translations


def test_scan_translations(translations_dir):
    result = scan_translations(str(translations_dir))
    assert list(result) == ["de_DE", "fr_FR"]
    assert result["fr_FR"] == [str(translations_dir / "app_fr_FR.qm")]
    assert result["de_DE"] == [str(translations_dir / "sub" / "app_de_DE.qm")]


def test_scan_missing_directory(tmp_path):
    assert scan_translations(str(tmp_path / "nowhere")) == {}


# CoreDecorator


def test_instance_is_latest():
    first = CoreDecorator(locale="C")
    second = CoreDecorator(locale="C")
    assert CoreDecorator.instance() is second
    assert first.locale() == "C"


def test_add_path_and_set_locale(translations_dir):
    dec = CoreDecorator(locale="C")
    dec.add_translation_path(str(translations_dir))
    assert dec.locales() == ["de_DE", "fr_FR"]
    assert dec.translators() == []

    changes = []
    dec.connect_locale_changed(changes.append)
    dec.set_locale("fr_FR")
    assert dec.locale() == "fr_FR"
    assert changes == ["fr_FR"]
    translators = dec.translators()
    assert len(translators) == 1
    assert translators[0].translate("ctx", "Hello") == "Bonjour"


def test_disconnect_locale_changed(translations_dir):
    dec = CoreDecorator(locale="C")
    changes = []
    disconnect = dec.connect_locale_changed(changes.append)
    dec.set_locale("fr_FR")
    disconnect()
    dec.set_locale("de_DE")
    assert changes == ["fr_FR"]


def test_ignored_paths(tmp_path):
    dec = CoreDecorator(locale="C")
    dec.add_translation_path("")
    dec.add_translation_path(str(tmp_path / "missing"))
    assert dec.locales() == []


def test_install_locale_notifies(translations_dir):
    dec = CoreDecorator(locale="C")
    dec.add_translation_path(str(translations_dir))
    calls = []
    owner = object()
    dec.install_locale(owner, lambda: calls.append(dec.locale()))
    assert calls == ["C"]
    dec.set_locale("de_DE")
    assert calls == ["C", "de_DE"]
    dec.set_locale("de_DE")
    assert calls == ["C", "de_DE"]


def test_add_path_for_current_locale_notifies(translations_dir):
    dec = CoreDecorator(locale="fr_FR")
    calls = []
    owner = object()
    dec.install_locale(owner, lambda: calls.append(1))
    dec.add_translation_path(str(translations_dir))
    assert len(calls) == 2
    assert [t.translate("ctx", "Hello") for t in dec.translators()] == ["Bonjour"]
    # Adding the same path again does nothing
    dec.add_translation_path(str(translations_dir))
    assert len(calls) == 2


def test_uninstall_locale(translations_dir):
    dec = CoreDecorator(locale="C")
    calls = []
    owner = object()
    dec.install_locale(owner, lambda: calls.append(1))
    assert dec.uninstall_locale(owner) is True
    assert dec.uninstall_locale(owner) is False
    dec.set_locale("fr_FR")
    assert calls == [1]


def test_install_locale_reload_strings():
    class Widget:
        def __init__(self):
            self.reloads = 0

        def reload_strings(self):
            self.reloads += 1

    dec = CoreDecorator(locale="C")
    widget = Widget()
    dec.install_locale(widget)
    assert widget.reloads == 1
    dec.set_locale("fr_FR")
    assert widget.reloads == 2


def test_install_locale_without_reload_strings():
    dec = CoreDecorator(locale="C")
    with pytest.raises(TypeError):
        dec.install_locale(object())


def test_collected_owner_is_dropped():
    class Owner:
        pass

    dec = CoreDecorator(locale="C")
    calls = []
    owner = Owner()
    dec.install_locale(owner, lambda: calls.append(1))
    del owner
    gc.collect()
    dec.set_locale("fr_FR")
    assert calls == [1]