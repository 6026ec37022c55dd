# qmcore

Building blocks for desktop-style applications, in plain Python with no third-party
dependencies.

## Modules

- `qmcore.chronomap.ChronoMap` is a mutable mapping that keeps keys in the order they
  were placed. `append`, `prepend` and `insert_before(before, key, value)` add a key and
  return `False` if it was already present; an existing key never moves, and its value
  is replaced unless `replace=False`. `value(key, default)` looks a key up, `remove(key)`
  reports whether it was there, and `keys()`, `values()` and `items()` return lists.
- `qmcore.chronoset.ChronoSet` is the same idea for sets, with `append`, `prepend`,
  `insert_before`, `remove`, `values` and `copy`.
- `qmcore.states.ButtonState` is an `IntEnum` of button states with `checked()`,
  `unchecked()` and `is_checked()`.
- `qmcore.batch` holds string and list helpers: `str_unescape`,
  `str_remove_side_quote`, `str_remove_side_paren`, `str_list_to_int_list`,
  `str_list_to_double_list`, `json_array_to_str_list`, `str_is_number`,
  `str_prefixed_with`, `adjust_repeated_name` (picks a free name such as `"name (2)"`),
  `array_move_elements` and `array_insert_sort`.
- `qmcore.system` holds filesystem and system helpers: path tests such as
  `is_file_exist` and `is_same_path`; `path_find_suffix`, `path_find_file_name`,
  `path_find_next_dir` and `path_get_modify_time`; `mk_dir`, `rm_dir`, `rm_file`,
  `copy` and `combine`; `rm_pre_str` and `rm_pre_num` to remove files by name prefix;
  `reveal` to show a path in the system file manager (it starts `explorer.exe`, `open`
  with `osascript`, or `xdg-open`); `app_data_path`, `unit_dpi` and `is_user_root`.
- `qmcore.simplevarexp` expands `${NAME}` references. `SimpleVarExp` holds a variable
  table and a name pattern (`\w+` by default); `evaluate(s, variables, pattern)` does
  the same for a given mapping. Unknown names expand to the name itself, expansion
  repeats until nothing is left, and `$$` stands for a literal `$`. `system_values()`
  returns variables such as `HOME`, `TEMP`, `APPDATA`, `APPPATH` and `APPNAME`.
- `qmcore.displaystring.DisplayString` is text that is either a plain string or the
  result of a callback called on every read (`TranslatePolicy` tells which). It also
  carries a map of properties; setting a property to `None` removes it.
- `qmcore.decorator` reads compiled `.qm` translation catalogues with `QmTranslator`,
  groups the `.qm` files found under a directory by locale with `scan_translations`,
  and offers `CoreDecorator`: a registry of translation paths and the current locale
  that installs the matching translators and calls subscribers registered with
  `install_locale` whenever the locale changes.
- `qmcore.appextension.CoreAppExtension` works out the application's data, user data,
  temp, library, share and plugin directories, reads the system and user
  `qtmediate.json` configuration files (keys `AppFont`, `Prefix`, `Temp`, `Libraries`,
  `Share`, `Plugins`, `Translations`, `Themes`, `Fonts`), creates a `CoreDecorator`,
  and translates text with `translate`, which returns the text and whether a
  translation was found and replaces `%n` / `%Ln` with the given number.

## Examples

```python
from qmcore.chronomap import ChronoMap
from qmcore.simplevarexp import SimpleVarExp
from qmcore.batch import adjust_repeated_name

m = ChronoMap()
m.append("b", 2)
m.prepend("a", 1)
print(m.keys())                    # ['a', 'b']

exp = SimpleVarExp()
exp.add("HOME", "/home/user")
print(exp.parse("${HOME}/docs"))   # /home/user/docs
print(exp.parse("$${HOME}"))       # ${HOME}

print(adjust_repeated_name({"file", "file (1)"}, "file"))  # file (2)
```

## What it does not do

- There is no command-line tool; everything is used from Python.
- `CoreAppExtension.show_message` writes the text to standard error (warnings and
  errors) or standard output; it does not open a graphical message box.
- Translations are only read from compiled `.qm` files; the package cannot create or
  compile them.

## Running the tests

```
pip install -e .[test]
pytest
```