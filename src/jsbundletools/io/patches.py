"""Patch descriptor JSON I/O.

A patches directory holds one `<name>.json` per PatchSet; PatchSets are applied
in file-name order. Descriptor schema:

{
  "patches": [
    {"find": "foo", "replace": "bar"},
    {"find": "x=(\\w+);", "isRegex": true, "replace": "x=$1();"},
    {"find": "foo", "replaceFromLine": 3},
    {"find": "foo", "appendLiteral": ";bar()"},
    {"find": "foo", "appendFromLine": 4}
  ],
  "moduleImport": {"searchStrings": ["LIB_MARKER"]}
}

Rules:
- Exactly one of `replace` / `replaceFromLine` / `appendLiteral` /
  `appendFromLine` per rule; anything else is rejected at load time.
- `*FromLine` values are 1-based line numbers into the auxiliary lines file.
- Append variants resolve to the `find` text followed by the appended text.
- Regexes are compiled and replacements resolved here, before any module is
  touched.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Optional, Sequence

from jsbundletools.core.model import ModuleImportSpec, PatchRule, PatchSet
from jsbundletools.patch.template import parse_template

DESCRIPTOR_SUFFIX = ".json"

_REPLACEMENT_KEYS = ("replace", "replaceFromLine", "appendLiteral", "appendFromLine")

_MISSING = object()


class PatchDescriptorError(ValueError):
    """Deterministic validation error for patch descriptors."""


class RegexCompileError(PatchDescriptorError):
    """Raised when a regex rule's `find` does not compile."""


def _require_dict(value: Any, *, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise PatchDescriptorError(f"{where}: expected JSON object, got {type(value).__name__}")
    return value


def _require_list(value: Any, *, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise PatchDescriptorError(f"{where}: expected JSON array, got {type(value).__name__}")
    return value


def _require_str(value: Any, *, where: str) -> str:
    if not isinstance(value, str):
        raise PatchDescriptorError(f"{where}: expected str, got {type(value).__name__}")
    return value


def _require_line(value: Any, lines: Optional[Sequence[str]], *, where: str) -> str:
    # Explicitly reject booleans (Python bool is a subclass of int).
    if isinstance(value, bool) or not isinstance(value, int):
        raise PatchDescriptorError(f"{where}: expected int, got {type(value).__name__}")
    if lines is None:
        raise PatchDescriptorError(f"{where}: line reference requires a lines file")
    if not 1 <= value <= len(lines):
        raise PatchDescriptorError(f"{where}: line {value} out of range (lines file has {len(lines)} lines)")
    return lines[value - 1]


def read_lines(path: str | Path) -> tuple[str, ...]:
    """Read the auxiliary lines file; index 0 holds line 1.

    Only LF and CRLF end a line. Other characters `str.splitlines` treats as
    breaks (form feed, U+2028, ...) are ordinary line content here.
    """
    p = Path(path)
    with p.open("r", encoding="utf-8", newline="") as f:
        text = f.read()
    if not text:
        return ()
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return tuple(line[:-1] if line.endswith("\r") else line for line in lines)


def _resolve_replacement(
    raw: dict[str, Any],
    find: str,
    lines: Optional[Sequence[str]],
    *,
    where: str,
) -> str:
    present = [k for k in _REPLACEMENT_KEYS if raw.get(k, _MISSING) is not _MISSING]
    if len(present) != 1:
        raise PatchDescriptorError(
            f"{where}: expected exactly one of {list(_REPLACEMENT_KEYS)}, got {present}"
        )
    key = present[0]
    value = raw[key]

    if key == "replace":
        return _require_str(value, where=f"{where}.replace")
    if key == "replaceFromLine":
        return _require_line(value, lines, where=f"{where}.replaceFromLine")
    if key == "appendLiteral":
        return find + _require_str(value, where=f"{where}.appendLiteral")
    return find + _require_line(value, lines, where=f"{where}.appendFromLine")


def _parse_rule(raw: Any, lines: Optional[Sequence[str]], *, where: str) -> PatchRule:
    obj = _require_dict(raw, where=where)

    find = _require_str(obj.get("find"), where=f"{where}.find")
    if not find:
        raise PatchDescriptorError(f"{where}.find: must be a non-empty string")

    is_regex = obj.get("isRegex", False)
    if not isinstance(is_regex, bool):
        raise PatchDescriptorError(f"{where}.isRegex: expected bool, got {type(is_regex).__name__}")

    pattern = None
    if is_regex:
        try:
            pattern = re.compile(find)
        except re.error as e:
            raise RegexCompileError(f"{where}.find: invalid regular expression {find!r}: {e}") from e

    replacement = _resolve_replacement(obj, find, lines, where=where)
    template = parse_template(replacement) if is_regex else ()
    return PatchRule(find=find, replacement=replacement, pattern=pattern, template=template)


def _parse_module_import(raw: Any, *, where: str) -> ModuleImportSpec:
    obj = _require_dict(raw, where=where)
    search = _require_list(obj.get("searchStrings"), where=f"{where}.searchStrings")
    strings = []
    for i, s in enumerate(search):
        s = _require_str(s, where=f"{where}.searchStrings[{i}]")
        if not s:
            raise PatchDescriptorError(f"{where}.searchStrings[{i}]: must be a non-empty string")
        strings.append(s)
    return ModuleImportSpec(search_strings=tuple(strings))


def parse_patch_descriptor(
    obj: Any,
    *,
    name: str,
    lines: Optional[Sequence[str]] = None,
) -> PatchSet:
    """Validate a decoded descriptor and return a fully resolved PatchSet.

    Raises:
        PatchDescriptorError: invalid shape or unresolvable replacement.
        RegexCompileError: a regex rule does not compile.
    """
    where = name
    data = _require_dict(obj, where=where)
    patches = _require_list(data.get("patches", []), where=f"{where}.patches")

    rules = tuple(_parse_rule(p, lines, where=f"{where}.patches[{i}]") for i, p in enumerate(patches))

    module_import = None
    raw_import = data.get("moduleImport")
    if raw_import is not None:
        module_import = _parse_module_import(raw_import, where=f"{where}.moduleImport")

    return PatchSet(name=name, rules=rules, module_import=module_import)


def read_patch_descriptor(path: str | Path, *, lines: Optional[Sequence[str]] = None) -> PatchSet:
    """Read one descriptor file; the PatchSet name is the file stem."""
    p = Path(path)
    try:
        obj = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PatchDescriptorError(f"{p.name}: invalid JSON: {e}") from e
    return parse_patch_descriptor(obj, name=p.stem, lines=lines)


def load_patch_sets(root: str | Path, *, lines: Optional[Sequence[str]] = None) -> list[PatchSet]:
    """Load every `*.json` descriptor under `root`, ordered by file name."""
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"patches directory not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"not a patches directory: {root}")

    paths = sorted(p for p in root.iterdir() if p.suffix == DESCRIPTOR_SUFFIX and p.is_file())
    return [read_patch_descriptor(p, lines=lines) for p in paths]
