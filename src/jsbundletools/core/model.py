"""Core data model for jsbundletools.

- `ModuleStore`: module id -> raw module bytes (terminator-free).
- `PatchRule` / `PatchSet` / `ModuleImportSpec`: fully resolved patch descriptors.
- `RunConfig`: the immutable per-run configuration built by the CLI.

This module must not import codecs/bundle/patch/cli.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

STARTUP_ID = "startup"

_NUMERIC_ID_RE = re.compile(r"0|[1-9][0-9]*")


class ModuleIdError(ValueError):
    """Raised for identifiers that are neither `startup` nor a canonical decimal."""


def is_numeric_id(module_id: str) -> bool:
    return bool(_NUMERIC_ID_RE.fullmatch(module_id))


def validate_module_id(module_id: object) -> str:
    """Return `module_id` if it is a valid identifier, else raise ModuleIdError."""
    if not isinstance(module_id, str):
        raise ModuleIdError(f"module id: expected str, got {type(module_id).__name__}")
    if module_id != STARTUP_ID and not is_numeric_id(module_id):
        raise ModuleIdError(
            f"module id {module_id!r}: expected {STARTUP_ID!r} or a non-negative decimal integer"
        )
    return module_id


class ModuleStore(MutableMapping):
    """Mapping of module id -> module bytes.

    Keys are `"startup"` or the decimal form of an entry-table index. Values are
    stored as immutable `bytes` without the on-disk terminator byte.
    """

    def __init__(self, modules: Optional[dict[str, bytes]] = None) -> None:
        self._modules: dict[str, bytes] = {}
        if modules:
            for module_id, content in modules.items():
                self[module_id] = content

    def __getitem__(self, module_id: str) -> bytes:
        return self._modules[module_id]

    def __setitem__(self, module_id: str, content: bytes) -> None:
        validate_module_id(module_id)
        if not isinstance(content, (bytes, bytearray, memoryview)):
            raise TypeError(f"module {module_id}: expected bytes, got {type(content).__name__}")
        self._modules[module_id] = bytes(content)

    def __delitem__(self, module_id: str) -> None:
        del self._modules[module_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return f"ModuleStore({sorted(self._modules, key=_sort_key)!r})"

    @property
    def startup(self) -> Optional[bytes]:
        return self._modules.get(STARTUP_ID)

    def numeric_ids(self) -> list[str]:
        """Numbered module ids in ascending numeric order."""
        return sorted((k for k in self._modules if k != STARTUP_ID), key=int)

    def ordered_ids(self) -> list[str]:
        """Numbered ids ascending, then `startup` if present."""
        ids = self.numeric_ids()
        if STARTUP_ID in self._modules:
            ids.append(STARTUP_ID)
        return ids


def _sort_key(module_id: str) -> tuple[int, int]:
    if module_id == STARTUP_ID:
        return (1, 0)
    return (0, int(module_id))


@dataclass(frozen=True)
class GroupRef:
    """Capture group reference (index or name) inside a replacement template."""

    group: Union[int, str]


@dataclass(frozen=True)
class PatchRule:
    """One resolved find/replace rule.

    `pattern` is set for regex rules (and `template` holds the parsed
    replacement); literal rules use `find` and `replacement` directly.
    """

    find: str
    replacement: str
    pattern: Optional[re.Pattern[str]] = None
    template: tuple[Union[str, GroupRef], ...] = ()

    @property
    def is_regex(self) -> bool:
        return self.pattern is not None


@dataclass(frozen=True)
class ModuleImportSpec:
    search_strings: tuple[str, ...]


@dataclass(frozen=True)
class PatchSet:
    name: str
    rules: tuple[PatchRule, ...]
    module_import: Optional[ModuleImportSpec] = None


@dataclass(frozen=True)
class RunConfig:
    """Immutable configuration for one pipeline run.

    Only the paths relevant to `mode` need to be set.
    """

    mode: str
    bundle_path: Optional[Path] = None
    output_path: Path = Path("patched.jsbundle")
    modules_dir: Path = Path("out")
    patches_dir: Optional[Path] = None
    lines_path: Optional[Path] = None
