"""Module directory save/load.

An unpacked bundle is a folder containing one file per module:
- `<id>.js` for every numbered module (`0.js`, `1.js`, ...)
- `startup.js` for the startup block

Files hold the exact module bytes (no terminator, no newline translation).
This module intentionally avoids any dependency on codecs/CLI to prevent cycles.
"""

from __future__ import annotations

from pathlib import Path

from jsbundletools.core.model import ModuleStore

MODULE_SUFFIX = ".js"


def module_path(root: Path, module_id: str) -> Path:
    return Path(root) / f"{module_id}{MODULE_SUFFIX}"


def save_modules(root: str | Path, store: ModuleStore) -> list[Path]:
    """Write every module in `store` under `root` and return the written paths."""
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for module_id in store.ordered_ids():
        path = module_path(root, module_id)
        with path.open("wb") as f:
            f.write(store[module_id])
        written.append(path)
    return written


def load_modules(root: str | Path) -> ModuleStore:
    """Load every `*.js` file under `root` into a ModuleStore.

    Raises:
        FileNotFoundError: `root` does not exist.
        NotADirectoryError: `root` is not a directory.
        ModuleIdError: a file stem is not a valid module id.
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"module directory not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"not a module directory: {root}")

    store = ModuleStore()
    for path in sorted(root.iterdir()):
        if path.suffix != MODULE_SUFFIX or not path.is_file():
            continue
        with path.open("rb") as f:
            store[path.stem] = f.read()
    return store
