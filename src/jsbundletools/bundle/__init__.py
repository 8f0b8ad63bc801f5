"""Module directory I/O (unpacked-bundle format).

- Save one `<id>.js` file per module plus `startup.js`
- Load such a directory back into a ModuleStore
"""

from __future__ import annotations

from .io import load_modules, save_modules

__all__ = [
    "load_modules",
    "save_modules",
]
