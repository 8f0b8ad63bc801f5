from __future__ import annotations

from .engine import PatternExtractionError, apply_patch_set, apply_patch_sets, inject_imports, resolve_imports

__all__ = [
    "PatternExtractionError",
    "apply_patch_set",
    "apply_patch_sets",
    "inject_imports",
    "resolve_imports",
]
