"""jsbundletools I/O helpers.

Patch descriptor loading lives in [`load_patch_sets()`](patches.py:1).
"""

from __future__ import annotations

from .patches import PatchDescriptorError, RegexCompileError, load_patch_sets, read_lines

__all__ = [
    "PatchDescriptorError",
    "RegexCompileError",
    "load_patch_sets",
    "read_lines",
]
