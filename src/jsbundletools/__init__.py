"""jsbundletools: unpack, patch and repack indexed `.jsbundle` files.

Pipeline: `read_bundle` -> [`apply_patch_sets`] -> `write_bundle`.
"""

from __future__ import annotations

from jsbundletools.codecs import decode_bundle, encode_bundle, read_bundle, write_bundle
from jsbundletools.core import ModuleStore, RunConfig
from jsbundletools.patch import apply_patch_sets

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ModuleStore",
    "RunConfig",
    "apply_patch_sets",
    "decode_bundle",
    "encode_bundle",
    "read_bundle",
    "write_bundle",
]
