"""Codecs for container formats.

- `.jsbundle` (indexed RAM bundle) decode/encode lives in `jsbundle`.
"""

from __future__ import annotations

from .jsbundle import (
    MAGIC,
    BundleFormatError,
    BundleLayoutError,
    TruncatedBundleError,
    decode_bundle,
    encode_bundle,
    read_bundle,
    write_bundle,
)

__all__ = [
    "MAGIC",
    "BundleFormatError",
    "BundleLayoutError",
    "TruncatedBundleError",
    "decode_bundle",
    "encode_bundle",
    "read_bundle",
    "write_bundle",
]
