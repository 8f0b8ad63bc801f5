"""Pytest configuration.

This repo follows the `src/` layout. Some environments may invoke a `pytest`
entrypoint from a different Python install than the one used for
`python -m pip install -e ...`, which can cause `import jsbundletools` to fail.

We ensure `src/` is on `sys.path` during tests.
"""

from __future__ import annotations

import json
import logging
import struct
import sys
from pathlib import Path
from typing import Any

import pytest


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


@pytest.fixture(autouse=True)
def _reset_cli_logging():
    """The CLI binds a stderr handler to the package logger; drop it between tests."""
    yield
    logger = logging.getLogger("jsbundletools")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Shared Test Helpers
# =============================================================================

BUNDLE_MAGIC = 0xFB0BD1E5


def make_bundle_bytes(startup: bytes, modules: list[bytes]) -> bytes:
    """Build bundle bytes by hand (independent of the encoder under test)."""
    header = struct.pack("<III", BUNDLE_MAGIC, len(modules), len(startup) + 1)
    table = b""
    region = startup + b"\x00"
    for content in modules:
        table += struct.pack("<II", len(region), len(content) + 1)
        region += content + b"\x00"
    return header + table + region


def scenario_bundle_bytes() -> bytes:
    """magic | count=1 | startup_length=5 | {offset=5, length=4} | boot\\0 | foo\\0"""
    return (
        struct.pack("<III", BUNDLE_MAGIC, 1, 5)
        + struct.pack("<II", 5, 4)
        + b"boot\x00"
        + b"foo\x00"
    )


def factory_module(module_id: int, deps: list[int], body: str) -> str:
    """A Metro-style factory registration call."""
    deps_text = ",".join(str(d) for d in deps)
    return (
        "__d(function (global, _$$_REQUIRE, _$$_IMPORT_DEFAULT, _$$_IMPORT_ALL, module, exports, _dependencyMap) {"
        f"{body}"
        f"}},{module_id},[{deps_text}],\"m{module_id}.js\");"
    )


def write_descriptor(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")
