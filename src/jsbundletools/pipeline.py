"""Run modes: unpack, pack, patch.

Each run is a single linear pass driven by one immutable RunConfig:

- unpack: bundle -> module directory
- pack:   module directory -> bundle
- patch:  bundle -> apply patch descriptors -> bundle

Patch descriptors are loaded and resolved before the bundle is read, so a bad
descriptor aborts the run before any module is touched.
"""

from __future__ import annotations

import logging
from pathlib import Path

from jsbundletools.bundle.io import load_modules, save_modules
from jsbundletools.codecs.jsbundle import read_bundle, write_bundle
from jsbundletools.core.model import RunConfig
from jsbundletools.io.patches import load_patch_sets, read_lines
from jsbundletools.patch.engine import apply_patch_sets

logger = logging.getLogger(__name__)

MODES = ("unpack", "pack", "patch")


def _require_path(value: Path | None, *, option: str, mode: str) -> Path:
    if value is None:
        raise ValueError(f"{mode}: {option} is required")
    return value


def run_unpack(config: RunConfig) -> Path:
    bundle_path = _require_path(config.bundle_path, option="bundle path", mode="unpack")
    logger.info("Unpacking %s", bundle_path)

    store = read_bundle(bundle_path)
    save_modules(config.modules_dir, store)

    logger.info("Unpacked %d modules to %s", len(store), config.modules_dir)
    return config.modules_dir


def run_pack(config: RunConfig) -> Path:
    logger.info("Repacking jsbundle from %s", config.modules_dir)

    store = load_modules(config.modules_dir)
    out = write_bundle(config.output_path, store)

    logger.info("jsbundle has been created: %s", out)
    return out


def run_patch(config: RunConfig) -> Path:
    bundle_path = _require_path(config.bundle_path, option="bundle path", mode="patch")
    patches_dir = _require_path(config.patches_dir, option="patches directory", mode="patch")

    lines = read_lines(config.lines_path) if config.lines_path is not None else None
    patch_sets = load_patch_sets(patches_dir, lines=lines)
    logger.info("Loaded %d patch sets from %s", len(patch_sets), patches_dir)

    store = read_bundle(bundle_path)
    apply_patch_sets(store, patch_sets)
    out = write_bundle(config.output_path, store)

    logger.info("jsbundle has been created: %s", out)
    return out


def run(config: RunConfig) -> Path:
    """Dispatch on `config.mode`."""
    if config.mode == "unpack":
        return run_unpack(config)
    if config.mode == "pack":
        return run_pack(config)
    if config.mode == "patch":
        return run_patch(config)
    raise ValueError(f"mode must be one of {list(MODES)}, got {config.mode!r}")
