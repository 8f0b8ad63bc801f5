"""jsbundletools core: data model primitives.

This package is intentionally standalone and must not import CLI/codecs/bundle
to avoid circular dependencies.
"""

from __future__ import annotations

from .model import (
    STARTUP_ID,
    GroupRef,
    ModuleIdError,
    ModuleImportSpec,
    ModuleStore,
    PatchRule,
    PatchSet,
    RunConfig,
    is_numeric_id,
    validate_module_id,
)

__all__ = [
    "STARTUP_ID",
    "GroupRef",
    "ModuleIdError",
    "ModuleImportSpec",
    "ModuleStore",
    "PatchRule",
    "PatchSet",
    "RunConfig",
    "is_numeric_id",
    "validate_module_id",
]
