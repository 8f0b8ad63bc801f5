"""Shared top-level error handling for run-mode commands."""

from __future__ import annotations

from pathlib import Path

import typer

from jsbundletools.codecs.jsbundle import BundleFormatError, BundleLayoutError
from jsbundletools.core.model import ModuleIdError, RunConfig
from jsbundletools.io.patches import PatchDescriptorError
from jsbundletools.patch.engine import PatternExtractionError
from jsbundletools.pipeline import run

# Everything the pipeline raises on bad input. Anything else is a bug and is
# left to surface with a traceback.
RUN_ERRORS = (
    BundleFormatError,
    BundleLayoutError,
    ModuleIdError,
    PatchDescriptorError,
    PatternExtractionError,
    OSError,
)


def run_or_exit(config: RunConfig) -> Path:
    """Run `config`; on failure report on stderr and exit with code 1."""
    try:
        out = run(config)
    except RUN_ERRORS as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(str(out))
    return out
