"""`jsbundletools patch` command.

Reads a `.jsbundle`, applies every `*.json` patch descriptor in `--patches`
(file-name order), and writes the repacked bundle to `--out`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from jsbundletools.cli.commands._run import run_or_exit
from jsbundletools.core.model import RunConfig


def register(app: typer.Typer) -> None:
    @app.command("patch")
    def patch(
        bundle_path: str = typer.Argument(..., help="Path to a .jsbundle file."),
        patches: str = typer.Option(..., "--patches", "-d", help="Directory of patch descriptor .json files."),
        lines: Optional[str] = typer.Option(
            None,
            "--lines",
            help="Text file referenced by replaceFromLine/appendFromLine (1-based line numbers).",
        ),
        out: str = typer.Option("patched.jsbundle", "--out", "-n", help="Output .jsbundle path."),
    ) -> None:
        """Patch the modules of a .jsbundle and repack it."""
        config = RunConfig(
            mode="patch",
            bundle_path=Path(bundle_path),
            patches_dir=Path(patches),
            lines_path=Path(lines) if lines else None,
            output_path=Path(out),
        )
        run_or_exit(config)
