"""`jsbundletools pack` command.

Packs a module directory (as written by `unpack`) back into a `.jsbundle`.
Module ids must be contiguous from 0 and `startup.js` must be present.
"""

from __future__ import annotations

from pathlib import Path

import typer

from jsbundletools.cli.commands._run import run_or_exit
from jsbundletools.core.model import RunConfig


def register(app: typer.Typer) -> None:
    @app.command("pack")
    def pack(
        in_dir: str = typer.Option("out", "--in-dir", "-i", help="Module directory to pack."),
        out: str = typer.Option("patched.jsbundle", "--out", "-n", help="Output .jsbundle path."),
    ) -> None:
        """Pack a module directory into a .jsbundle."""
        config = RunConfig(mode="pack", modules_dir=Path(in_dir), output_path=Path(out))
        run_or_exit(config)
