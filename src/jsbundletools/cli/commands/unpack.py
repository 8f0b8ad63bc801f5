"""`jsbundletools unpack` command.

Decodes a `.jsbundle` and writes one `<id>.js` file per module (plus
`startup.js`) into `--out-dir`.
"""

from __future__ import annotations

from pathlib import Path

import typer

from jsbundletools.cli.commands._run import run_or_exit
from jsbundletools.core.model import RunConfig


def register(app: typer.Typer) -> None:
    @app.command("unpack")
    def unpack(
        bundle_path: str = typer.Argument(..., help="Path to a .jsbundle file."),
        out_dir: str = typer.Option("out", "--out-dir", "-o", help="Directory to write module files into."),
    ) -> None:
        """Unpack a .jsbundle into a module directory."""
        config = RunConfig(mode="unpack", bundle_path=Path(bundle_path), modules_dir=Path(out_dir))
        run_or_exit(config)
