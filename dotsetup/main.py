"""
dotsetup — CLI entrypoint.

Usage:
    dotsetup --help
    dotsetup probe
    dotsetup zsh
    dotsetup nvim
    dotsetup all --yes
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from dotsetup import __version__
from dotsetup.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="dotsetup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to dotsetup.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """dotsetup — provision zsh and LazyVim on this machine."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(
            debug=debug,
            verbose=verbose,
            quiet=quiet,
            env_level=os.environ.get("DOTSETUP_LOG_LEVEL"),
        ),
        log_file=os.environ.get("DOTSETUP_LOG_FILE"),
        log_file_level=os.environ.get("DOTSETUP_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


# ── Register commands from dotsetup/ui/cli/ ─────────────────────

from dotsetup.ui.cli.provision import all_profiles, nvim, probe, zsh  # noqa: E402

cli.add_command(probe)
cli.add_command(zsh)
cli.add_command(nvim)
cli.add_command(all_profiles)


if __name__ == "__main__":
    cli()
