"""
CLI commands for provisioning.

Thin wrappers over ``dotsetup.core.services.provision``.
"""

from __future__ import annotations

import json
import os
import sys

import click

from dotsetup.core.models.settings import Settings

_LINE_COLORS = {"[OK": "green", "[SKIP": "cyan", "[WARN": "yellow", "[FAIL": "red"}


def _settings(ctx: click.Context) -> Settings:
    """Load settings for this invocation, exiting 1 on a config error."""
    from dotsetup.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _confirm_root(assume_yes: bool) -> None:
    if assume_yes or os.geteuid() != 0:
        return
    click.secho("⚠️  Running as root.", fg="yellow", bold=True)
    click.echo("   Not recommended on a desktop; fine in a container or minimal system.")
    click.confirm("   Continue?", default=True, abort=True)


def _echo_report(lines: list[str]) -> None:
    for line in lines:
        color = next((c for prefix, c in _LINE_COLORS.items() if line.startswith(prefix)), None)
        click.secho(line, fg=color)


def _run_profiles(ctx: click.Context, profiles: tuple[str, ...], assume_yes: bool, as_json: bool) -> None:
    from dotsetup.core.errors import LockError
    from dotsetup.core.services.provision.orchestration.orchestrator import provision

    settings = _settings(ctx)
    if not as_json:
        _confirm_root(assume_yes)

    try:
        run = provision(profiles, settings)
    except LockError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        if e.remedy:
            click.echo(f"   {e.remedy}", err=True)
        sys.exit(1)

    lines = run.report()
    if as_json:
        click.echo(json.dumps(run.to_dict(), indent=2))
        sys.exit(int(run.exit_status))

    quiet = ctx.obj.get("quiet", False)
    if not quiet:
        click.secho(f"\n📋 dotsetup: {', '.join(run.profiles)}", fg="cyan", bold=True)
        if run.selections:
            click.echo(f"   System-info tool: {run.selections.fetch_tool}")
        click.echo()
    _echo_report(lines)

    if run.exit_status:
        click.echo()
        click.secho("❌ Provisioning stopped on a required step.", fg="red", bold=True)
        sys.exit(int(run.exit_status))

    if not quiet:
        click.echo()
        click.secho("✅ Done. Log out and back in (or restart your terminal).", fg="green", bold=True)


_yes_option = click.option("--yes", "-y", "assume_yes", is_flag=True, help="Don't ask for confirmation when run as root.")
_json_option = click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")


@click.command()
@_json_option
@click.pass_context
def probe(ctx: click.Context, as_json: bool) -> None:
    """Show what dotsetup detects about this machine."""
    from dotsetup.core.errors import ProbeError
    from dotsetup.core.services.provision.detection.host_probe import probe as probe_host
    from dotsetup.core.services.provision.detection.host_probe import resolve_user_paths
    from dotsetup.core.services.provision.domain.selection import make_selections

    settings = _settings(ctx)
    try:
        caps = probe_host()
    except ProbeError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    paths = resolve_user_paths()
    selections = make_selections(caps, fetch_tool=settings.fetch_tool)

    if as_json:
        click.echo(json.dumps({
            "capabilities": caps.model_dump(mode="json"),
            "paths": paths.model_dump(mode="json"),
            "selections": selections.model_dump(mode="json"),
        }, indent=2))
        return

    disk = f"{caps.available_disk_gb} GB" if caps.available_disk_gb is not None else "unknown"
    click.secho("🖥️  Host", fg="cyan", bold=True)
    click.echo(f"   Package manager:  {caps.package_manager.value}")
    click.echo(f"   Root:             {'yes' if caps.is_root else 'no'}")
    click.echo(f"   Architecture:     {caps.architecture.value}")
    click.echo(f"   Free disk (/):    {disk}")
    click.secho("📁 Paths", fg="cyan", bold=True)
    click.echo(f"   Home:             {paths.home}")
    click.echo(f"   Config:           {paths.config_home}")
    click.echo(f"   Data:             {paths.data_home}")
    click.echo(f"   Cache:            {paths.cache_home}")
    click.secho("🔧 Selections", fg="cyan", bold=True)
    click.echo(f"   System-info tool: {selections.fetch_tool}")


@click.command()
@_yes_option
@_json_option
@click.pass_context
def zsh(ctx: click.Context, assume_yes: bool, as_json: bool) -> None:
    """Install zsh, its plugins and tools, and make it the login shell."""
    _run_profiles(ctx, ("zsh",), assume_yes, as_json)


@click.command()
@_yes_option
@_json_option
@click.pass_context
def nvim(ctx: click.Context, assume_yes: bool, as_json: bool) -> None:
    """Install the Neovim release binary and the LazyVim starter config."""
    _run_profiles(ctx, ("nvim",), assume_yes, as_json)


@click.command("all")
@_yes_option
@_json_option
@click.pass_context
def all_profiles(ctx: click.Context, assume_yes: bool, as_json: bool) -> None:
    """Run the zsh profile, then the nvim profile."""
    _run_profiles(ctx, ("zsh", "nvim"), assume_yes, as_json)
