"""
CLI commands for the daemon's supervisor files.

Thin wrappers over ``kindling.core.services.generators.service_units``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click


def _daemon_spec(ctx: click.Context, os_name: str | None):
    """Daemon spec for this user, pointing at the installed kindling."""
    from kindling.core.config.loader import load_config
    from kindling.core.models.target import OsFamily
    from kindling.core.services.generators.service_units import daemon_spec_for
    from kindling.core.services.provision.catalog import kindling_tool
    from kindling.core.services.provision.detection.platform import current_target
    from kindling.core.services.provision.resolver.artifact_resolver import ArtifactResolver

    paths = ctx.obj["paths"]
    if os_name:
        os_family = OsFamily(os_name)
    else:
        target = ctx.obj.get("target") or current_target()
        os_family = target.os_family

    tool = kindling_tool(paths)
    resolver = ctx.obj.get("resolver") or ArtifactResolver()
    binary = resolver.locate(tool) or tool.cache_path

    config = load_config(paths.config_file).daemon_or_default()
    return daemon_spec_for(paths, binary, config, os_family)


def _home_relative(path: str, home: Path) -> Path:
    p = Path(path)
    if not p.is_absolute():
        return p
    try:
        return p.relative_to(home)
    except ValueError:
        return Path(*p.parts[1:])


@click.group()
def service() -> None:
    """Service — render or install the daemon's launchd/systemd files."""


@service.command()
@click.option(
    "--os",
    "os_name",
    type=click.Choice(["darwin", "linux"]),
    default=None,
    help="Render for this OS (default: this machine).",
)
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Write files under this directory instead of printing them.",
)
@click.pass_context
def render(ctx: click.Context, os_name: str | None, out_dir: str | None) -> None:
    """Compile the daemon's supervisor files."""
    from kindling.core.errors import KindlingError
    from kindling.core.services.generators.service_units import compile_service
    from kindling.core.services.provision.execution.shell_config import write_if_changed

    try:
        artifacts = compile_service(_daemon_spec(ctx, os_name))
    except KindlingError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if out_dir is None:
        for generated in artifacts.files:
            click.secho(f"# ── {generated.path} ({generated.reason})", fg="cyan")
            click.echo(generated.content)
        return

    home = ctx.obj["paths"].home
    failed = False
    for generated in artifacts.files:
        result = write_if_changed(Path(out_dir) / _home_relative(generated.path, home), generated.content)
        if result["ok"]:
            marker = "📝" if result["changed"] else "✓ "
            click.echo(f"   {marker} {result['file']}")
        else:
            click.secho(f"   ❌ {result['error']}", fg="red")
            failed = True
    if failed:
        sys.exit(1)


@service.command("install")
@click.pass_context
def install_service(ctx: click.Context) -> None:
    """Write the daemon's supervisor files into place."""
    from kindling.core.errors import KindlingError
    from kindling.core.models.service import AppleAgentArtifact
    from kindling.core.services.generators.service_units import compile_service
    from kindling.core.services.provision.execution.service_files import write_artifacts

    paths = ctx.obj["paths"]
    try:
        spec = _daemon_spec(ctx, None)
    except KindlingError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    artifacts = compile_service(spec)
    result = write_artifacts(artifacts, paths.home, log_dir=Path(spec.log_dir))

    for path in result["written"]:
        click.echo(f"   📝 {path}")
    for path in result["unchanged"]:
        click.echo(f"   ✓  {path} (unchanged)")
    if not result["ok"]:
        for err in result["errors"]:
            click.secho(f"   ❌ {err}", fg="red")
        sys.exit(1)

    click.echo()
    if isinstance(artifacts.supervisor, AppleAgentArtifact):
        click.echo(f"   Load it with: launchctl load -w ~/{artifacts.supervisor.agent.path}")
    else:
        click.echo(f"   Start it with: systemctl --user enable --now {spec.name}")
