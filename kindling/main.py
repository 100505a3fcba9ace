"""
kindling — CLI entrypoint.

Usage:
    kindling bootstrap --org my-org
    kindling ensure --version ">=2.24"
    kindling check
"""

from __future__ import annotations

import json
import os
import signal
import sys
import threading
from pathlib import Path

import click

from kindling import __version__
from kindling.core.errors import KindlingError, StageFailed
from kindling.core.observability.logging_config import setup_logging_from_env


@click.group()
@click.version_option(version=__version__, prog_name="kindling")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to config.yaml (default: ~/.config/kindling/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """kindling — take a bare machine to a working Nix dev environment."""
    from kindling.core.config.paths import KindlingPaths

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["explicit_level"] = debug or verbose or quiet

    paths = ctx.obj.get("paths") or KindlingPaths.from_env()
    if config_path:
        paths = KindlingPaths(
            home=paths.home,
            config_home=paths.config_home,
            system_root=paths.system_root,
            config_override=Path(config_path),
        )
    ctx.obj["paths"] = paths

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("KINDLING_LOG_LEVEL", "WARNING")

    setup_logging_from_env(level)


# ── Helpers ─────────────────────────────────────────────────────


def _target(ctx: click.Context):
    """Injected target, or the host's (raises ``UnsupportedPlatform``)."""
    from kindling.core.services.provision.detection.platform import current_target

    return ctx.obj.get("target") or current_target()


def _resolver(ctx: click.Context):
    from kindling.core.services.provision.resolver.artifact_resolver import ArtifactResolver

    resolver = ctx.obj.get("resolver")
    if resolver is None:
        resolver = ArtifactResolver()
        ctx.obj["resolver"] = resolver
    return resolver


def _fail(error: Exception) -> None:
    click.secho(f"❌ {error}", fg="red", err=True)
    sys.exit(1)


def _print_stages(report, quiet: bool) -> None:
    icons = {"ok": "✅", "skipped": "⏭️ ", "failed": "❌"}
    for result in report.results:
        line = f"   {icons[result.status]} {result.name}"
        if result.error:
            line += f" — {result.error}"
        click.echo(line)
        if not quiet:
            for action in result.actions:
                click.echo(f"      • {action}")


# ── Bootstrap ───────────────────────────────────────────────────


@cli.command()
@click.option("--skip-nix", is_flag=True, help="Skip the Nix stage.")
@click.option("--skip-direnv", is_flag=True, help="Skip the direnv stage.")
@click.option("--skip-tend", is_flag=True, help="Skip the tend stage.")
@click.option("--skip-daemon", is_flag=True, help="Skip the daemon stage.")
@click.option("--org", default=None, help="GitHub org for a starter tend workspace.")
@click.option("--no-confirm", is_flag=True, help="Install without asking.")
@click.option("--shell", "shell", default=None, help="Shell to hook direnv into (default: $SHELL).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def bootstrap(
    ctx: click.Context,
    skip_nix: bool,
    skip_direnv: bool,
    skip_tend: bool,
    skip_daemon: bool,
    org: str | None,
    no_confirm: bool,
    shell: str | None,
    as_json: bool,
) -> None:
    """Take this machine from nothing to a working dev environment."""
    from kindling.core.services.provision.orchestration.bootstrap import (
        BootstrapOptions,
        run_bootstrap,
    )

    options = BootstrapOptions(
        skip_nix=skip_nix,
        skip_direnv=skip_direnv,
        skip_tend=skip_tend,
        skip_daemon=skip_daemon,
        org=org,
        no_confirm=no_confirm,
        shell=shell,
    )
    quiet = ctx.obj.get("quiet", False)

    try:
        report = run_bootstrap(
            ctx.obj["paths"],
            options,
            resolver=_resolver(ctx),
            target=_target(ctx),
        )
    except StageFailed as e:
        if e.report is not None and not as_json:
            _print_stages(e.report, quiet)
        _fail(e)
        return
    except KindlingError as e:
        _fail(e)
        return

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    _print_stages(report, quiet)
    if report.failed:
        click.secho("\n⚠️  Bootstrap finished with failed stages", fg="yellow")
    else:
        click.secho("\n🔥 Bootstrap complete", fg="green", bold=True)


# ── Nix ─────────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--backend",
    type=click.Choice(["upstream", "determinate"]),
    default=None,
    help="nix-installer distribution (default: from config).",
)
@click.option("--no-confirm", is_flag=True, help="Pass --no-confirm to the installer.")
@click.pass_context
def install(ctx: click.Context, backend: str | None, no_confirm: bool) -> None:
    """Install Nix."""
    from kindling.core.config.loader import load_config
    from kindling.core.models.config import Backend
    from kindling.core.services.provision.orchestration.nix_ops import install_nix

    paths = ctx.obj["paths"]
    try:
        target = _target(ctx)
        chosen = Backend(backend) if backend else load_config(paths.config_file).backend
        result = install_nix(paths, target, _resolver(ctx), backend=chosen, no_confirm=no_confirm)
    except KindlingError as e:
        _fail(e)
        return

    if result["already_installed"]:
        click.secho(f"✅ Nix already installed: {result['path']}", fg="green")
    else:
        click.secho(f"✅ Nix installed: {result['path']}", fg="green", bold=True)
        click.echo("   Restart your shell or source the nix-daemon profile to use it.")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Show platform and Nix status (exit 1 when Nix is missing)."""
    from kindling.core.services.provision.orchestration import nix_ops

    paths = ctx.obj["paths"]
    try:
        result = nix_ops.check(paths, _target(ctx), _resolver(ctx))
    except KindlingError as e:
        _fail(e)
        return

    if as_json:
        click.echo(json.dumps(result, indent=2))
        sys.exit(0 if result["ok"] else 1)
        return

    click.secho("🔍 Platform", fg="cyan", bold=True)
    click.echo(f"   Target:     {result['target']}")
    click.echo(f"   Nix system: {result['nix_system']}")
    if result["wsl"]:
        click.echo("   WSL:        yes")

    nix = result["nix"]
    if nix["installed"]:
        version = nix["version"] or "unknown version"
        click.secho(f"   ✅ Nix {version} at {nix['path']}", fg="green")
    else:
        click.secho("   ❌ Nix not installed — run `kindling install`", fg="red")
        sys.exit(1)


@cli.command()
@click.option("--version", "version", default=None, help='Required Nix version, e.g. ">=2.24".')
@click.option("--no-confirm", is_flag=True, help="Install without asking.")
@click.pass_context
def ensure(ctx: click.Context, version: str | None, no_confirm: bool) -> None:
    """Make sure Nix is installed (used by the use_kindling shell hook)."""
    from kindling.core.services.provision.orchestration.nix_ops import ensure_nix

    paths = ctx.obj["paths"]
    try:
        result = ensure_nix(
            paths,
            _target(ctx),
            _resolver(ctx),
            version=version,
            no_confirm=no_confirm,
        )
    except KindlingError as e:
        _fail(e)
        return

    if ctx.obj.get("quiet"):
        return
    label = f"Nix {result['version']}" if result["version"] else "Nix"
    if result["installed_now"]:
        click.secho(f"✅ Installed {label}", fg="green", bold=True, err=True)
    else:
        click.secho(f"✅ {label} ready", fg="green", err=True)


@cli.command()
@click.option("--no-confirm", is_flag=True, help="Uninstall without asking.")
@click.pass_context
def uninstall(ctx: click.Context, no_confirm: bool) -> None:
    """Uninstall Nix using the installer's receipt."""
    from kindling.core.services.provision.orchestration.nix_ops import uninstall_nix

    try:
        result = uninstall_nix(ctx.obj["paths"], no_confirm=no_confirm)
    except KindlingError as e:
        _fail(e)
        return

    click.secho(f"✅ Nix uninstalled ({result['receipt']})", fg="green")


# ── Daemon ──────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--config",
    "daemon_config",
    type=click.Path(dir_okay=False),
    default=None,
    help="Daemon config (default: ~/.config/kindling/daemon.yaml).",
)
@click.option("--http-addr", default=None, help="Override daemon.http_addr.")
@click.option("--grpc-addr", default=None, help="Override daemon.grpc_addr.")
@click.option("--log-level", default=None, help="Override daemon.log_level.")
@click.pass_context
def daemon(
    ctx: click.Context,
    daemon_config: str | None,
    http_addr: str | None,
    grpc_addr: str | None,
    log_level: str | None,
) -> None:
    """Run the kindling daemon in the foreground."""
    from kindling.core.services.daemon import prepare_daemon_config, run_daemon

    paths = ctx.obj["paths"]
    config_path = Path(daemon_config) if daemon_config else paths.daemon_config_file

    try:
        config = prepare_daemon_config(
            config_path,
            http_addr=http_addr,
            grpc_addr=grpc_addr,
            log_level=log_level,
            required=daemon_config is not None,
        )
    except KindlingError as e:
        _fail(e)
        return

    if not ctx.obj.get("explicit_level"):
        setup_logging_from_env(config.log_level)

    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    try:
        run_daemon(config, stop)
    except KeyboardInterrupt:
        stop.set()


# ── Sub-groups ──────────────────────────────────────────────────

from kindling.ui.cli.service import service
from kindling.ui.cli.shell import shell

cli.add_command(service)
cli.add_command(shell)


if __name__ == "__main__":
    cli()
