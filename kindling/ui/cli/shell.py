"""
CLI commands for shell integration.

Thin wrappers over ``kindling.core.services.shell_integration``.
"""

from __future__ import annotations

import os
import sys

import click


@click.group()
def shell() -> None:
    """Shell — the use_kindling function and its Python fast path."""


@shell.command()
@click.option("--install", "install_lib", is_flag=True, help="Write it into direnv's lib directory.")
@click.pass_context
def lib(ctx: click.Context, install_lib: bool) -> None:
    """Print (or install) the use_kindling direnv function."""
    from kindling.core.services.provision.execution.shell_config import install_direnv_lib
    from kindling.core.services.shell_integration import render_use_kindling

    paths = ctx.obj["paths"]
    content = render_use_kindling(paths)

    if not install_lib:
        click.echo(content, nl=False)
        return

    result = install_direnv_lib(paths, content)
    if not result["ok"]:
        click.secho(f"❌ {result['error']}", fg="red", err=True)
        sys.exit(1)
    state = "installed" if result["changed"] else "already up to date"
    click.secho(f"✅ use_kindling {state}: {result['file']}", fg="green")


@shell.command()
@click.pass_context
def env(ctx: click.Context) -> None:
    """Print export lines that make Nix available: eval "$(kindling shell env)"."""
    from kindling.core.errors import KindlingError
    from kindling.core.services.provision.detection.platform import current_target
    from kindling.core.services.provision.resolver.artifact_resolver import ArtifactResolver
    from kindling.core.services.shell_integration import render_exports, use_kindling

    paths = ctx.obj["paths"]
    try:
        target = ctx.obj.get("target") or current_target()
    except KindlingError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    resolver = ctx.obj.get("resolver") or ArtifactResolver(environ=dict(os.environ))
    activation = use_kindling(paths, target, resolver)

    if not activation.ok:
        click.secho(f"❌ use_kindling: {activation.error}", fg="red", err=True)
        sys.exit(activation.status)

    click.echo(render_exports(activation.exports), nl=False)
