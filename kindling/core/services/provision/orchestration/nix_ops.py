"""
L5 Orchestration — Nix use cases behind ``install``, ``check``,
``ensure`` and ``uninstall``.

Every function returns a result dict for the CLI to print and raises a
``KindlingError`` when the operation cannot complete.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Mapping

from kindling.core.config.loader import load_config, save_auto_install
from kindling.core.config.paths import KindlingPaths
from kindling.core.errors import ConsentDenied, KindlingError, ResolutionFailed
from kindling.core.models.config import Backend
from kindling.core.models.target import Target
from kindling.core.services.provision.catalog import (
    needs_init_none,
    nix_installer_receipts,
    nix_tool,
)
from kindling.core.services.provision.detection.platform import is_wsl
from kindling.core.services.provision.detection.tool_version import get_tool_version
from kindling.core.services.provision.domain.version_constraint import (
    check_version_constraint,
    parse_constraint,
)
from kindling.core.services.provision.execution.subprocess_runner import run_subprocess
from kindling.core.services.provision.resolver.artifact_resolver import ArtifactResolver

logger = logging.getLogger(__name__)

AUTO_INSTALL_ENV = "KINDLING_AUTO_INSTALL"

VersionProbe = Callable[[str, Path], "str | None"]


def nix_status(
    paths: KindlingPaths,
    resolver: ArtifactResolver,
    *,
    version_probe: VersionProbe | None = None,
) -> dict[str, Any]:
    """Locate nix without installing it.

    Returns:
        ``{"installed": bool, "path": str | None, "version": str | None}``
    """
    found = resolver.locate(nix_tool(paths))
    if found is None:
        return {"installed": False, "path": None, "version": None}
    probe = version_probe or get_tool_version
    return {"installed": True, "path": str(found), "version": probe("nix", found)}


def check(
    paths: KindlingPaths,
    target: Target,
    resolver: ArtifactResolver,
    *,
    version_probe: VersionProbe | None = None,
) -> dict[str, Any]:
    """Platform and nix status, as shown by ``kindling check``."""
    status = nix_status(paths, resolver, version_probe=version_probe)
    return {
        "ok": status["installed"],
        "target": target.triple,
        "nix_system": target.nix_system,
        "wsl": is_wsl(paths.system("/proc/version")),
        "nix": status,
    }


def install_nix(
    paths: KindlingPaths,
    target: Target,
    resolver: ArtifactResolver,
    *,
    backend: Backend = Backend.UPSTREAM,
    no_confirm: bool = False,
) -> dict[str, Any]:
    """Install nix unless it is already present.

    Returns:
        ``{"ok": True, "already_installed": bool, "path": "..."}``

    Raises:
        ResolutionFailed: The installer could not be fetched or failed.
    """
    tool = nix_tool(
        paths,
        backend,
        no_confirm=no_confirm,
        init_none=needs_init_none(paths, target),
    )

    existing = resolver.locate(tool)
    if existing is not None:
        logger.info("Nix already installed at %s", existing)
        return {"ok": True, "already_installed": True, "path": str(existing)}

    logger.info("Installing Nix (%s backend) for %s", backend.value, target.nix_system)
    path = resolver.resolve(tool, target)
    return {"ok": True, "already_installed": False, "path": str(path)}


def _install_consented(
    paths: KindlingPaths,
    *,
    no_confirm: bool,
    environ: Mapping[str, str],
    confirm: Callable[[str], bool],
) -> bool:
    """Walk the consent chain for a first-time install.

    ``--no-confirm`` → env ``KINDLING_AUTO_INSTALL=1`` → config
    ``auto_install`` → ask once and remember the answer.
    """
    if no_confirm:
        return True
    if environ.get(AUTO_INSTALL_ENV) == "1":
        logger.debug("%s=1, installing without asking", AUTO_INSTALL_ENV)
        return True

    config = load_config(paths.config_file)
    if config.auto_install is not None:
        return config.auto_install

    answer = confirm("Nix is not installed. Install it now (and automatically in the future)?")
    save_auto_install(paths.config_file, answer)
    return answer


def ensure_nix(
    paths: KindlingPaths,
    target: Target,
    resolver: ArtifactResolver,
    *,
    version: str | None = None,
    no_confirm: bool = False,
    environ: Mapping[str, str] | None = None,
    confirm: Callable[[str], bool] | None = None,
    version_probe: VersionProbe | None = None,
) -> dict[str, Any]:
    """Make sure nix is installed, optionally at a minimum version.

    Raises:
        ConsentDenied: Auto-install is disabled or the user declined.
        ResolutionFailed: Installed nix does not satisfy ``version``,
            or installation failed.
    """
    if version:
        _parse_requirement(version)
    env = os.environ if environ is None else environ
    status = nix_status(paths, resolver, version_probe=version_probe)

    if status["installed"]:
        if version:
            _require_version(status["version"], version)
        return {"ok": True, "installed_now": False, **status}

    if not _install_consented(
        paths,
        no_confirm=no_confirm,
        environ=env,
        confirm=confirm or _click_confirm,
    ):
        raise ConsentDenied(
            "Nix is not installed and auto-install is disabled.",
            "Run `kindling install` to install it manually.",
        )

    config = load_config(paths.config_file)
    result = install_nix(paths, target, resolver, backend=config.backend, no_confirm=True)

    installed_version = (version_probe or get_tool_version)("nix", Path(result["path"]))
    if version:
        _require_version(installed_version, version)
    return {
        "ok": True,
        "installed_now": not result["already_installed"],
        "installed": True,
        "path": result["path"],
        "version": installed_version,
    }


def _parse_requirement(constraint: str) -> None:
    try:
        parse_constraint(constraint)
    except ValueError as e:
        raise KindlingError(f"Invalid version constraint {constraint!r}: {e}") from e


def _require_version(installed: str | None, constraint: str) -> None:
    verdict = check_version_constraint(installed or "", constraint)
    if not verdict["valid"]:
        raise ResolutionFailed("nix", verdict["message"])


def _click_confirm(prompt: str) -> bool:
    import click

    return click.confirm(prompt, default=True, err=True)


def find_receipt(paths: KindlingPaths) -> Path | None:
    """The nix-installer binary left behind by the install, if any."""
    for receipt in nix_installer_receipts(paths):
        if receipt.is_file():
            return receipt
    return None


def uninstall_nix(
    paths: KindlingPaths,
    *,
    no_confirm: bool = False,
    run: Callable[..., dict[str, Any]] = run_subprocess,
) -> dict[str, Any]:
    """Run the installer receipt's ``uninstall``.

    Without ``no_confirm`` the installer asks on the terminal itself.

    Raises:
        ResolutionFailed: No receipt was found or the uninstall failed.
    """
    receipt = find_receipt(paths)
    if receipt is None:
        searched = ", ".join(str(p) for p in nix_installer_receipts(paths))
        raise ResolutionFailed(
            "nix-installer",
            f"no install receipt found (looked in {searched}); was Nix installed by kindling?",
        )

    cmd = [str(receipt), "uninstall"]
    if no_confirm:
        cmd.append("--no-confirm")

    logger.info("Uninstalling Nix with %s", receipt)
    result = run(cmd, interactive=not no_confirm)
    if not result["ok"]:
        raise ResolutionFailed("nix", f"uninstall failed: {result['error']}")
    return {"ok": True, "receipt": str(receipt)}
