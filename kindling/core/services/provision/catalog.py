"""
Tool catalog — the descriptions of every tool kindling manages.

The same descriptions drive the stage orchestrator, ``kindling ensure``
and the rendered ``use_kindling`` shell function, so candidate paths
and download sources are defined exactly once.
"""

from __future__ import annotations

from pathlib import Path

from kindling.core.config.paths import KindlingPaths
from kindling.core.models.config import Backend
from kindling.core.models.target import OsFamily, Target
from kindling.core.models.tool import Tool
from kindling.core.services.provision.data.constants import (
    DIRENV_INSTALLABLE,
    KINDLING_RELEASE_URL,
    NIX_DAEMON_PROFILE,
    NIX_INSTALLER_RECEIPTS,
    NIX_INSTALLER_URLS,
    NIX_SYSTEM_BIN_DIRS,
    TEND_INSTALLABLE,
)
from kindling.core.services.provision.detection.platform import has_systemd, is_wsl
from kindling.core.services.provision.execution.installers import (
    NixInstallerStrategy,
    NixProfileStrategy,
)


def nix_profile_bins(paths: KindlingPaths) -> tuple[Path, ...]:
    """Nix profile bin directories in probe order (system first)."""
    return (*(paths.system(d) for d in NIX_SYSTEM_BIN_DIRS), paths.nix_profile_bin)


def nix_daemon_profile(paths: KindlingPaths) -> Path:
    return paths.system(NIX_DAEMON_PROFILE)


def nix_installer_receipts(paths: KindlingPaths) -> list[Path]:
    return [paths.system(p) for p in NIX_INSTALLER_RECEIPTS]


def needs_init_none(paths: KindlingPaths, target: Target) -> bool:
    """WSL without systemd cannot run the nix daemon as a service."""
    if target.os_family is not OsFamily.LINUX:
        return False
    return is_wsl(paths.system("/proc/version")) and not has_systemd(paths.system_root)


def nix_installer_tool(paths: KindlingPaths, backend: Backend = Backend.UPSTREAM) -> Tool:
    return Tool(
        name="nix-installer",
        install_dir=paths.install_dir,
        url_template=NIX_INSTALLER_URLS[backend],
    )


def nix_tool(
    paths: KindlingPaths,
    backend: Backend = Backend.UPSTREAM,
    *,
    no_confirm: bool = True,
    init_none: bool = False,
) -> Tool:
    return Tool(
        name="nix",
        candidates=tuple(d / "nix" for d in nix_profile_bins(paths)),
        profile_script=nix_daemon_profile(paths),
        installer=NixInstallerStrategy(
            installer_tool=nix_installer_tool(paths, backend),
            no_confirm=no_confirm,
            init_none=init_none,
        ),
    )


def _nix_profile_tool(paths: KindlingPaths, name: str, installable: str, nix: Tool) -> Tool:
    bins = nix_profile_bins(paths)
    return Tool(
        name=name,
        candidates=tuple(d / name for d in bins),
        installer=NixProfileStrategy(installable=installable, nix_tool=nix, profile_bins=bins),
    )


def direnv_tool(paths: KindlingPaths, nix: Tool) -> Tool:
    return _nix_profile_tool(paths, "direnv", DIRENV_INSTALLABLE, nix)


def tend_tool(paths: KindlingPaths, nix: Tool) -> Tool:
    return _nix_profile_tool(paths, "tend", TEND_INSTALLABLE, nix)


def kindling_tool(paths: KindlingPaths) -> Tool:
    """kindling itself, downloaded as a release binary when absent."""
    return Tool(
        name="kindling",
        candidates=tuple(d / "kindling" for d in nix_profile_bins(paths)),
        install_dir=paths.install_dir,
        url_template=KINDLING_RELEASE_URL,
    )
