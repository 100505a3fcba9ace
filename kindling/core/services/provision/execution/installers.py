"""
L4 Execution — Install strategies for tools that are not a plain download.

Each strategy is a ``Tool.installer``: the resolver calls it as step 4
and expects back the path of a usable executable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from kindling.core.errors import ResolutionFailed
from kindling.core.models.target import Target
from kindling.core.models.tool import Tool
from kindling.core.services.provision.data.constants import NIX_EXPERIMENTAL_FEATURES
from kindling.core.services.provision.execution.environment import prepend_to_path
from kindling.core.services.provision.execution.subprocess_runner import run_subprocess

if TYPE_CHECKING:
    from kindling.core.services.provision.resolver.artifact_resolver import (
        ArtifactResolver,
    )

logger = logging.getLogger(__name__)

Runner = Callable[..., dict[str, Any]]


def _relocate(resolver: ArtifactResolver, tool: Tool, hint: str) -> Path:
    found = resolver.locate(tool)
    if found is None:
        raise ResolutionFailed(tool.name, f"install finished but {tool.name} was not found; {hint}")
    return found


@dataclass(frozen=True)
class NixInstallerStrategy:
    """Download nix-installer and run it.

    Attributes:
        installer_tool: Tool description of the nix-installer artifact.
        no_confirm:     Pass ``--no-confirm``; otherwise the installer
                        prompts on the inherited terminal.
        init_none:      Pass ``--init none`` (WSL without systemd).
    """

    installer_tool: Tool
    no_confirm: bool = True
    init_none: bool = False
    run: Runner = field(default=run_subprocess, compare=False)

    def command(self, installer: Path) -> list[str]:
        cmd = [str(installer), "install"]
        if self.no_confirm:
            cmd.append("--no-confirm")
        if self.init_none:
            cmd += ["--init", "none"]
        return cmd

    def __call__(self, resolver: ArtifactResolver, tool: Tool, target: Target) -> Path:
        installer = resolver.resolve(self.installer_tool, target)
        logger.info("Running %s", installer)

        result = self.run(
            self.command(installer),
            interactive=not self.no_confirm,
            env=resolver.environ,
        )
        if not result["ok"]:
            raise ResolutionFailed(tool.name, f"nix-installer failed: {result['error']}")

        return _relocate(resolver, tool, "restart your shell or source the nix profile")


@dataclass(frozen=True)
class NixProfileStrategy:
    """Install a package with ``nix profile install``.

    Resolving nix itself goes through the same resolver, so on a bare
    machine this installs nix first.
    """

    installable: str
    nix_tool: Tool
    profile_bins: tuple[Path, ...] = ()
    run: Runner = field(default=run_subprocess, compare=False)

    def __call__(self, resolver: ArtifactResolver, tool: Tool, target: Target) -> Path:
        nix = resolver.resolve(self.nix_tool, target)
        logger.info("Installing %s via nix profile", self.installable)

        result = self.run(
            [
                str(nix), "profile", "install",
                "--extra-experimental-features", NIX_EXPERIMENTAL_FEATURES,
                self.installable,
            ],
            env=resolver.environ,
        )
        if not result["ok"]:
            detail = (result.get("stderr") or "").strip().splitlines()
            reason = detail[-1] if detail else result["error"]
            raise ResolutionFailed(tool.name, f"nix profile install {self.installable} failed: {reason}")

        # newly installed profile binaries must be visible to later stages
        prepend_to_path(resolver.environ, self.profile_bins)
        return _relocate(resolver, tool, "check `nix profile list`")
