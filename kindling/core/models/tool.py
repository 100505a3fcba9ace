"""
Tool model — how to find, fetch and activate one managed executable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from kindling.core.models.target import Target

if TYPE_CHECKING:
    from kindling.core.services.provision.resolver.artifact_resolver import (
        ArtifactResolver,
    )


class Installer(Protocol):
    """Step-4 strategy for tools that are not a single downloaded binary.

    Returns the path of the usable executable after installing, or
    raises ``ResolutionFailed``.
    """

    def __call__(self, resolver: ArtifactResolver, tool: Tool, target: Target) -> Path: ...


@dataclass(frozen=True)
class Tool:
    """A managed tool description.

    Attributes:
        name:           Executable name, looked up on ``PATH``.
        candidates:     Known install locations, probed in this order.
        install_dir:    Per-user cache directory; downloads land here.
        url_template:   Download URL with ``{tool}``, ``{target}``,
                        ``{nix_system}`` and ``{artifact}`` placeholders.
        profile_script: Script sourced when the tool is activated from a
                        known location.
        installer:      Custom install strategy (overrides download).
    """

    name: str
    candidates: tuple[Path, ...] = ()
    install_dir: Path | None = None
    url_template: str | None = None
    profile_script: Path | None = None
    installer: Installer | None = field(default=None, compare=False)

    @property
    def cache_path(self) -> Path | None:
        if self.install_dir is None:
            return None
        return self.install_dir / self.name

    def artifact_name(self, target: Target) -> str:
        return f"{self.name}-{target.triple}"

    def download_url(self, target: Target) -> str | None:
        if not self.url_template:
            return None
        return self.url_template.format(
            tool=self.name,
            target=target.triple,
            nix_system=target.nix_system,
            artifact=self.artifact_name(target),
        )
