"""
Service models — the daemon deployment description and what the
service compiler produces from it.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from kindling.core.models.config import DaemonConfig
from kindling.core.models.target import OsFamily


class GeneratedFile(BaseModel):
    """A file produced by a generator.

    Attributes:
        path:    Destination; relative paths are under the home directory.
        content: Full file content.
        reason:  Why this file was generated.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    content: str
    reason: str = ""


class DaemonSpec(BaseModel):
    """Everything needed to run the daemon under a user supervisor.

    ``args`` defaults to ``daemon --config <config_path>`` when empty.
    """

    model_config = ConfigDict(frozen=True)

    binary_path: str
    config_path: str
    log_dir: str
    os_family: OsFamily
    config: DaemonConfig = Field(default_factory=DaemonConfig)
    args: tuple[str, ...] = ()
    name: str = "kindling-daemon"
    label: str = "io.pleme.kindling-daemon"
    description: str = "Kindling daemon — Nix management REST/GraphQL API"

    @property
    def effective_args(self) -> tuple[str, ...]:
        return self.args or ("daemon", "--config", self.config_path)

    @property
    def stdout_log(self) -> str:
        return f"{self.log_dir}/{self.name}.out.log"

    @property
    def stderr_log(self) -> str:
        return f"{self.log_dir}/{self.name}.err.log"


class AppleAgentArtifact(BaseModel):
    """launchd user agent plus its newsyslog rotation rule."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["launchd"] = "launchd"
    agent: GeneratedFile
    rotation: GeneratedFile

    @property
    def files(self) -> list[GeneratedFile]:
        return [self.agent, self.rotation]


class LinuxUnitArtifact(BaseModel):
    """systemd user unit. Log rotation is left to journald."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["systemd"] = "systemd"
    unit: GeneratedFile

    @property
    def files(self) -> list[GeneratedFile]:
        return [self.unit]


SupervisorArtifact = Annotated[
    Union[AppleAgentArtifact, LinuxUnitArtifact],
    Field(discriminator="kind"),
]


class ServiceArtifacts(BaseModel):
    """Compiler output: supervisor files plus the rendered daemon config."""

    model_config = ConfigDict(frozen=True)

    supervisor: SupervisorArtifact
    config: GeneratedFile

    @property
    def files(self) -> list[GeneratedFile]:
        return [*self.supervisor.files, self.config]
