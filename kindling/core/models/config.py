"""
Kindling configuration model — the schema of ``config.yaml``.

Both the CLI config (``~/.config/kindling/config.yaml``) and the
rendered daemon config share this schema; the daemon only reads the
``daemon`` sub-table.
"""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_HTTP_ADDR = "127.0.0.1:9100"
DEFAULT_GRPC_ADDR = "127.0.0.1:9101"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_TELEMETRY_ENDPOINT = "http://localhost:8686"
DEFAULT_PUSH_INTERVAL_SECS = 60


class Backend(str, Enum):
    """Which nix-installer distribution to download."""

    UPSTREAM = "upstream"
    DETERMINATE = "determinate"


class TelemetryConfig(BaseModel):
    """Telemetry push settings.

    An empty ``node_id`` is a contract with the daemon: it substitutes
    the machine hostname at runtime. Nothing upstream fills it in.
    """

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False
    endpoint_url: str = Field(
        default=DEFAULT_TELEMETRY_ENDPOINT,
        validation_alias=AliasChoices("endpoint_url", "vector_url"),
    )
    push_interval_secs: int = Field(default=DEFAULT_PUSH_INTERVAL_SECS, ge=1)
    node_id: str = ""


class GcConfig(BaseModel):
    """Nix store garbage collection schedule (0 disables it)."""

    schedule_secs: int = Field(default=0, ge=0)


class DaemonConfig(BaseModel):
    """Typed options for ``kindling daemon``."""

    http_addr: str = DEFAULT_HTTP_ADDR
    grpc_addr: str = DEFAULT_GRPC_ADDR
    log_level: str = DEFAULT_LOG_LEVEL
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    gc: GcConfig = Field(default_factory=GcConfig)


class KindlingConfig(BaseModel):
    """Root of ``config.yaml``.

    ``auto_install`` is tri-state: ``None`` means the user has never
    been asked, which makes ``kindling ensure`` prompt once.
    """

    auto_install: bool | None = None
    backend: Backend = Backend.UPSTREAM
    daemon: DaemonConfig | None = None

    def daemon_or_default(self) -> DaemonConfig:
        return self.daemon or DaemonConfig()
