"""
Domain models for kindling.

    from kindling.core.models import KindlingConfig, Target, Tool, DaemonSpec
"""

from kindling.core.models.config import (
    Backend,
    DaemonConfig,
    GcConfig,
    KindlingConfig,
    TelemetryConfig,
)
from kindling.core.models.service import (
    AppleAgentArtifact,
    DaemonSpec,
    GeneratedFile,
    LinuxUnitArtifact,
    ServiceArtifacts,
)
from kindling.core.models.target import OsFamily, Target
from kindling.core.models.tool import Installer, Tool

__all__ = [
    # config.py
    "Backend",
    "DaemonConfig",
    "GcConfig",
    "KindlingConfig",
    "TelemetryConfig",
    # service.py
    "AppleAgentArtifact",
    "DaemonSpec",
    "GeneratedFile",
    "LinuxUnitArtifact",
    "ServiceArtifacts",
    # target.py
    "OsFamily",
    "Target",
    # tool.py
    "Installer",
    "Tool",
]
