"""
Service compiler — one daemon description in, OS-native supervisor
files out.

    darwin → launchd user agent + newsyslog rotation rule
    linux  → systemd user unit (journald handles rotation)

Both also get the rendered daemon config. Output is a pure function of
the input: same ``DaemonSpec`` and OS family, byte-identical files.
"""

from __future__ import annotations

import plistlib
import shlex
from pathlib import Path

import yaml

from kindling.core.config.paths import KindlingPaths
from kindling.core.models.config import DaemonConfig
from kindling.core.models.service import (
    AppleAgentArtifact,
    DaemonSpec,
    GeneratedFile,
    LinuxUnitArtifact,
    ServiceArtifacts,
)
from kindling.core.models.target import OsFamily

# newsyslog policy for the daemon's logs
ROTATION_MODE = "644"
ROTATION_COUNT = 3
ROTATION_SIZE_KB = 10240
ROTATION_WHEN = "*"
ROTATION_FLAGS = "GN"

NEWSYSLOG_PATH = ".newsyslog.d/kindling.conf"
LAUNCH_AGENTS_DIR = "Library/LaunchAgents"
SYSTEMD_USER_DIR = ".config/systemd/user"


def render_daemon_config(config: DaemonConfig) -> str:
    """Render the config file the daemon is started with.

    Empty ``telemetry.node_id`` is written as-is; the daemon fills in
    the hostname when it starts.
    """
    data = {
        "auto_install": True,
        "backend": "upstream",
        "daemon": config.model_dump(mode="json"),
    }
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)


def render_launch_agent(spec: DaemonSpec) -> str:
    agent = {
        "Label": spec.label,
        "ProgramArguments": [spec.binary_path, *spec.effective_args],
        "RunAtLoad": True,
        "KeepAlive": True,
        "ProcessType": "Background",
        "StandardOutPath": spec.stdout_log,
        "StandardErrorPath": spec.stderr_log,
    }
    return plistlib.dumps(agent, sort_keys=True).decode("utf-8")


def render_newsyslog(spec: DaemonSpec) -> str:
    lines = [
        "# logfilename  [owner:group]  mode count size when flags [/pid_file] [sig_num]",
    ]
    for log in (spec.stdout_log, spec.stderr_log):
        lines.append(
            f"{log}  {ROTATION_MODE}  {ROTATION_COUNT}  {ROTATION_SIZE_KB}  "
            f"{ROTATION_WHEN}  {ROTATION_FLAGS}"
        )
    return "\n".join(lines) + "\n"


def render_systemd_unit(spec: DaemonSpec) -> str:
    exec_start = shlex.join([spec.binary_path, *spec.effective_args])
    return (
        "[Unit]\n"
        f"Description={spec.description}\n"
        "\n"
        "[Service]\n"
        "Type=simple\n"
        f"ExecStart={exec_start}\n"
        "Restart=always\n"
        "RestartSec=5\n"
        "\n"
        "[Install]\n"
        "WantedBy=default.target\n"
    )


def compile_service(spec: DaemonSpec, os_family: OsFamily | None = None) -> ServiceArtifacts:
    """Compile ``spec`` into supervisor artifacts for ``os_family``.

    Args:
        spec: Daemon deployment description.
        os_family: Overrides ``spec.os_family`` when given.

    Returns:
        ``ServiceArtifacts`` whose ``supervisor`` is an
        ``AppleAgentArtifact`` (darwin) or ``LinuxUnitArtifact`` (linux).
    """
    family = OsFamily(os_family or spec.os_family)

    config_file = GeneratedFile(
        path=spec.config_path,
        content=render_daemon_config(spec.config),
        reason="daemon configuration",
    )

    if family is OsFamily.DARWIN:
        supervisor: AppleAgentArtifact | LinuxUnitArtifact = AppleAgentArtifact(
            agent=GeneratedFile(
                path=f"{LAUNCH_AGENTS_DIR}/{spec.label}.plist",
                content=render_launch_agent(spec),
                reason="launchd user agent",
            ),
            rotation=GeneratedFile(
                path=NEWSYSLOG_PATH,
                content=render_newsyslog(spec),
                reason="newsyslog rotation for daemon logs",
            ),
        )
    else:
        supervisor = LinuxUnitArtifact(
            unit=GeneratedFile(
                path=f"{SYSTEMD_USER_DIR}/{spec.name}.service",
                content=render_systemd_unit(spec),
                reason="systemd user unit",
            ),
        )

    return ServiceArtifacts(supervisor=supervisor, config=config_file)


def daemon_spec_for(
    paths: KindlingPaths,
    binary_path: Path | str,
    config: DaemonConfig,
    os_family: OsFamily,
) -> DaemonSpec:
    """Standard per-user deployment of the daemon on ``os_family``."""
    log_dir = paths.darwin_log_dir if os_family is OsFamily.DARWIN else paths.linux_log_dir
    return DaemonSpec(
        binary_path=str(binary_path),
        config_path=str(paths.daemon_config_file),
        log_dir=str(log_dir),
        os_family=os_family,
        config=config,
    )
