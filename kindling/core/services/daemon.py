"""
Daemon runtime — the part of ``kindling daemon`` that lives here.

The daemon's API surface belongs to a separate service; this module
loads the rendered config, fills in runtime defaults, and keeps the
nix store garbage-collection schedule.

    config file → DaemonConfig (+ CLI overrides) → node_id = hostname
    gc.schedule_secs > 0 → background thread runs ``nix store gc``
"""

from __future__ import annotations

import logging
import socket
import threading
from pathlib import Path
from typing import Any, Callable

from kindling.core.config.loader import ConfigError, load_config
from kindling.core.models.config import DaemonConfig
from kindling.core.services.provision.execution.subprocess_runner import run_subprocess

logger = logging.getLogger(__name__)

GC_COMMAND = ["nix", "store", "gc"]


def prepare_daemon_config(
    config_path: Path,
    *,
    http_addr: str | None = None,
    grpc_addr: str | None = None,
    log_level: str | None = None,
    required: bool = False,
    hostname: Callable[[], str] = socket.gethostname,
) -> DaemonConfig:
    """Load the daemon config and apply command-line overrides.

    An empty ``telemetry.node_id`` becomes the machine hostname. A
    missing file means defaults unless ``required`` is set, which the
    CLI does for a path given with ``--config``.

    Raises:
        ConfigError: The config file is invalid, or ``required`` and missing.
    """
    if required and not config_path.is_file():
        raise ConfigError(f"Daemon config not found: {config_path}")

    daemon = load_config(config_path).daemon_or_default()

    overrides = {
        key: value
        for key, value in (
            ("http_addr", http_addr),
            ("grpc_addr", grpc_addr),
            ("log_level", log_level),
        )
        if value
    }
    if overrides:
        daemon = daemon.model_copy(update=overrides)

    if not daemon.telemetry.node_id:
        telemetry = daemon.telemetry.model_copy(update={"node_id": hostname()})
        daemon = daemon.model_copy(update={"telemetry": telemetry})

    return daemon


def collect_garbage(run: Callable[..., dict[str, Any]] = run_subprocess) -> dict[str, Any]:
    """One ``nix store gc`` pass."""
    logger.info("Running nix store gc")
    result = run(GC_COMMAND)
    if result["ok"]:
        logger.info("nix store gc finished in %dms", result.get("elapsed_ms", 0))
    else:
        logger.warning("nix store gc failed: %s", result["error"])
    return result


def _gc_loop(interval: float, stop: threading.Event, run: Callable[..., dict[str, Any]]) -> None:
    # wait() returns True once stop is set
    while not stop.wait(interval):
        collect_garbage(run)


def start_gc_loop(
    config: DaemonConfig,
    stop: threading.Event,
    *,
    run: Callable[..., dict[str, Any]] = run_subprocess,
) -> threading.Thread | None:
    """Start the GC thread, or return ``None`` when GC is disabled."""
    interval = config.gc.schedule_secs
    if interval <= 0:
        logger.info("Nix store GC disabled")
        return None

    t = threading.Thread(
        target=_gc_loop,
        args=(float(interval), stop, run),
        daemon=True,
        name="kindling-gc",
    )
    t.start()
    logger.info("Nix store GC scheduled every %ds", interval)
    return t


def run_daemon(
    config: DaemonConfig,
    stop: threading.Event,
    *,
    run: Callable[..., dict[str, Any]] = run_subprocess,
) -> None:
    """Block until ``stop`` is set, running scheduled GC meanwhile."""
    logger.info(
        "kindling daemon up (http %s, grpc %s, node %s)",
        config.http_addr,
        config.grpc_addr,
        config.telemetry.node_id,
    )
    if config.telemetry.enabled:
        logger.info(
            "Telemetry target %s every %ds",
            config.telemetry.endpoint_url,
            config.telemetry.push_interval_secs,
        )

    gc_thread = start_gc_loop(config, stop, run=run)
    stop.wait()
    if gc_thread is not None:
        gc_thread.join(timeout=5)
    logger.info("kindling daemon stopped")
