"""
Tests for the daemon runtime — config preparation and the GC schedule.
"""

from __future__ import annotations

import threading

import pytest

from kindling.core.config.loader import ConfigError
from kindling.core.models.config import DaemonConfig, GcConfig, TelemetryConfig
from kindling.core.services.daemon import (
    GC_COMMAND,
    collect_garbage,
    prepare_daemon_config,
    run_daemon,
    start_gc_loop,
)


class TestPrepareDaemonConfig:
    def test_missing_file_defaults_and_hostname(self, tmp_path):
        config = prepare_daemon_config(tmp_path / "daemon.yaml", hostname=lambda: "devbox")
        assert config.http_addr == "127.0.0.1:9100"
        assert config.telemetry.node_id == "devbox"

    def test_required_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="Daemon config not found"):
            prepare_daemon_config(tmp_path / "typo.yaml", required=True)

    def test_required_existing_file_loads(self, tmp_path):
        path = tmp_path / "daemon.yaml"
        path.write_text("daemon:\n  http_addr: 0.0.0.0:2\n")
        config = prepare_daemon_config(path, required=True, hostname=lambda: "h")
        assert config.http_addr == "0.0.0.0:2"

    def test_explicit_node_id_kept(self, tmp_path):
        path = tmp_path / "daemon.yaml"
        path.write_text("daemon:\n  telemetry:\n    node_id: rack-7\n")
        config = prepare_daemon_config(path, hostname=lambda: "devbox")
        assert config.telemetry.node_id == "rack-7"

    def test_overrides(self, tmp_path):
        path = tmp_path / "daemon.yaml"
        path.write_text("daemon:\n  http_addr: 0.0.0.0:1\n  log_level: warn\n")
        config = prepare_daemon_config(
            path, grpc_addr="127.0.0.1:7000", log_level="debug", hostname=lambda: "h"
        )
        assert config.http_addr == "0.0.0.0:1"
        assert config.grpc_addr == "127.0.0.1:7000"
        assert config.log_level == "debug"


class TestGarbageCollection:
    def test_collect_runs_nix_store_gc(self):
        calls = []
        collect_garbage(lambda cmd, **kw: calls.append(cmd) or {"ok": True, "elapsed_ms": 3})
        assert calls == [GC_COMMAND]

    def test_disabled_schedule_starts_nothing(self):
        assert start_gc_loop(DaemonConfig(), threading.Event()) is None

    def test_loop_runs_until_stopped(self):
        stop = threading.Event()
        ran = threading.Event()

        def run(cmd, **kwargs):
            ran.set()
            stop.set()
            return {"ok": True}

        config = DaemonConfig(gc=GcConfig(schedule_secs=1))
        thread = start_gc_loop(config, stop, run=run)

        assert ran.wait(timeout=5)
        thread.join(timeout=5)
        assert not thread.is_alive()

    def test_run_daemon_returns_when_stopped(self):
        stop = threading.Event()
        stop.set()
        config = DaemonConfig(telemetry=TelemetryConfig(enabled=True, node_id="n"))
        run_daemon(config, stop, run=lambda *a, **k: {"ok": True})
