"""
Tests for the bootstrap chain — stage list and configure actions.
"""

from __future__ import annotations

import pytest

from kindling.core.errors import StageFailed, UnsupportedPlatform
from kindling.core.models.config import KindlingConfig
from kindling.core.services.provision.orchestration import bootstrap as bootstrap_mod
from kindling.core.services.provision.orchestration.bootstrap import (
    BootstrapOptions,
    build_bootstrap_stages,
    run_bootstrap,
)

NIX_BIN = "/nix/var/nix/profiles/default/bin"

ALL_SKIPPED = BootstrapOptions(skip_nix=True, skip_direnv=True, skip_tend=True, skip_daemon=True)


@pytest.fixture
def machine(paths, exe):
    """A machine where nix, direnv, tend and kindling are already present."""
    for name in ("nix", "direnv", "tend", "kindling"):
        exe(paths.system(f"{NIX_BIN}/{name}"))
    return paths


@pytest.fixture
def fake_run(monkeypatch):
    calls = []

    def run(cmd, **kwargs):
        calls.append(list(cmd))
        return {"ok": True, "stdout": "", "elapsed_ms": 1}

    monkeypatch.setattr(bootstrap_mod, "run_subprocess", run)
    return calls


class TestStageList:
    def test_fixed_order_and_policies(self, paths, linux_target):
        stages = build_bootstrap_stages(paths, KindlingConfig(), linux_target, BootstrapOptions())

        assert [(s.name, s.order, s.on_failure) for s in stages] == [
            ("nix", 1, "abort"),
            ("direnv", 2, "continue"),
            ("tend", 3, "continue"),
            ("daemon", 4, "continue"),
        ]
        assert [s.needs_consent for s in stages] == [True, False, False, False]
        assert [s.tool.name for s in stages] == ["nix", "direnv", "tend", "kindling"]

    def test_skip_flags(self, paths, linux_target):
        options = BootstrapOptions(skip_nix=True, skip_tend=True)
        stages = build_bootstrap_stages(paths, KindlingConfig(), linux_target, options)
        assert {s.name: s.skip for s in stages} == {
            "nix": True,
            "direnv": False,
            "tend": True,
            "daemon": False,
        }


class TestRunBootstrap:
    def test_all_skipped_writes_nothing(self, paths, linux_target, resolver, fetcher, tmp_path):
        before = sorted(tmp_path.rglob("*"))

        report = run_bootstrap(paths, ALL_SKIPPED, resolver=resolver, target=linux_target)

        assert report.actions == []
        assert [r.status for r in report.results] == ["skipped"] * 4
        assert fetcher.calls == []
        assert sorted(tmp_path.rglob("*")) == before

    def test_configured_machine(self, machine, linux_target, resolver, fetcher, fake_run):
        options = BootstrapOptions(no_confirm=True, shell="/bin/zsh", org="acme")

        report = run_bootstrap(machine, options, resolver=resolver, target=linux_target)

        assert report.status == "ok"
        assert fetcher.calls == []

        zshrc = (machine.home / ".zshrc").read_text()
        assert 'eval "$(direnv hook zsh)"' in zshrc
        assert "use_kindling()" in machine.direnv_lib_file.read_text()

        assert "org: acme" in machine.tend_config_file.read_text()
        assert fake_run == [[str(machine.system(f"{NIX_BIN}/tend")), "sync"]]

        unit = machine.home / ".config/systemd/user/kindling-daemon.service"
        assert unit.is_file()
        assert machine.daemon_config_file.is_file()
        assert machine.linux_log_dir.is_dir()

    def test_second_run_changes_nothing(self, machine, linux_target, resolver, fake_run):
        options = BootstrapOptions(no_confirm=True, shell="/bin/bash", skip_tend=True)
        run_bootstrap(machine, options, resolver=resolver, target=linux_target)

        report = run_bootstrap(machine, options, resolver=resolver, target=linux_target)

        assert report.actions == []
        assert (machine.home / ".bashrc").read_text().count("direnv hook") == 1

    def test_tend_sync_skipped_without_config(self, machine, linux_target, resolver, fake_run):
        options = BootstrapOptions(no_confirm=True, skip_direnv=True, skip_daemon=True)
        report = run_bootstrap(machine, options, resolver=resolver, target=linux_target)
        assert fake_run == []
        assert report.status == "ok"

    def test_failed_tend_sync_continues(self, machine, linux_target, resolver, monkeypatch):
        monkeypatch.setattr(
            bootstrap_mod,
            "run_subprocess",
            lambda cmd, **kw: {"ok": False, "error": "tend exited with status 2", "returncode": 2},
        )
        options = BootstrapOptions(no_confirm=True, shell="/bin/bash", org="acme")

        report = run_bootstrap(machine, options, resolver=resolver, target=linux_target)

        assert report.status == "partial"
        assert [r.name for r in report.failed] == ["tend"]
        assert "tend sync failed" in report.failed[0].error
        assert report.results[-1].name == "daemon"
        assert report.results[-1].status == "ok"

    def test_declined_nix_aborts_before_direnv(self, paths, linux_target, resolver, fetcher):
        with pytest.raises(StageFailed) as exc:
            run_bootstrap(
                paths,
                BootstrapOptions(),
                resolver=resolver,
                target=linux_target,
                confirm=lambda prompt: False,
            )

        assert exc.value.stage == "nix"
        assert "kindling install" in str(exc.value)
        assert fetcher.calls == []
        assert not (paths.home / ".bashrc").exists()

    def test_unsupported_platform_before_any_stage(self, paths, resolver, fetcher, monkeypatch):
        monkeypatch.setattr("platform.machine", lambda: "riscv64")
        monkeypatch.setattr("platform.system", lambda: "Linux")

        with pytest.raises(UnsupportedPlatform):
            run_bootstrap(paths, BootstrapOptions(no_confirm=True), resolver=resolver)
        assert fetcher.calls == []
