"""
Tests for the nix use cases — install, check, ensure, uninstall.
"""

from __future__ import annotations

import pytest

from kindling.core.config.loader import load_config
from kindling.core.errors import ConsentDenied, KindlingError, ResolutionFailed
from kindling.core.models.config import Backend
from kindling.core.models.tool import Tool
from kindling.core.services.provision.orchestration import nix_ops

NIX_BIN = "/nix/var/nix/profiles/default/bin"


def _version(v):
    return lambda name, path: v


@pytest.fixture
def installed_nix(paths, exe):
    return exe(paths.system(f"{NIX_BIN}/nix"))


@pytest.fixture
def fake_install(monkeypatch, paths, exe):
    """Replace resolve() so 'installing' nix drops a stub binary."""
    calls = []

    def resolve(self, tool: Tool, target):
        calls.append((tool.name, tool.installer.no_confirm, tool.installer.installer_tool.url_template))
        return exe(paths.system(f"{NIX_BIN}/nix"))

    monkeypatch.setattr(
        "kindling.core.services.provision.resolver.artifact_resolver.ArtifactResolver.resolve",
        resolve,
    )
    return calls


class TestCheck:
    def test_nix_missing(self, paths, linux_target, resolver):
        result = nix_ops.check(paths, linux_target, resolver, version_probe=_version(None))
        assert result["ok"] is False
        assert result["nix"] == {"installed": False, "path": None, "version": None}
        assert result["target"] == "x86_64-unknown-linux-musl"
        assert result["nix_system"] == "x86_64-linux"

    def test_nix_present(self, paths, linux_target, resolver, installed_nix):
        result = nix_ops.check(paths, linux_target, resolver, version_probe=_version("2.24.12"))
        assert result["ok"] is True
        assert result["nix"]["path"] == str(installed_nix)
        assert result["nix"]["version"] == "2.24.12"


class TestInstall:
    def test_already_installed_is_noop(self, paths, linux_target, resolver, installed_nix, fetcher):
        result = nix_ops.install_nix(paths, linux_target, resolver)
        assert result == {"ok": True, "already_installed": True, "path": str(installed_nix)}
        assert fetcher.calls == []

    def test_backend_selects_installer(self, paths, linux_target, resolver, fake_install):
        result = nix_ops.install_nix(
            paths, linux_target, resolver, backend=Backend.DETERMINATE, no_confirm=True
        )
        assert result["already_installed"] is False
        (name, no_confirm, url), = fake_install
        assert name == "nix"
        assert no_confirm is True
        assert "install.determinate.systems" in url


class TestEnsure:
    def test_present_nix_satisfies(self, paths, linux_target, resolver, installed_nix):
        result = nix_ops.ensure_nix(
            paths, linux_target, resolver, version=">=2.24", version_probe=_version("2.24.12")
        )
        assert result["ok"] is True
        assert result["installed_now"] is False

    def test_too_old_nix_rejected(self, paths, linux_target, resolver, installed_nix):
        with pytest.raises(ResolutionFailed, match="does not satisfy"):
            nix_ops.ensure_nix(
                paths, linux_target, resolver, version=">=2.24", version_probe=_version("2.18.1")
            )

    def test_malformed_constraint(self, paths, linux_target, resolver):
        with pytest.raises(KindlingError, match="Invalid version constraint"):
            nix_ops.ensure_nix(paths, linux_target, resolver, version=">=banana")

    def test_env_auto_install(self, paths, linux_target, resolver, fake_install):
        result = nix_ops.ensure_nix(
            paths,
            linux_target,
            resolver,
            environ={"KINDLING_AUTO_INSTALL": "1"},
            confirm=lambda p: pytest.fail("should not prompt"),
            version_probe=_version("2.24.0"),
        )
        assert result["installed_now"] is True
        assert len(fake_install) == 1

    def test_config_auto_install_true(self, paths, linux_target, resolver, fake_install):
        paths.config_file.parent.mkdir(parents=True)
        paths.config_file.write_text("auto_install: true\n")

        nix_ops.ensure_nix(
            paths, linux_target, resolver, environ={}, version_probe=_version(None),
            confirm=lambda p: pytest.fail("should not prompt"),
        )
        assert len(fake_install) == 1

    def test_config_auto_install_false(self, paths, linux_target, resolver, fake_install):
        paths.config_file.parent.mkdir(parents=True)
        paths.config_file.write_text("auto_install: false\n")

        with pytest.raises(ConsentDenied, match="kindling install"):
            nix_ops.ensure_nix(paths, linux_target, resolver, environ={})
        assert fake_install == []

    def test_first_run_prompts_and_remembers_yes(self, paths, linux_target, resolver, fake_install):
        prompts = []

        def yes(prompt):
            prompts.append(prompt)
            return True

        nix_ops.ensure_nix(paths, linux_target, resolver, environ={}, confirm=yes, version_probe=_version(None))

        assert len(prompts) == 1
        assert load_config(paths.config_file).auto_install is True
        assert len(fake_install) == 1

    def test_first_run_prompts_and_remembers_no(self, paths, linux_target, resolver, fake_install):
        with pytest.raises(ConsentDenied):
            nix_ops.ensure_nix(paths, linux_target, resolver, environ={}, confirm=lambda p: False)

        assert load_config(paths.config_file).auto_install is False
        assert fake_install == []

    def test_no_confirm_overrides_config(self, paths, linux_target, resolver, fake_install):
        paths.config_file.parent.mkdir(parents=True)
        paths.config_file.write_text("auto_install: false\n")

        nix_ops.ensure_nix(
            paths, linux_target, resolver, no_confirm=True, environ={}, version_probe=_version(None)
        )
        assert len(fake_install) == 1


class TestUninstall:
    def test_no_receipt(self, paths):
        with pytest.raises(ResolutionFailed, match="no install receipt"):
            nix_ops.uninstall_nix(paths, run=lambda *a, **k: pytest.fail("should not run"))

    def test_runs_receipt(self, paths, exe):
        receipt = exe(paths.system("/nix/nix-installer"))
        calls = []

        def run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            return {"ok": True}

        result = nix_ops.uninstall_nix(paths, no_confirm=True, run=run)

        assert result["receipt"] == str(receipt)
        assert calls == [([str(receipt), "uninstall", "--no-confirm"], {"interactive": False})]

    def test_interactive_uninstall(self, paths, exe):
        exe(paths.system(f"{NIX_BIN}/nix-installer"))
        calls = []

        def run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            return {"ok": True}

        nix_ops.uninstall_nix(paths, run=run)
        assert calls[0][0][-1] == "uninstall"
        assert calls[0][1] == {"interactive": True}

    def test_failure(self, paths, exe):
        exe(paths.system("/nix/nix-installer"))
        with pytest.raises(ResolutionFailed, match="uninstall failed"):
            nix_ops.uninstall_nix(
                paths, no_confirm=True, run=lambda cmd, **kw: {"ok": False, "error": "exit 1"}
            )
