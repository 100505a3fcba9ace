"""
Tests for shell and collaborator config writers.
"""

from pathlib import Path

import pytest

from kindling.core.services.provision.execution.shell_config import (
    ensure_shell_hook,
    ensure_tend_config,
    install_direnv_lib,
    shell_rc_and_hook,
    write_if_changed,
)


class TestShellHook:
    @pytest.mark.parametrize(
        "shell, rc, line",
        [
            ("/bin/bash", ".bashrc", 'eval "$(direnv hook bash)"'),
            ("/usr/bin/zsh", ".zshrc", 'eval "$(direnv hook zsh)"'),
            ("/opt/homebrew/bin/fish", ".config/fish/config.fish", "direnv hook fish | source"),
            ("/bin/tcsh", ".bashrc", 'eval "$(direnv hook bash)"'),
        ],
    )
    def test_rc_selection(self, paths, shell, rc, line):
        assert shell_rc_and_hook(paths, shell) == (paths.home / rc, line)

    def test_default_comes_from_shell_env(self, paths, monkeypatch):
        monkeypatch.setenv("SHELL", "/bin/zsh")
        rc, _ = shell_rc_and_hook(paths)
        assert rc == paths.home / ".zshrc"

    def test_appends_to_existing_rc(self, paths):
        rc = paths.home / ".bashrc"
        rc.write_text("export EDITOR=vim")

        result = ensure_shell_hook(paths, "bash")

        assert result["changed"] is True
        assert rc.read_text() == (
            "export EDITOR=vim\n\n# Added by kindling\neval \"$(direnv hook bash)\"\n"
        )

    def test_idempotent(self, paths):
        ensure_shell_hook(paths, "zsh")
        second = ensure_shell_hook(paths, "zsh")

        assert second["changed"] is False
        assert (paths.home / ".zshrc").read_text().count("direnv hook") == 1

    def test_creates_fish_config(self, paths):
        result = ensure_shell_hook(paths, "fish")
        assert result["ok"] is True
        assert (paths.home / ".config/fish/config.fish").read_text() == "direnv hook fish | source\n"

    def test_symlinked_rc_left_alone(self, paths, tmp_path: Path):
        managed = tmp_path / "nix-store-bashrc"
        managed.write_text("# managed\n")
        (paths.home / ".bashrc").symlink_to(managed)

        result = ensure_shell_hook(paths, "bash")

        assert result["changed"] is False
        assert "symlink" in result["note"]
        assert managed.read_text() == "# managed\n"


class TestWriteIfChanged:
    def test_write_and_skip(self, tmp_path: Path):
        target = tmp_path / "a" / "b.txt"
        assert write_if_changed(target, "x")["changed"] is True
        assert write_if_changed(target, "x")["changed"] is False
        assert write_if_changed(target, "y")["changed"] is True
        assert target.read_text() == "y"
        assert not (tmp_path / "a" / ".b.txt.tmp").exists()

    def test_mode(self, tmp_path: Path):
        target = tmp_path / "script.sh"
        write_if_changed(target, "#!/bin/sh\n", mode=0o755)
        assert target.stat().st_mode & 0o777 == 0o755

    def test_direnv_lib_location(self, paths):
        result = install_direnv_lib(paths, "use_kindling() { :; }\n")
        assert result["file"] == str(paths.config_home / "direnv" / "lib" / "kindling.sh")


class TestTendConfig:
    def test_starter_config(self, paths):
        result = ensure_tend_config(paths, "acme")

        assert result["changed"] is True
        text = paths.tend_config_file.read_text()
        assert "name: acme" in text
        assert f"base_dir: {paths.home}/code/github/acme" in text

    def test_never_overwrites(self, paths):
        paths.tend_config_file.parent.mkdir(parents=True)
        paths.tend_config_file.write_text("workspaces: []\n")

        result = ensure_tend_config(paths, "acme")

        assert result["changed"] is False
        assert paths.tend_config_file.read_text() == "workspaces: []\n"
