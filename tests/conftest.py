"""
Shared test fixtures and configuration.

Every fixture keeps kindling inside ``tmp_path``: the home directory,
the system root (``/nix``...) and ``PATH`` are all relocated there,
and nothing touches the network.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from kindling.core.config.paths import KindlingPaths
from kindling.core.models.target import OsFamily, Target
from kindling.core.services.provision.resolver.artifact_resolver import ArtifactResolver


def make_executable(path: Path, body: str = "#!/bin/sh\nexit 0\n") -> Path:
    """Create an executable file (and its parents)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    path.chmod(0o755)
    return path


class RecordingFetcher:
    """Stand-in for ``fetch_artifact`` that writes a stub executable."""

    def __init__(self, fail_with: Exception | None = None):
        self.calls: list[tuple[str, str, Path]] = []
        self.fail_with = fail_with

    def __call__(self, tool: str, url: str, dest: Path) -> Path:
        self.calls.append((tool, url, dest))
        if self.fail_with is not None:
            raise self.fail_with
        return make_executable(dest)


class RecordingSource:
    """Stand-in for ``source_profile``: records scripts, sets a marker."""

    def __init__(self):
        self.sourced: list[Path] = []

    def __call__(self, script: Path, environ) -> bool:
        if not script.is_file():
            return False
        self.sourced.append(script)
        environ["NIX_PROFILES"] = str(script.parent)
        return True


@pytest.fixture
def paths(tmp_path: Path) -> KindlingPaths:
    """KindlingPaths rooted in the test's temp directory."""
    p = KindlingPaths.under(tmp_path)
    p.home.mkdir(parents=True)
    return p


@pytest.fixture
def linux_target() -> Target:
    return Target(arch="x86_64", os_family=OsFamily.LINUX, suffix="unknown-linux-musl")


@pytest.fixture
def darwin_target() -> Target:
    return Target(arch="aarch64", os_family=OsFamily.DARWIN, suffix="apple-darwin")


@pytest.fixture
def empty_path_dir(tmp_path: Path) -> Path:
    d = tmp_path / "empty-bin"
    d.mkdir()
    return d


@pytest.fixture
def fetcher() -> RecordingFetcher:
    return RecordingFetcher()


@pytest.fixture
def sourcer() -> RecordingSource:
    return RecordingSource()


@pytest.fixture
def resolver(empty_path_dir: Path, fetcher: RecordingFetcher, sourcer: RecordingSource) -> ArtifactResolver:
    """Resolver whose PATH holds nothing and whose downloads are fake."""
    return ArtifactResolver(
        environ={"PATH": str(empty_path_dir)},
        fetch=fetcher,
        source=sourcer,
    )


@pytest.fixture
def exe():
    """Factory creating executable stub files."""
    return make_executable
