"""
L2 Resolver — Artifact resolution.

One fallback chain, used by every stage, by ``kindling ensure`` and by
the shell fast path:

    1. PATH lookup            → return
    2. known locations        → activate, return
    3. per-user cache         → return
    4. install (download or the tool's installer) → return

Each step runs only when the previous one found nothing. Steps 1–3
never write to disk, so resolving an already-present tool any number
of times leaves the filesystem untouched.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, MutableMapping

from kindling.core.errors import ResolutionFailed
from kindling.core.models.target import Target
from kindling.core.models.tool import Tool
from kindling.core.services.provision.execution.download import fetch_artifact
from kindling.core.services.provision.execution.environment import (
    prepend_to_path,
    source_profile,
)

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, str, Path], Path]


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


class ArtifactResolver:
    """Resolve tools against one environment.

    Args:
        environ: Environment whose ``PATH`` is searched and which
            activation mutates (default: ``os.environ``).
        which: ``PATH`` lookup; defaults to ``shutil.which`` over
            ``environ["PATH"]``.
        is_executable: Probe used for known locations and the cache.
        fetch: Downloader ``(tool, url, dest) -> path``.
        source: Profile-script sourcer ``(script, environ) -> bool``.
    """

    def __init__(
        self,
        *,
        environ: MutableMapping[str, str] | None = None,
        which: Callable[[str], str | None] | None = None,
        is_executable: Callable[[Path], bool] = _is_executable,
        fetch: Fetcher = fetch_artifact,
        source: Callable[[Path, MutableMapping[str, str]], bool] = source_profile,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self._which = which or self._which_on_path
        self._is_executable = is_executable
        self._fetch = fetch
        self._source = source

    # ── Public API ──────────────────────────────────────────────

    def resolve(self, tool: Tool, target: Target) -> Path:
        """Return a usable executable for ``tool``, installing if needed.

        Raises:
            ResolutionFailed: Nothing found and the install step failed
                (``DownloadFailed`` for network fetch failures).
        """
        found = self.locate(tool)
        if found is not None:
            return found

        logger.info("%s not found, installing for %s", tool.name, target)
        path = self._install(tool, target)
        if not self._is_executable(path):
            raise ResolutionFailed(tool.name, f"install finished but {path} is not executable")
        return path

    def locate(self, tool: Tool) -> Path | None:
        """Steps 1–3 only: find ``tool`` without installing anything."""
        on_path = self._which(tool.name)
        if on_path:
            logger.debug("%s found on PATH at %s", tool.name, on_path)
            return Path(on_path)

        for candidate in tool.candidates:
            if self._is_executable(candidate):
                logger.debug("%s found at known location %s", tool.name, candidate)
                self.activate(tool, candidate.parent)
                return candidate

        cached = tool.cache_path
        if cached is not None and self._is_executable(cached):
            logger.debug("%s found in cache at %s", tool.name, cached)
            return cached

        return None

    def activate(self, tool: Tool, bin_dir: Path) -> None:
        """Make ``bin_dir`` and the tool's profile visible to children."""
        prepend_to_path(self.environ, [bin_dir])
        if tool.profile_script is not None:
            self.source(tool.profile_script)

    def source(self, script: Path) -> bool:
        """Source ``script`` into this resolver's environment."""
        return self._source(script, self.environ)

    # ── Internals ───────────────────────────────────────────────

    def _which_on_path(self, name: str) -> str | None:
        return shutil.which(name, path=self.environ.get("PATH", ""))

    def _install(self, tool: Tool, target: Target) -> Path:
        if tool.installer is not None:
            return tool.installer(self, tool, target)

        url = tool.download_url(target)
        dest = tool.cache_path
        if url is None or dest is None:
            raise ResolutionFailed(tool.name, "not installed and no download source is known")
        return self._fetch(tool.name, url, dest)
