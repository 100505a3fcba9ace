"""
Per-user paths — the only process-wide state kindling touches.

Everything that reads or writes under ``$HOME`` receives a
``KindlingPaths`` value instead of computing locations itself, so
tests can point the whole tool at a ``tmp_path``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping


@dataclass(frozen=True)
class KindlingPaths:
    """Resolved per-user locations.

    Attributes:
        home:        User home directory.
        config_home: XDG config root (``~/.config`` unless overridden).
        system_root: Prefix for system-wide locations such as ``/nix``.
        config_override: Explicit config file (``kindling --config``).
    """

    home: Path
    config_home: Path
    system_root: Path = Path("/")
    config_override: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> KindlingPaths:
        """Build paths from ``HOME`` / ``XDG_CONFIG_HOME``."""
        env = os.environ if environ is None else environ
        home = Path(env.get("HOME") or Path.home())
        xdg = env.get("XDG_CONFIG_HOME")
        config_home = Path(xdg) if xdg else home / ".config"
        return cls(home=home, config_home=config_home)

    @classmethod
    def under(cls, root: Path) -> KindlingPaths:
        """Paths rooted entirely inside ``root`` (home is ``root/home``)."""
        home = root / "home"
        return cls(home=home, config_home=home / ".config", system_root=root)

    def system(self, path: str) -> Path:
        """An absolute system path (``/nix/...``) under ``system_root``."""
        return self.system_root / path.lstrip("/")

    # ── kindling ────────────────────────────────────────────────

    @property
    def config_dir(self) -> Path:
        return self.config_home / "kindling"

    @property
    def config_file(self) -> Path:
        if self.config_override is not None:
            return self.config_override
        return self.config_dir / "config.yaml"

    @property
    def daemon_config_file(self) -> Path:
        return self.config_dir / "daemon.yaml"

    @property
    def install_dir(self) -> Path:
        """Per-user binary cache (downloaded artifacts land here)."""
        return self.home / ".local" / "bin"

    @property
    def linux_log_dir(self) -> Path:
        return self.home / ".local" / "share" / "kindling" / "logs"

    @property
    def darwin_log_dir(self) -> Path:
        return self.home / "Library" / "Logs"

    # ── Collaborators ───────────────────────────────────────────

    @property
    def direnv_lib_dir(self) -> Path:
        return self.config_home / "direnv" / "lib"

    @property
    def direnv_lib_file(self) -> Path:
        return self.direnv_lib_dir / "kindling.sh"

    @property
    def tend_config_file(self) -> Path:
        return self.config_home / "tend" / "config.yaml"

    @property
    def nix_profile_bin(self) -> Path:
        return self.home / ".nix-profile" / "bin"
