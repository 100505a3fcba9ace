"""
L0 Data — Well-known locations and release URLs.

System paths are written as absolute strings and resolved through
``KindlingPaths.system()`` so tests can relocate them.
"""

from __future__ import annotations

from kindling.core.models.config import Backend

KINDLING_REPO = "pleme-io/kindling"

KINDLING_RELEASE_URL = (
    f"https://github.com/{KINDLING_REPO}/releases/latest/download/{{artifact}}"
)

NIX_INSTALLER_URLS: dict[Backend, str] = {
    Backend.UPSTREAM: (
        "https://github.com/NixOS/nix-installer/releases/latest/download/"
        "nix-installer-{nix_system}"
    ),
    Backend.DETERMINATE: "https://install.determinate.systems/nix/nix-installer-{nix_system}",
}

# System-wide nix profile bin directories, in probe order.
NIX_SYSTEM_BIN_DIRS: tuple[str, ...] = (
    "/nix/var/nix/profiles/default/bin",
    "/run/current-system/sw/bin",
)

NIX_DAEMON_PROFILE = "/nix/var/nix/profiles/default/etc/profile.d/nix-daemon.sh"

# Where nix-installer leaves itself behind (the uninstall receipt).
NIX_INSTALLER_RECEIPTS: tuple[str, ...] = (
    "/nix/nix-installer",
    "/nix/var/nix/profiles/default/bin/nix-installer",
)

NIX_EXPERIMENTAL_FEATURES = "nix-command flakes"

DIRENV_INSTALLABLE = "nixpkgs#direnv"
TEND_INSTALLABLE = "github:pleme-io/tend"
