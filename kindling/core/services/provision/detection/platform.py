"""
L3 Detection — Platform identity.

``detect_target`` is pure: raw OS / machine strings in, ``Target`` out,
or ``UnsupportedPlatform`` before anything touches the system. The
host-fact probes below it only read the filesystem.
"""

from __future__ import annotations

import platform
from pathlib import Path

from kindling.core.errors import UnsupportedPlatform
from kindling.core.models.target import OsFamily, Target

# raw (lowercased) → canonical
OS_ALIASES: dict[str, OsFamily] = {
    "darwin": OsFamily.DARWIN,
    "macos": OsFamily.DARWIN,
    "osx": OsFamily.DARWIN,
    "linux": OsFamily.LINUX,
}

ARCH_ALIASES: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}

# vendor/libc suffix per OS family
TARGET_SUFFIX: dict[OsFamily, str] = {
    OsFamily.DARWIN: "apple-darwin",
    OsFamily.LINUX: "unknown-linux-musl",
}


def detect_target(os_name: str, machine: str) -> Target:
    """Map a raw OS name and machine string to a canonical target.

    Args:
        os_name: e.g. ``platform.system()`` — ``"Darwin"``, ``"Linux"``.
        machine: e.g. ``platform.machine()`` — ``"arm64"``, ``"x86_64"``.

    Raises:
        UnsupportedPlatform: Unknown OS or architecture.
    """
    os_family = OS_ALIASES.get(os_name.strip().lower())
    if os_family is None:
        raise UnsupportedPlatform(os_name, machine, f"unsupported OS '{os_name}'")

    arch = ARCH_ALIASES.get(machine.strip().lower())
    if arch is None:
        raise UnsupportedPlatform(os_name, machine, f"unsupported architecture '{machine}'")

    return Target(arch=arch, os_family=os_family, suffix=TARGET_SUFFIX[os_family])


def current_target() -> Target:
    """Target for the running interpreter's host."""
    return detect_target(platform.system(), platform.machine())


def supported_targets() -> list[Target]:
    """Every target kindling publishes artifacts for."""
    arches = sorted(set(ARCH_ALIASES.values()))
    return [
        Target(arch=arch, os_family=family, suffix=suffix)
        for family, suffix in TARGET_SUFFIX.items()
        for arch in arches
    ]


# ── Host facts ──────────────────────────────────────────────────


def is_wsl(proc_version: Path = Path("/proc/version")) -> bool:
    """Whether the Linux kernel identifies as WSL."""
    try:
        text = proc_version.read_text(encoding="utf-8", errors="replace").lower()
    except OSError:
        return False
    return "microsoft" in text or "wsl" in text


def has_systemd(root: Path = Path("/")) -> bool:
    """Whether systemd is PID 1 (``/run/systemd/system`` exists)."""
    return (root / "run" / "systemd" / "system").exists()
