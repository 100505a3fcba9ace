"""
Target model — the canonical platform identity used to pick artifacts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OsFamily(str, Enum):
    DARWIN = "darwin"
    LINUX = "linux"


@dataclass(frozen=True)
class Target:
    """A supported (OS, arch) pair.

    ``triple`` is the ``{arch}-{vendor-or-os}-{libc-or-none}`` string
    release artifacts are named after; ``nix_system`` is the two-part
    Nix system name nix-installer publishes under.
    """

    arch: str
    os_family: OsFamily
    suffix: str

    @property
    def triple(self) -> str:
        return f"{self.arch}-{self.suffix}"

    @property
    def nix_system(self) -> str:
        return f"{self.arch}-{self.os_family.value}"

    def __str__(self) -> str:
        return self.triple
