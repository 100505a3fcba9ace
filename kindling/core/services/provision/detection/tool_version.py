"""
L3 Detection — Tool version checking.

Runs a tool's version command and extracts a semver-ish string.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

VERSION_COMMANDS: dict[str, tuple[list[str], str]] = {
    "nix":      (["--version"],  r"nix \(Nix\)\s+(\d+\.\d+(?:\.\d+)?)"),
    "direnv":   (["version"],    r"(\d+\.\d+\.\d+)"),
    "tend":     (["--version"],  r"(\d+\.\d+\.\d+)"),
    "kindling": (["--version"],  r"(\d+\.\d+\.\d+)"),
}


def get_tool_version(name: str, executable: Path) -> str | None:
    """Installed version of ``name`` at ``executable``.

    Returns:
        Version string (e.g. ``"2.24.12"``), or ``None`` when the tool
        has no known version command, fails, or prints nothing usable.
    """
    entry = VERSION_COMMANDS.get(name)
    if entry is None:
        return None
    args, pattern = entry

    try:
        result = subprocess.run(
            [str(executable), *args],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Version probe for %s failed: %s", name, e)
        return None

    if result.returncode != 0:
        return None

    m = re.search(pattern, result.stdout + result.stderr)
    return m.group(1) if m else None
