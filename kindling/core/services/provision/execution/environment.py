"""
L4 Execution — Environment activation.

"Activating" a tool means making it visible to this process and to
every child it spawns: its directory goes on ``PATH`` and its profile
script (e.g. ``nix-daemon.sh``) is sourced in a throwaway shell whose
resulting environment is copied back.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Iterable, MutableMapping

logger = logging.getLogger(__name__)


def prepend_to_path(environ: MutableMapping[str, str], dirs: Iterable[Path]) -> list[Path]:
    """Put ``dirs`` at the front of ``PATH``, skipping ones already there.

    Returns:
        The directories that were actually added.
    """
    current = [p for p in environ.get("PATH", "").split(os.pathsep) if p]
    added = [d for d in dict.fromkeys(dirs) if str(d) not in current]
    if added:
        environ["PATH"] = os.pathsep.join([*(str(d) for d in added), *current])
        logger.debug("Prepended to PATH: %s", ", ".join(str(d) for d in added))
    return added


def source_profile(script: Path, environ: MutableMapping[str, str]) -> bool:
    """Source ``script`` with ``sh`` and merge the resulting environment.

    Returns:
        True if the script existed and was sourced successfully.
    """
    if not script.is_file():
        return False

    try:
        result = subprocess.run(
            ["sh", "-c", '. "$1" >/dev/null 2>&1; env -0', "sh", str(script)],
            capture_output=True,
            env=dict(environ),
            timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not source %s: %s", script, e)
        return False

    if result.returncode != 0:
        logger.warning("Sourcing %s exited with status %d", script, result.returncode)
        return False

    changed = 0
    for entry in result.stdout.decode("utf-8", errors="replace").split("\0"):
        key, sep, value = entry.partition("=")
        if not sep or not key or key in ("_", "SHLVL", "PWD", "OLDPWD"):
            continue
        if environ.get(key) != value:
            environ[key] = value
            changed += 1

    logger.debug("Sourced %s (%d variables changed)", script, changed)
    return True
