"""
L4 Execution — Core subprocess runner.

The single place where install-related commands are spawned.
Returns a result dict instead of raising; callers decide whether a
failure is fatal.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any, Mapping, Sequence

logger = logging.getLogger(__name__)


def run_subprocess(
    cmd: Sequence[str],
    *,
    interactive: bool = False,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Run a command and summarise the outcome.

    Args:
        cmd: Argument vector.
        interactive: Inherit the terminal (installers that prompt);
            output is then not captured.
        env: Full environment for the child (default: ``os.environ``).
        cwd: Working directory.
        timeout: Seconds before giving up; ``None`` waits forever.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", "returncode": N, ...}`` on failure.
    """
    argv = [str(c) for c in cmd]
    logger.debug("Running: %s", " ".join(argv))

    start = time.monotonic()
    try:
        result = subprocess.run(
            argv,
            capture_output=not interactive,
            text=True,
            env=dict(env) if env is not None else os.environ.copy(),
            cwd=cwd,
            timeout=timeout,
        )
    except FileNotFoundError:
        return {"ok": False, "error": f"Command not found: {argv[0]}", "returncode": 127}
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)", "returncode": None}
    except OSError as e:
        return {"ok": False, "error": f"Cannot run {argv[0]}: {e}", "returncode": None}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-2000:] if result.stdout else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "elapsed_ms": elapsed_ms}

    stderr = result.stderr[-2000:] if result.stderr else ""
    logger.debug("Command failed (exit %d): %s", result.returncode, stderr.strip())
    return {
        "ok": False,
        "error": f"{os.path.basename(argv[0])} exited with status {result.returncode}",
        "returncode": result.returncode,
        "stderr": stderr,
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }
