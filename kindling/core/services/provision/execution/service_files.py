"""
L4 Execution — Write compiled service artifacts (create-or-replace).

Loading them into launchd / systemd is left to the user's supervisor
tooling; this only puts the files in place.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from kindling.core.models.service import ServiceArtifacts
from kindling.core.services.provision.execution.shell_config import write_if_changed

logger = logging.getLogger(__name__)


def write_artifacts(
    artifacts: ServiceArtifacts,
    home: Path,
    *,
    log_dir: Path | None = None,
) -> dict[str, Any]:
    """Write every artifact under ``home``, skipping unchanged files.

    Returns:
        ``{"ok": bool, "written": [...], "unchanged": [...], "errors": [...]}``
    """
    written: list[str] = []
    unchanged: list[str] = []
    errors: list[str] = []

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Cannot create log directory {log_dir}: {e}")

    for generated in artifacts.files:
        result = write_if_changed(home / generated.path, generated.content)
        if not result["ok"]:
            errors.append(result["error"])
        elif result["changed"]:
            written.append(result["file"])
        else:
            unchanged.append(result["file"])

    if errors:
        for err in errors:
            logger.warning("%s", err)

    return {"ok": not errors, "written": written, "unchanged": unchanged, "errors": errors}
