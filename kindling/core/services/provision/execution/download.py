"""
L4 Execution — Artifact download.

Streams a release artifact into the install directory. The bytes go
to a temporary file in the same directory, which is made executable
and then renamed over the final path, so a concurrent reader sees
either nothing or a complete executable.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import urllib.error
import urllib.request
from pathlib import Path

from kindling import __version__
from kindling.core.errors import DownloadFailed

logger = logging.getLogger(__name__)

USER_AGENT = f"kindling/{__version__}"

_CHUNK = 64 * 1024


def fetch_artifact(tool: str, url: str, dest: Path) -> Path:
    """Download ``url`` to ``dest`` and mark it executable.

    No timeout and no retry: a failure surfaces immediately and the
    user re-runs.

    Raises:
        DownloadFailed: Transport error, non-2xx response, or write error.
    """
    logger.info("Downloading %s from %s", tool, url)

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DownloadFailed(tool, url, f"cannot create {dest.parent}: {e}") from e

    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    tmp_path: Path | None = None
    try:
        with urllib.request.urlopen(req) as resp:
            status = getattr(resp, "status", 200)
            if status >= 300:
                raise DownloadFailed(tool, url, f"HTTP {status}")
            fd, name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=dest.parent)
            tmp_path = Path(name)
            with os.fdopen(fd, "wb") as out:
                shutil.copyfileobj(resp, out, _CHUNK)
        tmp_path.chmod(0o755)
        os.replace(tmp_path, dest)
    except urllib.error.HTTPError as e:
        raise DownloadFailed(tool, url, f"HTTP {e.code}") from e
    except urllib.error.URLError as e:
        raise DownloadFailed(tool, url, str(e.reason)) from e
    except OSError as e:
        raise DownloadFailed(tool, url, str(e)) from e
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()

    logger.info("Installed %s to %s", tool, dest)
    return dest
