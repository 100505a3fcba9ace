"""
L4 Execution — Shell and collaborator configuration files.

All writers are idempotent: they compare before writing and report
``changed: False`` when the file already says what it should.

Returns dicts of the shape ``{"ok": bool, "changed": bool, ...}``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from kindling.core.config.paths import KindlingPaths

logger = logging.getLogger(__name__)

HOOK_MARKER = "direnv hook"

# shell → (rc file relative to $HOME, hook line)
_HOOKS: dict[str, tuple[str, str]] = {
    "bash": (".bashrc", 'eval "$(direnv hook bash)"'),
    "zsh": (".zshrc", 'eval "$(direnv hook zsh)"'),
    "fish": (".config/fish/config.fish", "direnv hook fish | source"),
}


def shell_rc_and_hook(paths: KindlingPaths, shell: str | None = None) -> tuple[Path, str]:
    """RC file and hook line for ``shell`` (default: basename of ``$SHELL``)."""
    shell_type = os.path.basename(shell if shell is not None else os.environ.get("SHELL", ""))
    rc, line = _HOOKS.get(shell_type, _HOOKS["bash"])
    return paths.home / rc, line


def ensure_shell_hook(paths: KindlingPaths, shell: str | None = None) -> dict[str, Any]:
    """Add the direnv hook to the user's shell RC file.

    Skips symlinked RC files (home-manager owns those) and files that
    already mention ``direnv hook``.
    """
    rc_path, hook_line = shell_rc_and_hook(paths, shell)

    if rc_path.is_symlink():
        return {
            "ok": True,
            "changed": False,
            "file": str(rc_path),
            "note": "symlink (likely home-manager managed), skipped",
        }

    existing = ""
    if rc_path.exists():
        try:
            existing = rc_path.read_text(encoding="utf-8")
        except OSError as e:
            return {"ok": False, "error": f"Cannot read {rc_path}: {e}"}
        if HOOK_MARKER in existing:
            return {"ok": True, "changed": False, "file": str(rc_path), "note": "hook already present"}

    if existing:
        content = existing if existing.endswith("\n") else existing + "\n"
        content += f"\n# Added by kindling\n{hook_line}\n"
    else:
        content = f"{hook_line}\n"

    try:
        rc_path.parent.mkdir(parents=True, exist_ok=True)
        rc_path.write_text(content, encoding="utf-8")
    except OSError as e:
        return {"ok": False, "error": f"Failed to write {rc_path}: {e}"}

    logger.info("Added direnv hook to %s", rc_path)
    return {"ok": True, "changed": True, "file": str(rc_path)}


def write_if_changed(target: Path, content: str, *, mode: int | None = None) -> dict[str, Any]:
    """Create or replace ``target`` only when its content differs."""
    try:
        if target.is_file() and target.read_text(encoding="utf-8") == content:
            return {"ok": True, "changed": False, "file": str(target)}
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".{target.name}.tmp")
        tmp.write_text(content, encoding="utf-8")
        if mode is not None:
            tmp.chmod(mode)
        os.replace(tmp, target)
    except OSError as e:
        return {"ok": False, "error": f"Failed to write {target}: {e}"}

    logger.info("Wrote %s", target)
    return {"ok": True, "changed": True, "file": str(target)}


def install_direnv_lib(paths: KindlingPaths, content: str) -> dict[str, Any]:
    """Install the ``use_kindling`` function into direnv's lib directory."""
    return write_if_changed(paths.direnv_lib_file, content)


def render_tend_config(paths: KindlingPaths, org: str) -> str:
    base_dir = paths.home / "code" / "github" / org
    return (
        "workspaces:\n"
        f"  - name: {org}\n"
        "    provider: github\n"
        f"    base_dir: {base_dir}\n"
        "    clone_method: ssh\n"
        "    discover: true\n"
        f"    org: {org}\n"
    )


def ensure_tend_config(paths: KindlingPaths, org: str) -> dict[str, Any]:
    """Create a starter tend workspace config; never overwrite one."""
    config_path = paths.tend_config_file
    if config_path.exists():
        return {"ok": True, "changed": False, "file": str(config_path), "note": "already exists"}
    return write_if_changed(config_path, render_tend_config(paths, org))
