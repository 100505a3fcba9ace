"""
Shell integration — the ``use_kindling`` fast path.

Runs while a shell or direnv environment is being set up, so it does
as little as possible:

    1. nix on PATH                 → done
    2. nix at a known location     → activate, done
    3. otherwise resolve kindling (full resolver chain) and run
       ``kindling ensure --no-confirm``
    4. in every case, source the nix daemon profile if it exists

Two renditions share the tool catalog and platform tables: the POSIX
function installed into direnv's lib directory (``render_use_kindling``)
and the Python function behind ``kindling shell env`` (``use_kindling``).
Neither ever exits the calling shell; failure is a non-zero status.

Step 3 passes ``--no-confirm``, so entering a direnv directory installs
nix even when the config says ``auto_install: false``.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from kindling.core.config.paths import KindlingPaths
from kindling.core.errors import ResolutionFailed
from kindling.core.models.target import Target
from kindling.core.services.provision.catalog import (
    kindling_tool,
    nix_daemon_profile,
    nix_tool,
)
from kindling.core.services.provision.data.constants import KINDLING_RELEASE_URL
from kindling.core.services.provision.detection.platform import (
    ARCH_ALIASES,
    OS_ALIASES,
    TARGET_SUFFIX,
)
from kindling.core.services.provision.execution.subprocess_runner import run_subprocess
from kindling.core.services.provision.resolver.artifact_resolver import ArtifactResolver

logger = logging.getLogger(__name__)


@dataclass
class ShellActivation:
    """Outcome of one ``use_kindling`` run."""

    status: int
    ensured: bool = False
    tool_path: str | None = None
    sourced: bool = False
    error: str | None = None
    exports: dict[str, str | None] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == 0


def use_kindling(
    paths: KindlingPaths,
    target: Target,
    resolver: ArtifactResolver,
    *,
    run: Callable[..., dict[str, Any]] = run_subprocess,
) -> ShellActivation:
    """Make nix available in ``resolver.environ``.

    Returns:
        ``ShellActivation`` with ``status`` 0 on success. ``exports``
        lists the variables that changed (``None`` = removed).
    """
    before = dict(resolver.environ)
    nix = nix_tool(paths)
    ensured = False

    found = resolver.locate(nix)
    if found is None:
        try:
            kindling = resolver.resolve(kindling_tool(paths), target)
        except ResolutionFailed as e:
            logger.warning("use_kindling: %s", e)
            return ShellActivation(status=1, error=str(e))

        result = run([str(kindling), "ensure", "--no-confirm"], interactive=True, env=resolver.environ)
        if not result["ok"]:
            return ShellActivation(
                status=result.get("returncode") or 1,
                error=result["error"],
            )
        ensured = True
        found = resolver.locate(nix)

    sourced = resolver.source(nix_daemon_profile(paths))

    return ShellActivation(
        status=0,
        ensured=ensured,
        tool_path=str(found) if found else None,
        sourced=sourced,
        exports=environment_diff(before, resolver.environ),
    )


def environment_diff(
    before: Mapping[str, str],
    after: Mapping[str, str],
) -> dict[str, str | None]:
    changes: dict[str, str | None] = {
        k: v for k, v in after.items() if before.get(k) != v
    }
    for k in before:
        if k not in after:
            changes[k] = None
    return dict(sorted(changes.items()))


def render_exports(changes: Mapping[str, str | None]) -> str:
    """Shell statements applying ``changes`` (for ``eval``)."""
    lines = []
    for key, value in changes.items():
        if value is None:
            lines.append(f"unset {key}")
        else:
            lines.append(f"export {key}={shlex.quote(value)}")
    return "\n".join(lines) + ("\n" if lines else "")


# ── POSIX rendition ─────────────────────────────────────────────


def _sh_path(path: Path, paths: KindlingPaths) -> str:
    """Quote ``path`` for sh, writing home-relative paths via ``$HOME``."""
    try:
        rel = path.relative_to(paths.home)
    except ValueError:
        return shlex.quote(str(path))
    return f'"$HOME/{rel.as_posix()}"'


def _case_arms(aliases: Mapping[str, Any], render: Callable[[Any], str]) -> list[str]:
    grouped: dict[Any, list[str]] = {}
    for raw, canonical in aliases.items():
        grouped.setdefault(canonical, []).append(raw)
    return [f"                {'|'.join(raws)}) {render(canonical)} ;;" for canonical, raws in grouped.items()]


def render_use_kindling(paths: KindlingPaths) -> str:
    """Render the direnv library file defining ``use_kindling``."""
    nix = nix_tool(paths)
    kindling = kindling_tool(paths)
    assert kindling.cache_path is not None

    nix_candidates = " ".join(_sh_path(p, paths) for p in nix.candidates)
    kindling_candidates = " ".join(
        _sh_path(p, paths) for p in (*kindling.candidates, kindling.cache_path)
    )
    install_dir = _sh_path(kindling.cache_path.parent, paths)
    cache = _sh_path(kindling.cache_path, paths)
    url = KINDLING_RELEASE_URL.format(artifact="kindling-${target}")
    profile = _sh_path(nix_daemon_profile(paths), paths)

    arch_arms = "\n".join(_case_arms(ARCH_ALIASES, lambda a: f'arch="{a}"'))
    os_arms = "\n".join(
        _case_arms(OS_ALIASES, lambda fam: f'target="${{arch}}-{TARGET_SUFFIX[fam]}"')
    )

    return f"""\
#!/usr/bin/env bash
# direnv library function installed by kindling.
# Usage in .envrc:
#   use_kindling
#   use flake

use_kindling() {{
    local found="" p

    if command -v nix >/dev/null 2>&1; then
        found=1
    else
        for p in {nix_candidates}; do
            if [ -x "$p" ]; then
                export PATH="$(dirname "$p"):$PATH"
                found=1
                break
            fi
        done
    fi

    if [ -z "$found" ]; then
        local kindling=""
        if command -v kindling >/dev/null 2>&1; then
            kindling="kindling"
        else
            for p in {kindling_candidates}; do
                if [ -x "$p" ]; then
                    kindling="$p"
                    break
                fi
            done
        fi

        if [ -z "$kindling" ]; then
            local os arch target
            os="$(uname -s | tr '[:upper:]' '[:lower:]')"
            arch="$(uname -m | tr '[:upper:]' '[:lower:]')"
            case "$arch" in
{arch_arms}
                *) log_error "kindling: unsupported architecture $arch"; return 1 ;;
            esac
            case "$os" in
{os_arms}
                *) log_error "kindling: unsupported OS $os"; return 1 ;;
            esac
            log_status "downloading kindling for $target..."
            mkdir -p {install_dir} || return 1
            curl -sSfL "{url}" -o {cache}.part || return 1
            chmod +x {cache}.part && mv -f {cache}.part {cache} || return 1
            kindling={cache}
        fi

        "$kindling" ensure --no-confirm || return 1
    fi

    if [ -e {profile} ]; then
        # shellcheck disable=SC1090
        . {profile}
    fi
}}
"""
