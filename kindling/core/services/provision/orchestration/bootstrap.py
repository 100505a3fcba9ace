"""
L5 Orchestration — The bootstrap chain.

    1. nix     ensure nix (asks first unless --no-confirm)      abort
    2. direnv  ensure direnv, shell hook, use_kindling lib       continue
    3. tend    ensure tend, starter config (--org), tend sync    continue
    4. daemon  render daemon config + supervisor files           continue

Nothing after nix can work without it, so only nix aborts the chain.
The other stages configure conveniences; a failure there is reported
and the user can re-run once it is fixed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable

from kindling.core.config.loader import load_config
from kindling.core.config.paths import KindlingPaths
from kindling.core.errors import KindlingError
from kindling.core.models.config import KindlingConfig
from kindling.core.models.target import Target
from kindling.core.services.generators.service_units import compile_service, daemon_spec_for
from kindling.core.services.provision.catalog import (
    direnv_tool,
    kindling_tool,
    needs_init_none,
    nix_tool,
    tend_tool,
)
from kindling.core.services.provision.detection.platform import current_target
from kindling.core.services.provision.execution.service_files import write_artifacts
from kindling.core.services.provision.execution.shell_config import (
    ensure_shell_hook,
    ensure_tend_config,
    install_direnv_lib,
)
from kindling.core.services.provision.execution.subprocess_runner import run_subprocess
from kindling.core.services.provision.orchestration.stages import (
    Stage,
    StageContext,
    StageOrchestrator,
    StageReport,
)
from kindling.core.services.provision.resolver.artifact_resolver import ArtifactResolver
from kindling.core.services.shell_integration import render_use_kindling

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapOptions:
    skip_nix: bool = False
    skip_direnv: bool = False
    skip_tend: bool = False
    skip_daemon: bool = False
    org: str | None = None
    no_confirm: bool = False
    shell: str | None = None


def _require(result: dict, what: str) -> dict:
    if not result["ok"]:
        raise KindlingError(f"{what}: {result['error']}")
    return result


def _configure_direnv(paths: KindlingPaths, shell: str | None) -> Callable[[StageContext], list[str]]:
    def configure(ctx: StageContext) -> list[str]:
        actions = []
        hook = _require(ensure_shell_hook(paths, shell), "Could not inject direnv hook")
        if hook["changed"]:
            actions.append(f"Configured direnv shell hook in {hook['file']}")
        lib = _require(install_direnv_lib(paths, render_use_kindling(paths)), "Could not install direnv lib")
        if lib["changed"]:
            actions.append("Installed use_kindling direnv lib")
        return actions

    return configure


def _configure_tend(paths: KindlingPaths, org: str | None) -> Callable[[StageContext], list[str]]:
    def configure(ctx: StageContext) -> list[str]:
        actions = []
        if org:
            result = _require(ensure_tend_config(paths, org), "Could not create tend config")
            if result["changed"]:
                actions.append(f"Created tend config for {org}")

        if not paths.tend_config_file.exists():
            logger.info("No tend config at %s, skipping sync", paths.tend_config_file)
            return actions

        sync = run_subprocess([str(ctx.tool_path), "sync"], interactive=True, env=ctx.resolver.environ)
        _require(sync, "tend sync failed")
        actions.append("Synced workspace repos")
        return actions

    return configure


def _configure_daemon(paths: KindlingPaths, config: KindlingConfig) -> Callable[[StageContext], list[str]]:
    def configure(ctx: StageContext) -> list[str]:
        spec = daemon_spec_for(paths, ctx.tool_path, config.daemon_or_default(), ctx.target.os_family)
        artifacts = compile_service(spec)
        result = write_artifacts(artifacts, paths.home, log_dir=Path(spec.log_dir))
        if not result["ok"]:
            raise KindlingError("; ".join(result["errors"]))
        return [f"Wrote {path}" for path in result["written"]]

    return configure


def build_bootstrap_stages(
    paths: KindlingPaths,
    config: KindlingConfig,
    target: Target,
    options: BootstrapOptions,
) -> list[Stage]:
    """The four bootstrap stages, honoring skip flags."""
    nix = nix_tool(
        paths,
        config.backend,
        no_confirm=True,
        init_none=needs_init_none(paths, target),
    )
    # only the nix stage, which asks first, may install nix
    nix_required = replace(nix, installer=None)

    return [
        Stage(
            name="nix",
            order=1,
            tool=nix,
            skip=options.skip_nix,
            on_failure="abort",
            needs_consent=True,
            consent_prompt="Nix is not installed. Install it now?",
            consent_hint="Run `kindling install` when you're ready.",
        ),
        Stage(
            name="direnv",
            order=2,
            tool=direnv_tool(paths, nix_required),
            configure=_configure_direnv(paths, options.shell),
            skip=options.skip_direnv,
            on_failure="continue",
        ),
        Stage(
            name="tend",
            order=3,
            tool=tend_tool(paths, nix_required),
            configure=_configure_tend(paths, options.org),
            skip=options.skip_tend,
            on_failure="continue",
        ),
        Stage(
            name="daemon",
            order=4,
            tool=kindling_tool(paths),
            configure=_configure_daemon(paths, config),
            skip=options.skip_daemon,
            on_failure="continue",
        ),
    ]


def run_bootstrap(
    paths: KindlingPaths,
    options: BootstrapOptions,
    *,
    resolver: ArtifactResolver | None = None,
    target: Target | None = None,
    confirm: Callable[[str], bool] | None = None,
) -> StageReport:
    """Detect the platform, then run the bootstrap chain.

    Raises:
        UnsupportedPlatform: Before any stage runs.
        StageFailed: An aborting stage failed.
        ConfigError: The kindling config file is invalid.
    """
    target = target or current_target()
    config = load_config(paths.config_file)
    stages = build_bootstrap_stages(paths, config, target, options)

    orchestrator = StageOrchestrator(
        resolver or ArtifactResolver(),
        target,
        no_confirm=options.no_confirm,
        confirm=confirm,
    )
    return orchestrator.run(stages)
