"""
L5 Orchestration — Stage sequencing.

A stage is "make sure this tool is present, then configure it". Stages
run strictly in declared order; stage N may rely on whatever stages
1..N-1 installed or put on ``PATH``. There is no dependency graph.

Failure policy is declared per stage:

    abort    — stop the chain, raise ``StageFailed`` (default)
    continue — record the failure, warn, run the next stage
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Literal

from kindling.core.errors import ConsentDenied, StageFailed
from kindling.core.models.target import Target
from kindling.core.models.tool import Tool
from kindling.core.services.provision.resolver.artifact_resolver import ArtifactResolver

logger = logging.getLogger(__name__)

FailurePolicy = Literal["abort", "continue"]
StageStatus = Literal["ok", "skipped", "failed"]


@dataclass
class StageContext:
    """What a configure action gets to work with."""

    resolver: ArtifactResolver
    target: Target
    no_confirm: bool
    tool_path: Path | None = None
    options: dict[str, Any] = field(default_factory=dict)


ConfigureAction = Callable[[StageContext], list[str]]


@dataclass(frozen=True)
class Stage:
    """One step of a bootstrap chain.

    Attributes:
        name:          Stage name (shown to the user, used in errors).
        order:         Position in the chain; must be unique.
        tool:          Tool to ensure before configuring (optional).
        configure:     Action run after the tool is present; returns
                       human-readable descriptions of what it changed.
        skip:          Skip this stage entirely.
        on_failure:    ``"abort"`` or ``"continue"``.
        needs_consent: Ask before installing the tool for the first time.
        consent_prompt / consent_hint: Prompt text and what to tell the
                       user if they decline.
    """

    name: str
    order: int
    tool: Tool | None = None
    configure: ConfigureAction | None = None
    skip: bool = False
    on_failure: FailurePolicy = "abort"
    needs_consent: bool = False
    consent_prompt: str = ""
    consent_hint: str = ""


@dataclass
class StageResult:
    name: str
    order: int
    status: StageStatus
    actions: list[str] = field(default_factory=list)
    tool_path: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "order": self.order,
            "status": self.status,
            "actions": self.actions,
            "tool_path": self.tool_path,
            "error": self.error,
        }


@dataclass
class StageReport:
    """Results of one orchestrator run."""

    results: list[StageResult] = field(default_factory=list)
    aborted_at: str | None = None

    @property
    def actions(self) -> list[str]:
        return [a for r in self.results for a in r.actions]

    @property
    def failed(self) -> list[StageResult]:
        return [r for r in self.results if r.status == "failed"]

    @property
    def status(self) -> str:
        if self.aborted_at:
            return "failed"
        return "partial" if self.failed else "ok"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "aborted_at": self.aborted_at,
            "stages": [r.to_dict() for r in self.results],
        }


def _click_confirm(prompt: str) -> bool:
    import click

    return click.confirm(prompt, default=False, err=True)


class StageOrchestrator:
    """Run stages in order under one consent policy.

    Args:
        resolver: Shared resolver; its environment carries PATH changes
            from one stage to the next.
        target: Platform target for artifact selection.
        no_confirm: Assume consent for every prompt.
        confirm: Prompt function (default: ``click.confirm`` on stderr).
        options: Extra values handed to every configure action.
    """

    def __init__(
        self,
        resolver: ArtifactResolver,
        target: Target,
        *,
        no_confirm: bool = False,
        confirm: Callable[[str], bool] | None = None,
        options: dict[str, Any] | None = None,
    ) -> None:
        self.resolver = resolver
        self.target = target
        self.no_confirm = no_confirm
        self._confirm = confirm or _click_confirm
        self.options = dict(options or {})

    def run(self, stages: list[Stage]) -> StageReport:
        """Execute ``stages`` in order.

        Raises:
            StageFailed: An ``abort`` stage failed; ``report`` holds the
                results up to and including that stage.
            ValueError: Two stages share an ``order``.
        """
        ordered = sorted(stages, key=lambda s: s.order)
        orders = [s.order for s in ordered]
        if len(set(orders)) != len(orders):
            raise ValueError(f"Duplicate stage order in {[s.name for s in ordered]}")

        report = StageReport()
        total = len(ordered)

        for position, stage in enumerate(ordered, start=1):
            if stage.skip:
                logger.info("Stage %d/%d %s: skipped", position, total, stage.name)
                report.results.append(StageResult(stage.name, stage.order, "skipped"))
                continue

            logger.info("Stage %d/%d %s: starting", position, total, stage.name)
            try:
                result = self._run_stage(stage)
            except Exception as e:
                report.results.append(
                    StageResult(stage.name, stage.order, "failed", error=str(e)),
                )
                if stage.on_failure == "abort":
                    report.aborted_at = stage.name
                    raise StageFailed(stage.name, e, report=report) from e
                logger.warning("Stage %s failed (continuing): %s", stage.name, e)
                continue

            report.results.append(result)

        return report

    def _run_stage(self, stage: Stage) -> StageResult:
        result = StageResult(stage.name, stage.order, "ok")
        ctx = StageContext(
            resolver=self.resolver,
            target=self.target,
            no_confirm=self.no_confirm,
            options=self.options,
        )

        if stage.tool is not None:
            ctx.tool_path = self._ensure_tool(stage, result)
            result.tool_path = str(ctx.tool_path)

        if stage.configure is not None:
            result.actions.extend(stage.configure(ctx))

        return result

    def _ensure_tool(self, stage: Stage, result: StageResult) -> Path:
        tool = stage.tool
        assert tool is not None

        found = self.resolver.locate(tool)
        if found is not None:
            logger.info("%s already installed at %s", tool.name, found)
            return found

        if stage.needs_consent and not self.no_confirm:
            prompt = stage.consent_prompt or f"{tool.name} is not installed. Install it now?"
            if not self._confirm(prompt):
                raise ConsentDenied(prompt, stage.consent_hint)

        path = self.resolver.resolve(tool, self.target)
        result.actions.append(f"Installed {tool.name}")
        return path
