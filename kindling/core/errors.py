"""
Kindling error taxonomy.

Lower layers raise the most specific error and chain the cause with
``raise ... from``; the orchestrator wraps with stage context; the CLI
turns any ``KindlingError`` into a one-line message and exit code 1.
"""

from __future__ import annotations


class KindlingError(Exception):
    """Base class for every error kindling reports to the user."""


class UnsupportedPlatform(KindlingError):
    """The OS or architecture has no known target identifier."""

    def __init__(self, os_name: str, machine: str, reason: str) -> None:
        self.os_name = os_name
        self.machine = machine
        super().__init__(f"Unsupported platform {os_name}/{machine}: {reason}")


class ResolutionFailed(KindlingError):
    """A tool could not be found and could not be installed."""

    def __init__(self, tool: str, reason: str) -> None:
        self.tool = tool
        self.reason = reason
        super().__init__(f"Could not resolve {tool}: {reason}")


class DownloadFailed(ResolutionFailed):
    """The network fetch step failed (transport, HTTP status, or write)."""

    def __init__(self, tool: str, url: str, reason: str) -> None:
        self.url = url
        super().__init__(tool, f"download from {url} failed: {reason}")


class ConsentDenied(KindlingError):
    """The user declined an interactive confirmation."""

    def __init__(self, prompt: str, hint: str = "") -> None:
        self.prompt = prompt
        self.hint = hint
        message = f"Declined: {prompt}"
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class StageFailed(KindlingError):
    """A bootstrap stage failed; carries the stage name and the cause.

    ``report`` holds the results of every stage that ran before the
    chain was aborted.
    """

    def __init__(self, stage: str, cause: BaseException, report: object | None = None) -> None:
        self.stage = stage
        self.cause = cause
        self.report = report
        super().__init__(f"Stage '{stage}' failed: {cause}")
