"""Exceptions raised by ariabench.

Every error carries the exit status the command line reports for it.
Failures of the benchmark process itself are not exceptions: its exit
status simply becomes ours.
"""

from __future__ import annotations


class AriaBenchError(Exception):
    """Base class for errors that abort an invocation."""

    exit_code: int = 1


class UsageError(AriaBenchError):
    """Missing or unrecognized mode."""


class ConfigError(AriaBenchError):
    """The project configuration file is malformed."""


class BuildFailure(AriaBenchError):
    """The build tool exited non-zero."""

    def __init__(self, command: list[str], exit_code: int, output: str = "") -> None:
        super().__init__(f"build failed (exit {exit_code}): {' '.join(command)}")
        self.command = command
        self.exit_code = exit_code
        self.output = output


class ArtifactResolutionFailure(AriaBenchError):
    """No bench executable could be found in the build report."""


class BackendUnavailable(AriaBenchError):
    """A required external tool is not installed."""

    exit_code = 127

    def __init__(self, tool: str) -> None:
        super().__init__(f"{tool} not found on PATH")
        self.tool = tool


class NotExecutable(AriaBenchError):
    """A program exists but cannot be executed."""

    exit_code = 126

    def __init__(self, program: str, reason: str) -> None:
        super().__init__(f"cannot execute {program}: {reason}")
        self.program = program
