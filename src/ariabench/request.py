"""Invocation requests and the work variants they map to.

An :class:`InvocationRequest` is what the operator typed.  :func:`plan`
turns it into exactly one variant, each carrying only the fields its
handler needs:

- :class:`HarnessRun`, ``bench``: delegate to the statistical harness.
- :class:`MicroRun`, ``micro``: replace this process with the runtime.
- :class:`ProfiledRun`, ``perf``/``time``/``valgrind``: build, locate,
  then run the bench binary under a measurement backend.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Union

from ariabench.errors import UsageError

USAGE = "Usage: ariabench [OPTIONS] {bench|micro|perf|time|valgrind} [TARGET] [ARGS]..."


class Mode(enum.Enum):
    """Measurement strategy selected on the command line."""

    BENCH = "bench"
    MICRO = "micro"
    PERF = "perf"
    TIME = "time"
    VALGRIND = "valgrind"

    @classmethod
    def parse(cls, value: str | None) -> Mode:
        """Parse a mode string, raising :class:`UsageError` if missing or unknown."""
        if not value:
            raise UsageError(f"missing mode\n{USAGE}")
        try:
            return cls(value)
        except ValueError:
            raise UsageError(f"unknown mode '{value}'\n{USAGE}") from None


class Backend(enum.Enum):
    """Measurement backend wrapped around a bench binary."""

    PERF = "perf"
    TIME = "time"
    VALGRIND = "valgrind"


@dataclass(frozen=True)
class InvocationRequest:
    """What the operator asked for."""

    mode: Mode
    target: str = ""
    extra_args: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_args(
        cls, mode: str | None, target: str | None = None, extra_args: Sequence[str] = ()
    ) -> InvocationRequest:
        return cls(Mode.parse(mode), target or "", tuple(extra_args))


@dataclass(frozen=True)
class HarnessRun:
    target: str


@dataclass(frozen=True)
class MicroRun:
    target: str
    extra_args: tuple[str, ...]


@dataclass(frozen=True)
class ProfiledRun:
    backend: Backend
    target: str


Work = Union[HarnessRun, MicroRun, ProfiledRun]


def plan(request: InvocationRequest) -> Work:
    """Map a request onto the single piece of work it describes."""
    if request.mode is Mode.BENCH:
        return HarnessRun(request.target)
    if request.mode is Mode.MICRO:
        return MicroRun(request.target, request.extra_args)
    return ProfiledRun(Backend(request.mode.value), request.target)
