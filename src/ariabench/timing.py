"""Wall-clock timing of a bench binary.

Measures real, user and system time for one child process.  Real time
comes from :func:`time.monotonic`; CPU times are the delta of
``resource.getrusage(RUSAGE_CHILDREN)`` around the run.  The child
inherits stdio, so its own output is shown as it happens.
"""

from __future__ import annotations

import resource
import sys
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TextIO

from ariabench.logging import get_logger
from ariabench.process import run_child

log = get_logger("timing")


# ---------------------------------------------------------------------------
# TimedResult
# ---------------------------------------------------------------------------


@dataclass
class TimedResult:
    """Result of a timed child execution."""

    wall_time_s: float
    user_time_s: float
    sys_time_s: float
    exit_code: int

    @property
    def cpu_time_s(self) -> float:
        """Total CPU time (user + system)."""
        return self.user_time_s + self.sys_time_s


# ---------------------------------------------------------------------------
# Core timing implementation
# ---------------------------------------------------------------------------


def run_timed(
    command: Sequence[str], *, env: Mapping[str, str], cwd: str | None = None
) -> TimedResult:
    """Run *command* and capture its wall-clock and CPU times."""
    # Snapshot children's resource usage before.
    pre_rusage = resource.getrusage(resource.RUSAGE_CHILDREN)
    wall_start = time.monotonic()

    exit_code = run_child(command, env=env, cwd=cwd)

    wall_time = time.monotonic() - wall_start
    post_rusage = resource.getrusage(resource.RUSAGE_CHILDREN)

    user_time = post_rusage.ru_utime - pre_rusage.ru_utime
    sys_time = post_rusage.ru_stime - pre_rusage.ru_stime

    return TimedResult(
        wall_time_s=round(wall_time, 6),
        user_time_s=round(max(user_time, 0.0), 6),
        sys_time_s=round(max(sys_time, 0.0), 6),
        exit_code=exit_code,
    )


def format_times(result: TimedResult) -> str:
    """Format a result the way the shell's ``time`` keyword does.

    ::

        real    0m1.234s
        user    0m1.100s
        sys     0m0.050s
    """
    lines = []
    for label, seconds in (
        ("real", result.wall_time_s),
        ("user", result.user_time_s),
        ("sys", result.sys_time_s),
    ):
        minutes, secs = divmod(seconds, 60)
        lines.append(f"{label:<8}{int(minutes)}m{secs:.3f}s")
    return "\n".join(lines)


def report_times(result: TimedResult, stream: TextIO | None = None) -> None:
    """Write the timing report to *stream* (stderr by default)."""
    stream = stream or sys.stderr
    stream.write("\n" + format_times(result) + "\n")
    stream.flush()
    log.debug(
        "Timed run: wall=%.3fs cpu=%.3fs exit=%d",
        result.wall_time_s,
        result.cpu_time_s,
        result.exit_code,
    )
