"""Run a bench binary under a measurement backend.

- ``time``: in-process wall-clock and CPU timing, no privileges needed.
- ``perf``: ``perf record -g``; needs access to performance counters.
- ``valgrind``: cachegrind; the open-file limit is raised first.

Each backend gets the artifact path and nothing else.  The child's exit
status is returned for the caller to propagate.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from ariabench.logging import get_logger
from ariabench.process import format_command, raise_fd_limit, require_tool, run_child
from ariabench.request import Backend
from ariabench.timing import report_times, run_timed

log = get_logger("profilers")


def profiler_command(backend: Backend, executable: Path) -> list[str]:
    """The command line wrapping *executable* for *backend*.

    Raises:
        BackendUnavailable: If the profiler is not installed.
    """
    if backend is Backend.PERF:
        return [require_tool("perf"), "record", "-g", "--", str(executable)]
    if backend is Backend.VALGRIND:
        return [require_tool("valgrind"), "--tool=cachegrind", "--", str(executable)]
    return [str(executable)]


def invoke(
    backend: Backend,
    executable: Path,
    *,
    env: Mapping[str, str],
    cwd: str | None = None,
) -> int:
    """Run *executable* under *backend* and return its exit status.

    Relative paths from cargo's report are relative to *cwd*, the
    workspace root.
    """
    command = profiler_command(backend, executable)
    log.info("Running under %s: %s", backend.value, format_command(command))

    if backend is Backend.TIME:
        result = run_timed(command, env=env, cwd=cwd)
        report_times(result)
        return result.exit_code

    if backend is Backend.VALGRIND:
        raise_fd_limit()
    return run_child(command, env=env, cwd=cwd)
