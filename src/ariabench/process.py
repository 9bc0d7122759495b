"""Process primitives: wait-and-propagate, exec-and-replace, CPU pinning.

Two ways to run the final command, never unified:

- :func:`run_child` starts a child with inherited stdio, waits for it
  and returns its exit status for the caller to propagate.
- :func:`exec_and_replace` replaces the current process image; it only
  returns by raising.
"""

from __future__ import annotations

import os
import resource
import shlex
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from typing import NoReturn

from ariabench.errors import BackendUnavailable, NotExecutable
from ariabench.logging import flush_logging, get_logger

log = get_logger("process")

TASKSET = "taskset"


def format_command(command: Sequence[str]) -> str:
    """Render *command* as a copy-pasteable shell line."""
    return " ".join(shlex.quote(str(c)) for c in command)


def exit_status(returncode: int) -> int:
    """Translate a subprocess return code into a shell-style exit status.

    A child killed by signal N has ``returncode == -N``; shells report
    that as ``128 + N``.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def require_tool(name: str) -> str:
    """Return the absolute path of *name* on ``PATH``.

    Raises:
        BackendUnavailable: If the tool is not installed.
    """
    path = shutil.which(name)
    if not path:
        raise BackendUnavailable(name)
    return path


def run_child(command: Sequence[str], *, env: Mapping[str, str], cwd: str | None = None) -> int:
    """Run *command* with inherited stdio and return its exit status.

    Raises:
        BackendUnavailable: If the program cannot be found.
        NotExecutable: If the program exists but cannot be run.
    """
    log.debug("Running: %s", format_command(command))
    try:
        proc = subprocess.run(list(command), env=dict(env), cwd=cwd, check=False)
    except FileNotFoundError:
        raise BackendUnavailable(str(command[0])) from None
    except OSError as exc:
        raise NotExecutable(str(command[0]), exc.strerror or str(exc)) from None
    status = exit_status(proc.returncode)
    if status != 0:
        log.debug("Exit status %d: %s", status, command[0])
    return status


def exec_and_replace(command: Sequence[str], *, env: Mapping[str, str]) -> NoReturn:
    """Replace the current process with *command*.

    Pending log records are flushed first; buffered output does not
    survive the exec.

    Raises:
        BackendUnavailable: If the program cannot be found.
        NotExecutable: If the program exists but cannot be run.
    """
    log.debug("Exec: %s", format_command(command))
    flush_logging()
    try:
        os.execvpe(command[0], list(command), dict(env))
    except FileNotFoundError:
        raise BackendUnavailable(str(command[0])) from None
    except OSError as exc:
        raise NotExecutable(str(command[0]), exc.strerror or str(exc)) from None


def taskset_prefix(mask: str) -> list[str]:
    """Command prefix pinning the child to the CPUs in *mask*.

    Empty when ``taskset`` is not installed; execution then proceeds
    unpinned.
    """
    if shutil.which(TASKSET):
        return [TASKSET, mask]
    log.warning("taskset not found, CPU pinning disabled")
    return []


def raise_fd_limit() -> int:
    """Raise the soft open-file limit to the hard limit.

    Children inherit the new limit.  Returns the soft limit now in force.
    """
    soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    if hard == resource.RLIM_INFINITY or soft == hard:
        return soft
    try:
        resource.setrlimit(resource.RLIMIT_NOFILE, (hard, hard))
    except (ValueError, OSError) as exc:
        log.warning("Could not raise open-file limit from %d to %d: %s", soft, hard, exc)
        return soft
    log.debug("Raised open-file limit from %d to %d", soft, hard)
    return hard
