"""Drive cargo to run or compile the bench harness.

Two entry points:

- :func:`run_harness` runs ``cargo bench`` to completion; the harness
  executes and reports its own benchmarks.
- :func:`build_only` compiles the harness without running it
  (``cargo bench --no-run``) and returns the build report so the bench
  binary can be located and run under a profiler.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping

from ariabench.config import EffectiveConfig
from ariabench.errors import BackendUnavailable, BuildFailure
from ariabench.logging import get_logger
from ariabench.process import exit_status, format_command, run_child

log = get_logger("build")

CARGO = "cargo"


def harness_command(config: EffectiveConfig, target: str = "") -> list[str]:
    """``cargo bench`` at the configured profile, filtered by *target*."""
    command = [CARGO, "bench", "--profile", config.build_profile]
    if target:
        command.append(target)
    return command


def build_only_command(config: EffectiveConfig, target: str = "") -> list[str]:
    """``cargo bench --no-run`` at the configured profile, filtered by *target*."""
    command = [CARGO, "bench", "--no-run", "--profile", config.build_profile]
    if config.report_format == "json":
        command.append("--message-format=json")
    if target:
        command.append(target)
    return command


def run_harness(config: EffectiveConfig, target: str, env: Mapping[str, str]) -> int:
    """Run the statistical bench harness and return its exit status."""
    command = harness_command(config, target)
    log.info("Running bench harness: %s", format_command(command))
    return run_child(command, env=env, cwd=str(config.root_dir))


def build_only(config: EffectiveConfig, target: str, env: Mapping[str, str]) -> str:
    """Compile the bench harness and return the combined build output.

    Raises:
        BuildFailure: If cargo exits non-zero.
        BackendUnavailable: If cargo is not installed.
    """
    command = build_only_command(config, target)
    log.info("Building bench harness: %s", format_command(command))
    try:
        proc = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            cwd=str(config.root_dir),
            env=dict(env),
            check=False,
        )
    except FileNotFoundError:
        raise BackendUnavailable(CARGO) from None

    if proc.returncode != 0:
        raise BuildFailure(command, exit_status(proc.returncode), proc.stdout)
    log.debug("Build report:\n%s", proc.stdout)
    return proc.stdout
