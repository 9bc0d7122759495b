"""Route a request to its build, environment and execution steps.

Exactly one of three things happens per invocation:

- harness delegation (``bench``),
- process replacement (``micro``),
- wrapped execution of one bench binary (``perf``/``time``/``valgrind``).

The handlers return the exit status to report; :func:`run_micro` only
returns in dry-run mode because it replaces the process otherwise.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import click

from ariabench import build, profilers
from ariabench.config import MICROBENCH_SUFFIX, EffectiveConfig, child_env
from ariabench.errors import ArtifactResolutionFailure, UsageError
from ariabench.locate import locate_artifact
from ariabench.logging import get_logger
from ariabench.process import exec_and_replace, format_command, taskset_prefix
from ariabench.request import (
    HarnessRun,
    InvocationRequest,
    MicroRun,
    ProfiledRun,
    Work,
    plan,
)

log = get_logger("dispatch")


# ---------------------------------------------------------------------------
# micro
# ---------------------------------------------------------------------------


def resolve_micro_target(config: EffectiveConfig, target: str) -> Path:
    """Return *target* if it is a file, else its conventional location.

    ``foo`` becomes ``<microbench dir>/foo.aria``.
    """
    if Path(target).is_file():
        return Path(target)
    return config.micro_dir / f"{target}{MICROBENCH_SUFFIX}"


def micro_command(config: EffectiveConfig, work: MicroRun) -> list[str]:
    """The runtime invocation for a micro-benchmark, pinned if possible."""
    script = resolve_micro_target(config, work.target)
    return [
        *taskset_prefix(config.affinity_mask),
        str(config.executable),
        str(script),
        *work.extra_args,
    ]


def run_micro(
    config: EffectiveConfig,
    work: MicroRun,
    environ: Mapping[str, str],
    *,
    dry_run: bool = False,
) -> int:
    """Replace this process with the runtime running one micro-benchmark."""
    if not work.target:
        raise UsageError("micro mode needs a TARGET (a script path or micro-benchmark name)")

    micro_config = config.with_lib_dir(config.micro_dir)
    command = micro_command(micro_config, work)
    env = child_env(micro_config, environ)

    if dry_run:
        click.echo(f"ARIA_LIB_DIR={micro_config.lib_dir} {format_command(command)}")
        return 0

    log.info("Running micro-benchmark: %s", format_command(command))
    exec_and_replace(command, env=env)


# ---------------------------------------------------------------------------
# bench
# ---------------------------------------------------------------------------


def run_bench(
    config: EffectiveConfig,
    work: HarnessRun,
    environ: Mapping[str, str],
    *,
    dry_run: bool = False,
) -> int:
    """Delegate to the statistical bench harness."""
    if dry_run:
        click.echo(format_command(build.harness_command(config, work.target)))
        return 0
    return build.run_harness(config, work.target, child_env(config, environ))


# ---------------------------------------------------------------------------
# perf / time / valgrind
# ---------------------------------------------------------------------------


def resolve_bench_executable(
    config: EffectiveConfig, target: str, env: Mapping[str, str]
) -> Path:
    """Build the harness and return the bench binary it produced.

    ``ARIA_EXECUTABLE`` (or ``--executable``) skips both steps.

    Raises:
        BuildFailure: If cargo exits non-zero.
        ArtifactResolutionFailure: If the build report names no binary.
    """
    if config.executable_override is not None:
        log.info("Using executable override: %s", config.executable_override)
        return config.executable_override

    report = build.build_only(config, target, env)
    artifact = locate_artifact(report, config.report_format)
    if artifact is None:
        raise ArtifactResolutionFailure(
            f"No bench executable found in the output of "
            f"'{format_command(build.build_only_command(config, target))}'. "
            f"Check that TARGET matches a bench target."
        )
    return artifact.path


def run_profiled(
    config: EffectiveConfig,
    work: ProfiledRun,
    environ: Mapping[str, str],
    *,
    dry_run: bool = False,
) -> int:
    """Build, locate and run one bench binary under a measurement backend."""
    env = child_env(config, environ)
    executable = resolve_bench_executable(config, work.target, env)

    if dry_run:
        click.echo(format_command(profilers.profiler_command(work.backend, executable)))
        return 0
    return profilers.invoke(work.backend, executable, env=env, cwd=str(config.root_dir))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def dispatch(
    request: InvocationRequest,
    config: EffectiveConfig,
    environ: Mapping[str, str] | None = None,
    *,
    dry_run: bool = False,
) -> int:
    """Carry out *request* and return the exit status to report."""
    environ = os.environ if environ is None else environ
    work: Work = plan(request)

    if not isinstance(work, MicroRun) and request.extra_args:
        log.warning(
            "Ignoring extra arguments in %s mode: %s",
            request.mode.value,
            format_command(request.extra_args),
        )

    if isinstance(work, HarnessRun):
        return run_bench(config, work, environ, dry_run=dry_run)
    if isinstance(work, MicroRun):
        return run_micro(config, work, environ, dry_run=dry_run)
    return run_profiled(config, work, environ, dry_run=dry_run)
