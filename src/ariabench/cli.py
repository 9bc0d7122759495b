"""Command-line interface for ariabench.

``ariabench [OPTIONS] MODE [TARGET] [ARGS]...``

Modes:
    bench      Run the statistical bench harness (cargo bench)
    micro      Run one .aria micro-benchmark with the runtime
    perf       Run a bench binary under perf record
    time       Run a bench binary and report real/user/sys time
    valgrind   Run a bench binary under cachegrind
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from ariabench import __version__
from ariabench.config import REPORT_FORMATS, resolve_config
from ariabench.dispatch import dispatch
from ariabench.errors import AriaBenchError, BuildFailure
from ariabench.logging import get_logger, setup_logging
from ariabench.request import InvocationRequest

log = get_logger("cli")


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
@click.version_option(version=__version__)
@click.option(
    "--root",
    "root_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Aria checkout (default: $ARIA_ROOT or nearest Cargo.toml ancestor).",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Project file (default: ariabench.yaml in the root).",
)
@click.option("--profile", "build_profile", type=str, default=None, help="Cargo build profile.")
@click.option(
    "--executable",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Executable to run, skipping build and locate.",
)
@click.option(
    "--lib-dir",
    "lib_dirs",
    type=str,
    multiple=True,
    help="Library search directory (repeatable; replaces ARIA_LIB_DIR).",
)
@click.option("--affinity", "affinity_mask", type=str, default=None, help="taskset CPU mask.")
@click.option(
    "--report-format",
    type=click.Choice(REPORT_FORMATS),
    default=None,
    help="How to read cargo's build report.",
)
@click.option("--dry-run", is_flag=True, help="Print the final command instead of running it.")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
@click.argument("mode", required=False)
@click.argument("target", required=False)
@click.argument("extra_args", nargs=-1, type=click.UNPROCESSED)
def main(  # noqa: PLR0913
    root_dir: Path | None,
    config_file: Path | None,
    build_profile: str | None,
    executable: Path | None,
    lib_dirs: tuple[str, ...],
    affinity_mask: str | None,
    report_format: str | None,
    dry_run: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
    mode: str | None,
    target: str | None,
    extra_args: tuple[str, ...],
) -> None:
    """Benchmark the Aria runtime.

    MODE is one of bench, micro, perf, time, valgrind.  Options must
    come before MODE; in micro mode everything after TARGET is passed
    to the runtime.

    \b
    Examples:
        # Statistical harness, filtered to hashmap benches
        ariabench bench hashmap

        # One micro-benchmark, pinned to CPUs 0 and 1
        CPU_AFFINITY_MASK=0x3 ariabench micro fib 30

        # Time the sort bench binary
        ariabench time sort
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        request = InvocationRequest.from_args(mode, target, extra_args)
        config = resolve_config(
            os.environ,
            root_dir=root_dir,
            config_file=config_file,
            overrides={
                "build_profile": build_profile,
                "executable_override": executable,
                "lib_search_path": lib_dirs,
                "affinity_mask": affinity_mask,
                "report_format": report_format,
            },
        )
        status = dispatch(request, config, os.environ, dry_run=dry_run)
    except BuildFailure as exc:
        if exc.output:
            click.echo(exc.output, err=True, nl=not exc.output.endswith("\n"))
        log.error("%s", exc)
        raise SystemExit(exc.exit_code) from exc
    except AriaBenchError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(exc.exit_code) from exc
    except KeyboardInterrupt:
        click.echo("\nInterrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    raise SystemExit(status)
