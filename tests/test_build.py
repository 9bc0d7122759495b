"""Tests for ariabench.build — driving cargo bench."""

from __future__ import annotations

import signal
import subprocess
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from ariabench.build import build_only, build_only_command, harness_command, run_harness
from ariabench.config import EffectiveConfig
from ariabench.errors import BackendUnavailable, BuildFailure

ROOT = Path("/src/aria")


def _config(**kwargs: object) -> EffectiveConfig:
    return EffectiveConfig(root_dir=ROOT, **kwargs)  # type: ignore[arg-type]


class TestCommands(unittest.TestCase):
    def test_harness_command_forwards_profile_and_filter(self) -> None:
        self.assertEqual(
            harness_command(_config(), "hashmap"),
            ["cargo", "bench", "--profile", "release", "hashmap"],
        )

    def test_harness_command_without_filter(self) -> None:
        self.assertEqual(
            harness_command(_config(build_profile="dev")),
            ["cargo", "bench", "--profile", "dev"],
        )

    def test_build_only_command(self) -> None:
        self.assertEqual(
            build_only_command(_config(), "sort"),
            ["cargo", "bench", "--no-run", "--profile", "release", "sort"],
        )

    def test_build_only_command_json_report(self) -> None:
        self.assertEqual(
            build_only_command(_config(report_format="json"), "sort"),
            [
                "cargo",
                "bench",
                "--no-run",
                "--profile",
                "release",
                "--message-format=json",
                "sort",
            ],
        )


class TestRunHarness(unittest.TestCase):
    @patch("ariabench.build.run_child")
    def test_runs_in_root_and_returns_status(self, mock_run: MagicMock) -> None:
        mock_run.return_value = 3
        status = run_harness(_config(), "hashmap", {"PATH": "/usr/bin"})
        self.assertEqual(status, 3)
        mock_run.assert_called_once_with(
            ["cargo", "bench", "--profile", "release", "hashmap"],
            env={"PATH": "/usr/bin"},
            cwd=str(ROOT),
        )


class TestBuildOnly(unittest.TestCase):
    @patch("ariabench.build.subprocess.run")
    def test_returns_combined_output(self, mock_run: MagicMock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="  Executable (target/release/deps/sort-1)\n"
        )
        report = build_only(_config(), "sort", {})
        self.assertIn("Executable", report)
        _, kwargs = mock_run.call_args
        self.assertEqual(kwargs["stdout"], subprocess.PIPE)
        self.assertEqual(kwargs["stderr"], subprocess.STDOUT)
        self.assertEqual(kwargs["cwd"], str(ROOT))

    @patch("ariabench.build.subprocess.run")
    def test_non_zero_exit_is_build_failure(self, mock_run: MagicMock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=101, stdout="error[E0425]: cannot find value `x`\n"
        )
        with self.assertRaises(BuildFailure) as ctx:
            build_only(_config(), "sort", {})
        self.assertEqual(ctx.exception.exit_code, 101)
        self.assertIn("E0425", ctx.exception.output)
        self.assertEqual(mock_run.call_count, 1)

    @patch("ariabench.build.subprocess.run")
    def test_killed_build_reports_shell_status(self, mock_run: MagicMock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=-signal.SIGKILL, stdout="   Compiling haxby_vm\n"
        )
        with self.assertRaises(BuildFailure) as ctx:
            build_only(_config(), "sort", {})
        self.assertEqual(ctx.exception.exit_code, 128 + signal.SIGKILL)

    @patch("ariabench.build.subprocess.run", side_effect=FileNotFoundError("cargo"))
    def test_missing_cargo(self, _mock_run: MagicMock) -> None:
        with self.assertRaises(BackendUnavailable) as ctx:
            build_only(_config(), "sort", {})
        self.assertEqual(ctx.exception.tool, "cargo")
        self.assertEqual(ctx.exception.exit_code, 127)


if __name__ == "__main__":
    unittest.main()
