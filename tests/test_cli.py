"""Tests for ariabench.cli — the click entry point."""

from __future__ import annotations

import logging
import signal
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from ariabench import __version__
from ariabench.cli import main


class _CliCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        self.runner = CliRunner()

    def tearDown(self) -> None:
        # Handlers created during invoke() point at CliRunner's closed streams.
        logging.getLogger("ariabench").handlers.clear()
        self._tmp.cleanup()

    def invoke(self, *args: str, env: dict[str, str] | None = None):  # type: ignore[no-untyped-def]
        return self.runner.invoke(main, ["--root", str(self.root), *args], env=env)


class TestHelp(unittest.TestCase):
    def test_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("MODE", result.output)
        self.assertIn("--dry-run", result.output)
        self.assertIn("--affinity", result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)


class TestUsageErrors(_CliCase):
    @patch("ariabench.cli.dispatch")
    def test_missing_mode(self, mock_dispatch: MagicMock) -> None:
        result = self.invoke()
        self.assertEqual(result.exit_code, 1)
        self.assertIn("missing mode", result.output)
        self.assertIn("Usage:", result.output)
        mock_dispatch.assert_not_called()

    @patch("ariabench.cli.dispatch")
    def test_unknown_mode(self, mock_dispatch: MagicMock) -> None:
        result = self.invoke("flamegraph", "sort")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("unknown mode 'flamegraph'", result.output)
        self.assertIn("Usage:", result.output)
        mock_dispatch.assert_not_called()


class TestModes(_CliCase):
    @patch("ariabench.build.run_child", return_value=4)
    def test_bench_propagates_harness_status(self, mock_child: MagicMock) -> None:
        result = self.invoke("bench", "hashmap")
        self.assertEqual(result.exit_code, 4)
        self.assertEqual(
            mock_child.call_args.args[0],
            ["cargo", "bench", "--profile", "release", "hashmap"],
        )

    @patch("ariabench.build.run_child", return_value=0)
    def test_profile_option(self, mock_child: MagicMock) -> None:
        result = self.invoke("--profile", "dev", "bench")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(mock_child.call_args.args[0], ["cargo", "bench", "--profile", "dev"])

    @patch("ariabench.dispatch.exec_and_replace")
    @patch("ariabench.process.shutil.which", return_value="/usr/bin/taskset")
    def test_micro_forwards_trailing_args(
        self, _which_mock: MagicMock, mock_exec: MagicMock
    ) -> None:
        result = self.invoke("micro", "fib", "30", "--iterations", "5", "-v")
        self.assertEqual(result.exit_code, 0, result.output)
        command = mock_exec.call_args.args[0]
        self.assertEqual(command[-4:], ["30", "--iterations", "5", "-v"])

    @patch("ariabench.dispatch.exec_and_replace")
    @patch("ariabench.process.shutil.which", return_value="/usr/bin/taskset")
    def test_affinity_from_environment(
        self, _which_mock: MagicMock, mock_exec: MagicMock
    ) -> None:
        result = self.invoke("micro", "fib", env={"CPU_AFFINITY_MASK": "0x3"})
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(mock_exec.call_args.args[0][:2], ["taskset", "0x3"])

    @patch("ariabench.profilers.invoke")
    @patch("ariabench.build.subprocess.run")
    def test_build_failure_surfaces_cargo_output(
        self, mock_build: MagicMock, mock_invoke: MagicMock
    ) -> None:
        mock_build.return_value = subprocess.CompletedProcess(
            args=[], returncode=101, stdout="error: could not compile `haxby_vm`\n"
        )
        result = self.invoke("time", "sort")
        self.assertEqual(result.exit_code, 101)
        self.assertIn("could not compile", result.output)
        mock_invoke.assert_not_called()

    @patch("ariabench.profilers.invoke")
    @patch("ariabench.build.subprocess.run")
    def test_killed_build_exits_128_plus_signal(
        self, mock_build: MagicMock, mock_invoke: MagicMock
    ) -> None:
        mock_build.return_value = subprocess.CompletedProcess(
            args=[], returncode=-signal.SIGKILL, stdout="   Compiling haxby_vm\n"
        )
        result = self.invoke("time", "sort")
        self.assertEqual(result.exit_code, 128 + signal.SIGKILL)
        mock_invoke.assert_not_called()

    def test_non_executable_override_exits_126(self) -> None:
        binary = self.root / "sort-bench"
        binary.write_text("not a program\n")
        binary.chmod(0o644)
        result = self.invoke("--executable", str(binary), "time", "sort")
        self.assertEqual(result.exit_code, 126)
        self.assertIn("Error: cannot execute", result.output)

    @patch("ariabench.profilers.invoke")
    @patch("ariabench.build.subprocess.run")
    def test_unresolved_artifact_exits_1(
        self, mock_build: MagicMock, mock_invoke: MagicMock
    ) -> None:
        mock_build.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="    Finished `release` profile\n"
        )
        result = self.invoke("time", "nosuch")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("No bench executable found", result.output)
        mock_invoke.assert_not_called()

    @patch("ariabench.process.shutil.which", return_value=None)
    @patch("ariabench.build.subprocess.run")
    def test_missing_profiler_exits_127(
        self, mock_build: MagicMock, _which_mock: MagicMock
    ) -> None:
        mock_build.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="  Executable (target/release/deps/sort-1)\n"
        )
        result = self.invoke("perf", "sort")
        self.assertEqual(result.exit_code, 127)
        self.assertIn("perf not found", result.output)

    @patch("ariabench.build.run_child")
    def test_dry_run(self, mock_child: MagicMock) -> None:
        result = self.invoke("--dry-run", "bench", "hashmap")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("cargo bench --profile release hashmap", result.output)
        mock_child.assert_not_called()

    def test_malformed_project_file(self) -> None:
        (self.root / "ariabench.yaml").write_text("- not\n- a mapping\n")
        result = self.invoke("bench")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("must be a YAML mapping", result.output)

    @patch("ariabench.cli.dispatch", side_effect=KeyboardInterrupt)
    def test_interrupt_exits_130(self, _mock_dispatch: MagicMock) -> None:
        result = self.invoke("bench")
        self.assertEqual(result.exit_code, 130)


if __name__ == "__main__":
    unittest.main()
