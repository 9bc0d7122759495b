"""Locate the bench binary cargo just built.

``cargo bench --no-run`` reports each compiled harness on a line like::

      Executable benches/control_flow.rs (target/release/deps/control_flow-1a2b3c4d)

That report is meant for humans and is not a stable format, so all
knowledge of it lives here.  :func:`parse_artifact_path_json` reads the
machine-readable stream (``--message-format=json``) instead, and
:func:`locate_artifact` picks between the two.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from ariabench.logging import get_logger

log = get_logger("locate")

ARTIFACT_MARKER = "Executable"


@dataclass(frozen=True)
class BuildArtifact:
    """A resolved bench executable and the report it was found in."""

    path: Path
    report: str


def parse_artifact_path(text: str) -> Path | None:
    """Return the executable named on the last ``Executable`` line of *text*.

    The path is the final whitespace-delimited token of that line with one
    pair of enclosing parentheses removed.  Returns ``None`` when no line
    carries the marker.
    """
    matches = [
        line.split()
        for line in text.splitlines()
        if line.split()[:1] == [ARTIFACT_MARKER]
    ]
    if not matches:
        return None

    # A single build can report several harnesses; the last one wins.
    token = matches[-1][-1]
    if token.startswith("(") and token.endswith(")"):
        token = token[1:-1]
    if not token or token == ARTIFACT_MARKER:
        return None
    return Path(token)


def parse_artifact_path_json(text: str) -> Path | None:
    """Return the last bench executable in cargo's JSON message stream."""
    found: Path | None = None
    for line in text.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            log.debug("Skipping non-JSON line: %s", line[:80])
            continue
        if message.get("reason") != "compiler-artifact":
            continue
        executable = message.get("executable")
        kinds = message.get("target", {}).get("kind", [])
        if executable and "bench" in kinds:
            found = Path(executable)
    return found


_PARSERS = {
    "human": parse_artifact_path,
    "json": parse_artifact_path_json,
}


def locate_artifact(report: str, report_format: str = "human") -> BuildArtifact | None:
    """Find the bench executable in a build *report*.

    Returns ``None`` if the report names no executable.
    """
    path = _PARSERS[report_format](report)
    if path is None:
        log.debug("No executable found in %d-line build report", len(report.splitlines()))
        return None
    log.debug("Located bench executable: %s", path)
    return BuildArtifact(path=path, report=report)
