"""Effective configuration for a single ariabench invocation.

Handles:
- Locating the Aria checkout the defaults are anchored to.
- Loading the optional ``ariabench.yaml`` project file.
- Merging defaults, project file, environment and CLI overrides
  (later sources win).
- Exporting the resolved values into the environment of child processes.

The result is a frozen :class:`EffectiveConfig`; nothing mutates it after
:func:`resolve_config` returns.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ariabench.errors import ConfigError
from ariabench.logging import get_logger

log = get_logger("config")

PROJECT_FILE = "ariabench.yaml"
DEFAULT_BUILD_PROFILE = "release"
DEFAULT_AFFINITY_MASK = "0x1"
MICROBENCH_DIR = "microbenchmarks"
MICROBENCH_SUFFIX = ".aria"
REPORT_FORMATS = ("human", "json")

# Environment variable names, keyed by EffectiveConfig field.
ENV_VARS: dict[str, str] = {
    "build_profile": "ARIA_BUILD_CONFIG",
    "affinity_mask": "CPU_AFFINITY_MASK",
    "executable_override": "ARIA_EXECUTABLE",
    "lib_search_path": "ARIA_LIB_DIR",
}

# Project file keys, keyed by EffectiveConfig field.
_FILE_KEYS: dict[str, str] = {
    "build_profile": "build_config",
    "affinity_mask": "cpu_affinity_mask",
    "executable_override": "executable",
    "lib_search_path": "lib_dir",
    "microbench_dir": "microbench_dir",
    "report_format": "report_format",
}

# cargo writes the dev and test profiles to target/debug, bench to target/release.
_PROFILE_DIRS: dict[str, str] = {
    "dev": "debug",
    "test": "debug",
    "bench": "release",
}


# ---------------------------------------------------------------------------
# EffectiveConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EffectiveConfig:
    """Resolved configuration for one invocation."""

    root_dir: Path
    build_profile: str = DEFAULT_BUILD_PROFILE
    executable_override: Path | None = None
    lib_search_path: tuple[str, ...] = field(default_factory=tuple)
    affinity_mask: str = DEFAULT_AFFINITY_MASK
    microbench_dir: Path | None = None
    report_format: str = "human"

    @property
    def target_dir(self) -> Path:
        """cargo's output directory for the selected profile."""
        profile_dir = _PROFILE_DIRS.get(self.build_profile, self.build_profile)
        return self.root_dir / "target" / profile_dir

    @property
    def executable(self) -> Path:
        """The Aria runtime to run micro-benchmarks with."""
        if self.executable_override is not None:
            return self.executable_override
        return self.target_dir / "aria"

    @property
    def micro_dir(self) -> Path:
        """Directory holding ``.aria`` micro-benchmark scripts."""
        if self.microbench_dir is not None:
            return self.microbench_dir
        return self.root_dir / MICROBENCH_DIR

    @property
    def lib_dir(self) -> str:
        """The search path in ``ARIA_LIB_DIR`` form."""
        return ":".join(self.lib_search_path)

    def with_lib_dir(self, directory: str | Path) -> EffectiveConfig:
        """Return a copy whose search path ends with *directory*."""
        return replace(self, lib_search_path=(*self.lib_search_path, str(directory)))


# ---------------------------------------------------------------------------
# Root discovery
# ---------------------------------------------------------------------------


def find_root(start: Path | None = None) -> Path:
    """Return the nearest ancestor of *start* that holds a ``Cargo.toml``.

    Falls back to *start* itself (the working directory by default).
    """
    start = (start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / "Cargo.toml").is_file():
            return candidate
    return start


def default_lib_search_path(root_dir: Path) -> tuple[str, ...]:
    """The two library directories shipped in an Aria checkout."""
    return (str(root_dir / "lib"), str(root_dir / "lib-test"))


def split_search_path(value: str | list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """Split a colon-joined search path (or a list of entries) into a tuple."""
    if isinstance(value, str):
        return tuple(p for p in value.split(":") if p)
    return tuple(str(p) for p in value if str(p))


# ---------------------------------------------------------------------------
# Project file
# ---------------------------------------------------------------------------


def load_project_file(path: Path) -> dict[str, Any]:
    """Load an ariabench project file.

    Format::

        build_config: release
        cpu_affinity_mask: "0x3"
        executable: target/release/aria
        lib_dir:
          - lib
          - lib-test
        microbench_dir: microbenchmarks
        report_format: human

    Relative paths are taken relative to the checkout root.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    import yaml

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must be a YAML mapping, got {type(data).__name__}")

    unknown = sorted(set(data) - set(_FILE_KEYS.values()))
    if unknown:
        log.warning("Ignoring unknown keys in %s: %s", path, ", ".join(unknown))
    return data


def _file_values(data: Mapping[str, Any], root_dir: Path) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for attr, key in _FILE_KEYS.items():
        raw = data.get(key)
        if raw is None:
            continue
        if attr == "lib_search_path":
            values[attr] = tuple(
                str(_under_root(Path(p), root_dir)) for p in split_search_path(raw)
            )
        elif attr in ("executable_override", "microbench_dir"):
            values[attr] = _under_root(Path(str(raw)), root_dir)
        else:
            # YAML reads 0x10 as 16 and 1.10 as 1.1; only quoted values survive intact.
            if not isinstance(raw, str):
                raise ConfigError(
                    f"{key} must be a quoted string in the project file, "
                    f"got {type(raw).__name__} {raw!r}"
                )
            values[attr] = raw
    return values


def _under_root(path: Path, root_dir: Path) -> Path:
    return path if path.is_absolute() else root_dir / path


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _env_values(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for attr, var in ENV_VARS.items():
        raw = environ.get(var)
        if not raw:
            continue
        if attr == "lib_search_path":
            values[attr] = split_search_path(raw)
        elif attr == "executable_override":
            values[attr] = Path(raw)
        else:
            values[attr] = raw
    return values


def resolve_config(
    environ: Mapping[str, str],
    *,
    root_dir: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    config_file: Path | None = None,
) -> EffectiveConfig:
    """Build the effective configuration for one invocation.

    Resolution order (later wins): built-in defaults anchored to the
    checkout root, the project file, environment variables, *overrides*.
    ``None`` values in *overrides* mean "not given".

    Args:
        environ: Environment to read ``ARIA_*`` variables from.
        root_dir: Checkout root.  Defaults to ``ARIA_ROOT`` or the nearest
            ancestor of the working directory holding a ``Cargo.toml``.
        overrides: CLI values keyed by :class:`EffectiveConfig` field name.
        config_file: Project file to load.  Defaults to ``ariabench.yaml``
            in the root, if present.

    Raises:
        ConfigError: If the project file is malformed.
    """
    if root_dir is None:
        root_dir = Path(environ["ARIA_ROOT"]) if environ.get("ARIA_ROOT") else find_root()
    root_dir = root_dir.resolve()

    values: dict[str, Any] = {"lib_search_path": default_lib_search_path(root_dir)}

    if config_file is None and (root_dir / PROJECT_FILE).is_file():
        config_file = root_dir / PROJECT_FILE
    if config_file is not None:
        log.debug("Loading project file %s", config_file)
        values.update(_file_values(load_project_file(config_file), root_dir))

    values.update(_env_values(environ))

    for attr, raw in (overrides or {}).items():
        if raw is None or raw == ():
            continue
        if attr == "lib_search_path":
            raw = split_search_path(raw)
        elif attr in ("executable_override", "microbench_dir"):
            raw = Path(raw)
        values[attr] = raw

    report_format = values.get("report_format", "human")
    if report_format not in REPORT_FORMATS:
        raise ConfigError(
            f"Unknown report_format '{report_format}'. "
            f"Expected one of: {', '.join(REPORT_FORMATS)}"
        )

    config = EffectiveConfig(root_dir=root_dir, **values)
    log.debug(
        "Config: profile=%s executable=%s lib_dir=%s affinity=%s",
        config.build_profile,
        config.executable,
        config.lib_dir,
        config.affinity_mask,
    )
    return config


def child_env(config: EffectiveConfig, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Build the environment dict for child processes.

    Exports the resolved values under their ``ARIA_*`` names so the
    runtime and the bench harness see the same settings we do.
    """
    env = dict(os.environ if environ is None else environ)
    env["ARIA_BUILD_CONFIG"] = config.build_profile
    env["CPU_AFFINITY_MASK"] = config.affinity_mask
    env["ARIA_EXECUTABLE"] = str(config.executable)
    env["ARIA_LIB_DIR"] = config.lib_dir
    return env
