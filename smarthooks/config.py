"""Configuration loading for smarthooks.

Settings are named ``CLAUDE_HOOKS_*`` toggles. They resolve in this order
(later wins):

1. Built-in defaults
2. Process environment
3. ``.claude-hooks-config.sh`` in the project root

The override file is a bash script. It is sourced with ``set -a`` so plain
assignments and ``export`` lines both take effect, and it may run arbitrary
logic (e.g. ``if [[ "$USER" == "ci" ]]; then ...``). The environment it
leaves behind is read back and parsed like the process environment.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path

from smarthooks.errors import ConfigError

logger = logging.getLogger(__name__)

OVERRIDE_FILE = ".claude-hooks-config.sh"
ENV_PREFIX = "CLAUDE_HOOKS_"

VALID_TEST_MODES = ("focused", "package", "all")
TRUE_VALUES = {"true", "1", "yes", "on"}

# Exit status used by the sourcing wrapper when the override script fails
_SOURCE_FAILED = 97


def parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def parse_test_modes(value: str) -> list[str]:
    """Split a comma-separated mode list, dropping blanks, repeats and unknown modes."""
    modes = []
    for raw in value.split(","):
        mode = raw.strip()
        if not mode or mode in modes:
            continue
        if mode not in VALID_TEST_MODES:
            logger.debug("Ignoring unknown test mode: %s", mode)
            continue
        modes.append(mode)
    return modes


@dataclass
class HookConfig:
    """Resolved toggles for one hook run."""

    enabled: bool = True
    debug: bool = False
    fail_fast: bool = False
    show_timing: bool = False
    max_files: int = 0

    ruby_enabled: bool = True
    python_enabled: bool = True
    js_enabled: bool = True
    rust_enabled: bool = True

    test_on_edit: bool = True
    test_modes: list[str] = field(default_factory=lambda: ["focused", "package"])
    fail_on_missing_tests: bool = False
    test_verbose: bool = False

    rubocop_config: str = ""
    rspec_options: str = ""
    ruby_erb_lint: bool = True
    ruby_bundle_audit: bool = False

    eslint_config: str = ""
    prettier_config: str = ""
    tsc_strict: bool = False
    js_no_console: bool = True

    @classmethod
    def from_mapping(cls, env: Mapping[str, str]) -> HookConfig:
        """Build a config from ``CLAUDE_HOOKS_*`` keys, defaults for the rest."""
        config = cls()
        for f in fields(cls):
            key = env_key(f.name)
            if key not in env:
                continue
            raw = env[key]
            current = getattr(config, f.name)
            if f.name == "test_modes":
                setattr(config, f.name, parse_test_modes(raw))
            elif isinstance(current, bool):
                setattr(config, f.name, parse_bool(raw, default=current))
            elif isinstance(current, int):
                try:
                    setattr(config, f.name, int(raw))
                except ValueError:
                    logger.debug("Ignoring non-integer %s=%r", key, raw)
            else:
                setattr(config, f.name, raw)
        return config

    def language_enabled(self, toggle: str) -> bool:
        """Look up a per-language toggle such as ``python_enabled``."""
        return bool(getattr(self, toggle, True))

    def as_env(self) -> dict[str, str]:
        """Render back to environment form (used by ``smarthooks config``)."""
        env = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool):
                rendered = "true" if value else "false"
            elif isinstance(value, list):
                rendered = ",".join(value)
            else:
                rendered = str(value)
            env[env_key(f.name)] = rendered
        return env


def env_key(field_name: str) -> str:
    return ENV_PREFIX + field_name.upper()


def source_override_file(path: Path, environ: Mapping[str, str]) -> dict[str, str]:
    """Source a bash override script and return the environment it produces."""
    # The script's own stdout goes to stderr so only env -0 reaches stdout
    script = f'set -a; source "$1" >&2 || exit {_SOURCE_FAILED}; env -0'
    try:
        result = subprocess.run(
            ["bash", "-c", script, "smarthooks-config", str(path)],
            capture_output=True,
            cwd=str(path.parent),
            env=dict(environ),
        )
    except OSError as e:
        raise ConfigError(f"Failed to load {path.name}: {e}") from e

    if result.returncode != 0:
        detail = result.stderr.decode("utf-8", "replace").strip()
        raise ConfigError(f"Failed to load {path.name}" + (f": {detail}" if detail else ""))

    env: dict[str, str] = {}
    for entry in result.stdout.decode("utf-8", "replace").split("\0"):
        if "=" not in entry:
            continue
        key, _, value = entry.partition("=")
        env[key] = value
    return env


def load_config(
    project_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> HookConfig:
    """Resolve configuration for a project directory.

    Raises:
        ConfigError: If the project override script exists but fails to load.
    """
    project_dir = Path(project_dir) if project_dir else Path.cwd()
    env = dict(os.environ if environ is None else environ)

    override = project_dir / OVERRIDE_FILE
    if override.is_file():
        logger.debug("Sourcing project overrides from %s", override)
        env = source_override_file(override, env)

    return HookConfig.from_mapping(env)
