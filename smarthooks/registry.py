"""Language registry: loads the per-language dispatch table from YAML.

``languages.yaml`` ships inside the package. Each entry becomes a
``LanguageSpec``; each runner entry a ``RunnerSpec`` whose preconditions are
checked against the project directory at dispatch time.
"""

import json
import re
import shlex
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml

from smarthooks.config import HookConfig
from smarthooks.errors import ConfigError
from smarthooks.runner import CommandRunner

PACKAGE_DIR = Path(__file__).parent.resolve()
REGISTRY_FILE = PACKAGE_DIR / "languages.yaml"

TEST_MODES = ("direct", "focused", "package", "all")


@dataclass
class RunnerSpec:
    """One way of running tests for a mode, with its preconditions."""

    label: str
    command: list[str]
    config_args: str = ""
    requires_command: str = ""
    requires_paths: list[str] = field(default_factory=list)
    requires_script: str = ""
    requires_file_contains: dict[str, str] = field(default_factory=dict)
    matches: str = ""

    def applicable(self, project_dir: Path, runner: CommandRunner, target: str = "") -> bool:
        """Check every precondition; all must hold."""
        if self.matches and not re.search(self.matches, target):
            return False
        if self.requires_command and not runner.exists(self.requires_command):
            return False
        if any(not (project_dir / p).exists() for p in self.requires_paths):
            return False
        if self.requires_script and not _has_npm_script(project_dir, self.requires_script):
            return False
        if self.requires_file_contains:
            path = project_dir / self.requires_file_contains.get("path", "")
            text = self.requires_file_contains.get("text", "")
            if not path.is_file():
                return False
            try:
                if text not in path.read_text(encoding="utf-8", errors="replace"):
                    return False
            except OSError:
                return False
        return True

    def render(self, values: dict[str, str], config: HookConfig | None = None) -> list[str]:
        """Substitute placeholders and append configured extra arguments."""
        argv = [part.format(**values) for part in self.command]
        if self.config_args and config is not None:
            extra = getattr(config, self.config_args, "")
            if extra:
                argv.extend(shlex.split(extra))
        return argv


@dataclass
class LanguageSpec:
    """Naming conventions and runners for one language."""

    name: str
    toggle: str
    extensions: list[str]
    test_file_pattern: str
    strip_suffix: str
    candidates: list[str] = field(default_factory=list)
    no_test_bases: list[str] = field(default_factory=list)
    no_test_dirs: list[str] = field(default_factory=list)
    no_test_pattern: str = ""
    runners: dict[str, list[RunnerSpec]] = field(default_factory=dict)

    def handles(self, path: str | Path) -> bool:
        return Path(path).suffix.lower() in self.extensions

    def is_test_file(self, path: str | Path) -> bool:
        return re.search(self.test_file_pattern, Path(path).as_posix()) is not None

    def base_name(self, path: str | Path) -> str:
        """File name with the language suffix (and any test suffix) removed."""
        return re.sub(self.strip_suffix, "", Path(path).name)

    def exempt_from_tests(self, path: str | Path) -> bool:
        """Files that typically don't need tests of their own."""
        path = Path(path)
        if self.base_name(path) in self.no_test_bases:
            return True
        parent = f"/{path.parent.as_posix().strip('/')}/"
        if any(f"/{d.strip('/')}/" in parent for d in self.no_test_dirs):
            return True
        if self.no_test_pattern and re.search(self.no_test_pattern, path.as_posix()):
            return True
        return False

    def runners_for(self, mode: str) -> list[RunnerSpec]:
        return self.runners.get(mode, [])


def _has_npm_script(project_dir: Path, script: str) -> bool:
    package_json = project_dir / "package.json"
    if not package_json.is_file():
        return False
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    scripts = data.get("scripts") or {}
    return isinstance(scripts, dict) and bool(scripts.get(script))


def _parse_language(name: str, data: dict) -> LanguageSpec:
    runners: dict[str, list[RunnerSpec]] = {}
    for mode, entries in (data.get("runners") or {}).items():
        if mode not in TEST_MODES:
            raise ConfigError(f"Unknown test mode '{mode}' for language '{name}'")
        runners[mode] = [RunnerSpec(**entry) for entry in entries or []]

    return LanguageSpec(
        name=name,
        toggle=data["toggle"],
        extensions=[e.lower() for e in data.get("extensions", [])],
        test_file_pattern=data["test_file_pattern"],
        strip_suffix=data["strip_suffix"],
        candidates=list(data.get("candidates") or []),
        no_test_bases=list(data.get("no_test_bases") or []),
        no_test_dirs=list(data.get("no_test_dirs") or []),
        no_test_pattern=data.get("no_test_pattern", ""),
        runners=runners,
    )


def load_registry(path: Path = REGISTRY_FILE) -> dict[str, LanguageSpec]:
    """Read a registry file. Language order in the file is preserved."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read language registry {path}: {e}") from e

    languages = (data or {}).get("languages") or {}
    try:
        return {name: _parse_language(name, spec) for name, spec in languages.items()}
    except (KeyError, TypeError) as e:
        raise ConfigError(f"Invalid language registry {path}: {e}") from e


@lru_cache(maxsize=1)
def default_registry() -> dict[str, LanguageSpec]:
    return load_registry(REGISTRY_FILE)


def language_for_file(
    path: str | Path, registry: dict[str, LanguageSpec] | None = None
) -> LanguageSpec | None:
    """Find the language that owns a file extension."""
    registry = registry if registry is not None else default_registry()
    for spec in registry.values():
        if spec.handles(path):
            return spec
    return None
