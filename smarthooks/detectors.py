"""Project detection engine for smarthooks.

Inspects a project directory for marker files and source extensions and
returns the languages whose linters and test runners apply.
"""

import json
import logging
import os
import tomllib
from pathlib import Path

from smarthooks import ProjectProfile
from smarthooks.config import OVERRIDE_FILE
from smarthooks.files import IGNORE_FILE

logger = logging.getLogger(__name__)

# Detection order is also the order languages are linted in
LANGUAGE_MARKERS = {
    "ruby": ["Gemfile", "Gemfile.lock", ".ruby-version"],
    "python": ["pyproject.toml", "setup.py", "requirements.txt"],
    "javascript": ["package.json", "tsconfig.json"],
    "rust": ["Cargo.toml"],
}

LANGUAGE_EXTENSIONS = {
    "ruby": {".rb"},
    "python": {".py"},
    "javascript": {".js", ".ts", ".jsx", ".tsx"},
    "rust": {".rs"},
}

# Files whose presence means the project declares its own toolchain
MANIFESTS = {
    "ruby": ["Gemfile"],
    "python": ["pyproject.toml", "setup.py", "requirements.txt"],
    "javascript": ["package.json"],
    "rust": ["Cargo.toml"],
}

SKIP_DIRS = {
    "node_modules",
    "__pycache__",
    ".git",
    ".venv",
    "venv",
    ".tox",
    "dist",
    "build",
    "target",
    ".next",
    ".nuxt",
    "coverage",
    "htmlcov",
    "vendor",
}

SEARCH_DEPTH = 3


def detect_project_types(path: Path) -> list[str]:
    """Return the language tags present in a project, in detection order."""
    found_extensions = _scan_extensions(path, SEARCH_DEPTH)
    types = []
    for language, markers in LANGUAGE_MARKERS.items():
        if any((path / marker).exists() for marker in markers):
            types.append(language)
        elif LANGUAGE_EXTENSIONS[language] & found_extensions:
            types.append(language)

    logger.debug("Detected project type: %s", ",".join(types) or "unknown")
    return types


def detect_project(path: Path) -> ProjectProfile:
    """Analyze project directory and return detected profile."""
    profile = ProjectProfile()

    _detect_name(path, profile)
    profile.languages = detect_project_types(path)
    _detect_manifests(path, profile)
    _detect_directories(path, profile)
    _detect_existing_setup(path, profile)

    return profile


def has_manifest(path: Path, language: str) -> bool:
    return any((path / name).exists() for name in MANIFESTS.get(language, []))


def _scan_extensions(path: Path, max_depth: int) -> set[str]:
    """Collect file extensions up to ``max_depth`` levels deep."""
    extensions: set[str] = set()
    root_depth = len(path.parts)

    for current, dirs, files in os.walk(path):
        depth = len(Path(current).parts) - root_depth
        # Prune in place so os.walk does not descend
        dirs[:] = [d for d in dirs if d not in SKIP_DIRS and depth + 1 < max_depth]
        for name in files:
            suffix = Path(name).suffix.lower()
            if suffix:
                extensions.add(suffix)

    return extensions


def _detect_name(path: Path, profile: ProjectProfile) -> None:
    """Detect project name from manifests, falling back to the directory name."""
    pyproject_data = _read_pyproject(path)
    if pyproject_data:
        profile.name = pyproject_data.get("project", {}).get("name", "")

    if not profile.name:
        package_json = path / "package.json"
        if package_json.exists():
            try:
                data = json.loads(package_json.read_text(encoding="utf-8"))
                profile.name = data.get("name", "") or ""
            except (OSError, ValueError):
                logger.debug("Unreadable package.json in %s", path)

    if not profile.name:
        cargo_data = _read_toml(path / "Cargo.toml")
        profile.name = cargo_data.get("package", {}).get("name", "")

    if not profile.name:
        profile.name = path.name


def _detect_manifests(path: Path, profile: ProjectProfile) -> None:
    seen = []
    for names in MANIFESTS.values():
        for name in names:
            if (path / name).exists() and name not in seen:
                seen.append(name)
    profile.manifests = seen


def _detect_directories(path: Path, profile: ProjectProfile) -> None:
    """Detect top-level test directories."""
    test_dirs = []
    try:
        for item in sorted(path.iterdir()):
            if item.is_dir() and item.name in ("tests", "test", "spec", "__tests__"):
                test_dirs.append(item.name)
    except PermissionError:
        pass
    profile.test_dirs = test_dirs


def _detect_existing_setup(path: Path, profile: ProjectProfile) -> None:
    """Detect hook configuration files and git."""
    profile.has_ignore_file = (path / IGNORE_FILE).exists()
    profile.has_override_config = (path / OVERRIDE_FILE).exists()
    profile.git_initialized = (path / ".git").exists()


def _read_toml(toml_path: Path) -> dict:
    if not toml_path.exists():
        return {}
    try:
        return tomllib.loads(toml_path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return {}  # Malformed TOML -> skip, don't crash


def _read_pyproject(path: Path) -> dict:
    """Read pyproject.toml using tomllib (stdlib 3.11+)."""
    return _read_toml(path / "pyproject.toml")
