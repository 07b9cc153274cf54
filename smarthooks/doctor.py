"""Environment check for smarthooks.

Reports which external linters and test runners the hooks would find for a
project, and flags tools a manifest declares that are not installed.
"""

from pathlib import Path

from smarthooks.config import OVERRIDE_FILE, load_config
from smarthooks.detectors import detect_project_types
from smarthooks.errors import ConfigError
from smarthooks.runner import CommandRunner

# (command, manifest, text) - the tool counts as declared when the manifest
# exists and mentions text
LANGUAGE_TOOLS = {
    "ruby": [
        ("rubocop", "Gemfile", "rubocop"),
        ("erb_lint", "Gemfile", "erb_lint"),
        ("rails_best_practices", "Gemfile", "rails_best_practices"),
        ("bundle-audit", "Gemfile", "bundler-audit"),
        ("rspec", "Gemfile", "rspec"),
    ],
    "python": [
        ("black", "pyproject.toml", "black"),
        ("ruff", "pyproject.toml", "ruff"),
        ("flake8", "pyproject.toml", "flake8"),
        ("pytest", "pyproject.toml", "pytest"),
    ],
    "javascript": [
        ("tsc", "package.json", "typescript"),
        ("eslint", "package.json", "eslint"),
        ("prettier", "package.json", "prettier"),
        ("npm", "package.json", "scripts"),
    ],
    "rust": [
        ("cargo", "Cargo.toml", "[package]"),
    ],
}

# Tools npx can run from node_modules without a global install
NPX_TOOLS = {"tsc", "eslint", "prettier"}


def _declares(path: Path, manifest: str, text: str) -> bool:
    manifest_path = path / manifest
    if not manifest_path.is_file():
        return False
    try:
        return text in manifest_path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def check_tools(path: Path, runner: CommandRunner | None = None) -> tuple[list[str], list[str]]:
    """Check hook prerequisites. Returns (passes, failures)."""
    runner = runner if runner is not None else CommandRunner(path)
    passes = []
    failures = []

    # Override config must load
    if (path / OVERRIDE_FILE).is_file():
        try:
            load_config(path)
            passes.append(f"'{OVERRIDE_FILE}' loads")
        except ConfigError as e:
            failures.append(f"{e} - fix the script or remove it")

    # Git is needed to find modified files
    if not (path / ".git").exists():
        passes.append("Not a git repository (linters will check the whole project)")
    elif runner.exists("git"):
        passes.append("'git' available")
    else:
        failures.append("'git' not found on PATH - modified files cannot be listed")

    languages = detect_project_types(path)
    if not languages:
        passes.append("No recognized project type (nothing to check)")
        return passes, failures

    has_npx = runner.exists("npx")
    for language in languages:
        for command, manifest, text in LANGUAGE_TOOLS.get(language, []):
            declared = _declares(path, manifest, text)
            if runner.exists(command):
                passes.append(f"[{language}] '{command}' available")
            elif command in NPX_TOOLS and has_npx and declared:
                passes.append(f"[{language}] '{command}' available via npx")
            elif declared:
                failures.append(
                    f"[{language}] '{command}' is declared in {manifest} but not installed"
                )
            else:
                passes.append(f"[{language}] '{command}' missing (optional - check skipped)")

    return passes, failures
