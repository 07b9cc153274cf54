"""Modified-file listing and exclusion rules."""

import fnmatch
import logging
from itertools import islice
from pathlib import Path

from smarthooks.runner import CommandRunner

logger = logging.getLogger(__name__)

IGNORE_FILE = ".claude-hooks-ignore"
DISABLE_MARKER = "claude-hooks-disable"
MARKER_SCAN_LINES = 5

GIT_LISTINGS = [
    ["git", "diff", "--cached", "--name-only"],
    ["git", "diff", "--name-only"],
    ["git", "ls-files", "--others", "--exclude-standard"],
]


def get_modified_files(project_dir: Path, runner: CommandRunner) -> list[str]:
    """Staged, modified and untracked files relative to the project root.

    Returns an empty list outside a git work tree or when git is missing.
    """
    if not (project_dir / ".git").exists() or not runner.exists("git"):
        return []

    files: set[str] = set()
    for argv in GIT_LISTINGS:
        result = runner.run(argv)
        if not result.ok:
            logger.debug("%s failed: %s", result.command_line, result.output.strip())
            continue
        files.update(line.strip() for line in result.output.splitlines() if line.strip())

    return sorted(files)


def load_ignore_patterns(project_dir: Path) -> list[str]:
    """Read glob patterns from the ignore file, skipping comments and blanks."""
    ignore_file = project_dir / IGNORE_FILE
    if not ignore_file.is_file():
        return []

    patterns = []
    for line in ignore_file.read_text(encoding="utf-8", errors="replace").splitlines():
        pattern = line.strip()
        if not pattern or pattern.startswith("#"):
            continue
        patterns.append(pattern)
    return patterns


def has_disable_marker(path: Path) -> bool:
    """True when the inline opt-out marker appears in the first few lines."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            head = list(islice(f, MARKER_SCAN_LINES))
    except OSError:
        return False
    return any(DISABLE_MARKER in line for line in head)


def relative_to_project(file_path: str | Path, project_dir: Path) -> str:
    """Project-relative posix path when possible, else the path as given."""
    path = Path(file_path)
    if path.is_absolute():
        try:
            return path.resolve().relative_to(project_dir.resolve()).as_posix()
        except ValueError:
            return path.as_posix()
    return path.as_posix()


def should_skip_file(
    file_path: str | Path,
    project_dir: Path,
    patterns: list[str] | None = None,
) -> bool:
    """Apply ignore-file patterns and the inline marker to one file."""
    patterns = load_ignore_patterns(project_dir) if patterns is None else patterns
    rel = relative_to_project(file_path, project_dir)

    for pattern in patterns:
        if fnmatch.fnmatch(rel, pattern):
            logger.debug("Skipping %s due to %s pattern: %s", rel, IGNORE_FILE, pattern)
            return True

    path = Path(file_path)
    if not path.is_absolute():
        path = project_dir / path
    if path.is_file() and has_disable_marker(path):
        logger.debug("Skipping %s due to inline %s comment", rel, DISABLE_MARKER)
        return True

    return False


def select_files(
    files: list[str],
    extensions: set[str] | list[str],
    project_dir: Path,
    max_files: int = 0,
) -> list[str]:
    """Existing, non-excluded files with one of ``extensions``."""
    patterns = load_ignore_patterns(project_dir)
    wanted = {e.lower() for e in extensions}
    selected = []

    for name in files:
        if Path(name).suffix.lower() not in wanted:
            continue
        if not (project_dir / name).is_file():
            continue
        if should_skip_file(name, project_dir, patterns):
            continue
        selected.append(name)

    if max_files and len(selected) > max_files:
        logger.debug("Limiting check to %d of %d files", max_files, len(selected))
        selected = selected[:max_files]
    return selected
