"""smarthooks - project-aware lint and test hooks for AI coding assistants."""

from dataclasses import dataclass, field
from pathlib import Path

__version__ = "1.0.0"


@dataclass
class ProjectProfile:
    """What detection found in a project directory."""

    name: str = ""
    languages: list[str] = field(default_factory=list)
    manifests: list[str] = field(default_factory=list)
    test_dirs: list[str] = field(default_factory=list)
    has_ignore_file: bool = False
    has_override_config: bool = False
    git_initialized: bool = False

    @property
    def project_type(self) -> str:
        """Single tag, "mixed:a,b" for several languages, or "unknown"."""
        if not self.languages:
            return "unknown"
        if len(self.languages) == 1:
            return self.languages[0]
        return "mixed:" + ",".join(self.languages)


@dataclass
class InvocationContext:
    """Inputs of a single hook run."""

    project_dir: Path
    file_path: Path | None = None
    tool_name: str = ""
    language: str | None = None

    @property
    def whole_project(self) -> bool:
        return self.file_path is None
