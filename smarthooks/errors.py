"""Exceptions raised inside smarthooks."""


class SmartHooksError(Exception):
    """Base class for smarthooks errors."""


class ConfigError(SmartHooksError):
    """Raised when configuration cannot be loaded."""


class MissingTestArtifact(SmartHooksError):
    """Raised when a file requires tests but no candidate test file exists."""

    def __init__(self, file_path: str, candidates: list[str]):
        self.file_path = file_path
        self.candidates = candidates
        expected = ", ".join(candidates) if candidates else "(no naming convention)"
        super().__init__(f"Missing required test file for: {file_path} (expected one of: {expected})")
