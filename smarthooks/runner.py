"""External command execution.

Every linter, formatter and test runner is invoked through ``CommandRunner``
so the orchestration logic can be exercised with a recording fake.
"""

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
NOT_FOUND = 127


@dataclass
class CommandResult:
    """Outcome of one external command."""

    argv: list[str]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.argv)


class CommandRunner:
    """Run commands to completion in a project directory."""

    def __init__(self, cwd: Path | None = None):
        self.cwd = Path(cwd) if cwd else Path.cwd()

    def exists(self, name: str) -> bool:
        """Check if a command is on PATH."""
        return shutil.which(name) is not None

    def run(self, argv: list[str]) -> CommandResult:
        """Run ``argv`` and capture combined stdout/stderr.

        A missing executable is reported as a failed result, never raised.
        """
        logger.debug("Running: %s", shlex.join(argv))
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                cwd=str(self.cwd),
            )
        except FileNotFoundError:
            return CommandResult(argv, NOT_FOUND, f"{argv[0]}: command not found")
        except OSError as e:
            return CommandResult(argv, NOT_FOUND, f"{argv[0]}: {e}")

        output = result.stdout
        if result.stderr:
            output = f"{output}{result.stderr}" if output else result.stderr
        return CommandResult(argv, result.returncode, output)

    def succeeds(self, argv: list[str]) -> bool:
        """Run a probe command, discarding its output."""
        return self.run(argv).ok
