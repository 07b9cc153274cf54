"""Issue aggregation and stderr reporting for hook runs.

Every failure from an invoked tool is recorded as a human-readable message.
The run fails if and only if at least one message was recorded; there is no
severity gradation, every issue is blocking.
"""

import sys
from typing import TextIO

# Exit codes
EXIT_OK = 0
EXIT_ENV_ERROR = 1
EXIT_FEEDBACK = 2


class IssueReport:
    """Ordered error list plus the progress lines written while collecting it."""

    COLORS = {
        "red": "\033[0;31m",
        "green": "\033[0;32m",
        "yellow": "\033[0;33m",
        "blue": "\033[0;34m",
    }
    RESET = "\033[0m"

    def __init__(self, stream: TextIO | None = None, use_color: bool | None = None):
        self.stream = stream if stream is not None else sys.stderr
        if use_color is None:
            self.use_color = hasattr(self.stream, "isatty") and self.stream.isatty()
        else:
            self.use_color = use_color
        self.errors: list[str] = []

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def _paint(self, text: str, color: str) -> str:
        if not self.use_color:
            return text
        return f"{self.COLORS[color]}{text}{self.RESET}"

    def _write(self, text: str = "") -> None:
        print(text, file=self.stream)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def step(self, message: str) -> None:
        """Progress line, e.g. which test command is about to run."""
        self._write(self._paint(message, "blue"))

    def failure(self, message: str) -> None:
        self._write(self._paint(f"❌ {message}", "red"))

    def warning(self, message: str) -> None:
        self._write(self._paint(f"⚠️  {message}", "yellow"))

    def success(self, message: str) -> None:
        self._write(self._paint(f"✅ {message}", "green"))

    def show_output(self, output: str, heading: str = "Failed test output:") -> None:
        """Dump captured tool output in full."""
        self._write()
        self._write(self._paint(heading, "red"))
        self._write(output.rstrip() if output.strip() else "(no output captured)")

    def header(self, title: str) -> None:
        self._write()
        self._write(title)
        self._write("────────────────────────────────────────────")

    def print_summary(self) -> None:
        """Print the recorded issues; prints nothing when the run was clean."""
        if not self.errors:
            return

        self._write()
        self._write(self._paint("═══ Summary ═══", "blue"))
        for message in self.errors:
            self._write(f"{self._paint('❌', 'red')} {message}")

        bar = "════════════════════════════════════════════"
        self._write()
        self._write(self._paint(f"Found {self.error_count} issue(s) that MUST be fixed!", "red"))
        self._write(self._paint(bar, "red"))
        self._write(self._paint("❌ ALL ISSUES ARE BLOCKING ❌", "red"))
        self._write(self._paint(bar, "red"))
        self._write(self._paint("Fix EVERYTHING above until all checks are ✅ GREEN", "red"))

    def finish_lint(self) -> int:
        """Print the closing lint message and return the hook exit code.

        Always 2 so the calling agent reads the message, clean or not.
        """
        self.print_summary()
        if self.has_errors:
            self._write()
            self._write(self._paint("🛑 FAILED - Fix all issues above! 🛑", "red"))
            self._write(self._paint("📋 NEXT STEPS:", "yellow"))
            self._write(self._paint("  1. Fix the issues listed above", "yellow"))
            self._write(self._paint("  2. Verify the fix by running the lint command again", "yellow"))
            self._write(self._paint("  3. Continue with your original task", "yellow"))
        else:
            self._write()
            self._write(self._paint("👉 Style clean. Continue with your task.", "yellow"))
        return EXIT_FEEDBACK

    def finish_tests(self, target: str) -> int:
        """Closing message for the test hook; always 2, like ``finish_lint``."""
        self.print_summary()
        if self.has_errors:
            self._write()
            self._write(self._paint(f"🛑 TESTS FAILED for {target} - fix them before continuing 🛑", "red"))
        else:
            self._write()
            self._write(self._paint("👉 Tests pass. Continue with your task.", "yellow"))
        return EXIT_FEEDBACK
