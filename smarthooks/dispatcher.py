"""Test-mode dispatcher.

Given an edited file, decide which tests to run and run them:

- **focused**: the test file(s) for this specific file, found by substituting
  the file's directory and base name into the language's candidate paths
- **package**: the whole directory containing the file
- **all**: the whole project

Failures are recorded rather than raised. The configured mode list always
runs to completion unless fail-fast is set, in which case the dispatcher
stops after the first recorded failure.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from smarthooks.config import HookConfig
from smarthooks.errors import MissingTestArtifact
from smarthooks.files import relative_to_project
from smarthooks.registry import LanguageSpec, RunnerSpec, default_registry, language_for_file
from smarthooks.report import IssueReport
from smarthooks.runner import CommandRunner

logger = logging.getLogger(__name__)


@dataclass
class Invocation:
    """One external test command that was run."""

    mode: str
    label: str
    argv: list[str]
    ok: bool


@dataclass
class DispatchResult:
    """Aggregate outcome of a dispatch."""

    messages: list[str] = field(default_factory=list)
    invocations: list[Invocation] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.messages

    @property
    def tests_run(self) -> int:
        return len(self.invocations)

    @property
    def modes_run(self) -> list[str]:
        return [inv.mode for inv in self.invocations]


class TestDispatcher:
    """Pick test commands for edited files and run them one at a time."""

    # Keep pytest from collecting this class
    __test__ = False

    def __init__(
        self,
        project_dir: Path,
        config: HookConfig,
        runner: CommandRunner | None = None,
        report: IssueReport | None = None,
        registry: dict[str, LanguageSpec] | None = None,
    ):
        self.project_dir = Path(project_dir)
        self.config = config
        self.runner = runner if runner is not None else CommandRunner(self.project_dir)
        self.report = report if report is not None else IssueReport()
        self.registry = registry if registry is not None else default_registry()

    def dispatch(self, file_path: str | Path) -> DispatchResult:
        """Run the configured test modes for one edited file."""
        result = DispatchResult()

        spec = language_for_file(file_path, self.registry)
        if spec is None:
            logger.debug("No test conventions for %s", file_path)
            return result
        if not self.config.language_enabled(spec.toggle):
            logger.debug("%s tests disabled", spec.name)
            return result

        rel = relative_to_project(file_path, self.project_dir)
        values = {
            "file": rel,
            "dir": Path(rel).parent.as_posix(),
            "base": spec.base_name(rel),
            "test_file": "",
        }

        if spec.is_test_file(rel):
            self._run_direct(spec, values, result)
            return result

        require_tests = self.config.fail_on_missing_tests and not spec.exempt_from_tests(rel)
        test_file_found = False
        missing_recorded = False

        for mode in self.config.test_modes:
            if self._should_stop(result):
                break

            if mode == "focused":
                try:
                    test_file_found = self._run_focused(spec, values, require_tests, result)
                except MissingTestArtifact as e:
                    self.report.failure(f"Missing required test file for: {rel}")
                    self.report.warning(f"📝 Expected one of: {' '.join(e.candidates)}")
                    self._record(result, str(e))
                    missing_recorded = True
            elif mode == "package":
                self._run_mode(
                    spec,
                    "package",
                    values,
                    progress=f"📦 Running package tests in {values['dir']}...",
                    failure=f"Package tests failed in {values['dir']}",
                    result=result,
                )
            elif mode == "all":
                self._run_all(spec, result)

        if result.tests_run == 0:
            if require_tests and not test_file_found and not missing_recorded:
                message = f"No tests found for {rel} (tests required)"
                self.report.failure(message)
                self._record(result, message)
            elif self.config.test_verbose:
                self.report.warning(f"No tests run for {rel}")
        elif result.success:
            self.report.success(f"All tests passed for {rel}")

        return result

    def dispatch_project(self, languages: list[str]) -> DispatchResult:
        """Run the whole-project test command of each language."""
        result = DispatchResult()
        for name in languages:
            if self._should_stop(result):
                break
            spec = self.registry.get(name)
            if spec is None:
                continue
            if not self.config.language_enabled(spec.toggle):
                logger.debug("%s tests disabled", spec.name)
                continue
            self._run_all(spec, result)

        if result.tests_run and result.success:
            self.report.success("All project tests passed")
        return result

    def find_test_file(self, spec: LanguageSpec, values: dict[str, str], require: bool) -> str | None:
        """First existing candidate test file for the edited file.

        Raises:
            MissingTestArtifact: If none exists and tests are required.
        """
        candidates = self.candidate_paths(spec, values)
        for candidate in candidates:
            if (self.project_dir / candidate).is_file():
                return candidate
        if require:
            raise MissingTestArtifact(values["file"], candidates)
        return None

    def candidate_paths(self, spec: LanguageSpec, values: dict[str, str]) -> list[str]:
        candidates = []
        for template in spec.candidates:
            candidate = Path(os.path.normpath(template.format(**values))).as_posix()
            if candidate not in candidates:
                candidates.append(candidate)
        return candidates

    def _run_direct(self, spec: LanguageSpec, values: dict[str, str], result: DispatchResult) -> None:
        ok = self._run_mode(
            spec,
            "direct",
            values,
            progress=f"🧪 Running test file directly: {values['file']}",
            failure=f"Tests failed in {values['file']}",
            result=result,
            target=values["file"],
        )
        if ok:
            self.report.success(f"Tests passed in {values['file']}")

    def _run_focused(
        self,
        spec: LanguageSpec,
        values: dict[str, str],
        require_tests: bool,
        result: DispatchResult,
    ) -> bool:
        """Run focused tests; returns whether a test artifact was located."""
        base = values["base"]
        if not spec.candidates:
            # Tests live in the source file itself; filter by name instead
            ran = self._run_mode(
                spec,
                "focused",
                values,
                progress=f"🧪 Running focused tests for {base}...",
                failure=f"Focused tests failed for {base}",
                result=result,
                target=values["file"],
            )
            return ran is not None

        test_file = self.find_test_file(spec, values, require_tests)
        if test_file is None:
            logger.debug("No test file found for %s", values["file"])
            return False

        self._run_mode(
            spec,
            "focused",
            {**values, "test_file": test_file},
            progress=f"🧪 Running focused tests for {base}...",
            failure=f"Focused tests failed for {base}",
            result=result,
            target=test_file,
        )
        return True

    def _run_all(self, spec: LanguageSpec, result: DispatchResult) -> None:
        values = {"file": "", "dir": ".", "base": "", "test_file": ""}
        self._run_mode(
            spec,
            "all",
            values,
            progress="🌍 Running all project tests...",
            failure=f"All {spec.name} project tests failed",
            result=result,
        )

    def _select_runner(self, spec: LanguageSpec, mode: str, target: str) -> RunnerSpec | None:
        for runner_spec in spec.runners_for(mode):
            if runner_spec.applicable(self.project_dir, self.runner, target):
                return runner_spec
        return None

    def _run_mode(
        self,
        spec: LanguageSpec,
        mode: str,
        values: dict[str, str],
        progress: str,
        failure: str,
        result: DispatchResult,
        target: str = "",
    ) -> bool | None:
        """Run the first applicable runner for ``mode``.

        Returns True/False for pass/fail, or None when no runner applies.
        """
        runner_spec = self._select_runner(spec, mode, target)
        if runner_spec is None:
            logger.debug("No %s runner available for %s", mode, spec.name)
            return None

        argv = runner_spec.render(values, self.config)
        self.report.step(progress)
        outcome = self.runner.run(argv)
        result.invocations.append(Invocation(mode, runner_spec.label, argv, outcome.ok))

        if outcome.ok:
            return True

        message = f"{failure} ({runner_spec.label})"
        self.report.failure(message)
        self.report.show_output(outcome.output)
        self._record(result, message)
        return False

    def _record(self, result: DispatchResult, message: str) -> None:
        result.messages.append(message)
        self.report.add_error(message)

    def _should_stop(self, result: DispatchResult) -> bool:
        return self.config.fail_fast and not result.success
