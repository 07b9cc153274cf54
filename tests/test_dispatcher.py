"""Tests for the test-mode dispatcher."""

import json

import pytest

from smarthooks.config import HookConfig
from smarthooks.dispatcher import TestDispatcher


@pytest.fixture
def python_project(tmp_path):
    """Python project with one module and its test file."""
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n')
    pkg = tmp_path / "pkg"
    pkg.mkdir()
    (pkg / "core.py").write_text("def add(a, b):\n    return a + b\n")
    (pkg / "test_core.py").write_text("from pkg.core import add\n")
    return tmp_path


@pytest.fixture
def untested_project(tmp_path):
    """Python project whose module has no test file."""
    pkg = tmp_path / "pkg"
    pkg.mkdir()
    (pkg / "core.py").write_text("x = 1\n")
    (pkg / "__init__.py").write_text("")
    return tmp_path


def make_dispatcher(project, runner, report, **config):
    return TestDispatcher(project, HookConfig(**config), runner=runner, report=report)


class TestFocusedAndPackage:
    """Test the default focused,package mode list."""

    def test_runs_modes_in_order(self, python_project, make_runner, report, report_stream):
        runner = make_runner(available={"pytest"})
        dispatcher = make_dispatcher(python_project, runner, report)

        result = dispatcher.dispatch(python_project / "pkg" / "core.py")

        assert runner.calls == [
            ["pytest", "-xvs", "pkg/test_core.py", "-k", "core"],
            ["pytest", "-xvs", "pkg"],
        ]
        assert result.modes_run == ["focused", "package"]
        assert result.success
        assert "All tests passed for pkg/core.py" in report_stream.getvalue()

    def test_relative_path_accepted(self, python_project, make_runner, report):
        runner = make_runner(available={"pytest"})
        result = make_dispatcher(python_project, runner, report).dispatch("pkg/core.py")
        assert result.tests_run == 2

    def test_failure_recorded_and_later_modes_still_run(
        self, python_project, make_runner, report, report_stream
    ):
        runner = make_runner(
            available={"pytest"},
            failing=[("-k",)],
            outputs={("pytest", "-xvs", "pkg/test_core.py", "-k", "core"): "E assert 1 == 2"},
        )

        result = make_dispatcher(python_project, runner, report).dispatch("pkg/core.py")

        assert result.messages == ["Focused tests failed for core (pytest)"]
        assert result.tests_run == 2
        assert not result.success
        assert report.errors == result.messages
        output = report_stream.getvalue()
        assert "Failed test output:" in output
        assert "E assert 1 == 2" in output

    def test_fail_fast_stops_after_first_failure(self, python_project, make_runner, report):
        runner = make_runner(available={"pytest"}, failing=[("-k",)])

        result = make_dispatcher(python_project, runner, report, fail_fast=True).dispatch(
            "pkg/core.py"
        )

        assert result.tests_run == 1
        assert result.modes_run == ["focused"]

    def test_all_mode(self, python_project, make_runner, report):
        runner = make_runner(available={"pytest"})

        result = make_dispatcher(python_project, runner, report, test_modes=["all"]).dispatch(
            "pkg/core.py"
        )

        assert runner.calls == [["pytest", "-xvs"]]
        assert result.modes_run == ["all"]

    def test_empty_mode_list_runs_nothing(self, python_project, make_runner, report):
        runner = make_runner(available={"pytest"})
        result = make_dispatcher(python_project, runner, report, test_modes=[]).dispatch(
            "pkg/core.py"
        )
        assert result.tests_run == 0
        assert result.success

    def test_no_runner_available(self, python_project, make_runner, report):
        runner = make_runner()
        result = make_dispatcher(python_project, runner, report).dispatch("pkg/core.py")
        assert runner.calls == []
        assert result.success


class TestMissingTests:
    """Test required-test enforcement."""

    def test_missing_test_file_names_candidates(self, untested_project, make_runner, report):
        runner = make_runner(available={"pytest"})

        result = make_dispatcher(
            untested_project, runner, report, fail_on_missing_tests=True
        ).dispatch("pkg/core.py")

        assert result.messages == [
            "Missing required test file for: pkg/core.py (expected one of: "
            "pkg/test_core.py, pkg/core_test.py, pkg/tests/test_core.py, tests/test_core.py)"
        ]
        # Package mode still runs after the missing artifact is recorded
        assert result.modes_run == ["package"]
        assert not result.success

    def test_fail_fast_after_missing_test_file(self, untested_project, make_runner, report):
        runner = make_runner(available={"pytest"})

        result = make_dispatcher(
            untested_project, runner, report, fail_on_missing_tests=True, fail_fast=True
        ).dispatch("pkg/core.py")

        assert len(result.messages) == 1
        assert result.messages[0].startswith("Missing required test file for: pkg/core.py")
        assert result.modes_run == []
        assert runner.calls == []

    def test_missing_file_not_required(self, untested_project, make_runner, report):
        runner = make_runner(available={"pytest"})
        result = make_dispatcher(untested_project, runner, report).dispatch("pkg/core.py")
        assert result.success
        assert result.modes_run == ["package"]

    def test_missing_file_recorded_once(self, untested_project, make_runner, report):
        runner = make_runner(available={"pytest"})

        result = make_dispatcher(
            untested_project,
            runner,
            report,
            fail_on_missing_tests=True,
            test_modes=["focused"],
        ).dispatch("pkg/core.py")

        assert len(result.messages) == 1
        assert result.messages[0].startswith("Missing required test file for: pkg/core.py")
        assert runner.calls == []

    def test_exempt_file_not_required(self, untested_project, make_runner, report):
        runner = make_runner(available={"pytest"})

        result = make_dispatcher(
            untested_project,
            runner,
            report,
            fail_on_missing_tests=True,
            test_modes=["focused"],
        ).dispatch("pkg/__init__.py")

        assert result.success

    def test_required_but_nothing_ran(self, untested_project, make_runner, report):
        # Package mode alone cannot locate a test file; no runner is available
        runner = make_runner()

        result = make_dispatcher(
            untested_project,
            runner,
            report,
            fail_on_missing_tests=True,
            test_modes=["package"],
        ).dispatch("pkg/core.py")

        assert result.messages == ["No tests found for pkg/core.py (tests required)"]


class TestDirectAndSkips:
    """Test direct runs of test files and files that produce no tests."""

    def test_test_file_runs_directly(self, python_project, make_runner, report):
        runner = make_runner(available={"pytest"})

        result = make_dispatcher(python_project, runner, report).dispatch("pkg/test_core.py")

        assert runner.calls == [["pytest", "-xvs", "pkg/test_core.py"]]
        assert result.modes_run == ["direct"]

    def test_direct_falls_back_to_unittest(self, python_project, make_runner, report):
        runner = make_runner(available={"python"})
        make_dispatcher(python_project, runner, report).dispatch("pkg/test_core.py")
        assert runner.calls == [["python", "-m", "unittest", "pkg/test_core.py"]]

    def test_disabled_language_runs_nothing(self, python_project, make_runner, report):
        runner = make_runner(available={"pytest"})

        result = make_dispatcher(python_project, runner, report, python_enabled=False).dispatch(
            "pkg/core.py"
        )

        assert runner.calls == []
        assert result.tests_run == 0

    def test_unsupported_file(self, python_project, make_runner, report):
        runner = make_runner(available={"pytest"})
        result = make_dispatcher(python_project, runner, report).dispatch("README.md")
        assert runner.calls == []
        assert result.success


class TestOtherLanguages:
    """Test the non-Python naming conventions end to end."""

    def test_javascript_npm_test(self, tmp_path, make_runner, report):
        (tmp_path / "package.json").write_text(json.dumps({"scripts": {"test": "jest"}}))
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "Button.tsx").write_text("")
        (tmp_path / "src" / "Button.test.tsx").write_text("")
        runner = make_runner()

        result = make_dispatcher(tmp_path, runner, report).dispatch("src/Button.tsx")

        assert runner.calls == [
            ["npm", "test", "--", "src/Button.test.tsx"],
            ["npm", "test"],
        ]
        assert result.success

    def test_ruby_rspec_with_options(self, tmp_path, make_runner, report):
        (tmp_path / "spec").mkdir()
        (tmp_path / "spec" / "user_spec.rb").write_text("")
        (tmp_path / "app" / "models").mkdir(parents=True)
        (tmp_path / "app" / "models" / "user.rb").write_text("")
        runner = make_runner(available={"rspec"})

        make_dispatcher(tmp_path, runner, report, rspec_options="--fail-fast").dispatch(
            "app/models/user.rb"
        )

        assert runner.calls == [
            ["bundle", "exec", "rspec", "spec/user_spec.rb", "--fail-fast"],
            ["bundle", "exec", "rspec", "--fail-fast"],
        ]

    def test_ruby_minitest_fallback(self, tmp_path, make_runner, report):
        (tmp_path / "test").mkdir()
        (tmp_path / "test" / "user_test.rb").write_text("")
        (tmp_path / "lib").mkdir()
        (tmp_path / "lib" / "user.rb").write_text("")
        runner = make_runner(available={"rspec", "ruby"})

        make_dispatcher(tmp_path, runner, report, test_modes=["focused"]).dispatch("lib/user.rb")

        assert runner.calls == [["bundle", "exec", "ruby", "test/user_test.rb"]]

    def test_rust_focused_filters_by_name(self, tmp_path, make_runner, report):
        (tmp_path / "Cargo.toml").write_text('[package]\nname = "demo"\n')
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "parser.rs").write_text("")
        runner = make_runner(available={"cargo"})

        result = make_dispatcher(
            tmp_path, runner, report, fail_on_missing_tests=True
        ).dispatch("src/parser.rs")

        assert runner.calls == [["cargo", "test", "parser"], ["cargo", "test"]]
        assert result.success

    def test_rust_required_tests_without_cargo(self, tmp_path, make_runner, report):
        (tmp_path / "Cargo.toml").write_text('[package]\nname = "demo"\n')
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "parser.rs").write_text("")
        runner = make_runner()

        result = make_dispatcher(
            tmp_path, runner, report, fail_on_missing_tests=True
        ).dispatch("src/parser.rs")

        assert runner.calls == []
        assert result.messages == ["No tests found for src/parser.rs (tests required)"]
        assert not result.success


class TestDispatchProject:
    """Test whole-project runs."""

    def test_runs_all_mode_per_language(self, python_project, make_runner, report, report_stream):
        runner = make_runner(available={"pytest"})

        result = make_dispatcher(python_project, runner, report).dispatch_project(
            ["python", "rust"]
        )

        # No Cargo.toml or cargo binary, so only pytest runs
        assert runner.calls == [["pytest", "-xvs"]]
        assert result.success
        assert "All project tests passed" in report_stream.getvalue()

    def test_disabled_language_skipped(self, python_project, make_runner, report):
        runner = make_runner(available={"pytest"})
        make_dispatcher(python_project, runner, report, python_enabled=False).dispatch_project(
            ["python"]
        )
        assert runner.calls == []

    def test_fail_fast_between_languages(self, tmp_path, make_runner, report):
        (tmp_path / "Cargo.toml").write_text("")
        runner = make_runner(available={"pytest", "cargo"}, failing=[("pytest",)])

        result = make_dispatcher(tmp_path, runner, report, fail_fast=True).dispatch_project(
            ["python", "rust"]
        )

        assert result.messages == ["All python project tests failed (pytest)"]
        assert runner.calls == [["pytest", "-xvs"]]
