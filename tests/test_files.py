"""Tests for modified-file listing and exclusion rules."""

import pytest

from smarthooks.files import (
    IGNORE_FILE,
    get_modified_files,
    has_disable_marker,
    load_ignore_patterns,
    relative_to_project,
    select_files,
    should_skip_file,
)


@pytest.fixture
def git_project(tmp_path):
    (tmp_path / ".git").mkdir()
    return tmp_path


class TestGetModifiedFiles:
    """Test git-based file listing."""

    def test_outside_git_repo(self, tmp_path, make_runner):
        runner = make_runner(available={"git"})
        assert get_modified_files(tmp_path, runner) == []
        assert runner.calls == []

    def test_git_not_installed(self, git_project, make_runner):
        assert get_modified_files(git_project, make_runner()) == []

    def test_union_of_staged_modified_and_untracked(self, git_project, make_runner):
        runner = make_runner(
            available={"git"},
            outputs={
                ("git", "diff", "--cached", "--name-only"): "b.py\na.py\n",
                ("git", "diff", "--name-only"): "a.py\nc.rb\n",
                ("git", "ls-files", "--others", "--exclude-standard"): "new.js\n\n",
            },
        )

        assert get_modified_files(git_project, runner) == ["a.py", "b.py", "c.rb", "new.js"]

    def test_failed_listing_is_skipped(self, git_project, make_runner):
        runner = make_runner(
            available={"git"},
            failing=[("--cached",)],
            outputs={("git", "diff", "--name-only"): "a.py\n"},
        )

        assert get_modified_files(git_project, runner) == ["a.py"]


class TestIgnoreRules:
    """Test the ignore file and inline opt-out marker."""

    def test_no_ignore_file(self, tmp_path):
        assert load_ignore_patterns(tmp_path) == []

    def test_comments_and_blank_lines_skipped(self, tmp_path):
        (tmp_path / IGNORE_FILE).write_text("# generated code\n\nvendor/*\n  *.min.js  \n")
        assert load_ignore_patterns(tmp_path) == ["vendor/*", "*.min.js"]

    def test_marker_in_first_lines(self, tmp_path):
        path = tmp_path / "legacy.py"
        path.write_text('"""Legacy module."""\n\n# claude-hooks-disable\nx = 1\n')
        assert has_disable_marker(path) is True

    def test_marker_after_first_five_lines_ignored(self, tmp_path):
        path = tmp_path / "late.py"
        path.write_text("\n" * 5 + "# claude-hooks-disable\n")
        assert has_disable_marker(path) is False

    def test_marker_on_missing_file(self, tmp_path):
        assert has_disable_marker(tmp_path / "gone.py") is False

    def test_skip_by_pattern(self, tmp_path):
        (tmp_path / IGNORE_FILE).write_text("vendor/*\n*.generated.py\n")

        assert should_skip_file("vendor/lib/jquery.js", tmp_path)
        assert should_skip_file("api/schema.generated.py", tmp_path)
        assert not should_skip_file("api/schema.py", tmp_path)

    def test_skip_absolute_path_inside_project(self, tmp_path):
        (tmp_path / IGNORE_FILE).write_text("build/*\n")
        assert should_skip_file(tmp_path / "build" / "out.js", tmp_path)

    def test_skip_by_marker(self, tmp_path):
        (tmp_path / "legacy.js").write_text("// claude-hooks-disable\nconsole.log(1)\n")

        assert should_skip_file("legacy.js", tmp_path)
        assert should_skip_file(tmp_path / "legacy.js", tmp_path)


class TestRelativeToProject:
    """Test path normalization."""

    def test_absolute_inside_project(self, tmp_path):
        assert relative_to_project(tmp_path / "pkg" / "core.py", tmp_path) == "pkg/core.py"

    def test_absolute_outside_project(self, tmp_path):
        outside = tmp_path.parent / "elsewhere.py"
        assert relative_to_project(outside, tmp_path / "proj") == outside.as_posix()

    def test_relative_path_unchanged(self, tmp_path):
        assert relative_to_project("pkg/core.py", tmp_path) == "pkg/core.py"


class TestSelectFiles:
    """Test per-language file selection."""

    def test_filters_extension_existence_and_ignores(self, tmp_path):
        (tmp_path / "pkg").mkdir()
        for name in ("pkg/a.py", "pkg/b.py", "pkg/gen.py", "notes.md"):
            (tmp_path / name).write_text("x = 1\n")
        (tmp_path / IGNORE_FILE).write_text("pkg/gen.py\n")

        selected = select_files(
            ["pkg/a.py", "pkg/b.py", "pkg/gen.py", "pkg/deleted.py", "notes.md"],
            {".py"},
            tmp_path,
        )

        assert selected == ["pkg/a.py", "pkg/b.py"]

    def test_max_files_limit(self, tmp_path):
        names = [f"m{i}.py" for i in range(4)]
        for name in names:
            (tmp_path / name).write_text("")

        assert select_files(names, {".py"}, tmp_path, max_files=2) == ["m0.py", "m1.py"]
