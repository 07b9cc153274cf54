"""Per-language lint/format orchestration (the smart-lint hook).

Each ``lint_*`` function decides which external tools apply to the project,
runs them on the modified files (or the whole project when none are
modified) and records one message per failing tool. Autoformatters are run
in fix mode first; an issue is only recorded when the follow-up check still
fails.
"""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from smarthooks.config import HookConfig
from smarthooks.detectors import SKIP_DIRS, has_manifest
from smarthooks.files import get_modified_files, select_files
from smarthooks.report import IssueReport
from smarthooks.runner import CommandRunner

logger = logging.getLogger(__name__)

LINT_EXTENSIONS = {
    "ruby": {".rb"},
    "python": {".py"},
    "javascript": {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"},
    "rust": {".rs"},
}

ESLINT_CONFIGS = [".eslintrc.js", ".eslintrc.json", ".eslintrc.yml", "eslint.config.js"]
PRETTIER_CONFIGS = [".prettierrc", "prettier.config.js", ".prettierrc.json", ".prettierrc.yml"]

CONSOLE_PATTERN = re.compile(r"console\.(log|debug|info|warn|error)")
CONSOLE_ALLOWED_PATHS = re.compile(
    r"(test\.|spec\.|__tests__|node_modules|\.config\.|dist/|build/)"
)
CONSOLE_DISABLE_COMMENT = re.compile(r"// *eslint-disable.*console")
CONSOLE_SCAN_EXTENSIONS = {".js", ".jsx", ".ts", ".tsx"}
MAX_CONSOLE_HITS = 20


@dataclass
class LintContext:
    """Everything a language linter needs for one run."""

    project_dir: Path
    config: HookConfig
    runner: CommandRunner
    report: IssueReport
    modified_files: list[str] = field(default_factory=list)
    fast: bool = False

    def files_for(self, language: str) -> list[str]:
        return select_files(
            self.modified_files,
            LINT_EXTENSIONS[language],
            self.project_dir,
            self.config.max_files,
        )

    def fail(self, message: str, output: str = "") -> None:
        self.report.add_error(message)
        if output.strip():
            self.report.show_output(output, heading=f"{message}:")


def _manifest_mentions(ctx: LintContext, manifest: str, text: str) -> bool:
    path = ctx.project_dir / manifest
    if not path.is_file():
        return False
    try:
        return text in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def _npm_script(ctx: LintContext, name: str) -> bool:
    path = ctx.project_dir / "package.json"
    if not path.is_file():
        return False
    try:
        scripts = json.loads(path.read_text(encoding="utf-8")).get("scripts") or {}
    except (OSError, ValueError):
        return False
    return isinstance(scripts, dict) and name in scripts


def _node_tool(ctx: LintContext, name: str) -> list[str] | None:
    """Command prefix for a Node tool: global binary, else npx, else None."""
    if ctx.runner.exists(name):
        return [name]
    if ctx.runner.exists("npx") and ctx.runner.succeeds(["npx", name, "--version"]):
        return ["npx", name]
    return None


def _skip_language(ctx: LintContext, language: str, files: list[str]) -> bool:
    if files or has_manifest(ctx.project_dir, language):
        return False
    logger.debug("No modified %s files found, skipping %s checks", language, language)
    return True


def lint_ruby(ctx: LintContext) -> None:
    if not ctx.config.ruby_enabled:
        logger.debug("Ruby linting disabled")
        return

    logger.info("Running Ruby/Rails linters...")
    files = ctx.files_for("ruby")
    if _skip_language(ctx, "ruby", files):
        return

    rubocop_args = ["-c", ctx.config.rubocop_config] if ctx.config.rubocop_config else []
    if ctx.runner.exists("rubocop"):
        logger.info("Running RuboCop...")
        fix = ctx.runner.run(["bundle", "exec", "rubocop", "--autocorrect-all", *rubocop_args, *files])
        if not fix.ok:
            check = ["bundle", "exec", "rubocop", "--format", "quiet", *rubocop_args, *files]
            if not ctx.runner.succeeds(check):
                ctx.fail("RuboCop found issues that couldn't be auto-fixed", fix.output)
    elif _manifest_mentions(ctx, "Gemfile", "rubocop"):
        logger.error("RuboCop is in Gemfile but not available - run 'bundle install'")
        ctx.report.add_error("RuboCop not available")

    if ctx.config.ruby_erb_lint and ctx.runner.exists("erb_lint"):
        logger.info("Running ERB Lint...")
        fix = ctx.runner.run(["bundle", "exec", "erb_lint", "--autocorrect"])
        if not fix.ok and not ctx.runner.succeeds(["bundle", "exec", "erb_lint", "--format", "compact"]):
            ctx.fail("ERB Lint found issues", fix.output)

    if ctx.fast:
        logger.debug("Fast mode: skipping Rails Best Practices and bundle audit")
        return

    if ctx.runner.exists("rails_best_practices"):
        logger.info("Running Rails Best Practices...")
        result = ctx.runner.run(["bundle", "exec", "rails_best_practices", "."])
        if not result.ok:
            ctx.fail("Rails Best Practices found issues", result.output)

    if ctx.config.ruby_bundle_audit and ctx.runner.exists("bundle-audit"):
        logger.info("Running bundle audit...")
        result = ctx.runner.run(["bundle", "exec", "bundle-audit", "check", "--update"])
        if not result.ok:
            ctx.fail("Security vulnerabilities found in dependencies", result.output)


def lint_python(ctx: LintContext) -> None:
    if not ctx.config.python_enabled:
        logger.debug("Python linting disabled")
        return

    logger.info("Running Python linters...")
    files = ctx.files_for("python")
    if _skip_language(ctx, "python", files):
        return

    target = files or ["."]

    if ctx.runner.exists("black"):
        if not ctx.runner.succeeds(["black", *target, "--check"]):
            result = ctx.runner.run(["black", *target])
            if not result.ok:
                ctx.fail("Python formatting failed", result.output)

    if ctx.runner.exists("ruff"):
        result = ctx.runner.run(["ruff", "check", "--fix", *target])
        if not result.ok:
            ctx.fail("Ruff found issues", result.output)
    elif ctx.runner.exists("flake8"):
        result = ctx.runner.run(["flake8", *target])
        if not result.ok:
            ctx.fail("Flake8 found issues", result.output)


def lint_javascript(ctx: LintContext) -> None:
    if not ctx.config.js_enabled:
        logger.debug("JavaScript linting disabled")
        return

    logger.info("Running JavaScript/TypeScript linters...")
    files = ctx.files_for("javascript")
    if _skip_language(ctx, "javascript", files):
        return

    _check_typescript(ctx)
    _check_eslint(ctx, files)
    _check_prettier(ctx, files)

    if ctx.config.js_no_console:
        logger.info("Checking for console.log statements...")
        hits = find_console_statements(ctx.project_dir, files)
        if hits:
            ctx.fail("Found console statements in production code", "\n".join(hits))


def _check_typescript(ctx: LintContext) -> None:
    if not (ctx.project_dir / "tsconfig.json").exists():
        return
    if ctx.fast:
        logger.debug("Fast mode: skipping TypeScript compiler")
        return

    tsc = _node_tool(ctx, "tsc")
    if tsc:
        logger.info("Running TypeScript compiler...")
        argv = [*tsc, "--noEmit"]
        if ctx.config.tsc_strict:
            argv.append("--strict")
        result = ctx.runner.run(argv)
        if not result.ok:
            ctx.fail("TypeScript compilation errors found", result.output)
    elif _manifest_mentions(ctx, "package.json", "typescript"):
        logger.error("TypeScript is in package.json but tsc not available - run 'npm install'")
        ctx.report.add_error("TypeScript compiler not available")


def _check_eslint(ctx: LintContext, files: list[str]) -> None:
    configured = any((ctx.project_dir / name).exists() for name in ESLINT_CONFIGS)
    if ctx.config.eslint_config and (ctx.project_dir / ctx.config.eslint_config).exists():
        configured = True
    if not (configured or _manifest_mentions(ctx, "package.json", "eslintConfig")):
        return

    eslint = _node_tool(ctx, "eslint")
    if eslint:
        logger.info("Running ESLint...")
        config_args = ["--config", ctx.config.eslint_config] if ctx.config.eslint_config else []
        target = files or [".", "--ext", ".js,.jsx,.ts,.tsx,.mjs,.cjs"]
        fix = ctx.runner.run([*eslint, *config_args, *target, "--fix"])
        if not fix.ok and not ctx.runner.succeeds([*eslint, *config_args, *target]):
            ctx.fail("ESLint found issues that couldn't be auto-fixed", fix.output)
    elif _manifest_mentions(ctx, "package.json", "eslint"):
        if _npm_script(ctx, "lint"):
            result = ctx.runner.run(["npm", "run", "lint"])
            if not result.ok:
                ctx.fail("ESLint found issues (via npm run lint)", result.output)
        else:
            logger.error("ESLint is in package.json but not available - run 'npm install'")
            ctx.report.add_error("ESLint not available")


def _check_prettier(ctx: LintContext, files: list[str]) -> None:
    declared = _manifest_mentions(ctx, "package.json", "prettier")
    configured = any((ctx.project_dir / name).exists() for name in PRETTIER_CONFIGS)
    if ctx.config.prettier_config and (ctx.project_dir / ctx.config.prettier_config).exists():
        configured = True
    if not (configured or declared):
        return

    prettier = _node_tool(ctx, "prettier")
    if prettier:
        logger.info("Running Prettier...")
        config_args = ["--config", ctx.config.prettier_config] if ctx.config.prettier_config else []
        result = ctx.runner.run([*prettier, *config_args, "--write", *(files or ["."])])
        if not result.ok:
            ctx.fail("Prettier formatting failed", result.output)
    elif declared:
        logger.error("Prettier is in package.json but not available - run 'npm install'")
        ctx.report.add_error("Prettier not available")


def _iter_js_sources(project_dir: Path):
    for path in sorted(project_dir.rglob("*")):
        rel = path.relative_to(project_dir)
        if any(part in SKIP_DIRS for part in rel.parts[:-1]):
            continue
        if path.suffix in CONSOLE_SCAN_EXTENSIONS and path.is_file():
            yield rel.as_posix()


def find_console_statements(project_dir: Path, files: list[str] | None = None) -> list[str]:
    """``path:line: text`` for console calls in production code, capped at 20."""
    candidates = files if files else list(_iter_js_sources(project_dir))
    hits = []

    for rel in candidates:
        if Path(rel).suffix not in CONSOLE_SCAN_EXTENSIONS or CONSOLE_ALLOWED_PATHS.search(rel):
            continue
        try:
            lines = (project_dir / rel).read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError:
            continue
        for number, line in enumerate(lines, 1):
            if CONSOLE_PATTERN.search(line) and not CONSOLE_DISABLE_COMMENT.search(line):
                hits.append(f"{rel}:{number}: {line.strip()}")
                if len(hits) >= MAX_CONSOLE_HITS:
                    return hits
    return hits


def lint_rust(ctx: LintContext) -> None:
    if not ctx.config.rust_enabled:
        logger.debug("Rust linting disabled")
        return

    logger.info("Running Rust linters...")
    files = ctx.files_for("rust")
    if _skip_language(ctx, "rust", files):
        return

    if not ctx.runner.exists("cargo"):
        logger.info("Cargo not found, skipping Rust checks")
        return

    # cargo fmt works on the whole package, not individual files
    if not ctx.runner.succeeds(["cargo", "fmt", "--", "--check"]):
        result = ctx.runner.run(["cargo", "fmt"])
        if not result.ok:
            ctx.fail("Rust formatting failed", result.output)

    result = ctx.runner.run(["cargo", "clippy", "--quiet", "--", "-D", "warnings"])
    if not result.ok:
        ctx.fail("Clippy found issues", result.output)


LINTERS: dict[str, Callable[[LintContext], None]] = {
    "ruby": lint_ruby,
    "python": lint_python,
    "javascript": lint_javascript,
    "rust": lint_rust,
}


def run_lint(
    project_dir: Path,
    config: HookConfig,
    languages: list[str],
    runner: CommandRunner | None = None,
    report: IssueReport | None = None,
    fast: bool = False,
) -> IssueReport:
    """Lint every detected language in order, honoring fail-fast."""
    runner = runner if runner is not None else CommandRunner(project_dir)
    report = report if report is not None else IssueReport()

    ctx = LintContext(
        project_dir=project_dir,
        config=config,
        runner=runner,
        report=report,
        modified_files=get_modified_files(project_dir, runner),
        fast=fast,
    )

    for language in languages:
        linter = LINTERS.get(language)
        if linter is None:
            continue
        linter(ctx)
        if config.fail_fast and report.has_errors:
            logger.debug("Fail-fast: stopping after %s", language)
            break

    return report
