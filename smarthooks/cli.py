"""CLI entry point for smarthooks."""

import argparse
import json
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from smarthooks import InvocationContext, __version__
from smarthooks.config import HookConfig, load_config
from smarthooks.errors import ConfigError
from smarthooks.log import configure_logging
from smarthooks.report import EXIT_ENV_ERROR, EXIT_FEEDBACK, EXIT_OK, IssueReport

logger = logging.getLogger(__name__)

EDIT_TOOLS = ("Edit", "Write", "MultiEdit")


@dataclass
class HookPayload:
    """The fields smarthooks reads from the hook runtime's stdin JSON."""

    tool_name: str = ""
    file_path: str = ""
    cwd: str = ""

    @property
    def is_edit(self) -> bool:
        return self.tool_name in EDIT_TOOLS


def read_hook_payload(stream: TextIO | None) -> HookPayload | None:
    """Parse hook JSON from stdin; None means CLI mode (no or invalid input)."""
    if stream is None or (hasattr(stream, "isatty") and stream.isatty()):
        return None

    try:
        text = stream.read()
    except OSError:
        return None
    if not text.strip():
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    tool_input = data.get("tool_input") or {}
    if not isinstance(tool_input, dict):
        tool_input = {}
    return HookPayload(
        tool_name=data.get("tool_name") or "",
        file_path=tool_input.get("file_path") or "",
        cwd=data.get("cwd") or "",
    )


def _resolve_project_dir(explicit: str | None, payload: HookPayload | None) -> Path:
    if explicit:
        return Path(explicit).resolve()
    if payload is not None and payload.cwd:
        return Path(payload.cwd).resolve()
    return Path.cwd()


def _load_config(project_dir: Path) -> HookConfig | None:
    """Load config, reporting a broken override file; None means fatal."""
    try:
        return load_config(project_dir)
    except ConfigError as e:
        logger.error("%s", e)
        return None


def _build_context(args: argparse.Namespace) -> InvocationContext | int:
    """Turn CLI args and stdin into an invocation, or an early exit code."""
    payload = None if getattr(args, "file", None) else read_hook_payload(sys.stdin)
    if payload is not None and not payload.is_edit:
        return EXIT_OK
    if payload is not None and not payload.file_path:
        return EXIT_OK

    project_dir = _resolve_project_dir(args.project_dir, payload)
    if not project_dir.is_dir():
        print(f"Error: '{project_dir}' is not a directory.", file=sys.stderr)
        return EXIT_ENV_ERROR

    raw_file = payload.file_path if payload is not None else getattr(args, "file", None)
    file_path = None
    if raw_file:
        file_path = Path(raw_file)
        if not file_path.is_absolute():
            file_path = project_dir / file_path

    return InvocationContext(
        project_dir=project_dir,
        file_path=file_path,
        tool_name=payload.tool_name if payload is not None else "",
    )


def cmd_lint(args: argparse.Namespace) -> int:
    """Handle the lint subcommand."""
    from smarthooks.detectors import detect_project_types
    from smarthooks.linters import run_lint

    configure_logging(debug=args.debug)
    ctx = _build_context(args)
    if isinstance(ctx, int):
        return ctx

    report = IssueReport()
    report.header("🔍 Style Check - Validating code formatting...")

    config = _load_config(ctx.project_dir)
    if config is None:
        return EXIT_FEEDBACK
    configure_logging(debug=args.debug or config.debug)

    if not config.enabled:
        logger.info("Claude hooks are disabled")
        return EXIT_OK

    start = time.monotonic()
    languages = detect_project_types(ctx.project_dir)
    if len(languages) > 1:
        logger.info("Project type: mixed:%s", ",".join(languages))
    else:
        logger.info("Project type: %s", languages[0] if languages else "unknown")

    if languages:
        run_lint(ctx.project_dir, config, languages, report=report, fast=args.fast)
    else:
        logger.info("No recognized project type, skipping checks")

    if config.debug or config.show_timing:
        logger.info("Execution time: %dms", (time.monotonic() - start) * 1000)

    return report.finish_lint()


def cmd_test(args: argparse.Namespace) -> int:
    """Handle the test subcommand."""
    from smarthooks.detectors import detect_project_types
    from smarthooks.dispatcher import TestDispatcher
    from smarthooks.files import should_skip_file
    from smarthooks.registry import language_for_file

    configure_logging(debug=args.debug)
    ctx = _build_context(args)
    if isinstance(ctx, int):
        return ctx

    config = _load_config(ctx.project_dir)
    if config is None:
        return EXIT_FEEDBACK
    configure_logging(debug=args.debug or config.debug)

    if not config.enabled:
        logger.info("Claude hooks are disabled")
        return EXIT_OK
    if not config.test_on_edit:
        logger.debug("Test on edit disabled, exiting")
        return EXIT_OK

    report = IssueReport()
    dispatcher = TestDispatcher(ctx.project_dir, config, report=report)

    if ctx.whole_project:
        languages = detect_project_types(ctx.project_dir)
        if not languages:
            logger.info("No recognized project type, skipping tests")
            return EXIT_OK
        report.header("🧪 Test Check - Running all project tests...")
        dispatcher.dispatch_project(languages)
        return report.finish_tests("project")

    spec = language_for_file(ctx.file_path)
    if spec is None:
        logger.debug("No tests for this file type: %s", ctx.file_path)
        return EXIT_OK
    ctx.language = spec.name
    if should_skip_file(ctx.file_path, ctx.project_dir):
        return EXIT_OK
    logger.debug("Testing %s file %s", ctx.language, ctx.file_path)

    report.header(f"🧪 Test Check - Running tests for {ctx.file_path.name}...")
    dispatcher.dispatch(ctx.file_path)
    return report.finish_tests(str(ctx.file_path))


def cmd_info(args: argparse.Namespace) -> int:
    """Handle the info subcommand."""
    from smarthooks.detectors import detect_project

    target = Path(args.directory).resolve()
    if not target.is_dir():
        print(f"Error: '{target}' is not a directory.")
        return EXIT_ENV_ERROR

    profile = detect_project(target)

    print(f"\n=== Project Info: {target} ===\n")
    print(f"  Name:            {profile.name or '(unknown)'}")
    print(f"  Project type:    {profile.project_type}")
    print(f"  Manifests:       {', '.join(profile.manifests) or '(none detected)'}")
    print(f"  Test dirs:       {', '.join(profile.test_dirs) or '(none detected)'}")
    print(f"  Git:             {'yes' if profile.git_initialized else 'no'}")
    print(f"  Ignore file:     {'yes' if profile.has_ignore_file else 'no'}")
    print(f"  Override config: {'yes' if profile.has_override_config else 'no'}")
    print()
    return EXIT_OK


def cmd_doctor(args: argparse.Namespace) -> int:
    """Handle the doctor subcommand."""
    from smarthooks.doctor import check_tools

    target = Path(args.directory).resolve()
    if not target.is_dir():
        print(f"Error: '{target}' is not a directory.")
        return EXIT_ENV_ERROR

    passes, failures = check_tools(target)

    print(f"\n=== Tool check: {target} ===\n")
    for msg in passes:
        print(f"  PASS: {msg}")
    for msg in failures:
        print(f"  FAIL: {msg}")

    total = len(passes) + len(failures)
    print(f"\n  {len(passes)}/{total} checks passed.\n")

    return EXIT_OK if not failures else EXIT_ENV_ERROR


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the config subcommand: print the resolved settings."""
    target = Path(args.directory).resolve()
    if not target.is_dir():
        print(f"Error: '{target}' is not a directory.")
        return EXIT_ENV_ERROR

    configure_logging()
    config = _load_config(target)
    if config is None:
        return EXIT_FEEDBACK

    for key, value in config.as_env().items():
        print(f"{key}={value}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smarthooks",
        description="Project-aware lint and test hooks for AI coding assistants",
    )
    parser.add_argument("--version", action="version", version=f"smarthooks {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # lint
    p_lint = subparsers.add_parser("lint", help="Run linters/formatters on modified files")
    p_lint.add_argument("--debug", action="store_true", help="Enable debug output")
    p_lint.add_argument("--fast", action="store_true", help="Skip slow checks")
    p_lint.add_argument("--project-dir", default=None, help="Project directory (default: cwd)")

    # test
    p_test = subparsers.add_parser("test", help="Run tests for an edited file")
    p_test.add_argument(
        "file",
        nargs="?",
        default=None,
        help="Edited file, relative to the project directory (default: stdin payload or whole project)",
    )
    p_test.add_argument("--debug", action="store_true", help="Enable debug output")
    p_test.add_argument("--project-dir", default=None, help="Project directory (default: cwd)")

    # info
    p_info = subparsers.add_parser("info", help="Show detected project profile (no writes)")
    p_info.add_argument("directory", nargs="?", default=".", help="Project directory (default: .)")

    # doctor
    p_doctor = subparsers.add_parser("doctor", help="Check which external tools are installed")
    p_doctor.add_argument(
        "directory", nargs="?", default=".", help="Project directory (default: .)"
    )

    # config
    p_config = subparsers.add_parser("config", help="Print the resolved configuration")
    p_config.add_argument(
        "directory", nargs="?", default=".", help="Project directory (default: .)"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    commands = {
        "lint": cmd_lint,
        "test": cmd_test,
        "info": cmd_info,
        "doctor": cmd_doctor,
        "config": cmd_config,
    }

    handler = commands.get(args.command)
    if handler:
        sys.exit(handler(args))
    else:
        parser.print_help()
        sys.exit(0)
