"""Shared fixtures for smarthooks tests."""

import io
import logging

import pytest

from smarthooks.report import IssueReport
from smarthooks.runner import CommandResult


class FakeRunner:
    """CommandRunner stand-in that records argv and never spawns processes.

    ``failing`` holds token tuples; a command fails when it contains every
    token of any entry. ``outputs`` maps exact argv tuples to captured output.
    """

    def __init__(self, available=(), failing=(), outputs=None):
        self.available = set(available)
        self.failing = [tuple(tokens) for tokens in failing]
        self.outputs = dict(outputs or {})
        self.calls: list[list[str]] = []

    def exists(self, name: str) -> bool:
        return name in self.available

    def run(self, argv: list[str]) -> CommandResult:
        argv = list(argv)
        self.calls.append(argv)
        output = self.outputs.get(tuple(argv), "")
        for tokens in self.failing:
            if all(token in argv for token in tokens):
                return CommandResult(argv, 1, output or f"{argv[0]} failed")
        return CommandResult(argv, 0, output)

    def succeeds(self, argv: list[str]) -> bool:
        return self.run(argv).ok

    def called_with(self, *tokens: str) -> bool:
        return any(all(token in argv for token in tokens) for argv in self.calls)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams that a finished test captured."""
    yield
    logger = logging.getLogger("smarthooks")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def report_stream():
    return io.StringIO()


@pytest.fixture
def report(report_stream):
    return IssueReport(stream=report_stream, use_color=False)


@pytest.fixture
def make_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner
