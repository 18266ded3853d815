"""Shared fixtures for the Terminal AI tests."""

import subprocess
from typing import List

import pytest

from terminalai.executor import Executor


class FakeProvider:
    """Stands in for a QueryProvider and records every query."""

    name = "Fake"

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.calls: List[tuple] = []

    def send_query(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.response


class FakeRunner:
    """Replacement for subprocess.run that never spawns a process."""

    def __init__(self, returncodes=None, stdout="", stderr=""):
        self.returncodes = list(returncodes or [])
        self.stdout = stdout
        self.stderr = stderr
        self.calls: List[tuple] = []

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs))
        code = self.returncodes.pop(0) if self.returncodes else 0
        return subprocess.CompletedProcess(command, code, self.stdout, self.stderr)

    @property
    def commands(self):
        return [c for c, _ in self.calls]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the config at an empty temp file and drop real API keys."""
    path = tmp_path / "config.yaml"
    monkeypatch.setenv("TERMINALAI_CONFIG", str(path))
    for var in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    return path


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def echoed():
    return []


def make_executor(answers, runner, echoed=None, capture=False):
    """Executor whose confirmation answers come from ``answers`` in order."""
    answers = list(answers)
    lines = echoed if echoed is not None else []

    def confirm(command):
        return answers.pop(0)

    def echo(message="", **kwargs):
        lines.append(str(message))

    return Executor(confirm=confirm, echo=echo, capture=capture, runner=runner)
