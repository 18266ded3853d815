"""Confirmation-gated execution of extracted commands.

The executor is the trust boundary of Terminal AI: it runs text a
model produced as shell commands.  Each command is shown verbatim and
the user must confirm it before a child process is created.  There is
deliberately no option to skip the confirmation.

Commands run one at a time, in the order they were extracted.  A
declined command is recorded as skipped and never spawned; a failing
command is reported with its exit code, stderr and remediation advice,
and the executor moves on to the next command.
"""

from __future__ import annotations

import enum
import logging
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import click

from .state import detect_state_error, suggest_followup
from .validator import validate_command

logger = logging.getLogger(__name__)

PACKAGE_COMMAND_PATTERNS = (
    # install
    "npm install", "yarn install", "yarn add", "pnpm install", "pip install",
    "python -m pip install", "pip3 install", "apt install", "apt-get install",
    "yum install", "dnf install", "brew install", "snap install", "cargo install",
    "gem install", "conda install", "pacman -s", "pyenv install", "nvm install",
    # update
    "npm update", "yarn upgrade", "apt update", "apt-get update", "brew update",
    "brew upgrade", "conda update", "pacman -syu",
    # remove
    "npm uninstall", "npm remove", "yarn remove", "pip uninstall", "pip3 uninstall",
    "apt remove", "apt-get remove", "brew uninstall", "conda remove", "pacman -r",
)


class ExecutionStatus(enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ExecutionResult:
    """Outcome of one extracted command."""

    command: str
    status: ExecutionStatus
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    elapsed: float = 0.0

    @property
    def failed(self) -> bool:
        return self.status is ExecutionStatus.FAILED


def is_package_command(command: str) -> bool:
    """Return True for install, update and remove commands."""
    lowered = command.lower()
    return any(pattern in lowered for pattern in PACKAGE_COMMAND_PATTERNS)


def fix_find_exec_command(command: str) -> str:
    """Rewrite a trailing ``-exec ... +`` of a find command to ``\\;``.

    The ``+`` terminator misbehaves when passed through ``sh -c``.
    """
    stripped = command.rstrip()
    if stripped.lstrip().startswith("find ") and "-exec" in stripped and stripped.endswith(" +"):
        return stripped[:-2] + r" \;"
    return command


def _confirm(command: str) -> bool:
    return click.confirm("Run this command?", default=False)


class Executor:
    """Present, confirm and run commands one by one.

    :param confirm: Callable receiving the command and returning True
      to run it.  Defaults to a blocking ``[y/N]`` terminal prompt.
    :param echo: Output function, :func:`click.echo` by default.
    :param capture: Capture stdout/stderr instead of streaming them to
      the terminal.
    :param runner: Process launcher with the :func:`subprocess.run`
      signature.
    """

    def __init__(
        self,
        confirm: Optional[Callable[[str], bool]] = None,
        echo: Callable[..., None] = click.echo,
        capture: bool = False,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.confirm = confirm or _confirm
        self.echo = echo
        self.capture = capture
        self.runner = runner

    def execute(self, commands: Sequence[str]) -> List[ExecutionResult]:
        """Run ``commands`` in order, asking before each one."""
        results: List[ExecutionResult] = []
        total = len(commands)
        self.echo("Terminal AI suggests the following commands:")
        for index, command in enumerate(commands, start=1):
            self.echo(f"  {index}. {command}")
        for index, command in enumerate(commands, start=1):
            self.echo("")
            self.echo(f"[{index}/{total}] {command}")
            valid, reason = validate_command(command)
            if not valid:
                self.echo(click.style(f"Warning: {reason}", fg="yellow"))
            if not self.confirm(command):
                self.echo("Command not executed.")
                results.append(ExecutionResult(command=command, status=ExecutionStatus.SKIPPED))
                continue
            results.append(self._run(command))
        return results

    def _run(self, command: str) -> ExecutionResult:
        package_command = is_package_command(command)
        fixed = fix_find_exec_command(command)
        if fixed != command:
            self.echo(f"Adjusted command for compatibility: {fixed}")
        if package_command:
            self.echo(click.style("[Terminal AI] - Executing package management command", fg="green", bold=True))
        else:
            self.echo(f"Executing: {fixed}")

        start = time.monotonic()
        try:
            if self.capture:
                proc = self.runner(fixed, shell=True, capture_output=True, text=True)
            else:
                proc = self.runner(fixed, shell=True)
        except OSError as exc:
            elapsed = time.monotonic() - start
            logger.debug("Failed to spawn %r: %s", fixed, exc)
            result = ExecutionResult(
                command=command,
                status=ExecutionStatus.FAILED,
                exit_code=127,
                stderr=str(exc),
                elapsed=elapsed,
            )
            self._report_failure(result)
            return result
        elapsed = time.monotonic() - start

        stdout = stderr = ""
        if self.capture:
            stdout = proc.stdout or ""
            stderr = proc.stderr or ""
        if stdout:
            self.echo(stdout.rstrip())
        status = ExecutionStatus.COMPLETED if proc.returncode == 0 else ExecutionStatus.FAILED
        result = ExecutionResult(
            command=command,
            status=status,
            exit_code=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            elapsed=elapsed,
        )
        logger.debug("%r exited with %s after %.2fs", fixed, proc.returncode, elapsed)
        if result.failed:
            self._report_failure(result)
        else:
            self.echo(click.style("Command completed successfully", fg="green"))
        return result

    def _report_failure(self, result: ExecutionResult) -> None:
        self.echo(
            click.style(f"Command failed with exit code: {result.exit_code}", fg="red", bold=True),
            err=True,
        )
        if result.stderr:
            self.echo(result.stderr.rstrip(), err=True)
        advice = detect_state_error(result.stderr, result.exit_code)
        if advice:
            self.echo(advice, err=True)
        followups = suggest_followup(result.command, result.stderr)
        if followups:
            self.echo("Suggested follow-up commands:", err=True)
            for cmd in followups:
                self.echo(f"  {cmd}", err=True)
