"""Extraction of shell commands from free-text model output.

Models rarely answer with bare commands: they add explanations,
markdown fences and numbered lists.  The extractor keeps only lines
that start with a recognized command prefix and discards the rest as
prose.  Classification is purely prefix based, so the recognized
vocabulary must stay in sync with what each skill asks the model to
produce.  Each skill lists its own tools in the ``[COMMANDS]`` section
of its definition; the auxiliary tools every skill may need (directory
creation, package managers) live in :data:`COMMON_PREFIXES` below.

The general-purpose orchestrator uses a different convention: the
model marks each command with ``COMMAND:``.  See
:func:`parse_orchestration_response`.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .validator import is_dangerous

logger = logging.getLogger(__name__)

#: Bump whenever a prefix is added to or removed from the lists below.
PREFIX_SET_VERSION = 3

COMMON_PREFIXES = (
    "mkdir",
    "npm",
    "pip",
    "python -m pip",
    "conda",
    "pyenv",
    "nvm",
    "brew",
    "yarn",
    "poetry",
    "pipenv",
)

#: Prefix set used when no skill-specific list is supplied.
DEFAULT_PREFIXES = ("cp", "grep", "find", "ps") + COMMON_PREFIXES

ORCHESTRATION_MARKER = "COMMAND:"


def is_command_line(line: str, prefixes: Iterable[str]) -> bool:
    """Return True if ``line`` invokes one of ``prefixes``.

    A prefix matches when the line is exactly the prefix or the prefix
    is followed by a space, so ``cp`` matches ``cp a b`` but not
    ``cpio``.
    """
    for prefix in prefixes:
        if line == prefix or line.startswith(prefix + " "):
            return True
    return False


def extract_commands(response: str, prefixes: Sequence[str] = DEFAULT_PREFIXES) -> List[str]:
    """Return the command lines found in ``response``.

    :param response: Raw text returned by the provider.
    :param prefixes: Recognized command prefixes.
    :returns: Whitespace-trimmed command lines in the order they appear.
      Duplicates are kept.  The list is empty when nothing matched.
    """
    commands: List[str] = []
    for line in response.splitlines():
        trimmed = line.strip()
        if trimmed and is_command_line(trimmed, prefixes):
            commands.append(trimmed)
    logger.debug("Extracted %d command(s) from %d line(s)", len(commands), len(response.splitlines()))
    return commands


def parse_orchestration_response(response: str) -> List[str]:
    """Return the ``COMMAND:`` lines of an orchestrator answer.

    Empty commands and commands flagged by
    :func:`terminalai.validator.is_dangerous` are dropped.
    """
    commands: List[str] = []
    for line in response.splitlines():
        trimmed = line.strip()
        if not trimmed.startswith(ORCHESTRATION_MARKER):
            continue
        command = trimmed[len(ORCHESTRATION_MARKER):].strip()
        if not command:
            continue
        if is_dangerous(command):
            logger.warning("Dropping dangerous orchestrated command: %s", command)
            continue
        commands.append(command)
    return commands
