"""Compiled-in skill definitions.

Each skill ships as a ``<skill>.conf`` text block inside
``terminalai/data``.  A block has three sections::

    [SYSTEM_PROMPT]
    Instructions sent to the model for this skill.

    [ARGUMENTS]
    Usage text shown by ``tai usage <skill>``.

    [COMMANDS]
    One recognized command prefix per line.

Lines starting with ``#`` are comments and any other ``[SECTION]`` is
ignored.  The registry parses every block once, on first use, and
hands out frozen :class:`CommandDefinition` records.  There is no way
to add or change a definition at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import UnknownSkill
from .extractor import COMMON_PREFIXES

SKILL_NAMES = ("cp", "grep", "find", "ps", "resolve", "tai")

#: Skill used for prompts that do not fit any single-purpose tool.
ORCHESTRATOR_SKILL = "tai"


@dataclass(frozen=True)
class CommandDefinition:
    skill_name: str
    system_prompt: str
    usage_text: str
    command_prefixes: Tuple[str, ...] = ()


def parse_command_conf(content: str) -> Tuple[str, str, List[str]]:
    """Split a definition block into its sections.

    :returns: ``(system_prompt, usage_text, command_prefixes)``
    :raises ValueError: If the block has no system prompt.
    """
    sections: Dict[str, List[str]] = {"SYSTEM_PROMPT": [], "ARGUMENTS": [], "COMMANDS": []}
    current: Optional[str] = None
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("#"):
            continue
        if stripped.startswith("[") and stripped.endswith("]"):
            name = stripped[1:-1]
            current = name if name in sections else None
            continue
        if current == "ARGUMENTS":
            # Usage text keeps its blank lines and indentation.
            sections[current].append(line.rstrip())
        elif current is not None and stripped:
            sections[current].append(stripped if current == "COMMANDS" else line.rstrip())

    system_prompt = "\n".join(sections["SYSTEM_PROMPT"]).strip()
    if not system_prompt:
        raise ValueError("No system prompt found in command definition")
    usage_text = "\n".join(sections["ARGUMENTS"]).strip()
    return system_prompt, usage_text, sections["COMMANDS"]


def load_command_definition(skill_name: str) -> CommandDefinition:
    """Read and parse the packaged definition for ``skill_name``."""
    if skill_name not in SKILL_NAMES:
        raise UnknownSkill(skill_name)
    content = (
        resources.files("terminalai.data")
        .joinpath(f"{skill_name}.conf")
        .read_text(encoding="utf-8")
    )
    system_prompt, usage_text, own_prefixes = parse_command_conf(content)
    prefixes = tuple(own_prefixes) + tuple(p for p in COMMON_PREFIXES if p not in own_prefixes)
    return CommandDefinition(
        skill_name=skill_name,
        system_prompt=system_prompt,
        usage_text=usage_text,
        command_prefixes=prefixes,
    )


class CommandRegistry:
    """Read-only lookup table of skill definitions."""

    def __init__(self, definitions: Mapping[str, CommandDefinition]) -> None:
        self._definitions = MappingProxyType(dict(definitions))

    @classmethod
    def load(cls) -> "CommandRegistry":
        return cls({name: load_command_definition(name) for name in SKILL_NAMES})

    def lookup(self, skill_name: str) -> CommandDefinition:
        """Return the definition for ``skill_name``.

        :raises UnknownSkill: If the skill is not compiled in.
        """
        try:
            return self._definitions[skill_name]
        except KeyError:
            raise UnknownSkill(skill_name) from None

    def names(self) -> List[str]:
        return list(self._definitions)

    @property
    def definitions(self) -> Mapping[str, CommandDefinition]:
        return self._definitions

    def __contains__(self, skill_name: object) -> bool:
        return skill_name in self._definitions


_registry: Optional[CommandRegistry] = None


def get_registry() -> CommandRegistry:
    """Return the process-wide registry, building it on first use."""
    global _registry
    if _registry is None:
        _registry = CommandRegistry.load()
    return _registry
