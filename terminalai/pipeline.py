"""The prompt-orchestration pipeline.

A single invocation runs strictly in sequence::

    prompt -> validate_prompt -> registry lookup -> send_query
           -> extract_commands -> Executor.execute

Validation and lookup are local and happen before any network call,
so an out-of-scope prompt never reaches the provider.  A response
without recognizable commands is not an error: the result reports
``no_commands_found`` and the caller shows the raw answer instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .definitions import ORCHESTRATOR_SKILL, CommandRegistry, get_registry
from .errors import InvalidPackageSpec
from .executor import ExecutionResult, Executor
from .extractor import extract_commands, parse_orchestration_response
from .providers import QueryProvider
from .validator import extract_package_name, validate_prompt

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    skill_name: str
    response: str
    commands: List[str] = field(default_factory=list)
    results: List[ExecutionResult] = field(default_factory=list)

    @property
    def no_commands_found(self) -> bool:
        return not self.commands

    @property
    def failed(self) -> List[ExecutionResult]:
        return [r for r in self.results if r.failed]


def _execute(skill_name: str, response: str, commands: List[str], executor: Executor) -> PipelineResult:
    if not commands:
        logger.debug("No commands found in %s response", skill_name)
        return PipelineResult(skill_name=skill_name, response=response)
    results = executor.execute(commands)
    return PipelineResult(skill_name=skill_name, response=response, commands=commands, results=results)


def run_skill(
    skill_name: str,
    prompt: str,
    provider: QueryProvider,
    executor: Executor,
    registry: Optional[CommandRegistry] = None,
) -> PipelineResult:
    """Run one skill end to end.

    :raises UnknownSkill: If the skill is not compiled in.
    :raises ScopeRejection: If the prompt does not belong to the skill.
    :raises ProviderError: If the model call fails.
    """
    validate_prompt(skill_name, prompt)
    registry = registry or get_registry()
    definition = registry.lookup(skill_name)
    logger.debug("Querying %s for skill %s", provider.name, skill_name)
    response = provider.send_query(definition.system_prompt, prompt)
    commands = extract_commands(response, definition.command_prefixes)
    return _execute(skill_name, response, commands, executor)


def orchestrate(
    prompt: str,
    provider: QueryProvider,
    executor: Executor,
    registry: Optional[CommandRegistry] = None,
) -> PipelineResult:
    """Run the general-purpose orchestrator, which has no keyword gate."""
    registry = registry or get_registry()
    definition = registry.lookup(ORCHESTRATOR_SKILL)
    logger.debug("Querying %s for orchestration", provider.name)
    response = provider.send_query(definition.system_prompt, prompt)
    commands = parse_orchestration_response(response)
    return _execute(ORCHESTRATOR_SKILL, response, commands, executor)


# Package resolution -----------------------------------------------------------

NPM_FILES = ("package.json", "package-lock.json", "yarn.lock")
PYTHON_FILES = ("requirements.txt", "poetry.lock", "pipfile", "pipfile.lock")


def detect_package_manager(path: Union[str, Path]) -> str:
    """Return ``"npm"`` or ``"python"`` for a dependency file.

    The file name decides first; otherwise the contents are inspected.

    :raises InvalidPackageSpec: If the file is missing or unrecognized.
    """
    path = Path(path)
    if not path.exists():
        raise InvalidPackageSpec(f"Dependency file '{path}' does not exist")
    name = path.name.lower()
    if name in NPM_FILES:
        return "npm"
    if name in PYTHON_FILES:
        return "python"
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        raise InvalidPackageSpec(f"Could not read file '{path}'") from None
    if '"dependencies"' in content or '"devDependencies"' in content:
        return "npm"
    if "==" in content or ">=" in content or "<=" in content:
        return "python"
    raise InvalidPackageSpec(
        f"Could not detect package manager type from file '{path}'. Supported files: "
        "package.json, requirements.txt, yarn.lock, poetry.lock, Pipfile"
    )


def package_manager_for(package_type: str, env_type: str = "venv") -> str:
    if package_type == "python":
        return "conda" if env_type == "conda" else "pip"
    return "npm"


def build_resolve_prompt(
    package_type: str,
    package: str,
    env_type: str = "venv",
    from_file: bool = False,
) -> str:
    """Describe a resolve request for the model."""
    manager = package_manager_for(package_type, env_type)
    if from_file:
        return (
            f"Generate the BASIC installation command for {package_type} file '{package}' "
            f"using {manager}. Start with the standard installation command only. Do NOT include "
            "cache clearing, purging, or force reinstall commands. Provide ONLY the basic "
            "executable command."
        )
    note = ""
    if package_type == "python":
        note = f"\n\nNOTE: Using {manager} for Python packages:\n- {manager} install {extract_package_name(package)}"
    return (
        f"Generate the BASIC installation command for {package_type} package '{package}' "
        f"using {manager}. Start with the standard installation command only "
        f"(e.g., '{manager} install {package}'). Do NOT include cache clearing, purging, "
        "upgrade pip, or force reinstall commands. Provide ONLY the basic executable command."
        f"{note}"
    )
