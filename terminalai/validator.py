"""Prompt and command validation utilities.

Two gates live in this module.

The first runs *before* the model is queried: every single-skill tool
(``cp_ai``, ``grep_ai`` ...) only answers prompts that belong to its
domain.  :func:`validate_prompt` checks the prompt against the skill's
allow and deny keyword lists and raises a
:class:`~terminalai.errors.ScopeRejection` when the prompt carries no
positive signal.  An allow hit always wins, even when a deny keyword
is present as well.  The check is a linear scan over small fixed
lists and never touches the network.

The second runs *after* extraction: :func:`validate_command` looks for
markdown leftovers, unresolved placeholders and destructive shell
operations in a suggested command.  Flagged commands are not run
silently; the executor prints the reason before asking for
confirmation, and the orchestrator drops dangerous ones outright.

The resolve skill takes a package specification rather than free
text, so it has its own checks (:func:`validate_package_spec`,
:func:`check_invalid_package`, :func:`detect_common_typos`).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from .errors import Ambiguous, InvalidPackageSpec, OutOfScope, UnknownSkill


@dataclass(frozen=True)
class ValidationRule:
    """Keyword lists that decide whether a prompt belongs to a skill."""

    skill_name: str
    purpose: str
    allow_keywords: FrozenSet[str]
    deny_keywords: FrozenSet[str]

    def __post_init__(self) -> None:
        overlap = self.allow_keywords & self.deny_keywords
        if overlap:
            raise ValueError(
                f"Keywords for {self.skill_name} are both allowed and denied: {sorted(overlap)}"
            )

    @property
    def tool_name(self) -> str:
        return f"{self.skill_name}_ai"


def _rule(skill_name: str, purpose: str, allow: Iterable[str], deny: Iterable[str]) -> ValidationRule:
    return ValidationRule(
        skill_name=skill_name,
        purpose=purpose,
        allow_keywords=frozenset(k.lower() for k in allow),
        deny_keywords=frozenset(k.lower() for k in deny),
    )


RULES: Dict[str, ValidationRule] = {
    "cp": _rule(
        "cp",
        "copy operations",
        allow=[
            "copy", "cp", "duplicate", "backup", "move", "transfer",
            "clone", "replicate", "save to", "archive",
        ],
        deny=[
            "search", "find", "grep", "locate", "look for", "scan",
            "delete", "remove", "rm", "kill", "stop", "start",
            "install", "download", "update", "upgrade", "configure",
        ],
    ),
    "grep": _rule(
        "grep",
        "text search operations",
        allow=[
            "search", "find", "grep", "locate", "look for", "scan",
            "pattern", "match", "filter", "contains", "includes",
        ],
        deny=[
            "copy", "cp", "duplicate", "backup", "move", "transfer",
            "delete", "remove", "rm", "kill", "stop", "start",
            "install", "download", "update", "upgrade", "configure",
        ],
    ),
    "find": _rule(
        "find",
        "file and directory search operations",
        allow=[
            "find", "search", "locate", "look", "discover", "files",
            "directories", "folders", "path", "paths", "name", "pattern",
            "match", "filter", "contains", "size", "large", "small",
            "empty", "recent", "modified", "created", "accessed", "old",
            "new", "type", "extension", "executable", "hidden", "where",
            "which", "all", "any", "get", "show", "list", "scan",
            "browse", "explore",
        ],
        deny=[
            "copy", "cp", "duplicate", "backup", "move", "transfer",
            "delete", "remove", "rm", "kill", "destroy", "erase",
            "install", "download", "update", "upgrade", "configure",
            "edit", "modify", "change", "replace", "write", "create",
            "make", "mkdir", "touch", "compile", "build", "deploy",
            "start", "stop", "restart",
        ],
    ),
    "ps": _rule(
        "ps",
        "process management operations",
        allow=[
            "process", "ps", "processes", "running", "status", "monitor",
            "top", "cpu", "memory", "kill", "terminate", "stop", "start",
            "restart", "zombie", "orphan", "thread", "pid", "process id",
            "usage", "consumption", "load", "performance", "consumers",
            "show", "list", "display", "view",
        ],
        deny=[
            "copy", "cp", "duplicate", "backup", "move", "transfer",
            "search", "grep", "locate", "install", "download", "update",
            "upgrade", "configure",
        ],
    ),
    "resolve": _rule(
        "resolve",
        "package dependency resolution",
        allow=["install", "package", "dependency", "dependencies", "resolve", "requirements"],
        deny=["copy", "search", "grep", "kill", "delete"],
    ),
}


def _suggest_tools(prompt_lower: str, skill_name: str) -> str:
    """Name the tools a deny-only prompt most likely needs."""
    if "delete" in prompt_lower or "remove" in prompt_lower or "rm" in prompt_lower:
        return "file deletion tools (rm)"
    if "install" in prompt_lower or "download" in prompt_lower or "update" in prompt_lower:
        return "package management tools"
    if (
        "search" in prompt_lower
        or "grep" in prompt_lower
        or ("find" in prompt_lower and skill_name != "ps")
    ):
        return "search tools (grep, find)"
    if "copy" in prompt_lower or "cp" in prompt_lower or "backup" in prompt_lower:
        return "file copy tools (cp, mv)"
    if "kill" in prompt_lower or "stop" in prompt_lower or "start" in prompt_lower:
        return "process management tools (ps, kill)"
    return "other system tools"


def validate_prompt(
    skill_name: str,
    prompt: str,
    rules: Mapping[str, ValidationRule] = RULES,
) -> None:
    """Check that ``prompt`` belongs to ``skill_name``.

    :param skill_name: Skill being invoked, e.g. ``"cp"``.
    :param prompt: Raw user prompt.
    :param rules: Rule table, :data:`RULES` by default.
    :raises UnknownSkill: When no rule exists for the skill.
    :raises OutOfScope: When only deny keywords match.
    :raises Ambiguous: When no allow keyword matches.
    """
    rule = rules.get(skill_name)
    if rule is None:
        raise UnknownSkill(skill_name)
    prompt_lower = prompt.lower()
    allow_hit = any(keyword in prompt_lower for keyword in rule.allow_keywords)
    if allow_hit:
        return
    deny_hit = any(keyword in prompt_lower for keyword in rule.deny_keywords)
    if deny_hit:
        tools = _suggest_tools(prompt_lower, skill_name)
        raise OutOfScope(
            f"Command requires using {tools} which is out of scope of {rule.tool_name}.\n"
            f"{rule.tool_name} is designed specifically for {rule.purpose} only.",
            skill_name,
            prompt,
            suggested_tools=tools,
        )
    raise Ambiguous(
        f"No {rule.purpose} request found in the prompt.\n"
        f"{rule.tool_name} is designed specifically for {rule.purpose} only.",
        skill_name,
        prompt,
    )


# Package resolution ---------------------------------------------------------

PACKAGE_TYPES = ("npm", "python")

_TYPO_CORRECTIONS = {
    "numby": "numpy",
    "numpie": "numpy",
    "numbpy": "numpy",
    "pandsa": "pandas",
    "panda": "pandas",
    "scikitlearn": "scikit-learn",
    "sklearn": "scikit-learn",
    "matplot": "matplotlib",
    "plotlib": "matplotlib",
    "tensorlow": "tensorflow",
    "tensrflow": "tensorflow",
    "reqests": "requests",
    "reqeusts": "requests",
    "beautifulsoup": "beautifulsoup4",
    "bs4": "beautifulsoup4",
    "pil": "pillow",
}

_VERSION_SEPARATORS = ("==", ">=", "<=", "@")


def _split_version(package: str) -> Tuple[str, str]:
    """Split ``package`` into its name and the version part.

    The version part keeps its separator (``==1.0``, ``>=1.24``,
    ``@18.2.0``) and is empty when there is none.  A leading ``@``
    belongs to an npm scope and stays with the name.
    """
    for separator in ("==", ">=", "<="):
        if separator in package:
            index = package.index(separator)
            return package[:index].strip(), package[index:].strip()
    if "@" in package[1:]:
        index = package.index("@", 1)
        return package[:index].strip(), package[index:].strip()
    return package.strip(), ""


def extract_package_name(package: str) -> str:
    """Strip the version part from ``package``."""
    return _split_version(package)[0]


def validate_package_spec(package_type: str, package: str) -> None:
    """Validate a resolve request.

    :raises InvalidPackageSpec: When the type is unsupported or the
      package lacks a usable version specification.
    """
    if package_type not in PACKAGE_TYPES:
        raise InvalidPackageSpec(
            f"Invalid package type '{package_type}'. Must be 'npm' or 'python'"
        )
    if not package:
        raise InvalidPackageSpec("Package name cannot be empty")
    if not any(separator in package for separator in _VERSION_SEPARATORS):
        raise InvalidPackageSpec(
            "Package must include version specification. Use format: "
            "'package@version' for npm or 'package==version' for Python"
        )
    package_lower = package.lower()
    if package_type == "npm":
        if "@" not in package:
            raise InvalidPackageSpec(
                "NPM packages must use '@' for version specification (e.g., 'react@18.2.0')"
            )
        if "node_modules" in package_lower or "package.json" in package_lower:
            raise InvalidPackageSpec(
                "Invalid package name. Cannot install 'node_modules' or 'package.json'"
            )
    else:
        if not any(separator in package for separator in ("==", ">=", "<=")):
            raise InvalidPackageSpec(
                "Python packages must use '==' for exact version or '>='/'<=' "
                "for version ranges (e.g., 'requests==2.31.0')"
            )
        if extract_package_name(package_lower) in ("pip", "setuptools"):
            raise InvalidPackageSpec(
                "Invalid package name. Cannot install 'pip' or 'setuptools' as regular packages"
            )


def detect_common_typos(package: str) -> Optional[str]:
    """Return a corrected spec for well-known misspelled packages.

    The version part is preserved: ``numby==1.26.0`` becomes
    ``numpy==1.26.0`` and ``numby>=1.24`` becomes ``numpy>=1.24``.
    Returns ``None`` when the name looks fine.
    """
    name, version = _split_version(package)
    corrected = _TYPO_CORRECTIONS.get(name.lower())
    if corrected is None:
        return None
    return corrected + version


def check_invalid_package(package_type: str, package: str) -> Optional[str]:
    """Return a warning for packages that cannot be installed as asked.

    Language runtimes (``python==3.13``, ``node==18``) are not pip or npm
    packages, and common typos are reported with their correction.
    """
    if package_type == "python":
        if package.startswith(("python==", "python3==")):
            return (
                f"Package '{package}' is invalid. Python interpreter versions cannot be "
                "installed via pip. Use pyenv (pyenv install 3.13.3), brew or conda instead."
            )
        if package.startswith("node=="):
            return (
                f"Package '{package}' is invalid. Node.js cannot be installed via pip. "
                "Use nvm (nvm install 18.17.0) or brew instead."
            )
        corrected = detect_common_typos(package)
        if corrected:
            return f"Package '{package}' may be a typo. Did you mean '{corrected}'?"
    elif package.startswith(("python==", "python3==")):
        return (
            f"Package '{package}' is invalid. Python cannot be installed via npm. "
            "Use pyenv, brew or conda instead."
        )
    return None


# Command safety --------------------------------------------------------------

DANGEROUS_PATTERNS = [
    r"rm\s+-(?:rf|fr)\s+(?:/|~)(?:\*|\s|$)",  # wipe root or home
    r"sudo\s+rm",  # privileged remove
    r"mkfs",  # format filesystem
    r"fdisk",  # partition table edits
    r":\(\)\s*\{\s*:|:\|:&\s*;\s*\}",  # fork bomb
    r"dd\s+if=",  # raw disk copies
    r">\s*/dev/(?:sd|hd|nvme|disk)",  # redirecting to block devices
    r"chmod\s+(?:-R\s+)?777",
    r"\bshutdown\b",
    r"\breboot\b",
    r"\bhalt\b",
]


def validate_command(command: str) -> Tuple[bool, str]:
    """Validate a suggested command string.

    :param command: Command extracted from the model response.
    :returns: Tuple ``(is_valid, reason)``.  ``reason`` is empty when
      the command passes all checks.

    Validation criteria:

    * Command must not be empty or whitespace.
    * It must not contain Markdown fences or backticks.
    * It must not contain unresolved placeholders of the form ``<...>``.
    * It must not match any of :data:`DANGEROUS_PATTERNS`.
    """
    cmd = command.strip()
    if not cmd:
        return False, "Command is empty"
    if "`" in cmd:
        return False, "Command contains backticks or Markdown fences"
    if re.search(r"<[A-Za-z_][\w-]*>", cmd):
        return False, "Command contains unresolved placeholders"
    if is_dangerous(cmd):
        return False, "Command contains potentially dangerous operations"
    return True, ""


def is_dangerous(command: str) -> bool:
    """Return True if the command contains destructive operations."""
    return any(re.search(pattern, command, flags=re.IGNORECASE) for pattern in DANGEROUS_PATTERNS)
