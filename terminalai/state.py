"""Remediation advice for failed commands.

When an executed command exits non-zero the executor shows its exit
code and stderr.  This module parses that stderr for a handful of
frequently encountered shell errors and returns a short hint, so the
user knows whether to fix a path, a permission, a missing tool or the
request itself.  Additional patterns can be added over time.
"""

from __future__ import annotations

from typing import List, Optional

GENERIC_ADVICE = "Rephrase your request or run the command manually to inspect the error."


def detect_state_error(stderr: str, exit_code: Optional[int] = None) -> Optional[str]:
    """Inspect stderr for known error patterns and return advice.

    :param stderr: Standard error output from the executed command.
    :param exit_code: Exit status, used when stderr was not captured.
    :returns: A suggestion string or ``None`` if nothing is recognized.
    """
    text = stderr.lower()
    if "command not found" in text or exit_code == 127:
        return "The command is not installed or not on your PATH. Install it or use an alternative tool."
    if "no such file or directory" in text:
        return "A source or destination path does not exist. Check the paths or create the directory first."
    if "permission denied" in text or "operation not permitted" in text or exit_code == 126:
        return "Permission denied. Check file permissions or whether elevated rights are needed."
    if "is a directory" in text and "omitting directory" not in text:
        return "A directory was given where a file was expected. Use -r for directories."
    if "omitting directory" in text:
        return "cp skipped a directory. Add -r to copy directories recursively."
    if "no space left on device" in text:
        return "The destination device is full. Free some space and try again."
    if "no matching distribution" in text or "404 not found" in text or "e404" in text:
        return "The package or version was not found. Check the name and version."
    if "invalid option" in text or "illegal option" in text or "unrecognized option" in text:
        return "The command used an option your system does not support. " + GENERIC_ADVICE
    return None


def suggest_followup(command: str, stderr: str) -> List[str]:
    """Return follow-up commands for the recognized error patterns.

    If no known pattern is matched an empty list is returned.
    """
    text = stderr.lower()
    suggestions: List[str] = []
    if "omitting directory" in text and command.startswith("cp ") and " -r" not in command:
        suggestions.append("cp -r" + command[2:])
    if "command not found" in text:
        tool = command.split()[0] if command.split() else ""
        if tool:
            suggestions.append(f"command -v {tool}")
    return suggestions
