"""Error taxonomy for Terminal AI.

Every error a user can see derives from :class:`TerminalAIError` and
carries a short remediation ``hint`` next to its message.  The CLI
catches these at the command boundary, prints both parts and exits
non-zero.  Nothing in here is retried automatically: scope rejections
are resolved locally before any network call, and provider errors are
surfaced as-is so the user can re-invoke the command.
"""

from __future__ import annotations

from typing import Optional


class TerminalAIError(Exception):
    """Base class for all user-visible errors."""

    hint = ""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class ConfigError(TerminalAIError):
    """Raised when the configuration file is unusable at startup."""

    hint = "Run 'tai configure' to set up your configuration."


class UnknownSkill(TerminalAIError):
    """Raised when a skill name is not among the compiled-in definitions."""

    hint = "Run 'tai skills' to list the available skills."

    def __init__(self, skill_name: str) -> None:
        super().__init__(f"Unknown command: {skill_name}")
        self.skill_name = skill_name


class ScopeRejection(TerminalAIError):
    """A prompt does not belong to the invoked skill."""

    def __init__(self, message: str, skill_name: str, prompt: str) -> None:
        super().__init__(
            message,
            hint=f"Use 'tai -p \"{prompt}\"' instead for full system capabilities.",
        )
        self.skill_name = skill_name
        self.prompt = prompt


class OutOfScope(ScopeRejection):
    """The prompt looks like it belongs to a different skill."""

    def __init__(self, message: str, skill_name: str, prompt: str, suggested_tools: str) -> None:
        super().__init__(message, skill_name, prompt)
        self.suggested_tools = suggested_tools


class Ambiguous(ScopeRejection):
    """The prompt carries no positive signal for the skill."""


class InvalidPackageSpec(TerminalAIError):
    """Raised when a resolve request names an unusable package."""

    hint = "Use 'package@version' for npm or 'package==version' for Python."


class ProviderError(TerminalAIError):
    """Raised when the AI backend cannot answer a query."""

    hint = "Make sure your AI provider is configured correctly. Run 'tai configure' to set it up."


class ConnectionFailed(ProviderError):
    hint = "Check that the provider is reachable (is the local server running?)."


class AuthFailed(ProviderError):
    hint = "Check the API key configured for the active provider."


class ProviderTimeout(ProviderError):
    hint = "The provider did not answer in time; raise timeout_seconds or try again."


class MalformedResponse(ProviderError):
    hint = "The provider answered with an unexpected payload; check the model name."


class ExecutionFailure(TerminalAIError):
    """Raised in strict mode when an executed command exits non-zero."""

    hint = "Rephrase your request or run the command manually to inspect the error."

    def __init__(self, command: str, exit_code: int, stderr: str = "") -> None:
        super().__init__(f"Command '{command}' failed with exit code: {exit_code}")
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
