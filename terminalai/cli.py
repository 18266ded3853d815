"""Command line interface for Terminal AI.

This module defines the ``tai`` command group and the single-skill
tools using the ``click`` library.

``tai -p "<prompt>"``
    General-purpose orchestrator: ask the model for any shell commands
    that accomplish the request, then confirm and run them.

``tai run <skill> <prompt>``
    Run one skill (``cp``, ``grep``, ``find``, ``ps``) on a prompt.

``tai skills`` / ``tai usage <skill>``
    List the compiled-in skills or show a skill's usage text.

``tai configure``
    Store provider settings in ``~/.terminalai/config.yaml``.

``tai serve``
    Launch a FastAPI server that returns command suggestions as JSON.

``cp_ai``, ``grep_ai``, ``find_ai``, ``ps_ai``, ``resolve_ai``
    Stand-alone entry points, one per skill.

Every command reads the configuration once at startup.  Errors are
printed with a remediation hint and end the process with exit code 1.
With ``--strict`` a failed command makes the process exit with that
command's exit code.  When several commands fail, the last *failed*
command decides the exit code, not the last command run; a failure
followed by a successful or declined command still exits non-zero.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Optional

import click

from .config import (
    DEFAULT_TIMEOUT,
    PROVIDER_NAMES,
    ProviderSettings,
    load_config,
    save_config,
    update_provider,
)
from .definitions import ORCHESTRATOR_SKILL, get_registry
from .errors import ExecutionFailure, InvalidPackageSpec, TerminalAIError
from .executor import ExecutionStatus, Executor
from .pipeline import (
    PipelineResult,
    build_resolve_prompt,
    detect_package_manager,
    orchestrate,
    run_skill,
)
from .providers import QueryProvider
from .validator import (
    RULES,
    check_invalid_package,
    detect_common_typos,
    validate_package_spec,
)

logger = logging.getLogger(__name__)

SKILL_COMMANDS = ("cp", "grep", "find", "ps")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_provider(config_file: Optional[str] = None) -> QueryProvider:
    """Load the configuration and select the active provider."""
    config = load_config(config_file)
    return QueryProvider.from_config(config)


def build_executor(capture: bool = False) -> Executor:
    return Executor(capture=capture)


def _fail(exc: TerminalAIError) -> None:
    click.secho(f"Error: {exc}", fg="red", err=True)
    if exc.hint:
        click.echo(f"\n{exc.hint}", err=True)
    code = 1
    if isinstance(exc, ExecutionFailure) and exc.exit_code > 0:
        code = exc.exit_code
    sys.exit(code)


def _report(result: PipelineResult, strict: bool) -> None:
    if result.no_commands_found:
        click.echo("No executable commands found in AI response.")
        click.echo("AI Response:")
        click.echo(result.response)
        click.echo("\nTry rephrasing your request with more specific details.")
        return
    counts = {status: 0 for status in ExecutionStatus}
    for r in result.results:
        counts[r.status] += 1
    click.echo(
        f"\n{counts[ExecutionStatus.COMPLETED]} completed, "
        f"{counts[ExecutionStatus.FAILED]} failed, "
        f"{counts[ExecutionStatus.SKIPPED]} skipped."
    )
    failed = result.failed
    if strict and failed:
        last = failed[-1]
        raise ExecutionFailure(last.command, last.exit_code or 1, last.stderr)


def _run_guarded(action: Callable[[], PipelineResult], strict: bool) -> None:
    try:
        _report(action(), strict)
    except TerminalAIError as exc:
        _fail(exc)


def _run_skill_command(skill: str, prompt: str, config_file: Optional[str], capture: bool, strict: bool) -> None:
    def action() -> PipelineResult:
        if not prompt.strip():
            raise click.UsageError("Please provide a prompt.")
        provider = build_provider(config_file)
        click.echo(f"Processing your {RULES[skill].purpose} request...\n")
        return run_skill(skill, prompt, provider, build_executor(capture))

    _run_guarded(action, strict)


def _run_orchestrator(prompt: str, config_file: Optional[str], capture: bool, strict: bool) -> None:
    def action() -> PipelineResult:
        provider = build_provider(config_file)
        click.echo(f"Analyzing your request: {prompt}\n")
        return orchestrate(prompt, provider, build_executor(capture))

    _run_guarded(action, strict)


_config_option = click.option(
    "--config", "config_file", type=click.Path(dir_okay=False), default=None,
    help="Path to the configuration file.",
)
_capture_option = click.option(
    "--capture", is_flag=True, help="Capture command output instead of streaming it.",
)
_strict_option = click.option(
    "--strict", is_flag=True, help="Exit non-zero when an executed command fails.",
)
_verbose_option = click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-p", "--prompt", "orchestration_prompt", default=None,
              help="Convert a natural language query into terminal commands and run them.")
@_config_option
@_capture_option
@_strict_option
@_verbose_option
@click.pass_context
def cli(ctx: click.Context, orchestration_prompt: Optional[str], config_file: Optional[str],
        capture: bool, strict: bool, verbose: bool) -> None:
    """Terminal AI - translate natural language into shell commands."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    if orchestration_prompt:
        _run_orchestrator(orchestration_prompt, config_file, capture, strict)
        return
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(name="run")
@click.argument("skill", type=click.Choice(SKILL_COMMANDS))
@click.argument("prompt", nargs=-1, required=True)
@_capture_option
@_strict_option
@click.pass_context
def run_cmd(ctx: click.Context, skill: str, prompt: tuple, capture: bool, strict: bool) -> None:
    """Run SKILL on PROMPT."""
    _run_skill_command(skill, " ".join(prompt), ctx.obj.get("config_file"), capture, strict)


@cli.command(name="skills")
def skills_cmd() -> None:
    """List the available skills."""
    for name in get_registry().names():
        if name == ORCHESTRATOR_SKILL:
            click.echo(f"{name:10} general-purpose orchestrator (tai -p)")
        else:
            click.echo(f"{name:10} {RULES[name].purpose} ({name}_ai)")


@cli.command(name="usage")
@click.argument("skill")
def usage_cmd(skill: str) -> None:
    """Show usage examples for SKILL."""
    try:
        definition = get_registry().lookup(skill)
    except TerminalAIError as exc:
        _fail(exc)
        return
    click.echo(definition.usage_text)


@cli.command()
@click.option("--provider", required=True, type=click.Choice(PROVIDER_NAMES), help="Provider to configure.")
@click.option("--model", default=None, help="Model name (defaults per provider).")
@click.option("--url", default=None, help="Server URL for Ollama.")
@click.option("--base-url", default=None, help="API base URL for hosted providers.")
@click.option("--api-key", default=None, help="API key for hosted providers.")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
              help=f"Request timeout in seconds (default {DEFAULT_TIMEOUT}).")
@click.option("--activate/--no-activate", default=True, help="Make this the active provider.")
@click.pass_context
def configure(ctx: click.Context, provider: str, model: Optional[str], url: Optional[str],
              base_url: Optional[str], api_key: Optional[str], timeout: Optional[float], activate: bool) -> None:
    """Configure a model provider."""
    config_file = ctx.obj.get("config_file")
    try:
        config = load_config(config_file, strict=False)
    except TerminalAIError as exc:
        _fail(exc)
        return
    existing = config.providers[provider]
    settings = ProviderSettings(
        name=provider,
        model=model or existing.model,
        url=url or existing.url,
        base_url=base_url or existing.base_url,
        api_key=api_key or existing.api_key,
        timeout_seconds=timeout if timeout is not None else existing.timeout_seconds,
    )
    missing = settings.missing_fields()
    if missing and activate:
        click.secho(f"Warning: {provider} is missing {', '.join(missing)}.", fg="yellow", err=True)
    path = save_config(update_provider(config, settings, activate=activate), config_file)
    click.echo(f"Configuration updated. Provider={provider}, Model={settings.model}")
    click.echo(f"Config file location: {path}")


@cli.command(name="serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address for the server.")
@click.option("--port", default=5005, show_default=True, help="Port for the server.")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Run an HTTP server that returns command suggestions as JSON."""
    import uvicorn

    from .server import create_app

    config_file = ctx.obj.get("config_file")
    try:
        config = load_config(config_file)
    except TerminalAIError as exc:
        _fail(exc)
        return
    app = create_app(lambda: QueryProvider.from_config(config))
    click.echo(f"Terminal AI server running on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


def _make_skill_command(skill: str) -> click.Command:
    rule = RULES[skill]

    @click.command(name=f"{skill}_ai", help=f"AI-powered {rule.purpose}.\n\nPROMPT is a natural language description of the request.")
    @click.argument("prompt")
    @_config_option
    @_capture_option
    @_strict_option
    @_verbose_option
    def command(prompt: str, config_file: Optional[str], capture: bool, strict: bool, verbose: bool) -> None:
        _setup_logging(verbose)
        _run_skill_command(skill, prompt, config_file, capture, strict)

    return command


cp_ai = _make_skill_command("cp")
grep_ai = _make_skill_command("grep")
find_ai = _make_skill_command("find")
ps_ai = _make_skill_command("ps")


@click.command(name="resolve_ai")
@click.option("-t", "--type", "package_type", type=click.Choice(["npm", "python"]), default=None,
              help="Package manager type.")
@click.option("-p", "--package", default=None,
              help="Package with version, e.g. 'react@18.2.0' or 'requests==2.31.0'.")
@click.option("-f", "--file", "dependency_file", type=click.Path(dir_okay=False), default=None,
              help="Dependency file, e.g. package.json or requirements.txt.")
@click.option("-e", "--env", "env_type", type=click.Choice(["venv", "conda"]), default="venv",
              show_default=True, help="Python environment type.")
@_config_option
@_capture_option
@_strict_option
@_verbose_option
def resolve_ai(package_type: Optional[str], package: Optional[str], dependency_file: Optional[str],
               env_type: str, config_file: Optional[str], capture: bool, strict: bool, verbose: bool) -> None:
    """AI-powered package dependency resolution."""
    _setup_logging(verbose)
    if dependency_file and (package_type or package):
        raise click.UsageError("--file cannot be combined with --type/--package.")
    if not dependency_file and not (package_type and package):
        raise click.UsageError("Provide --type and --package, or --file.")

    def action() -> PipelineResult:
        if dependency_file:
            detected = detect_package_manager(dependency_file)
            click.echo(f"Dependency file: {dependency_file}")
            click.echo(f"Detected type: {detected}")
            prompt = build_resolve_prompt(detected, dependency_file, env_type, from_file=True)
        else:
            validate_package_spec(package_type, package)
            final_package = package
            warning = check_invalid_package(package_type, package)
            if warning:
                corrected = detect_common_typos(package)
                if not corrected:
                    raise InvalidPackageSpec(warning)
                click.secho(f"Warning: {warning}", fg="yellow", err=True)
                click.echo(f"Proceeding with the corrected package: {corrected}")
                final_package = corrected
            click.echo(f"Package: {final_package}")
            click.echo(f"Type: {package_type}")
            prompt = build_resolve_prompt(package_type, final_package, env_type)
        provider = build_provider(config_file)
        click.echo("Processing your package resolution request...\n")
        return run_skill("resolve", prompt, provider, build_executor(capture))

    _run_guarded(action, strict)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
