"""HTTP API for external integrations.

``tai serve`` exposes the validation, query and extraction steps of
the pipeline over HTTP so editors and other tools can ask for command
suggestions.  The service only *returns* commands; executing them
stays with the interactive CLI, where each one is confirmed by a
human.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .definitions import ORCHESTRATOR_SKILL, get_registry
from .errors import (
    ConfigError,
    InvalidPackageSpec,
    ProviderError,
    ProviderTimeout,
    ScopeRejection,
    UnknownSkill,
)
from .extractor import extract_commands, parse_orchestration_response
from .providers import QueryProvider
from .validator import validate_prompt

logger = logging.getLogger(__name__)


class CommandRequest(BaseModel):
    skill: str = ORCHESTRATOR_SKILL
    prompt: str


class CommandResponse(BaseModel):
    skill: str
    commands: List[str]
    response: str


class SkillInfo(BaseModel):
    name: str
    usage: str


def create_app(provider_factory: Callable[[], QueryProvider]) -> FastAPI:
    """Build the FastAPI application.

    :param provider_factory: Returns the provider used for queries.
    """
    app = FastAPI(title="Terminal AI", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    registry = get_registry()

    @app.get("/skills", response_model=List[SkillInfo])
    def list_skills() -> List[SkillInfo]:
        return [
            SkillInfo(name=d.skill_name, usage=d.usage_text)
            for d in registry.definitions.values()
        ]

    @app.post("/commands", response_model=CommandResponse)
    def generate_commands(request: CommandRequest) -> CommandResponse:
        prompt = request.prompt.strip()
        if not prompt:
            raise HTTPException(status_code=400, detail="'prompt' must be a non-empty string")
        try:
            definition = registry.lookup(request.skill)
            if request.skill != ORCHESTRATOR_SKILL:
                validate_prompt(request.skill, prompt)
            provider = provider_factory()
            response = provider.send_query(definition.system_prompt, prompt)
        except (UnknownSkill, ScopeRejection, InvalidPackageSpec) as exc:
            raise HTTPException(status_code=400, detail={"error": str(exc), "hint": exc.hint})
        except ProviderTimeout as exc:
            raise HTTPException(status_code=504, detail={"error": str(exc), "hint": exc.hint})
        except ProviderError as exc:
            raise HTTPException(status_code=502, detail={"error": str(exc), "hint": exc.hint})
        except ConfigError as exc:
            logger.error("Configuration error while serving: %s", exc)
            raise HTTPException(status_code=500, detail={"error": str(exc), "hint": exc.hint})

        if request.skill == ORCHESTRATOR_SKILL:
            commands = parse_orchestration_response(response)
        else:
            commands = extract_commands(response, definition.command_prefixes)
        return CommandResponse(skill=request.skill, commands=commands, response=response)

    return app
