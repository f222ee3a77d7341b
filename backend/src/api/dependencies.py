"""Shared FastAPI dependencies for service instances."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from ..services.config import AppConfig, get_config
from ..services.generation import CommandGenerator, TextGenerator
from ..services.note_cards import NoteCardService
from ..services.prompt_loader import PromptLoader
from ..services.thought_stream import ThoughtStreamController
from ..services.workspace import WorkspaceService


@lru_cache(maxsize=1)
def get_prompt_loader() -> PromptLoader:
    return PromptLoader()


def get_workspace_service(config: AppConfig = Depends(get_config)) -> WorkspaceService:
    return WorkspaceService(config=config)


def get_generator(config: AppConfig = Depends(get_config)) -> TextGenerator:
    """Return the external command generator configured for this process."""
    return CommandGenerator(config=config)


def get_thought_stream_controller(
    config: AppConfig = Depends(get_config),
    generator: TextGenerator = Depends(get_generator),
    loader: PromptLoader = Depends(get_prompt_loader),
) -> ThoughtStreamController:
    return ThoughtStreamController.from_config(config, generator, loader)


def get_note_card_service(
    config: AppConfig = Depends(get_config),
    generator: TextGenerator = Depends(get_generator),
    loader: PromptLoader = Depends(get_prompt_loader),
) -> NoteCardService:
    return NoteCardService(generator, loader=loader, config=config)


__all__ = [
    "get_prompt_loader",
    "get_workspace_service",
    "get_generator",
    "get_thought_stream_controller",
    "get_note_card_service",
]
