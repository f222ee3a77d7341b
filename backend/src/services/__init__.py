"""Service layer for business logic and external integrations."""

from .config import AppConfig, get_config, reload_config
from .generation import CommandGenerator, GenerationError, GenerationResult, TextGenerator
from .note_cards import FALLBACK_NOTE, NoteCardService
from .prompt_builder import PromptBuilder
from .prompt_loader import PromptLoader, PromptLoaderError
from .response_parser import parse_thoughts
from .thought_stream import StreamSession, ThoughtStreamController
from .workspace import (
    FilePreviewTooLargeError,
    InvalidPathError,
    PathNotFoundError,
    ProjectNotFoundError,
    WorkspaceService,
    resolve_project_path,
    resolve_project_root,
)

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "CommandGenerator",
    "GenerationError",
    "GenerationResult",
    "TextGenerator",
    "NoteCardService",
    "FALLBACK_NOTE",
    "PromptBuilder",
    "PromptLoader",
    "PromptLoaderError",
    "parse_thoughts",
    "StreamSession",
    "ThoughtStreamController",
    "WorkspaceService",
    "InvalidPathError",
    "PathNotFoundError",
    "ProjectNotFoundError",
    "FilePreviewTooLargeError",
    "resolve_project_path",
    "resolve_project_root",
]
