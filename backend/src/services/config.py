"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_PROJECTS_DIR = PROJECT_ROOT / "data" / "projects"
DEFAULT_GENERATION_COMMAND = "claude -p"
DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    projects_dir: Path = Field(..., description="Sandbox root holding one directory per project")
    generation_command: str = Field(
        default=DEFAULT_GENERATION_COMMAND,
        description="External command that takes a prompt argument and prints generated text",
    )
    generation_timeout: float = Field(
        default=120.0, gt=0, description="Seconds before a generation run is abandoned"
    )
    max_output_bytes: int = Field(
        default=DEFAULT_MAX_OUTPUT_BYTES,
        ge=1024,
        description="Maximum bytes accepted on stdout/stderr of a generation run",
    )
    max_iterations: int = Field(default=10, ge=1, description="Iterations per thought stream")
    thought_delay: float = Field(
        default=0.5, ge=0, description="Pause in seconds between thoughts of one batch"
    )
    iteration_delay: float = Field(
        default=2.0, ge=0, description="Pause in seconds between iterations"
    )
    history_window: int = Field(
        default=3, ge=1, description="Number of recent thoughts fed back into the prompt"
    )
    max_preview_bytes: int = Field(
        default=1_048_576, ge=1, description="Largest file served by the preview endpoint"
    )
    note_source_chars: int = Field(
        default=12_000, ge=1, description="Characters of the file embedded in the note prompt"
    )
    cors_origins: List[str] = Field(
        default_factory=lambda: DEFAULT_CORS_ORIGINS.split(","),
        description="Origins allowed by the CORS middleware",
    )

    @field_validator("projects_dir", mode="before")
    @classmethod
    def _normalize_projects_dir(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("PROJECTS_DIR is required")
        if isinstance(value, Path):
            path = value
        else:
            path = Path(value)
        return path.expanduser().resolve()

    @field_validator("generation_command")
    @classmethod
    def _ensure_command(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("GENERATION_COMMAND cannot be empty")
        return cleaned

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str] | None) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [origin.strip() for origin in value if origin and origin.strip()]


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    config = AppConfig(
        projects_dir=_read_env("PROJECTS_DIR", str(DEFAULT_PROJECTS_DIR)),
        generation_command=_read_env("GENERATION_COMMAND", DEFAULT_GENERATION_COMMAND),
        generation_timeout=_read_env("GENERATION_TIMEOUT", "120"),
        max_output_bytes=_read_env("GENERATION_MAX_OUTPUT_BYTES", str(DEFAULT_MAX_OUTPUT_BYTES)),
        max_iterations=_read_env("THOUGHT_MAX_ITERATIONS", "10"),
        thought_delay=_read_env("THOUGHT_DELAY_SECONDS", "0.5"),
        iteration_delay=_read_env("ITERATION_DELAY_SECONDS", "2.0"),
        history_window=_read_env("THOUGHT_HISTORY_WINDOW", "3"),
        max_preview_bytes=_read_env("MAX_PREVIEW_BYTES", "1048576"),
        note_source_chars=_read_env("NOTE_SOURCE_CHARS", "12000"),
        cors_origins=_read_env("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
    )
    # Ensure the sandbox root exists for downstream services.
    config.projects_dir.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "PROJECT_ROOT",
    "DEFAULT_PROJECTS_DIR",
    "DEFAULT_GENERATION_COMMAND",
    "DEFAULT_MAX_OUTPUT_BYTES",
]
