"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .middleware import register_error_handlers
from .routes import notes, projects, system, thoughts
from ..services.config import get_config

logger = logging.getLogger(__name__)

system.install_log_capture()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    config = get_config()
    config.projects_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Projects directory: {config.projects_dir}")
    logger.info(f"Generation command: {config.generation_command}")
    yield


app = FastAPI(
    title="Project Thought Viewer API",
    description="Browse project files and stream AI-generated thoughts about them",
    version="0.1.0",
    lifespan=lifespan,
)

config = get_config()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(system.router, tags=["system"])
app.include_router(projects.router)
app.include_router(notes.router)
app.include_router(thoughts.router)


__all__ = ["app"]
