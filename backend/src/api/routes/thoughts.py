"""Thought stream API endpoint (Server-Sent Events)."""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Query, Request
from sse_starlette.sse import EventSourceResponse

from ..dependencies import get_thought_stream_controller, get_workspace_service
from ...services.thought_stream import ThoughtStreamController
from ...services.workspace import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["thoughts"])


@router.get("/{project}/thoughts/stream")
async def stream_thoughts(
    request: Request,
    project: str,
    path: str = Query(..., description="Project-relative file path"),
    workspace: WorkspaceService = Depends(get_workspace_service),
    controller: ThoughtStreamController = Depends(get_thought_stream_controller),
):
    """
    Stream generated thoughts about a file as Server-Sent Events.

    The path is validated before the stream opens, so a bad or missing path
    gets a normal 400/404 JSON response. Once streaming, every event's data
    is one JSON object:
    - `{"thought": {"id", "type", "content", "timestamp", "iteration"}}`
    - `{"done": true}` after the last iteration
    - `{"error": "Generation stopped", "done": true}` if generation fails

    **Example event:**
    ```
    data: {"thought": {"id": 1, "type": "analysis", "content": "...", "timestamp": "...", "iteration": 1}}
    ```
    """
    file_path = workspace.resolve_file(project, path)
    session = controller.open_session(file_path)
    logger.info(f"Opening thought stream for {project}/{path}")

    async def event_generator() -> AsyncGenerator[str, None]:
        async for event in controller.stream(session, is_disconnected=request.is_disconnected):
            yield event.to_json()

    return EventSourceResponse(event_generator())
