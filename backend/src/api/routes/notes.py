"""HTTP API routes for note card generation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_note_card_service, get_workspace_service
from ...models.note_card import NoteCardsResponse
from ...services.note_cards import NoteCardService
from ...services.workspace import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["notes"])


@router.get("/{project}/notes", response_model=NoteCardsResponse)
async def get_note_cards(
    project: str,
    path: str = Query(..., description="Project-relative file path"),
    workspace: WorkspaceService = Depends(get_workspace_service),
    notes: NoteCardService = Depends(get_note_card_service),
):
    """
    Generate 3-5 summary note cards for a file.

    When the generation command is unavailable the response holds a single
    "Unable to Generate Notes" card instead of an error status.
    """
    file_path = workspace.resolve_file(project, path)
    content = workspace.read_text(file_path, max_chars=notes.config.note_source_chars)
    logger.info(f"Generating note cards for {project}/{path}")
    cards = await notes.generate_notes(file_path, content)
    return NoteCardsResponse(notes=cards)
