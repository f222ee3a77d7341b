"""Note card models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class NoteCard(BaseModel):
    """One generated summary card for a file."""

    id: int = Field(..., ge=1)
    title: str = Field(..., description="Short card title")
    content: str = Field(..., description="Card body")


class NoteCardsResponse(BaseModel):
    """Response payload for the note cards endpoint."""

    notes: List[NoteCard] = Field(default_factory=list)
