"""Pydantic models for data validation and serialization."""

from .note_card import NoteCard, NoteCardsResponse
from .project import FilePreview, FileTreeNode
from .thought import THOUGHT_TYPES, StreamEvent, StreamState, Thought, ThoughtType

__all__ = [
    "Thought",
    "ThoughtType",
    "THOUGHT_TYPES",
    "StreamEvent",
    "StreamState",
    "FileTreeNode",
    "FilePreview",
    "NoteCard",
    "NoteCardsResponse",
]
