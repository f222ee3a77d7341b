"""Pydantic models for the thought stream."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ThoughtType = Literal["analysis", "suggestion", "question"]
THOUGHT_TYPES: tuple[str, ...] = ("analysis", "suggestion", "question")


class StreamState(str, Enum):
    """Lifecycle of one thought stream session."""

    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    DISCONNECTED = "disconnected"

    @property
    def is_terminal(self) -> bool:
        return self in {StreamState.COMPLETED, StreamState.ABORTED, StreamState.DISCONNECTED}


class Thought(BaseModel):
    """One generated thought as emitted to the client."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Monotonic id within the stream session")
    type: ThoughtType = Field(..., description="Thought category")
    content: str = Field(..., description="Thought text")
    timestamp: datetime = Field(..., description="UTC time the thought was emitted")
    iteration: int = Field(..., ge=1, description="Iteration that produced the thought")


class StreamEvent(BaseModel):
    """Server-sent event payload for the thought stream."""

    thought: Optional[Thought] = Field(None, description="Thought for thought events")
    done: Optional[bool] = Field(None, description="Set on the terminal event")
    error: Optional[str] = Field(None, description="Error message for abnormal termination")

    @classmethod
    def for_thought(cls, thought: Thought) -> "StreamEvent":
        return cls(thought=thought)

    @classmethod
    def completed(cls) -> "StreamEvent":
        return cls(done=True)

    @classmethod
    def failed(cls, message: str) -> "StreamEvent":
        return cls(error=message, done=True)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)
