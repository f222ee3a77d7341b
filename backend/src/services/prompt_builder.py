"""Build generation prompts for the thought stream."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional, Sequence

from .prompt_loader import PromptLoader

HistoryEntry = Dict[str, str]

RESPONSE_EXAMPLE = json.dumps(
    [
        {"type": "analysis", "content": "Your analysis of the document"},
        {"type": "suggestion", "content": "A concrete suggestion"},
        {"type": "question", "content": "A question worth exploring"},
    ],
    indent=2,
)


def format_history(history: Sequence[HistoryEntry]) -> str:
    """Render history entries as ``type: content`` lines."""
    return "\n".join(f"{entry['type']}: {entry['content']}" for entry in history)


class PromptBuilder:
    """Turn a file path and the recent thought history into the next prompt."""

    def __init__(self, loader: Optional[PromptLoader] = None, history_window: int = 3) -> None:
        self.loader = loader or PromptLoader()
        self.history_window = history_window

    def build(self, file_path: Path | str, history: Sequence[HistoryEntry]) -> str:
        context = {"file_path": str(file_path), "example": RESPONSE_EXAMPLE}
        if not history:
            return self.loader.load("thoughts/initial.md", context)

        recent = list(history)[-self.history_window:]
        context["excerpt"] = format_history(recent)
        return self.loader.load("thoughts/followup.md", context)


__all__ = ["PromptBuilder", "RESPONSE_EXAMPLE", "format_history"]
