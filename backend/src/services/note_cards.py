"""Single-shot note card generation for a file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

from ..models.note_card import NoteCard
from .config import AppConfig, get_config
from .generation import GenerationError, TextGenerator
from .prompt_loader import PromptLoader
from .response_parser import extract_json_array

logger = logging.getLogger(__name__)

MIN_CARDS = 3
MAX_CARDS = 5

FALLBACK_NOTE = NoteCard(
    id=1,
    title="Unable to Generate Notes",
    content=(
        "AI note generation is currently unavailable. "
        "Check that the generation command is installed and configured, then try again."
    ),
)


def cards_from_output(text: str) -> List[NoteCard]:
    """Turn generation output into numbered cards (at most ``MAX_CARDS``)."""
    entries = extract_json_array(text)
    if entries == []:
        logger.info("Note output was an empty JSON array")
        return [FALLBACK_NOTE]
    if not entries:
        summary = (text or "").strip()
        if not summary:
            return [FALLBACK_NOTE]
        logger.info("Note output had no JSON array, returning it as a single card")
        return [NoteCard(id=1, title="Summary", content=summary)]

    cards: List[NoteCard] = []
    for index, entry in enumerate(entries[:MAX_CARDS], start=1):
        cards.append(_card_from_entry(index, entry))
    return cards


def _card_from_entry(index: int, entry: Any) -> NoteCard:
    if not isinstance(entry, dict):
        return NoteCard(id=index, title=f"Note {index}", content=str(entry))
    title = entry.get("title")
    if not isinstance(title, str) or not title.strip():
        title = f"Note {index}"
    content = entry.get("content")
    return NoteCard(id=index, title=title.strip(), content="" if content is None else str(content))


class NoteCardService:
    """Generate a batch of summary cards for a project file."""

    def __init__(
        self,
        generator: TextGenerator,
        loader: Optional[PromptLoader] = None,
        config: AppConfig | None = None,
    ) -> None:
        self.generator = generator
        self.loader = loader or PromptLoader()
        self.config = config or get_config()

    def build_prompt(self, file_path: Path, content: str) -> str:
        return self.loader.load(
            "notes/cards.md",
            {
                "file_path": str(file_path),
                "content": content[: self.config.note_source_chars],
                "min_cards": MIN_CARDS,
                "max_cards": MAX_CARDS,
            },
        )

    async def generate_notes(self, file_path: Path, content: str) -> List[NoteCard]:
        """Return 3-5 cards, or the single fallback card when generation fails."""
        prompt = self.build_prompt(file_path, content)
        try:
            result = await self.generator.generate(prompt)
        except GenerationError as e:
            logger.error(f"Note generation failed for {file_path}: {e.message}")
            return [FALLBACK_NOTE]
        return cards_from_output(result.stdout)


__all__ = ["NoteCardService", "FALLBACK_NOTE", "cards_from_output", "MIN_CARDS", "MAX_CARDS"]
