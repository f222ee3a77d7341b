"""Thought Stream Service - iterative thought generation for a single file.

Each open stream owns a ``StreamSession``. The controller runs a bounded
loop over that session: build a prompt from the recent history, run the
generator, parse its output, and emit one event per thought with a short
pause in between. Client disconnects are checked at every suspension point.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

from ..models.thought import THOUGHT_TYPES, StreamEvent, StreamState, Thought
from .config import AppConfig
from .generation import GenerationError, TextGenerator
from .prompt_builder import HistoryEntry, PromptBuilder
from .prompt_loader import PromptLoader
from .response_parser import parse_thoughts

logger = logging.getLogger(__name__)

GENERATION_STOPPED = "Generation stopped"

IsDisconnected = Callable[[], Awaitable[bool]]
Sleep = Callable[[float], Awaitable[Any]]
Parser = Callable[[str], List[Any]]


class _ClientDisconnected(Exception):
    pass


async def _never_disconnected() -> bool:
    return False


def normalize_entry(entry: Any) -> HistoryEntry:
    """Coerce a parsed entry into ``{"type", "content"}`` strings."""
    if not isinstance(entry, dict):
        content = entry if isinstance(entry, str) else json.dumps(entry, ensure_ascii=False)
        return {"type": "analysis", "content": content}

    thought_type = entry.get("type")
    if thought_type not in THOUGHT_TYPES:
        thought_type = "analysis"
    content = entry.get("content")
    if content is None:
        content = ""
    elif not isinstance(content, str):
        content = json.dumps(content, ensure_ascii=False)
    return {"type": thought_type, "content": content}


@dataclass
class StreamSession:
    """Live state of one thought stream connection."""

    file_path: Path
    state: StreamState = StreamState.IDLE
    iteration: int = 0
    next_id: int = 1
    history: List[HistoryEntry] = field(default_factory=list)

    @property
    def emitted(self) -> int:
        return self.next_id - 1

    def record(self, entry: Any) -> Thought:
        """Stamp an entry with the next id and append it to the history."""
        base = normalize_entry(entry)
        thought = Thought(
            id=self.next_id,
            type=base["type"],
            content=base["content"],
            timestamp=datetime.now(timezone.utc),
            iteration=self.iteration,
        )
        self.next_id += 1
        self.history.append(base)
        return thought


class ThoughtStreamController:
    """Drive the generate, parse, emit loop for thought stream sessions."""

    def __init__(
        self,
        generator: TextGenerator,
        prompt_builder: Optional[PromptBuilder] = None,
        parser: Parser = parse_thoughts,
        *,
        max_iterations: int = 10,
        thought_delay: float = 0.5,
        iteration_delay: float = 2.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.generator = generator
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser
        self.max_iterations = max_iterations
        self.thought_delay = thought_delay
        self.iteration_delay = iteration_delay
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        generator: TextGenerator,
        loader: Optional[PromptLoader] = None,
    ) -> "ThoughtStreamController":
        return cls(
            generator,
            PromptBuilder(loader, history_window=config.history_window),
            max_iterations=config.max_iterations,
            thought_delay=config.thought_delay,
            iteration_delay=config.iteration_delay,
        )

    def open_session(self, file_path: Path) -> StreamSession:
        return StreamSession(file_path=file_path)

    async def stream(
        self,
        session: StreamSession,
        is_disconnected: Optional[IsDisconnected] = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Run the iteration loop for ``session``, yielding events to send.

        Ends with ``{"done": true}`` after the last iteration, with a single
        error event when generation fails, or silently once the client is
        gone. Cancellation and ``aclose()`` also mark the session disconnected.
        """
        check = is_disconnected or _never_disconnected
        session.state = StreamState.STREAMING
        logger.info(f"Thought stream opened for {session.file_path}")

        try:
            while session.iteration < self.max_iterations:
                await self._ensure_connected(check)
                session.iteration += 1
                logger.debug(
                    "Starting thought iteration",
                    extra={"iteration": session.iteration, "file_path": str(session.file_path)},
                )

                prompt = self.prompt_builder.build(session.file_path, session.history)
                result = await self.generator.generate(prompt)
                await self._ensure_connected(check)

                for entry in self.parser(result.stdout):
                    await self._ensure_connected(check)
                    yield StreamEvent.for_thought(session.record(entry))
                    await self._pause(self.thought_delay, check)

                if session.iteration < self.max_iterations:
                    await self._pause(self.iteration_delay, check)

            await self._ensure_connected(check)
            session.state = StreamState.COMPLETED
            yield StreamEvent.completed()

        except _ClientDisconnected:
            session.state = StreamState.DISCONNECTED
        except (asyncio.CancelledError, GeneratorExit):
            if not session.state.is_terminal:
                session.state = StreamState.DISCONNECTED
            raise
        except GenerationError as e:
            logger.error(f"Thought generation failed on iteration {session.iteration}: {e.message}")
            session.state = StreamState.ABORTED
            yield StreamEvent.failed(GENERATION_STOPPED)
        except Exception:
            logger.exception(f"Thought stream failed on iteration {session.iteration}")
            session.state = StreamState.ABORTED
            yield StreamEvent.failed(GENERATION_STOPPED)
        finally:
            logger.info(
                f"Thought stream for {session.file_path} ended: {session.state.value}",
                extra={"iterations": session.iteration, "thoughts": session.emitted},
            )

    async def _ensure_connected(self, check: IsDisconnected) -> None:
        if await check():
            raise _ClientDisconnected()

    async def _pause(self, delay: float, check: IsDisconnected) -> None:
        if delay > 0:
            await self._sleep(delay)
        await self._ensure_connected(check)


__all__ = [
    "ThoughtStreamController",
    "StreamSession",
    "GENERATION_STOPPED",
    "normalize_entry",
]
