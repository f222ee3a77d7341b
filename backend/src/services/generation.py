"""Generation Service - runs the external text generation command.

The generation command is treated as an opaque executable: it receives the
prompt as its last argument and prints generated text on stdout. Every call
starts a fresh process; nothing is pooled or reused.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024


class GenerationError(Exception):
    """Raised when the generation command cannot produce output."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


@dataclass(frozen=True)
class GenerationResult:
    """Captured output of one generation run."""

    stdout: str
    stderr: str = ""


class TextGenerator(Protocol):
    """Anything that turns a prompt into generated text."""

    async def generate(self, prompt: str) -> GenerationResult:
        ...


class _OutputLimitExceeded(Exception):
    def __init__(self, stream_name: str, limit: int):
        super().__init__(stream_name)
        self.stream_name = stream_name
        self.limit = limit


async def _read_limited(stream: asyncio.StreamReader, stream_name: str, limit: int) -> bytes:
    buffer = bytearray()
    while True:
        chunk = await stream.read(READ_CHUNK_BYTES)
        if not chunk:
            return bytes(buffer)
        buffer.extend(chunk)
        if len(buffer) > limit:
            raise _OutputLimitExceeded(stream_name, limit)


class CommandGenerator:
    """
    Run the configured generation command once per prompt.

    The prompt is passed as a single argv entry, never through a shell.
    """

    def __init__(
        self,
        command: str | None = None,
        timeout: float | None = None,
        max_output_bytes: int | None = None,
        config: AppConfig | None = None,
    ) -> None:
        config = config or get_config()
        self.command: List[str] = shlex.split(command or config.generation_command)
        self.timeout = timeout if timeout is not None else config.generation_timeout
        self.max_output_bytes = max_output_bytes or config.max_output_bytes

    def build_args(self, prompt: str) -> List[str]:
        return [*self.command, prompt]

    async def generate(self, prompt: str) -> GenerationResult:
        """
        Run the command with ``prompt`` and return its decoded output.

        Raises:
            GenerationError: If the process cannot start, exits non-zero,
                times out, or writes more than ``max_output_bytes``.
        """
        args = self.build_args(prompt)
        logger.info(
            "Running generation command",
            extra={"command": shlex.join(self.command), "prompt_chars": len(prompt)},
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Generation command could not start: {e}")
            raise GenerationError(
                f"Generation command could not start: {e}",
                {"command": self.command},
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                asyncio.gather(
                    _read_limited(process.stdout, "stdout", self.max_output_bytes),
                    _read_limited(process.stderr, "stderr", self.max_output_bytes),
                ),
                timeout=self.timeout,
            )
            returncode = await process.wait()
        except asyncio.TimeoutError as e:
            await self._kill(process)
            logger.error(f"Generation command timeout after {self.timeout}s")
            raise GenerationError(
                f"Generation command timeout after {self.timeout}s",
                {"command": self.command},
            ) from e
        except _OutputLimitExceeded as e:
            await self._kill(process)
            logger.error(f"Generation output exceeded {e.limit} bytes on {e.stream_name}")
            raise GenerationError(
                f"Generation output exceeded {e.limit} bytes",
                {"command": self.command, "stream": e.stream_name},
            ) from e
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        stdout_text = stdout.decode("utf-8", errors="replace")
        stderr_text = stderr.decode("utf-8", errors="replace")

        if returncode != 0:
            logger.error(f"Generation command failed ({returncode}): {stderr_text.strip()}")
            raise GenerationError(
                f"Generation command failed: {stderr_text.strip() or f'exit code {returncode}'}",
                {"command": self.command, "returncode": returncode, "stderr": stderr_text},
            )

        if stderr_text.strip():
            logger.warning(f"Generation command stderr: {stderr_text.strip()[:500]}")

        return GenerationResult(stdout=stdout_text, stderr=stderr_text)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()


__all__ = ["CommandGenerator", "GenerationError", "GenerationResult", "TextGenerator"]
