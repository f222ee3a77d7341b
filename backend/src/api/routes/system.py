"""System routes for health, logs and diagnostics."""

import logging
from collections import deque
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter()

# Global in-memory log buffer
LOG_BUFFER: deque = deque(maxlen=100)

_STANDARD_RECORD_FIELDS = {
    'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
    'funcName', 'levelname', 'levelno', 'lineno', 'module',
    'msecs', 'message', 'msg', 'name', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'taskName', 'thread', 'threadName',
}


class LogEntry(BaseModel):
    timestamp: str
    level: str
    logger: str
    message: str
    extra: Dict[str, Any]


class MemoryLogHandler(logging.Handler):
    """Custom handler to capture logs into memory."""
    def emit(self, record):
        try:
            msg = self.format(record)
            extra = {k: v for k, v in record.__dict__.items()
                     if k not in _STANDARD_RECORD_FIELDS}

            entry = {
                "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": msg,
                "extra": {k: v if isinstance(v, (str, int, float, bool, type(None))) else repr(v)
                          for k, v in extra.items()},
            }
            LOG_BUFFER.append(entry)
        except Exception:
            self.handleError(record)


memory_handler = MemoryLogHandler()
memory_handler.setFormatter(logging.Formatter('%(message)s'))


def install_log_capture(level: int = logging.INFO) -> None:
    """Attach the memory handler to the root logger (idempotent)."""
    root = logging.getLogger()
    if memory_handler not in root.handlers:
        root.addHandler(memory_handler)
    root.setLevel(level)


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/api/hello")
async def hello():
    return {"message": "Hello from the Python backend!"}


@router.get("/api/system/logs", response_model=List[LogEntry])
async def get_logs():
    """Retrieve recent system logs."""
    return list(LOG_BUFFER)
