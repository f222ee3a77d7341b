"""HTTP API route handlers."""

from . import notes, projects, system, thoughts

__all__ = ["projects", "notes", "thoughts", "system"]
