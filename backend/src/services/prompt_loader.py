"""Jinja2-based prompt template loader for thought and note generation.

This service loads prompt templates from the backend/prompts/ directory and renders
them with context variables. It supports hot-reload (no caching) so prompts can be
edited without restarting the server.

Fallback inline prompts are provided for bootstrapping when the prompts directory
doesn't exist yet.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jinja2

logger = logging.getLogger(__name__)

# backend/src/services/prompt_loader.py -> backend/prompts/
DEFAULT_PROMPTS_DIR = Path(__file__).resolve().parent.parent.parent / "prompts"

INLINE_PROMPTS: Dict[str, str] = {
    "thoughts/initial.md": """You are reading the file at {{ file_path }}.

Share exactly 3 thoughts about this document:
- one "analysis" of what it contains or how it is built
- one "suggestion" for improving it
- one "question" it raises

Respond ONLY with a JSON array of objects with "type" and "content" fields, like this:
{{ example }}
""",
    "thoughts/followup.md": """You are continuing to think about the file at {{ file_path }}.

Your most recent thoughts were:
{{ excerpt }}

Share exactly 3 NEW, deeper thoughts (one "analysis", one "suggestion", one "question")
that build on, diverge from, or follow up on the thoughts above. Do not repeat them.

Respond ONLY with a JSON array of objects with "type" and "content" fields, like this:
{{ example }}
""",
    "notes/cards.md": """Summarize the file {{ file_path }} as {{ min_cards }} to {{ max_cards }} short note cards.

Each card has a concise "title" and a "content" of one to three sentences.
Respond ONLY with a JSON array of objects with "title" and "content" fields.

File contents:
```
{{ content }}
```
""",
}


class PromptLoaderError(Exception):
    """Raised when a prompt cannot be loaded."""

    pass


class PromptLoader:
    """Load and render Jinja2 prompt templates.

    Supports:
    - Loading templates from filesystem (backend/prompts/)
    - Fallback to inline prompts when directory doesn't exist
    - Hot-reload: templates are reloaded on every call (no caching)

    Example:
        >>> loader = PromptLoader()
        >>> prompt = loader.load("thoughts/initial.md", {"file_path": "/p/README.md"})
    """

    def __init__(self, prompts_dir: Optional[Path] = None) -> None:
        """Initialize the prompt loader.

        Args:
            prompts_dir: Directory containing prompt templates.
                        Defaults to backend/prompts/ relative to this file.
        """
        self.prompts_dir = prompts_dir or DEFAULT_PROMPTS_DIR

        if self.prompts_dir.is_dir():
            self.env = jinja2.Environment(
                loader=jinja2.FileSystemLoader(str(self.prompts_dir)),
                autoescape=False,  # Prompts are plain text, not HTML
                auto_reload=True,
                keep_trailing_newline=True,
            )
            logger.debug(
                "PromptLoader initialized with filesystem templates",
                extra={"prompts_dir": str(self.prompts_dir)},
            )
        else:
            self.env = None
            logger.warning(
                "Prompts directory not found, using inline fallbacks",
                extra={"prompts_dir": str(self.prompts_dir)},
            )

    def load(self, path: str, context: Optional[Dict[str, Any]] = None) -> str:
        """Load and render a prompt template.

        Args:
            path: Relative path to the template file (e.g., "thoughts/initial.md").
            context: Dictionary of variables to render into the template.

        Returns:
            The rendered prompt string.

        Raises:
            PromptLoaderError: If the template cannot be loaded or rendered.
        """
        context = context or {}

        if self.env is not None:
            try:
                template = self.env.get_template(path)
                return template.render(**context)
            except jinja2.TemplateNotFound:
                logger.debug(
                    "Template not found in filesystem, trying inline fallback",
                    extra={"path": path},
                )
            except jinja2.TemplateError as e:
                logger.error(
                    "Failed to render template",
                    extra={"path": path, "error": str(e)},
                )
                raise PromptLoaderError(f"Failed to render template {path}: {e}") from e

        return self._get_inline_prompt(path, context)

    def _get_inline_prompt(self, path: str, context: Dict[str, Any]) -> str:
        template_str = INLINE_PROMPTS.get(path)

        if template_str is None:
            logger.warning(
                "No inline fallback for prompt path",
                extra={"path": path, "available": list(INLINE_PROMPTS.keys())},
            )
            raise PromptLoaderError(
                f"Prompt not found: {path}. "
                f"Available inline prompts: {list(INLINE_PROMPTS.keys())}"
            )

        try:
            return jinja2.Template(template_str, keep_trailing_newline=True).render(**context)
        except jinja2.TemplateError as e:
            raise PromptLoaderError(
                f"Failed to render inline template {path}: {e}"
            ) from e


__all__ = ["PromptLoader", "PromptLoaderError", "DEFAULT_PROMPTS_DIR", "INLINE_PROMPTS"]
