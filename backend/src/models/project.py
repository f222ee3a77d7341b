"""Project browsing models."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class FileTreeNode(BaseModel):
    """A file or directory in a project tree."""

    name: str = Field(..., description="Entry name")
    type: Literal["dir", "file"] = Field(..., description="Entry kind")
    children: Optional[List["FileTreeNode"]] = Field(
        None, description="Child entries (directories only)"
    )


FileTreeNode.model_rebuild()


class FilePreview(BaseModel):
    """Text content of a project file."""

    path: str = Field(..., description="Project-relative path")
    content: str = Field(..., description="File text (undecodable bytes replaced)")
    size: int = Field(..., ge=0, description="File size in bytes")
