"""HTTP API routes for browsing project directories."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_workspace_service
from ...models.project import FilePreview, FileTreeNode
from ...services.workspace import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=List[str])
async def list_projects(workspace: WorkspaceService = Depends(get_workspace_service)):
    """List project directory names under the sandbox root, sorted."""
    return workspace.list_projects()


@router.get("/{project}/tree", response_model=FileTreeNode, response_model_exclude_none=True)
async def get_project_tree(
    project: str,
    workspace: WorkspaceService = Depends(get_workspace_service),
):
    """
    Return the nested file tree of a project.

    Directories come before files and each group is sorted by name.
    Symlinks and special files are not listed.
    """
    return workspace.get_tree(project)


@router.get("/{project}/file", response_model=FilePreview)
async def get_file_preview(
    project: str,
    path: str = Query(..., description="Project-relative file path"),
    workspace: WorkspaceService = Depends(get_workspace_service),
):
    """Return the text content of one file for previewing."""
    preview = workspace.read_preview(project, path)
    logger.debug(f"Previewing {project}/{path} ({preview['size']} bytes)")
    return preview
