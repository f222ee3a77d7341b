"""Sandboxed access to project directories."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any, Dict, List

from .config import AppConfig, get_config

TreeNode = Dict[str, Any]


class InvalidPathError(ValueError):
    """Raised when a project name or path would escape the sandbox root."""


class PathNotFoundError(FileNotFoundError):
    """Raised when a resolved path does not exist."""


class ProjectNotFoundError(PathNotFoundError):
    """Raised when a project directory does not exist."""


class FilePreviewTooLargeError(ValueError):
    """Raised when a file exceeds the preview size limit."""

    def __init__(self, path: str, size: int, limit: int) -> None:
        super().__init__(f"File is {size} bytes, preview limit is {limit} bytes: {path}")
        self.path = path
        self.size = size
        self.limit = limit


def _is_within(candidate: Path, root: Path) -> bool:
    return candidate == root or root in candidate.parents


def resolve_project_root(projects_dir: Path, project: str) -> Path:
    """
    Resolve a project name to its directory under the sandbox root.

    Raises InvalidPathError for names that are not a single path segment,
    ProjectNotFoundError when the directory does not exist.
    """
    if not project or project in {".", ".."} or "\x00" in project:
        raise InvalidPathError("Invalid project")
    if "/" in project or "\\" in project or PurePosixPath(project).is_absolute():
        raise InvalidPathError("Invalid project")

    base = projects_dir.resolve()
    root = (base / project).resolve()
    if root == base or not _is_within(root, base):
        raise InvalidPathError("Invalid project")
    if not root.is_dir():
        raise ProjectNotFoundError(f"Project not found: {project}")
    return root


def resolve_project_path(root: Path, relative_path: str) -> Path:
    """
    Resolve a project-relative path inside ``root``.

    Any ``..`` segment, absolute path, backslash or NUL byte is rejected
    outright, and the resolved path (symlinks followed) must stay inside the
    root.
    """
    if not relative_path or not relative_path.strip():
        raise InvalidPathError("Path is required")
    if "\x00" in relative_path:
        raise InvalidPathError("Path must not contain NUL bytes")
    if "\\" in relative_path:
        raise InvalidPathError("Path must use Unix separators (/)")
    if relative_path.startswith("/") or PurePosixPath(relative_path).is_absolute():
        raise InvalidPathError("Path must be relative (no leading /)")
    if ".." in PurePosixPath(relative_path).parts:
        raise InvalidPathError("Path must not contain '..'")

    base = root.resolve()
    full_path = (base / relative_path).resolve()
    if not _is_within(full_path, base):
        raise InvalidPathError(f"Path escapes project root: {relative_path}")
    if not full_path.exists():
        raise PathNotFoundError(f"Path not found: {relative_path}")
    return full_path


def build_tree(directory: Path) -> List[TreeNode]:
    """Build a nested listing: directories first, then files, alphabetical."""
    entries = sorted(
        (entry for entry in directory.iterdir() if not entry.is_symlink()),
        key=lambda entry: (not entry.is_dir(), entry.name),
    )
    result: List[TreeNode] = []
    for entry in entries:
        if entry.is_dir():
            result.append({"name": entry.name, "type": "dir", "children": build_tree(entry)})
        elif entry.is_file():
            result.append({"name": entry.name, "type": "file"})
    return result


class WorkspaceService:
    """Service for listing projects and reading files inside the sandbox."""

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or get_config()
        self.projects_dir = self.config.projects_dir

    def list_projects(self) -> List[str]:
        """Return the sorted names of project directories."""
        self.projects_dir.mkdir(parents=True, exist_ok=True)
        return sorted(entry.name for entry in self.projects_dir.iterdir() if entry.is_dir())

    def project_root(self, project: str) -> Path:
        return resolve_project_root(self.projects_dir, project)

    def resolve(self, project: str, relative_path: str) -> Path:
        """Resolve ``relative_path`` inside ``project``."""
        return resolve_project_path(self.project_root(project), relative_path)

    def resolve_file(self, project: str, relative_path: str) -> Path:
        """Resolve a path and require it to be a regular file."""
        path = self.resolve(project, relative_path)
        if not path.is_file():
            raise InvalidPathError(f"Not a file: {relative_path}")
        return path

    def get_tree(self, project: str) -> TreeNode:
        root = self.project_root(project)
        return {"name": project, "type": "dir", "children": build_tree(root)}

    def read_text(self, path: Path, max_chars: int | None = None) -> str:
        """Read a file as UTF-8, replacing undecodable bytes.

        With ``max_chars`` only that many characters are read from disk.
        """
        with path.open(encoding="utf-8", errors="replace") as f:
            if max_chars is not None:
                return f.read(max_chars)
            return f.read()

    def read_preview(self, project: str, relative_path: str) -> Dict[str, Any]:
        """Return the text content of a file for the preview pane."""
        path = self.resolve_file(project, relative_path)
        size = path.stat().st_size
        if size > self.config.max_preview_bytes:
            raise FilePreviewTooLargeError(relative_path, size, self.config.max_preview_bytes)
        return {"path": relative_path, "content": self.read_text(path), "size": size}


__all__ = [
    "WorkspaceService",
    "InvalidPathError",
    "PathNotFoundError",
    "ProjectNotFoundError",
    "FilePreviewTooLargeError",
    "resolve_project_root",
    "resolve_project_path",
    "build_tree",
]
