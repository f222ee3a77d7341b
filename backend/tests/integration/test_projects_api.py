"""API tests for project browsing and note card endpoints."""

from __future__ import annotations

import importlib
import json
import warnings
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from backend.src.api.dependencies import get_generator
from backend.src.api.main import app
from backend.src.api.middleware import error_handlers
from backend.src.services.config import AppConfig, get_config
from backend.src.services.generation import GenerationError, GenerationResult


@pytest.fixture
def projects_dir(tmp_path: Path) -> Path:
    base = tmp_path / "projects"
    proj = base / "proj1"
    (proj / "src").mkdir(parents=True)
    (proj / "README.md").write_text("# Hello\n", encoding="utf-8")
    (proj / "src" / "app.py").write_text("x = 1\n", encoding="utf-8")
    (base / "zeta").mkdir()
    return base


@pytest.fixture
def generator() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(projects_dir: Path, generator: AsyncMock):
    config = AppConfig(projects_dir=projects_dir, max_preview_bytes=1024)
    app.dependency_overrides[get_config] = lambda: config
    app.dependency_overrides[get_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides = {}


def test_health_and_hello(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "healthy"}
    assert "message" in client.get("/api/hello").json()


def test_list_projects(client: TestClient) -> None:
    response = client.get("/api/projects")

    assert response.status_code == 200
    assert response.json() == ["proj1", "zeta"]


def test_project_tree(client: TestClient) -> None:
    response = client.get("/api/projects/proj1/tree")

    assert response.status_code == 200
    assert response.json() == {
        "name": "proj1",
        "type": "dir",
        "children": [
            {"name": "src", "type": "dir", "children": [{"name": "app.py", "type": "file"}]},
            {"name": "README.md", "type": "file"},
        ],
    }


def test_project_tree_unknown_project(client: TestClient) -> None:
    response = client.get("/api/projects/missing/tree")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_project_tree_invalid_project(client: TestClient) -> None:
    response = client.get("/api/projects/a%5Cb/tree")

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_path"


def test_file_preview(client: TestClient) -> None:
    response = client.get("/api/projects/proj1/file", params={"path": "src/app.py"})

    assert response.status_code == 200
    assert response.json() == {"path": "src/app.py", "content": "x = 1\n", "size": 6}


def test_file_preview_rejects_traversal(client: TestClient) -> None:
    response = client.get("/api/projects/proj1/file", params={"path": "../../etc/passwd"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "invalid_path"
    assert "message" in body


def test_file_preview_rejects_nul_byte(client: TestClient) -> None:
    response = client.get("/api/projects/proj1/file", params={"path": "a\x00.md"})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_path"


def test_project_tree_rejects_nul_byte(client: TestClient) -> None:
    response = client.get("/api/projects/proj1%00/tree")

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_path"


def test_file_preview_missing_file(client: TestClient) -> None:
    response = client.get("/api/projects/proj1/file", params={"path": "nope.txt"})

    assert response.status_code == 404


def test_file_preview_too_large(client: TestClient, projects_dir: Path) -> None:
    (projects_dir / "proj1" / "big.log").write_text("x" * 2048, encoding="utf-8")

    response = client.get("/api/projects/proj1/file", params={"path": "big.log"})

    assert response.status_code == 413
    assert response.json()["detail"] == {"size": 2048, "limit": 1024}


def test_error_handlers_import_without_deprecation_warnings() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        importlib.reload(error_handlers)


def test_file_preview_requires_path(client: TestClient) -> None:
    response = client.get("/api/projects/proj1/file")

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_note_cards(client: TestClient, generator: AsyncMock) -> None:
    generator.generate.return_value = GenerationResult(
        stdout="Notes:\n" + json.dumps(
            [
                {"title": "Greeting", "content": "Says hello."},
                {"title": "Format", "content": "Markdown heading."},
                {"title": "Size", "content": "One line."},
            ]
        )
    )

    response = client.get("/api/projects/proj1/notes", params={"path": "README.md"})

    assert response.status_code == 200
    notes = response.json()["notes"]
    assert [n["id"] for n in notes] == [1, 2, 3]
    assert notes[0] == {"id": 1, "title": "Greeting", "content": "Says hello."}
    assert "# Hello" in generator.generate.await_args.args[0]


def test_note_cards_fallback_on_generation_failure(client: TestClient, generator: AsyncMock) -> None:
    generator.generate.side_effect = GenerationError("not installed")

    response = client.get("/api/projects/proj1/notes", params={"path": "README.md"})

    assert response.status_code == 200
    notes = response.json()["notes"]
    assert len(notes) == 1
    assert notes[0]["id"] == 1
    assert notes[0]["title"] == "Unable to Generate Notes"


def test_note_cards_reject_directory(client: TestClient, generator: AsyncMock) -> None:
    response = client.get("/api/projects/proj1/notes", params={"path": "src"})

    assert response.status_code == 400
    generator.generate.assert_not_awaited()


def test_note_cards_empty_array_returns_fallback(client: TestClient, generator: AsyncMock) -> None:
    generator.generate.return_value = GenerationResult(stdout="[]")

    response = client.get("/api/projects/proj1/notes", params={"path": "README.md"})

    assert response.status_code == 200
    notes = response.json()["notes"]
    assert len(notes) == 1
    assert notes[0]["title"] == "Unable to Generate Notes"
