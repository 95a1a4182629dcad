# tests/conftest.py
"""
Shared fixtures for the DevAgent tests.
The backend is always replaced by FakeTransport; no test touches the network.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

from devagent.core.errors import TransportError

FAKE_KEY = "AIzaSyTEST-0123456789abcdefghijklmnopq"

HELLO_SERVER = (
    "const express = require('express');\n"
    "const app = express();\n"
    "app.get('/api/hello', (req, res) => res.json({ message: 'Hello, World' }));\n"
    "app.listen(3000);\n"
)


def envelope(text: str) -> Dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def change_set_json(files: List[Dict], summary: Optional[str] = None) -> str:
    data = {"files": files}
    if summary is not None:
        data["summary"] = summary
    return json.dumps(data)


class FakeTransport:
    """
    Stand-in for the REST/SDK transports.

    ``models`` is the listing payload or an exception to raise from
    ``list_models``. ``responses`` maps model ids to an envelope dict or an
    exception; unknown ids raise TransportError(404).
    """

    def __init__(self, models: Union[Dict, Exception, None] = None, responses: Optional[Dict] = None):
        self.models = models if models is not None else TransportError("discovery disabled")
        self.responses = responses or {}
        self.list_calls = 0
        self.generate_calls: List[str] = []
        self.requests = []

    def list_models(self, credential):
        self.list_calls += 1
        if isinstance(self.models, Exception):
            raise self.models
        return self.models

    def generate_content(self, request, credential):
        self.generate_calls.append(request.model_id)
        self.requests.append(request)
        result = self.responses.get(request.model_id)
        if result is None:
            raise TransportError(f"models/{request.model_id} not found", status_code=404)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """A small project with a manifest, a readme and an active task."""
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    (tmp_path / "README.md").write_text("# Demo\n", encoding="utf-8")
    (tmp_path / "tasks").mkdir()
    (tmp_path / "tasks" / "active-task.md").write_text(
        'add a GET /api/hello endpoint returning {message: "Hello, World"}\n', encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def api_key(monkeypatch) -> str:
    monkeypatch.setenv("GEMINI_API_KEY", FAKE_KEY)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    return FAKE_KEY


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def runner():
    from click.testing import CliRunner
    return CliRunner()
