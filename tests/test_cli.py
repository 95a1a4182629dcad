# tests/test_cli.py
import subprocess
from unittest.mock import MagicMock, patch

import pytest
import yaml

from devagent.cli import cli
from devagent.core.agent import DevAgent
from devagent.core.commit import CommitGate
from devagent.core.config import config_file_path

from conftest import HELLO_SERVER, FakeTransport, change_set_json, envelope

HELLO_RESPONSE = change_set_json([{"path": "server.js", "content": HELLO_SERVER}], summary="hello endpoint")


@pytest.fixture
def backend():
    """Route every DevAgent built by the CLI to a fake transport and git runner."""
    transport = FakeTransport(responses={"gemini-2.0-flash": envelope(HELLO_RESPONSE)})
    git = MagicMock(return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr=""))

    def factory(config):
        return DevAgent(config, transport=transport, commit_gate=CommitGate(runner=git))

    with patch("devagent.cli.DevAgent", side_effect=factory):
        yield transport, git


# --- init ---

def test_init_creates_config_and_task(runner, tmp_path):
    result = runner.invoke(cli, ["-C", str(tmp_path), "init"])
    assert result.exit_code == 0, result.output

    config = yaml.safe_load(config_file_path(tmp_path).read_text(encoding="utf-8"))
    assert config["max_files"] == 20
    assert config["transport"] == "rest"
    assert (tmp_path / "tasks" / "active-task.md").exists()


def test_init_keeps_existing_files_unless_confirmed(runner, project_dir):
    task = project_dir / "tasks" / "active-task.md"
    before = task.read_text(encoding="utf-8")
    result = runner.invoke(cli, ["-C", str(project_dir), "init"], input="n\n")
    assert result.exit_code == 0, result.output
    assert task.read_text(encoding="utf-8") == before
    assert "Skipped" in result.output


def test_init_force_overwrites(runner, project_dir):
    result = runner.invoke(cli, ["-C", str(project_dir), "init", "--force"])
    assert result.exit_code == 0, result.output
    assert "Describe the change" in (project_dir / "tasks" / "active-task.md").read_text(encoding="utf-8")


# --- run ---

def test_run_success(runner, project_dir, api_key, backend):
    transport, git = backend
    result = runner.invoke(cli, ["-C", str(project_dir), "run"])

    assert result.exit_code == 0, result.output
    assert "DevAgent finished the task!" in result.output
    assert "Summary: hello endpoint" in result.output
    assert (project_dir / "server.js").read_text(encoding="utf-8") == HELLO_SERVER
    assert transport.generate_calls == ["gemini-2.0-flash"]
    assert git.called


def test_run_no_commit_and_model_options(runner, project_dir, api_key, backend):
    transport, git = backend
    transport.responses["custom-model"] = envelope(HELLO_RESPONSE)
    result = runner.invoke(cli, ["-C", str(project_dir), "run", "--no-commit", "-m", "custom-model"])

    assert result.exit_code == 0, result.output
    assert transport.generate_calls == ["custom-model"]
    git.assert_not_called()


def test_run_dry_run_writes_nothing(runner, project_dir, api_key, backend):
    result = runner.invoke(cli, ["-C", str(project_dir), "run", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "Would create: server.js" in result.output
    assert not (project_dir / "server.js").exists()


def test_run_without_task_file_fails(runner, project_dir, api_key, backend):
    (project_dir / "tasks" / "active-task.md").unlink()
    result = runner.invoke(cli, ["-C", str(project_dir), "run"])
    assert result.exit_code != 0
    assert backend[0].generate_calls == []


def test_run_without_credential_fails(runner, project_dir, no_api_key, backend):
    result = runner.invoke(cli, ["-C", str(project_dir), "run"])
    assert result.exit_code != 0
    assert backend[0].list_calls == 0


def test_run_all_models_exhausted_fails(runner, project_dir, api_key, backend):
    backend[0].responses.clear()
    result = runner.invoke(cli, ["-C", str(project_dir), "run"])
    assert result.exit_code != 0
    assert not (project_dir / "server.js").exists()


def test_run_unparseable_response_fails(runner, project_dir, api_key, backend):
    backend[0].responses["gemini-2.0-flash"] = envelope("I would rather not.")
    result = runner.invoke(cli, ["-C", str(project_dir), "run"])
    assert result.exit_code != 0
    assert not (project_dir / "server.js").exists()


def test_run_with_invalid_config_fails(runner, project_dir, api_key, backend):
    path = config_file_path(project_dir)
    path.parent.mkdir()
    path.write_text("max_files: 0\n", encoding="utf-8")
    result = runner.invoke(cli, ["-C", str(project_dir), "run"])
    assert result.exit_code != 0
    assert backend[0].generate_calls == []


# --- apply ---

def test_apply_saved_response(runner, project_dir, backend):
    saved = project_dir / "response.txt"
    saved.write_text("```json\n" + HELLO_RESPONSE + "\n```", encoding="utf-8")
    result = runner.invoke(cli, ["-C", str(project_dir), "apply", str(saved), "--no-commit"])

    assert result.exit_code == 0, result.output
    assert (project_dir / "server.js").read_text(encoding="utf-8") == HELLO_SERVER
    assert backend[1].call_count == 0


def test_apply_garbage_fails(runner, project_dir, backend):
    saved = project_dir / "response.txt"
    saved.write_text("not json at all", encoding="utf-8")
    result = runner.invoke(cli, ["-C", str(project_dir), "apply", str(saved)])
    assert result.exit_code != 0


# --- inspection commands ---

def test_context_command(runner, project_dir, backend):
    result = runner.invoke(cli, ["-C", str(project_dir), "context"])
    assert result.exit_code == 0, result.output
    assert "package.json" in result.output


def test_prompt_command(runner, project_dir, backend):
    result = runner.invoke(cli, ["-C", str(project_dir), "prompt", "--system"])
    assert result.exit_code == 0, result.output
    assert "GET /api/hello" in result.output
    assert "System instructions" in result.output


def test_models_command_uses_fallback_when_discovery_fails(runner, project_dir, api_key, backend):
    result = runner.invoke(cli, ["-C", str(project_dir), "models"])
    assert result.exit_code == 0, result.output
    assert "Using fallback model list" in result.output
    assert backend[0].list_calls == 1


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "DevAgent CLI v" in result.output


def test_context_command_lists_unread_paths(runner, project_dir, backend):
    (project_dir / "logo.png").write_bytes(b"\x89PNG")
    result = runner.invoke(cli, ["-C", str(project_dir), "context"])
    assert result.exit_code == 0, result.output
    assert "Listed but not sent:" in result.output
    assert "logo.png" in result.output
