import pytest
from click.testing import CliRunner

from conftest import FakeBackend, make_message

import chatdigest.cli as cli_module
import chatdigest.llm as llm_module
from chatdigest.models import Chat
from chatdigest.storage import MessageStore


@pytest.fixture()
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "messages.db"
    monkeypatch.setattr(cli_module, "SQLITE_PATH", path)
    monkeypatch.setattr(cli_module, "DATA_DIR", tmp_path)
    return path


@pytest.fixture()
def seeded(db_path):
    messages = [make_message(i, f"m{i}", minute=i, chat_id=42) for i in range(1, 6)]
    store = MessageStore(db_path)
    store.upsert_chat(Chat(id=42, title="Team", messages=messages, message_count=5))
    store.close()
    return db_path


@pytest.fixture()
def fake_backend(monkeypatch):
    backend = FakeBackend()
    requested = {}

    def create_backend(provider=None, **kwargs):
        requested.update(kwargs, provider=provider)
        if "max_context_tokens" in kwargs:
            backend.max_context_tokens = kwargs["max_context_tokens"]
        return backend

    monkeypatch.setattr(llm_module, "create_backend", create_backend)
    backend.requested = requested
    return backend


def test_summarize_by_count(seeded, fake_backend):
    result = CliRunner().invoke(cli_module.cli, ["summarize", "42", "3"])

    assert result.exit_code == 0, result.output
    assert "summary 1" in result.output
    assert len(fake_backend.calls) == 1
    assert [line.rsplit(": ", 1)[1] for line in fake_backend.calls[0]] == ["m3", "m4", "m5"]


def test_summarize_empty_range_reports_error(seeded, fake_backend):
    result = CliRunner().invoke(cli_module.cli, ["summarize", "999", "10"])

    assert result.exit_code == 1
    assert "No messages" in result.output
    assert fake_backend.calls == []


def test_summarize_rejects_bad_range(seeded, fake_backend):
    result = CliRunner().invoke(cli_module.cli, ["summarize", "42", "forever"])

    assert result.exit_code == 2
    assert "Invalid range" in result.output


def test_summarize_dry_run(seeded, fake_backend):
    result = CliRunner().invoke(cli_module.cli, ["summarize", "42", "5", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Messages:   5" in result.output
    assert "direct" in result.output
    assert fake_backend.calls == []


def test_summarize_without_data(db_path, fake_backend):
    result = CliRunner().invoke(cli_module.cli, ["summarize", "42"])

    assert result.exit_code == 1
    assert "No data found" in result.output


def test_chats_and_stats(seeded):
    runner = CliRunner()

    chats = runner.invoke(cli_module.cli, ["chats"])
    assert chats.exit_code == 0
    assert "Team" in chats.output

    stats = runner.invoke(cli_module.cli, ["stats"])
    assert stats.exit_code == 0
    assert "Messages:       5" in stats.output


def test_reset_deletes_data(tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(cli_module, "DATA_DIR", data_dir)

    result = CliRunner().invoke(cli_module.cli, ["reset", "--yes"])

    assert result.exit_code == 0
    assert not data_dir.exists()


def test_summarize_with_context_below_buffer_reports_config_error(seeded, fake_backend):
    result = CliRunner().invoke(
        cli_module.cli, ["summarize", "42", "3", "--max-context-tokens", "800"]
    )

    assert result.exit_code == 1
    assert "Model context of 800 tokens" in result.output
    assert "1000-token buffer" in result.output
    assert not isinstance(result.exception, ValueError)
    assert fake_backend.calls == []


def test_summarize_passes_provider_and_model(seeded, fake_backend):
    result = CliRunner().invoke(
        cli_module.cli,
        ["summarize", "42", "3", "--provider", "bedrock", "--model", "anthropic.test"],
    )

    assert result.exit_code == 0, result.output
    assert fake_backend.requested == {"provider": "bedrock", "model": "anthropic.test"}
