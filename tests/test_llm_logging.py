from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from services.llm_client import LLMClient
from services.reporting import _llm_usage_for_run
from utils.llm_logger import log_call, sha256_text


def test_llm_trace_writes_jsonl(tmp_path, monkeypatch):
    log_file = tmp_path / "llm_calls.jsonl"
    monkeypatch.setenv("LLM_TRACE", "true")
    monkeypatch.setenv("LLM_LOG_PATH", str(log_file))
    monkeypatch.setenv("RUN_ID", "test-run-123")

    log_call(
        caller="unit.test",
        provider="openrouter",
        model="google/gemini-2.5-flash-lite",
        operation="profile_extraction",
        prompt_name="profile_extraction",
        prompt_hash="abc",
        duration_ms=42,
        status="ok",
        usage={"total_tokens": 10},
        extras={"username": "octocat"},
    )

    assert log_file.exists()
    lines = log_file.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) >= 1
    rec = json.loads(lines[-1])
    assert rec["caller"] == "unit.test"
    assert rec["provider"] == "openrouter"
    assert rec["operation"] == "profile_extraction"
    assert rec["run_id"] == "test-run-123"
    assert rec["extras"] == {"username": "octocat"}
    assert rec.get("usage", {}).get("total_tokens") == 10


def test_llm_trace_off_writes_nothing(tmp_path, monkeypatch):
    log_file = tmp_path / "llm_calls.jsonl"
    monkeypatch.setenv("LLM_TRACE", "false")
    monkeypatch.setenv("LLM_LOG_PATH", str(log_file))
    log_call(caller="unit.test", provider="openrouter", model="m", operation="op")
    assert not log_file.exists()


def test_sha256_text():
    assert sha256_text(None) is None
    assert sha256_text("") is None
    assert len(sha256_text("prompt")) == 64


class _FakeCompletions:
    def __init__(self, outcome):
        self.outcome = outcome
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _client_with(outcome, monkeypatch):
    completions = _FakeCompletions(outcome)
    fake_openai = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    client = LLMClient()
    monkeypatch.setattr(client, "_client_for", lambda provider: fake_openai)
    return client, completions


def test_chat_logs_usage_per_run(tmp_path, monkeypatch):
    log_file = tmp_path / "llm_calls.jsonl"
    monkeypatch.setenv("LLM_TRACE", "true")
    monkeypatch.setenv("LLM_LOG_PATH", str(log_file))
    monkeypatch.setenv("RUN_ID", "run-a")
    monkeypatch.setenv("AI_PROVIDER", "openrouter")
    monkeypatch.setenv("LLM_MODEL", "some/model")

    resp = SimpleNamespace(usage=SimpleNamespace(prompt_tokens=7, completion_tokens=5, total_tokens=12), choices=[])
    client, completions = _client_with(resp, monkeypatch)
    assert client.chat(use_case="profile_extraction", messages=[{"role": "user", "content": "hi"}], prompt_text="hi") is resp
    assert completions.kwargs["model"] == "some/model"
    assert completions.kwargs["temperature"] == 0

    with pytest.raises(RuntimeError):
        _client_with(RuntimeError("provider down"), monkeypatch)[0].chat(
            use_case="profile_extraction", messages=[{"role": "user", "content": "hi"}]
        )

    rec = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert [r["status"] for r in rec] == ["ok", "error"]
    assert rec[0]["prompt_hash"] == sha256_text("hi")
    assert _llm_usage_for_run("run-a") == {"openrouter": {"calls": 2, "tokens": 12, "errors": 1}}
    assert _llm_usage_for_run("other-run") == {}
