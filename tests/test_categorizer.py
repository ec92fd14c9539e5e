import json

import pytest
import requests

from daylog.categorizer import (
    MODE_AI,
    MODE_KEYWORD,
    attempt_remote,
    build_advice_prompt,
    build_categorize_prompt,
    categorize_entries,
    categorize_remote,
    generate_advice,
    parse_categories_response,
)
from daylog.config import Settings
from daylog.llm import LLMClient, LLMError
from daylog.models import AdviceGenerationFailure, Category, ClassificationTransportFailure
from daylog.parser import parse_log_text


@pytest.fixture
def entries(sample_log):
    return parse_log_text(sample_log).entries


def test_prompt_lists_entries_and_rules(entries):
    prompt = build_categorize_prompt(entries)

    assert "[09:00] 閱讀\n[10:00] 開會" in prompt
    for category in Category:
        assert category.value in prompt
    assert "00:00-07:00" in prompt


def test_remote_applies_categories(entries, fake_client):
    client = fake_client(categories=["學習", "工作"])
    categorize_remote(entries, client)
    assert [e.category for e in entries] == [Category.DEVELOPMENT, Category.WORK]


def test_remote_accepts_fenced_json(entries, fake_client):
    client = fake_client(categories='```json\n["社交", "家庭"]\n```')
    categorize_remote(entries, client)
    assert [e.category for e in entries] == [Category.SOCIAL, Category.FAMILY]


@pytest.mark.parametrize("response", [
    '["學習"]',
    '["學習", "工作", "日常"]',
    '{"a": "學習"}',
    "not json",
    '["學習", "吃飯"]',
])
def test_remote_rejects_bad_shapes_without_partial_update(entries, fake_client, response):
    client = fake_client(categories=response)

    with pytest.raises(ClassificationTransportFailure):
        categorize_remote(entries, client)

    assert all(e.category is Category.ROUTINE for e in entries)


def test_transport_error_becomes_classification_failure(entries, fake_client):
    with pytest.raises(ClassificationTransportFailure):
        categorize_remote(entries, fake_client(fail_classify=True))


@pytest.mark.parametrize("response", [None, 42, ["學習", "工作"]])
def test_non_text_reply_is_a_classification_failure(response):
    with pytest.raises(ClassificationTransportFailure):
        parse_categories_response(response, 2)


def test_generate_advice_rejects_non_text(entries, fake_client):
    with pytest.raises(AdviceGenerationFailure):
        generate_advice(entries, fake_client(advice=None))


def test_parse_accepts_member_names():
    assert parse_categories_response('["work", "RESTING"]', 2) == [Category.WORK, Category.RESTING]


def test_attempt_remote_reports_instead_of_raising(entries, fake_client):
    result = attempt_remote(entries, fake_client(fail_classify=True))
    assert not result.ok
    assert "500" in result.error


def test_pipeline_uses_ai_when_it_works(entries, fake_client):
    result = categorize_entries(entries, fake_client(categories=["社交", "社交"]))

    assert result.mode == MODE_AI
    assert result.ok
    assert not result.used_fallback
    assert [e.category for e in entries] == [Category.SOCIAL, Category.SOCIAL]


def test_pipeline_falls_back_to_keywords(entries, fake_client):
    result = categorize_entries(entries, fake_client(categories='["學習"]'))

    assert result.mode == MODE_KEYWORD
    assert result.used_fallback
    assert result.error
    assert [e.category for e in entries] == [Category.DEVELOPMENT, Category.WORK]


def test_pipeline_without_client_uses_keywords(entries):
    result = categorize_entries(entries, None)

    assert result.mode == MODE_KEYWORD
    assert result.ok
    assert [e.category for e in entries] == [Category.DEVELOPMENT, Category.WORK]


def test_advice_prompt_includes_full_entries(entries):
    entries[0].category = Category.DEVELOPMENT
    prompt = build_advice_prompt(entries)
    assert "09:00-10:00 [學習] 閱讀 (沈浸度:3)" in prompt
    assert "Energy Management Coach" in prompt


def test_generate_advice(entries, fake_client):
    assert generate_advice(entries, fake_client(advice="## 明天")) == "## 明天"


def test_generate_advice_failure(entries, fake_client):
    with pytest.raises(AdviceGenerationFailure):
        generate_advice(entries, fake_client(fail_advice=True))


def test_generate_advice_rejects_empty_text(entries, fake_client):
    with pytest.raises(AdviceGenerationFailure):
        generate_advice(entries, fake_client(advice="   "))


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


def gemini_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_gemini_call(monkeypatch):
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        return FakeResponse(payload=gemini_payload('["工作"]'))

    monkeypatch.setattr("daylog.llm.requests.post", fake_post)
    client = LLMClient(api_key="secret", model="gemini-test", timeout=5)

    assert client.generate("hello") == '["工作"]'
    url, kwargs = calls[0]
    assert url.endswith("/gemini-test:generateContent")
    assert kwargs["params"] == {"key": "secret"}
    assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "hello"
    assert kwargs["timeout"] == 5


@pytest.mark.parametrize("response", [
    FakeResponse(status_code=403, payload={}),
    FakeResponse(payload={"candidates": []}),
    FakeResponse(payload={"error": "x"}),
    FakeResponse(text="<html>"),
    FakeResponse(payload=gemini_payload(None)),
    FakeResponse(payload=gemini_payload(42)),
])
def test_gemini_bad_responses(monkeypatch, response):
    monkeypatch.setattr("daylog.llm.requests.post", lambda url, **kwargs: response)

    with pytest.raises(LLMError):
        LLMClient(api_key="k").generate("hello")


def test_gemini_network_error(monkeypatch):
    def boom(url, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr("daylog.llm.requests.post", boom)

    with pytest.raises(LLMError):
        LLMClient(api_key="k").generate("hello")


def test_unknown_provider():
    with pytest.raises(LLMError):
        LLMClient(provider="carrier-pigeon").generate("hello")


def test_client_requires_key_for_gemini():
    assert LLMClient.from_settings(Settings()) is None
    assert LLMClient.from_settings(Settings(), api_key="k").api_key == "k"


def test_client_from_settings(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    client = LLMClient.from_settings(Settings({"llm": {"model": "m", "timeout": 7}}))

    assert client.api_key == "env-key"
    assert client.model == "m"
    assert client.timeout == 7


def test_ollama_client_needs_no_key():
    client = LLMClient.from_settings(Settings({"llm": {"provider": "ollama"}}))
    assert client.provider == "ollama"
    assert client.model == "llama3"
