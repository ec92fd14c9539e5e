import json
import threading

import pytest

from daylog.llm import LLMError

SAMPLE_LOG = "- 09:00 ~ 10:00 閱讀 ❚❚❚\n- 10:00 ~ 11:30 開會 ❚❚"


class FakeClient:
    """Stands in for LLMClient; answers classification and advice prompts."""

    def __init__(self, categories=None, advice="## 建議\n保持專注", fail_classify=False,
                 fail_advice=False, advice_gate=None):
        self.categories = categories
        self.advice = advice
        self.fail_classify = fail_classify
        self.fail_advice = fail_advice
        self.advice_gate = advice_gate
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)

        if "Energy Management Coach" in prompt:
            if self.advice_gate is not None:
                self.advice_gate.wait(5)
            if self.fail_advice:
                raise LLMError("API request failed with status 503")
            return self.advice

        if self.fail_classify:
            raise LLMError("API request failed with status 500")
        if isinstance(self.categories, str):
            return self.categories
        return json.dumps(self.categories, ensure_ascii=False)


@pytest.fixture
def sample_log():
    return SAMPLE_LOG


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def gate():
    return threading.Event()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "DAYLOG_CONFIG", "DAYLOG_MODEL"):
        monkeypatch.delenv(name, raising=False)
