import threading
from types import SimpleNamespace

import pytest
from langchain_core.messages import AIMessage

from healthroute.ai_agent import ExplanationProvider


class FakeLLM:
    """Stands in for the chat model: canned content, an error, or a call that blocks."""

    def __init__(self, content=None, exc=None, gate=None, raw=None):
        self.content = content
        self.exc = exc
        self.gate = gate
        self.raw = raw
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        if self.gate is not None:
            self.gate.wait(10)
        if self.exc is not None:
            raise self.exc
        if self.raw is not None:
            return self.raw
        return AIMessage(content=self.content)


@pytest.fixture
def fake_llm():
    return FakeLLM


@pytest.fixture
def provider_with(fake_llm):
    def _make(timeout_s=4.0, **kwargs):
        llm = fake_llm(**kwargs)
        return ExplanationProvider(api_key="test-key", timeout_s=timeout_s, llm=llm), llm
    return _make


@pytest.fixture
def gate():
    ev = threading.Event()
    yield ev
    ev.set()  # release any abandoned worker


@pytest.fixture
def no_content():
    return SimpleNamespace(content=None)
