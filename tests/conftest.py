"""Shared fixtures for the insurance chat tests."""

import pytest

from insurance_chat.config import ChatConfig
from insurance_chat.chat_service import InsuranceChatService
from insurance_chat.knowledge_base import KnowledgeBase
from insurance_chat.llm_client import LLMError
from insurance_chat.storage import MemoryStore


class FakeLLM:
    """Stands in for LLMClient; records every prompt it receives."""

    def __init__(self, reply="Term life insurance is affordable coverage.", models=None, model="llama3:8b"):
        self.reply = reply
        self.models = ["llama3:8b"] if models is None else models
        self.model = model
        self.calls = []

    def list_models(self):
        return list(self.models)

    def generate(self, prompt, temperature=None, max_tokens=None, model=None):
        self.calls.append({
            "prompt": prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "model": model,
        })
        return self.reply


class FailingLLM(FakeLLM):
    """Model client whose completions always fail."""

    def generate(self, prompt, temperature=None, max_tokens=None, model=None):
        self.calls.append({"prompt": prompt, "model": model})
        raise LLMError("provider unavailable")


@pytest.fixture
def knowledge_base():
    return KnowledgeBase()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def failing_llm():
    return FailingLLM()


@pytest.fixture
def offline_service(knowledge_base):
    """Service with the model path disabled."""
    return InsuranceChatService(ChatConfig(use_ai=False), llm=FakeLLM(), knowledge_base=knowledge_base)


@pytest.fixture
def ai_service(fake_llm, knowledge_base):
    return InsuranceChatService(ChatConfig(), llm=fake_llm, knowledge_base=knowledge_base)


@pytest.fixture
def failing_service(failing_llm, knowledge_base):
    return InsuranceChatService(ChatConfig(), llm=failing_llm, knowledge_base=knowledge_base)


@pytest.fixture
def memory_store():
    return MemoryStore()
