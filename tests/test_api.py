"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

import api
from insurance_chat.analytics import ChatAnalytics
from insurance_chat.chat_service import InsuranceChatService
from insurance_chat.config import ChatConfig
from insurance_chat.storage import MemoryStore

from conftest import FakeLLM, FailingLLM


@pytest.fixture
def client(monkeypatch, knowledge_base):
    """Test client wired to an offline service; startup is not run."""
    service = InsuranceChatService(
        ChatConfig(use_ai=False),
        llm=FakeLLM(),
        knowledge_base=knowledge_base,
        analytics=ChatAnalytics(),
    )
    monkeypatch.setattr(api, "service", service)
    monkeypatch.setattr(api, "store", MemoryStore())
    monkeypatch.setattr(api, "sessions", {})

    return TestClient(api.app)


class TestSessionRoutes:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_send_message(self, client):
        response = client.post("/sessions/s1/messages", json={"content": "How do I file a claim?"})

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"] == "s1"
        assert data["reply"]["role"] == "assistant"
        assert data["reply"]["category"] == "claims"
        assert "death certificate" in data["reply"]["content"]
        assert data["suggestions"]

        session = client.get("/sessions/s1").json()
        assert len(session["messages"]) == 2
        assert session["error"] is None

    def test_empty_message_rejected(self, client):
        response = client.post("/sessions/s1/messages", json={"content": "   "})
        assert response.status_code == 400

    def test_unknown_session(self, client):
        assert client.get("/sessions/missing").status_code == 404
        assert client.post("/sessions/missing/retry").status_code == 404
        assert client.delete("/sessions/missing").status_code == 404

    def test_reset(self, client):
        client.post("/sessions/s1/messages", json={"content": "Hello"})

        response = client.delete("/sessions/s1")

        assert response.status_code == 200
        assert response.json()["messages"] == []
        assert response.json()["suggestions"] == []

    def test_retry(self, client):
        client.post("/sessions/s1/messages", json={"content": "What is a premium?"})

        response = client.post("/sessions/s1/retry")

        assert response.status_code == 200
        assert len(client.get("/sessions/s1").json()["messages"]) == 2

    def test_set_model(self, client):
        response = client.put("/sessions/s1/model", json={"model": "mistral"})
        assert response.status_code == 200
        assert response.json()["model_override"] == "mistral"

        response = client.put("/sessions/s1/model", json={"model": None})
        assert response.json()["model_override"] is None

    def test_session_restored_from_store(self, client):
        client.post("/sessions/s1/messages", json={"content": "Hello"})
        api.sessions.clear()

        response = client.get("/sessions/s1")

        assert response.status_code == 200
        assert len(response.json()["messages"]) == 2

    def test_failed_turn_returns_500(self, client, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("pipeline exploded")

        monkeypatch.setattr(api.service, "respond", explode)
        response = client.post("/sessions/s1/messages", json={"content": "Hello"})

        assert response.status_code == 500
        session = client.get("/sessions/s1").json()
        assert len(session["messages"]) == 1
        assert session["error"] == "pipeline exploded"

    def test_model_failure_still_answers(self, client, monkeypatch, knowledge_base):
        service = InsuranceChatService(ChatConfig(), llm=FailingLLM(), knowledge_base=knowledge_base)
        monkeypatch.setattr(api, "service", service)

        response = client.post("/sessions/s2/messages", json={"content": "What is a premium?"})

        assert response.status_code == 200
        assert response.json()["reply"]["content"].startswith("The amount paid")


class TestKnowledgeAndAnalytics:

    def test_search(self, client):
        response = client.get("/knowledge-base/search", params={"q": "term life"})
        assert response.status_code == 200
        assert [e["term"] for e in response.json()] == ["term life insurance", "whole life insurance"]

    def test_search_requires_query(self, client):
        assert client.get("/knowledge-base/search").status_code == 422

    def test_analytics(self, client):
        client.post("/sessions/s1/messages", json={"content": "How do I file a claim?"})
        client.post("/sessions/s1/messages", json={"content": "How do I file a claim?"})

        data = client.get("/analytics").json()

        assert data["total_interactions"] == 2
        assert data["top_questions"] == {"How do I file a claim?": 2}
        assert data["category_distribution"] == {"claims": 2}

    def test_not_initialized(self, client, monkeypatch):
        monkeypatch.setattr(api, "service", None)
        assert client.get("/knowledge-base/search", params={"q": "x"}).status_code == 503
