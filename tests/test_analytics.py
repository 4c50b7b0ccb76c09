"""Tests for interaction analytics and the audit log."""

import json

import pytest

from insurance_chat.analytics import ChatAnalytics, ChatMetrics


def metrics(query, category="policy", confidence=0.8, response_time=1.0, helpful=None, session_id="s1"):
    return ChatMetrics(
        session_id=session_id,
        query_text=query,
        response_text="answer",
        response_time=response_time,
        confidence_score=confidence,
        was_helpful=helpful,
        category=category,
        source="knowledge_base",
    )


class TestChatAnalytics:

    def test_empty(self):
        result = ChatAnalytics().get_performance_metrics()
        assert result.total_interactions == 0
        assert result.average_response_time == 0.0
        assert ChatAnalytics().get_top_questions() == {}
        assert ChatAnalytics().get_category_distribution() == {}

    def test_performance_metrics(self):
        analytics = ChatAnalytics()
        analytics.track_interaction(metrics("a", confidence=0.8, response_time=1.0, helpful=True))
        analytics.track_interaction(metrics("b", confidence=None, response_time=3.0, helpful=False))

        result = analytics.get_performance_metrics()

        assert result.total_interactions == 2
        assert result.average_response_time == pytest.approx(2.0)
        assert result.average_confidence_score == pytest.approx(0.4)
        assert result.user_satisfaction_rate == pytest.approx(50.0)

    def test_top_questions_and_categories(self):
        analytics = ChatAnalytics()
        for query, category in [("x", "policy"), ("y", "health"), ("x", "policy"), ("x", None)]:
            analytics.track_interaction(metrics(query, category=category))

        assert list(analytics.get_top_questions().items()) == [("x", 3), ("y", 1)]
        assert analytics.get_top_questions(limit=1) == {"x": 3}
        assert analytics.get_category_distribution() == {"policy": 2, "health": 1}

    def test_mark_helpful(self):
        analytics = ChatAnalytics()
        analytics.track_interaction(metrics("a", session_id="s1"))
        assert analytics.mark_helpful("s1", True)
        assert not analytics.mark_helpful("other", True)
        assert analytics.get_performance_metrics().user_satisfaction_rate == pytest.approx(100.0)

    def test_audit_log_appends(self, tmp_path):
        log_file = tmp_path / "logs" / "query_log.json"
        analytics = ChatAnalytics(log_file=str(log_file))
        analytics.track_interaction(metrics("a"))
        analytics.track_interaction(metrics("b", confidence=None))

        entries = json.loads(log_file.read_text())
        assert [e["query"] for e in entries] == ["a", "b"]
        assert entries[0]["confidence"] == 0.8
        assert entries[1]["confidence"] is None
        assert entries[0]["answer_length"] == len("answer")

    def test_audit_failure_is_swallowed(self, tmp_path):
        log_file = tmp_path / "query_log.json"
        log_file.write_text("not json")
        analytics = ChatAnalytics(log_file=str(log_file))

        analytics.track_interaction(metrics("a"))

        assert len(analytics.interactions) == 1
