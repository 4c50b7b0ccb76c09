"""
Chat Analytics for per-interaction metrics and aggregate reports.

- Every turn is tracked in memory and appended to a JSON audit log
- Aggregates (averages, satisfaction rate, top questions, categories)
  are computed with pandas over the tracked interactions
- Tracking never raises: failures are logged and the turn goes on
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass
class ChatMetrics:
    session_id: str
    query_text: str
    response_text: str
    response_time: float
    confidence_score: Optional[float] = None
    was_helpful: Optional[bool] = None
    category: Optional[str] = None
    source: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class PerformanceMetrics:
    average_response_time: float
    average_confidence_score: float
    user_satisfaction_rate: float
    total_interactions: int

    def to_dict(self) -> dict:
        return asdict(self)


class ChatAnalytics:
    """
    In-memory interaction tracker with an optional JSON audit log.
    """

    def __init__(self, log_file: Optional[str] = None):
        """
        Args:
            log_file: Path of the JSON audit log. None keeps metrics in memory only.
        """
        self.log_file = log_file
        self.interactions: list[ChatMetrics] = []

    def track_interaction(self, metrics: ChatMetrics) -> None:
        try:
            self.interactions.append(metrics)
            logger.info(f"Tracked chat interaction for session {metrics.session_id}")
        except Exception as e:
            logger.error(f"Failed to track interaction: {e}")
            return

        if self.log_file:
            self.log_query(metrics)

    def log_query(self, metrics: ChatMetrics) -> None:
        """
        Append one interaction to the JSON audit log.

        Args:
            metrics: The tracked interaction.
        """
        log_entry = {
            "timestamp": metrics.timestamp.isoformat(),
            "session_id": metrics.session_id,
            "query": metrics.query_text,
            "category": metrics.category,
            "source": metrics.source,
            "confidence": (
                round(metrics.confidence_score, 4)
                if metrics.confidence_score is not None else None
            ),
            "response_time": round(metrics.response_time, 4),
            "answer_length": len(metrics.response_text),
        }

        try:
            log_path = Path(self.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            if log_path.exists():
                with open(log_path, "r") as f:
                    logs = json.load(f)
            else:
                logs = []

            logs.append(log_entry)

            with open(log_path, "w") as f:
                json.dump(logs, f, indent=2)
        except Exception as e:
            logger.warning(f"Failed to write query log: {e}")

    def _to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(m) for m in self.interactions])

    def get_performance_metrics(self) -> PerformanceMetrics:
        """
        Aggregate all tracked interactions.

        Returns:
            PerformanceMetrics. Interactions without a confidence score count
            as 0.0 in the average; satisfaction rate is the percentage of
            interactions explicitly marked helpful.
        """
        total = len(self.interactions)
        if total == 0:
            return PerformanceMetrics(0.0, 0.0, 0.0, 0)

        df = self._to_frame()
        confidence = pd.to_numeric(df["confidence_score"], errors="coerce").fillna(0.0)
        helpful = int(df["was_helpful"].eq(True).sum())

        return PerformanceMetrics(
            average_response_time=float(df["response_time"].mean()),
            average_confidence_score=float(confidence.mean()),
            user_satisfaction_rate=helpful / total * 100,
            total_interactions=total,
        )

    def get_top_questions(self, limit: Optional[int] = None) -> dict[str, int]:
        """Question texts with their counts, most asked first."""
        if not self.interactions:
            return {}

        counts = self._to_frame()["query_text"].value_counts(sort=True)
        if limit is not None:
            counts = counts.head(limit)
        return {question: int(count) for question, count in counts.items()}

    def get_category_distribution(self) -> dict[str, int]:
        if not self.interactions:
            return {}

        categories = self._to_frame()["category"].dropna()
        return {category: int(count) for category, count in categories.value_counts().items()}

    def mark_helpful(self, session_id: str, was_helpful: bool) -> bool:
        """
        Record feedback on the latest interaction of a session.

        Returns:
            True if an interaction was found and updated.
        """
        for metrics in reversed(self.interactions):
            if metrics.session_id == session_id:
                metrics.was_helpful = was_helpful
                return True
        return False
