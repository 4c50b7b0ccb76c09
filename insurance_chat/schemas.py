"""
Core data types shared across the chat pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class QuestionCategory(str, Enum):
    """Coarse intent bucket for a user query."""
    BASIC = "basic"
    HEALTH = "health"
    POLICY = "policy"
    CLAIMS = "claims"


class Intent(str, Enum):
    """Fine-grained intent used by the response generator."""
    POLICY_EXPLANATION = "policy_explanation"
    TERM_DEFINITION = "term_definition"
    COVERAGE_QUESTION = "coverage_question"
    HEALTH_QUESTION = "health_question"
    CLAIMS_QUESTION = "claims_question"
    GENERAL = "general_insurance_query"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ReplySource(str, Enum):
    """Which path produced an assistant reply."""
    AI = "ai"
    KNOWLEDGE_BASE = "knowledge_base"


class TurnStage(str, Enum):
    """Stages a single user turn moves through."""
    IDLE = "idle"
    CATEGORIZING = "categorizing"
    EXTRACTING_CONTEXT = "extracting_context"
    GENERATING_AI = "generating_ai"
    GENERATING_FALLBACK = "generating_fallback"
    DONE = "done"
    FAILED = "failed"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    A trailing "Z" (UTC, as written by JavaScript's toISOString) is accepted
    on every supported Python version.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Message:
    """A single transcript entry. Never mutated once appended."""
    role: Role
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    category: Optional[QuestionCategory] = None
    suggestions: Optional[tuple[str, ...]] = None

    def to_dict(self) -> dict:
        data = {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.category is not None:
            data["category"] = self.category.value
        if self.suggestions is not None:
            data["suggestions"] = list(self.suggestions)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        """
        Rebuild a message from its serialized form.

        Args:
            data: Dict with role, content, ISO-8601 timestamp and the optional
                category and suggestions keys.

        Returns:
            Message with the timestamp parsed back into a datetime.
        """
        timestamp = data.get("timestamp")
        category = data.get("category")
        suggestions = data.get("suggestions")
        return cls(
            role=Role(data["role"]),
            content=data["content"],
            timestamp=parse_timestamp(timestamp) if timestamp else datetime.now(),
            category=QuestionCategory(category) if category else None,
            suggestions=tuple(suggestions) if suggestions is not None else None,
        )


@dataclass(frozen=True)
class KnowledgeEntry:
    term: str
    definition: str
    category: QuestionCategory
    related_terms: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "term": self.term,
            "definition": self.definition,
            "category": self.category.value,
            "related_terms": list(self.related_terms),
        }


@dataclass(frozen=True)
class PolicyInfo:
    """Canonical description of one life insurance policy type."""
    key: str
    name: str
    description: str
    features: tuple[str, ...]
    best_for: tuple[str, ...]


@dataclass(frozen=True)
class GlossaryTerm:
    term: str
    definition: str
    category: str


@dataclass(frozen=True)
class ResponseTemplate:
    intent: Intent
    responses: tuple[str, ...]
    context_required: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtractedContext:
    """Structured facts inferred from a user's free text."""
    category: QuestionCategory = QuestionCategory.BASIC
    policy_type: Optional[str] = None
    coverage_amount: Optional[float] = None
    age: Optional[int] = None
    health_status: Optional[str] = None

    def merged(self, other: "ExtractedContext") -> "ExtractedContext":
        """
        Merge a newer extraction on top of this one.

        Keys set on ``other`` win; keys it leaves unset keep their current
        value. The category always comes from ``other``.
        """
        updates = {"category": other.category}
        for name in ("policy_type", "coverage_amount", "age", "health_status"):
            value = getattr(other, name)
            if value is not None:
                updates[name] = value
        return replace(self, **updates)

    def known_fields(self) -> dict:
        """Return only the fields that carry a value."""
        fields = {"category": self.category.value}
        for name in ("policy_type", "coverage_amount", "age", "health_status"):
            value = getattr(self, name)
            if value is not None:
                fields[name] = value
        return fields


@dataclass
class FormattedResponse:
    """Output of the response generator."""
    message: str
    suggestions: list[str]
    related_topics: list[str]
    confidence: float


@dataclass
class ChatReply:
    """Result of running the pipeline once for one user message."""
    content: str
    category: QuestionCategory
    suggestions: list[str]
    source: ReplySource
    context: ExtractedContext
    confidence: Optional[float] = None


@dataclass
class TurnResult:
    """
    Outcome of a session turn.

    ``messages`` holds only the entries this turn appended to the transcript.
    """
    ok: bool
    messages: list[Message] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass(frozen=True)
class SessionState:
    """Read-only snapshot handed to session subscribers."""
    messages: tuple[Message, ...]
    is_loading: bool
    error: Optional[Exception]
    suggestions: tuple[str, ...]
    model_override: Optional[str]
