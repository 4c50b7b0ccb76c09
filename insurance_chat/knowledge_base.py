"""
Insurance Knowledge Base for lookup, search and suggestion generation.

This module backs the offline reply path:
- Resolves a topic to a definition (exact match, then partial match)
- Suggests follow-up questions from related terms
- Keyword search across terms, definitions and related terms
"""
from __future__ import annotations

from typing import Iterable, Optional

from insurance_chat.mappings import (
    DEFAULT_SUGGESTED_QUESTIONS,
    FALLBACK_INFORMATION_TEMPLATE,
    KNOWLEDGE_ENTRIES,
)
from insurance_chat.schemas import KnowledgeEntry

# Configuration constants
MAX_SUGGESTIONS = 3


class KnowledgeBase:
    """
    Static table of insurance terms.
    Entries are loaded once and never mutated; table order decides ties.
    """

    def __init__(self, entries: Optional[Iterable[KnowledgeEntry]] = None):
        self.entries: tuple[KnowledgeEntry, ...] = tuple(
            KNOWLEDGE_ENTRIES if entries is None else entries
        )

    def find_relevant_information(self, topic: str) -> str:
        """
        Find the definition most relevant to a topic.

        Args:
            topic: Free text topic or term.

        Returns:
            The definition of the exact match, else of the first partial match
            (topic contains term or term contains topic), else a fixed
            "no specific information" message naming the topic.
        """
        topic_lower = topic.lower()

        for entry in self.entries:
            if entry.term.lower() == topic_lower:
                return entry.definition

        for entry in self.entries:
            term_lower = entry.term.lower()
            if term_lower in topic_lower or topic_lower in term_lower:
                return entry.definition

        return FALLBACK_INFORMATION_TEMPLATE.format(topic=topic)

    def _first_related_entry(self, context: str) -> Optional[KnowledgeEntry]:
        context_lower = context.lower()
        for entry in self.entries:
            if entry.term.lower() in context_lower:
                return entry
        return None

    def get_suggested_questions(self, context: str) -> list[str]:
        """
        Get suggested follow-up questions for a piece of text.

        Args:
            context: Text to scan for known terms.

        Returns:
            Up to 3 "What is X?" questions built from the related terms of the
            first entry named in the text, or the default questions.
        """
        entry = self._first_related_entry(context)
        if entry is None:
            return list(DEFAULT_SUGGESTED_QUESTIONS)

        return [f"What is {term}?" for term in entry.related_terms[:MAX_SUGGESTIONS]]

    def get_related_topics(self, context: str) -> list[str]:
        """Like get_suggested_questions but returns the bare topics, or []."""
        entry = self._first_related_entry(context)
        if entry is None:
            return []
        return list(entry.related_terms[:MAX_SUGGESTIONS])

    def search(self, query: str) -> list[KnowledgeEntry]:
        """
        Search entries by substring.

        Args:
            query: Search text, case-insensitive.

        Returns:
            Entries whose term, definition or any related term contains the
            query, in table order.
        """
        query_lower = query.lower()
        return [
            entry for entry in self.entries
            if query_lower in entry.term.lower()
            or query_lower in entry.definition.lower()
            or any(query_lower in term.lower() for term in entry.related_terms)
        ]

    def get_all_terms(self) -> list[str]:
        """Get all entry terms in table order."""
        return [entry.term for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
