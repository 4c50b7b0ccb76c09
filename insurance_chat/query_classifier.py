"""
Keyword Query Classifier for routing insurance questions.

Classification is based on fixed signal words checked in priority order.
Two classifiers live here:
- categorize_question: coarse category (health, claims, policy, basic)
- classify_intent: finer intent used by the offline response generator
"""
from __future__ import annotations

import logging

from insurance_chat.schemas import Intent, QuestionCategory

logger = logging.getLogger(__name__)

# Configuration: Signal words for each category
# These can be modified without changing the classification logic

HEALTH_SIGNALS = [
    "health",
    "medical",
    "exam",
    "pre-existing",
    "condition",
    "diabetes",
    "smoker",
]

CLAIMS_SIGNALS = [
    "claim",
    "file",
    "beneficiary payout",
    "death certificate",
    "process claim",
]

POLICY_SIGNALS = [
    "policy",
    "coverage",
    "premium",
    "cash value",
    "term",
    "whole life",
    "universal",
    "variable",
    "permanent",
]

# Checked top to bottom; first hit wins
CATEGORY_SIGNALS = [
    (QuestionCategory.HEALTH, HEALTH_SIGNALS),
    (QuestionCategory.CLAIMS, CLAIMS_SIGNALS),
    (QuestionCategory.POLICY, POLICY_SIGNALS),
]

# Configuration: Signal words for each response intent
INTENT_SIGNALS = [
    (Intent.POLICY_EXPLANATION, ["term life", "whole life", "universal life", "variable life"]),
    (Intent.TERM_DEFINITION, ["premium", "cash value", "beneficiary", "underwriting"]),
    (Intent.COVERAGE_QUESTION, ["how much", "coverage", "amount"]),
    (Intent.HEALTH_QUESTION, ["health", "medical", "exam", "pre-existing"]),
    (Intent.CLAIMS_QUESTION, ["claim", "file", "process"]),
]


def categorize_question(question: str) -> QuestionCategory:
    """
    Categorize a question into one insurance domain.

    Args:
        question: The user's question string.

    Returns:
        One of health, claims, policy or basic.

    Classification rules (in order of priority):
    1. health: Contains a health signal
    2. claims: Contains a claims signal
    3. policy: Contains a policy signal
    4. basic: Everything else

    Never raises: unusable input is logged and categorized as basic.
    """
    try:
        question_lower = question.lower()
    except AttributeError as e:
        logger.error(f"Error categorizing question: {e}")
        return QuestionCategory.BASIC

    for category, signals in CATEGORY_SIGNALS:
        for signal in signals:
            if signal in question_lower:
                return category

    return QuestionCategory.BASIC


def classify_intent(query: str) -> Intent:
    """
    Classify the intent of a query for the response generator.

    Args:
        query: The user's question string.

    Returns:
        The first intent whose signal appears in the query,
        or the general insurance intent.
    """
    query_lower = query.lower()

    for intent, signals in INTENT_SIGNALS:
        if any(signal in query_lower for signal in signals):
            return intent

    return Intent.GENERAL


def mentions_any(text: str, signals: list[str]) -> bool:
    """
    Check whether any signal word appears in the text.

    Args:
        text: Text to scan.
        signals: Lowercase signal words.

    Returns:
        True if at least one signal is a substring of the lowercased text.
    """
    text_lower = text.lower()
    return any(signal in text_lower for signal in signals)
