"""
Context Extractor for personalizing insurance replies.

Pulls a small set of structured facts out of free text with fixed patterns:
- Policy type ("term life", "whole life", ...)
- Coverage amount ("$500k", "$1M", "250 thousand dollars", "$500,000")
- Age ("40 years old", "35 yo")
- Health status (pre-existing condition, smoker, good health)
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from insurance_chat.query_classifier import categorize_question
from insurance_chat.schemas import ExtractedContext, QuestionCategory

logger = logging.getLogger(__name__)

# Checked in order; first match wins
POLICY_TYPE_PHRASES = [
    ("term life", "term"),
    ("whole life", "whole"),
    ("universal life", "universal"),
    ("variable life", "variable"),
]

# Alternation: $N with optional k/thousand/m/million suffix, or "N thousand|million dollars"
COVERAGE_PATTERN = re.compile(
    r"\$(\d[\d,]*(?:\.\d+)?)(?:\s*(k|thousand|m|million)\b)?"
    r"|(\d[\d,]*(?:\.\d+)?)\s+(thousand|million)\s+dollars",
    re.IGNORECASE,
)

UNIT_MULTIPLIERS = {
    None: 1,
    "k": 1_000,
    "thousand": 1_000,
    "m": 1_000_000,
    "million": 1_000_000,
}

AGE_PATTERN = re.compile(r"\b(\d{1,2})[\s-]*(?:years?\s*old|year-old|yo)\b", re.IGNORECASE)

# Checked in order; only one status is ever set
HEALTH_STATUS_SIGNALS = [
    ("pre-existing condition", ["diabetes", "high blood pressure", "heart condition"]),
    ("smoker", ["smoker", "smoke cigarettes"]),
    ("good health", ["excellent health", "good health"]),
]


def extract_policy_type(query: str) -> Optional[str]:
    query_lower = query.lower()
    for phrase, policy_type in POLICY_TYPE_PHRASES:
        if phrase in query_lower:
            return policy_type
    return None


def extract_coverage_amount(query: str) -> Optional[float]:
    """
    Extract the first coverage amount mentioned in the query.

    Args:
        query: The user's question string.

    Returns:
        The amount in dollars, or None when nothing matches or the amount
        is not positive.
    """
    match = COVERAGE_PATTERN.search(query)
    if not match:
        return None

    if match.group(1) is not None:
        raw_value, unit = match.group(1), match.group(2)
    else:
        raw_value, unit = match.group(3), match.group(4)

    try:
        value = float(raw_value.replace(",", ""))
    except ValueError:
        return None

    amount = value * UNIT_MULTIPLIERS[unit.lower() if unit else None]
    if amount <= 0:
        return None
    if amount.is_integer():
        return int(amount)
    return amount


def extract_age(query: str) -> Optional[int]:
    match = AGE_PATTERN.search(query)
    if not match:
        return None
    age = int(match.group(1))
    # Basic validation
    if 0 < age < 120:
        return age
    return None


def extract_health_status(query: str) -> Optional[str]:
    query_lower = query.lower()
    for status, signals in HEALTH_STATUS_SIGNALS:
        if any(signal in query_lower for signal in signals):
            return status
    return None


def extract_context(
    query: str,
    category: Optional[QuestionCategory] = None,
) -> ExtractedContext:
    """
    Extract structured context from a query.

    Args:
        query: The user's question string.
        category: Category already determined for the query. When omitted the
            query is categorized here.

    Returns:
        ExtractedContext with only the fields that were found. Never raises:
        on failure the context carries the category alone.
    """
    if category is None:
        category = categorize_question(query)

    try:
        return ExtractedContext(
            category=category,
            policy_type=extract_policy_type(query),
            coverage_amount=extract_coverage_amount(query),
            age=extract_age(query),
            health_status=extract_health_status(query),
        )
    except (AttributeError, TypeError) as e:
        logger.error(f"Error extracting context: {e}")
        return ExtractedContext(category=category)
