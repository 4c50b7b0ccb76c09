"""
Offline Response Generator

Builds replies from the knowledge base when the model is disabled or fails.
The pipeline is deterministic except for template selection:
intent -> knowledge base text -> user context -> suggestions -> confidence.
"""
from __future__ import annotations

import logging
import random
import re
from enum import Enum
from typing import Optional

from insurance_chat.knowledge_base import KnowledgeBase
from insurance_chat.mappings import (
    CATEGORY_SUGGESTIONS,
    COMMON_QUESTIONS,
    FALLBACK_MARKER,
    find_policy_type,
    get_response_template,
)
from insurance_chat.prompt_builder import format_currency
from insurance_chat.query_classifier import classify_intent, mentions_any
from insurance_chat.schemas import (
    ExtractedContext,
    FormattedResponse,
    Intent,
    PolicyInfo,
    QuestionCategory,
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

# Words that point back at something said earlier in the conversation
BACK_REFERENCE_WORDS = ["this", "that", "it", "these", "those"]

# Confidence scoring
FALLBACK_CONFIDENCE = 0.5
APOLOGY_CONFIDENCE = 0.3
BASE_CONFIDENCE = 0.7
DETAIL_BONUS = 0.05
MAX_CONFIDENCE = 0.95
ERROR_CONFIDENCE = 0.0
APOLOGY_MARKERS = ["I apologize", "I'm having trouble"]
DETAIL_MARKERS = ["feature", "benefit", "cover", "policy", "premium", "underwriting"]

# Knowledge base topic used when the query names no known term
INTENT_TOPICS = {
    Intent.TERM_DEFINITION: "premium",
    Intent.COVERAGE_QUESTION: "death benefit",
    Intent.HEALTH_QUESTION: "medical underwriting",
    Intent.CLAIMS_QUESTION: "claim process",
}

ERROR_MESSAGE = (
    "I apologize, but I'm having trouble processing your request. "
    "Please try rephrasing your question or contact our support team for assistance."
)

ERROR_SUGGESTIONS = [
    "Can you explain your insurance needs?",
    "What type of coverage are you looking for?",
    "Would you like to speak with an insurance agent?",
]

GENERIC_REFERENCE_PATTERN = re.compile(r"\b(your coverage|your policy)\b")
PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


class Placeholder(str, Enum):
    """Every {{key}} a reply or template is allowed to contain."""
    POLICY_TYPE = "policyType"
    COVERAGE_AMOUNT = "coverageAmount"
    HEALTH_STATUS = "healthStatus"
    AGE = "age"
    CATEGORY = "category"
    DESCRIPTION = "description"
    FEATURES = "features"
    BEST_FOR = "bestFor"
    TERM = "term"
    DEFINITION = "definition"


def fill_placeholders(text: str, values: dict[Placeholder, str]) -> str:
    """
    Replace known {{key}} placeholders.

    Args:
        text: Text that may contain placeholders.
        values: Replacement per placeholder kind.

    Returns:
        Text with every resolvable placeholder replaced. Unknown keys and
        kinds without a value are left untouched.
    """
    def _substitute(match: re.Match) -> str:
        try:
            kind = Placeholder(match.group(1))
        except ValueError:
            return match.group(0)
        return values.get(kind, match.group(0))

    return PLACEHOLDER_PATTERN.sub(_substitute, text)


def context_placeholder_values(context: ExtractedContext) -> dict[Placeholder, str]:
    values = {Placeholder.CATEGORY: context.category.value}
    if context.policy_type:
        values[Placeholder.POLICY_TYPE] = context.policy_type
    if context.coverage_amount:
        values[Placeholder.COVERAGE_AMOUNT] = format_currency(context.coverage_amount)
    if context.health_status:
        values[Placeholder.HEALTH_STATUS] = context.health_status
    if context.age:
        values[Placeholder.AGE] = str(context.age)
    return values


def lowercase_first_word(text: str) -> str:
    """
    Lower-case the first letter so the text can continue a sentence.

    "I", "I'm" and acronyms such as "AD&D" keep their case.
    """
    first_word = text.split(" ", 1)[0].split("'", 1)[0].rstrip(",.:;")
    if not first_word or first_word.isupper():
        return text
    return text[0].lower() + text[1:]


def calculate_confidence(response: str) -> float:
    """
    Score how trustworthy a generated reply is.

    Args:
        response: The final reply text.

    Returns:
        0.5 for the "no specific information" text, 0.3 for apologies,
        otherwise 0.7 plus 0.05 per detail marker, capped at 0.95.
    """
    if FALLBACK_MARKER in response:
        return FALLBACK_CONFIDENCE

    if any(marker in response for marker in APOLOGY_MARKERS):
        return APOLOGY_CONFIDENCE

    detail_count = sum(1 for marker in DETAIL_MARKERS if marker in response)
    return min(BASE_CONFIDENCE + detail_count * DETAIL_BONUS, MAX_CONFIDENCE)


class ResponseGenerator:
    """
    Knowledge-base backed reply generator.
    Never raises from generate_response: failures become the apology reply.
    """

    def __init__(self, knowledge_base: KnowledgeBase, rng: Optional[random.Random] = None):
        self.knowledge_base = knowledge_base
        self.rng = rng or random.Random()

    def generate_response(
        self,
        user_query: str,
        previous_messages: Optional[list[str]] = None,
        user_data: Optional[ExtractedContext] = None,
    ) -> FormattedResponse:
        """
        Generate a reply for a query.

        Args:
            user_query: The user's question.
            previous_messages: Earlier transcript texts, oldest first.
            user_data: Context extracted for the session.

        Returns:
            FormattedResponse with message, suggestions, related topics and
            confidence.
        """
        try:
            intent = classify_intent(user_query)
            topic = self._resolve_topic(intent, user_query, user_data)
            relevant_info = self.knowledge_base.find_relevant_information(topic)

            response = self.apply_context(relevant_info, previous_messages, user_data)

            category = user_data.category if user_data else None
            return self.format_response(response, category)
        except Exception as e:
            logger.error(f"Error generating response: {e}", exc_info=True)
            return self.generate_error_response(e)

    def _resolve_topic(
        self,
        intent: Intent,
        query: str,
        user_data: Optional[ExtractedContext],
    ) -> str:
        """
        Pick the knowledge base topic to look up for an intent.

        A term named in the query always wins. Otherwise policy explanations
        use the detected policy type and the other intents use their
        overview topic. General queries are looked up as typed.
        """
        query_lower = query.lower()
        for term in self.knowledge_base.get_all_terms():
            if term.lower() in query_lower:
                return term

        if intent == Intent.POLICY_EXPLANATION and user_data and user_data.policy_type:
            return f"{user_data.policy_type} life insurance"

        if intent == Intent.GENERAL:
            return query

        return INTENT_TOPICS.get(intent, intent.value)

    def apply_context(
        self,
        base_response: str,
        previous_messages: Optional[list[str]] = None,
        user_data: Optional[ExtractedContext] = None,
    ) -> str:
        """
        Personalize a base reply with user context and conversation history.

        Args:
            base_response: Text from the knowledge base.
            previous_messages: Earlier transcript texts, oldest first.
            user_data: Context extracted for the session.

        Returns:
            The contextualized reply.
        """
        response = base_response

        if user_data:
            response = fill_placeholders(response, context_placeholder_values(user_data))

            # Personalize based on coverage amount
            if user_data.coverage_amount:
                formatted_amount = format_currency(user_data.coverage_amount)
                if "coverage" in response or "policy" in response:
                    response = GENERIC_REFERENCE_PATTERN.sub(
                        f"your {formatted_amount} coverage", response
                    )

            # Personalize based on policy type
            if user_data.policy_type:
                policy_info = find_policy_type(user_data.policy_type)
                if policy_info:
                    response = self.enhance_with_policy_details(response, policy_info)

        # Consider conversation history for context continuity
        if previous_messages:
            last_two = previous_messages[-2:]
            if any(mentions_any(msg, BACK_REFERENCE_WORDS) for msg in last_two):
                terms = self.extract_terms_from_messages(last_two)
                if terms:
                    response = self.enrich_response_with_terms(response, terms)

        return response

    def enhance_with_policy_details(self, response: str, policy_info: PolicyInfo) -> str:
        """
        Merge a policy type's features and best-for lists into a reply.

        Skipped entirely when the reply already carries the policy's
        canonical description. Lists already present are not repeated.
        """
        if policy_info.description in response:
            return response

        features = ", ".join(policy_info.features)
        best_for = ", ".join(policy_info.best_for)

        response = fill_placeholders(
            response,
            {
                Placeholder.DESCRIPTION: policy_info.description,
                Placeholder.FEATURES: features,
                Placeholder.BEST_FOR: best_for,
            },
        )

        additions = []
        if features not in response:
            additions.append(f"Key features of {policy_info.name.lower()}: {features}.")
        if best_for not in response:
            additions.append(f"It is often best for: {best_for}.")

        if additions:
            response = f"{response}\n\n" + " ".join(additions)

        return response

    def extract_terms_from_messages(self, messages: list[str]) -> list[str]:
        """Known terms mentioned in the messages, first mention first, no duplicates."""
        terms: list[str] = []
        all_terms = self.knowledge_base.get_all_terms()

        for message in messages:
            message_lower = message.lower()
            for term in all_terms:
                if term.lower() in message_lower and term not in terms:
                    terms.append(term)

        return terms

    def enrich_response_with_terms(self, response: str, terms: list[str]) -> str:
        if not terms:
            return response

        term = terms[0]
        if term.lower() in response.lower():
            return response

        return f"Regarding {term}, {lowercase_first_word(response)}"

    def format_response(
        self,
        response: str,
        category: Optional[QuestionCategory] = None,
    ) -> FormattedResponse:
        """
        Attach suggestions, related topics and confidence to a reply.

        Args:
            response: The contextualized reply text.
            category: Category of the user's question.

        Returns:
            FormattedResponse with at most 3 unique suggestions.
        """
        suggestions = self.knowledge_base.get_suggested_questions(response)

        if category:
            for suggestion in self.get_suggestions_by_category(category):
                if suggestion not in suggestions:
                    suggestions.append(suggestion)

        return FormattedResponse(
            message=response,
            suggestions=suggestions[:MAX_SUGGESTIONS],
            related_topics=self.knowledge_base.get_related_topics(response),
            confidence=calculate_confidence(response),
        )

    @staticmethod
    def get_suggestions_by_category(category: QuestionCategory) -> list[str]:
        return list(CATEGORY_SUGGESTIONS.get(category, COMMON_QUESTIONS["coverage"]))

    def generate_templated_response(self, intent: Intent | str, variables: dict) -> str:
        """
        Fill one of an intent's response templates.

        Args:
            intent: Intent whose templates to use.
            variables: Values keyed by placeholder name (e.g. "policyType").

        Returns:
            The filled template, or a message explaining that the template or
            some required context is missing.
        """
        template = get_response_template(intent)
        intent_name = intent.value if isinstance(intent, Intent) else intent

        if not template:
            return (
                f'I don\'t have a template for "{intent_name}". '
                "Let me provide you with general information instead."
            )

        missing = [name for name in template.context_required if not variables.get(name)]
        if missing:
            return f"I need more information about {', '.join(missing)} to answer that fully."

        values = {}
        for name, value in variables.items():
            try:
                values[Placeholder(name)] = str(value)
            except ValueError:
                logger.debug(f"Ignoring unknown template variable: {name}")

        chosen = self.rng.choice(template.responses)
        return fill_placeholders(chosen, values)

    def generate_error_response(self, error: Exception) -> FormattedResponse:
        """
        Build the canned reply used when generation fails.

        Confidence is 0.0: this is the least informative reply the generator
        can produce.
        """
        logger.error(f"Generating error response: {error}")

        return FormattedResponse(
            message=ERROR_MESSAGE,
            suggestions=list(ERROR_SUGGESTIONS),
            related_topics=[],
            confidence=ERROR_CONFIDENCE,
        )
