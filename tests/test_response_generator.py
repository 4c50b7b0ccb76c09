"""Tests for the offline response generator."""

import random

import pytest

from insurance_chat.context_extractor import extract_context
from insurance_chat.knowledge_base import KnowledgeBase
from insurance_chat.mappings import find_policy_type
from insurance_chat.response_generator import (
    ERROR_CONFIDENCE,
    ERROR_SUGGESTIONS,
    Placeholder,
    ResponseGenerator,
    calculate_confidence,
    fill_placeholders,
    lowercase_first_word,
)
from insurance_chat.schemas import ExtractedContext, Intent, KnowledgeEntry, QuestionCategory


@pytest.fixture
def generator(knowledge_base):
    return ResponseGenerator(knowledge_base, rng=random.Random(0))


class TestGenerateResponse:

    def test_term_versus_whole_scenario(self, generator):
        query = "What is the difference between term and whole life insurance?"
        response = generator.generate_response(query, user_data=extract_context(query))

        assert "entire life" in response.message
        assert "Key features of whole life insurance" in response.message
        assert 0.7 < response.confidence < 0.95
        assert response.confidence == pytest.approx(0.9)
        assert response.suggestions == [
            "What is term life insurance?",
            "What is cash value?",
            "What is permanent insurance?",
        ]
        assert response.related_topics == ["term life insurance", "cash value", "permanent insurance"]

    def test_named_term_is_looked_up(self, generator):
        response = generator.generate_response("What is a premium?")
        assert response.message.startswith("The amount paid to the insurance company")

    def test_claims_intent_uses_claim_process(self, generator):
        response = generator.generate_response("How do I file a claim?")
        assert "death certificate" in response.message

    def test_unknown_topic_falls_back(self, generator):
        response = generator.generate_response("Hello")
        assert "I don't have specific information" in response.message
        assert response.confidence == 0.5
        assert len(response.suggestions) <= 3

    def test_back_reference_prefixes_term(self, generator):
        response = generator.generate_response(
            "Can you explain more?",
            previous_messages=["Hi", "What is a premium?", "Tell me more about that"],
        )
        assert response.message.startswith("Regarding premium, ")

    def test_prefixed_reply_continues_the_sentence(self, generator):
        response = generator.generate_response(
            "Explain the claim process steps",
            previous_messages=["What is a premium?", "Is that monthly?"],
        )
        assert response.message.startswith("Regarding premium, the procedure beneficiaries follow")

    def test_no_prefix_without_back_reference(self, generator):
        response = generator.generate_response(
            "Can you explain more?",
            previous_messages=["Premium questions"],
        )
        assert not response.message.startswith("Regarding")

    def test_internal_failure_returns_error_response(self, knowledge_base, monkeypatch):
        generator = ResponseGenerator(knowledge_base)

        def explode(topic):
            raise RuntimeError("boom")

        monkeypatch.setattr(knowledge_base, "find_relevant_information", explode)
        response = generator.generate_response("What is a premium?")

        assert response.confidence == ERROR_CONFIDENCE == 0.0
        assert response.suggestions == ERROR_SUGGESTIONS
        assert response.related_topics == []
        assert "I apologize" in response.message


class TestApplyContext:

    def test_placeholders_are_filled(self, generator):
        text = generator.apply_context(
            "At {{age}} your category is {{category}}, {{unknown}} stays",
            user_data=ExtractedContext(category=QuestionCategory.HEALTH, age=40),
        )
        assert text == "At 40 your category is health, {{unknown}} stays"

    def test_coverage_phrase_is_rewritten(self, generator):
        text = generator.apply_context(
            "Review your policy every year.",
            user_data=ExtractedContext(coverage_amount=500_000),
        )
        assert text == "Review your $500,000 coverage every year."

    def test_policy_details_merged_once(self, generator):
        text = generator.apply_context("Some text.", user_data=ExtractedContext(policy_type="term"))
        assert "Key features of term life insurance: Lower premiums" in text
        assert "It is often best for: Temporary coverage needs" in text

    def test_policy_details_skipped_when_description_present(self, generator):
        policy = find_policy_type("term")
        base = f"{policy.description}."
        assert generator.apply_context(base, user_data=ExtractedContext(policy_type="term")) == base


class TestFormatting:

    def test_category_suggestions_fill_up_to_three(self):
        kb = KnowledgeBase([
            KnowledgeEntry("premium", "definition", QuestionCategory.POLICY, ("rate class",)),
        ])
        generator = ResponseGenerator(kb)
        response = generator.format_response("premium info", QuestionCategory.CLAIMS)
        assert response.suggestions == [
            "What is rate class?",
            "How do I file a claim?",
            "What documents are needed for a claim?",
        ]

    @pytest.mark.parametrize("text,expected", [
        ("I don't have specific information about that.", 0.5),
        ("I apologize for the confusion.", 0.3),
        ("Plain text.", 0.7),
        ("A policy premium.", 0.8),
        ("feature benefit cover policy premium underwriting", 0.95),
    ])
    def test_confidence(self, text, expected):
        assert calculate_confidence(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text,expected", [
        ("The procedure follows.", "the procedure follows."),
        ("I don't know.", "I don't know."),
        ("I'm not sure.", "I'm not sure."),
        ("AD&D riders vary.", "AD&D riders vary."),
        ("", ""),
    ])
    def test_lowercase_first_word(self, text, expected):
        assert lowercase_first_word(text) == expected


class TestTemplates:

    def test_fill_placeholders_only_known_keys(self):
        assert fill_placeholders("{{term}} / {{nope}}", {Placeholder.TERM: "Premium"}) == "Premium / {{nope}}"

    def test_templated_response(self, generator):
        text = generator.generate_templated_response(
            Intent.TERM_DEFINITION,
            {"term": "Premium", "definition": "the amount paid"},
        )
        assert text in (
            "Premium refers to the amount paid",
            "In insurance terms, Premium means the amount paid",
        )

    def test_templated_response_missing_context(self, generator):
        text = generator.generate_templated_response(Intent.POLICY_EXPLANATION, {})
        assert text == "I need more information about policyType to answer that fully."

    def test_templated_response_unknown_intent(self, generator):
        text = generator.generate_templated_response("claims_question", {})
        assert 'I don\'t have a template for "claims_question"' in text
