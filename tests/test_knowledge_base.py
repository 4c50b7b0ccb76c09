"""Tests for knowledge base lookup, search and suggestions."""

from insurance_chat.knowledge_base import KnowledgeBase
from insurance_chat.mappings import (
    DEFAULT_SUGGESTED_QUESTIONS,
    FALLBACK_MARKER,
    find_policy_type,
    find_term,
    get_response_template,
)
from insurance_chat.schemas import Intent, KnowledgeEntry, QuestionCategory


class TestFindRelevantInformation:

    def test_exact_match(self, knowledge_base):
        info = knowledge_base.find_relevant_information("Premium")
        assert info.startswith("The amount paid to the insurance company")

    def test_topic_contains_term(self, knowledge_base):
        info = knowledge_base.find_relevant_information("tell me about whole life insurance please")
        assert "entire life" in info

    def test_term_contains_topic(self, knowledge_base):
        info = knowledge_base.find_relevant_information("underwriting")
        assert "evaluate your health status" in info

    def test_first_partial_match_in_table_order(self):
        kb = KnowledgeBase([
            KnowledgeEntry("alpha beta", "first", QuestionCategory.BASIC),
            KnowledgeEntry("beta gamma", "second", QuestionCategory.BASIC),
        ])
        assert kb.find_relevant_information("beta") == "first"

    def test_fallback(self, knowledge_base):
        info = knowledge_base.find_relevant_information("pet insurance")
        assert FALLBACK_MARKER in info
        assert '"pet insurance"' in info
        assert "term life insurance" in info and "whole life insurance" in info


class TestSuggestions:

    def test_related_terms_as_questions(self, knowledge_base):
        questions = knowledge_base.get_suggested_questions("Tell me about term life insurance")
        assert questions == [
            "What is whole life insurance?",
            "What is premium?",
            "What is death benefit?",
        ]

    def test_defaults_when_nothing_matches(self, knowledge_base):
        assert knowledge_base.get_suggested_questions("hello") == list(DEFAULT_SUGGESTED_QUESTIONS)

    def test_related_topics(self, knowledge_base):
        assert knowledge_base.get_related_topics("What's a death benefit?") == [
            "beneficiary", "face value", "payout",
        ]
        assert knowledge_base.get_related_topics("hello") == []


class TestSearch:

    def test_search_matches_term_definition_and_related(self, knowledge_base):
        terms = [entry.term for entry in knowledge_base.search("beneficiar")]
        assert terms == ["death benefit", "claim process"]

    def test_search_is_case_insensitive(self, knowledge_base):
        assert knowledge_base.search("TERM LIFE") == knowledge_base.search("term life")

    def test_search_is_idempotent(self, knowledge_base):
        first = knowledge_base.search("term life")
        second = knowledge_base.search("term life")
        assert first == second
        assert [entry.term for entry in first] == ["term life insurance", "whole life insurance"]

    def test_search_no_results(self, knowledge_base):
        assert knowledge_base.search("xyz") == []


class TestLookupTables:

    def test_find_policy_type_by_key_or_name(self):
        assert find_policy_type("term").name == "Term Life Insurance"
        assert find_policy_type("Whole Life Insurance").key == "whole"
        assert find_policy_type("pet") is None
        assert find_policy_type("") is None

    def test_find_term(self):
        assert find_term("cash value").definition.startswith("The savings component")
        assert find_term("unknown") is None

    def test_get_response_template(self):
        template = get_response_template(Intent.TERM_DEFINITION)
        assert template.context_required == ("term",)
        assert get_response_template("policy_explanation").intent == Intent.POLICY_EXPLANATION
        assert get_response_template(Intent.CLAIMS_QUESTION) is None
