"""
Static Insurance Knowledge Tables for the Insurance Chat assistant.

Everything the offline reply path knows lives here: knowledge base entries,
policy type descriptions, the short glossary, response templates and the
canned follow-up questions for each category.

RULES:
- Tables are loaded once and never mutated at runtime
- Table order is significant: lookups return the first match
- Lowercase keys for policy types (term, whole, universal, variable)
"""
from __future__ import annotations
from typing import Optional

from insurance_chat.schemas import (
    GlossaryTerm,
    Intent,
    KnowledgeEntry,
    PolicyInfo,
    QuestionCategory,
    ResponseTemplate,
)


# ===========================================================================
# KNOWLEDGE BASE ENTRIES
# ===========================================================================

KNOWLEDGE_ENTRIES = (
    KnowledgeEntry(
        term="term life insurance",
        definition=(
            "Insurance that provides coverage for a specific period (term), typically 10, 20, "
            "or 30 years, with level premiums and no cash value component."
        ),
        category=QuestionCategory.BASIC,
        related_terms=("whole life insurance", "premium", "death benefit"),
    ),
    KnowledgeEntry(
        term="whole life insurance",
        definition=(
            "Permanent life insurance that provides coverage for your entire life, includes a "
            "cash value component, and typically has fixed premiums."
        ),
        category=QuestionCategory.BASIC,
        related_terms=("term life insurance", "cash value", "permanent insurance"),
    ),
    KnowledgeEntry(
        term="universal life insurance",
        definition=(
            "A type of permanent life insurance with flexible premiums and death benefits, where "
            "the cash value earns interest based on current market rates."
        ),
        category=QuestionCategory.BASIC,
        related_terms=("variable life insurance", "whole life insurance", "cash value"),
    ),
    KnowledgeEntry(
        term="medical underwriting",
        definition=(
            "The process insurers use to evaluate your health status, medical history, and other "
            "factors to determine risk and set premium rates."
        ),
        category=QuestionCategory.HEALTH,
        related_terms=("medical exam", "no-exam insurance", "risk classification"),
    ),
    KnowledgeEntry(
        term="pre-existing condition",
        definition=(
            "A health condition that existed before applying for insurance, which may affect "
            "eligibility, premium rates, or coverage limitations."
        ),
        category=QuestionCategory.HEALTH,
        related_terms=("exclusions", "medical underwriting", "guaranteed issue"),
    ),
    KnowledgeEntry(
        term="premium",
        definition=(
            "The amount paid to the insurance company to maintain coverage, which can be paid "
            "monthly, quarterly, semi-annually, or annually."
        ),
        category=QuestionCategory.POLICY,
        related_terms=("policy fee", "rate class", "payment mode"),
    ),
    KnowledgeEntry(
        term="death benefit",
        definition=(
            "The amount of money paid to beneficiaries upon the insured person's death, which is "
            "generally income tax-free."
        ),
        category=QuestionCategory.POLICY,
        related_terms=("beneficiary", "face value", "payout"),
    ),
    KnowledgeEntry(
        term="claim process",
        definition=(
            "The procedure beneficiaries follow to receive the death benefit, which typically "
            "involves submitting a death certificate and claim form."
        ),
        category=QuestionCategory.CLAIMS,
        related_terms=("beneficiary", "death benefit", "contestability period"),
    ),
)

# Returned by get_suggested_questions when nothing in the context matches
DEFAULT_SUGGESTED_QUESTIONS = (
    "What's the difference between term and whole life insurance?",
    "How much coverage do I need?",
    "How do I file a claim?",
)

FALLBACK_INFORMATION_TEMPLATE = (
    "I don't have specific information about \"{topic}\" in my knowledge base. "
    "Would you like to know about term life insurance, whole life insurance, "
    "or another insurance topic?"
)

# Marker used to recognise the fallback text inside a longer reply
FALLBACK_MARKER = "I don't have specific information"


# ===========================================================================
# POLICY TYPES
# ===========================================================================

POLICY_TYPES = (
    PolicyInfo(
        key="term",
        name="Term Life Insurance",
        description="Coverage for a specific period, typically 10-30 years",
        features=(
            "Lower premiums",
            "Fixed death benefit",
            "No cash value component",
            "Convertible to permanent insurance",
        ),
        best_for=(
            "Temporary coverage needs",
            "Budget-conscious individuals",
            "Young families",
            "Mortgage protection",
        ),
    ),
    PolicyInfo(
        key="whole",
        name="Whole Life Insurance",
        description="Permanent coverage that lasts your entire life",
        features=(
            "Guaranteed death benefit",
            "Builds cash value",
            "Fixed premiums",
            "Dividend potential",
        ),
        best_for=(
            "Lifetime coverage needs",
            "Estate planning",
            "Business succession",
            "Long-term savings goals",
        ),
    ),
    PolicyInfo(
        key="universal",
        name="Universal Life Insurance",
        description="Permanent coverage with flexible premiums and an adjustable death benefit",
        features=(
            "Flexible premium payments",
            "Adjustable death benefit",
            "Cash value earns interest",
        ),
        best_for=(
            "Changing income levels",
            "Lifetime coverage with flexibility",
        ),
    ),
    PolicyInfo(
        key="variable",
        name="Variable Life Insurance",
        description="Permanent coverage whose cash value is invested in market subaccounts",
        features=(
            "Investment subaccounts",
            "Cash value tied to market performance",
            "Guaranteed minimum death benefit",
        ),
        best_for=(
            "Investors comfortable with market risk",
            "Long-term growth goals",
        ),
    ),
)


# ===========================================================================
# GLOSSARY
# ===========================================================================

INSURANCE_TERMS = (
    GlossaryTerm("Premium", "The amount paid regularly to maintain insurance coverage", "basics"),
    GlossaryTerm(
        "Death Benefit",
        "The amount paid to beneficiaries upon the insured person's death",
        "benefits",
    ),
    GlossaryTerm(
        "Beneficiary",
        "The person or entity designated to receive the insurance payout",
        "basics",
    ),
    GlossaryTerm("Underwriting", "The process of evaluating risk to determine premium rates", "process"),
    GlossaryTerm("Cash Value", "The savings component of permanent life insurance policies", "features"),
)


# ===========================================================================
# RESPONSE TEMPLATES
# ===========================================================================

RESPONSE_TEMPLATES = (
    ResponseTemplate(
        intent=Intent.POLICY_EXPLANATION,
        responses=(
            "{{policyType}} provides {{description}}. Key features include: {{features}}",
            "A {{policyType}} policy is designed to {{description}}. "
            "You might consider this if you need: {{bestFor}}",
        ),
        context_required=("policyType",),
    ),
    ResponseTemplate(
        intent=Intent.TERM_DEFINITION,
        responses=(
            "{{term}} refers to {{definition}}",
            "In insurance terms, {{term}} means {{definition}}",
        ),
        context_required=("term",),
    ),
)


# ===========================================================================
# CANNED QUESTIONS
# ===========================================================================

COMMON_QUESTIONS = {
    "coverage": (
        "How much coverage do I need?",
        "What factors determine my coverage amount?",
        "Can I change my coverage amount later?",
    ),
    "health_related": (
        "Do I need a medical exam?",
        "How do pre-existing conditions affect my policy?",
        "What health factors impact my premium?",
    ),
    "claims": (
        "How do I file a claim?",
        "What documents are needed for a claim?",
        "How long does claim processing take?",
    ),
}

POLICY_QUESTIONS = (
    "What's the difference between term and whole life insurance?",
    "Can I modify my policy after purchase?",
    "How does cash value work in a whole life policy?",
)

# Response generator suggestions per category
CATEGORY_SUGGESTIONS = {
    QuestionCategory.BASIC: COMMON_QUESTIONS["coverage"],
    QuestionCategory.HEALTH: COMMON_QUESTIONS["health_related"],
    QuestionCategory.POLICY: POLICY_QUESTIONS,
    QuestionCategory.CLAIMS: COMMON_QUESTIONS["claims"],
}

# Follow-up questions offered after a model reply
FOLLOW_UP_QUESTIONS = {
    QuestionCategory.BASIC: (
        "What types of life insurance are available?",
        "How much coverage do I need?",
        "What affects my insurance premium cost?",
    ),
    QuestionCategory.HEALTH: (
        "How do health conditions affect my coverage?",
        "Do I need a medical exam for insurance?",
        "Can I get insurance with pre-existing conditions?",
    ),
    QuestionCategory.POLICY: (
        "What's the difference between term and whole life?",
        "Can I modify my policy after purchase?",
        "How do premiums change over time?",
    ),
    QuestionCategory.CLAIMS: (
        "What documents are needed for a claim?",
        "How long does the claims process take?",
        "Who can file a claim?",
    ),
}

GENERIC_FOLLOW_UP_QUESTIONS = (
    "What types of insurance are you interested in?",
    "Do you have any specific coverage needs?",
    "Would you like to learn about term or whole life insurance?",
)


# ===========================================================================
# LOOKUP HELPERS
# ===========================================================================

def find_policy_type(name: str) -> Optional[PolicyInfo]:
    """
    Find a policy type by short key ("term") or full name ("Term Life Insurance").

    Args:
        name: Key or display name, any case.

    Returns:
        The matching PolicyInfo or None.
    """
    if not name:
        return None
    wanted = name.strip().lower()
    for policy in POLICY_TYPES:
        if wanted in (policy.key, policy.name.lower()):
            return policy
    return None


def find_term(search_term: str) -> Optional[GlossaryTerm]:
    """Find a glossary term by exact, case-insensitive name."""
    if not search_term:
        return None
    wanted = search_term.strip().lower()
    for term in INSURANCE_TERMS:
        if term.term.lower() == wanted:
            return term
    return None


def get_response_template(intent: Intent | str) -> Optional[ResponseTemplate]:
    for template in RESPONSE_TEMPLATES:
        if template.intent == intent or template.intent.value == intent:
            return template
    return None
