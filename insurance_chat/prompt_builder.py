"""
Prompt Builder for model-backed insurance replies.

- Fixed system instructions that cannot be user-influenced
- Known context (policy type, coverage, health, age) appended as plain facts
- Conversation category stated last so the model keeps its focus
"""
from __future__ import annotations

from insurance_chat.schemas import ExtractedContext

# System instruction - NEVER user-influenced
SYSTEM_INSTRUCTION = """You are an expert insurance advisor specializing in life and health insurance.
Provide helpful, accurate, and concise responses about insurance topics.
Base your responses on factual information about insurance products, policies, and industry standards.
Always maintain a professional and supportive tone."""


def format_currency(amount: float) -> str:
    """Format an amount as whole US dollars, e.g. 500000 -> "$500,000"."""
    return f"${amount:,.0f}"


def build_context_lines(context: ExtractedContext) -> list[str]:
    """
    Describe the known user facts, one sentence each.

    Args:
        context: Accumulated context for the session.

    Returns:
        Sentences for every fact that is set, in a fixed order.
    """
    lines = []
    if context.policy_type:
        lines.append(f"The user is asking about {context.policy_type} life insurance.")
    if context.coverage_amount:
        lines.append(
            f"The user is interested in coverage around {format_currency(context.coverage_amount)}."
        )
    if context.health_status:
        lines.append(f"The user has mentioned {context.health_status} as a health consideration.")
    if context.age:
        lines.append(f"The user is {context.age} years old.")
    return lines


def build_prompt(query: str, context: ExtractedContext) -> str:
    """
    Build a complete prompt for the model.

    Args:
        query: The user's question.
        context: Known facts about the user.

    Returns:
        A prompt with system instruction, context, category and the question.
    """
    sections = [SYSTEM_INSTRUCTION]

    context_lines = build_context_lines(context)
    if context_lines:
        sections.append("\n".join(context_lines))

    sections.append(f"Current conversation category: {context.category.value}")

    system_prompt = "\n\n".join(sections)

    return f"""{system_prompt}

User: {query}

Assistant:"""
