"""
Output Cleaner for model reply sanitization.

Strips reasoning blocks, speaker prefixes and whitespace noise from raw model
output. Markdown is left alone: the chat surface renders it.
"""

import re


def remove_thinking_tags(text: str) -> str:
    """
    Remove any thinking/reasoning tags that some LLMs include.

    Args:
        text: LLM output text.

    Returns:
        Text with thinking tags removed.
    """
    if not text:
        return ""

    # Remove <think>...</think> and <thinking>...</thinking> blocks
    result = re.sub(r"<think(?:ing)?>.*?</think(?:ing)?>", "", text, flags=re.DOTALL | re.IGNORECASE)

    # Remove <reasoning>...</reasoning> blocks
    result = re.sub(r"<reasoning>.*?</reasoning>", "", result, flags=re.DOTALL | re.IGNORECASE)

    return result.strip()


def strip_speaker_prefix(text: str) -> str:
    """
    Drop a leading "Assistant:" label echoed back from the prompt.

    Args:
        text: LLM output text.

    Returns:
        Text without the label.
    """
    if not text:
        return ""

    return re.sub(r"^\s*(?:Assistant|Answer|Response)\s*:\s*", "", text, flags=re.IGNORECASE)


def clean_output(text: str) -> str:
    """
    Clean a raw model reply.

    Removes:
    - Thinking/reasoning blocks
    - Echoed speaker labels
    - Runs of more than one blank line
    - Trailing spaces and leading/trailing whitespace

    Args:
        text: Raw LLM output text.

    Returns:
        Cleaned text string.
    """
    if not text or not isinstance(text, str):
        return text or ""

    result = remove_thinking_tags(text)
    result = strip_speaker_prefix(result)

    # Remove trailing spaces at line ends
    result = re.sub(r"[ \t]+\n", "\n", result)

    # Collapse multiple newlines to max 2
    result = re.sub(r"\n{3,}", "\n\n", result)

    return result.strip()
