# AI INSTRUCTION:
# Flatten conversations into a single prompt string and keep the
# task templates used by the assistant actions.

from __future__ import annotations
from collections.abc import Mapping, Sequence
from typing import Any

LANGUAGE_NAMES = {
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "ja": "Japanese",
    "zh": "Chinese",
    "pt": "Portuguese",
    "it": "Italian",
    "ru": "Russian",
    "ko": "Korean",
}

DEFAULT_TASKS = {
    "translate": {
        "template": "Translate the following text to {language}:\n\n{text}",
        "max_tokens": 150,
    },
    "summarize": {
        "template": "Summarize this content in 2-3 sentences:\n\n{content}",
        "max_tokens": 100,
    },
    "proofread": {
        "template": (
            "Proofread and correct grammar in the following text. "
            "Only return the corrected text:\n\n{text}"
        ),
        "max_tokens": 150,
    },
    "rewrite": {
        "template": "Rewrite the following text for improved clarity, style, and conciseness:\n\n{text}",
        "max_tokens": 200,
    },
    "chat": {"max_tokens": 100},
}


def _entry_lines(entry: Any) -> list[str]:
    if isinstance(entry, str):
        return [entry]
    if isinstance(entry, Mapping):
        content = entry.get("content")
    elif hasattr(entry, "content"):
        content = entry.content
    else:
        return [""]
    if isinstance(content, str) and content:
        return [content]
    return []


def build_prompt(conversation: Any) -> str:
    """
    Join message contents one per line, in conversation order.

    Strings are taken as-is. Messages with empty or missing content are
    dropped; entries that are neither strings nor messages become "".
    None or a non-sequence yields "".
    """
    if conversation is None or isinstance(conversation, (str, bytes)):
        return ""
    if not isinstance(conversation, Sequence):
        return ""
    lines: list[str] = []
    for entry in conversation:
        lines.extend(_entry_lines(entry))
    return "\n".join(lines)


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, "English")
