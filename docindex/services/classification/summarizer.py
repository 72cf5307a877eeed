"""Extractive summaries built from the leading sentences of a document."""

import re

_WHITESPACE = re.compile(r"\s+")
_SENTENCE_END = re.compile(r"[。！？.!?]+")

MIN_SENTENCE_LENGTH = 10


def generate_summary(content: str, max_length: int = 300) -> str:
    """Join leading sentences longer than ten characters up to ``max_length``.

    Falls back to plain truncation when the text has no usable sentences.
    """
    cleaned = _WHITESPACE.sub(" ", content or "").strip()
    sentences = [s.strip() for s in _SENTENCE_END.split(cleaned) if len(s.strip()) > MIN_SENTENCE_LENGTH]

    if not sentences:
        return cleaned[:max_length]

    summary = ""
    for sentence in sentences:
        if len(summary) + len(sentence) > max_length:
            break
        summary += sentence + "。"

    if not summary:
        summary = sentences[0][:max_length] + "..."
    return summary
