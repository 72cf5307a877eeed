"""Frequency-based keyword extraction for mixed Chinese/English text."""

import re
from collections import Counter
from dataclasses import dataclass
from typing import List

# Bilingual stopword list
STOP_WORDS = frozenset([
    # English
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "from", "as", "is", "was", "are", "were", "been", "be", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should", "may", "might", "must",
    "shall", "can", "need", "dare", "ought", "used", "it", "its", "this", "that",
    "these", "those", "i", "you", "he", "she", "we", "they", "what", "which", "who",
    "whom", "when", "where", "why", "how", "all", "each", "every", "both", "few",
    "more", "most", "other", "some", "such", "no", "nor", "not", "only", "own",
    "same", "so", "than", "too", "very", "just", "also", "now", "here", "there",
    # Chinese
    "的", "了", "和", "是", "就", "都", "而", "及", "与", "着", "或", "一个", "没有",
    "我们", "你们", "他们", "它们", "这个", "那个", "这些", "那些", "什么", "怎么",
    "如何", "为什么", "因为", "所以", "但是", "然而", "如果", "虽然", "即使",
    "不", "也", "又", "还", "再", "更", "最", "很", "非常", "可以", "能够", "应该",
])

_STRIP = re.compile(r"[^\w\u4e00-\u9fa5\s]")
_LATIN = re.compile(r"[a-z]+")
_CJK_RUN = re.compile(r"[\u4e00-\u9fa5]+")

MIN_LATIN_LENGTH = 3
CJK_GRAM_SIZES = range(2, 5)


@dataclass(frozen=True)
class ExtractedKeyword:
    keyword: str
    weight: float
    frequency: int


def _clean(text: str) -> str:
    return _STRIP.sub(" ", text.lower())


def tokenize(text: str) -> List[str]:
    """Split text into Latin words and overlapping 2-4 character CJK grams."""
    cleaned = _clean(text)
    tokens = [word for word in _LATIN.findall(cleaned) if len(word) >= MIN_LATIN_LENGTH]
    for run in _CJK_RUN.findall(cleaned):
        for size in CJK_GRAM_SIZES:
            if size > len(run):
                break
            tokens.extend(run[i:i + size] for i in range(len(run) - size + 1))
    return tokens


def extract_keywords(text: str, max_keywords: int = 20, min_frequency: int = 2) -> List[ExtractedKeyword]:
    """Return the most frequent non-stopword terms of ``text``.

    Weight is the term frequency normalised by the number of kept tokens.
    Terms seen fewer than ``min_frequency`` times are dropped.
    """
    tokens = [token for token in tokenize(text) if token not in STOP_WORDS]
    if not tokens:
        return []

    total = len(tokens)
    counts = Counter(tokens)
    keywords = [
        ExtractedKeyword(keyword=token, weight=count / total, frequency=count)
        for token, count in counts.items()
        if count >= min_frequency
    ]
    # Stable sort keeps first-seen order among equal weights
    keywords.sort(key=lambda k: k.weight, reverse=True)
    return keywords[:max_keywords]


def extract_ngrams(text: str, n: int = 2) -> List[str]:
    """Word n-grams over whitespace-separated tokens, stopwords removed."""
    words = [
        word for word in _clean(text).split()
        if len(word) > 1 and word not in STOP_WORDS
    ]
    return [" ".join(words[i:i + n]) for i in range(len(words) - n + 1)]


def keyword_similarity(text_a: str, text_b: str) -> float:
    """Jaccard overlap of the top-50 keyword sets of two texts."""
    keywords_a = {k.keyword for k in extract_keywords(text_a, 50, 1)}
    keywords_b = {k.keyword for k in extract_keywords(text_b, 50, 1)}
    union = keywords_a | keywords_b
    if not union:
        return 0.0
    return len(keywords_a & keywords_b) / len(union)
