from docindex.services.classification.classifier import (
    ClassificationResult,
    TopicClassifier,
    classify_document,
    get_classifier,
    get_document_categories,
)
from docindex.services.classification.keywords import (
    ExtractedKeyword,
    extract_keywords,
    extract_ngrams,
    keyword_similarity,
)
from docindex.services.classification.summarizer import generate_summary

__all__ = [
    "ClassificationResult",
    "TopicClassifier",
    "classify_document",
    "get_classifier",
    "get_document_categories",
    "ExtractedKeyword",
    "extract_keywords",
    "extract_ngrams",
    "keyword_similarity",
    "generate_summary",
]
