"""Rule-based topic classifier.

Every scorable category collects points from its keyword and pattern tables:

* +2 for each category keyword found in the lowercased ``title + content``
* +1 for each category keyword that is also one of the document's own keywords
* +3 for each regex match

Exclusivity rules then pin a category to ``FORCED_SCORE`` when decisive
phrases appear in the title or the opening of the body, and hard-evidence
rules zero a category whose defining vocabulary is absent. Scores are
turned into confidences with ``min(score / ceiling, 1.0)``.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from docindex.core.config import settings
from docindex.core.constants import FileType, SPREADSHEET_EXTENSIONS
from docindex.services.classification.categories import (
    BIDDING_CATEGORY_ID,
    CATEGORY_DEFINITIONS,
    EXCLUSIVITY_RULES,
    FIXED_LAYOUT_CATEGORY_ID,
    HARD_EVIDENCE_RULES,
    IMAGE_CATEGORY_ID,
    PRODUCT_CATEGORY_ID,
    REPORT_CATEGORY_ID,
    UNCATEGORIZED_ID,
    CategoryDefinition,
    ExclusivityRule,
    HardEvidenceRule,
    category_name,
    scorable_categories,
)
from docindex.services.classification.keywords import extract_keywords

logger = logging.getLogger(__name__)

FORCED_SCORE = 100.0


@dataclass(frozen=True)
class ClassificationResult:
    """One category assignment, produced by the rules, the AI path or a forced rule."""

    category_id: str
    category_name: str
    confidence: float
    matched_keywords: Tuple[str, ...] = ()
    matched_pattern_count: int = 0
    source: str = "rules"


@dataclass(frozen=True)
class ClassifierConfig:
    score_ceiling: float = 15.0
    confidence_threshold: float = 0.1
    max_categories: int = 2
    categories: Tuple[CategoryDefinition, ...] = field(default_factory=scorable_categories)
    exclusivity_rules: Tuple[ExclusivityRule, ...] = EXCLUSIVITY_RULES
    hard_evidence_rules: Tuple[HardEvidenceRule, ...] = HARD_EVIDENCE_RULES

    @classmethod
    def from_settings(cls) -> "ClassifierConfig":
        return cls(
            score_ceiling=settings.CLASSIFIER_SCORE_CEILING,
            confidence_threshold=settings.CLASSIFIER_CONFIDENCE_THRESHOLD,
            max_categories=settings.CLASSIFIER_MAX_CATEGORIES,
        )


def forced_result(category_id: str, source: str = "forced") -> ClassificationResult:
    return ClassificationResult(
        category_id=category_id,
        category_name=category_name(category_id),
        confidence=1.0,
        source=source,
    )


def _contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(phrase in text for phrase in phrases)


class TopicClassifier:
    """Deterministic, side-effect free document classifier."""

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig.from_settings()
        self._exclusive = {rule.category_id: rule for rule in self.config.exclusivity_rules}
        self._hard_evidence = {rule.category_id: rule for rule in self.config.hard_evidence_rules}

    def classify(self, content: str, title: str = "") -> List[ClassificationResult]:
        """Score every category and return the non-zero ones, best first.

        An empty or unmatched document yields a single uncategorized result
        with confidence 1.
        """
        content = content or ""
        title = title or ""
        full_text = f"{title} {content}".lower()
        lowered_title = title.lower()
        lead = content[:500].lower()
        doc_keywords = {k.keyword for k in extract_keywords(full_text, 100, 1)}

        results = []
        for category in self.config.categories:
            score = 0.0
            matched: List[str] = []
            for keyword in category.keywords:
                lowered = keyword.lower()
                if lowered in full_text:
                    score += 2
                    matched.append(keyword)
                if lowered in doc_keywords:
                    score += 1
                    if keyword not in matched:
                        matched.append(keyword)

            pattern_count = 0
            for pattern in category.patterns:
                hits = len(pattern.findall(full_text))
                if hits:
                    score += 3 * hits
                    pattern_count += 1

            rule = self._exclusive.get(category.id)
            if rule is not None and self._is_pinned(rule, lowered_title, lead):
                score = FORCED_SCORE

            evidence = self._hard_evidence.get(category.id)
            if evidence is not None and score > 0 and not _contains_any(full_text, evidence.phrases):
                score = 0.0

            if score > 0:
                results.append(ClassificationResult(
                    category_id=category.id,
                    category_name=category.name,
                    confidence=min(score / self.config.score_ceiling, 1.0),
                    matched_keywords=tuple(matched),
                    matched_pattern_count=pattern_count,
                ))

        results.sort(key=lambda r: r.confidence, reverse=True)
        if not results:
            results.append(forced_result(UNCATEGORIZED_ID, source="rules"))
        return results

    @staticmethod
    def _is_pinned(rule: ExclusivityRule, lowered_title: str, lead: str) -> bool:
        if _contains_any(lowered_title, (p.lower() for p in rule.title_phrases)):
            return True
        return _contains_any(lead[:rule.lead_length], (p.lower() for p in rule.lead_phrases))

    def get_document_categories(
        self,
        content: str,
        title: str = "",
        threshold: Optional[float] = None,
        max_categories: Optional[int] = None,
    ) -> List[ClassificationResult]:
        """Classify and de-noise down to the final assignment list."""
        threshold = self.config.confidence_threshold if threshold is None else threshold
        max_categories = self.config.max_categories if max_categories is None else max_categories

        results = [r for r in self.classify(content, title) if r.confidence >= threshold]

        by_id = {r.category_id: r for r in results}
        product = by_id.get(PRODUCT_CATEGORY_ID)
        bidding = by_id.get(BIDDING_CATEGORY_ID)
        if product and bidding and product.confidence >= bidding.confidence * 0.5:
            results = [r for r in results if r.category_id != BIDDING_CATEGORY_ID]

        if not results:
            return [forced_result(UNCATEGORIZED_ID, source="rules")]
        return results[:max_categories]

    def classify_file(self, file_type: str, extension: str, content: str, title: str) -> List[ClassificationResult]:
        """Apply the forced assignments for images, spreadsheets and fixed-layout files."""
        if file_type == FileType.IMAGE.value:
            return [forced_result(IMAGE_CATEGORY_ID)]
        if file_type == FileType.OFD.value:
            return [forced_result(FIXED_LAYOUT_CATEGORY_ID)]
        if extension.lower() in SPREADSHEET_EXTENSIONS:
            return [forced_result(REPORT_CATEGORY_ID)]
        return self.get_document_categories(content, title)


_default_classifier: Optional[TopicClassifier] = None


def get_classifier() -> TopicClassifier:
    """Get the process-wide classifier built from settings."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = TopicClassifier()
    return _default_classifier


def classify_document(content: str, title: str = "") -> List[ClassificationResult]:
    return get_classifier().classify(content, title)


def get_document_categories(
    content: str,
    title: str = "",
    threshold: Optional[float] = None,
    max_categories: Optional[int] = None,
) -> List[ClassificationResult]:
    return get_classifier().get_document_categories(content, title, threshold, max_categories)


def is_known_category(category_id: str) -> bool:
    return any(d.id == category_id for d in CATEGORY_DEFINITIONS)
