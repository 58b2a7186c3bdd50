"""Skill normalization against the controlled vocabulary."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from matchscore.scoring.classifier import (
    ClassificationUnavailable,
    SkillClassification,
    SkillClassifier,
)
from matchscore.scoring.config import ScoringConfig, get_scoring_config
from matchscore.scoring.models import MatchType, NormalizedSkill
from matchscore.scoring.taxonomy import SkillTaxonomy, normalize_skill

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 100
ALIAS_CONFIDENCE = 85
FUZZY_MIN_CONFIDENCE = 40
FUZZY_MAX_CONFIDENCE = 70
DEGRADED_CONFIDENCE = 20


class SkillNormalizer:
    """Resolve raw skill strings to canonical terms.

    Precedence, first match wins: exact, alias, fuzzy, then the optional
    classification collaborator. When the collaborator is missing or cannot
    answer, the entry degrades to a low-confidence fuzzy match on the raw
    string; one bad skill never fails the batch.
    """

    def __init__(
        self,
        taxonomy: SkillTaxonomy | None = None,
        classifier: SkillClassifier | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        self.config = config or get_scoring_config()
        self.taxonomy = taxonomy or SkillTaxonomy.default()
        self.classifier = classifier

    def normalize(self, skills: Sequence[str]) -> list[NormalizedSkill]:
        """Return one NormalizedSkill per input, in input order."""
        cache: dict[str, SkillClassification | None] = {}
        return [self._normalize_one(raw, cache) for raw in skills]

    def _normalize_one(
        self, raw: str, cache: dict[str, SkillClassification | None]
    ) -> NormalizedSkill:
        key = normalize_skill(raw)

        entry = self.taxonomy.lookup_exact(key)
        if entry is not None:
            return NormalizedSkill(
                original=raw,
                canonical=entry.canonical,
                category=entry.category,
                confidence=EXACT_CONFIDENCE,
                match_type=MatchType.EXACT,
            )

        entry = self.taxonomy.lookup_alias(key)
        if entry is not None:
            return NormalizedSkill(
                original=raw,
                canonical=entry.canonical,
                category=entry.category,
                confidence=ALIAS_CONFIDENCE,
                match_type=MatchType.ALIAS,
            )

        closest = self.taxonomy.closest(key, self.config.skill_fuzzy_threshold)
        if closest is not None:
            entry, ratio = closest
            return NormalizedSkill(
                original=raw,
                canonical=entry.canonical,
                category=entry.category,
                confidence=self._fuzzy_confidence(ratio),
                match_type=MatchType.FUZZY,
            )

        classification = self._classify(raw, key, cache)
        if classification is not None:
            normalized = self._from_classification(raw, classification)
            if normalized is not None:
                return normalized

        return NormalizedSkill(
            original=raw,
            canonical=key,
            category=None,
            confidence=DEGRADED_CONFIDENCE,
            match_type=MatchType.FUZZY,
        )

    def _fuzzy_confidence(self, ratio: float) -> int:
        threshold = self.config.skill_fuzzy_threshold
        span = FUZZY_MAX_CONFIDENCE - FUZZY_MIN_CONFIDENCE
        scaled = FUZZY_MIN_CONFIDENCE + (ratio - threshold) / (1.0 - threshold) * span
        return int(round(min(FUZZY_MAX_CONFIDENCE, max(FUZZY_MIN_CONFIDENCE, scaled))))

    def _classify(
        self, raw: str, key: str, cache: dict[str, SkillClassification | None]
    ) -> SkillClassification | None:
        if self.classifier is None or not key:
            return None
        if key in cache:
            return cache[key]

        result: SkillClassification | None
        try:
            result = self.classifier.classify(raw)
        except ClassificationUnavailable as e:
            logger.warning("Skill classification unavailable for %r: %s", raw, e)
            result = None
        except Exception as e:
            logger.warning(
                "Skill classifier raised %s for %r: %s", type(e).__name__, raw, e
            )
            result = None

        cache[key] = result
        return result

    def _from_classification(
        self, raw: str, classification: SkillClassification
    ) -> NormalizedSkill | None:
        canonical = normalize_skill(classification.canonical or "")
        if not canonical:
            return None

        category = classification.category
        entry = self.taxonomy.resolve(canonical)
        if entry is not None:
            canonical = entry.canonical
            category = entry.category

        cap = self.config.ai_confidence_cap
        if classification.confidence is None:
            confidence = cap
        else:
            confidence = int(round(min(float(cap), classification.confidence)))

        return NormalizedSkill(
            original=raw,
            canonical=canonical,
            category=category,
            confidence=confidence,
            match_type=MatchType.AI,
        )
