"""Candidate-job match scoring.

This module evaluates eligibility gates, fit and constraint scores for one
candidate/job snapshot and blends them into an explained match result.

Public API:
    - MatchScoringService: Main scoring service
    - MatchInput: Input snapshot model
    - MatchResult: Evaluation output model
    - SkillNormalizer / SkillTaxonomy: Skill canonicalization
    - ScoringConfig: Configuration settings
"""

from matchscore.scoring.classifier import (
    ClassificationUnavailable,
    LLMSkillClassifier,
    SkillClassification,
    SkillClassifier,
)
from matchscore.scoring.config import ScoringConfig, get_scoring_config, reset_scoring_config
from matchscore.scoring.models import (
    CandidateSnapshot,
    Explainability,
    GateName,
    GateResult,
    GateVerdict,
    InputValidationError,
    JobSnapshot,
    MatchInput,
    MatchResult,
    MatchType,
    MomentumSignals,
    NormalizedSkill,
)
from matchscore.scoring.normalizer import SkillNormalizer
from matchscore.scoring.service import MatchScoringService
from matchscore.scoring.taxonomy import SkillTaxonomy, load_taxonomy

__all__ = [
    "MatchScoringService",
    "MatchInput",
    "CandidateSnapshot",
    "JobSnapshot",
    "MomentumSignals",
    "MatchResult",
    "GateResult",
    "GateName",
    "GateVerdict",
    "Explainability",
    "NormalizedSkill",
    "MatchType",
    "InputValidationError",
    "SkillNormalizer",
    "SkillTaxonomy",
    "load_taxonomy",
    "SkillClassifier",
    "SkillClassification",
    "LLMSkillClassifier",
    "ClassificationUnavailable",
    "ScoringConfig",
    "get_scoring_config",
    "reset_scoring_config",
]
