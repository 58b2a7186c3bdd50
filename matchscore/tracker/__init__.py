"""Outcome tracking and calibration.

This module links realized hiring outcomes to the predictions that
preceded them and reports how well predictions track reality.

Public API:
- MatchService: Main service for storing results and recording outcomes
- MatchRepository: Database repository for results and outcomes
- OutcomeRecord: Data model for outcome records
- OutcomeType / RejectionCategory: Enums for outcome values
- build_calibration_report: Reliability table builder
"""

from matchscore.tracker.calibration import (
    CalibrationBucket,
    CalibrationReport,
    RejectionAnalysis,
    build_calibration_report,
    summarize_rejections,
)
from matchscore.tracker.models import (
    OutcomeRecord,
    OutcomeType,
    RejectionCategory,
    StoredMatchResult,
)
from matchscore.tracker.repository import (
    DuplicateOutcomeError,
    MatchRepository,
    PersistenceError,
    UnknownMatchResultError,
    UnknownOutcomeError,
)
from matchscore.tracker.service import MatchService

__all__ = [
    "MatchService",
    "MatchRepository",
    "OutcomeRecord",
    "OutcomeType",
    "RejectionCategory",
    "StoredMatchResult",
    "CalibrationBucket",
    "CalibrationReport",
    "RejectionAnalysis",
    "build_calibration_report",
    "summarize_rejections",
    "DuplicateOutcomeError",
    "PersistenceError",
    "UnknownMatchResultError",
    "UnknownOutcomeError",
]
