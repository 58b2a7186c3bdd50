"""Business logic service for the Outcome Tracker.

This module provides the MatchService class which handles:
- Scoring and persisting match results
- Recording (and correcting) hiring outcomes
- Calibration and rejection reporting per algorithm version
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from matchscore.config.settings import Settings, get_settings
from matchscore.scoring.models import MatchInput, MatchResult
from matchscore.scoring.service import MatchScoringService
from matchscore.tracker.calibration import (
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
    MatchRepository,
    PersistenceError,
    UnknownMatchResultError,
    UnknownOutcomeError,
)

logger = logging.getLogger(__name__)


class MatchService:
    """Coordinates scoring, persistence and outcome tracking.

    Scoring itself is pure; this class only adds the store. Saving and
    outcome recording are independent operations, so a failed save can be
    retried with the already computed result.
    """

    def __init__(
        self,
        repository: MatchRepository,
        scoring: MatchScoringService | None = None,
        settings: Settings | None = None,
    ):
        """Initialize the service.

        Args:
            repository: The MatchRepository instance for database access.
            scoring: Scoring service (defaults to one built from ScoringConfig).
            settings: Application settings (defaults to the singleton).
        """
        self.repository = repository
        self.scoring = scoring or MatchScoringService()
        self.settings = settings or get_settings()

    def evaluate(self, match_input: MatchInput | dict[str, Any]) -> MatchResult:
        """Score without persisting."""
        return self.scoring.evaluate(match_input)

    async def evaluate_and_store(
        self, match_input: MatchInput | dict[str, Any]
    ) -> tuple[str, MatchResult]:
        """Score and persist a match.

        Args:
            match_input: The snapshot to score.

        Returns:
            The stored id and the result.

        Raises:
            InputValidationError: If the input is invalid (nothing is stored).
            PersistenceError: If the save failed; ``error.result`` holds the
                computed result so the caller can retry with ``save_result``.
        """
        result = await self.scoring.evaluate_async(match_input)
        try:
            match_result_id = await self.save_result(result)
        except PersistenceError as e:
            e.result = result
            raise
        return match_result_id, result

    async def save_result(self, result: MatchResult) -> str:
        """Persist an already computed result and return its id."""
        match_result_id = await self.repository.insert_match_result(result)
        logger.info(
            "Stored match result %s (version=%s overall=%s)",
            match_result_id,
            result.version,
            result.overall_match,
        )
        return match_result_id

    async def get_result(self, match_result_id: str) -> StoredMatchResult | None:
        return await self.repository.get_match_result(match_result_id)

    async def record_outcome(
        self,
        match_result_id: str,
        outcome: OutcomeType | str,
        stage: str,
        rejection_category: RejectionCategory | str | None = None,
        rejection_reason: str | None = None,
        recorded_at: datetime | None = None,
    ) -> OutcomeRecord:
        """Record the terminal outcome of a match.

        Args:
            match_result_id: Id of the stored MatchResult.
            outcome: hired, rejected, withdrew or expired.
            stage: Pipeline stage at which the outcome happened.
            rejection_category: Rejection taxonomy entry (rejections only).
            rejection_reason: Optional free-text reason.
            recorded_at: Defaults to now.

        Returns:
            The stored OutcomeRecord.

        Raises:
            UnknownMatchResultError: If the match does not exist.
            DuplicateOutcomeError: If the match already has an outcome.
        """
        stored = await self.repository.get_match_result(match_result_id)
        if stored is None:
            raise UnknownMatchResultError(f"Unknown match result: {match_result_id}")

        recorded_at = recorded_at or datetime.now(UTC)
        record = OutcomeRecord(
            outcome_id=uuid.uuid4().hex,
            match_result_id=match_result_id,
            outcome=OutcomeType(outcome),
            stage=stage,
            rejection_category=RejectionCategory(rejection_category)
            if rejection_category
            else None,
            rejection_reason=rejection_reason,
            recorded_at=recorded_at,
            days_to_outcome=_days_between(stored.created_at, recorded_at),
        )
        await self.repository.insert_outcome(record)
        logger.info(
            "Recorded outcome %s for match %s (stage=%s)",
            record.outcome.value,
            match_result_id,
            stage,
        )
        return record

    async def correct_outcome(
        self,
        outcome_id: str,
        outcome: OutcomeType | str,
        stage: str,
        rejection_category: RejectionCategory | str | None = None,
        rejection_reason: str | None = None,
        recorded_at: datetime | None = None,
    ) -> OutcomeRecord:
        """Append a record that supersedes an existing outcome.

        The original record is never edited. Each record can be superseded
        once; correcting a record that was already corrected raises
        DuplicateOutcomeError.

        Raises:
            UnknownOutcomeError: If ``outcome_id`` does not exist.
            DuplicateOutcomeError: If the record was already corrected.
        """
        previous = await self.repository.get_outcome(outcome_id)
        if previous is None:
            raise UnknownOutcomeError(f"Unknown outcome: {outcome_id}")

        stored = await self.repository.get_match_result(previous.match_result_id)
        recorded_at = recorded_at or datetime.now(UTC)
        record = OutcomeRecord(
            outcome_id=uuid.uuid4().hex,
            match_result_id=previous.match_result_id,
            outcome=OutcomeType(outcome),
            stage=stage,
            rejection_category=RejectionCategory(rejection_category)
            if rejection_category
            else None,
            rejection_reason=rejection_reason,
            recorded_at=recorded_at,
            days_to_outcome=_days_between(stored.created_at, recorded_at)
            if stored
            else None,
            supersedes_outcome_id=outcome_id,
        )
        await self.repository.insert_outcome(record)
        logger.info(
            "Corrected outcome %s -> %s for match %s",
            outcome_id,
            record.outcome_id,
            previous.match_result_id,
        )
        return record

    async def outcome_history(self, match_result_id: str) -> list[OutcomeRecord]:
        return await self.repository.get_outcome_history(match_result_id)

    async def effective_outcome(self, match_result_id: str) -> OutcomeRecord | None:
        return await self.repository.get_effective_outcome(match_result_id)

    async def calibration_report(
        self,
        version: str,
        bucket_count: int | None = None,
        tolerance: float | None = None,
    ) -> CalibrationReport:
        """Build the reliability table for one algorithm version."""
        pairs = await self.repository.list_calibration_pairs(version)
        return build_calibration_report(
            version,
            pairs,
            bucket_count=bucket_count or self.settings.calibration_buckets,
            tolerance=self.settings.calibration_tolerance
            if tolerance is None
            else tolerance,
        )

    async def rejection_analysis(self, version: str | None = None) -> RejectionAnalysis:
        """Summarize effective rejections by category."""
        samples = await self.repository.list_rejections(version)
        return summarize_rejections(samples, version=version)


def _days_between(start: datetime, end: datetime) -> int:
    if start.tzinfo is None:
        start = start.replace(tzinfo=UTC)
    if end.tzinfo is None:
        end = end.replace(tzinfo=UTC)
    return max(0, (end - start).days)
