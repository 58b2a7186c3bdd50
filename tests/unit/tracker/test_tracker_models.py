"""Tests for Outcome Tracker models."""

from datetime import UTC, datetime

import pytest


class TestOutcomeRecord:
    """Test OutcomeRecord validation."""

    def test_creates_rejection_with_category(self):
        """Rejections may carry a category and reason."""
        from matchscore.tracker.models import OutcomeRecord, OutcomeType, RejectionCategory

        record = OutcomeRecord(
            outcome_id="o1",
            match_result_id="m1",
            outcome="rejected",  # type: ignore[arg-type]
            stage="onsite",
            rejection_category="salary",  # type: ignore[arg-type]
            rejection_reason="Asked for 20% more",
        )

        assert record.outcome == OutcomeType.REJECTED
        assert record.rejection_category == RejectionCategory.SALARY
        assert record.is_correction is False

    def test_category_only_allowed_for_rejections(self):
        """A hire with a rejection category is invalid."""
        from matchscore.tracker.models import OutcomeRecord, OutcomeType, RejectionCategory

        with pytest.raises(ValueError, match="rejection_category"):
            OutcomeRecord(
                outcome_id="o1",
                match_result_id="m1",
                outcome=OutcomeType.HIRED,
                stage="offer",
                rejection_category=RejectionCategory.SKILLS,
            )

    def test_stage_is_required(self):
        from matchscore.tracker.models import OutcomeRecord, OutcomeType

        with pytest.raises(ValueError, match="stage"):
            OutcomeRecord(
                outcome_id="o1", match_result_id="m1", outcome=OutcomeType.EXPIRED, stage="  "
            )

    def test_unknown_outcome_is_rejected(self):
        from matchscore.tracker.models import OutcomeRecord

        with pytest.raises(ValueError):
            OutcomeRecord(
                outcome_id="o1",
                match_result_id="m1",
                outcome="ghosted",  # type: ignore[arg-type]
                stage="screen",
            )

    def test_to_dict(self):
        """to_dict should serialize enums and timestamps."""
        from matchscore.tracker.models import OutcomeRecord, OutcomeType

        record = OutcomeRecord(
            outcome_id="o2",
            match_result_id="m1",
            outcome=OutcomeType.WITHDREW,
            stage="screen",
            recorded_at=datetime(2026, 2, 1, 12, 0, tzinfo=UTC),
            days_to_outcome=31,
            supersedes_outcome_id="o1",
        )

        data = record.to_dict()

        assert data["outcome"] == "withdrew"
        assert data["rejection_category"] is None
        assert data["recorded_at"] == "2026-02-01T12:00:00+00:00"
        assert data["supersedes_outcome_id"] == "o1"
        assert record.is_correction is True
