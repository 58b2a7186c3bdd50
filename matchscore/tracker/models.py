"""Data models for the Outcome Tracker."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from matchscore.scoring.models import MatchResult


class OutcomeType(str, Enum):
    """Terminal outcome of a match."""

    HIRED = "hired"
    REJECTED = "rejected"
    WITHDREW = "withdrew"
    EXPIRED = "expired"


class RejectionCategory(str, Enum):
    """Why a rejected match was rejected."""

    SKILLS = "skills"
    EXPERIENCE = "experience"
    SALARY = "salary"
    CULTURE = "culture"
    AVAILABILITY = "availability"
    OTHER = "other"


@dataclass
class OutcomeRecord:
    """An immutable outcome linked to the MatchResult that predicted it.

    Attributes:
        outcome_id: Unique identifier for this record.
        match_result_id: Id of the stored MatchResult (back-reference).
        outcome: Terminal outcome (hired/rejected/withdrew/expired).
        stage: Pipeline stage at which the outcome happened.
        rejection_category: Rejection taxonomy entry (rejections only).
        rejection_reason: Free-text reason (optional).
        recorded_at: When the outcome was recorded.
        days_to_outcome: Days between the evaluation and the outcome.
        supersedes_outcome_id: Record this one corrects, if any.
    """

    outcome_id: str
    match_result_id: str
    outcome: OutcomeType
    stage: str
    rejection_category: RejectionCategory | None = None
    rejection_reason: str | None = None
    recorded_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    days_to_outcome: int | None = None
    supersedes_outcome_id: str | None = None

    def __post_init__(self) -> None:
        self.outcome = OutcomeType(self.outcome)
        if self.rejection_category is not None:
            self.rejection_category = RejectionCategory(self.rejection_category)
            if self.outcome != OutcomeType.REJECTED:
                raise ValueError(
                    "rejection_category is only valid for rejected outcomes "
                    f"(got outcome={self.outcome.value})"
                )
        if not self.stage or not self.stage.strip():
            raise ValueError("stage is required")

    @property
    def is_correction(self) -> bool:
        return self.supersedes_outcome_id is not None

    def to_dict(self) -> dict:
        """Serialize the record to a dictionary.

        Returns:
            Dictionary representation of the record.
        """
        return {
            "outcome_id": self.outcome_id,
            "match_result_id": self.match_result_id,
            "outcome": self.outcome.value,
            "stage": self.stage,
            "rejection_category": self.rejection_category.value
            if self.rejection_category
            else None,
            "rejection_reason": self.rejection_reason,
            "recorded_at": self.recorded_at.isoformat(),
            "days_to_outcome": self.days_to_outcome,
            "supersedes_outcome_id": self.supersedes_outcome_id,
        }


@dataclass
class StoredMatchResult:
    """A MatchResult as persisted, with its store id."""

    match_result_id: str
    result: MatchResult
    created_at: datetime


@dataclass
class RejectionSample:
    """One effective rejection joined with the prediction it followed."""

    match_result_id: str
    overall_match: int
    deal_probability: int
    stage: str
    rejection_category: RejectionCategory | None = None
    rejection_reason: str | None = None
