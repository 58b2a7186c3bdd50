"""Data models for the match scoring engine."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class InputValidationError(ValueError):
    """Raised when a MatchInput is missing data a requested gate needs."""

    def __init__(self, message: str, field_name: str | None = None):
        super().__init__(message)
        self.field_name = field_name


class GateName(str, Enum):
    """Eligibility gates evaluated for every match."""

    SALARY = "salary"
    COMMUTE = "commute"
    WORK_AUTH = "work_auth"
    AVAILABILITY = "availability"


class GateVerdict(str, Enum):
    """Outcome of a single gate, ordered pass < warn < fail."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {GateVerdict.PASS: 0, GateVerdict.WARN: 1, GateVerdict.FAIL: 2}


def worst_verdict(verdicts: Iterable[GateVerdict]) -> GateVerdict:
    """Return the most severe verdict (fail > warn > pass)."""
    return max(verdicts, key=lambda v: v.severity, default=GateVerdict.PASS)


class MatchType(str, Enum):
    """How a raw skill string was resolved to its canonical form."""

    EXACT = "exact"
    ALIAS = "alias"
    FUZZY = "fuzzy"
    AI = "ai"


class RemotePolicy(str, Enum):
    """Where the job is performed."""

    ONSITE = "onsite"
    HYBRID = "hybrid"
    REMOTE = "remote"


ExperienceLevel = Literal["junior", "mid", "senior", "lead", "principal"]


class Coordinates(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class CandidateSnapshot(BaseModel):
    """Candidate attributes consumed by one scoring run."""

    model_config = ConfigDict(frozen=True)

    skills: tuple[str, ...] = Field(default=(), description="Raw skill strings")
    experience_years: float = Field(default=0.0, ge=0.0, description="Years of experience")
    industries: tuple[str, ...] = Field(default=(), description="Industries worked in")

    expected_salary: int | None = Field(default=None, ge=0, description="Salary expectation")
    minimum_salary: int | None = Field(
        default=None, ge=0, description="Minimum acceptable salary (defaults to expectation)"
    )
    salary_negotiable: bool = Field(default=False)

    commute_minutes: int | None = Field(
        default=None, ge=0, description="Computed one-way commute to the job's office"
    )
    commute_confirmed: bool = Field(
        default=False, description="Commute was computed from a verified address"
    )
    home_location: Coordinates | None = Field(default=None)

    earliest_start: date | None = Field(default=None)
    needs_sponsorship: bool = Field(
        default=False, description="Candidate needs work-authorization sponsorship"
    )

    @model_validator(mode="after")
    def validate_salary_range(self) -> CandidateSnapshot:
        if (
            self.minimum_salary is not None
            and self.expected_salary is not None
            and self.minimum_salary > self.expected_salary
        ):
            raise ValueError("minimum_salary must not exceed expected_salary")
        return self

    @property
    def acceptable_salary(self) -> int | None:
        """Lowest salary the candidate would accept."""
        if self.minimum_salary is not None:
            return self.minimum_salary
        return self.expected_salary


class JobSnapshot(BaseModel):
    """Job requirements consumed by one scoring run."""

    model_config = ConfigDict(frozen=True)

    required_skills: tuple[str, ...] = Field(default=())
    nice_to_have_skills: tuple[str, ...] = Field(default=())
    experience_level: ExperienceLevel = Field(default="mid")
    min_experience_years: int | None = Field(
        default=None, ge=0, description="Explicit minimum (overrides the level table)"
    )
    industry: str | None = Field(default=None)

    salary_ceiling: int | None = Field(default=None, gt=0)

    remote_policy: RemotePolicy = Field(default=RemotePolicy.ONSITE)
    onsite_days: int = Field(default=5, ge=1, le=5, description="On-site days per week")
    office_location: Coordinates | None = Field(default=None)

    target_start: date | None = Field(default=None)
    requires_work_authorization: bool = Field(default=False)
    offers_sponsorship: bool = Field(default=False)


class MomentumSignals(BaseModel):
    """Optional engagement signals supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    engagement_score: float | None = Field(
        default=None, ge=0.0, le=100.0, description="Recent engagement (0-100)"
    )
    drop_off_probability: float | None = Field(
        default=None, ge=0.0, le=1.0, description="Estimated drop-off risk (0-1)"
    )


class MatchInput(BaseModel):
    """Immutable snapshot consumed by one scoring run."""

    model_config = ConfigDict(frozen=True)

    candidate: CandidateSnapshot
    job: JobSnapshot
    momentum: MomentumSignals | None = None
    requested_gates: frozenset[GateName] = Field(
        default_factory=lambda: frozenset(GateName)
    )
    evaluated_on: date | None = Field(
        default=None, description="Reference date when the job has no target start"
    )
    candidate_id: str | None = None
    job_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchInput:
        """Validate a raw payload, raising InputValidationError on bad input."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InputValidationError(f"Invalid match input: {e}") from e

    def reference_date(self) -> date:
        """Date the candidate's availability is measured against."""
        return self.job.target_start or self.evaluated_on or date.today()


@dataclass
class NormalizedSkill:
    """A raw skill string resolved against the skill vocabulary."""

    original: str
    canonical: str
    category: str | None
    confidence: int
    match_type: MatchType

    def __post_init__(self) -> None:
        if not (0 <= self.confidence <= 100):
            raise ValueError(
                f"confidence must be between 0 and 100 (got {self.confidence})"
            )
        self.match_type = MatchType(self.match_type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "original": self.original,
            "canonical": self.canonical,
            "category": self.category,
            "confidence": self.confidence,
            "match_type": self.match_type.value,
        }


@dataclass
class GateResult:
    """Per-gate verdicts plus the aggregate verdict."""

    salary: GateVerdict = GateVerdict.PASS
    commute: GateVerdict = GateVerdict.PASS
    work_auth: GateVerdict = GateVerdict.PASS
    availability: GateVerdict = GateVerdict.PASS
    overall_gate: GateVerdict | None = None
    notes: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in GateName:
            setattr(self, name.value, GateVerdict(getattr(self, name.value)))
        worst = worst_verdict(self.by_gate().values())
        if self.overall_gate is not None and GateVerdict(self.overall_gate) != worst:
            raise ValueError(
                f"overall_gate must be the worst individual gate ({worst.value}), "
                f"got {self.overall_gate}"
            )
        self.overall_gate = worst

    def by_gate(self) -> dict[GateName, GateVerdict]:
        """Return the individual verdicts keyed by gate."""
        return {name: getattr(self, name.value) for name in GateName}

    def gates_with(self, verdict: GateVerdict) -> list[GateName]:
        """Return gates with the given verdict, in evaluation order."""
        return [name for name, value in self.by_gate().items() if value == verdict]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            name.value: verdict.value for name, verdict in self.by_gate().items()
        }
        payload["overall_gate"] = self.overall_gate.value  # type: ignore[union-attr]
        payload["notes"] = dict(self.notes)
        return payload


@dataclass
class SkillFactor:
    score: int
    matched: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    transferable: list[str] = field(default_factory=list)
    must_have_coverage: float = 1.0


@dataclass
class ExperienceFactor:
    score: int
    years: float
    required_years: int
    level_match: bool
    gap: float = 0.0


@dataclass
class IndustryFactor:
    score: int
    industries: list[str] = field(default_factory=list)


@dataclass
class FitFactors:
    skills: SkillFactor
    experience: ExperienceFactor
    industry: IndustryFactor


@dataclass
class SalaryFactor:
    score: int
    gap: int = 0
    gap_percent: float = 0.0
    negotiable: bool = False
    known: bool = True


@dataclass
class CommuteFactor:
    score: int
    minutes: int | None = None
    confirmed: bool = False
    estimated: bool = False


@dataclass
class StartDateFactor:
    score: int
    days_until: int = 0


@dataclass
class ConstraintFactors:
    salary: SalaryFactor
    commute: CommuteFactor
    start_date: StartDateFactor


@dataclass
class Explainability:
    """Human-readable summary of a match."""

    top_reasons: list[str] = field(default_factory=list)
    top_risks: list[str] = field(default_factory=list)
    next_action: str = ""
    why_not: str | None = None


@dataclass
class MatchResult:
    """Output of one scoring run.

    A MatchResult is never edited after it is produced: new information about
    the candidate or job yields a new evaluation and a new stored result, so
    the prediction history stays available for calibration.
    """

    version: str
    gates: GateResult
    fit_score: int
    fit_factors: FitFactors
    constraint_score: int
    constraint_factors: ConstraintFactors
    overall_match: int
    deal_probability: int
    explainability: Explainability
    normalized_skills: list[NormalizedSkill] = field(default_factory=list)
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    candidate_id: str | None = None
    job_id: str | None = None

    def __post_init__(self) -> None:
        if not self.version:
            raise ValueError("version is required")
        for name in ("fit_score", "constraint_score", "overall_match", "deal_probability"):
            value = getattr(self, name)
            if not (0 <= value <= 100):
                raise ValueError(f"{name} must be between 0 and 100 (got {value})")

    @property
    def is_viable(self) -> bool:
        """False when a gate failed; callers decide whether to override."""
        return self.gates.overall_gate != GateVerdict.FAIL

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        fit = self.fit_factors
        constraints = self.constraint_factors
        return {
            "version": self.version,
            "candidate_id": self.candidate_id,
            "job_id": self.job_id,
            "evaluated_at": self.evaluated_at.isoformat(),
            "gates": self.gates.to_dict(),
            "fit_score": self.fit_score,
            "fit_factors": {
                "skills": {
                    "score": fit.skills.score,
                    "matched": list(fit.skills.matched),
                    "missing": list(fit.skills.missing),
                    "transferable": list(fit.skills.transferable),
                    "must_have_coverage": fit.skills.must_have_coverage,
                },
                "experience": {
                    "score": fit.experience.score,
                    "years": fit.experience.years,
                    "required_years": fit.experience.required_years,
                    "level_match": fit.experience.level_match,
                    "gap": fit.experience.gap,
                },
                "industry": {
                    "score": fit.industry.score,
                    "industries": list(fit.industry.industries),
                },
            },
            "constraint_score": self.constraint_score,
            "constraint_factors": {
                "salary": {
                    "score": constraints.salary.score,
                    "gap": constraints.salary.gap,
                    "gap_percent": constraints.salary.gap_percent,
                    "negotiable": constraints.salary.negotiable,
                    "known": constraints.salary.known,
                },
                "commute": {
                    "score": constraints.commute.score,
                    "minutes": constraints.commute.minutes,
                    "confirmed": constraints.commute.confirmed,
                    "estimated": constraints.commute.estimated,
                },
                "start_date": {
                    "score": constraints.start_date.score,
                    "days_until": constraints.start_date.days_until,
                },
            },
            "overall_match": self.overall_match,
            "deal_probability": self.deal_probability,
            "explainability": {
                "top_reasons": list(self.explainability.top_reasons),
                "top_risks": list(self.explainability.top_risks),
                "next_action": self.explainability.next_action,
                "why_not": self.explainability.why_not,
            },
            "normalized_skills": [skill.to_dict() for skill in self.normalized_skills],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchResult:
        """Deserialize from a dictionary produced by ``to_dict``."""
        gates = dict(data["gates"])
        fit = data["fit_factors"]
        constraints = data["constraint_factors"]
        explain = data.get("explainability") or {}

        evaluated_at = data.get("evaluated_at")
        if isinstance(evaluated_at, str):
            evaluated_at = datetime.fromisoformat(evaluated_at)

        return cls(
            version=data["version"],
            candidate_id=data.get("candidate_id"),
            job_id=data.get("job_id"),
            evaluated_at=evaluated_at or datetime.now(UTC),
            gates=GateResult(
                salary=GateVerdict(gates["salary"]),
                commute=GateVerdict(gates["commute"]),
                work_auth=GateVerdict(gates["work_auth"]),
                availability=GateVerdict(gates["availability"]),
                overall_gate=GateVerdict(gates["overall_gate"]),
                notes=dict(gates.get("notes") or {}),
            ),
            fit_score=int(data["fit_score"]),
            fit_factors=FitFactors(
                skills=SkillFactor(**fit["skills"]),
                experience=ExperienceFactor(**fit["experience"]),
                industry=IndustryFactor(**fit["industry"]),
            ),
            constraint_score=int(data["constraint_score"]),
            constraint_factors=ConstraintFactors(
                salary=SalaryFactor(**constraints["salary"]),
                commute=CommuteFactor(**constraints["commute"]),
                start_date=StartDateFactor(**constraints["start_date"]),
            ),
            overall_match=int(data["overall_match"]),
            deal_probability=int(data["deal_probability"]),
            explainability=Explainability(
                top_reasons=list(explain.get("top_reasons") or []),
                top_risks=list(explain.get("top_risks") or []),
                next_action=explain.get("next_action", ""),
                why_not=explain.get("why_not"),
            ),
            normalized_skills=[
                NormalizedSkill(
                    original=item["original"],
                    canonical=item["canonical"],
                    category=item.get("category"),
                    confidence=int(item["confidence"]),
                    match_type=MatchType(item["match_type"]),
                )
                for item in data.get("normalized_skills") or []
            ],
        )
