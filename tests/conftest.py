"""Pytest configuration and shared fixtures."""

import copy
from datetime import UTC, datetime

import pytest

BASE_INPUT: dict = {
    "candidate_id": "cand-1",
    "job_id": "job-1",
    "evaluated_on": "2026-01-15",
    "candidate": {
        "skills": ["Python", "Django", "PostgreSQL"],
        "experience_years": 6,
        "industries": ["Fintech"],
        "expected_salary": 90000,
        "salary_negotiable": False,
        "commute_minutes": 30,
        "commute_confirmed": True,
        "earliest_start": "2026-02-15",
        "needs_sponsorship": False,
    },
    "job": {
        "required_skills": ["python", "django"],
        "nice_to_have_skills": ["postgres"],
        "experience_level": "senior",
        "industry": "Fintech",
        "salary_ceiling": 100000,
        "remote_policy": "onsite",
        "target_start": "2026-03-01",
        "requires_work_authorization": True,
        "offers_sponsorship": False,
    },
}


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Each test starts from fresh settings and an unconfigured logger."""
    from matchscore.config.settings import reset_settings
    from matchscore.scoring.config import reset_scoring_config
    from matchscore.utils.logging import reset_logging

    reset_settings()
    reset_scoring_config()
    yield
    reset_settings()
    reset_scoring_config()
    reset_logging()


@pytest.fixture
def scoring_config():
    """ScoringConfig with defaults only (no .env)."""
    from matchscore.scoring.config import ScoringConfig

    return ScoringConfig(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def make_input():
    """Build a MatchInput from BASE_INPUT with per-section overrides."""
    from matchscore.scoring.models import MatchInput

    def _make(candidate: dict | None = None, job: dict | None = None, **top) -> MatchInput:
        payload = copy.deepcopy(BASE_INPUT)
        payload["candidate"].update(candidate or {})
        payload["job"].update(job or {})
        payload.update(top)
        return MatchInput.from_dict(payload)

    return _make


@pytest.fixture
def base_payload() -> dict:
    return copy.deepcopy(BASE_INPUT)


@pytest.fixture
def make_result():
    """Build a minimal MatchResult with a chosen deal probability."""
    from matchscore.scoring.models import (
        CommuteFactor,
        ConstraintFactors,
        ExperienceFactor,
        Explainability,
        FitFactors,
        GateResult,
        IndustryFactor,
        MatchResult,
        SalaryFactor,
        SkillFactor,
        StartDateFactor,
    )

    def _make(
        deal_probability: int = 50,
        overall_match: int | None = None,
        version: str = "v3",
        evaluated_at: datetime | None = None,
    ) -> MatchResult:
        overall = deal_probability if overall_match is None else overall_match
        return MatchResult(
            version=version,
            gates=GateResult(),
            fit_score=overall,
            fit_factors=FitFactors(
                skills=SkillFactor(score=overall),
                experience=ExperienceFactor(
                    score=100, years=5, required_years=5, level_match=True
                ),
                industry=IndustryFactor(score=100),
            ),
            constraint_score=overall,
            constraint_factors=ConstraintFactors(
                salary=SalaryFactor(score=100),
                commute=CommuteFactor(score=100),
                start_date=StartDateFactor(score=100),
            ),
            overall_match=overall,
            deal_probability=deal_probability,
            explainability=Explainability(next_action="review profile with hiring manager"),
            evaluated_at=evaluated_at or datetime(2026, 1, 1, tzinfo=UTC),
            candidate_id="cand",
            job_id="job",
        )

    return _make
