"""Constraint scoring: salary gap, commute, start-date proximity."""

from __future__ import annotations

from matchscore.scoring.config import ScoringConfig, get_scoring_config
from matchscore.scoring.gates import days_late, salary_overshoot_percent
from matchscore.scoring.geo import resolve_commute_minutes
from matchscore.scoring.models import (
    CommuteFactor,
    ConstraintFactors,
    MatchInput,
    RemotePolicy,
    SalaryFactor,
    StartDateFactor,
)

FULL_WEEK_DAYS = 5
# Share of the lost commute score recovered when every day is remote.
HYBRID_RECOVERY = 0.5


def _linear(value: float, start: float, end: float, high: float, low: float) -> float:
    """Interpolate from ``high`` at ``start`` to ``low`` at ``end``, clamped."""
    if value <= start:
        return high
    if value >= end:
        return low
    return high - (high - low) * (value - start) / (end - start)


class ConstraintScorer:
    """Compute the 0-100 constraint score and its breakdown."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or get_scoring_config()

    def score(self, match_input: MatchInput) -> tuple[int, ConstraintFactors]:
        salary = self.score_salary(match_input)
        commute = self.score_commute(match_input)
        start_date = self.score_start_date(match_input)

        total = (
            salary.score * self.config.weight_salary
            + commute.score * self.config.weight_commute
            + start_date.score * self.config.weight_start_date
        )
        constraint_score = max(0, min(100, int(round(total))))
        return constraint_score, ConstraintFactors(
            salary=salary, commute=commute, start_date=start_date
        )

    def score_salary(self, match_input: MatchInput) -> SalaryFactor:
        candidate = match_input.candidate
        expectation = candidate.expected_salary
        if expectation is None:
            expectation = candidate.minimum_salary
        ceiling = match_input.job.salary_ceiling
        negotiable = candidate.salary_negotiable

        if expectation is None or ceiling is None:
            return SalaryFactor(score=100, negotiable=negotiable, known=False)
        if expectation <= ceiling:
            return SalaryFactor(score=100, negotiable=negotiable)

        overshoot = salary_overshoot_percent(expectation, ceiling)
        floor = self.config.salary_score_floor
        tolerance = self.config.salary_tolerance_percent
        if tolerance <= 0:
            score = floor
        else:
            score = int(round(_linear(overshoot, 0.0, tolerance, 100.0, float(floor))))

        return SalaryFactor(
            score=score,
            gap=expectation - ceiling,
            gap_percent=round(overshoot, 1),
            negotiable=negotiable,
        )

    def score_commute(self, match_input: MatchInput) -> CommuteFactor:
        candidate = match_input.candidate
        job = match_input.job
        minutes, estimated = resolve_commute_minutes(match_input, self.config)

        if job.remote_policy == RemotePolicy.REMOTE:
            return CommuteFactor(
                score=100,
                minutes=minutes,
                confirmed=candidate.commute_confirmed,
                estimated=estimated,
            )
        if minutes is None:
            return CommuteFactor(
                score=self.config.commute_unknown_score,
                confirmed=candidate.commute_confirmed,
            )

        score = _linear(
            float(minutes),
            float(self.config.commute_soft_cap_minutes),
            float(self.config.commute_hard_cap_minutes),
            100.0,
            float(self.config.commute_score_floor),
        )
        if job.remote_policy == RemotePolicy.HYBRID and job.onsite_days < FULL_WEEK_DAYS:
            remote_share = 1 - job.onsite_days / FULL_WEEK_DAYS
            score += (100.0 - score) * remote_share * HYBRID_RECOVERY

        return CommuteFactor(
            score=max(0, min(100, int(round(score)))),
            minutes=minutes,
            confirmed=candidate.commute_confirmed,
            estimated=estimated,
        )

    def score_start_date(self, match_input: MatchInput) -> StartDateFactor:
        """Score start-date proximity.

        ``days_until`` counts days from the target start to the candidate's
        earliest start; zero or negative means on time.
        """
        late = days_late(match_input)
        warn_days = self.config.availability_warn_days
        fail_days = self.config.availability_fail_days
        warn_score = float(self.config.start_date_warn_score)
        floor = float(self.config.start_date_score_floor)

        if late <= 0:
            score = 100.0
        elif late <= warn_days:
            score = _linear(float(late), 0.0, float(warn_days), 100.0, warn_score)
        else:
            score = _linear(float(late), float(warn_days), float(fail_days), warn_score, floor)

        return StartDateFactor(score=int(round(score)), days_until=late)
