"""Eligibility gates: salary, commute, work authorization, availability."""

from __future__ import annotations

from matchscore.scoring.config import ScoringConfig, get_scoring_config
from matchscore.scoring.geo import resolve_commute_minutes
from matchscore.scoring.models import (
    GateName,
    GateResult,
    GateVerdict,
    InputValidationError,
    MatchInput,
    RemotePolicy,
)


def salary_overshoot_percent(acceptable: int, ceiling: int) -> float:
    """Percentage by which ``acceptable`` exceeds ``ceiling`` (0 when within)."""
    if acceptable <= ceiling:
        return 0.0
    return (acceptable - ceiling) / ceiling * 100.0


def days_late(match_input: MatchInput) -> int:
    """Days between the reference start date and the candidate's earliest start."""
    earliest = match_input.candidate.earliest_start
    if earliest is None:
        return 0
    return (earliest - match_input.reference_date()).days


class GateEvaluator:
    """Pure MatchInput -> GateResult evaluation.

    Gates that were not requested report pass. A failing gate does not stop
    scoring; callers decide how to act on ``overall_gate``.
    """

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or get_scoring_config()

    def evaluate(self, match_input: MatchInput) -> GateResult:
        notes: dict[str, str] = {}
        verdicts: dict[str, GateVerdict] = {}

        checks = {
            GateName.SALARY: self._salary,
            GateName.COMMUTE: self._commute,
            GateName.WORK_AUTH: self._work_auth,
            GateName.AVAILABILITY: self._availability,
        }
        for name, check in checks.items():
            if name not in match_input.requested_gates:
                verdicts[name.value] = GateVerdict.PASS
                continue
            verdict, note = check(match_input)
            verdicts[name.value] = verdict
            if verdict != GateVerdict.PASS and note:
                notes[name.value] = note

        return GateResult(notes=notes, **verdicts)

    def _salary(self, match_input: MatchInput) -> tuple[GateVerdict, str | None]:
        candidate = match_input.candidate
        acceptable = candidate.acceptable_salary
        if acceptable is None:
            return GateVerdict.PASS, None

        ceiling = match_input.job.salary_ceiling
        if ceiling is None:
            raise InputValidationError(
                "Salary gate requested but the job has no salary ceiling",
                field_name="job.salary_ceiling",
            )

        overshoot = salary_overshoot_percent(acceptable, ceiling)
        if overshoot == 0.0:
            return GateVerdict.PASS, None

        tolerance = self.config.salary_tolerance_percent
        if overshoot <= tolerance:
            return (
                GateVerdict.WARN,
                f"Salary expectation {acceptable:,} is {overshoot:.1f}% above "
                f"the ceiling of {ceiling:,}",
            )
        if candidate.salary_negotiable:
            return (
                GateVerdict.WARN,
                f"Salary expectation {acceptable:,} is {overshoot:.1f}% above "
                f"the ceiling of {ceiling:,} (candidate is negotiable)",
            )
        return (
            GateVerdict.FAIL,
            f"Salary expectation {acceptable:,} exceeds the ceiling of {ceiling:,} "
            f"by {overshoot:.1f}% (tolerance {tolerance:g}%)",
        )

    def _commute(self, match_input: MatchInput) -> tuple[GateVerdict, str | None]:
        policy = match_input.job.remote_policy
        if policy == RemotePolicy.REMOTE:
            return GateVerdict.PASS, None

        minutes, _ = resolve_commute_minutes(match_input, self.config)
        if minutes is None:
            return GateVerdict.PASS, None

        hard_cap = self.config.commute_hard_cap_minutes
        soft_cap = self.config.commute_soft_cap_minutes
        if minutes > hard_cap:
            if policy == RemotePolicy.ONSITE:
                return (
                    GateVerdict.FAIL,
                    f"Commute of {minutes} min exceeds the {hard_cap} min limit "
                    "for an on-site role",
                )
            return (
                GateVerdict.WARN,
                f"Commute of {minutes} min exceeds {hard_cap} min on "
                f"{match_input.job.onsite_days} office day(s) per week",
            )
        if minutes > soft_cap:
            return (
                GateVerdict.WARN,
                f"Commute of {minutes} min is above the preferred {soft_cap} min",
            )
        return GateVerdict.PASS, None

    def _work_auth(self, match_input: MatchInput) -> tuple[GateVerdict, str | None]:
        job = match_input.job
        if (
            job.requires_work_authorization
            and match_input.candidate.needs_sponsorship
            and not job.offers_sponsorship
        ):
            return (
                GateVerdict.FAIL,
                "Candidate needs sponsorship and the job does not offer it",
            )
        return GateVerdict.PASS, None

    def _availability(self, match_input: MatchInput) -> tuple[GateVerdict, str | None]:
        late = days_late(match_input)
        if late > self.config.availability_fail_days:
            return (
                GateVerdict.FAIL,
                f"Earliest start is {late} days after the target start "
                f"(limit {self.config.availability_fail_days})",
            )
        if late > self.config.availability_warn_days:
            return (
                GateVerdict.WARN,
                f"Earliest start is {late} days after the target start",
            )
        return GateVerdict.PASS, None
