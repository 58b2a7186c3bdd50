"""Combine gates, fit and constraint scores into the final match."""

from __future__ import annotations

from dataclasses import dataclass

from matchscore.scoring.config import ScoringConfig, get_scoring_config
from matchscore.scoring.models import (
    ConstraintFactors,
    Explainability,
    FitFactors,
    GateName,
    GateResult,
    GateVerdict,
    MomentumSignals,
)

ENGAGEMENT_MIN_FACTOR = 0.8
ENGAGEMENT_MAX_FACTOR = 1.2
DROP_OFF_WEIGHT = 0.5

MAX_REASONS = 3

ACTION_SCHEDULE_INTERVIEW = "schedule interview"
ACTION_REVIEW_PROFILE = "review profile with hiring manager"
ACTION_DO_NOT_PROCEED = "do not proceed"

WARN_ACTIONS: dict[GateName, str] = {
    GateName.SALARY: "clarify salary expectations",
    GateName.COMMUTE: "confirm commute arrangement",
    GateName.WORK_AUTH: "clarify work authorization",
    GateName.AVAILABILITY: "discuss start date",
}

GATE_LABELS: dict[GateName, str] = {
    GateName.SALARY: "salary",
    GateName.COMMUTE: "commute",
    GateName.WORK_AUTH: "work authorization",
    GateName.AVAILABILITY: "availability",
}


@dataclass
class _SubScore:
    name: str
    score: int
    weight: float
    reason: str | None
    risk: str

    @property
    def contribution(self) -> float:
        return self.score * self.weight


class MatchCombiner:
    """Stateless blend of the three scoring stages."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or get_scoring_config()

    def combine(
        self,
        gates: GateResult,
        fit_score: int,
        fit_factors: FitFactors,
        constraint_score: int,
        constraint_factors: ConstraintFactors,
        momentum: MomentumSignals | None = None,
    ) -> tuple[int, int, Explainability]:
        """Return (overall_match, deal_probability, explainability)."""
        overall_gate = gates.overall_gate or GateVerdict.PASS
        overall = self.overall_match(fit_score, constraint_score, overall_gate)
        deal = self.deal_probability(overall, momentum)
        explainability = self.explain(gates, overall, fit_factors, constraint_factors)
        return overall, deal, explainability

    def overall_match(
        self, fit_score: int, constraint_score: int, overall_gate: GateVerdict
    ) -> int:
        """Blend fit and constraints, then apply the gate penalty.

        Non-decreasing in both scores for a fixed gate verdict.
        """
        raw = (
            fit_score * self.config.weight_fit
            + constraint_score * self.config.weight_constraints
        )
        if overall_gate == GateVerdict.WARN:
            raw *= 1 - self.config.warn_penalty
        elif overall_gate == GateVerdict.FAIL:
            raw = min(raw * (1 - self.config.fail_penalty), float(self.config.fail_cap))
        return max(0, min(100, int(round(raw))))

    def deal_probability(
        self, overall_match: int, momentum: MomentumSignals | None = None
    ) -> int:
        """Deterministic estimate derived from overall_match.

        Engagement scales the estimate between 0.8x and 1.2x; drop-off risk
        removes up to half of it.
        """
        probability = float(overall_match)
        if momentum is not None:
            if momentum.engagement_score is not None:
                span = ENGAGEMENT_MAX_FACTOR - ENGAGEMENT_MIN_FACTOR
                probability *= ENGAGEMENT_MIN_FACTOR + span * momentum.engagement_score / 100
            if momentum.drop_off_probability is not None:
                probability *= 1 - DROP_OFF_WEIGHT * momentum.drop_off_probability

        floor = self.config.deal_probability_floor
        ceiling = self.config.deal_probability_ceiling
        return int(round(max(float(floor), min(float(ceiling), probability))))

    def match_bucket(self, overall_match: int) -> str:
        if overall_match >= self.config.high_match_threshold:
            return "high"
        if overall_match >= self.config.medium_match_threshold:
            return "medium"
        return "low"

    def next_action(self, gates: GateResult, overall_match: int) -> str:
        bucket = self.match_bucket(overall_match)
        if gates.overall_gate == GateVerdict.FAIL or bucket == "low":
            return ACTION_DO_NOT_PROCEED
        if gates.overall_gate == GateVerdict.WARN:
            warned = gates.gates_with(GateVerdict.WARN)
            return WARN_ACTIONS[warned[0]]
        if bucket == "high":
            return ACTION_SCHEDULE_INTERVIEW
        return ACTION_REVIEW_PROFILE

    def why_not(self, gates: GateResult) -> str | None:
        """One sentence naming every failing gate, or None unless failed."""
        failing = gates.gates_with(GateVerdict.FAIL)
        if not failing:
            return None

        labels = [GATE_LABELS[name] for name in failing]
        if len(labels) == 1:
            named = f"the {labels[0]} gate"
        else:
            named = f"the {', '.join(labels[:-1])} and {labels[-1]} gates"

        details = [gates.notes[name.value] for name in failing if name.value in gates.notes]
        sentence = f"Not viable: blocked by {named}"
        if details:
            sentence += f" ({'; '.join(d.rstrip('.') for d in details)})"
        return sentence + "."

    def explain(
        self,
        gates: GateResult,
        overall_match: int,
        fit_factors: FitFactors,
        constraint_factors: ConstraintFactors,
    ) -> Explainability:
        sub_scores = self._sub_scores(fit_factors, constraint_factors)

        positives = [
            s
            for s in sub_scores
            if s.reason is not None and s.score >= self.config.reason_min_score
        ]
        positives.sort(key=lambda s: s.contribution, reverse=True)
        top_reasons = [s.reason for s in positives[:MAX_REASONS] if s.reason]

        top_risks: list[str] = []
        for name in GateName:
            verdict = getattr(gates, name.value)
            if verdict == GateVerdict.PASS:
                continue
            note = gates.notes.get(name.value)
            top_risks.append(note or f"{GATE_LABELS[name].capitalize()} gate: {verdict.value}")
        top_risks.extend(s.risk for s in sub_scores if s.score < self.config.risk_max_score)

        return Explainability(
            top_reasons=top_reasons,
            top_risks=top_risks,
            next_action=self.next_action(gates, overall_match),
            why_not=self.why_not(gates),
        )

    def _sub_scores(
        self, fit: FitFactors, constraints: ConstraintFactors
    ) -> list[_SubScore]:
        cfg = self.config
        skills = fit.skills
        experience = fit.experience
        industry = fit.industry
        salary = constraints.salary
        commute = constraints.commute
        start = constraints.start_date

        if skills.matched:
            skills_reason = f"Skills match: {', '.join(skills.matched[:3])}"
        else:
            skills_reason = "Skills broadly match the role"
        if skills.missing:
            skills_risk = f"Missing required skills: {', '.join(skills.missing)}"
        else:
            skills_risk = "Weak skills match"

        if industry.score == 100 and industry.industries:
            industry_reason = f"Industry experience in {', '.join(industry.industries)}"
        else:
            industry_reason = "No specific industry requirement"

        salary_reason: str | None
        if not salary.known:
            salary_reason = None
        elif salary.score == 100:
            salary_reason = "Salary expectation fits the budget"
        else:
            salary_reason = f"Salary expectation within {salary.gap_percent:g}% of the budget"

        commute_reason: str | None
        if commute.minutes is not None:
            commute_reason = f"Manageable commute ({commute.minutes} min)"
        elif commute.score == 100:
            commute_reason = "No commute required"
        else:
            commute_reason = None

        if start.days_until <= 0:
            start_reason = "Available by the target start date"
        else:
            start_reason = f"Available {start.days_until} days after the target start"

        return [
            _SubScore(
                "skills",
                skills.score,
                cfg.weight_fit * cfg.weight_skills,
                skills_reason,
                skills_risk,
            ),
            _SubScore(
                "experience",
                experience.score,
                cfg.weight_fit * cfg.weight_experience,
                f"{experience.years:g} years of experience "
                f"({experience.required_years} required)",
                f"{experience.gap:g} years short of the "
                f"{experience.required_years}-year requirement",
            ),
            _SubScore(
                "industry",
                industry.score,
                cfg.weight_fit * cfg.weight_industry,
                industry_reason,
                "No matching industry experience",
            ),
            _SubScore(
                "salary",
                salary.score,
                cfg.weight_constraints * cfg.weight_salary,
                salary_reason,
                f"Salary expectation {salary.gap_percent:g}% above budget",
            ),
            _SubScore(
                "commute",
                commute.score,
                cfg.weight_constraints * cfg.weight_commute,
                commute_reason,
                f"Long commute ({commute.minutes} min)"
                if commute.minutes is not None
                else "Commute unknown",
            ),
            _SubScore(
                "start_date",
                start.score,
                cfg.weight_constraints * cfg.weight_start_date,
                start_reason,
                f"Starts {start.days_until} days after the target date",
            ),
        ]
