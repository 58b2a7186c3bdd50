"""Fit scoring: skills, experience, industry."""

from __future__ import annotations

from collections.abc import Sequence

from matchscore.scoring.config import ScoringConfig, get_scoring_config
from matchscore.scoring.models import (
    CandidateSnapshot,
    ExperienceFactor,
    FitFactors,
    IndustryFactor,
    JobSnapshot,
    MatchInput,
    MatchType,
    NormalizedSkill,
    SkillFactor,
)
from matchscore.scoring.taxonomy import SkillTaxonomy, normalize_skill

_DIRECT_MATCH_TYPES = {MatchType.EXACT, MatchType.ALIAS}


def dedupe_skills(skills: Sequence[NormalizedSkill]) -> dict[str, NormalizedSkill]:
    """Collapse normalized skills by canonical term, keeping the most confident."""
    best: dict[str, NormalizedSkill] = {}
    for skill in skills:
        if not skill.canonical:
            continue
        current = best.get(skill.canonical)
        if current is None or skill.confidence > current.confidence:
            best[skill.canonical] = skill
    return best


class FitScorer:
    """Compute the 0-100 fit score and its breakdown."""

    def __init__(
        self,
        taxonomy: SkillTaxonomy | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        self.config = config or get_scoring_config()
        self.taxonomy = taxonomy or SkillTaxonomy.default()

    def score(
        self, normalized_skills: Sequence[NormalizedSkill], match_input: MatchInput
    ) -> tuple[int, FitFactors]:
        skills = self.score_skills(normalized_skills, match_input.job)
        experience = self.score_experience(match_input.candidate, match_input.job)
        industry = self.score_industry(match_input.candidate, match_input.job)

        total = (
            skills.score * self.config.weight_skills
            + experience.score * self.config.weight_experience
            + industry.score * self.config.weight_industry
        )
        fit_score = max(0, min(100, int(round(total))))
        return fit_score, FitFactors(skills=skills, experience=experience, industry=industry)

    def score_skills(
        self, normalized_skills: Sequence[NormalizedSkill], job: JobSnapshot
    ) -> SkillFactor:
        """Score candidate skills against the job's required and nice-to-have lists.

        Required skills weigh 1.0 and nice-to-have skills ``nice_to_have_weight``.
        A skill reached only through a fuzzy or AI match below
        ``transferable_confidence`` earns ``transferable_credit``. A candidate
        string equal to the job's after normalization always counts in full,
        even when the term is outside the taxonomy.
        """
        required = self._canonical_list(job.required_skills)
        nice_to_have = [
            s for s in self._canonical_list(job.nice_to_have_skills) if s not in required
        ]
        candidate = dedupe_skills(normalized_skills)

        if not candidate:
            return SkillFactor(
                score=0,
                missing=list(required),
                must_have_coverage=0.0 if required else 1.0,
            )
        if not required and not nice_to_have:
            return SkillFactor(score=self.config.skills_neutral_score)

        matched: list[str] = []
        missing: list[str] = []
        transferable: list[str] = []
        credit = 0.0
        weight_total = 0.0
        required_present = 0

        weighted = [(s, 1.0, True) for s in required]
        weighted += [(s, self.config.nice_to_have_weight, False) for s in nice_to_have]
        for skill, weight, is_required in weighted:
            weight_total += weight
            hit = candidate.get(skill)
            if hit is None:
                if is_required:
                    missing.append(skill)
                continue

            if is_required:
                required_present += 1
            if (
                hit.match_type in _DIRECT_MATCH_TYPES
                or hit.confidence >= self.config.transferable_confidence
                or normalize_skill(hit.original) == skill
            ):
                matched.append(skill)
                credit += weight
            else:
                transferable.append(skill)
                credit += weight * self.config.transferable_credit

        score = int(round(credit / weight_total * 100)) if weight_total else 0
        coverage = required_present / len(required) if required else 1.0
        return SkillFactor(
            score=max(0, min(100, score)),
            matched=matched,
            missing=missing,
            transferable=transferable,
            must_have_coverage=round(coverage, 3),
        )

    def score_experience(
        self, candidate: CandidateSnapshot, job: JobSnapshot
    ) -> ExperienceFactor:
        if job.min_experience_years is not None:
            required = job.min_experience_years
        else:
            required = self.config.experience_level_years.get(job.experience_level, 0)

        years = candidate.experience_years
        gap = max(0.0, required - years)
        if gap == 0:
            score = 100
        elif gap <= self.config.experience_tolerance_years:
            score = self.config.experience_partial_score
        else:
            score = self.config.experience_low_score

        return ExperienceFactor(
            score=score,
            years=years,
            required_years=required,
            level_match=gap == 0,
            gap=round(gap, 1),
        )

    def score_industry(
        self, candidate: CandidateSnapshot, job: JobSnapshot
    ) -> IndustryFactor:
        candidate_industries = [i for i in candidate.industries if i.strip()]
        if not job.industry or not job.industry.strip():
            return IndustryFactor(
                score=self.config.industry_unknown_score,
                industries=candidate_industries,
            )

        target = job.industry.strip().lower()
        matching = [
            industry
            for industry in candidate_industries
            if target in industry.strip().lower() or industry.strip().lower() in target
        ]
        if matching:
            return IndustryFactor(score=100, industries=matching)
        return IndustryFactor(
            score=self.config.industry_partial_score, industries=candidate_industries
        )

    def _canonical_list(self, skills: Sequence[str]) -> list[str]:
        seen: list[str] = []
        for raw in skills:
            if not normalize_skill(raw):
                continue
            canonical = self.taxonomy.canonical_for(raw)
            if canonical not in seen:
                seen.append(canonical)
        return seen
