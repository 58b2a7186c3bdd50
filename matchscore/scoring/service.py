"""Match scoring service implementation."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from matchscore.scoring.classifier import LLMSkillClassifier, SkillClassifier
from matchscore.scoring.combiner import MatchCombiner
from matchscore.scoring.config import ScoringConfig, get_scoring_config
from matchscore.scoring.constraints import ConstraintScorer
from matchscore.scoring.fit import FitScorer
from matchscore.scoring.gates import GateEvaluator
from matchscore.scoring.models import MatchInput, MatchResult
from matchscore.scoring.normalizer import SkillNormalizer
from matchscore.scoring.taxonomy import SkillTaxonomy, load_taxonomy

logger = logging.getLogger(__name__)


class MatchScoringService:
    """Run the full scoring pipeline for one MatchInput."""

    def __init__(
        self,
        config: ScoringConfig | None = None,
        taxonomy: SkillTaxonomy | None = None,
        classifier: SkillClassifier | None = None,
    ) -> None:
        self.config = config or get_scoring_config()

        if taxonomy is None:
            if self.config.taxonomy_path is not None:
                taxonomy = load_taxonomy(self.config.taxonomy_path)
            else:
                taxonomy = SkillTaxonomy.default()
        self.taxonomy = taxonomy

        if classifier is None and self.config.classifier_enabled:
            classifier = LLMSkillClassifier(
                config=self.config, vocabulary=self.taxonomy.canonical_names
            )

        self.normalizer = SkillNormalizer(
            taxonomy=self.taxonomy, classifier=classifier, config=self.config
        )
        self.gates = GateEvaluator(config=self.config)
        self.fit = FitScorer(taxonomy=self.taxonomy, config=self.config)
        self.constraints = ConstraintScorer(config=self.config)
        self.combiner = MatchCombiner(config=self.config)

    def evaluate(self, match_input: MatchInput | dict[str, Any]) -> MatchResult:
        """Score one candidate/job pair.

        Raises InputValidationError for malformed input or when a requested
        gate lacks the data it needs. Any well-formed input yields a result,
        including inputs that fail every gate.
        """
        if not isinstance(match_input, MatchInput):
            match_input = MatchInput.from_dict(match_input)

        gates = self.gates.evaluate(match_input)
        normalized = self.normalizer.normalize(match_input.candidate.skills)
        fit_score, fit_factors = self.fit.score(normalized, match_input)
        constraint_score, constraint_factors = self.constraints.score(match_input)

        overall, deal, explainability = self.combiner.combine(
            gates,
            fit_score,
            fit_factors,
            constraint_score,
            constraint_factors,
            match_input.momentum,
        )

        result = MatchResult(
            version=self.config.algorithm_version,
            gates=gates,
            fit_score=fit_score,
            fit_factors=fit_factors,
            constraint_score=constraint_score,
            constraint_factors=constraint_factors,
            overall_match=overall,
            deal_probability=deal,
            explainability=explainability,
            normalized_skills=normalized,
            evaluated_at=datetime.now(UTC),
            candidate_id=match_input.candidate_id,
            job_id=match_input.job_id,
        )
        logger.info(
            "Evaluated match candidate=%s job=%s version=%s gate=%s overall=%s deal=%s",
            result.candidate_id,
            result.job_id,
            result.version,
            gates.overall_gate.value if gates.overall_gate else None,
            overall,
            deal,
        )
        return result

    async def evaluate_async(self, match_input: MatchInput | dict[str, Any]) -> MatchResult:
        """Run ``evaluate`` in a worker thread so a slow classifier never blocks the loop."""
        return await asyncio.to_thread(self.evaluate, match_input)

    def format_result(self, result: MatchResult) -> str:
        """Format MatchResult for CLI output."""
        lines: list[str] = []
        if result.candidate_id or result.job_id:
            lines.append(
                f"Candidate {result.candidate_id or '-'} / Job {result.job_id or '-'}"
            )

        gates = result.gates
        lines.append(
            f"Overall: {result.overall_match}% "
            f"(deal probability {result.deal_probability}%, "
            f"gate={gates.overall_gate.value.upper() if gates.overall_gate else '-'}, "
            f"version={result.version})"
        )
        lines.append(
            "Gates: "
            + " ".join(f"{name.value}={verdict.value}" for name, verdict in gates.by_gate().items())
        )

        fit = result.fit_factors
        lines.append(
            f"Fit: {result.fit_score} "
            f"(skills={fit.skills.score} experience={fit.experience.score} "
            f"industry={fit.industry.score})"
        )
        if fit.skills.matched:
            lines.append(f"Skills matched: {', '.join(fit.skills.matched)}")
        if fit.skills.transferable:
            lines.append(f"Skills transferable: {', '.join(fit.skills.transferable)}")
        if fit.skills.missing:
            lines.append(f"Skills missing: {', '.join(fit.skills.missing)}")

        constraints = result.constraint_factors
        lines.append(
            f"Constraints: {result.constraint_score} "
            f"(salary={constraints.salary.score} commute={constraints.commute.score} "
            f"start_date={constraints.start_date.score})"
        )

        explain = result.explainability
        if explain.top_reasons:
            lines.append(f"Reasons: {'; '.join(explain.top_reasons)}")
        if explain.top_risks:
            lines.append(f"Risks: {'; '.join(explain.top_risks)}")
        if explain.why_not:
            lines.append(f"Why not: {explain.why_not}")
        lines.append(f"Next action: {explain.next_action}")
        return "\n".join(lines)
