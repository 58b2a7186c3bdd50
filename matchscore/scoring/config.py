"""Configuration settings for match scoring."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_Weight = Annotated[float, Field(ge=0.0, le=1.0)]
_Score = Annotated[int, Field(ge=0, le=100)]


class ScoringConfig(BaseSettings):
    """Match scoring configuration settings.

    All settings have sensible defaults and can be overridden via
    environment variables with `SCORING_` prefix or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Every stored MatchResult is stamped with this; calibration groups by it.
    algorithm_version: str = Field(
        default="v3",
        min_length=1,
        description="Scoring algorithm revision stamped on every MatchResult",
    )

    taxonomy_path: Path | None = Field(
        default=None,
        description="Optional YAML/JSON skill taxonomy (defaults to built-in vocabulary)",
    )

    # Top-level blend (must sum to 1.0)
    weight_fit: _Weight = Field(default=0.55, description="Weight of the fit score")
    weight_constraints: _Weight = Field(
        default=0.45, description="Weight of the constraint score"
    )

    # Fit breakdown (must sum to 1.0)
    weight_skills: _Weight = Field(default=0.50, description="Weight of skills")
    weight_experience: _Weight = Field(default=0.30, description="Weight of experience")
    weight_industry: _Weight = Field(default=0.20, description="Weight of industry")

    # Constraint breakdown (must sum to 1.0)
    weight_salary: _Weight = Field(default=0.40, description="Weight of salary fit")
    weight_commute: _Weight = Field(default=0.35, description="Weight of commute")
    weight_start_date: _Weight = Field(default=0.25, description="Weight of start date")

    # Gate thresholds
    salary_tolerance_percent: Annotated[float, Field(ge=0.0)] = Field(
        default=15.0,
        description="Allowed overshoot of the job's salary ceiling before failing",
    )
    commute_soft_cap_minutes: Annotated[int, Field(gt=0)] = Field(
        default=45, description="One-way commute above which the gate warns"
    )
    commute_hard_cap_minutes: Annotated[int, Field(gt=0)] = Field(
        default=90, description="One-way commute above which on-site roles fail"
    )
    availability_warn_days: Annotated[int, Field(ge=0)] = Field(
        default=60, description="Days past the target start that trigger a warning"
    )
    availability_fail_days: Annotated[int, Field(ge=0)] = Field(
        default=120, description="Days past the target start that fail the gate"
    )

    # Skills
    skill_fuzzy_threshold: Annotated[float, Field(gt=0.0, lt=1.0)] = Field(
        default=0.80,
        description="Minimum similarity ratio accepted by the fuzzy matcher",
    )
    transferable_confidence: _Score = Field(
        default=70,
        description="Fuzzy/AI matches below this confidence count as transferable",
    )
    transferable_credit: _Weight = Field(
        default=0.7, description="Credit given to a transferable skill"
    )
    nice_to_have_weight: _Weight = Field(
        default=0.5, description="Weight of a nice-to-have skill (required = 1.0)"
    )
    skills_neutral_score: _Score = Field(
        default=50, description="Skill score when the job lists no skills"
    )

    # Experience
    experience_level_years: dict[str, int] = Field(
        default_factory=lambda: {
            "junior": 0,
            "mid": 2,
            "senior": 5,
            "lead": 7,
            "principal": 10,
        },
        description="Minimum years of experience per job level",
    )
    experience_tolerance_years: Annotated[int, Field(ge=0)] = Field(
        default=2, description="Shortfall in years that still earns partial credit"
    )
    experience_partial_score: _Score = Field(default=70)
    experience_low_score: _Score = Field(default=30)

    # Industry
    industry_partial_score: _Score = Field(
        default=50, description="Industry score when no candidate industry matches"
    )
    industry_unknown_score: _Score = Field(
        default=75, description="Industry score when the job names no industry"
    )

    # Constraint sub-scores
    salary_score_floor: _Score = Field(default=20)
    commute_score_floor: _Score = Field(default=20)
    commute_unknown_score: _Score = Field(default=70)
    commute_speed_kmh: Annotated[float, Field(gt=0.0)] = Field(
        default=35.0,
        description="Average door-to-door speed used to estimate commute minutes",
    )
    start_date_warn_score: _Score = Field(default=70)
    start_date_score_floor: _Score = Field(default=30)

    # Combiner
    warn_penalty: _Weight = Field(
        default=0.10, description="Fractional reduction applied on an overall warn"
    )
    fail_penalty: _Weight = Field(
        default=0.50, description="Fractional reduction applied on an overall fail"
    )
    fail_cap: _Score = Field(
        default=35, description="Ceiling for overall_match when a gate fails"
    )
    deal_probability_floor: _Score = Field(default=5)
    deal_probability_ceiling: _Score = Field(default=95)
    high_match_threshold: _Score = Field(default=70)
    medium_match_threshold: _Score = Field(default=45)
    reason_min_score: _Score = Field(
        default=60, description="Minimum sub-score for a top reason"
    )
    risk_max_score: _Score = Field(
        default=40, description="Sub-scores below this are reported as risks"
    )

    # Classification collaborator (LLM)
    classifier_enabled: bool = Field(
        default=False,
        description="Use the LLM classifier as the last-resort normalization step",
    )
    ai_confidence_cap: _Score = Field(
        default=50, description="Upper bound for AI-assigned skill confidence"
    )
    llm_provider: str = Field(default="openai", description="LiteLLM provider")
    llm_model: str = Field(default="gpt-4o-mini", description="Model identifier")
    llm_api_key: str | None = Field(default=None, description="Provider API key")
    llm_base_url: str | None = Field(
        default=None, description="Base URL for OpenAI-compatible endpoints"
    )
    llm_timeout: Annotated[float, Field(gt=0.0)] = Field(
        default=5.0, description="Per-request timeout in seconds"
    )
    llm_max_retries: Annotated[int, Field(ge=0)] = Field(default=1)

    @model_validator(mode="after")
    def validate_weights_and_thresholds(self) -> ScoringConfig:
        """Ensure weight groups sum to 1.0 and thresholds are ordered."""
        groups = {
            "fit/constraints": (self.weight_fit, self.weight_constraints),
            "skills/experience/industry": (
                self.weight_skills,
                self.weight_experience,
                self.weight_industry,
            ),
            "salary/commute/start_date": (
                self.weight_salary,
                self.weight_commute,
                self.weight_start_date,
            ),
        }
        for name, weights in groups.items():
            weight_sum = sum(weights)
            if abs(weight_sum - 1.0) > 1e-6:
                raise ValueError(
                    f"Scoring weights {name} must sum to 1.0. "
                    f"Got {weight_sum:.6f} {weights}."
                )

        if self.commute_hard_cap_minutes <= self.commute_soft_cap_minutes:
            raise ValueError(
                "commute_hard_cap_minutes must be greater than commute_soft_cap_minutes"
            )
        if self.availability_fail_days <= self.availability_warn_days:
            raise ValueError(
                "availability_fail_days must be greater than availability_warn_days"
            )
        if self.medium_match_threshold >= self.high_match_threshold:
            raise ValueError(
                "medium_match_threshold must be lower than high_match_threshold"
            )
        if self.deal_probability_floor > self.deal_probability_ceiling:
            raise ValueError(
                "deal_probability_floor must not exceed deal_probability_ceiling"
            )
        return self


# Singleton instance for easy import
_scoring_config: ScoringConfig | None = None


def get_scoring_config() -> ScoringConfig:
    """Get the scoring configuration singleton."""
    global _scoring_config
    if _scoring_config is None:
        _scoring_config = ScoringConfig()
    return _scoring_config


def reset_scoring_config() -> None:
    """Reset the scoring configuration singleton (useful for testing)."""
    global _scoring_config
    _scoring_config = None
