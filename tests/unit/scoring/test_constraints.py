"""Tests for the constraint scorer."""

import pytest


def _scorer(config):
    from matchscore.scoring.constraints import ConstraintScorer

    return ConstraintScorer(config=config)


class TestSalaryScore:
    """Test the salary sub-score."""

    def test_within_ceiling_scores_100(self, scoring_config, make_input):
        factor = _scorer(scoring_config).score_salary(make_input())

        assert factor.score == 100
        assert factor.gap == 0
        assert factor.known is True

    @pytest.mark.parametrize(
        "expected_salary,expected_score",
        [(107500, 60), (115000, 20), (150000, 20)],
    )
    def test_overshoot_decays_linearly_to_floor(
        self, scoring_config, make_input, expected_salary, expected_score
    ):
        """100 at the ceiling, 20 at the tolerance and beyond."""
        factor = _scorer(scoring_config).score_salary(
            make_input(candidate={"expected_salary": expected_salary})
        )

        assert factor.score == expected_score
        assert factor.gap == expected_salary - 100000

    def test_reports_gap_percent_and_negotiable(self, scoring_config, make_input):
        factor = _scorer(scoring_config).score_salary(
            make_input(candidate={"expected_salary": 70000, "salary_negotiable": True},
                       job={"salary_ceiling": 65000})
        )

        assert factor.gap_percent == 7.7
        assert factor.negotiable is True

    def test_missing_figures_score_100(self, scoring_config, make_input):
        """Without a ceiling or expectation nothing can be penalized."""
        factor = _scorer(scoring_config).score_salary(
            make_input(candidate={"expected_salary": None})
        )

        assert factor.score == 100
        assert factor.known is False

    def test_expectation_within_ceiling_is_consistent_with_gate(
        self, scoring_config, make_input
    ):
        """Any expectation at or under the ceiling passes and scores 100."""
        from matchscore.scoring.gates import GateEvaluator
        from matchscore.scoring.models import GateVerdict

        evaluator = GateEvaluator(config=scoring_config)
        for ceiling in (40000, 65000, 100000, 250000):
            for share in (0.5, 0.8, 0.99, 1.0):
                match_input = make_input(
                    candidate={"expected_salary": int(ceiling * share)},
                    job={"salary_ceiling": ceiling},
                )

                assert evaluator.evaluate(match_input).salary == GateVerdict.PASS
                assert _scorer(scoring_config).score_salary(match_input).score == 100


class TestCommuteScore:
    """Test the commute sub-score."""

    def test_remote_scores_100(self, scoring_config, make_input):
        factor = _scorer(scoring_config).score_commute(
            make_input(candidate={"commute_minutes": 200}, job={"remote_policy": "remote"})
        )

        assert factor.score == 100

    def test_unknown_commute_scores_70(self, scoring_config, make_input):
        factor = _scorer(scoring_config).score_commute(
            make_input(candidate={"commute_minutes": None, "commute_confirmed": False})
        )

        assert factor.score == 70
        assert factor.minutes is None

    @pytest.mark.parametrize(
        "minutes,expected_score",
        [(20, 100), (45, 100), (60, 73), (90, 20), (150, 20)],
    )
    def test_onsite_decays_between_caps(
        self, scoring_config, make_input, minutes, expected_score
    ):
        factor = _scorer(scoring_config).score_commute(
            make_input(candidate={"commute_minutes": minutes})
        )

        assert factor.score == expected_score
        assert factor.minutes == minutes
        assert factor.confirmed is True
        assert factor.estimated is False

    def test_hybrid_recovers_part_of_the_loss(self, scoring_config, make_input):
        """3 office days at 90 min: 20 + 80 * 0.4 * 0.5 = 36."""
        factor = _scorer(scoring_config).score_commute(
            make_input(
                candidate={"commute_minutes": 90},
                job={"remote_policy": "hybrid", "onsite_days": 3},
            )
        )

        assert factor.score == 36

    def test_hybrid_full_week_is_treated_as_onsite(self, scoring_config, make_input):
        factor = _scorer(scoring_config).score_commute(
            make_input(
                candidate={"commute_minutes": 90},
                job={"remote_policy": "hybrid", "onsite_days": 5},
            )
        )

        assert factor.score == 20

    def test_estimated_commute_is_flagged(self, scoring_config, make_input):
        factor = _scorer(scoring_config).score_commute(
            make_input(
                candidate={
                    "commute_minutes": None,
                    "home_location": {"latitude": 52.37, "longitude": 4.90},
                },
                job={"office_location": {"latitude": 52.37, "longitude": 4.90}},
            )
        )

        assert factor.estimated is True
        assert factor.minutes == 0
        assert factor.score == 100


class TestStartDateScore:
    """Test the start-date sub-score."""

    @pytest.mark.parametrize(
        "earliest,expected_score,expected_days",
        [
            ("2026-02-01", 100, -28),
            ("2026-03-01", 100, 0),
            ("2026-03-31", 85, 30),
            ("2026-04-30", 70, 60),
            ("2026-05-30", 50, 90),
            ("2026-06-29", 30, 120),
            ("2026-12-01", 30, 275),
        ],
    )
    def test_piecewise_linear(
        self, scoring_config, make_input, earliest, expected_score, expected_days
    ):
        factor = _scorer(scoring_config).score_start_date(
            make_input(
                candidate={"earliest_start": earliest}, job={"target_start": "2026-03-01"}
            )
        )

        assert factor.score == expected_score
        assert factor.days_until == expected_days

    def test_unknown_start_scores_100(self, scoring_config, make_input):
        factor = _scorer(scoring_config).score_start_date(
            make_input(candidate={"earliest_start": None})
        )

        assert factor.score == 100
        assert factor.days_until == 0


class TestConstraintScore:
    """Test the blended constraint score."""

    def test_weighted_blend(self, scoring_config, make_input):
        """constraint = 0.40 salary + 0.35 commute + 0.25 start date."""
        score, factors = _scorer(scoring_config).score(
            make_input(
                candidate={
                    "expected_salary": 107500,
                    "commute_minutes": 90,
                    "earliest_start": "2026-03-31",
                },
                job={"target_start": "2026-03-01"},
            )
        )

        assert factors.salary.score == 60
        assert factors.commute.score == 20
        assert factors.start_date.score == 85
        assert score == round(60 * 0.40 + 20 * 0.35 + 85 * 0.25)
