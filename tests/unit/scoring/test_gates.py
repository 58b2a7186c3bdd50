"""Tests for the gate evaluator."""

import itertools

import pytest


def _evaluate(config, match_input):
    from matchscore.scoring.gates import GateEvaluator

    return GateEvaluator(config=config).evaluate(match_input)


class TestSalaryGate:
    """Test salary ceiling checks."""

    def test_within_ceiling_passes(self, scoring_config, make_input):
        """Expectation at or under the ceiling should pass."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(scoring_config, make_input(candidate={"expected_salary": 100000}))

        assert result.salary == GateVerdict.PASS
        assert "salary" not in result.notes

    def test_example_within_tolerance_warns(self, scoring_config, make_input):
        """70k against a 65k ceiling is within 15% and should warn, not fail."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(candidate={"expected_salary": 70000}, job={"salary_ceiling": 65000}),
        )

        assert result.salary == GateVerdict.WARN
        assert "7.7%" in result.notes["salary"]

    def test_beyond_tolerance_fails(self, scoring_config, make_input):
        """75k against a 65k ceiling exceeds 74.75k and should fail."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(candidate={"expected_salary": 75000}, job={"salary_ceiling": 65000}),
        )

        assert result.salary == GateVerdict.FAIL

    def test_beyond_tolerance_but_negotiable_warns(self, scoring_config, make_input):
        """Negotiable candidates should only warn."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(
                candidate={"expected_salary": 90000, "salary_negotiable": True},
                job={"salary_ceiling": 65000},
            ),
        )

        assert result.salary == GateVerdict.WARN
        assert "negotiable" in result.notes["salary"]

    def test_minimum_salary_is_used_when_given(self, scoring_config, make_input):
        """The minimum acceptable salary drives the gate."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(
                candidate={"expected_salary": 90000, "minimum_salary": 64000},
                job={"salary_ceiling": 65000},
            ),
        )

        assert result.salary == GateVerdict.PASS

    def test_missing_ceiling_raises_when_gate_requested(self, scoring_config, make_input):
        """A salary gate without a ceiling is an input error."""
        from matchscore.scoring.models import InputValidationError

        with pytest.raises(InputValidationError) as exc_info:
            _evaluate(scoring_config, make_input(job={"salary_ceiling": None}))

        assert exc_info.value.field_name == "job.salary_ceiling"

    def test_missing_ceiling_ignored_when_gate_not_requested(self, scoring_config, make_input):
        """Unrequested gates report pass and need no data."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(
                job={"salary_ceiling": None},
                requested_gates=["commute", "work_auth", "availability"],
            ),
        )

        assert result.salary == GateVerdict.PASS

    def test_no_candidate_figure_passes(self, scoring_config, make_input):
        """Without a candidate salary there is nothing to check."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(candidate={"expected_salary": None}, job={"salary_ceiling": None}),
        )

        assert result.salary == GateVerdict.PASS


class TestCommuteGate:
    """Test commute caps."""

    def test_remote_always_passes(self, scoring_config, make_input):
        """Remote roles ignore distance."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(candidate={"commute_minutes": 300}, job={"remote_policy": "remote"}),
        )

        assert result.commute == GateVerdict.PASS

    def test_onsite_over_hard_cap_fails(self, scoring_config, make_input):
        """100 minutes on-site exceeds the 90 minute cap."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(scoring_config, make_input(candidate={"commute_minutes": 100}))

        assert result.commute == GateVerdict.FAIL
        assert "100 min" in result.notes["commute"]

    def test_hybrid_over_hard_cap_warns(self, scoring_config, make_input):
        """Hybrid roles only warn above the hard cap."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(
                candidate={"commute_minutes": 100},
                job={"remote_policy": "hybrid", "onsite_days": 2},
            ),
        )

        assert result.commute == GateVerdict.WARN

    def test_over_soft_cap_warns(self, scoring_config, make_input):
        """Between the soft and hard cap the gate warns."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(scoring_config, make_input(candidate={"commute_minutes": 50}))

        assert result.commute == GateVerdict.WARN

    def test_unknown_commute_passes(self, scoring_config, make_input):
        """No minutes and no coordinates means pass."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(scoring_config, make_input(candidate={"commute_minutes": None}))

        assert result.commute == GateVerdict.PASS

    def test_commute_estimated_from_coordinates(self, scoring_config, make_input):
        """Far-apart coordinates should fail an on-site role."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(
                candidate={
                    "commute_minutes": None,
                    "home_location": {"latitude": 52.37, "longitude": 4.90},
                },
                job={"office_location": {"latitude": 51.92, "longitude": 4.48}},
            ),
        )

        # Amsterdam to Rotterdam is roughly 57 km, about 98 minutes at 35 km/h.
        assert result.commute == GateVerdict.FAIL


class TestWorkAuthGate:
    """Test the binary work-authorization gate."""

    def test_needs_sponsorship_without_offer_fails(self, scoring_config, make_input):
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(scoring_config, make_input(candidate={"needs_sponsorship": True}))

        assert result.work_auth == GateVerdict.FAIL

    @pytest.mark.parametrize(
        "candidate,job",
        [
            ({"needs_sponsorship": True}, {"offers_sponsorship": True}),
            ({"needs_sponsorship": True}, {"requires_work_authorization": False}),
            ({"needs_sponsorship": False}, {}),
        ],
    )
    def test_other_combinations_pass(self, scoring_config, make_input, candidate, job):
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(scoring_config, make_input(candidate=candidate, job=job))

        assert result.work_auth == GateVerdict.PASS


class TestAvailabilityGate:
    """Test start-date windows."""

    @pytest.mark.parametrize(
        "earliest,expected",
        [
            ("2026-02-01", "pass"),
            ("2026-04-30", "pass"),
            ("2026-05-01", "warn"),
            ("2026-06-29", "warn"),
            ("2026-06-30", "fail"),
        ],
    )
    def test_windows_relative_to_target_start(
        self, scoring_config, make_input, earliest, expected
    ):
        """60 days late is still pass, 61 warns, 121 fails."""
        result = _evaluate(
            scoring_config,
            make_input(
                candidate={"earliest_start": earliest}, job={"target_start": "2026-03-01"}
            ),
        )

        assert result.availability.value == expected

    def test_falls_back_to_evaluation_date(self, scoring_config, make_input):
        """Without a target start, evaluated_on is the reference date."""
        from matchscore.scoring.models import GateVerdict

        result = _evaluate(
            scoring_config,
            make_input(
                candidate={"earliest_start": "2026-06-01"},
                job={"target_start": None},
                evaluated_on="2026-01-15",
            ),
        )

        assert result.availability == GateVerdict.FAIL


class TestOverallGate:
    """overall_gate is always the worst individual gate."""

    def test_overall_is_worst_of_all_gates(self, scoring_config, make_input):
        """Exhaustively combine gate-driving inputs."""
        salaries = [90000, 110000, 130000]
        commutes = [30, 60, 120]
        sponsorship = [False, True]
        starts = ["2026-02-01", "2026-05-15", "2026-08-01"]
        order = {"pass": 0, "warn": 1, "fail": 2}

        for salary, commute, sponsor, start in itertools.product(
            salaries, commutes, sponsorship, starts
        ):
            result = _evaluate(
                scoring_config,
                make_input(
                    candidate={
                        "expected_salary": salary,
                        "commute_minutes": commute,
                        "needs_sponsorship": sponsor,
                        "earliest_start": start,
                    }
                ),
            )
            worst = max(
                (result.salary, result.commute, result.work_auth, result.availability),
                key=lambda v: order[v.value],
            )
            assert result.overall_gate == worst

    def test_gate_result_rejects_inconsistent_overall(self):
        """A GateResult cannot claim pass when a gate failed."""
        from matchscore.scoring.models import GateResult, GateVerdict

        with pytest.raises(ValueError):
            GateResult(commute=GateVerdict.FAIL, overall_gate=GateVerdict.PASS)

        assert GateResult(salary=GateVerdict.WARN).overall_gate == GateVerdict.WARN
