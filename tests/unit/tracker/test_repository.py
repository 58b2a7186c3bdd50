"""Tests for the MatchRepository database layer."""

from datetime import UTC, datetime

import pytest

from matchscore.tracker.models import OutcomeRecord, OutcomeType, RejectionCategory


def _outcome(outcome_id, match_result_id, outcome=OutcomeType.HIRED, **kwargs):
    kwargs.setdefault("stage", "offer")
    kwargs.setdefault("recorded_at", datetime(2026, 2, 1, tzinfo=UTC))
    return OutcomeRecord(
        outcome_id=outcome_id,
        match_result_id=match_result_id,
        outcome=outcome,
        **kwargs,
    )


@pytest.fixture
async def repo(tmp_path):
    """Initialized repository on a temporary database."""
    from matchscore.tracker.repository import MatchRepository

    repository = MatchRepository(tmp_path / "test_matches.db")
    await repository.initialize()
    yield repository
    await repository.close()


class TestDatabaseInitialization:
    """Test database initialization."""

    @pytest.mark.asyncio
    async def test_creates_database_file_if_not_exists(self, tmp_path):
        """Should create database file (and parent dirs) if missing."""
        from matchscore.tracker.repository import MatchRepository

        db_path = tmp_path / "nested" / "matches.db"
        assert not db_path.exists()

        repository = MatchRepository(db_path)
        await repository.initialize()

        assert db_path.exists()
        await repository.close()

    @pytest.mark.asyncio
    async def test_creates_tables_with_correct_schema(self, repo):
        """Should create both tables with the expected columns."""
        async with repo._get_connection() as conn:
            cursor = await conn.execute("PRAGMA table_info(match_results)")
            result_columns = [col[1] for col in await cursor.fetchall()]
            cursor = await conn.execute("PRAGMA table_info(match_outcomes)")
            outcome_columns = [col[1] for col in await cursor.fetchall()]

        for col in ["id", "version", "deal_probability", "payload", "created_at"]:
            assert col in result_columns
        for col in [
            "outcome_id",
            "match_result_id",
            "outcome",
            "stage",
            "rejection_category",
            "supersedes_outcome_id",
        ]:
            assert col in outcome_columns

    @pytest.mark.asyncio
    async def test_handles_existing_database_gracefully(self, tmp_path):
        """Initializing twice should not error."""
        from matchscore.tracker.repository import MatchRepository

        db_path = tmp_path / "matches.db"
        first = MatchRepository(db_path)
        await first.initialize()
        await first.close()

        second = MatchRepository(db_path)
        await second.initialize()
        await second.close()

    @pytest.mark.asyncio
    async def test_unreachable_store_raises_persistence_error(self, tmp_path):
        """A directory in place of the database file should be retryable."""
        from matchscore.tracker.repository import MatchRepository, PersistenceError

        db_dir = tmp_path / "not_a_file"
        db_dir.mkdir()

        repository = MatchRepository(db_dir)
        with pytest.raises(PersistenceError) as exc_info:
            await repository.initialize()

        assert exc_info.value.retryable is True
        await repository.close()


class TestMatchResults:
    """Test storing and loading results."""

    @pytest.mark.asyncio
    async def test_insert_and_get_round_trip(self, repo, make_result):
        result = make_result(deal_probability=62, overall_match=60)

        match_result_id = await repo.insert_match_result(result)
        stored = await repo.get_match_result(match_result_id)

        assert stored is not None
        assert stored.match_result_id == match_result_id
        assert stored.result == result
        assert stored.created_at == result.evaluated_at

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, repo):
        assert await repo.get_match_result("missing") is None

    @pytest.mark.asyncio
    async def test_each_insert_gets_new_id(self, repo, make_result):
        result = make_result()

        first = await repo.insert_match_result(result)
        second = await repo.insert_match_result(result)

        assert first != second
        assert await repo.count_results_by_version() == {"v3": 2}


class TestOutcomes:
    """Test outcome insertion, duplicates and corrections."""

    @pytest.mark.asyncio
    async def test_insert_and_get_outcome(self, repo, make_result):
        match_result_id = await repo.insert_match_result(make_result())
        record = _outcome(
            "o1",
            match_result_id,
            OutcomeType.REJECTED,
            stage="onsite",
            rejection_category=RejectionCategory.CULTURE,
            days_to_outcome=31,
        )

        await repo.insert_outcome(record)

        assert await repo.get_outcome("o1") == record
        assert await repo.get_effective_outcome(match_result_id) == record

    @pytest.mark.asyncio
    async def test_duplicate_outcome_rejected_and_original_kept(self, repo, make_result):
        from matchscore.tracker.repository import DuplicateOutcomeError

        match_result_id = await repo.insert_match_result(make_result())
        await repo.insert_outcome(_outcome("o1", match_result_id, OutcomeType.HIRED))

        with pytest.raises(DuplicateOutcomeError) as exc_info:
            await repo.insert_outcome(
                _outcome("o2", match_result_id, OutcomeType.REJECTED, stage="screen")
            )

        assert exc_info.value.match_result_id == match_result_id
        history = await repo.get_outcome_history(match_result_id)
        assert [r.outcome_id for r in history] == ["o1"]
        assert history[0].outcome == OutcomeType.HIRED

    @pytest.mark.asyncio
    async def test_outcome_for_unknown_match_rejected(self, repo):
        from matchscore.tracker.repository import UnknownMatchResultError

        with pytest.raises(UnknownMatchResultError):
            await repo.insert_outcome(_outcome("o1", "does-not-exist"))

    @pytest.mark.asyncio
    async def test_correction_supersedes_original(self, repo, make_result):
        match_result_id = await repo.insert_match_result(make_result())
        await repo.insert_outcome(_outcome("o1", match_result_id, OutcomeType.HIRED))
        await repo.insert_outcome(
            _outcome(
                "o2",
                match_result_id,
                OutcomeType.WITHDREW,
                stage="offer",
                recorded_at=datetime(2026, 2, 3, tzinfo=UTC),
                supersedes_outcome_id="o1",
            )
        )

        effective = await repo.get_effective_outcome(match_result_id)
        history = await repo.get_outcome_history(match_result_id)

        assert effective is not None
        assert effective.outcome_id == "o2"
        assert [r.outcome_id for r in history] == ["o1", "o2"]
        assert (await repo.get_outcome("o1")).outcome == OutcomeType.HIRED

    @pytest.mark.asyncio
    async def test_record_can_only_be_corrected_once(self, repo, make_result):
        from matchscore.tracker.repository import DuplicateOutcomeError

        match_result_id = await repo.insert_match_result(make_result())
        await repo.insert_outcome(_outcome("o1", match_result_id))
        await repo.insert_outcome(
            _outcome("o2", match_result_id, OutcomeType.WITHDREW, supersedes_outcome_id="o1")
        )

        with pytest.raises(DuplicateOutcomeError, match="already corrected"):
            await repo.insert_outcome(
                _outcome("o3", match_result_id, OutcomeType.EXPIRED, supersedes_outcome_id="o1")
            )

        # The latest record can still be corrected.
        await repo.insert_outcome(
            _outcome("o3", match_result_id, OutcomeType.EXPIRED, supersedes_outcome_id="o2")
        )
        assert (await repo.get_effective_outcome(match_result_id)).outcome_id == "o3"


class TestCalibrationQueries:
    """Test the queries feeding calibration and rejection reports."""

    @pytest.mark.asyncio
    async def test_pairs_are_filtered_by_version(self, repo, make_result):
        v3 = await repo.insert_match_result(make_result(deal_probability=70))
        v4 = await repo.insert_match_result(make_result(deal_probability=30, version="v4"))
        no_outcome = await repo.insert_match_result(make_result(deal_probability=90))

        await repo.insert_outcome(_outcome("o1", v3, OutcomeType.HIRED))
        await repo.insert_outcome(_outcome("o2", v4, OutcomeType.EXPIRED))

        assert await repo.list_calibration_pairs("v3") == [(70, OutcomeType.HIRED)]
        assert await repo.list_calibration_pairs("v4") == [(30, OutcomeType.EXPIRED)]
        assert await repo.list_calibration_pairs("v5") == []
        assert no_outcome

    @pytest.mark.asyncio
    async def test_pairs_use_effective_outcome(self, repo, make_result):
        match_result_id = await repo.insert_match_result(make_result(deal_probability=55))
        await repo.insert_outcome(_outcome("o1", match_result_id, OutcomeType.HIRED))
        await repo.insert_outcome(
            _outcome(
                "o2",
                match_result_id,
                OutcomeType.REJECTED,
                stage="offer",
                supersedes_outcome_id="o1",
            )
        )

        assert await repo.list_calibration_pairs("v3") == [(55, OutcomeType.REJECTED)]

    @pytest.mark.asyncio
    async def test_list_rejections(self, repo, make_result):
        first = await repo.insert_match_result(make_result(deal_probability=40))
        second = await repo.insert_match_result(make_result(deal_probability=80, version="v4"))
        hired = await repo.insert_match_result(make_result(deal_probability=90))

        await repo.insert_outcome(
            _outcome(
                "o1",
                first,
                OutcomeType.REJECTED,
                stage="screen",
                rejection_category=RejectionCategory.SKILLS,
                rejection_reason="No Go experience",
            )
        )
        await repo.insert_outcome(_outcome("o2", second, OutcomeType.REJECTED, stage="onsite"))
        await repo.insert_outcome(_outcome("o3", hired, OutcomeType.HIRED))

        all_rejections = await repo.list_rejections()
        v3_rejections = await repo.list_rejections("v3")

        assert {r.match_result_id for r in all_rejections} == {first, second}
        assert len(v3_rejections) == 1
        assert v3_rejections[0].rejection_category == RejectionCategory.SKILLS
        assert v3_rejections[0].rejection_reason == "No Go experience"
        assert v3_rejections[0].overall_match == 40
