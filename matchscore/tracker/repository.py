"""Database repository for match results and outcomes.

This module provides async SQLite database operations for storing
scoring results and the hiring outcomes later linked to them.
"""

import json
import sqlite3
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import aiosqlite

from matchscore.scoring.models import MatchResult
from matchscore.tracker.models import (
    OutcomeRecord,
    OutcomeType,
    RejectionCategory,
    RejectionSample,
    StoredMatchResult,
)

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS match_results (
    id TEXT PRIMARY KEY,
    candidate_id TEXT,
    job_id TEXT,
    version TEXT NOT NULL,
    overall_match INTEGER NOT NULL,
    deal_probability INTEGER NOT NULL,
    overall_gate TEXT NOT NULL,
    payload TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS match_outcomes (
    outcome_id TEXT PRIMARY KEY,
    match_result_id TEXT NOT NULL REFERENCES match_results(id),
    outcome TEXT NOT NULL,
    stage TEXT NOT NULL,
    rejection_category TEXT,
    rejection_reason TEXT,
    recorded_at TEXT NOT NULL,
    days_to_outcome INTEGER,
    supersedes_outcome_id TEXT UNIQUE REFERENCES match_outcomes(outcome_id)
);
"""

# The partial unique index is what makes "one outcome per match" atomic:
# only the first (non-correction) record for a match may omit supersedes_outcome_id.
CREATE_INDEX_SQL = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_outcomes_first_per_match
    ON match_outcomes(match_result_id) WHERE supersedes_outcome_id IS NULL;
CREATE INDEX IF NOT EXISTS idx_outcomes_match ON match_outcomes(match_result_id);
CREATE INDEX IF NOT EXISTS idx_results_version ON match_results(version);
"""

# An outcome is effective when no later record supersedes it.
EFFECTIVE_OUTCOME_SQL = """
NOT EXISTS (
    SELECT 1 FROM match_outcomes s WHERE s.supersedes_outcome_id = o.outcome_id
)
"""


class PersistenceError(Exception):
    """Raised when the store cannot be reached or written. Safe to retry."""

    retryable = True

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error
        self.result: MatchResult | None = None


class DuplicateOutcomeError(Exception):
    """Raised when an outcome already exists for a match (or was already corrected)."""

    def __init__(self, match_result_id: str, message: str | None = None):
        super().__init__(
            message or f"An outcome is already recorded for match {match_result_id}"
        )
        self.match_result_id = match_result_id


class UnknownMatchResultError(LookupError):
    """Raised when a match result id does not exist."""


class UnknownOutcomeError(LookupError):
    """Raised when an outcome id does not exist."""


class MatchRepository:
    """Async SQLite repository for match results and outcomes.

    Match results are append-only; outcomes are append-only with
    corrections stored as superseding records.
    """

    def __init__(self, db_path: Path | str):
        """Initialize the repository.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    @asynccontextmanager
    async def _get_connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get a database connection.

        Yields:
            An aiosqlite connection.

        Raises:
            PersistenceError: If the database cannot be opened or a statement fails.
        """
        if self._connection is None:
            try:
                connection = await aiosqlite.connect(self.db_path)
                connection.row_factory = aiosqlite.Row
                await connection.execute("PRAGMA foreign_keys = ON")
            except (sqlite3.Error, OSError) as e:
                raise PersistenceError(
                    f"Cannot open database {self.db_path}: {e}", e
                ) from e
            self._connection = connection

        try:
            yield self._connection
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Database operation failed: {e}", e) from e

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(
                f"Cannot create database directory {self.db_path.parent}: {e}", e
            ) from e

        async with self._get_connection() as conn:
            await conn.executescript(CREATE_TABLES_SQL)
            await conn.executescript(CREATE_INDEX_SQL)
            await conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def insert_match_result(self, result: MatchResult) -> str:
        """Store a MatchResult.

        Args:
            result: The scoring result to persist.

        Returns:
            The id assigned to the stored result.
        """
        match_result_id = uuid.uuid4().hex
        async with self._get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO match_results (
                    id, candidate_id, job_id, version, overall_match,
                    deal_probability, overall_gate, payload, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    match_result_id,
                    result.candidate_id,
                    result.job_id,
                    result.version,
                    result.overall_match,
                    result.deal_probability,
                    result.gates.overall_gate.value if result.gates.overall_gate else "pass",
                    json.dumps(result.to_dict()),
                    result.evaluated_at.isoformat(),
                ),
            )
            await conn.commit()
        return match_result_id

    async def get_match_result(self, match_result_id: str) -> StoredMatchResult | None:
        """Get a stored result by id.

        Args:
            match_result_id: The id returned by ``insert_match_result``.

        Returns:
            The stored result if found, None otherwise.
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT id, payload, created_at FROM match_results WHERE id = ?",
                (match_result_id,),
            )
            row = await cursor.fetchone()

        if row is None:
            return None

        return StoredMatchResult(
            match_result_id=row["id"],
            result=MatchResult.from_dict(json.loads(row["payload"])),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def insert_outcome(self, record: OutcomeRecord) -> None:
        """Insert an outcome record.

        The store rejects a second first-time outcome for the same match and
        a second correction of the same record; both surface as
        DuplicateOutcomeError and leave the existing rows untouched.

        Args:
            record: The outcome record to insert.

        Raises:
            DuplicateOutcomeError: If the insert would create a second outcome.
            UnknownMatchResultError: If the referenced match does not exist.
        """
        async with self._get_connection() as conn:
            try:
                await conn.execute(
                    """
                    INSERT INTO match_outcomes (
                        outcome_id, match_result_id, outcome, stage,
                        rejection_category, rejection_reason, recorded_at,
                        days_to_outcome, supersedes_outcome_id
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.outcome_id,
                        record.match_result_id,
                        record.outcome.value,
                        record.stage,
                        record.rejection_category.value
                        if record.rejection_category
                        else None,
                        record.rejection_reason,
                        record.recorded_at.isoformat(),
                        record.days_to_outcome,
                        record.supersedes_outcome_id,
                    ),
                )
            except sqlite3.IntegrityError as e:
                await conn.rollback()
                if "FOREIGN KEY" in str(e).upper():
                    raise UnknownMatchResultError(
                        f"Unknown match result: {record.match_result_id}"
                    ) from e
                if record.supersedes_outcome_id is not None:
                    raise DuplicateOutcomeError(
                        record.match_result_id,
                        f"Outcome {record.supersedes_outcome_id} was already corrected",
                    ) from e
                raise DuplicateOutcomeError(record.match_result_id) from e
            await conn.commit()

    async def get_outcome(self, outcome_id: str) -> OutcomeRecord | None:
        """Get an outcome record by id."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM match_outcomes WHERE outcome_id = ?",
                (outcome_id,),
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return self._row_to_outcome(row)

    async def get_outcome_history(self, match_result_id: str) -> list[OutcomeRecord]:
        """Return every outcome record for a match, oldest first."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM match_outcomes
                WHERE match_result_id = ?
                ORDER BY recorded_at ASC, rowid ASC
                """,
                (match_result_id,),
            )
            rows = await cursor.fetchall()

        return [self._row_to_outcome(row) for row in rows]

    async def get_effective_outcome(self, match_result_id: str) -> OutcomeRecord | None:
        """Return the latest non-superseded outcome for a match."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT o.* FROM match_outcomes o
                WHERE o.match_result_id = ? AND {EFFECTIVE_OUTCOME_SQL}
                """,
                (match_result_id,),
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return self._row_to_outcome(row)

    async def list_calibration_pairs(self, version: str) -> list[tuple[int, OutcomeType]]:
        """Return (deal_probability, effective outcome) pairs for one version.

        Args:
            version: Scoring algorithm version; other versions are never mixed in.

        Returns:
            One pair per match that has an outcome.
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT r.deal_probability AS deal_probability, o.outcome AS outcome
                FROM match_results r
                JOIN match_outcomes o ON o.match_result_id = r.id
                WHERE r.version = ? AND {EFFECTIVE_OUTCOME_SQL}
                ORDER BY r.created_at ASC
                """,
                (version,),
            )
            rows = await cursor.fetchall()

        return [(int(row["deal_probability"]), OutcomeType(row["outcome"])) for row in rows]

    async def list_rejections(self, version: str | None = None) -> list[RejectionSample]:
        """Return effective rejections joined with their predictions."""
        query = f"""
            SELECT r.id AS match_result_id, r.overall_match, r.deal_probability,
                   o.stage, o.rejection_category, o.rejection_reason
            FROM match_results r
            JOIN match_outcomes o ON o.match_result_id = r.id
            WHERE o.outcome = ? AND {EFFECTIVE_OUTCOME_SQL}
        """
        params: tuple = (OutcomeType.REJECTED.value,)
        if version is not None:
            query += " AND r.version = ?"
            params += (version,)

        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()

        return [
            RejectionSample(
                match_result_id=row["match_result_id"],
                overall_match=int(row["overall_match"]),
                deal_probability=int(row["deal_probability"]),
                stage=row["stage"],
                rejection_category=RejectionCategory(row["rejection_category"])
                if row["rejection_category"]
                else None,
                rejection_reason=row["rejection_reason"],
            )
            for row in rows
        ]

    async def count_results_by_version(self) -> dict[str, int]:
        """Return stored result counts grouped by algorithm version."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT version, COUNT(*) AS count FROM match_results GROUP BY version"
            )
            rows = await cursor.fetchall()

        return {row["version"]: int(row["count"]) for row in rows}

    def _row_to_outcome(self, row: aiosqlite.Row) -> OutcomeRecord:
        """Convert a database row to an OutcomeRecord.

        Args:
            row: The database row.

        Returns:
            An OutcomeRecord instance.
        """
        return OutcomeRecord(
            outcome_id=row["outcome_id"],
            match_result_id=row["match_result_id"],
            outcome=OutcomeType(row["outcome"]),
            stage=row["stage"],
            rejection_category=RejectionCategory(row["rejection_category"])
            if row["rejection_category"]
            else None,
            rejection_reason=row["rejection_reason"],
            recorded_at=datetime.fromisoformat(row["recorded_at"]),
            days_to_outcome=row["days_to_outcome"],
            supersedes_outcome_id=row["supersedes_outcome_id"],
        )
