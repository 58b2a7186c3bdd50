"""Main entry point for match-score."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from matchscore import __version__
from matchscore.config.settings import Settings
from matchscore.utils.logging import configure_logging, get_logger

logger = get_logger("cli")


def _bucket_count(value: str) -> int:
    count = int(value)
    if not (2 <= count <= 100):
        raise argparse.ArgumentTypeError("--buckets must be between 2 and 100")
    return count


def _load_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def _write_json(path: Path, payload: object) -> None:
    def _default(value: object):
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        model_dump = getattr(value, "model_dump", None)
        if callable(model_dump):
            return model_dump(mode="json")
        return str(value)

    path.write_text(
        json.dumps(payload, indent=2, default=_default),
        encoding="utf-8",
    )


def _add_db_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Override database path (defaults to settings)",
    )


def _add_outcome_arguments(parser: argparse.ArgumentParser) -> None:
    from matchscore.tracker.models import OutcomeType, RejectionCategory

    parser.add_argument(
        "--outcome",
        choices=[o.value for o in OutcomeType],
        required=True,
        help="Terminal outcome",
    )
    parser.add_argument(
        "--stage",
        type=str,
        required=True,
        help="Pipeline stage where the outcome happened (e.g. interview)",
    )
    parser.add_argument(
        "--category",
        choices=[c.value for c in RejectionCategory],
        default=None,
        help="Rejection category (rejected outcomes only)",
    )
    parser.add_argument(
        "--reason",
        type=str,
        default=None,
        help="Optional free-text rejection reason",
    )
    _add_db_argument(parser)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="match-score",
        description="match-score: candidate-job match scoring and calibration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m matchscore evaluate --input match.json --store
  python -m matchscore outcome record --match-id ID --outcome hired --stage offer
  python -m matchscore calibrate --version v3
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the log level (overrides settings)",
    )

    subparsers = parser.add_subparsers(
        dest="mode",
        title="modes",
        description="Available commands",
    )

    evaluate_parser = subparsers.add_parser(
        "evaluate",
        help="Score a candidate/job snapshot",
    )
    evaluate_parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to a MatchInput JSON file",
    )
    evaluate_parser.add_argument(
        "--store",
        action="store_true",
        help="Persist the result and print its id",
    )
    evaluate_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Optional path to write the MatchResult JSON",
    )
    evaluate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full MatchResult as JSON",
    )
    _add_db_argument(evaluate_parser)

    outcome_parser = subparsers.add_parser(
        "outcome",
        help="Outcome utilities (record, correct, show)",
    )
    outcome_subparsers = outcome_parser.add_subparsers(
        dest="outcome_cmd",
        title="outcome",
        description="Outcome operations",
        required=True,
    )

    outcome_record = outcome_subparsers.add_parser("record", help="Record an outcome")
    outcome_record.add_argument(
        "--match-id",
        type=str,
        required=True,
        help="Stored match result id",
    )
    _add_outcome_arguments(outcome_record)

    outcome_correct = outcome_subparsers.add_parser(
        "correct", help="Supersede an outcome with a corrected one"
    )
    outcome_correct.add_argument(
        "--outcome-id",
        type=str,
        required=True,
        help="Outcome id to supersede",
    )
    _add_outcome_arguments(outcome_correct)

    outcome_show = outcome_subparsers.add_parser("show", help="Show outcome history")
    outcome_show.add_argument(
        "--match-id",
        type=str,
        required=True,
        help="Stored match result id",
    )
    _add_db_argument(outcome_show)

    calibrate_parser = subparsers.add_parser(
        "calibrate",
        help="Reliability table of predicted vs observed hire rate",
    )
    calibrate_parser.add_argument(
        "--version",
        dest="algorithm_version",
        type=str,
        required=True,
        help="Scoring algorithm version to report on (e.g. v3)",
    )
    calibrate_parser.add_argument(
        "--buckets",
        type=_bucket_count,
        default=None,
        help="Number of equal-width buckets (defaults to settings)",
    )
    calibrate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )
    _add_db_argument(calibrate_parser)

    rejections_parser = subparsers.add_parser(
        "rejections",
        help="Rejections grouped by category",
    )
    rejections_parser.add_argument(
        "--version",
        dest="algorithm_version",
        type=str,
        default=None,
        help="Optional scoring algorithm version filter",
    )
    rejections_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis as JSON",
    )
    _add_db_argument(rejections_parser)

    return parser


async def _run_store_command(parsed: argparse.Namespace, settings: Settings) -> int:
    from matchscore.scoring.service import MatchScoringService
    from matchscore.tracker.calibration import (
        format_calibration_report,
        format_rejection_analysis,
    )
    from matchscore.tracker.repository import MatchRepository
    from matchscore.tracker.service import MatchService

    db_path = getattr(parsed, "db", None) or settings.database_path
    logger.debug("Using database %s", db_path)
    repo = MatchRepository(db_path)
    await repo.initialize()

    try:
        if parsed.mode == "evaluate":
            scoring = MatchScoringService()
            service = MatchService(repo, scoring=scoring, settings=settings)
            match_result_id, result = await service.evaluate_and_store(
                _load_json(parsed.input)
            )
            if parsed.out:
                _write_json(parsed.out, result)
            if parsed.json:
                print(json.dumps(result.to_dict(), indent=2))
            else:
                print(scoring.format_result(result))
            print(f"Stored as: {match_result_id}")
            return 0

        service = MatchService(repo, settings=settings)

        if parsed.mode == "outcome":
            if parsed.outcome_cmd == "record":
                record = await service.record_outcome(
                    parsed.match_id,
                    parsed.outcome,
                    parsed.stage,
                    rejection_category=parsed.category,
                    rejection_reason=parsed.reason,
                )
                print(json.dumps(record.to_dict(), indent=2))
                return 0

            if parsed.outcome_cmd == "correct":
                record = await service.correct_outcome(
                    parsed.outcome_id,
                    parsed.outcome,
                    parsed.stage,
                    rejection_category=parsed.category,
                    rejection_reason=parsed.reason,
                )
                print(json.dumps(record.to_dict(), indent=2))
                return 0

            if parsed.outcome_cmd == "show":
                history = await service.outcome_history(parsed.match_id)
                if not history:
                    print("Not found")
                    return 1
                print(json.dumps([r.to_dict() for r in history], indent=2))
                return 0

            print("Unknown outcome command", file=sys.stderr)
            return 1

        if parsed.mode == "calibrate":
            report = await service.calibration_report(
                parsed.algorithm_version, bucket_count=parsed.buckets
            )
            if parsed.json:
                print(json.dumps(report.to_dict(), indent=2))
            else:
                print(format_calibration_report(report))
            return 0

        if parsed.mode == "rejections":
            analysis = await service.rejection_analysis(parsed.algorithm_version)
            if parsed.json:
                print(json.dumps(analysis.to_dict(), indent=2))
            else:
                print(format_rejection_analysis(analysis))
            return 0

        print(f"Unknown command: {parsed.mode}", file=sys.stderr)
        return 1
    finally:
        await repo.close()


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    from matchscore.scoring.models import InputValidationError
    from matchscore.tracker.repository import (
        DuplicateOutcomeError,
        PersistenceError,
        UnknownMatchResultError,
        UnknownOutcomeError,
    )

    parser = create_parser()
    parsed = parser.parse_args(args)

    # Load settings
    try:
        settings = Settings()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    configure_logging(level=parsed.log_level, settings=settings)

    # If no mode specified, show help
    if parsed.mode is None:
        parser.print_help()
        return 0

    if parsed.mode == "evaluate" and not parsed.store:
        from matchscore.scoring.service import MatchScoringService

        try:
            payload = _load_json(parsed.input)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Cannot read input {parsed.input}: {e}", file=sys.stderr)
            return 1

        scoring = MatchScoringService()
        try:
            result = scoring.evaluate(payload)
        except InputValidationError as e:
            print(f"Invalid input: {e}", file=sys.stderr)
            return 1

        if parsed.out:
            _write_json(parsed.out, result)
        if parsed.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print(scoring.format_result(result))
        return 0

    try:
        return asyncio.run(_run_store_command(parsed, settings))
    except InputValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1
    except DuplicateOutcomeError as e:
        print(f"Duplicate outcome: {e}", file=sys.stderr)
        return 1
    except (UnknownMatchResultError, UnknownOutcomeError) as e:
        print(f"Not found: {e}", file=sys.stderr)
        return 1
    except PersistenceError as e:
        print(f"Storage error (retryable): {e}", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read input: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
