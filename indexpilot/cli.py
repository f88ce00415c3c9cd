"""
IndexPilot - CLI.

Command-line entry point for scoring, review and custom index construction.

Usage:
    indexpilot init-db
    indexpilot score-batch AAPL MSFT
    indexpilot score-index US_TOP5 --date 2025-01-02
    indexpilot pending --date 2025-01-02
    indexpilot approve 3f1c... --by alice --comments "looks right"
    indexpilot create-signature --name "Tech tilt" --by alice --composition "Technology=60,Finance=40"
    indexpilot build-index 9ab2... --name "Tech tilt Jan"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from datetime import date
from typing import Any, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import inspect

from indexpilot import __version__
from indexpilot.core.config import get_settings
from indexpilot.core.exceptions import AppException
from indexpilot.core.logging import get_logger, setup_logging
from indexpilot.container import Container

logger = get_logger("cli")


# ============================================================
# ARGUMENT TYPES
# ============================================================

def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from e


def parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid id '{value}'") from e


def parse_composition(value: str) -> list[dict[str, Any]]:
    """Parse ``"Technology=60,Finance=40"`` into composition entries."""
    entries = []
    for part in value.split(","):
        if not part.strip():
            continue
        sector, sep, percentage = part.rpartition("=")
        if not sep or not sector.strip():
            raise argparse.ArgumentTypeError(f"invalid composition entry '{part}', expected SECTOR=PCT")
        try:
            entries.append({"sector": sector.strip(), "percentage": float(percentage)})
        except ValueError as e:
            raise argparse.ArgumentTypeError(f"invalid percentage in '{part}'") from e
    if not entries:
        raise argparse.ArgumentTypeError("composition must not be empty")
    return entries


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="indexpilot",
        description="LLM security scoring with human-approved custom indexes",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override LOG_LEVEL",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        help="Override LOG_FORMAT",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create database tables")

    # --------------------------------------------------------
    # Scoring
    # --------------------------------------------------------
    batch = commands.add_parser("score-batch", help="Score a list of tickers in one run")
    batch.add_argument("tickers", nargs="+", metavar="TICKER")

    batch_status = commands.add_parser("batch-status", help="Show a score run")
    batch_status.add_argument("run_id", type=parse_uuid)

    ticker_score = commands.add_parser("ticker-score", help="Show the latest score for a ticker")
    ticker_score.add_argument("ticker")

    score_index = commands.add_parser("score-index", help="Score every constituent of an index")
    score_index.add_argument("index_id", metavar="INDEX_ID")
    score_index.add_argument("--date", type=parse_date, default=None, metavar="YYYY-MM-DD",
                             help="Effective date (default: today)")

    # --------------------------------------------------------
    # Review
    # --------------------------------------------------------
    for name, help_text in (("pending", "List pending scores"),
                            ("scores", "List all scores"),
                            ("summary", "Count scores by approval state")):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("--date", type=parse_date, required=True, metavar="YYYY-MM-DD")

    for name in ("approve", "reject", "hold"):
        sub = commands.add_parser(name, help=f"{name.capitalize()} a pending constituent score")
        sub.add_argument("score_id", type=parse_uuid)
        sub.add_argument("--by", required=True, dest="reviewer", help="Reviewer name")
        sub.add_argument("--comments", default=None)

    # --------------------------------------------------------
    # Signatures & custom indexes
    # --------------------------------------------------------
    signature = commands.add_parser("create-signature", help="Create a sector signature")
    signature.add_argument("--name", required=True)
    signature.add_argument("--by", required=True, dest="created_by")
    signature.add_argument("--composition", required=True, type=parse_composition,
                           metavar="SECTOR=PCT[,SECTOR=PCT...]")
    signature.add_argument("--description", default=None)

    commands.add_parser("signatures", help="List signatures")

    show_signature = commands.add_parser("signature", help="Show a signature")
    show_signature.add_argument("signature_id", type=parse_uuid)

    build = commands.add_parser("build-index", help="Build a custom index from a signature")
    build.add_argument("signature_id", type=parse_uuid)
    build.add_argument("--name", required=True)

    custom_index = commands.add_parser("custom-index", help="Show a custom index")
    custom_index.add_argument("index_id", type=parse_uuid)

    custom_indexes = commands.add_parser("custom-indexes", help="List custom indexes")
    custom_indexes.add_argument("--signature", type=parse_uuid, default=None, dest="signature_id",
                                help="Only indexes built from this signature")

    return parser


# ============================================================
# OUTPUT
# ============================================================

def to_jsonable(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    if hasattr(obj, "__table__"):
        return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}
    return obj


def emit(obj: Any) -> None:
    print(json.dumps(to_jsonable(obj), indent=2, default=str))


# ============================================================
# COMMANDS
# ============================================================

async def run_command(container: Container, args: argparse.Namespace) -> Any:
    command = args.command

    if command == "init-db":
        await container.database.create_all()
        return {"status": "ok"}
    if command == "score-batch":
        run = await container.batches.create_batch(args.tickers)
        await container.batches.process_batch(run.id)
        return await container.batches.get_batch_status(run.id)
    if command == "batch-status":
        return await container.batches.get_batch_status(args.run_id)
    if command == "ticker-score":
        return await container.batches.get_ticker_score(args.ticker)
    if command == "score-index":
        return await container.orchestrator.score_index(args.index_id, args.date or date.today())
    if command == "pending":
        return await container.approvals.get_pending_scores(args.date)
    if command == "scores":
        return await container.approvals.get_all_scores_by_effective_date(args.date)
    if command == "summary":
        return await container.approvals.get_approval_summary(args.date)
    if command == "approve":
        return await container.approvals.approve_score(args.score_id, args.reviewer, args.comments)
    if command == "reject":
        return await container.approvals.reject_score(args.score_id, args.reviewer, args.comments)
    if command == "hold":
        return await container.approvals.hold_score(args.score_id, args.reviewer, args.comments)
    if command == "create-signature":
        return await container.signatures.create_signature(
            args.name, args.composition, args.created_by, args.description
        )
    if command == "signatures":
        return await container.signatures.list_signatures()
    if command == "signature":
        return await container.signatures.get_signature(args.signature_id)
    if command == "build-index":
        return await container.custom_indexes.create_custom_index(args.signature_id, args.name)
    if command == "custom-index":
        return await container.custom_indexes.get_custom_index(args.index_id)
    if command == "custom-indexes":
        return await container.custom_indexes.list_custom_indexes(args.signature_id)

    raise ValueError(f"Unknown command: {command}")


async def _main(args: argparse.Namespace) -> int:
    settings = get_settings()
    overrides = {
        key: value
        for key, value in (("log_level", args.log_level), ("log_format", args.log_format))
        if value
    }
    if overrides:
        settings = settings.model_copy(update=overrides)
    setup_logging(settings)

    async with Container(settings) as container:
        try:
            result = await run_command(container, args)
        except AppException as e:
            logger.error(f"{args.command} failed: {e.message}")
            print(json.dumps(e.to_dict(), default=str), file=sys.stderr)
            return 1
    emit(result)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
