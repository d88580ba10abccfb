"""Maintenance entry point: ``python -m nativepace``."""
import argparse
import logging
import sys
from typing import List, Optional

from nativepace.config import settings
from nativepace.logging_config import setup_logging
from nativepace.models.base import SessionLocal, init_db
from nativepace.monitoring import start_monitoring
from nativepace.services.review_queue import format_due_count
from nativepace.services.session_service import SessionService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nativepace", description="NativePace learning engine tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="create the database tables")

    due = subparsers.add_parser("due", help="show patterns due for review")
    due.add_argument("user_id", type=int)
    due.add_argument("--limit", type=int, default=None)

    stats = subparsers.add_parser("stats", help="show learner statistics")
    stats.add_argument("user_id", type=int)

    return parser


def show_due(user_id: int, limit: Optional[int]) -> None:
    db = SessionLocal()
    try:
        summary = SessionService(db).get_due_summary(user_id, limit=limit)
    finally:
        db.close()

    print(f"{format_due_count(summary.total_due)} due for review")
    for category in summary.categories:
        print(f"  {category.display_name}: {category.count}")


def show_stats(user_id: int) -> None:
    db = SessionLocal()
    try:
        stats = SessionService(db).progress_service.get_user_stats(user_id)
    finally:
        db.close()

    mastery_by_category = stats.pop("mastery_by_category")
    for key, value in stats.items():
        print(f"{key.replace('_', ' ').capitalize()}: {value}")
    print("Mastery by category:")
    for category, mastery in mastery_by_category.items():
        print(f"  {category}: {mastery}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("NativePace maintenance")

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)
        logger.info(f"Metrics served on port {settings.monitoring.port}")

    init_db()
    if args.command == "init-db":
        logger.info(f"Database ready at {settings.database.url}")
    elif args.command == "due":
        show_due(args.user_id, args.limit)
    elif args.command == "stats":
        show_stats(args.user_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
