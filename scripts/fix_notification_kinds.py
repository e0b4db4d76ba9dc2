"""Rewrite stored notifications whose kind is no longer supported to ``system``."""

from __future__ import annotations

import argparse
import logging
import sys

from tuition_api.domain.exceptions import PersistenceError
from tuition_api.infrastructure.database import SessionLocal, initialize_database
from tuition_api.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the repair."""

    parser = argparse.ArgumentParser(
        description="Normalize notification kinds outside the supported set to 'system'.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report how many notifications would be updated.",
    )
    return parser.parse_args()


def main() -> None:
    """Run the repair against the configured database."""

    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    initialize_database()

    session = SessionLocal()
    try:
        repository = NotificationRepository(session)
        if args.dry_run:
            count = repository.count_unknown_kinds()
            print(f"{count} notifications have an unsupported kind")
            return
        updated = repository.normalize_unknown_kinds()
    except PersistenceError as exc:
        print(f"Error while repairing notifications: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        session.close()

    print(f"Updated {updated} notifications with unsupported kinds to 'system'")


if __name__ == "__main__":
    main()
