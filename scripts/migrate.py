"""
Create the users/tasks schema in the configured database and drop legacy columns.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from todo_backend.config import get_settings
from todo_backend.db import SqlTaskRepository
from todo_backend.errors import StorageError

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the todo database schema")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL",
    )
    parser.add_argument(
        "--echo",
        action="store_true",
        help="Log every SQL statement",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    settings = get_settings()
    database_url = args.database_url or settings.database_url

    logger.info("Starting database migration...")
    repo = None
    try:
        repo = SqlTaskRepository(database_url, echo=args.echo, create_schema=False)
        repo.create_schema()
        repo.drop_legacy_columns()
    except StorageError as exc:
        logger.error("Migration failed: %s", exc.__cause__ or exc)
        return 1
    finally:
        if repo is not None:
            repo.dispose()
    logger.info("All migrations completed successfully")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
