"""Apply or roll back the database schema migrations.

The database URL comes from the application settings (``DATABASE_URL`` or
the ``POSTGRES_*`` variables) unless ``--database-url`` is given.

Usage:
    python -m scripts.migrate up
    python -m scripts.migrate down
    python -m scripts.migrate to 0001
"""

import argparse
import logging
import sys

from leasehold.core.logging import configure_logging
from leasehold.db.migrate import downgrade, migrate_to, run_migrations

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--database-url", default=None, help="Override the database URL")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("up", help="Upgrade to the latest revision")
    commands.add_parser("down", help="Roll back the last revision")
    to = commands.add_parser("to", help="Move to a specific revision")
    to.add_argument("revision", help="Target revision id, 'head' or 'base'")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("INFO")

    try:
        if args.command == "up":
            run_migrations(args.database_url)
        elif args.command == "down":
            downgrade("-1", args.database_url)
        else:
            migrate_to(args.revision, args.database_url)
    except Exception:
        logger.exception("Migration failed")
        return 1

    logger.info("Migration finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
