"""Move the configured database to an Alembic revision (``head`` by default)."""
from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Sequence

from alembic import command
from alembic.config import Config

from devhub.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations"))


def alembic_config(database_url: str | None = None) -> Config:
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url_sync)
    return cfg


def run_upgrade_head() -> None:
    command.upgrade(alembic_config(), "head")


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument(
        "--downgrade",
        action="store_true",
        help="move down to REVISION instead of up",
    )
    parser.add_argument("--sql", action="store_true", help="print SQL instead of executing it")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper())
    cfg = alembic_config()
    if args.downgrade:
        logger.info("Downgrading database to %s", args.revision)
        command.downgrade(cfg, args.revision, sql=args.sql)
    else:
        logger.info("Upgrading database to %s", args.revision)
        command.upgrade(cfg, args.revision, sql=args.sql)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
