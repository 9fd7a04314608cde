"""Recount denormalized counters from their source rows and report drift.

Usage:
  devhub-reconcile            # rewrite drifting counters
  devhub-reconcile --dry-run  # report only
"""
from __future__ import annotations

import argparse
import logging
import sys

from devhub.db.session import SessionLocal, transaction
from devhub.services.counters import reconcile_all
from devhub.services.view_cache import get_view_cache

logger = logging.getLogger("devhub.reconcile")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report drift without rewriting any counter.",
    )
    parser.add_argument(
        "--fail-on-drift",
        action="store_true",
        help="Exit with status 1 when any drift was found.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    with SessionLocal() as session:
        if args.dry_run:
            drifts = reconcile_all(session, fix=False)
        else:
            with transaction(session):
                drifts = reconcile_all(session, fix=True)

    if not args.dry_run:
        get_view_cache().clear()

    for drift in drifts:
        print(f"{drift.table}.{drift.column} {drift.entity_id}: {drift.stored} -> {drift.actual}")
    action = "found" if args.dry_run else "fixed"
    logger.info("%d drifting counter(s) %s", len(drifts), action)
    return 1 if drifts and args.fail_on_drift else 0


if __name__ == "__main__":
    sys.exit(main())
