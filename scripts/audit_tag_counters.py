#!/usr/bin/env python3
"""
Check every tag's usage counter against its actual number of taggings.

Reads DATABASE_URL (and the retry settings) from .env / the environment.

Usage:
    python -m scripts.audit_tag_counters            # report drift only
    python -m scripts.audit_tag_counters --repair   # rewrite drifted counters
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from posttags.config import get_settings
from posttags.database import get_async_session_factory
from posttags.posts.service import run_in_transaction
from posttags.tags.counters import audit_counters


async def main(repair: bool) -> int:
    settings = get_settings()
    session_factory = get_async_session_factory(settings.database_url)

    drifts = await run_in_transaction(
        session_factory,
        lambda db: audit_counters(db, repair=repair),
        max_attempts=settings.reconcile_max_attempts,
        backoff_s=settings.reconcile_retry_backoff_s,
    )
    await session_factory.kw["bind"].dispose()

    if not drifts:
        print("All tag counters match their taggings.")
        return 0
    for drift in drifts:
        print(f"  {drift.name}: recorded={drift.recorded} actual={drift.actual}")
    if repair:
        print(f"Repaired {len(drifts)} counter(s).")
        return 0
    print(f"{len(drifts)} counter(s) drifted. Re-run with --repair to fix.")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--repair", action="store_true", help="rewrite drifted counters")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.repair)))
