"""
Scheduled job to refresh stale catalog snapshots.

Reads refresh expired snapshots on demand; this job does it ahead of time
so reads stay fast. Can be run as a standalone script or from a scheduler:

    python -m tradebinder.jobs.refresh_catalog [--dry-run]
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta

from tradebinder.config import settings
from tradebinder.db.database import session_scope
from tradebinder.db.store import SqlCardStore, Store
from tradebinder.models.failure import CatalogUnavailableError
from tradebinder.services.catalog import CatalogCache, get_catalog_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RefreshSummary:
    scanned: int
    stale: int
    refreshed: int
    failed: int


async def refresh_expired(
    store: Store, cache: CatalogCache, dry_run: bool = False
) -> RefreshSummary:
    """
    Refresh and save every expired catalog snapshot in the store.

    A card the catalog cannot serve is logged and skipped; the next run
    retries it.

    Args:
        store: Inventory store
        cache: Catalog cache deciding staleness and performing lookups
        dry_run: Only count stale snapshots, change nothing

    Returns:
        Counts of scanned, stale, refreshed and failed records
    """
    records = await store.scan()
    stale = [record for record in records if cache.is_expired(record)]
    logger.info("Scanned %d cards, %d with stale catalog data", len(records), len(stale))

    if dry_run:
        return RefreshSummary(scanned=len(records), stale=len(stale), refreshed=0, failed=0)

    refreshed = 0
    failed = 0
    for record in stale:
        try:
            fetched = await cache.fetch(record.set_code, record.card_number, record)
        except CatalogUnavailableError as e:
            logger.warning("Could not refresh %s: %s", record.key, e.detail)
            failed += 1
            continue

        await store.put(record.with_catalog(fetched.snapshot, fetched.expires_at))
        refreshed += 1

    logger.info("Catalog refresh complete: %d refreshed, %d failed", refreshed, failed)
    return RefreshSummary(
        scanned=len(records), stale=len(stale), refreshed=refreshed, failed=failed
    )


async def run_refresh(dry_run: bool = False) -> RefreshSummary:
    """Run the refresh against the configured database and catalog."""
    source = get_catalog_source()
    cache = CatalogCache(source, ttl=timedelta(hours=settings.catalog_ttl_hours))
    try:
        async with session_scope() as session:
            return await refresh_expired(SqlCardStore(session), cache, dry_run=dry_run)
    finally:
        await source.aclose()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for refreshing catalog data."""
    parser = argparse.ArgumentParser(description="Refresh stale catalog snapshots")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report how many snapshots are stale",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_refresh(dry_run=args.dry_run))


if __name__ == "__main__":
    main()
