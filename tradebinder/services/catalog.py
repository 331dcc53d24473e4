"""
Catalog access and caching.

The catalog (Scryfall) is the authority on which finishes a card exists in.
It is rate-limited and slow compared to the store, so each inventory record
carries the snapshot it was last validated against, plus an expiry. The
CatalogCache decides when that snapshot must be refreshed.

CatalogCache is pure: it never writes. Persisting a refreshed snapshot is
the caller's job.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any, Protocol

import httpx

from tradebinder.config import settings
from tradebinder.models.failure import CatalogNotFoundError, CatalogUnavailableError
from tradebinder.models.inventory import CatalogSnapshot, InventoryRecord, normalize_set_code

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(UTC)


class CatalogSource(Protocol):
    """Read-only lookup of catalog metadata for one card."""

    async def lookup(self, set_code: str, card_number: str) -> CatalogSnapshot:
        """
        Fetch metadata for a card.

        Raises:
            CatalogNotFoundError: If the catalog has no such card
            CatalogUnavailableError: If the catalog cannot be reached
        """
        ...


class ScryfallCatalog:
    """
    CatalogSource backed by the Scryfall REST API.

    The HTTP client is created on first use and reused for the life of the
    process. Call aclose() on shutdown.
    """

    def __init__(
        self,
        base_url: str = "https://api.scryfall.com",
        timeout: float = 10.0,
        user_agent: str = "TradeBinder/1.0",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            )
        return self._client

    async def raw_lookup(self, set_code: str, card_number: str) -> dict[str, Any]:
        """
        Fetch the raw catalog payload for a card.

        Raises:
            CatalogNotFoundError: On HTTP 404
            CatalogUnavailableError: On any other HTTP error, timeout,
                transport failure, or empty/invalid body
        """
        set_code = normalize_set_code(set_code)
        url = f"{self.base_url}/cards/{set_code}/{card_number}"

        try:
            response = await self._get_client().get(url)
            if response.status_code == 404:
                raise CatalogNotFoundError(set_code, card_number)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.warning(
                "Catalog lookup for %s:%s failed: HTTP %s", set_code, card_number, status_code
            )
            raise CatalogUnavailableError(set_code, card_number, f"HTTP {status_code}") from e
        except httpx.TimeoutException as e:
            logger.warning("Catalog lookup for %s:%s timed out", set_code, card_number)
            raise CatalogUnavailableError(set_code, card_number, "Timed out") from e
        except httpx.RequestError as e:
            logger.warning("Catalog lookup for %s:%s failed: %s", set_code, card_number, e)
            raise CatalogUnavailableError(set_code, card_number, str(e)) from e
        except ValueError as e:
            raise CatalogUnavailableError(set_code, card_number, "Invalid JSON body") from e

        if not isinstance(payload, dict) or not payload:
            raise CatalogUnavailableError(set_code, card_number, "Empty response")

        return payload

    async def lookup(self, set_code: str, card_number: str) -> CatalogSnapshot:
        payload = await self.raw_lookup(set_code, card_number)
        return CatalogSnapshot.from_payload(payload)

    async def aclose(self) -> None:
        """Close the underlying HTTP client, if one was opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@lru_cache(maxsize=1)
def get_catalog_source() -> ScryfallCatalog:
    """
    Get the process-wide catalog client.

    Built from settings on first call and reused afterwards.
    """
    return ScryfallCatalog(
        base_url=settings.catalog_base_url,
        timeout=settings.catalog_timeout_seconds,
        user_agent=settings.catalog_user_agent,
    )


@dataclass(frozen=True, slots=True)
class CatalogFetch:
    """Result of CatalogCache.fetch."""

    snapshot: CatalogSnapshot
    expires_at: datetime
    is_fresh: bool
    """True if the cached snapshot was reused (no lookup happened)."""


class CatalogCache:
    """TTL gate in front of a CatalogSource."""

    def __init__(
        self,
        source: CatalogSource,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utcnow,
    ) -> None:
        self.source = source
        self.ttl = ttl
        self.clock = clock

    def is_expired(self, record: InventoryRecord | None) -> bool:
        """
        Whether the record's snapshot must be refreshed before use.

        An expiry equal to the current time counts as expired.
        """
        return self._cached(record) is None

    def _cached(self, record: InventoryRecord | None) -> CatalogFetch | None:
        """The record's snapshot as a fresh fetch, or None if it has to be refetched."""
        if record is None or record.catalog is None or record.catalog_expires_at is None:
            return None
        if self.clock() >= record.catalog_expires_at:
            return None
        return CatalogFetch(
            snapshot=record.catalog,
            expires_at=record.catalog_expires_at,
            is_fresh=True,
        )

    async def fetch(
        self,
        set_code: str,
        card_number: str,
        record: InventoryRecord | None,
    ) -> CatalogFetch:
        """
        Get catalog metadata for a card, reusing the record's snapshot if fresh.

        Raises:
            CatalogUnavailableError: If a lookup was needed and failed
        """
        cached = self._cached(record)
        if cached is not None:
            logger.debug("Catalog cache hit for %s:%s", normalize_set_code(set_code), card_number)
            return cached

        snapshot = await self.source.lookup(set_code, card_number)
        expires_at = self.clock() + self.ttl
        logger.info(
            "Refreshed catalog for %s:%s (valid until %s)",
            normalize_set_code(set_code),
            card_number,
            expires_at.isoformat(),
        )
        return CatalogFetch(snapshot=snapshot, expires_at=expires_at, is_fresh=False)
