"""
Data fetch orchestration for dashboard pages.

A page declares the sources it needs and the cache key it owns. On load the
orchestrator serves a fresh cache entry for the same date range if there is
one; otherwise it requests every source concurrently, substitutes placeholder
data for the sources that fail, caches the merged result and reports what
happened as a notice for the page to display.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Type

from pydantic import ValidationError

from marketing_pulse.dashboard import placeholder_data
from marketing_pulse.dashboard.cache import CacheManager
from marketing_pulse.dashboard.client import BackendClient, SourceUnavailable
from marketing_pulse.dashboard.dates import DateRange
from marketing_pulse.schemas import (
    AdsPayload,
    EmailPayload,
    GA4Payload,
    PulseModel,
    ShopifyPayload,
    SubblyPayload,
)

logger = logging.getLogger(__name__)


class FetchState(str, Enum):
    """
    Orchestrator lifecycle. A load moves IDLE to LOADING; its outcome
    (SUCCESS, PARTIAL_FAILURE or FAILURE) is reported in the FetchResult and
    kept as `outcome`, and the orchestrator is IDLE again once it returns.
    """
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FAILURE = "failure"


@dataclass(frozen=True)
class Source:
    """One backend source a page depends on."""
    key: str
    label: str
    endpoint: str
    schema: Type[PulseModel]
    placeholder: PulseModel


GA4 = Source("ga4", "Google Analytics", "ga4", GA4Payload, placeholder_data.GA4_DATA)
GOOGLE_ADS = Source("google_ads", "Google Ads", "google-ads", AdsPayload, placeholder_data.GOOGLE_ADS_DATA)
META_ADS = Source("meta_ads", "Meta Ads", "meta-ads", AdsPayload, placeholder_data.META_ADS_DATA)
EMAIL = Source("email", "MailerLite", "mailerlite", EmailPayload, placeholder_data.EMAIL_DATA)
MAILCHIMP = Source("email", "Mailchimp", "mailchimp", EmailPayload, placeholder_data.EMAIL_DATA)
SHOPIFY = Source("shopify", "Shopify", "shopify", ShopifyPayload, placeholder_data.SHOPIFY_DATA)
SUBBLY = Source("subbly", "Subbly", "subbly", SubblyPayload, placeholder_data.SUBBLY_DATA)


@dataclass
class Notice:
    """Non-blocking message for the page (rendered as a toast or banner)."""
    title: str
    description: str
    variant: str = "info"  # info, success, warning, error


@dataclass
class FetchResult:
    state: FetchState
    data: dict[str, PulseModel]
    failed_sources: list[str] = field(default_factory=list)
    from_cache: bool = False
    refreshed_at: Optional[datetime] = None
    notice: Optional[Notice] = None
    # True when a newer load started before this one finished
    stale: bool = False


class DataFetchOrchestrator:
    """
    Loads and caches the payloads of one dashboard page.

    Args:
        cache_key: the page's fixed cache key
        sources: sources to fetch, keyed in the result by `Source.key`
        cache: cache manager (file-backed by default)
        client_factory: returns an async context manager exposing `invoke`
        page_label: used in notices
    """

    def __init__(
        self,
        cache_key: str,
        sources: list[Source],
        cache: Optional[CacheManager] = None,
        client_factory: Callable[[], Any] = BackendClient,
        page_label: str = "dashboard",
    ):
        self.cache_key = cache_key
        self.sources = list(sources)
        self.cache = cache if cache is not None else CacheManager()
        self.client_factory = client_factory
        self.page_label = page_label

        self.state = FetchState.IDLE
        # Outcome of the last delivered load
        self.outcome: Optional[FetchState] = None
        self.data: dict[str, PulseModel] = {s.key: s.placeholder for s in self.sources}
        self.date_range: Optional[DateRange] = None
        self.last_refreshed = self.cache.last_refreshed(cache_key)
        self._generation = 0

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _from_cache(self, date_range: DateRange) -> Optional[dict[str, PulseModel]]:
        cached = self.cache.read(self.cache_key, date_range)
        if cached is None:
            return None

        try:
            return {s.key: s.schema.model_validate(cached[s.key]) for s in self.sources}
        except (KeyError, TypeError, ValidationError) as e:
            logger.warning("Ignoring unusable cache entry %s: %s", self.cache_key, e)
            return None

    def _to_cache(self, date_range: DateRange, data: dict[str, PulseModel]):
        self.cache.write(self.cache_key, date_range, {key: model.to_wire() for key, model in data.items()})
        self.last_refreshed = self.cache.last_refreshed(self.cache_key)

    def clear_cache(self):
        self.cache.purge(self.cache_key)
        self.last_refreshed = None

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def _fetch_source(self, client, source: Source, date_range: DateRange) -> Optional[PulseModel]:
        """Fetch one source; None when it failed."""
        try:
            return await client.invoke(source.endpoint, date_range, source.schema)
        except SourceUnavailable as e:
            logger.warning("%s unavailable: %s", source.label, e.reason)
        except Exception:
            logger.exception("Unexpected error fetching %s", source.label)
        return None

    async def load(self, date_range: DateRange, force_refresh: bool = False) -> FetchResult:
        """
        Load every source for `date_range`.

        Individual source failures never raise; they fall back to placeholder
        data and are listed in `FetchResult.failed_sources`.
        """
        self._generation += 1
        generation = self._generation

        if not force_refresh:
            cached = self._from_cache(date_range)
            if cached is not None:
                logger.info("Serving %s from cache for %s..%s", self.cache_key, date_range.start_str, date_range.end_str)
                self.data = cached
                self.date_range = date_range
                self.last_refreshed = self.cache.last_refreshed(self.cache_key)
                return self._deliver(FetchResult(
                    state=FetchState.SUCCESS,
                    data=self.data,
                    from_cache=True,
                    refreshed_at=self.last_refreshed,
                ))

        self.state = FetchState.LOADING

        try:
            async with self.client_factory() as client:
                results = await asyncio.gather(
                    *(self._fetch_source(client, source, date_range) for source in self.sources)
                )
        except Exception as e:
            if generation != self._generation:
                return self._superseded()
            logger.exception("Failed to load %s", self.page_label)
            return self._deliver(FetchResult(
                state=FetchState.FAILURE,
                data=self.data,
                refreshed_at=self.last_refreshed,
                notice=Notice(
                    title="Error",
                    description=f"Failed to fetch {self.page_label} data: {e}",
                    variant="error",
                ),
            ))

        if generation != self._generation:
            return self._superseded()

        data = {}
        failed = []
        for source, payload in zip(self.sources, results):
            if payload is None:
                failed.append(source.label)
                payload = source.placeholder
            data[source.key] = payload

        self.data = data
        self.date_range = date_range
        self._to_cache(date_range, data)

        if failed:
            state = FetchState.PARTIAL_FAILURE
            notice = Notice(
                title="Some data sources unavailable",
                description=f"Using placeholder data for: {', '.join(failed)}",
                variant="warning",
            )
        else:
            state = FetchState.SUCCESS
            notice = Notice(
                title="Data refreshed",
                description=f"Latest {self.page_label} data loaded",
                variant="success",
            )

        return self._deliver(FetchResult(
            state=state,
            data=self.data,
            failed_sources=failed,
            refreshed_at=self.last_refreshed,
            notice=notice,
        ))

    def _deliver(self, result: FetchResult) -> FetchResult:
        self.outcome = result.state
        self.state = FetchState.IDLE
        return result

    def _superseded(self) -> FetchResult:
        logger.info("Discarding superseded load of %s", self.cache_key)
        return FetchResult(
            state=self.outcome or FetchState.IDLE,
            data=self.data,
            refreshed_at=self.last_refreshed,
            stale=True,
        )


async def load_comparison(
    source: Source,
    date_range: DateRange,
    client_factory: Callable[[], Any] = BackendClient,
    memo: Optional[dict] = None,
    force_refresh: bool = False,
) -> Optional[PulseModel]:
    """
    Fetch one source for a comparison period.

    Returns None when it cannot be fetched; comparisons are then hidden
    rather than computed against placeholder data. With `memo`, results
    (including None) are kept per endpoint and range and reused until
    `force_refresh`.
    """
    key = (source.endpoint, date_range.start_str, date_range.end_str)
    if memo is not None and not force_refresh and key in memo:
        return memo[key]

    try:
        async with client_factory() as client:
            payload = await client.invoke(source.endpoint, date_range, source.schema)
    except SourceUnavailable as e:
        logger.warning("Comparison data for %s unavailable: %s", source.label, e.reason)
        payload = None

    if memo is not None:
        memo[key] = payload
    return payload
