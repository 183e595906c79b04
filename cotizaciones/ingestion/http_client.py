"""requests-based fetcher that serves cached payloads within a TTL window."""

from __future__ import annotations

import logging

import requests
from sqlalchemy.exc import SQLAlchemyError

from cotizaciones.ingestion.cache import MemoryCache, PayloadCache
from cotizaciones.utils.dates import Clock, utc_now
from cotizaciones.utils.logger import get_logger

LOGGER = get_logger(__name__)
USER_AGENT = "cotizaciones/1.0"


class CachedHttpClient:
    """Fetch URLs as text, treating every failure as "no data".

    A cache miss triggers exactly one GET. Transport errors, non-success
    responses and cache backend errors are logged and turned into ``None``.
    """

    def __init__(
        self,
        *,
        cache: PayloadCache | None = None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        default_ttl: int = 3600,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.cache: PayloadCache = cache if cache is not None else MemoryCache()
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        self.session = session
        self.timeout = timeout
        self.default_ttl = default_ttl
        self.clock = clock or utc_now
        self.logger = logger or LOGGER

    def fetch_or_cached(self, url: str, ttl_seconds: int | None = None) -> str | None:
        """Return the body for ``url`` from cache or network, ``None`` when unavailable."""

        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        try:
            cached = self.cache.get(url, self.clock())
        except SQLAlchemyError as exc:
            self.logger.warning("Cache lookup failed for %s: %s", url, exc)
            cached = None
        if cached is not None:
            self.logger.debug("Cache hit for %s", url)
            return cached

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            self.logger.error("Request to %s failed: %s", url, exc)
            return None
        if not response.ok:
            self.logger.error("Request to %s returned HTTP %s", url, response.status_code)
            return None

        payload = response.text
        try:
            self.cache.put(url, payload, ttl, self.clock())
        except SQLAlchemyError as exc:
            self.logger.warning("Could not cache response for %s: %s", url, exc)
        return payload

    def close(self) -> None:
        self.session.close()
        self.cache.close()

    def __enter__(self) -> "CachedHttpClient":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


__all__ = ["CachedHttpClient", "USER_AGENT"]
