"""TTL caches for raw HTTP payloads (in memory or SQLite via SQLAlchemy)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from cotizaciones.utils.logger import get_logger

LOGGER = get_logger(__name__)


class PayloadCache(Protocol):
    """Contract shared by the cache backends used by :class:`CachedHttpClient`."""

    def get(self, key: str, now: datetime) -> str | None: ...  # pragma: no cover - protocol definition

    def put(self, key: str, payload: str, ttl_seconds: int, now: datetime) -> None: ...  # pragma: no cover

    def close(self) -> None: ...  # pragma: no cover - protocol definition


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MemoryCache:
    """Process-local cache; entries vanish when the process exits."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, datetime]] = {}

    def get(self, key: str, now: datetime) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        payload, expires_at = entry
        if _as_utc(now) >= expires_at:
            del self._entries[key]
            return None
        return payload

    def put(self, key: str, payload: str, ttl_seconds: int, now: datetime) -> None:
        self._entries[key] = (payload, _as_utc(now) + timedelta(seconds=ttl_seconds))

    def close(self) -> None:  # pragma: no cover - nothing to release
        self._entries.clear()


class Base(DeclarativeBase):
    pass


class _CachedResponse(Base):
    __tablename__ = "http_cache"

    url = Column(String, primary_key=True)
    payload = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False)


class SQLCache:
    """Cache persisted in a SQLite file so repeated runs skip cached days."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            future=True,
        )
        Base.metadata.create_all(self.engine)
        self._SessionFactory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False, future=True
        )

    def get(self, key: str, now: datetime) -> str | None:
        with self._SessionFactory() as session:
            entry = session.get(_CachedResponse, key)
            if entry is None:
                return None
            # SQLite drops tzinfo; expiries are always stored as UTC.
            if _as_utc(now) >= _as_utc(entry.expires_at):
                session.delete(entry)
                session.commit()
                return None
            return str(entry.payload)

    def put(self, key: str, payload: str, ttl_seconds: int, now: datetime) -> None:
        expires_at = (_as_utc(now) + timedelta(seconds=ttl_seconds)).replace(tzinfo=None)
        with self._SessionFactory() as session:
            existing = session.get(_CachedResponse, key)
            if existing is None:
                session.add(_CachedResponse(url=key, payload=payload, expires_at=expires_at))
            else:
                setattr(existing, "payload", payload)
                setattr(existing, "expires_at", expires_at)
            session.commit()

    def purge_expired(self, now: datetime) -> int:
        """Delete expired entries and return how many were removed."""

        cutoff = _as_utc(now).replace(tzinfo=None)
        with self._SessionFactory() as session:
            removed = (
                session.query(_CachedResponse)
                .filter(_CachedResponse.expires_at <= cutoff)
                .delete(synchronize_session=False)
            )
            session.commit()
        if removed:
            LOGGER.info("Purged %s expired cache entries from %s", removed, self.db_path)
        return int(removed)

    def close(self) -> None:  # pragma: no cover - trivial
        self.engine.dispose()


__all__ = ["MemoryCache", "PayloadCache", "SQLCache"]
