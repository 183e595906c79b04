"""Runtime configuration passed explicitly to the engine, clients and actions."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Mapping

ENV_PREFIX = "COTIZACIONES_"

DEFAULT_API_CURRENT = "https://dolarapi.com/v1/dolares"
DEFAULT_API_HISTORICAL = "https://api.argentinadatos.com/v1/cotizaciones/dolares/"


@dataclass(frozen=True, slots=True)
class Settings:
    """Names, endpoints and limits used by every workflow."""

    sheet_name: str = "Dolar"
    customers_sheet: str = "Clientes"
    error_log_sheet: str = "Error Log"
    api_current: str = DEFAULT_API_CURRENT
    api_historical: str = DEFAULT_API_HISTORICAL
    cache_ttl_seconds: int = 3600
    http_timeout: float = 30.0
    min_date: date = date(2015, 1, 1)
    workbook_path: Path = Path("cotizaciones.xlsx")
    cache_path: Path | None = None
    customers_dir: Path = Path("clientes")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``COTIZACIONES_*`` environment variables."""

        env = os.environ if environ is None else environ

        def _get(key: str) -> str | None:
            value = env.get(f"{ENV_PREFIX}{key}")
            return value.strip() if value and value.strip() else None

        overrides: dict[str, object] = {}
        for field_name in ("sheet_name", "customers_sheet", "error_log_sheet", "api_current", "api_historical"):
            value = _get(field_name.upper())
            if value is not None:
                overrides[field_name] = value
        ttl = _get("CACHE_TTL_SECONDS")
        if ttl is not None:
            try:
                overrides["cache_ttl_seconds"] = int(ttl)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}CACHE_TTL_SECONDS must be an integer, got {ttl!r}") from exc
        timeout = _get("HTTP_TIMEOUT")
        if timeout is not None:
            try:
                overrides["http_timeout"] = float(timeout)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}HTTP_TIMEOUT must be a number, got {timeout!r}") from exc
        min_date = _get("MIN_DATE")
        if min_date is not None:
            overrides["min_date"] = date.fromisoformat(min_date)
        for field_name in ("workbook_path", "cache_path", "customers_dir"):
            value = _get(field_name.upper())
            if value is not None:
                overrides[field_name] = Path(value).expanduser()
        return cls(**overrides)  # type: ignore[arg-type]

    def with_overrides(self, **kwargs: object) -> "Settings":
        """Return a copy with the given non-``None`` fields replaced."""

        return replace(self, **{key: value for key, value in kwargs.items() if value is not None})


__all__ = ["DEFAULT_API_CURRENT", "DEFAULT_API_HISTORICAL", "ENV_PREFIX", "Settings"]
