"""Shared plumbing for menu actions: context, error-log sheet and the error boundary."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from cotizaciones.config import Settings
from cotizaciones.errors import SheetMissing
from cotizaciones.store.base import TableDocument
from cotizaciones.sync.reconciler import ExchangeRateSync, RateSource
from cotizaciones.ui import ButtonSet, UserInteraction
from cotizaciones.utils.dates import Clock, DateFormat, format_date, utc_now
from cotizaciones.utils.logger import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")

ERROR_LOG_HEADER = ("Fecha", "Mensaje")
ERROR_MESSAGE = "Ocurrió un error durante la operación. Por favor, intente nuevamente.\n\nDetalles: "


class ErrorLogSink:
    """Append ``(timestamp, message)`` rows to the error-log sheet when it exists."""

    def __init__(self, document: TableDocument, sheet_name: str = "Error Log", *, clock: Clock | None = None) -> None:
        self.document = document
        self.sheet_name = sheet_name
        self.clock = clock or utc_now

    def record(self, message: str) -> bool:
        # The sheet is never created here; its absence turns logging off.
        if not self.document.has_table(self.sheet_name):
            return False
        table = self.document.get_table(self.sheet_name)
        table.append_rows([[format_date(self.clock(), DateFormat.DATE_TIME), message]])
        return True


@dataclass(slots=True)
class ActionContext:
    """Collaborators every action needs."""

    settings: Settings
    document: TableDocument
    ui: UserInteraction
    rates: RateSource
    clock: Clock = utc_now
    logger: logging.Logger = LOGGER
    error_log: ErrorLogSink = field(init=False)

    def __post_init__(self) -> None:
        self.error_log = ErrorLogSink(self.document, self.settings.error_log_sheet, clock=self.clock)

    def sync(self) -> ExchangeRateSync:
        return ExchangeRateSync(self.settings, self.document, self.rates, logger=self.logger, clock=self.clock)


def handle_action(
    context: ActionContext,
    name: str,
    func: Callable[..., T],
    *args: Any,
    error_title: str = "Error",
    **kwargs: Any,
) -> T | None:
    """Run ``func(context, ...)``; failures are logged, recorded and shown, never raised."""

    try:
        return func(context, *args, **kwargs)
    except SheetMissing as exc:
        context.logger.error("%s: %s", name, exc)
        return None
    except Exception as exc:  # noqa: BLE001 - top-level action boundary
        message = f"Error en {name}: {exc}"
        context.logger.exception("Error en %s", name)
        context.error_log.record(message)
        context.ui.alert(error_title, ERROR_MESSAGE + message, ButtonSet.OK)
        return None


def action(name: str, *, error_title: str = "Error") -> Callable[[Callable[..., T]], Callable[..., T | None]]:
    """Decorate a menu action so it runs inside :func:`handle_action`."""

    def decorator(func: Callable[..., T]) -> Callable[..., T | None]:
        @functools.wraps(func)
        def wrapper(context: ActionContext, *args: Any, **kwargs: Any) -> T | None:
            return handle_action(context, name, func, *args, error_title=error_title, **kwargs)

        return wrapper

    return decorator


__all__ = ["ERROR_LOG_HEADER", "ActionContext", "ErrorLogSink", "action", "handle_action"]
