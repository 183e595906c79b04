"""Read-only menu actions: latest quotes, quotes for a date and the monthly summary."""

from __future__ import annotations

from cotizaciones.actions.common import ActionContext, action
from cotizaciones.ingestion.models import ExchangeRateRecord
from cotizaciones.sheet.panels import render_rate_panel
from cotizaciones.sync.summary import SUMMARY_TITLE, MonthlySummary, monthly_summary, render_summary
from cotizaciones.utils.dates import civil_today, format_date, parse_user_date

PANEL_CAPTION = "Consulta de Datos Exitosa"


@action("consultLatestExchangeRate")
def consult_latest(context: ActionContext) -> ExchangeRateRecord | None:
    context.logger.info("Consultando últimas cotizaciones")
    record = context.rates.fetch_current()
    body = render_rate_panel(civil_today(context.clock()), record, last_update=record.source_timestamp)
    context.ui.show_panel(PANEL_CAPTION, body)
    return record


@action("consultExchangeRateByDate")
def consult_by_date(context: ActionContext, text: str | None = None) -> ExchangeRateRecord | None:
    """Show the historical quotes for a user-supplied date (prompted when omitted)."""

    if text is None:
        text = context.ui.prompt("Ingresar Fecha", "Ingrese la fecha (dd/mm o dd/mm/yy):")
        if text is None:
            return None

    sync = context.sync()
    day = parse_user_date(text, today=sync.today())
    sync.validate_day(day)
    record = context.rates.fetch_historical(day)
    context.ui.show_panel(PANEL_CAPTION, render_rate_panel(day, record, last_update=record.source_timestamp))
    context.logger.info("Cotizaciones para %s consultadas", format_date(day))
    return record


@action("monthlyExchangeRateSummary")
def show_monthly_summary(context: ActionContext) -> list[MonthlySummary] | None:
    table = context.document.get_table(context.settings.sheet_name)
    summaries = monthly_summary(table.data_rows())
    context.ui.show_panel(SUMMARY_TITLE, render_summary(summaries))
    return summaries


__all__ = ["consult_by_date", "consult_latest", "show_monthly_summary"]
