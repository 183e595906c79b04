"""Top-level menu actions, each wrapped in the error boundary."""

from cotizaciones.actions.common import ERROR_LOG_HEADER, ActionContext, ErrorLogSink, handle_action
from cotizaciones.actions.consult import consult_by_date, consult_latest, show_monthly_summary
from cotizaciones.actions.import_customers import import_customers
from cotizaciones.actions.update_dollars import remove_duplicates, update_by_range, update_until_today

__all__ = [
    "ERROR_LOG_HEADER",
    "ActionContext",
    "ErrorLogSink",
    "consult_by_date",
    "consult_latest",
    "handle_action",
    "import_customers",
    "remove_duplicates",
    "show_monthly_summary",
    "update_by_range",
    "update_until_today",
]
