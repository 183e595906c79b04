"""Menu actions that write to the dollar sheet."""

from __future__ import annotations

from cotizaciones.actions.common import ActionContext, action
from cotizaciones.errors import DataUnavailable, FormatError, RangeError
from cotizaciones.sync.reconciler import ReconciliationResult, SyncPlan, SyncState
from cotizaciones.ui import ButtonSet
from cotizaciones.utils.dates import DateFormat, format_date, parse_user_date

CONFIRM_TITLE = "Confirmar actualización"
INFO_TITLE = "Cotizaciones"


@action("updateDollarsUntilToday")
def update_until_today(context: ActionContext) -> SyncPlan | None:
    """Bring the sheet up to today, branching on the state of its last row.

    Returns the plan that was acted on, or ``None`` when the user declined.
    """

    ui = context.ui
    context.logger.info("Iniciando actualización de datos del dólar")
    sync = context.sync()
    plan = sync.classify()

    if plan.state is SyncState.NO_EXISTING_DATA:
        if not ui.confirm(
            CONFIRM_TITLE,
            "La tabla no tiene valores. ¿Desea agregar los valores de hoy con los últimos datos disponibles?",
        ):
            return None
        try:
            sync.seed_today()
        except DataUnavailable:
            ui.alert(INFO_TITLE, "No se pudieron obtener los datos actualizados. Por favor, intente nuevamente más tarde.")
            return plan
        ui.alert(INFO_TITLE, "Se han agregado los valores de hoy con la última información disponible.")

    elif plan.state is SyncState.LAST_ROW_IS_TODAY:
        if not ui.confirm(
            CONFIRM_TITLE,
            "La tabla tiene valores actualizados para hoy. "
            "¿Desea actualizar los valores de hoy con los últimos datos disponibles?",
        ):
            return None
        try:
            sync.refresh_today(plan)
        except DataUnavailable:
            ui.alert(INFO_TITLE, "No se pudieron obtener los datos actualizados. Por favor, intente nuevamente más tarde.")
            return plan
        ui.alert(INFO_TITLE, "Datos actualizados correctamente con la última información disponible.")

    elif plan.state is SyncState.LAST_ROW_IS_YESTERDAY:
        if not ui.confirm(
            CONFIRM_TITLE,
            "La tabla tiene valores hasta ayer. ¿Desea agregar los valores de hoy basados en los datos de cierre de ayer?",
        ):
            return None
        try:
            sync.carry_forward(plan)
        except DataUnavailable:
            ui.alert(INFO_TITLE, "No se pudieron obtener los datos de ayer. Por favor, intente nuevamente más tarde.")
            return plan
        ui.alert(INFO_TITLE, "Se han agregado los datos de hoy basados en el cierre de ayer.")

    else:
        if not ui.confirm(
            CONFIRM_TITLE,
            f"La tabla tiene valores hasta {format_date(plan.last_date, DateFormat.VERBOSE)}. "  # type: ignore[arg-type]
            "¿Desea actualizar los valores hasta hoy?",
        ):
            return None
        result = sync.catch_up(plan)
        if result.today_added:
            ui.alert(INFO_TITLE, "Datos actualizados correctamente hasta hoy.")
        else:
            ui.alert(
                INFO_TITLE,
                "No se pudieron obtener los datos de hoy. Se han actualizado los datos históricos hasta ayer.",
            )

    context.logger.info("Actualización de datos del dólar completada")
    return plan


@action("updateDollarsByRange")
def update_by_range(
    context: ActionContext, start_text: str | None = None, end_text: str | None = None
) -> ReconciliationResult | None:
    """Reconcile a user-chosen inclusive date range against the historical API."""

    ui = context.ui
    if start_text is None:
        start_text = ui.prompt("Fecha desde", "Ingrese la fecha de inicio (dd/mm o dd/mm/yy):")
        if start_text is None:
            return None
    if end_text is None:
        end_text = ui.prompt("Fecha hasta", "Ingrese la fecha de fin (dd/mm o dd/mm/yy):")
        if end_text is None:
            return None

    sync = context.sync()
    try:
        today = sync.today()
        start = parse_user_date(start_text, today=today)
        end = parse_user_date(end_text, today=today)
        sync.validate_range(start, end)
    except (FormatError, RangeError) as exc:
        context.logger.error("updateDollarsByRange: fechas inválidas (%s, %s): %s", start_text, end_text, exc)
        context.error_log.record(f"Error en updateDollarsByRange: {exc}")
        ui.alert("Error", f"Hubo un problema al procesar las fechas: {exc}", ButtonSet.OK)
        return None

    result = sync.reconcile_range(start, end)
    ui.alert("Actualización Completada", result.message, ButtonSet.OK)
    return result


@action("removeDuplicateDates")
def remove_duplicates(context: ActionContext) -> int | None:
    removed = context.sync().remove_duplicate_dates()
    context.ui.alert(INFO_TITLE, f"Se eliminaron {removed} filas duplicadas.")
    return removed


__all__ = ["remove_duplicates", "update_by_range", "update_until_today"]
