"""Schema-tolerant email template listing.

Tries each column layout in ``SCHEMA_MODES`` order. A "missing column" failure
moves on to the next layout; any other failure is returned as-is. Nothing is
raised: callers render ``error``/``warning``/``last_sql`` in a diagnostic panel.
"""

from collections.abc import Mapping
from typing import Any

from sponsorhub.core.config import get_settings
from sponsorhub.core.logging import get_logger
from sponsorhub.db.errors import QueryOutcome, classify, explain_postgrest_error
from sponsorhub.db.query import run_query
from sponsorhub.models.template import LoadTemplatesResult, NormalizedTemplate
from sponsorhub.services.payload import UNSET
from sponsorhub.services.schema_modes import SCHEMA_MODES

log = get_logger(__name__)

TENANT_ID_WARNING = "Tenant ID est vide ou invalide. Chargement des templates globaux uniquement."


def _first_present(row: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = row.get(name)
        if value is not None:
            return value
    return None


def _as_str(value: Any) -> str | None:
    return None if value is None else str(value)


def normalize_row(row: Mapping[str, Any]) -> NormalizedTemplate:
    """Map a mode A (key/html/created_at) or mode B (type/html_body/updated_at) row."""
    key = _first_present(row, "key", "type")
    html = _first_present(row, "html", "html_body")
    tenant_id = row.get("tenant_id")
    return NormalizedTemplate(
        id=row.get("id"),
        tenant_id=_as_str(tenant_id),
        scope="tenant" if tenant_id else "global",
        key="unknown" if key is None else str(key),
        subject=str(row.get("subject") or ""),
        html="" if html is None else str(html),
        updated_at=_as_str(_first_present(row, "updated_at", "created_at")),
        text_body=_as_str(row.get("text_body")),
        placeholders=row.get("placeholders"),
        is_active=row.get("is_active"),
    )


def tenant_filter_sql(tenant_id: Any) -> str:
    if not tenant_id:
        return "tenant_id IS NULL"
    return f"(tenant_id IS NULL OR tenant_id='{tenant_id}')"


def _apply_tenant_filter(query: Any, tenant_id: Any) -> Any:
    if not tenant_id:
        return query.is_("tenant_id", "null")
    # tenant templates are listed alongside the globals, never instead of them
    return query.or_(f"tenant_id.is.null,tenant_id.eq.{tenant_id}")


async def load_templates_flex(
    client: Any,
    tenant_id: Any = UNSET,
    table: str | None = None,
) -> LoadTemplatesResult:
    """List global templates plus, when tenant_id is given, that tenant's own.

    tenant_id=None asks for globals only; a missing or empty tenant_id also
    yields globals only but sets ``warning`` since the caller likely lost it.
    """
    table = table or get_settings().email_templates_table
    warning: str | None = None
    if not tenant_id and tenant_id is not None:
        warning = TENANT_ID_WARNING
        log.warning("templates_tenant_id_missing", tenant_id=repr(tenant_id))

    where = tenant_filter_sql(tenant_id)
    last_mode = SCHEMA_MODES[-1]
    for mode in SCHEMA_MODES:
        last_sql = f"SELECT {mode.projection} FROM {table} WHERE {where} ORDER BY {mode.order_sql}"
        query = _apply_tenant_filter(client.table(table).select(mode.projection), tenant_id)
        query = query.order("tenant_id", nullsfirst=True).order(mode.timestamp_column, desc=True)
        result = await run_query(query)
        outcome = classify(result)

        if outcome is QueryOutcome.OK:
            rows = [normalize_row(r) for r in result.rows]
            log.debug("templates_loaded", mode=mode.name, count=len(rows))
            return LoadTemplatesResult(mode=mode.name, rows=rows, last_sql=last_sql, warning=warning)

        if outcome is QueryOutcome.ERROR or mode is last_mode:
            explained = explain_postgrest_error(result.error)
            log.warning(
                "templates_load_failed",
                mode=mode.name,
                status=explained.status,
                message=explained.message,
            )
            return LoadTemplatesResult(
                mode=mode.name,
                rows=[],
                last_sql=last_sql,
                error=explained,
                warning=warning,
            )

        log.info("templates_schema_fallback", failed_mode=mode.name, message=result.error.message)

    raise AssertionError("unreachable: SCHEMA_MODES is empty")
