"""Copy global templates into tenants.

"safe" delegates to the clone_default_email_templates RPC, which only fills
gaps; "force" upserts on (tenant_id, type) and overwrites tenant edits. Both
use the type/html_body column names, like the RPC and the unique index.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from sponsorhub.core.config import get_settings
from sponsorhub.core.exceptions import AppError, NotFoundError
from sponsorhub.core.logging import get_logger
from sponsorhub.db.errors import explain_postgrest_error
from sponsorhub.db.query import QueryError, run_query
from sponsorhub.services.payload import pick

log = get_logger(__name__)

CLONE_RPC = "clone_default_email_templates"
PUSHED_COLUMNS = ("type", "subject", "html_body", "text_body", "placeholders", "is_active")


class PushReport(BaseModel):
    success: int = 0
    failed: int = 0
    skipped: int = 0


def _raise_for(error: QueryError, code: str) -> None:
    explained = explain_postgrest_error(error)
    raise AppError(
        explained.message or "Query failed",
        code=code,
        status_code=400,
        details=explained.model_dump(exclude_none=True),
    )


async def list_tenant_ids(client: Any) -> list[str]:
    result = await run_query(client.table(get_settings().tenants_table).select("id, name").order("name"))
    if result.error is not None:
        _raise_for(result.error, "TENANTS_FETCH_FAILED")
    return [str(r["id"]) for r in result.rows]


async def get_raw_template(client: Any, template_id: str) -> dict[str, Any]:
    table = get_settings().email_templates_table
    result = await run_query(client.table(table).select("*").eq("id", template_id).limit(1))
    if result.error is not None:
        _raise_for(result.error, "TEMPLATE_FETCH_FAILED")
    if not result.rows:
        raise NotFoundError("Template not found")
    return result.rows[0]


async def push_safe(client: Any, tenant_ids: Iterable[str]) -> PushReport:
    tenant_ids = list(tenant_ids)
    report = PushReport()
    for tenant_id in tenant_ids:
        result = await run_query(client.rpc(CLONE_RPC, {"p_tenant_id": tenant_id}))
        if result.error is not None:
            log.warning("template_push_failed", tenant_id=tenant_id, message=result.error.message)
            report.failed += 1
        elif isinstance(result.data, int) and result.data > 0:
            report.success += 1
    report.skipped = len(tenant_ids) - report.success - report.failed
    log.info("template_push_safe_done", **report.model_dump())
    return report


async def _upsert_into_tenant(client: Any, table: str, tenant_id: str, template: Mapping[str, Any]) -> bool:
    row = {"tenant_id": tenant_id, **pick(template, PUSHED_COLUMNS)}
    result = await run_query(client.table(table).upsert(row, on_conflict="tenant_id,type"))
    if result.error is not None:
        log.warning(
            "template_push_failed",
            tenant_id=tenant_id,
            type=template.get("type"),
            message=result.error.message,
        )
        return False
    return True


async def push_force(
    client: Any,
    tenant_ids: Iterable[str],
    template: Mapping[str, Any] | None = None,
) -> PushReport:
    """Overwrite tenants with one template, or with every global template."""
    table = get_settings().email_templates_table
    tenant_ids = list(tenant_ids)
    report = PushReport()

    if template is not None:
        for tenant_id in tenant_ids:
            if await _upsert_into_tenant(client, table, tenant_id, template):
                report.success += 1
            else:
                report.failed += 1
        log.info("template_push_force_done", **report.model_dump())
        return report

    result = await run_query(client.table(table).select("*").is_("tenant_id", "null"))
    if result.error is not None:
        _raise_for(result.error, "GLOBAL_TEMPLATES_FETCH_FAILED")
    globals_ = result.rows

    for tenant_id in tenant_ids:
        pushed = 0
        for tpl in globals_:
            if await _upsert_into_tenant(client, table, tenant_id, tpl):
                pushed += 1
        if pushed > 0:
            report.success += 1
        else:
            report.failed += 1
    log.info("template_push_force_done", templates=len(globals_), **report.model_dump())
    return report
