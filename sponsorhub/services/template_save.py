"""Email template writes that survive the key/html vs type/html_body schema drift.

Every payload is reduced with ``pick`` to the columns of the layout being tried,
so stray fields (a leftover text_body, say) never reach PostgREST.
``save_email_template`` returns a SaveResult and never raises for data-source
failures; ``save_email_template_prod`` raises ``TemplateSaveError`` for the
editor forms.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from sponsorhub.core.config import get_settings
from sponsorhub.core.exceptions import AppError, BadRequestError, NotFoundError, TemplateSaveError
from sponsorhub.core.logging import get_logger
from sponsorhub.db.errors import QueryOutcome, classify, explain_postgrest_error
from sponsorhub.db.query import QueryError, run_query
from sponsorhub.models.template import EmailTemplateForm, EmailTemplateInput, SaveFailure, SaveResult, SaveSuccess
from sponsorhub.services.payload import pick
from sponsorhub.services.placeholders import html_to_text
from sponsorhub.services.schema_modes import MODE_A, SCHEMA_MODES, SchemaMode
from sponsorhub.services.users import resolve_acting_user_id

log = get_logger(__name__)

NO_ROW_MESSAGE = "Aucune ligne mise à jour - vérifiez les permissions RLS"

PROD_PAYLOAD_KEYS = ("subject", "key", "html", "text_body", "updated_at", "updated_by")
PROD_RETURN_COLUMNS = ("id", "key", "subject", "text_body", "updated_at")

Action = Literal["insert", "update"]


@dataclass(frozen=True)
class WriteAttempt:
    mode: SchemaMode
    action: Action
    outcome: QueryOutcome
    row: dict[str, Any] | None = None
    error: QueryError | None = None
    sent_keys: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome is QueryOutcome.OK and self.row is not None


async def _attempt_write(
    client: Any,
    table: str,
    mode: SchemaMode,
    action: Action,
    payload: dict[str, Any],
    template_id: str | None = None,
) -> WriteAttempt:
    query = client.table(table)
    if action == "update":
        query = query.update(payload).eq("id", template_id)
    else:
        query = query.insert(payload)
    log.debug("template_write", mode=mode.name, action=action, template_id=template_id, keys=list(payload))
    result = await run_query(query)
    rows = result.rows
    return WriteAttempt(
        mode=mode,
        action=action,
        outcome=classify(result),
        row=rows[0] if rows else None,
        error=result.error,
        sent_keys=list(payload),
    )


def _failure(attempt: WriteAttempt) -> SaveFailure:
    if attempt.error is None:
        # the write went through but no row came back: filtered by RLS or unknown id
        return SaveFailure(mode=attempt.mode.name, message=NO_ROW_MESSAGE)
    explained = explain_postgrest_error(attempt.error)
    return SaveFailure(
        mode=attempt.mode.name,
        status=explained.status,
        message=explained.message,
        details=explained.details,
        hint=explained.hint,
    )


async def save_email_template(client: Any, data: EmailTemplateInput, table: str | None = None) -> SaveResult:
    """Update (id given) or insert, trying mode A then mode B on a schema mismatch.

    At most one attempt per mode; an update never turns into an insert.
    """
    table = table or get_settings().email_templates_table
    action: Action = "update" if data.id else "insert"
    last_mode = SCHEMA_MODES[-1]
    for mode in SCHEMA_MODES:
        payload = mode.update_payload(data) if action == "update" else mode.insert_payload(data)
        attempt = await _attempt_write(client, table, mode, action, payload, template_id=data.id)
        if attempt.ok:
            log.info("template_saved", mode=mode.name, action=action, template_id=attempt.row.get("id"))
            return SaveSuccess(id=attempt.row.get("id"), mode=mode.name, action=action)
        if attempt.outcome is not QueryOutcome.SCHEMA_MISMATCH or mode is last_mode:
            failure = _failure(attempt)
            log.warning(
                "template_save_failed",
                mode=mode.name,
                action=action,
                status=failure.status,
                message=failure.message,
                sent_keys=attempt.sent_keys,
            )
            return failure
        log.info("template_save_schema_fallback", failed_mode=mode.name, action=action)
    raise AssertionError("unreachable: SCHEMA_MODES is empty")


async def save_email_template_prod(
    client: Any,
    template_id: str,
    form: EmailTemplateForm,
    access_token: str | None = None,
    table: str | None = None,
) -> dict[str, Any]:
    """Editor save: single mode-A update stamped with updated_at/updated_by.

    Raises TemplateSaveError with status/code/details/hint/sent_keys on any
    failure, including an update that matched no row.
    """
    if not template_id:
        raise BadRequestError("templateId manquant")
    table = table or get_settings().email_templates_table

    text_body = (form.text_body if form.text_body is not None else html_to_text(form.html or "")) or None
    payload = pick(
        {
            "subject": form.subject or "",
            "key": form.key or "",
            "html": form.html or "",
            "text_body": text_body,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "updated_by": await resolve_acting_user_id(client, access_token),
        },
        PROD_PAYLOAD_KEYS,
    )
    attempt = await _attempt_write(client, table, MODE_A, "update", payload, template_id=template_id)

    if attempt.error is not None:
        explained = explain_postgrest_error(attempt.error)
        log.error(
            "template_save_failed",
            template_id=template_id,
            status=explained.status,
            message=explained.message,
            details=explained.details,
            hint=explained.hint,
            code=attempt.error.code,
            sent_keys=attempt.sent_keys,
        )
        raise TemplateSaveError(
            explained.message or "Unknown error",
            status=explained.status,
            code=None if attempt.error.code is None else str(attempt.error.code),
            details=explained.details,
            hint=explained.hint,
            sent_keys=attempt.sent_keys,
        )
    if attempt.row is None:
        log.error("template_save_no_row", template_id=template_id, sent_keys=attempt.sent_keys)
        raise TemplateSaveError(NO_ROW_MESSAGE, sent_keys=attempt.sent_keys)

    log.info("template_saved", mode=MODE_A.name, action="update", template_id=template_id)
    return pick(attempt.row, PROD_RETURN_COLUMNS)


async def delete_email_template(client: Any, template_id: str, table: str | None = None) -> None:
    """Plain delete; not schema-mode aware since only the id column is used."""
    if not template_id:
        raise BadRequestError("templateId manquant")
    table = table or get_settings().email_templates_table
    result = await run_query(client.table(table).delete().eq("id", template_id))
    if result.error is not None:
        explained = explain_postgrest_error(result.error)
        raise AppError(
            explained.message or "Delete failed",
            code="TEMPLATE_DELETE_FAILED",
            status_code=400,
            details=explained.model_dump(exclude_none=True),
        )
    if not result.rows:
        raise NotFoundError("Template not found")
    log.info("template_deleted", template_id=template_id)
