"""Classification of PostgREST errors.

PostgREST has no structured "unknown column" error kind, so a schema mismatch
is recognised by HTTP status (400/406) or by the "column ... does not exist"
message. Both signals are specific to Supabase/PostgREST; another backend
needs its own signature.
"""

import enum
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from sponsorhub.db.query import QueryResult

_SCHEMA_MISMATCH_STATUSES = (400, 406)
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class ExplainedError(BaseModel):
    status: int | None = None
    message: str | None = None
    details: str | None = None
    hint: str | None = None


class QueryOutcome(str, enum.Enum):
    OK = "ok"
    SCHEMA_MISMATCH = "schema_mismatch"
    ERROR = "error"


def _field(error: Any, name: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(name)
    return getattr(error, name, None)


def parse_status(code: Any) -> int | None:
    """Integer value of an error code, read like JS parseInt (leading digits only)."""
    if code is None or isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    m = _LEADING_INT.match(str(code))
    return int(m.group(1)) if m else None


def _status_of(error: Any) -> int | None:
    # an HTTP status only counts when the data source gave no code
    code = _field(error, "code")
    return parse_status(code) if code else parse_status(_field(error, "status"))


def is_missing_column_error(error: Any) -> bool:
    if not error:
        return False
    status = _status_of(error)
    message = (_field(error, "message") or "").lower()
    if status in _SCHEMA_MISMATCH_STATUSES:
        return True
    return "column" in message and "does not exist" in message


def explain_postgrest_error(error: Any) -> ExplainedError:
    if not error:
        return ExplainedError(message="Unknown error")
    return ExplainedError(
        status=_status_of(error),
        message=_field(error, "message") or str(error),
        details=_field(error, "details") or None,
        hint=_field(error, "hint") or None,
    )


def classify(result: QueryResult) -> QueryOutcome:
    if result.error is None:
        return QueryOutcome.OK
    if is_missing_column_error(result.error):
        return QueryOutcome.SCHEMA_MISMATCH
    return QueryOutcome.ERROR
