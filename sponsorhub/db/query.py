"""Uniform {data, error} results over the PostgREST query builder.

postgrest-py raises ``APIError`` from ``execute()``; the template adapter wants
to branch on structured error data instead, so every query goes through
``run_query`` which never raises for data-source or transport failures.
"""

from dataclasses import dataclass
from typing import Any

import httpx
from postgrest.exceptions import APIError

from sponsorhub.core.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class QueryError:
    message: str
    code: str | int | None = None
    details: str | None = None
    hint: str | None = None
    status: int | None = None

    @classmethod
    def from_api_error(cls, exc: APIError) -> "QueryError":
        return cls(
            message=exc.message or str(exc),
            code=exc.code,
            details=exc.details,
            hint=exc.hint,
        )


@dataclass(frozen=True)
class QueryResult:
    data: Any = None
    error: QueryError | None = None

    @property
    def rows(self) -> list[dict[str, Any]]:
        if isinstance(self.data, list):
            return self.data
        if isinstance(self.data, dict):
            return [self.data]
        return []


async def run_query(builder: Any) -> QueryResult:
    try:
        resp = await builder.execute()
    except APIError as exc:
        return QueryResult(error=QueryError.from_api_error(exc))
    except httpx.HTTPError as exc:
        log.warning("postgrest_transport_error", error=str(exc))
        status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
        return QueryResult(error=QueryError(message=str(exc), status=status))
    return QueryResult(data=resp.data)
