from typing import Any, Literal, Union

from pydantic import BaseModel

from sponsorhub.db.errors import ExplainedError

SchemaModeName = Literal["A", "B"]


class NormalizedTemplate(BaseModel):
    """One email template, whichever column layout the row came from."""

    id: Any = None
    tenant_id: str | None = None
    scope: Literal["global", "tenant"]
    key: str
    subject: str
    html: str
    updated_at: str | None = None
    # only present when the raw row selected them
    text_body: str | None = None
    placeholders: Any = None
    is_active: bool | None = None


class LoadTemplatesResult(BaseModel):
    mode: SchemaModeName
    rows: list[NormalizedTemplate]
    last_sql: str
    error: ExplainedError | None = None
    warning: str | None = None


class EmailTemplateInput(BaseModel):
    id: str | None = None  # present = update, otherwise insert
    tenant_id: str | None = None  # None = global
    key: str  # "type" in mode B
    subject: str
    html: str  # "html_body" in mode B
    text_body: str | None = None


class EmailTemplateForm(BaseModel):
    subject: str = ""
    key: str = ""
    html: str = ""
    text_body: str | None = None


class SaveSuccess(BaseModel):
    ok: Literal[True] = True
    id: Any
    mode: SchemaModeName
    action: Literal["insert", "update"]


class SaveFailure(BaseModel):
    ok: Literal[False] = False
    mode: SchemaModeName | None = None
    status: int | None = None
    message: str | None = None
    details: str | None = None
    hint: str | None = None


SaveResult = Union[SaveSuccess, SaveFailure]
