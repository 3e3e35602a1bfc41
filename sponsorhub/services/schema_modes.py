"""Column layouts the email_templates table may currently expose.

Mode A: key / html / created_at. Mode B: type / html_body / updated_at.
The live layout is discovered per call by trying the modes in order; it is
never cached since a migration can land between two requests.
"""

from dataclasses import dataclass
from typing import Any

from sponsorhub.models.template import EmailTemplateInput
from sponsorhub.services.payload import UNSET, pick


@dataclass(frozen=True)
class SchemaMode:
    name: str
    key_column: str
    html_column: str
    timestamp_column: str

    @property
    def columns(self) -> tuple[str, ...]:
        return ("id", "tenant_id", self.key_column, "subject", self.html_column, self.timestamp_column)

    @property
    def projection(self) -> str:
        return ", ".join(self.columns)

    @property
    def order_sql(self) -> str:
        return f"tenant_id ASC NULLS FIRST, {self.timestamp_column} DESC"

    @property
    def update_keys(self) -> tuple[str, ...]:
        return ("subject", self.key_column, self.html_column)

    def insert_keys(self, with_text_body: bool) -> tuple[str, ...]:
        keys = ("subject", self.key_column, self.html_column, "tenant_id")
        return keys + ("text_body",) if with_text_body else keys

    def update_payload(self, data: EmailTemplateInput) -> dict[str, Any]:
        raw = {
            "subject": data.subject,
            self.key_column: data.key,
            self.html_column: data.html,
        }
        return pick(raw, self.update_keys)

    def insert_payload(self, data: EmailTemplateInput) -> dict[str, Any]:
        has_text_body = "text_body" in data.model_fields_set
        raw = {
            "subject": data.subject,
            self.key_column: data.key,
            self.html_column: data.html,
            "tenant_id": data.tenant_id,
            "text_body": data.text_body if has_text_body else UNSET,
        }
        return pick(raw, self.insert_keys(has_text_body))


MODE_A = SchemaMode(name="A", key_column="key", html_column="html", timestamp_column="created_at")
MODE_B = SchemaMode(name="B", key_column="type", html_column="html_body", timestamp_column="updated_at")

SCHEMA_MODES: tuple[SchemaMode, ...] = (MODE_A, MODE_B)
