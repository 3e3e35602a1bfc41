"""Final email rendering: placeholders plus the tenant's signature and RGPD notice."""

import re
from typing import Any

from pydantic import BaseModel

from sponsorhub.core.config import get_settings
from sponsorhub.core.logging import get_logger
from sponsorhub.db.query import run_query
from sponsorhub.models.template import NormalizedTemplate
from sponsorhub.services.placeholders import apply_placeholders, extract_placeholders, html_to_text

log = get_logger(__name__)

_TAG = re.compile(r"<[^>]*>")
_SPACES = re.compile(r"\s+")


class TenantEmailSettings(BaseModel):
    email_signature_html: str = ""
    rgpd_content_md: str = ""


class RenderedEmail(BaseModel):
    subject: str
    html: str
    text: str
    # tokens the template references, in first-seen order
    placeholders: list[str] = []


async def load_tenant_email_settings(client: Any, tenant_id: str) -> TenantEmailSettings | None:
    if not tenant_id:
        return None
    table = get_settings().tenants_table
    result = await run_query(
        client.table(table).select("email_signature_html, rgpd_content_md").eq("id", tenant_id).limit(1)
    )
    if result.error is not None or not result.rows:
        log.warning(
            "tenant_email_settings_unavailable",
            tenant_id=tenant_id,
            message=result.error.message if result.error else "not found",
        )
        return None
    row = result.rows[0]
    return TenantEmailSettings(
        email_signature_html=row.get("email_signature_html") or "",
        rgpd_content_md=row.get("rgpd_content_md") or "",
    )


def markdown_to_html(markdown: str) -> str:
    """Tiny line-based markdown (headings, dashes, paragraphs) for legal notices."""
    if not markdown:
        return ""
    out = []
    for line in markdown.split("\n"):
        if line.startswith("# "):
            out.append(f'<h1 style="font-size: 24px; font-weight: bold; margin-top: 16px; margin-bottom: 8px; color: #1e293b;">{line[2:]}</h1>')
        elif line.startswith("## "):
            out.append(f'<h2 style="font-size: 20px; font-weight: bold; margin-top: 12px; margin-bottom: 8px; color: #334155;">{line[3:]}</h2>')
        elif line.startswith("### "):
            out.append(f'<h3 style="font-size: 18px; font-weight: bold; margin-top: 8px; margin-bottom: 4px; color: #475569;">{line[4:]}</h3>')
        elif line.startswith("- "):
            out.append(f'<li style="margin-left: 20px; margin-bottom: 4px; color: #64748b;">{line[2:]}</li>')
        elif line.strip() == "":
            out.append("<br />")
        else:
            out.append(f'<p style="margin-bottom: 8px; color: #475569; line-height: 1.6;">{line}</p>')
    return "\n".join(out)


def inject_signature_and_rgpd(html: str, text: str, settings: TenantEmailSettings) -> tuple[str, str]:
    signature = settings.email_signature_html
    if signature and signature.strip():
        html += (
            '\n<div style="margin-top: 32px; padding-top: 24px; border-top: 1px solid #e2e8f0;">\n'
            f"{signature}\n</div>\n"
        )
        signature_text = _SPACES.sub(" ", _TAG.sub("", signature)).strip()
        if signature_text:
            text += f"\n\n---\n{signature_text}"

    rgpd = settings.rgpd_content_md
    if rgpd and rgpd.strip():
        html += (
            '\n<div style="margin-top: 32px; padding: 20px; background-color: #f8fafc; '
            'border-left: 4px solid #3b82f6; border-radius: 4px;">\n'
            '<h4 style="margin: 0 0 12px 0; color: #1e40af; font-size: 14px; font-weight: 600;">'
            "Protection des données</h4>\n"
            f'<div style="font-size: 13px; color: #64748b;">\n{markdown_to_html(rgpd)}\n</div>\n</div>\n'
        )
        text += f"\n\n--- Protection des données ---\n{rgpd}"

    return html, text


def render_template(
    template: NormalizedTemplate,
    values: dict[str, Any],
    settings: TenantEmailSettings | None = None,
) -> RenderedEmail:
    html = apply_placeholders(template.html, values)
    text = apply_placeholders(template.text_body, values) if template.text_body else html_to_text(html)
    subject = apply_placeholders(template.subject, values)
    if settings is not None:
        html, text = inject_signature_and_rgpd(html, text, settings)
    used = extract_placeholders("\n".join([template.subject, template.html, template.text_body or ""]))
    return RenderedEmail(subject=subject, html=html, text=text, placeholders=used)
