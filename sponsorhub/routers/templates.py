from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from sponsorhub.core.exceptions import AppError, ForbiddenError
from sponsorhub.deps import get_current_user, get_supabase, require_super_admin, resolve_tenant_scope
from sponsorhub.models.template import EmailTemplateForm, EmailTemplateInput, NormalizedTemplate, SaveSuccess
from sponsorhub.models.user import CurrentUser
from sponsorhub.services import rendering
from sponsorhub.services import template_push as push_service
from sponsorhub.services import template_save as save_service
from sponsorhub.services.placeholders import DEFAULT_EXAMPLE_VALUES, PLACEHOLDERS
from sponsorhub.services.templates_flex import load_templates_flex

router = APIRouter()


class PreviewRequest(BaseModel):
    subject: str
    html: str
    text_body: str | None = None
    values: dict[str, str] = {}
    tenant_id: str | None = None


class PushRequest(BaseModel):
    mode: Literal["safe", "force"] = "safe"
    template_id: str | None = None
    tenant_ids: list[str] | None = None


@router.get("")
async def templates_list(
    as_tenant: str | None = Query(default=None),
    user: CurrentUser = Depends(get_current_user),
    client: Any = Depends(get_supabase),
):
    """List global + tenant templates; schema errors come back in the body, not as HTTP errors."""
    tenant_id = resolve_tenant_scope(user, as_tenant)
    result = await load_templates_flex(client, tenant_id)
    return result.model_dump()


@router.get("/placeholders")
async def templates_placeholders():
    return {
        "placeholders": [p.model_dump() for p in PLACEHOLDERS],
        "examples": DEFAULT_EXAMPLE_VALUES,
    }


@router.post("")
async def template_save(
    body: EmailTemplateInput,
    user: CurrentUser = Depends(get_current_user),
    client: Any = Depends(get_supabase),
):
    """Insert or update with schema-mode fallback."""
    if not body.id and not user.is_super_admin and (not user.tenant_id or body.tenant_id != user.tenant_id):
        raise ForbiddenError("Un club ne peut créer que ses propres templates")
    result = await save_service.save_email_template(client, body)
    if not isinstance(result, SaveSuccess):
        raise AppError(
            result.message or "Template save failed",
            code="TEMPLATE_SAVE_FAILED",
            status_code=400,
            details=result.model_dump(exclude_none=True),
        )
    return result.model_dump()


@router.post("/preview")
async def template_preview(
    body: PreviewRequest,
    user: CurrentUser = Depends(get_current_user),
    client: Any = Depends(get_supabase),
):
    """Render with example values, overridden by the given ones, plus the club's legal blocks."""
    tenant_id = body.tenant_id if user.is_super_admin else user.tenant_id
    settings = await rendering.load_tenant_email_settings(client, tenant_id) if tenant_id else None
    template = NormalizedTemplate(
        tenant_id=tenant_id,
        scope="tenant" if tenant_id else "global",
        key="preview",
        subject=body.subject,
        html=body.html,
        text_body=body.text_body,
    )
    rendered = rendering.render_template(template, {**DEFAULT_EXAMPLE_VALUES, **body.values}, settings)
    return rendered.model_dump()


@router.post("/push")
async def templates_push(
    body: PushRequest,
    user: CurrentUser = Depends(require_super_admin),
    client: Any = Depends(get_supabase),
):
    """Super admin: copy global templates into clubs."""
    tenant_ids = body.tenant_ids if body.tenant_ids is not None else await push_service.list_tenant_ids(client)
    if body.mode == "safe":
        report = await push_service.push_safe(client, tenant_ids)
    else:
        template = await push_service.get_raw_template(client, body.template_id) if body.template_id else None
        report = await push_service.push_force(client, tenant_ids, template)
    return report.model_dump()


@router.put("/{template_id}")
async def template_update(
    template_id: str,
    body: EmailTemplateForm,
    user: CurrentUser = Depends(get_current_user),
    client: Any = Depends(get_supabase),
):
    row = await save_service.save_email_template_prod(client, template_id, body, access_token=user.access_token)
    return {"template": row}


@router.delete("/{template_id}")
async def template_delete(
    template_id: str,
    user: CurrentUser = Depends(get_current_user),
    client: Any = Depends(get_supabase),
):
    await save_service.delete_email_template(client, template_id)
    return {"status": "deleted"}
