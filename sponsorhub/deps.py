"""Shared FastAPI dependencies."""

from typing import Any

from fastapi import Depends, Request

from sponsorhub.core.exceptions import ForbiddenError, UnauthorizedError
from sponsorhub.core.logging import bind_actor
from sponsorhub.db.client import create_supabase
from sponsorhub.models.user import CurrentUser
from sponsorhub.services.payload import UNSET
from sponsorhub.services.users import load_current_user


def bearer_token(request: Request) -> str:
    scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Not authenticated")
    return token.strip()


async def get_supabase(request: Request) -> Any:
    """Dependency: Supabase client acting as the caller, so RLS applies."""
    return await create_supabase(bearer_token(request))


async def get_current_user(request: Request, client: Any = Depends(get_supabase)) -> CurrentUser:
    """Dependency: Supabase Auth user with a super_admin or club_admin profile."""
    user = await load_current_user(client, bearer_token(request))
    bind_actor(user.id, user.tenant_id, user.role)
    return user


async def require_super_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_super_admin:
        raise ForbiddenError("Super admin only")
    return user


def resolve_tenant_scope(user: CurrentUser, as_tenant: str | None) -> Any:
    """Tenant whose templates the caller works on.

    Super admins pick a tenant with ``as_tenant`` or get globals only (None).
    Club admins are pinned to their own tenant; a profile without tenant_id
    yields UNSET so the listing flags it.
    """
    if user.is_super_admin:
        return as_tenant or None
    if as_tenant and as_tenant != user.tenant_id:
        raise ForbiddenError("Accès limité à votre club")
    return user.tenant_id or UNSET
