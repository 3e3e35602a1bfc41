from typing import Any

import httpx
from supabase import AuthError

from sponsorhub.core.config import get_settings
from sponsorhub.core.exceptions import ForbiddenError, UnauthorizedError
from sponsorhub.core.logging import get_logger
from sponsorhub.db.query import run_query
from sponsorhub.models.user import CurrentUser

log = get_logger(__name__)

ADMIN_ROLES = ("super_admin", "club_admin")


async def get_auth_user(client: Any, access_token: str | None = None) -> Any | None:
    """Supabase Auth user behind the token (or the client's session); None if unknown."""
    try:
        resp = await client.auth.get_user(access_token)
    except (AuthError, httpx.HTTPError) as e:
        log.info("auth_get_user_failed", error=str(e))
        return None
    return resp.user if resp else None


async def resolve_acting_user_id(client: Any, access_token: str | None = None) -> str | None:
    """Best-effort id for updated_by stamps."""
    user = await get_auth_user(client, access_token)
    return str(user.id) if user else None


async def load_current_user(client: Any, access_token: str) -> CurrentUser:
    user = await get_auth_user(client, access_token)
    if not user:
        raise UnauthorizedError("Invalid or expired session")
    table = get_settings().app_users_table
    result = await run_query(
        client.table(table).select("id, email, role, tenant_id").eq("id", str(user.id)).limit(1)
    )
    if result.error:
        log.warning("app_user_lookup_failed", user_id=str(user.id), message=result.error.message)
        raise ForbiddenError("Profil utilisateur illisible")
    if not result.rows:
        raise ForbiddenError("Profil utilisateur introuvable")
    profile = result.rows[0]
    role = profile.get("role")
    if role not in ADMIN_ROLES:
        raise ForbiddenError("Accès réservé aux administrateurs")
    return CurrentUser(
        id=str(user.id),
        email=profile.get("email") or getattr(user, "email", None),
        role=role,
        tenant_id=profile.get("tenant_id"),
        access_token=access_token,
    )
