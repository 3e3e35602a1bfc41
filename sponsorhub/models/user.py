from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["super_admin", "club_admin"]


class CurrentUser(BaseModel):
    """Authenticated caller: Supabase Auth user joined with its app_users profile."""

    id: str
    email: str | None = None
    role: Role
    tenant_id: str | None = None  # set for club admins
    access_token: str = Field(default="", repr=False)

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin"
