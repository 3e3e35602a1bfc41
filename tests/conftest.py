import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Settings are read once; keep them pointing at a fake project
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

from sponsorhub.models.user import CurrentUser  # noqa: E402
from tests.fakes import MODE_A_COLUMNS, FakeSupabase  # noqa: E402


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase(MODE_A_COLUMNS)


@pytest.fixture
def super_admin() -> CurrentUser:
    return CurrentUser(id="user-1", email="root@example.com", role="super_admin", access_token="tok-super")


@pytest.fixture
def club_admin() -> CurrentUser:
    return CurrentUser(
        id="user-2",
        email="club@example.com",
        role="club_admin",
        tenant_id="club-1",
        access_token="tok-club",
    )


@pytest.fixture
def current_user(super_admin: CurrentUser) -> CurrentUser:
    return super_admin


@pytest_asyncio.fixture
async def client(db: FakeSupabase, current_user: CurrentUser) -> AsyncGenerator[AsyncClient, None]:
    from sponsorhub.deps import get_current_user, get_supabase
    from sponsorhub.main import app

    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: current_user
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
