"""Flexible template listing over both column layouts."""

import httpx
import pytest

from sponsorhub.services.payload import UNSET
from sponsorhub.services.templates_flex import TENANT_ID_WARNING, load_templates_flex, normalize_row
from tests.fakes import MODE_A_COLUMNS, MODE_B_COLUMNS, FakeSupabase, api_error

pytestmark = pytest.mark.asyncio

CANONICAL = {
    "id": "1",
    "tenant_id": None,
    "scope": "global",
    "key": "invitation",
    "subject": "S",
    "html": "H",
    "updated_at": "t",
}


def _core(tpl) -> dict:
    return tpl.model_dump(include=set(CANONICAL))


async def test_normalize_row_same_result_for_both_modes():
    row_a = {"id": "1", "tenant_id": None, "key": "invitation", "subject": "S", "html": "H", "created_at": "t"}
    row_b = {"id": "1", "tenant_id": None, "type": "invitation", "subject": "S", "html_body": "H", "updated_at": "t"}
    assert _core(normalize_row(row_a)) == CANONICAL
    assert normalize_row(row_a) == normalize_row(row_b)


async def test_normalize_row_defaults():
    tpl = normalize_row({"id": "9", "tenant_id": "club-1"})
    assert tpl.scope == "tenant"
    assert tpl.key == "unknown"
    assert tpl.subject == ""
    assert tpl.html == ""
    assert tpl.updated_at is None


async def test_normalize_row_null_falls_through_but_empty_string_does_not():
    tpl = normalize_row({"id": "1", "key": None, "type": "reminder_5d", "html": "", "html_body": "B"})
    assert tpl.key == "reminder_5d"
    assert tpl.html == ""


async def test_normalize_row_never_fabricates_id():
    assert normalize_row({"key": "k"}).id is None


def _seed_mode_a(db: FakeSupabase):
    db.seed(
        "email_templates",
        {"id": "g1", "tenant_id": None, "key": "invitation", "subject": "G1", "html": "h", "created_at": "2024-01-01"},
        {"id": "g2", "tenant_id": None, "key": "reminder_5d", "subject": "G2", "html": "h", "created_at": "2024-02-01"},
        {"id": "t1", "tenant_id": "abc", "key": "invitation", "subject": "T1", "html": "h", "created_at": "2024-03-01"},
        {"id": "x1", "tenant_id": "other", "key": "invitation", "subject": "X1", "html": "h", "created_at": "2024-04-01"},
    )


async def test_mode_a_success_issues_no_mode_b_query():
    db = FakeSupabase(MODE_A_COLUMNS)
    _seed_mode_a(db)
    result = await load_templates_flex(db, "abc")
    assert result.mode == "A"
    assert result.error is None and result.warning is None
    assert len(db.calls_on("email_templates", "select")) == 1
    # globals first (newest first), then the tenant's own
    assert [r.id for r in result.rows] == ["g2", "g1", "t1"]
    assert [r.scope for r in result.rows] == ["global", "global", "tenant"]
    assert result.last_sql == (
        "SELECT id, tenant_id, key, subject, html, created_at FROM email_templates "
        "WHERE (tenant_id IS NULL OR tenant_id='abc') ORDER BY tenant_id ASC NULLS FIRST, created_at DESC"
    )


async def test_missing_column_falls_back_to_mode_b_once():
    db = FakeSupabase(MODE_B_COLUMNS)
    db.seed(
        "email_templates",
        {"id": "g1", "tenant_id": None, "type": "invitation", "subject": "G", "html_body": "<p>g</p>", "updated_at": "2024-01-01"},
        {"id": "t1", "tenant_id": "abc", "type": "invitation", "subject": "T", "html_body": "<p>t</p>", "updated_at": "2024-05-01"},
    )
    result = await load_templates_flex(db, "abc")
    selects = db.calls_on("email_templates", "select")
    assert len(selects) == 2
    assert selects[1].columns == ["id", "tenant_id", "type", "subject", "html_body", "updated_at"]
    assert result.mode == "B"
    assert result.error is None
    assert [(r.key, r.html, r.scope) for r in result.rows] == [
        ("invitation", "<p>g</p>", "global"),
        ("invitation", "<p>t</p>", "tenant"),
    ]
    assert "ORDER BY tenant_id ASC NULLS FIRST, updated_at DESC" in result.last_sql


async def test_non_schema_error_does_not_fall_back():
    db = FakeSupabase(MODE_B_COLUMNS)
    db.injected.append(api_error("permission denied for table email_templates", code="42501", hint="check grants"))
    result = await load_templates_flex(db, "abc")
    assert result.mode == "A"
    assert result.rows == []
    assert result.error.status == 42501
    assert result.error.hint == "check grants"
    assert len(db.calls_on("email_templates")) == 1


async def test_both_modes_failing_returns_mode_b_error():
    db = FakeSupabase(template_columns={"id", "tenant_id", "subject"})
    result = await load_templates_flex(db, None)
    assert result.mode == "B"
    assert result.rows == []
    assert "does not exist" in result.error.message
    assert len(db.calls_on("email_templates")) == 2


async def test_mode_b_any_error_is_terminal():
    db = FakeSupabase(MODE_B_COLUMNS)
    db.injected.extend([None, httpx.ConnectError("connection refused")])
    result = await load_templates_flex(db, "abc")
    assert result.mode == "B"
    assert result.error.message == "connection refused"
    assert len(db.calls_on("email_templates")) == 2


async def test_transport_failure_is_returned_not_raised():
    db = FakeSupabase(MODE_A_COLUMNS)
    db.injected.append(httpx.ConnectError("connection refused"))
    result = await load_templates_flex(db, "abc")
    assert result.mode == "A"
    assert result.error.message == "connection refused"


@pytest.mark.parametrize("tenant_id, warned", [(None, False), ("", True), (UNSET, True)])
async def test_global_only_filters(tenant_id, warned):
    db = FakeSupabase(MODE_A_COLUMNS)
    _seed_mode_a(db)
    result = await load_templates_flex(db, tenant_id)
    assert {r.tenant_id for r in result.rows} == {None}
    assert (result.warning == TENANT_ID_WARNING) is warned
    if not warned:
        assert result.warning is None
    assert "WHERE tenant_id IS NULL ORDER BY" in result.last_sql


async def test_tenant_filter_never_leaks_other_tenants():
    db = FakeSupabase(MODE_A_COLUMNS)
    _seed_mode_a(db)
    result = await load_templates_flex(db, "abc")
    assert {r.tenant_id for r in result.rows} == {None, "abc"}
    query = db.calls[0]
    assert query.or_filters == [[("tenant_id", "is", None), ("tenant_id", "eq", "abc")]]


async def test_mode_is_reprobed_on_every_call():
    db = FakeSupabase(MODE_A_COLUMNS)
    assert (await load_templates_flex(db, None)).mode == "A"
    db.schemas["email_templates"] = set(MODE_B_COLUMNS)
    assert (await load_templates_flex(db, None)).mode == "B"
    db.schemas["email_templates"] = set(MODE_A_COLUMNS)
    assert (await load_templates_flex(db, None)).mode == "A"


async def test_http_400_without_code_falls_back_to_mode_b():
    db = FakeSupabase(MODE_B_COLUMNS)
    request = httpx.Request("GET", "https://test-project.supabase.co/rest/v1/email_templates")
    bad_request = httpx.HTTPStatusError("Bad Request", request=request, response=httpx.Response(400, request=request))
    db.injected.append(bad_request)
    result = await load_templates_flex(db, None)
    assert result.mode == "B"
    assert result.error is None
    assert len(db.calls_on("email_templates", "select")) == 2
