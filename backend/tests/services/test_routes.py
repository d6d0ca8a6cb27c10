"""API Routes: tests for the HTTP surface over the credential chain and crawler.

Tests cover:
    - Health and readiness probes
    - POST /sync bootstrap: token exchange, politeshopToken cookie, persisted result
    - Identity mismatch -> 403, no cookie set
    - Missing cookies -> 401, upstream failure -> 502
    - A freshly minted politeshopToken survives a failing sync
    - GET /modules reads the store, GET /modules/{id}/units reads upstream
"""

from politeshop.core.domain_types import Module, School, User
from politeshop.core.tokens import decode_signing_key, mint_session_token, verify_session_token
from tests.services.mock_brightspace import (
    SEQUENCES, SIGNING_KEY, TOKEN_EXCHANGE, activity, brightspace_jwt, lesson,
    stub_token_exchange, stub_user_graph, unit,
)

KEY = decode_signing_key(SIGNING_KEY)
SEQUENCE_QUERY = "deepEmbedEntities=1&embedDepth=1&filterOnDatesAndDepth=0"


def _login(client, **extra):
    cookies = {
        "politeDomain": "nplms",
        "d2lSessionVal": "sess",
        "d2lSecureSessionVal": "secure",
        "brightspaceToken": brightspace_jwt("u1"),
        **extra,
    }
    for name, value in cookies.items():
        client.cookies.set(name, value)


# -- Health --------------------------------------------------------------------

async def test_health(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_ready(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200


# -- Sync ----------------------------------------------------------------------

async def test_sync_bootstrap_sets_session_cookie(client, upstream):
    stub_token_exchange(upstream, "u1")
    stub_user_graph(upstream)
    _login(client, csrfToken="csrf-1")

    res = await client.post("/api/v1/sync")

    assert res.status_code == 200
    assert res.json() == {"user_id": "u1", "school_id": "6606", "semesters": 2, "modules": 2}
    set_cookie = res.headers["set-cookie"]
    assert set_cookie.startswith("politeshopToken=")
    assert "Max-Age=604800" in set_cookie
    assert "HttpOnly" in set_cookie
    token = set_cookie.split(";")[0].split("=", 1)[1]
    assert verify_session_token(KEY, token) == "u1"


async def test_sync_identity_mismatch_is_forbidden(client, upstream):
    stub_token_exchange(upstream, "u2")
    stub_user_graph(upstream)
    _login(client, csrfToken="csrf-1")

    res = await client.post("/api/v1/sync")

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "IDENTITY_MISMATCH"
    assert "set-cookie" not in res.headers


async def test_sync_without_cookies_is_unauthorized(client, upstream):
    res = await client.post("/api/v1/sync")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "MISSING_CREDENTIALS"
    assert upstream.requests == []


async def test_sync_continuation_skips_exchange(client, upstream):
    stub_user_graph(upstream)
    _login(client, politeshopToken=mint_session_token(KEY, "u1"))

    res = await client.post("/api/v1/sync")

    assert res.status_code == 200
    assert upstream.requests_to(TOKEN_EXCHANGE) == []
    assert "set-cookie" not in res.headers


async def test_sync_upstream_failure_is_bad_gateway(client, upstream):
    _login(client, politeshopToken=mint_session_token(KEY, "u1"))

    res = await client.post("/api/v1/sync")

    assert res.status_code == 502
    assert res.json()["error"]["category"] == "upstream"


async def test_sync_failure_after_bootstrap_keeps_session_cookie(client, upstream):
    stub_token_exchange(upstream, "u1")
    _login(client, csrfToken="csrf-1")

    res = await client.post("/api/v1/sync")

    assert res.status_code == 502
    set_cookie = res.headers["set-cookie"]
    assert set_cookie.startswith("politeshopToken=")
    assert "HttpOnly" in set_cookie
    token = set_cookie.split(";")[0].split("=", 1)[1]
    assert verify_session_token(KEY, token) == "u1"


# -- Modules -------------------------------------------------------------------

async def test_list_modules_reads_store(client, upstream, store):
    await store.upsert_school(School(id="6606", name="Ngee Ann Polytechnic"))
    await store.upsert_user(User(id="u1", name="Alex", school="6606"))
    await store.upsert_user_modules("u1", [
        Module(id="332340", name="OOP", code="CS1001", semester_id="300001"),
    ])
    _login(client, politeshopToken=mint_session_token(KEY, "u1"))

    res = await client.get("/api/v1/modules")

    assert res.status_code == 200
    assert res.json() == [
        {"id": "332340", "name": "OOP", "code": "CS1001", "semester_id": "300001"},
    ]
    assert upstream.requests == []


async def test_list_units(client, upstream):
    upstream.add_json(f"{SEQUENCES}/332340?{SEQUENCE_QUERY}", {"entities": [
        unit("10", "332340", "Unit 1", children=[
            lesson("20", "10", "Lesson 1", children=[activity("30", "20", "Slides")]),
        ]),
    ]})
    _login(client, politeshopToken=mint_session_token(KEY, "u1"))

    res = await client.get("/api/v1/modules/332340/units")

    assert res.status_code == 200
    assert res.json() == [{
        "id": "10", "module_id": "332340", "title": "Unit 1",
        "lessons": [{
            "id": "20", "unit_id": "10", "title": "Lesson 1", "transparent": False,
            "activities": [{"id": "30", "lesson_id": "20", "title": "Slides"}],
        }],
    }]


async def test_list_units_malformed_tree_is_bad_gateway(client, upstream):
    upstream.add_json(f"{SEQUENCES}/332340?{SEQUENCE_QUERY}", {"entities": [
        unit("10", "332340", title=None),
    ]})
    _login(client, politeshopToken=mint_session_token(KEY, "u1"))

    res = await client.get("/api/v1/modules/332340/units")

    assert res.status_code == 502
    assert res.json()["error"]["code"] == "MISSING_HYPERMEDIA_ELEMENT"
