# tests/test_api.py

from __future__ import annotations

import httpx
import pytest

from clinic_workflow.core.state import AppState
from clinic_workflow.web.app import create_app

INTAKE = {
    "location": "qiushi",
    "staff": "potato",
    "customer": "Y.S.",
    "initial_check": "1111",
    "remedy": "Change the CPU fan",
    "post": "202508121505",
}


def _client(state: AppState) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=create_app(state))
    return httpx.AsyncClient(transport=transport, base_url="http://clinic.test")


@pytest.mark.asyncio
async def test_full_workflow_over_http(state: AppState) -> None:
    async with _client(state) as client:
        resp = await client.post("/staff/create_task", json=INTAKE)
        assert resp.status_code == 200
        created = resp.json()
        task_id = created["id"]
        assert task_id == 1
        assert created["uri_customer"].startswith("/customer/initial/x1x")
        assert created["uri_staff"].startswith("/staff/final/x1x")

        resp = await client.post(created["uri_customer"] + "/confirmed", content="202508121626")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}

        resp = await client.post(
            created["uri_staff"],
            json={"final_check": "1111", "additional": None, "post": "202508121711"},
        )
        assert resp.status_code == 200
        final_uri = resp.json()["uri"]
        assert final_uri.startswith("/customer/final/x1x")
        assert final_uri.split("x")[2] != created["uri_customer"].split("x")[2]

        resp = await client.post(final_uri + "/confirmed", content="202508121713")
        assert resp.status_code == 200

        segment = final_uri.rsplit("/", 1)[1]
        resp = await client.get(f"/task/{segment}")
        assert resp.status_code == 200
        view = resp.json()

    assert view["stage"] == "completion-confirmed"
    assert view["initial_confirm"] == "202508121626"
    assert view["final_confirm"] == "202508121713"
    assert view["additional"] is None
    assert view["inspection"]["final"] == {"screen": True, "keyboard": True, "touchpad": True}
    assert view["failed"] == {"initial": [], "final": []}
    assert state.controller.fetch(task_id).final_post == "202508121711"


@pytest.mark.asyncio
async def test_links_are_stable_for_the_same_task(state: AppState) -> None:
    async with _client(state) as client:
        created = (await client.post("/staff/create_task", json=INTAKE)).json()

    record = state.controller.fetch(created["id"])
    token = state.tokens.derive(record.id, 0, record.initial_post)
    assert created["uri_customer"] == f"/customer/initial/x{record.id}x{token}"


@pytest.mark.asyncio
async def test_confirm_unknown_task_is_404(state: AppState) -> None:
    async with _client(state) as client:
        resp = await client.post("/customer/initial/x41xdeadbeef/confirmed", content="202508121626")

    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_malformed_segment_is_400(state: AppState) -> None:
    async with _client(state) as client:
        resp = await client.post("/customer/initial/nonsense/confirmed", content="202508121626")

    assert resp.status_code == 400
    assert resp.json()["code"] == "MALFORMED_INPUT"


@pytest.mark.asyncio
async def test_missing_field_is_400_and_creates_nothing(state: AppState) -> None:
    payload = dict(INTAKE)
    del payload["post"]
    async with _client(state) as client:
        resp = await client.post("/staff/create_task", json=payload)

    assert resp.status_code == 400
    assert resp.json()["ok"] is False
    assert state.task_store.max_id() is None


@pytest.mark.asyncio
async def test_unknown_check_state_version_is_400(state: AppState) -> None:
    payload = dict(INTAKE, initial_check="9111")
    async with _client(state) as client:
        resp = await client.post("/staff/create_task", json=payload)

    assert resp.status_code == 400
    assert resp.json()["code"] == "UNKNOWN_CHECK_STATE_VERSION"


@pytest.mark.asyncio
async def test_empty_confirmation_body_is_400(state: AppState) -> None:
    async with _client(state) as client:
        created = (await client.post("/staff/create_task", json=INTAKE)).json()
        resp = await client.post(created["uri_customer"] + "/confirmed", content="   ")

    assert resp.status_code == 400
    assert state.controller.fetch(created["id"]).initial_confirm is None


@pytest.mark.asyncio
async def test_completion_before_confirmation_is_409(state: AppState) -> None:
    async with _client(state) as client:
        created = (await client.post("/staff/create_task", json=INTAKE)).json()
        resp = await client.post(
            created["uri_staff"],
            json={"final_check": "1111", "post": "202508121711"},
        )

    assert resp.status_code == 409
    assert resp.json()["code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_cors_is_permissive_by_default(state: AppState) -> None:
    async with _client(state) as client:
        resp = await client.get("/health", headers={"Origin": "http://frontend.test"})

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_confirmation_body_is_stored_as_sent(state: AppState) -> None:
    payload = dict(INTAKE, initial_check="1110")
    async with _client(state) as client:
        created = (await client.post("/staff/create_task", json=payload)).json()
        resp = await client.post(created["uri_customer"] + "/confirmed", content=" 202508121626\n")
        assert resp.status_code == 200

        segment = created["uri_customer"].rsplit("/", 1)[1]
        view = (await client.get(f"/task/{segment}")).json()

    assert state.controller.fetch(created["id"]).initial_confirm == " 202508121626\n"
    assert view["failed"] == {"initial": ["touchpad"], "final": None}


@pytest.mark.asyncio
@pytest.mark.parametrize("segment", ["x--5xabc", "x99999999999999999999xabc"])
async def test_bad_task_id_in_link_is_400(state: AppState, segment: str) -> None:
    async with _client(state) as client:
        resp = await client.post(f"/customer/initial/{segment}/confirmed", content="202508121626")

    assert resp.status_code == 400
    assert resp.json()["code"] == "MALFORMED_INPUT"
