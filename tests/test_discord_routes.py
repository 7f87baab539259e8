import json
import logging
import time

import pytest
from fastapi.testclient import TestClient

from proxcontrol.core.http import ResponseFormat
from proxcontrol.core.response import COLOR_BLUE, COLOR_RED, MAX_EMBED_DESCRIPTION
from proxcontrol.infrastructure.prox_api_client import ProxmoxAPIClient
from proxcontrol.main import create_app
from proxcontrol.use_cases.vm_services import VMCommandService

from conftest import FakeDiscordClient, FakeHttpClient, ok


def now() -> str:
    return str(int(time.time()))


@pytest.fixture
def discord_client():
    return FakeDiscordClient()


@pytest.fixture
def client(settings, service, discord_client):
    app = create_app(settings, service=service, discord_client=discord_client)
    return TestClient(app)


@pytest.fixture
def post_signed(client, signing_key):
    def _post(payload: dict, key=None, timestamp=None):
        timestamp = timestamp or now()
        body = json.dumps(payload).encode()
        signature = (key or signing_key).sign(timestamp.encode() + body).hex()
        return client.post(
            "/discord/interactions",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Signature-Ed25519": signature,
                "X-Signature-Timestamp": timestamp,
            },
        )
    return _post


def interaction(type_: int, options=None, name="vm") -> dict:
    payload = {"id": "1", "application_id": "123456", "type": type_, "token": "interaction-token",
               "member": {"user": {"id": "42", "username": "alice"}}}
    if type_ != 1:
        payload["data"] = {"name": name, "options": options or []}
    return payload


def sub(name, value=None, focused=False):
    option = {"name": name, "type": 1}
    if value is not None:
        option["options"] = [{"name": "vm", "type": 3, "value": value, "focused": focused}]
    return option


def test_ping(post_signed):
    response = post_signed(interaction(1))
    assert response.status_code == 200
    assert response.json() == {"type": 1}


def test_missing_signature_is_rejected(client):
    response = client.post("/discord/interactions", json=interaction(1))
    assert response.status_code == 401


def test_bad_signature_is_rejected(post_signed):
    from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

    response = post_signed(interaction(1), key=Ed25519PrivateKey.generate())
    assert response.status_code == 401


def test_list_command_defers_then_edits(post_signed, discord_client):
    response = post_signed(interaction(2, [sub("list")]))

    assert response.status_code == 200
    assert response.json() == {"type": 5}
    assert len(discord_client.edits) == 1
    token, embeds = discord_client.edits[0]
    assert token == "interaction-token"
    assert embeds[0]["color"] == COLOR_BLUE
    assert "**web** (ID: 100)" in embeds[0]["description"]
    assert "**db** (ID: 101)" in embeds[0]["description"]
    assert "other" not in embeds[0]["description"]


def test_start_non_whitelisted_vm(post_signed, discord_client, http):
    post_signed(interaction(2, [sub("start", "102")]))

    _, embeds = discord_client.edits[0]
    assert embeds[0]["color"] == COLOR_RED
    assert "not authorized" in embeds[0]["description"]
    assert http.requests == []


def test_status_by_name(post_signed, discord_client):
    post_signed(interaction(2, [sub("status", "db")]))

    _, embeds = discord_client.edits[0]
    assert "State: **stopped**" in embeds[0]["description"]
    assert embeds[0]["color"] == COLOR_RED


def test_internal_error_still_edits_reply(post_signed, discord_client, http):
    http.routes[("GET", "/cluster/resources?type=vm")] = RuntimeError("boom")
    post_signed(interaction(2, [sub("list")]))

    _, embeds = discord_client.edits[0]
    assert embeds[0]["description"] == "❌ Internal error: boom"


def test_autocomplete(post_signed):
    response = post_signed(interaction(4, [sub("start", "d", focused=True)]))

    assert response.status_code == 200
    assert response.json() == {
        "type": 8,
        "data": {"choices": [{"name": "db (ID: 101) - stopped", "value": "101"}]},
    }


def test_autocomplete_is_capped(settings, signing_key):
    inventory = [{"vmid": 1000 + i, "name": f"vm-{i}", "status": "running"} for i in range(60)]
    http = FakeHttpClient({("GET", "/cluster/resources?type=vm"): ok(inventory)})
    prox = ProxmoxAPIClient("https://pve", "t", "s", "pve", range(1000, 1060), http_client=http)
    app = create_app(settings, service=VMCommandService(prox, logging.getLogger("test")),
                     discord_client=FakeDiscordClient())
    timestamp = now()
    body = json.dumps(interaction(4, [sub("status", "", focused=True)])).encode()

    response = TestClient(app).post(
        "/discord/interactions",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Signature-Ed25519": signing_key.sign(timestamp.encode() + body).hex(),
            "X-Signature-Timestamp": timestamp,
        },
    )
    assert len(response.json()["data"]["choices"]) == 25


def test_autocomplete_survives_api_failure(post_signed, http):
    http.routes[("GET", "/cluster/resources?type=vm")] = ok({"broken": True})
    response = post_signed(interaction(4, [sub("start", "", focused=True)]))
    assert response.json() == {"type": 8, "data": {"choices": []}}


def test_unknown_command_name(post_signed):
    response = post_signed(interaction(2, [sub("list")], name="other"))
    assert response.status_code == 400


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "success"
    assert data["service"] == "proxcontrol-test"
    assert data["allowed_vms"] == 2


@pytest.mark.parametrize("offset", [-301, 301])
def test_replayed_request_with_old_timestamp_is_rejected(post_signed, offset):
    response = post_signed(interaction(1), timestamp=str(int(time.time()) + offset))
    assert response.status_code == 401
    assert response.json()["detail"] == "stale request timestamp"


def test_non_numeric_timestamp_is_rejected(post_signed):
    response = post_signed(interaction(1), timestamp="yesterday")
    assert response.status_code == 401


def test_oversized_reply_is_truncated_for_discord(post_signed, discord_client, http):
    http.routes[("POST", "/nodes/pve/qemu/100/status/start")] = ResponseFormat(
        status_code=502, text="<html>" + "x" * 6000
    )
    post_signed(interaction(2, [sub("start", "100")]))

    _, embeds = discord_client.edits[0]
    assert len(embeds[0]["description"]) <= MAX_EMBED_DESCRIPTION
    assert "502" in embeds[0]["description"]
