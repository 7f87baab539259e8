from __future__ import annotations

import json
import logging

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from proxcontrol.core.http import RequestFormat, ResponseFormat
from proxcontrol.core.settings import Settings
from proxcontrol.infrastructure.prox_api_client import ProxmoxAPIClient
from proxcontrol.use_cases.vm_services import VMCommandService

INVENTORY = [
    {"vmid": 100, "name": "web", "status": "running", "node": "pve", "type": "qemu", "maxmem": 4294967296},
    {"vmid": 101, "name": "db", "status": "stopped", "node": "pve", "type": "qemu"},
    {"vmid": 102, "name": "other", "status": "running", "node": "pve", "type": "qemu"},
]


def ok(data, status_code: int = 200) -> ResponseFormat:
    body = {"data": data}
    return ResponseFormat(status_code=status_code, text=json.dumps(body), data=body)


class FakeHttpClient:
    """Отвечает заранее заданными ответами и запоминает запросы"""

    def __init__(self, routes: dict | None = None):
        self.routes = routes or {}
        self.requests: list[RequestFormat] = []
        self.closed = False

    def request(self, request: RequestFormat) -> ResponseFormat:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.endpoint))
        if handler is None:
            return ResponseFormat(status_code=404, text="no route")
        if isinstance(handler, Exception):
            raise handler
        return handler

    def close(self):
        self.closed = True

    def calls(self, method: str | None = None) -> list[RequestFormat]:
        return [r for r in self.requests if method is None or r.method == method]


class FakeDiscordClient:
    def __init__(self):
        self.edits: list[tuple[str, list[dict]]] = []

    def edit_original_response(self, interaction_token: str, embeds: list[dict]) -> None:
        self.edits.append((interaction_token, embeds))

    def register_commands(self, guild_id=None, commands=None):
        return []

    def close(self):
        pass


@pytest.fixture
def http():
    return FakeHttpClient({
        ("GET", "/cluster/resources?type=vm"): ok(INVENTORY),
        ("GET", "/nodes/pve/qemu/100/status/current"): ok(
            {"vmid": 100, "name": "web", "status": "running", "uptime": 7300,
             "cpu": 0.125, "mem": 1073741824, "maxmem": 4294967296}
        ),
        ("GET", "/nodes/pve/qemu/101/status/current"): ok(
            {"vmid": 101, "name": "db", "status": "stopped", "uptime": 0,
             "cpu": 0, "mem": 0, "maxmem": 2147483648}
        ),
        ("POST", "/nodes/pve/qemu/100/status/start"): ok("UPID:pve:start:100"),
        ("POST", "/nodes/pve/qemu/101/status/start"): ok("UPID:pve:start:101"),
        ("POST", "/nodes/pve/qemu/100/status/shutdown"): ok("UPID:pve:shutdown:100"),
        ("POST", "/nodes/pve/qemu/101/status/stop"): ok("UPID:pve:stop:101"),
    })


@pytest.fixture
def prox_client(http):
    return ProxmoxAPIClient(
        host="https://pve.local:8006",
        token_id="discord@pve!bot",
        secret="s3cret",
        node="pve",
        allowed_vms={100, 101},
        http_client=http,
    )


@pytest.fixture
def service(prox_client):
    return VMCommandService(prox_client, logger=logging.getLogger("test"))


@pytest.fixture
def signing_key():
    return Ed25519PrivateKey.generate()


@pytest.fixture
def settings(signing_key):
    public_hex = signing_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
    return Settings(
        _env_file=None,
        PVE_HOST="https://pve.local:8006",
        PVE_TOKEN="discord@pve!bot",
        PVE_SECRET="s3cret",
        PVE_NODE="pve",
        ALLOWED_VMS="100,101",
        DISCORD_APPLICATION_ID="123456",
        DISCORD_PUBLIC_KEY=public_hex,
        APP_NAME="proxcontrol-test",
    )
