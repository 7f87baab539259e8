import pytest

from proxcontrol.core.errors import RemoteAPIError
from proxcontrol.core.http import ResponseFormat
from proxcontrol.infrastructure.discord_api_client import VM_COMMAND, DiscordAPIClient

from conftest import FakeHttpClient


def test_edit_original_response():
    http = FakeHttpClient({
        ("PATCH", "/webhooks/123/tok/messages/@original"): ResponseFormat(status_code=200, data={}),
    })
    DiscordAPIClient("123", http_client=http).edit_original_response("tok", [{"description": "hi", "color": 1}])

    request = http.requests[0]
    assert request.json == {"embeds": [{"description": "hi", "color": 1}]}
    assert "Authorization" not in request.headers


def test_edit_original_response_error():
    http = FakeHttpClient()
    with pytest.raises(RemoteAPIError) as exc:
        DiscordAPIClient("123", http_client=http).edit_original_response("tok", [])
    assert exc.value.status_code == 404


def test_register_commands_in_guild():
    http = FakeHttpClient({
        ("PUT", "/applications/123/guilds/999/commands"): ResponseFormat(status_code=200, data=[{"name": "vm"}]),
    })
    registered = DiscordAPIClient("123", bot_token="bot-token", http_client=http).register_commands("999")

    assert registered == [{"name": "vm"}]
    request = http.requests[0]
    assert request.headers == {"Authorization": "Bot bot-token"}
    assert request.json == [VM_COMMAND]


def test_register_commands_globally():
    http = FakeHttpClient({
        ("PUT", "/applications/123/commands"): ResponseFormat(status_code=200, data=[]),
    })
    DiscordAPIClient("123", bot_token="bot-token", http_client=http).register_commands(None)
    assert http.requests[0].endpoint == "/applications/123/commands"


def test_register_commands_requires_bot_token():
    http = FakeHttpClient()
    with pytest.raises(RemoteAPIError):
        DiscordAPIClient("123", http_client=http).register_commands("999")
    assert http.requests == []


def test_vm_command_schema():
    subcommands = {opt["name"]: opt for opt in VM_COMMAND["options"]}
    assert set(subcommands) == {"start", "stop", "status", "list"}
    for name in ("start", "stop", "status"):
        (option,) = subcommands[name]["options"]
        assert option["required"] and option["autocomplete"]
    assert "options" not in subcommands["list"]
