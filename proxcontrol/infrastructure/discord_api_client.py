import logging

from proxcontrol.core.errors import RemoteAPIError
from proxcontrol.core.http import HttpClient, RequestFormat, ResponseFormat
from proxcontrol.domain.commands import VMAction
from proxcontrol.domain.interaction import OptionType

DISCORD_API = "https://discord.com/api/v10"


def _vm_option(description: str) -> dict:
    return {
        "type": OptionType.STRING,
        "name": "vm",
        "description": description,
        "required": True,
        "autocomplete": True,
    }


VM_COMMAND = {
    "name": "vm",
    "description": "Manage Proxmox virtual machines",
    "options": [
        {
            "type": OptionType.SUB_COMMAND,
            "name": VMAction.start.value,
            "description": "Start a VM",
            "options": [_vm_option("Name or ID of the VM to start")],
        },
        {
            "type": OptionType.SUB_COMMAND,
            "name": VMAction.stop.value,
            "description": "Shut down a VM (graceful)",
            "options": [_vm_option("Name or ID of the VM to stop")],
        },
        {
            "type": OptionType.SUB_COMMAND,
            "name": VMAction.status.value,
            "description": "Show the status of a VM",
            "options": [_vm_option("Name or ID of the VM")],
        },
        {
            "type": OptionType.SUB_COMMAND,
            "name": VMAction.list.value,
            "description": "List all authorized VMs",
        },
    ],
}


class DiscordAPIClient:
    """REST API Discord: регистрация /vm и редактирование отложенных ответов"""

    def __init__(self, application_id: str, bot_token: str | None = None,
                 http_client: HttpClient | None = None, logger: logging.Logger | None = None):
        self.application_id = application_id
        self.bot_token = bot_token
        parent = logger or logging.getLogger(__name__)
        self.logger = logging.getLogger(f"{parent.name}.{self.__class__.__name__}")
        self._client = http_client or HttpClient(url=DISCORD_API, logger=self.logger)

    def close(self):
        self._client.close()

    def _send(self, request: RequestFormat) -> ResponseFormat:
        response = self._client.request(request)
        if not response.success:
            raise RemoteAPIError("Discord API error", status_code=response.status_code, body=response.text)
        return response

    def edit_original_response(self, interaction_token: str, embeds: list[dict]) -> None:
        """Заменяет "бот думает..." итоговым сообщением"""
        self._send(RequestFormat(
            method="PATCH",
            endpoint=f"/webhooks/{self.application_id}/{interaction_token}/messages/@original",
            json={"embeds": embeds},
        ))

    def register_commands(self, guild_id: str | None = None, commands: list[dict] | None = None) -> list:
        """Перезаписывает набор команд приложения (в гильдии или глобально)"""
        if not self.bot_token:
            raise RemoteAPIError("DISCORD_BOT_TOKEN is required to register commands")
        if guild_id:
            endpoint = f"/applications/{self.application_id}/guilds/{guild_id}/commands"
        else:
            endpoint = f"/applications/{self.application_id}/commands"
        response = self._send(RequestFormat(
            method="PUT",
            endpoint=endpoint,
            json=commands if commands is not None else [VM_COMMAND],
            headers={"Authorization": f"Bot {self.bot_token}"},
        ))
        registered = response.data or []
        for cmd in registered:
            self.logger.info(f"Команда {cmd.get('name')} зарегистрирована")
        return registered
