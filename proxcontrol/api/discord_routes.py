# api/discord_routes.py
import logging
import time

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from proxcontrol.core.errors import ProxControlError
from proxcontrol.core.response import ServiceResponse, ServiceStatus
from proxcontrol.domain.interaction import Interaction, InteractionResponseType, InteractionType
from proxcontrol.infrastructure.discord_api_client import DiscordAPIClient
from proxcontrol.use_cases.vm_services import VMCommandService

logger = logging.getLogger(__name__)

discord = APIRouter(prefix="/discord", tags=["discord"])

COMMAND_NAME = "vm"


def load_public_key(hex_key: str) -> Ed25519PublicKey:
    return Ed25519PublicKey.from_public_bytes(bytes.fromhex(hex_key))


def get_service(request: Request) -> VMCommandService:
    return request.app.state.vm_service


def get_discord_client(request: Request) -> DiscordAPIClient:
    return request.app.state.discord_client


async def verified_interaction(request: Request) -> Interaction:
    """Проверка подписи Ed25519 от Discord и разбор тела"""
    signature = request.headers.get("X-Signature-Ed25519")
    timestamp = request.headers.get("X-Signature-Timestamp")
    body = await request.body()
    if not signature or not timestamp:
        raise HTTPException(status_code=401, detail="missing request signature")

    public_key: Ed25519PublicKey = request.app.state.discord_public_key
    try:
        public_key.verify(bytes.fromhex(signature), timestamp.encode() + body)
    except (InvalidSignature, ValueError):
        logger.warning("Отклонён запрос с неверной подписью")
        raise HTTPException(status_code=401, detail="invalid request signature")

    try:
        age = abs(time.time() - int(timestamp))
    except ValueError:
        raise HTTPException(status_code=401, detail="invalid request timestamp")
    if age > request.app.state.signature_max_age:
        logger.warning(f"Отклонён запрос с устаревшей подписью ({int(age)}с)")
        raise HTTPException(status_code=401, detail="stale request timestamp")

    try:
        return Interaction.model_validate_json(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"malformed interaction: {e.error_count()} error(s)")


def run_command(interaction: Interaction, service: VMCommandService, client: DiscordAPIClient):
    """Фоновая задача: выполнить команду и отредактировать отложенный ответ"""
    sub = interaction.sub_command()
    try:
        response = service.handle(sub.name, interaction.target(), author=interaction.author)
        logger.debug(f"Ответ на /vm {sub.name}: {response.to_dict()}")
    except Exception as e:
        response = ServiceResponse(status=ServiceStatus.error, message=f"❌ Internal error: {e}", error=str(e))
    try:
        client.edit_original_response(interaction.token, [response.to_embed()])
    except ProxControlError as e:
        logger.error(f"Не удалось отправить ответ в Discord: {e}")


@discord.post("/interactions", summary="Приём взаимодействий Discord")
async def interactions(
    background_tasks: BackgroundTasks,
    interaction: Interaction = Depends(verified_interaction),
    service: VMCommandService = Depends(get_service),
    client: DiscordAPIClient = Depends(get_discord_client),
):
    if interaction.type == InteractionType.PING:
        return {"type": InteractionResponseType.PONG}

    if interaction.command_name != COMMAND_NAME:
        raise HTTPException(status_code=400, detail=f"unknown command: {interaction.command_name}")

    if interaction.type == InteractionType.APPLICATION_COMMAND:
        if interaction.sub_command() is None:
            raise HTTPException(status_code=400, detail="missing sub-command")
        # Ответ Proxmox может занять до PVE_TIMEOUT, а Discord ждёт 3 секунды
        background_tasks.add_task(run_command, interaction, service, client)
        return {"type": InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE}

    if interaction.type == InteractionType.APPLICATION_COMMAND_AUTOCOMPLETE:
        try:
            choices = await run_in_threadpool(service.suggest, interaction.focused_value())
        except ProxControlError as e:
            logger.error(f"Ошибка получения VM для автодополнения: {e}")
            choices = []
        return {
            "type": InteractionResponseType.APPLICATION_COMMAND_AUTOCOMPLETE_RESULT,
            "data": {"choices": [choice.to_dict() for choice in choices]},
        }

    raise HTTPException(status_code=400, detail=f"unsupported interaction type: {interaction.type}")
