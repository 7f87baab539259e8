from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
import uvicorn
from starlette.concurrency import run_in_threadpool

from proxcontrol.api.discord_routes import discord, load_public_key
from proxcontrol.core.errors import ProxControlError
from proxcontrol.core.response import ServiceStatus
from proxcontrol.core.settings import Settings, get_settings
from proxcontrol.infrastructure.discord_api_client import DiscordAPIClient
from proxcontrol.infrastructure.prox_api_client import ProxmoxAPIClient
from proxcontrol.use_cases.vm_services import VMCommandService

logger = logging.getLogger("proxcontrol")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    app.state.start_time = datetime.now(timezone.utc)
    logger.info(f"Запуск {settings.APP_NAME} {settings.APP_VERSION}, разрешённые VM: {sorted(settings.ALLOWED_VMS)}")
    if settings.DISCORD_BOT_TOKEN:
        try:
            await run_in_threadpool(app.state.discord_client.register_commands, settings.DISCORD_GUILD_ID)
        except ProxControlError as e:
            logger.error(f"Ошибка при регистрации команды /vm: {e}")
    else:
        logger.info("DISCORD_BOT_TOKEN не задан, регистрация команд пропущена")
    yield
    app.state.prox_client.close()
    app.state.discord_client.close()
    logger.info("Остановка приложения")


def create_app(settings: Settings | None = None, service: VMCommandService | None = None,
               discord_client: DiscordAPIClient | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.start_time = datetime.now(timezone.utc)
    app.state.discord_public_key = load_public_key(settings.DISCORD_PUBLIC_KEY)
    app.state.signature_max_age = settings.DISCORD_SIGNATURE_MAX_AGE

    if service is None:
        prox_client = ProxmoxAPIClient.from_settings(settings, logger=logger)
        service = VMCommandService(prox_client, logger=logger)
    app.state.prox_client = service.client
    app.state.vm_service = service
    app.state.discord_client = discord_client or DiscordAPIClient(
        settings.DISCORD_APPLICATION_ID, settings.DISCORD_BOT_TOKEN, logger=logger
    )

    app.include_router(discord)

    @app.get("/api/health", tags=["Health"], summary="Проверка состояния сервиса")
    async def health_check(request: Request):
        """Эндпоинт для проверки доступности сервиса"""
        uptime = (datetime.now(timezone.utc) - request.app.state.start_time).total_seconds()
        return {
            "status": ServiceStatus.success,
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "debug": settings.DEBUG,
            "uptime_seconds": int(uptime),
            "allowed_vms": len(settings.ALLOWED_VMS),
        }

    return app


def run():
    """Точка входа: proxcontrol"""
    settings = get_settings()
    settings.logger_config().setup_logger()
    uvicorn.run("proxcontrol.main:create_app", factory=True, host=settings.HOST, port=settings.PORT,
                log_config=None)


if __name__ == "__main__":
    run()
