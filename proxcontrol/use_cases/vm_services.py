# use_cases/vm_services.py
import logging

from proxcontrol.core.errors import ParseError, ProxControlError, UnknownCommandError
from proxcontrol.core.response import ServiceResponse
from proxcontrol.domain.commands import (
    MAX_SUGGESTIONS,
    Choice,
    Command,
    ListVMs,
    StartVM,
    StopVM,
    VMStatusCommand,
    parse_command,
    parse_vmid,
)
from proxcontrol.infrastructure.prox_api_client import ProxmoxAPIClient
from proxcontrol.use_cases import formatting


class VMCommandService:
    """Команда /vm: разбор -> проверка белого списка -> вызов API -> ответ"""

    def __init__(self, api_client: ProxmoxAPIClient, logger: logging.Logger):
        self.client = api_client
        self.logger = logging.getLogger(f"{logger.name}.{self.__class__.__name__}")

    def resolve_vm(self, text: str) -> int:
        """Сначала пробуем как число, иначе ищем по имени"""
        if not text or not text.strip():
            raise ParseError("empty VM name or ID")
        vmid = parse_vmid(text)
        if vmid is not None:
            return vmid
        return self.client.find_vm_by_name(text).vmid

    def _call_client(self, func, *args, prefix: str) -> tuple[object, ServiceResponse | None]:
        '''вызов клиента: (результат, None) или (None, ответ с ошибкой)'''
        try:
            return func(*args), None
        except ProxControlError as e:
            self.logger.error(f"{prefix}: {e}")
            return None, formatting.format_error(prefix, e)

    def _resolve(self, target: str) -> tuple[int | None, ServiceResponse | None]:
        return self._call_client(self.resolve_vm, target, prefix=f"Could not resolve VM '{target}'")

    def execute(self, command: Command) -> ServiceResponse:
        if isinstance(command, ListVMs):
            vms, failure = self._call_client(self.client.list_vms, prefix="Failed to fetch VMs")
            return failure or formatting.format_vm_list(vms)

        if not isinstance(command, (VMStatusCommand, StartVM, StopVM)):
            raise TypeError(f"unsupported command: {command!r}")

        vmid, failure = self._resolve(command.target)
        if failure:
            return failure

        if isinstance(command, VMStatusCommand):
            status, failure = self._call_client(
                self.client.get_vm_status, vmid, prefix=f"Failed to fetch status of VM {vmid}"
            )
            return failure or formatting.format_vm_status(status)
        if isinstance(command, StartVM):
            task, failure = self._call_client(self.client.start_vm, vmid, prefix=f"Failed to start VM {vmid}")
            return failure or formatting.format_started(vmid, task)
        # StopVM: мягкое выключение
        task, failure = self._call_client(self.client.shutdown_vm, vmid, prefix=f"Failed to shut down VM {vmid}")
        return failure or formatting.format_shutting_down(vmid, task)

    def handle(self, sub_action: str, target: str | None = None, author: str = "unknown") -> ServiceResponse:
        """Полный цикл одного взаимодействия"""
        self.logger.info(f"/vm {sub_action} {target or ''} от {author}".rstrip())
        try:
            command = parse_command(sub_action, target)
        except UnknownCommandError as e:
            self.logger.warning(str(e))
            return formatting.format_unknown_command()
        except ParseError as e:
            self.logger.warning(f"Не удалось разобрать команду: {e}")
            return formatting.format_error("Invalid command", e)

        try:
            response = self.execute(command)
        except Exception:
            self.logger.exception(f"Непредвиденная ошибка при выполнении /vm {sub_action}")
            raise
        self.logger.info(f"/vm {sub_action}: {response.status.value}")
        return response

    def suggest(self, fragment: str) -> list[Choice]:
        """Автодополнение: подстрока в имени или ID, не больше 25 вариантов"""
        needle = (fragment or "").strip().lower()
        choices = []
        for vm in self.client.list_vms():
            if not needle or needle in vm.name.lower() or needle in str(vm.vmid):
                choices.append(formatting.format_choice(vm))
                if len(choices) >= MAX_SUGGESTIONS:
                    break
        return choices
