from collections.abc import Iterable
import logging

from pydantic import ValidationError

from proxcontrol.core.errors import DecodeError, NotAuthorizedError, NotFoundError, RemoteAPIError
from proxcontrol.core.http import DEFAULT_TIMEOUT, HttpClient, RequestFormat, ResponseFormat
from proxcontrol.domain.vm import VM, VMStatus

API_PATH = "/api2/json"


class ProxmoxAPIClient:
    """Обертка над REST API Proxmox, ограниченная белым списком VM"""

    def __init__(self, host: str, token_id: str, secret: str, node: str, allowed_vms: Iterable[int],
                 verify_ssl: bool = False, timeout: float = DEFAULT_TIMEOUT,
                 http_client: HttpClient | None = None, logger: logging.Logger | None = None):
        host = host.rstrip("/")
        if not host.endswith(API_PATH):
            host = f"{host}{API_PATH}"
        self.host = host
        self.node = node
        self.allowed_vms = frozenset(allowed_vms)
        self.headers = {"Authorization": f"PVEAPIToken={token_id}={secret}"}
        parent = logger or logging.getLogger(__name__)
        self.logger = logging.getLogger(f"{parent.name}.{self.__class__.__name__}")
        self._client = http_client or HttpClient(
            url=self.host, headers=self.headers, verify_ssl=verify_ssl, timeout=timeout, logger=self.logger
        )

    @classmethod
    def from_settings(cls, settings, logger: logging.Logger | None = None) -> "ProxmoxAPIClient":
        return cls(
            host=settings.PVE_HOST,
            token_id=settings.PVE_TOKEN,
            secret=settings.PVE_SECRET,
            node=settings.PVE_NODE,
            allowed_vms=settings.ALLOWED_VMS,
            verify_ssl=settings.PVE_VERIFY_SSL,
            timeout=settings.PVE_TIMEOUT,
            logger=logger,
        )

    def close(self):
        self._client.close()

    def is_allowed(self, vmid: int) -> bool:
        return vmid in self.allowed_vms

    def _ensure_allowed(self, vmid: int):
        if not self.is_allowed(vmid):
            self.logger.warning(f"Отказано: VM {vmid} не в белом списке")
            raise NotAuthorizedError(vmid)

    def _request(self, method: str, endpoint: str) -> ResponseFormat:
        response = self._client.request(RequestFormat(method=method, endpoint=endpoint))
        if not response.success:
            self.logger.error(f"Proxmox API {method} {endpoint}: {response.status_code} {response.text}")
            raise RemoteAPIError("Proxmox API error", status_code=response.status_code, body=response.text)
        return response

    @staticmethod
    def _payload(response: ResponseFormat):
        if not isinstance(response.data, dict) or "data" not in response.data:
            raise DecodeError(f"unexpected response body: {response.text[:200]!r}")
        return response.data["data"]

    def _qemu(self, vmid: int, action: str) -> str:
        return f"/nodes/{self.node}/qemu/{vmid}/status/{action}"

    def get_vms(self) -> list[VM]:
        """Весь инвентарь кластера, без фильтрации"""
        response = self._request("GET", "/cluster/resources?type=vm")
        items = self._payload(response)
        if not isinstance(items, list):
            raise DecodeError(f"expected a list of VMs, got {type(items).__name__}")
        try:
            return [VM.model_validate(item) for item in items]
        except ValidationError as e:
            raise DecodeError(f"invalid VM entry: {e}") from e

    def list_vms(self) -> list[VM]:
        """Только VM из белого списка, в порядке ответа API"""
        return [vm for vm in self.get_vms() if self.is_allowed(vm.vmid)]

    def find_vm_by_name(self, name: str) -> VM:
        """Поиск по имени без учета регистра; при совпадении имён берётся первая"""
        wanted = name.strip().lower()
        for vm in self.list_vms():
            if vm.name.lower() == wanted:
                return vm
        raise NotFoundError(name)

    def get_vm_status(self, vmid: int) -> VMStatus:
        self._ensure_allowed(vmid)
        response = self._request("GET", self._qemu(vmid, "current"))
        payload = self._payload(response)
        if not isinstance(payload, dict):
            raise DecodeError(f"expected a VM status object, got {type(payload).__name__}")
        payload = {"vmid": vmid, **payload}
        try:
            return VMStatus.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(f"invalid VM status: {e}") from e

    def _power(self, vmid: int, action: str) -> str | None:
        self._ensure_allowed(vmid)
        self.logger.info(f"{action} VM {vmid} на узле {self.node}")
        response = self._request("POST", self._qemu(vmid, action))
        # Proxmox возвращает UPID задачи
        if isinstance(response.data, dict):
            return response.data.get("data")
        return None

    def start_vm(self, vmid: int) -> str | None:
        """Запуск VM"""
        return self._power(vmid, "start")

    def shutdown_vm(self, vmid: int) -> str | None:
        """Корректное выключение через гостевую ОС"""
        return self._power(vmid, "shutdown")

    def stop_vm(self, vmid: int) -> str | None:
        """Принудительная остановка"""
        return self._power(vmid, "stop")
