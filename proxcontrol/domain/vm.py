# domain/vm.py
from enum import Enum

from pydantic import BaseModel, ConfigDict

GIB = 1024 ** 3


class VMState(str, Enum):
    running = "running"
    stopped = "stopped"


class VM(BaseModel):
    """Запись инвентаря кластера (/cluster/resources?type=vm)"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    vmid: int
    name: str = ""
    status: str = VMState.stopped.value
    node: str | None = None
    type: str | None = None

    def is_running(self) -> bool:
        return self.status == VMState.running.value

    def to_dict(self):
        return {"vmid": self.vmid, "name": self.name, "status": self.status}


class VMStatus(BaseModel):
    """Снимок состояния VM (/nodes/{node}/qemu/{vmid}/status/current)"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    vmid: int
    name: str = ""
    status: str = VMState.stopped.value
    uptime: int = 0       # секунды
    cpu: float = 0.0      # доля 0..1
    mem: int = 0          # байты
    maxmem: int = 0       # байты

    def is_running(self) -> bool:
        return self.status == VMState.running.value

    @property
    def uptime_hours(self) -> int:
        return self.uptime // 3600

    @property
    def cpu_percent(self) -> float:
        return self.cpu * 100

    @property
    def mem_used_gb(self) -> float:
        return self.mem / GIB

    @property
    def mem_total_gb(self) -> float:
        return self.maxmem / GIB
