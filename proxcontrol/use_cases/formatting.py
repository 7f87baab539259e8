# use_cases/formatting.py
from proxcontrol.core.errors import ProxControlError
from proxcontrol.core.response import ServiceResponse, ServiceStatus
from proxcontrol.domain.commands import Choice
from proxcontrol.domain.vm import VM, VMStatus

RUNNING_GLYPH = "🟢"
STOPPED_GLYPH = "🔴"


def status_glyph(vm: VM) -> str:
    return RUNNING_GLYPH if vm.is_running() else STOPPED_GLYPH


def format_vm_list(vms: list[VM]) -> ServiceResponse:
    if not vms:
        return ServiceResponse(status=ServiceStatus.info, message="No authorized VM found.", data={"vms": []})

    lines = ["**Authorized VMs:**", ""]
    for vm in vms:
        lines.append(f"{status_glyph(vm)} **{vm.name}** (ID: {vm.vmid}) - {vm.status}")
    return ServiceResponse(
        status=ServiceStatus.info,
        message="\n".join(lines),
        data={"vms": [vm.to_dict() for vm in vms]},
    )


def format_vm_status(status: VMStatus) -> ServiceResponse:
    message = (
        f"📊 **VM {status.vmid} - {status.name}**\n"
        f"• State: **{status.status}**\n"
        f"• Uptime: {status.uptime_hours} hours\n"
        f"• CPU: {status.cpu_percent:.1f}%\n"
        f"• RAM: {status.mem_used_gb:.2f} GB / {status.mem_total_gb:.2f} GB"
    )
    return ServiceResponse(
        status=ServiceStatus.success if status.is_running() else ServiceStatus.error,
        message=message,
        data=status.model_dump(),
    )


def format_started(vmid: int, task: str | None = None) -> ServiceResponse:
    return ServiceResponse(status=ServiceStatus.success, message=f"✅ VM {vmid} is starting",
                           data={"vmid": vmid, "task": task})


def format_shutting_down(vmid: int, task: str | None = None) -> ServiceResponse:
    return ServiceResponse(status=ServiceStatus.warning, message=f"🛑 VM {vmid} is shutting down",
                           data={"vmid": vmid, "task": task})


def format_error(prefix: str, error: ProxControlError) -> ServiceResponse:
    return ServiceResponse(status=error.status, message=f"❌ {prefix}: {error}", error=str(error))


def format_unknown_command() -> ServiceResponse:
    return ServiceResponse(status=ServiceStatus.error, message="❌ Unknown command", error="unknown command")


def format_choice(vm: VM) -> Choice:
    # Discord ограничивает подпись 100 символами
    label = f"{vm.name} (ID: {vm.vmid}) - {vm.status}"
    return Choice(name=label[:100], value=str(vm.vmid))
