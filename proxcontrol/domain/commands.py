# domain/commands.py
from dataclasses import dataclass
from enum import Enum

from proxcontrol.core.errors import ParseError, UnknownCommandError

# Discord не принимает больше 25 вариантов автодополнения
MAX_SUGGESTIONS = 25


class VMAction(str, Enum):
    list = "list"
    status = "status"
    start = "start"
    stop = "stop"


@dataclass(frozen=True)
class ListVMs:
    action = VMAction.list


@dataclass(frozen=True)
class VMStatusCommand:
    target: str
    action = VMAction.status


@dataclass(frozen=True)
class StartVM:
    target: str
    action = VMAction.start


@dataclass(frozen=True)
class StopVM:
    """Мягкое выключение (shutdown), не stop"""
    target: str
    action = VMAction.stop


Command = ListVMs | VMStatusCommand | StartVM | StopVM

_TARGETED = {
    VMAction.status: VMStatusCommand,
    VMAction.start: StartVM,
    VMAction.stop: StopVM,
}


@dataclass(frozen=True)
class Choice:
    """Вариант автодополнения: подпись + значение (vmid строкой)"""
    name: str
    value: str

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


def parse_command(sub_action: str, target: str | None = None) -> Command:
    try:
        action = VMAction(sub_action)
    except ValueError:
        raise UnknownCommandError(f"unknown command: {sub_action}") from None

    if action is VMAction.list:
        return ListVMs()
    if target is None or not target.strip():
        raise ParseError(f"'{action.value}' requires a VM name or ID")
    return _TARGETED[action](target=target)


def parse_vmid(text: str) -> int | None:
    """Число -> vmid, иначе None (значит, это имя)"""
    text = text.strip()
    digits = text[1:] if text[:1] in "+-" else text
    if digits and digits.isascii() and digits.isdigit():
        return int(text)
    return None
