# domain/interaction.py
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class InteractionResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    APPLICATION_COMMAND_AUTOCOMPLETE_RESULT = 8


class OptionType(IntEnum):
    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3


class InteractionOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    type: int
    value: Any = None
    focused: bool = False
    options: list["InteractionOption"] = Field(default_factory=list)

    def string_value(self) -> str:
        return "" if self.value is None else str(self.value)


class InteractionData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str = ""
    options: list[InteractionOption] = Field(default_factory=list)


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    username: str = ""


class Member(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user: User | None = None


class Interaction(BaseModel):
    """Входящее взаимодействие Discord (только нужные нам поля)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    application_id: str
    type: int
    token: str
    data: InteractionData | None = None
    guild_id: str | None = None
    member: Member | None = None
    user: User | None = None

    @property
    def command_name(self) -> str:
        return self.data.name if self.data else ""

    def sub_command(self) -> InteractionOption | None:
        """Первая подкоманда (/vm start ...)"""
        if not self.data or not self.data.options:
            return None
        return self.data.options[0]

    def target(self) -> str | None:
        """Строковый параметр подкоманды: имя или ID VM"""
        sub = self.sub_command()
        if sub is None or not sub.options:
            return None
        return sub.options[0].string_value()

    def focused_value(self) -> str:
        """Что пользователь успел набрать в поле с автодополнением"""
        sub = self.sub_command()
        if sub is None:
            return ""
        for option in sub.options:
            if option.focused:
                return option.string_value()
        return sub.options[0].string_value() if sub.options else ""

    @property
    def author(self) -> str:
        user = self.user or (self.member.user if self.member else None)
        if user is None:
            return "unknown"
        return user.username or user.id
