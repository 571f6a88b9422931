"""
Transport-agnostic request and response models for the chat gateway.

A gateway translates an incoming chat message into a BotRequest, hands it to
the CommandRouter and renders the BotResponse. A response without text means
nothing should be sent back.
"""

import re
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

_COMMAND = re.compile(r"^/?([A-Za-z0-9_]+)(@\w+)?$")


class BotRequest(BaseModel):
    """One command sent by a chat user."""

    model_config = ConfigDict(str_strip_whitespace=True)

    actor_id: str = Field(..., min_length=1)
    actor_handle: str = Field(default="")
    command: str = Field(..., description="Command name, with or without the leading slash")
    raw_text: str = Field(default="", description="Full message text including the command")
    attached_file: Optional[Union[bytes, str]] = Field(
        default=None, description="Content of an attached document"
    )
    attached_file_name: Optional[str] = None

    @field_validator("actor_id", mode="before")
    def coerce_actor_id(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("actor_handle", mode="before")
    def coerce_actor_handle(cls, v):
        return v or ""

    @field_validator("command")
    def normalize_command(cls, v: str) -> str:
        """``/Upload@my_bot`` becomes ``upload``."""
        match = _COMMAND.match(v)
        if not match:
            return v.lstrip("/").lower()
        return match.group(1).lower()


class BotAction(BaseModel):
    """Follow-up the gateway may offer, such as an inline button."""

    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    payload: str


class BotResponse(BaseModel):
    """Reply to render; ``text=None`` means stay silent."""

    text: Optional[str] = None
    actions: List[BotAction] = Field(default_factory=list)

    @classmethod
    def silent(cls) -> "BotResponse":
        return cls()

    @property
    def is_silent(self) -> bool:
        return self.text is None
