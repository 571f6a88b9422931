"""Chat gateway contract and command router."""

from .command_router import COMMANDS, CommandRouter, revoke_action
from .messages import BotAction, BotRequest, BotResponse

__all__ = [
    "COMMANDS",
    "CommandRouter",
    "revoke_action",
    "BotAction",
    "BotRequest",
    "BotResponse",
]
