"""
Unit tests for gateway request and response models.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from access_pool_core.gateway import BotRequest, BotResponse


class TestBotRequest:
    @pytest.mark.parametrize(
        "command, expected",
        [
            ("/link", "link"),
            ("link", "link"),
            ("/Upload@access_bot", "upload"),
            ("  /WHO ", "who"),
        ],
    )
    def test_command_normalized(self, command, expected):
        assert BotRequest(actor_id="1", command=command).command == expected

    def test_numeric_actor_id(self):
        request = BotRequest(actor_id=42, command="/link")

        assert request.actor_id == "42"

    def test_missing_handle_becomes_empty(self):
        assert BotRequest(actor_id="1", actor_handle=None, command="/link").actor_handle == ""

    def test_blank_actor_rejected(self):
        with pytest.raises(PydanticValidationError):
            BotRequest(actor_id="  ", command="/link")


class TestBotResponse:
    def test_silent(self):
        response = BotResponse.silent()

        assert response.is_silent
        assert response.actions == []

    def test_text_is_not_silent(self):
        assert not BotResponse(text="hi").is_silent
