"""
Unit tests for credential parsing and upload normalisation.
"""

import re

import pytest

from access_pool_core.exceptions import CorruptPoolEntryError
from access_pool_core.utils.credential_utils import (
    chunked,
    decode_upload,
    first_argument,
    normalize_lines,
    parse_credential,
    placeholder_login,
    strip_command,
)

PLACEHOLDER = re.compile(r"^user_\d+$")


class TestParseCredential:
    """Test parse_credential boundary cases."""

    def test_login_and_secret(self):
        parsed = parse_credential("alice:s3cret")

        assert parsed.login == "alice"
        assert parsed.secret == "s3cret"
        assert parsed.synthesized_login is False

    def test_first_separator_wins(self):
        """Secrets may contain the separator."""
        parsed = parse_credential("login:sec:ret")

        assert parsed.login == "login"
        assert parsed.secret == "sec:ret"

    def test_bare_secret_gets_placeholder_login(self):
        """A payload without a separator is treated as a secret only."""
        parsed = parse_credential("onlysecret")

        assert parsed.secret == "onlysecret"
        assert PLACEHOLDER.match(parsed.login)
        assert parsed.synthesized_login is True

    def test_empty_login_gets_placeholder(self):
        parsed = parse_credential(":secret")

        assert parsed.secret == "secret"
        assert PLACEHOLDER.match(parsed.login)

    def test_surrounding_whitespace_ignored(self):
        parsed = parse_credential("  bob:pw  ")

        assert parsed.login == "bob"
        assert parsed.secret == "pw"

    def test_empty_secret_is_corrupt(self):
        with pytest.raises(CorruptPoolEntryError) as exc_info:
            parse_credential("login:", entry_id=7)

        assert exc_info.value.context["entry_id"] == 7

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_payload_is_corrupt(self, value):
        with pytest.raises(CorruptPoolEntryError):
            parse_credential(value)


class TestPlaceholderLogin:
    def test_uses_given_timestamp(self):
        assert placeholder_login(1700000000123) == "user_1700000000123"


class TestNormalizeLines:
    """Test upload text normalisation."""

    def test_splits_on_lf_and_crlf(self):
        assert normalize_lines("a:1\r\nb:2\nc:3") == ["a:1", "b:2", "c:3"]

    def test_strips_and_drops_blank_lines(self):
        assert normalize_lines("\n  a:1  \n\n   \nb:2\n") == ["a:1", "b:2"]

    def test_bytes_with_byte_order_mark(self):
        assert normalize_lines(b"\xef\xbb\xbfa:1\r\nb:2\r\n") == ["a:1", "b:2"]

    @pytest.mark.parametrize("content", [None, "", b"", "\n\n  \r\n"])
    def test_nothing_usable(self, content):
        assert normalize_lines(content) == []


class TestDecodeUpload:
    def test_str_byte_order_mark_removed(self):
        assert decode_upload("\ufeffa:1") == "a:1"

    def test_utf8_bytes(self):
        assert decode_upload("пароль:1".encode("utf-8")) == "пароль:1"


class TestChunked:
    def test_batches(self):
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert list(chunked([], 3)) == []

    def test_size_must_be_positive(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestCommandText:
    """Test command argument helpers."""

    def test_strip_command(self):
        assert strip_command("/upload a:1\nb:2", "upload") == "a:1\nb:2"

    def test_strip_command_with_bot_name(self):
        assert strip_command("/upload@pool_bot\na:1", "upload") == "a:1"

    def test_strip_command_case_insensitive(self):
        assert strip_command("/UPLOAD a:1", "upload") == "a:1"

    def test_first_argument(self):
        assert first_argument("/revoke  Ab3dE6gH9k extra") == "Ab3dE6gH9k"

    def test_first_argument_missing(self):
        assert first_argument("/revoke") == ""
