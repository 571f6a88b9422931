"""
Credential payload parsing and upload normalisation.

Pool entries are stored verbatim; splitting into login and secret happens at
issuance time so that a bad line is detected when it is claimed and stays
visible as a claimed audit row.
"""

import re
import time
from typing import Iterator, List, Optional, Sequence, TypeVar, Union

from ..constants import CREDENTIAL_SEPARATOR, PLACEHOLDER_LOGIN_PREFIX
from ..exceptions import CorruptPoolEntryError
from ..schemas.pool_schemas import ParsedCredential

T = TypeVar("T")

_LINE_BREAK = re.compile(r"\r?\n")


def placeholder_login(now_ms: Optional[int] = None) -> str:
    """Login synthesized for payloads that carry only a secret."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{PLACEHOLDER_LOGIN_PREFIX}{now_ms}"


def parse_credential(value: str, entry_id: Optional[int] = None) -> ParsedCredential:
    """
    Split a pool payload into login and secret.

    The first separator wins, so ``login:sec:ret`` yields the secret
    ``sec:ret``. A payload without a separator is treated as a bare secret
    and gets a placeholder login.

    Raises:
        CorruptPoolEntryError: If the payload is blank or the secret is empty
    """
    text = (value or "").strip()
    if not text:
        raise CorruptPoolEntryError("Pool entry is empty", entry_id=entry_id)

    if CREDENTIAL_SEPARATOR not in text:
        return ParsedCredential(login=placeholder_login(), secret=text, synthesized_login=True)

    login, secret = text.split(CREDENTIAL_SEPARATOR, 1)
    if not secret:
        raise CorruptPoolEntryError(
            "Pool entry has an empty secret", entry_id=entry_id, login=login
        )
    if not login:
        return ParsedCredential(login=placeholder_login(), secret=secret, synthesized_login=True)

    return ParsedCredential(login=login, secret=secret)


def decode_upload(content: Union[str, bytes]) -> str:
    """Decode uploaded file content, tolerating a UTF-8 byte order mark."""
    if isinstance(content, bytes):
        return content.decode("utf-8-sig", errors="replace")
    return content.lstrip("\ufeff")


def normalize_lines(text: Optional[Union[str, bytes]]) -> List[str]:
    """
    Split uploaded text into pool lines.

    Lines are split on ``\\n`` or ``\\r\\n``, stripped, and blank lines dropped.
    """
    if not text:
        return []
    decoded = decode_upload(text)
    return [line.strip() for line in _LINE_BREAK.split(decoded) if line.strip()]


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive batches of at most ``size`` items."""
    if size < 1:
        raise ValueError("Batch size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def strip_command(raw_text: str, command: str) -> str:
    """
    Remove a leading ``/command`` (optionally ``/command@botname``) from text.
    """
    pattern = re.compile(rf"^/{re.escape(command)}(@\w+)?\s*", re.IGNORECASE)
    return pattern.sub("", raw_text or "", count=1)


def first_argument(raw_text: str) -> str:
    """Return the first whitespace separated argument after the command."""
    parts = (raw_text or "").split()
    return parts[1] if len(parts) > 1 else ""

