"""
Token generation and link composition.

Tokens are drawn uniformly from a 62 character alphabet with the `secrets`
module. At the default length of 10 the space is 62**10 (about 8.4e17), so
issuance does not look tokens up before using them; the ledger's primary key
is the backstop.
"""

import secrets
from urllib.parse import quote

from ..constants import TOKEN_ALPHABET, Limits
from ..exceptions import ErrorCode, ValidationError


def generate_token(length: int = Limits.DEFAULT_TOKEN_LENGTH) -> str:
    """
    Generate a URL-safe alphanumeric token.

    Args:
        length: Number of characters (at least Limits.MIN_TOKEN_LENGTH)

    Returns:
        Random token string

    Raises:
        ValidationError: If length is below the minimum
    """
    if length < Limits.MIN_TOKEN_LENGTH:
        raise ValidationError(
            f"Token length must be at least {Limits.MIN_TOKEN_LENGTH}",
            field="length",
            error_code=ErrorCode.INVALID_FORMAT,
            value=length,
        )
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def build_link(site_base: str, token: str) -> str:
    """
    Compose the public link for a token.

    The canonical form is ``{site_base}/?t={token}``; the redemption site reads
    the ``t`` query parameter.
    """
    if not site_base:
        raise ValidationError(
            "site_base is not configured",
            field="site_base",
            error_code=ErrorCode.CONFIGURATION_ERROR,
        )
    return f"{site_base.rstrip('/')}/?t={quote(token, safe='')}"
