"""Reply text for chat commands."""

from datetime import datetime
from typing import List, Optional

from ..schemas.token_schemas import AccessTokenRead, TokenOpenRead, WhoReport

EMPTY_POOL = (
    "No credentials available right now. Please wait, an administrator will refill the pool."
)
TRY_AGAIN = "Error. Please try again later."
DATABASE_ERROR = "Database error. Please try again later."
TOKEN_NOT_FOUND = "Token not found."
START = "To get a link, send /link"
UPLOAD_USAGE = (
    "Send /upload followed by login:password lines (one per line) or attach a .txt file."
)
UPLOAD_EMPTY_FILE = "The file is empty."
LIST_EMPTY = "The list is empty."


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else "-"


def _status(record: AccessTokenRead) -> str:
    return record.status.value.upper()


def _owner(record: AccessTokenRead) -> str:
    return f"{record.owner_handle or '-'} ({record.owner_id or '-'})"


def usage(command: str, argument: str = "<token>") -> str:
    return f"Usage: /{command} {argument}"


def format_issued(link: str) -> str:
    return f"Your personal link:\n\n{link}\n\n(Open it in a browser)"


def format_stock(count: int) -> str:
    return f"Credentials in pool: {count}"


def format_uploaded(count: int) -> str:
    return f"Added to pool: {count}"


def format_upload_failed(inserted_count: int) -> str:
    return f"Upload failed. Added to pool before the failure: {inserted_count}"


def format_revoked(token: str) -> str:
    return f"Done. Link disabled: {token}"


def format_token_list(records: List[AccessTokenRead], title: str = "Recent tokens:") -> str:
    if not records:
        return LIST_EMPTY

    lines = [f"- {r.token} | {_status(r)} | {_owner(r)}" for r in records]
    return (
        title
        + "\n"
        + "\n".join(lines)
        + "\n\nRevoke: /revoke <token>\nDetails: /who <token>"
    )


def format_info(record: AccessTokenRead) -> str:
    return (
        f"token: {record.token}\n"
        f"status: {_status(record)}\n"
        f"login: {record.login or '-'}\n"
        f"owner: {_owner(record)}\n"
        f"created: {_iso(record.created_at)}\n"
        f"opens: {record.access_count}\n"
        f"\nRevoke: /revoke {record.token}"
    )


def _format_open(index: int, entry: TokenOpenRead) -> str:
    return (
        f"{index}) {_iso(entry.opened_at)}\n"
        f"   ip: {entry.ip or '-'}\n"
        f"   platform: {entry.platform or '-'}\n"
        f"   lang: {entry.language or '-'}\n"
        f"   screen: {entry.screen or '-'}\n"
        f"   tz: {entry.timezone or '-'}"
    )


def format_who(report: WhoReport) -> str:
    record = report.token
    if report.recent_opens:
        opens = "\n\n".join(
            _format_open(i, entry) for i, entry in enumerate(report.recent_opens, start=1)
        )
    else:
        opens = "No opens yet."

    return (
        "WHO\n"
        f"token: {record.token}\n"
        f"status: {_status(record)}\n"
        f"owner: {_owner(record)}\n"
        f"login: {record.login or '-'}\n"
        f"created: {_iso(record.created_at)}\n"
        f"opens: {report.open_count}\n\n"
        f"Latest opens:\n{opens}\n\n"
        f"Revoke: /revoke {record.token}"
    )
