"""
Chat command dispatch.

CommandRouter is the request boundary of the service: it binds the actor for
logging, calls the services and turns every error into a single reply. Nothing
raised below it reaches the gateway. Administrator commands sent by anyone
else get no reply at all.
"""

from typing import Callable, Dict, List, Tuple

from ..context.actor_context import actor_context
from ..exceptions import (
    BaseError,
    MalformedInputError,
    NoEntriesAvailableError,
    PermissionDeniedError,
    PoolUploadError,
    StorageTransientError,
    TokenNotFoundError,
    clear_correlation_id,
)
from ..schemas.token_schemas import AccessTokenRead
from ..services.admin_service import AdminService
from ..services.issuance_service import IssuanceService
from ..utils.credential_utils import first_argument, strip_command
from ..utils.logger import get_logger
from . import formatters
from .messages import BotAction, BotRequest, BotResponse

# Command menu for the gateway, in display order
COMMANDS: List[Tuple[str, str]] = [
    ("start", "Get a link (if credentials are available)"),
    ("link", "Get a link (if credentials are available)"),
    ("stock", "Admin: how many credentials are in the pool"),
    ("upload", "Admin: load login:password lines"),
    ("list", "Admin: latest tokens"),
    ("info", "Admin: token details"),
    ("revoke", "Admin: disable a token"),
    ("who", "Admin: token owner and opens"),
    ("search", "Admin: tokens by owner id or handle"),
]


def revoke_action(token: str) -> BotAction:
    return BotAction(name="revoke", label=f"Revoke {token}", payload=token)


class CommandRouter:
    """Maps chat commands to service calls and formats the replies."""

    def __init__(self, issuance: IssuanceService, admin: AdminService):
        self.issuance = issuance
        self.admin = admin
        self.logger = get_logger()
        self._handlers: Dict[str, Callable[[BotRequest], BotResponse]] = {
            "start": self._start,
            "link": self._link,
            "stock": self._stock,
            "upload": self._upload,
            "list": self._list,
            "info": self._info,
            "revoke": self._revoke,
            "who": self._who,
            "search": self._search,
        }

    def handle(self, request: BotRequest) -> BotResponse:
        """
        Run one command and build the reply.

        Unknown commands and administrator commands from non-administrators
        produce a silent response.
        """
        handler = self._handlers.get(request.command)
        if handler is None:
            self.logger.debug("Ignoring unknown command", extra={"command": request.command})
            return BotResponse.silent()

        try:
            with actor_context(request.actor_id, request.actor_handle):
                return handler(request)
        except PermissionDeniedError:
            return BotResponse.silent()
        except NoEntriesAvailableError:
            return BotResponse(text=formatters.EMPTY_POOL)
        except TokenNotFoundError:
            return BotResponse(text=formatters.TOKEN_NOT_FOUND)
        except MalformedInputError as e:
            if e.context.get("source") == "file":
                return BotResponse(text=formatters.UPLOAD_EMPTY_FILE)
            return BotResponse(text=formatters.UPLOAD_USAGE)
        except PoolUploadError as e:
            return BotResponse(text=formatters.format_upload_failed(e.inserted_count))
        except StorageTransientError:
            return BotResponse(text=formatters.DATABASE_ERROR)
        except BaseError:
            # Already logged on construction
            return BotResponse(text=formatters.TRY_AGAIN)
        except Exception as e:
            self.logger.exception(
                f"Unhandled error in /{request.command}: {str(e)}",
                extra={"command": request.command, "actor_id": request.actor_id},
            )
            return BotResponse(text=formatters.TRY_AGAIN)
        finally:
            clear_correlation_id()

    def _require_token_argument(self, request: BotRequest) -> str:
        # Non-admins must not learn the usage text either
        self.admin.require_admin(request.command, request.actor_id)
        return first_argument(request.raw_text)

    def _revoke_actions(self, records: List[AccessTokenRead]) -> List[BotAction]:
        return [revoke_action(r.token) for r in records if r.is_active]

    def _start(self, request: BotRequest) -> BotResponse:
        return BotResponse(text=formatters.START)

    def _link(self, request: BotRequest) -> BotResponse:
        issued = self.issuance.issue(request.actor_id, request.actor_handle)
        return BotResponse(text=formatters.format_issued(issued.link))

    def _stock(self, request: BotRequest) -> BotResponse:
        return BotResponse(text=formatters.format_stock(self.admin.stock(request.actor_id)))

    def _upload(self, request: BotRequest) -> BotResponse:
        if request.attached_file is not None:
            inserted = self.admin.upload(
                request.actor_id, request.actor_handle, file_content=request.attached_file
            )
        else:
            inserted = self.admin.upload(
                request.actor_id,
                request.actor_handle,
                text=strip_command(request.raw_text, "upload"),
            )
        return BotResponse(text=formatters.format_uploaded(inserted))

    def _list(self, request: BotRequest) -> BotResponse:
        records = self.admin.list_tokens(request.actor_id)
        return BotResponse(
            text=formatters.format_token_list(records), actions=self._revoke_actions(records)
        )

    def _info(self, request: BotRequest) -> BotResponse:
        token = self._require_token_argument(request)
        if not token:
            return BotResponse(text=formatters.usage("info"))

        record = self.admin.info(token, request.actor_id)
        return BotResponse(
            text=formatters.format_info(record), actions=self._revoke_actions([record])
        )

    def _revoke(self, request: BotRequest) -> BotResponse:
        token = self._require_token_argument(request)
        if not token:
            return BotResponse(text=formatters.usage("revoke"))

        record = self.admin.revoke(token, request.actor_id, request.actor_handle)
        return BotResponse(text=formatters.format_revoked(record.token))

    def _who(self, request: BotRequest) -> BotResponse:
        token = self._require_token_argument(request)
        if not token:
            return BotResponse(text=formatters.usage("who"))

        report = self.admin.who(token, request.actor_id)
        return BotResponse(
            text=formatters.format_who(report), actions=self._revoke_actions([report.token])
        )

    def _search(self, request: BotRequest) -> BotResponse:
        self.admin.require_admin("search", request.actor_id)
        query = strip_command(request.raw_text, "search").strip()
        if not query:
            return BotResponse(text=formatters.usage("search", "<id or @handle>"))

        records = self.admin.search(request.actor_id, query)
        return BotResponse(
            text=formatters.format_token_list(records, title=f"Tokens for {query}:"),
            actions=self._revoke_actions(records),
        )
