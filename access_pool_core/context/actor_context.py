"""
Actor context management.

Holds the identity of the chat user whose request is being handled so that
log records and audit events can be attributed without threading the actor
through every call.
"""

import threading
from contextlib import contextmanager
from typing import Generator, Optional

from ..exceptions import ErrorCode, ValidationError
from ..utils.logger import get_logger


class ActorContext:
    """
    Manages the current actor using thread-local storage.
    """

    _thread_local = threading.local()

    @classmethod
    def set_current_actor(cls, actor_id: str, actor_handle: Optional[str] = None) -> None:
        """
        Set the current actor for the execution context.

        Raises:
            ValidationError: If actor_id is empty
        """
        if not actor_id or not isinstance(actor_id, str) or not actor_id.strip():
            raise ValidationError(
                "actor_id must be a non-empty string",
                error_code=ErrorCode.MISSING_REQUIRED,
                field="actor_id",
                value=actor_id,
            )

        cls._thread_local.actor_id = actor_id.strip()
        cls._thread_local.actor_handle = actor_handle or ""
        get_logger().debug(f"Current actor set to: {actor_id}")

    @classmethod
    def get_current_actor_id(cls) -> Optional[str]:
        return getattr(cls._thread_local, "actor_id", None)

    @classmethod
    def get_current_actor_handle(cls) -> Optional[str]:
        return getattr(cls._thread_local, "actor_handle", None)

    @classmethod
    def clear_current_actor(cls) -> None:
        for attr in ("actor_id", "actor_handle"):
            if hasattr(cls._thread_local, attr):
                delattr(cls._thread_local, attr)


@contextmanager
def actor_context(
    actor_id: str, actor_handle: Optional[str] = None
) -> Generator[None, None, None]:
    """
    Bind an actor for the duration of a request, restoring the previous one.

    Usage:
        with actor_context("12345", "alice"):
            router.dispatch(request)
    """
    previous_id = ActorContext.get_current_actor_id()
    previous_handle = ActorContext.get_current_actor_handle()

    ActorContext.set_current_actor(actor_id, actor_handle)
    try:
        yield
    finally:
        if previous_id:
            ActorContext.set_current_actor(previous_id, previous_handle)
        else:
            ActorContext.clear_current_actor()
