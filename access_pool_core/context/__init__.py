"""Request-scoped context: acting user and operation tracking."""

from .actor_context import ActorContext, actor_context
from .operation_context import OperationContext, OperationHandler, operation

__all__ = [
    "ActorContext",
    "actor_context",
    "OperationContext",
    "OperationHandler",
    "operation",
]
