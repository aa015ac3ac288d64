from __future__ import annotations

import enum
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from rls_api.core.errors import OperationFailedError
from rls_api.db.session import user_transaction
from .base import BaseService

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[AsyncSession], Awaitable[T]]


class ScopeState(str, enum.Enum):
    """Lifecycle of one scoped request."""

    START = "start"
    BINDING_SET = "binding_set"
    OPERATION_EXECUTING = "operation_executing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class ScopedRequestHandler(BaseService):
    """
    Run exactly one data operation under a transaction-scoped caller identity.

    The handler opens a transaction, binds `app.current_user_id` locally,
    runs the operation and ends the transaction. Row visibility is left to the
    RLS policies; nothing here filters by owner.

    Any failure rolls the transaction back (the binding goes with it) and is
    reported as OperationFailedError, with the cause chained.

    Usage:
        handler = ScopedRequestHandler(session, user_id)
        todos = await handler.execute(lambda s: TodoRepository(s).list_todos())
    """

    def __init__(self, session: AsyncSession, user_id: int) -> None:
        super().__init__(session)
        self.user_id = user_id
        self.state = ScopeState.START
        self.transitions: list[ScopeState] = [ScopeState.START]

    def _transition(self, state: ScopeState) -> None:
        self.state = state
        self.transitions.append(state)

    async def execute(self, operation: Operation[T]) -> T:
        """Run `operation(session)` inside the scoped transaction and return its result."""
        if self.state is not ScopeState.START:
            raise RuntimeError(
                f"ScopedRequestHandler runs a single operation; state is {self.state.value}"
            )

        try:
            async with user_transaction(self.session, self.user_id):
                self._transition(ScopeState.BINDING_SET)
                self._transition(ScopeState.OPERATION_EXECUTING)
                result = await operation(self.session)
        except Exception as exc:
            self._transition(ScopeState.ROLLED_BACK)
            logger.warning(
                "Scoped operation rolled back for user %s: %s",
                self.user_id,
                exc.__class__.__name__,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise OperationFailedError(self.user_id) from exc
        except BaseException:
            # Cancellation: session.begin() has already rolled back.
            self._transition(ScopeState.ROLLED_BACK)
            raise

        self._transition(ScopeState.COMMITTED)
        logger.debug("Scoped operation committed for user %s", self.user_id)
        return result
