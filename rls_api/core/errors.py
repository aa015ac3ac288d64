from __future__ import annotations


class OperationFailedError(Exception):
    """
    Single failure outcome of a scoped data operation.

    Raised for any failure inside the caller's transaction: binding failure,
    policy rejection, constraint violation or lost connection. The cause stays
    chained for logging and is never shown to the client.
    """

    message = "Operation failed"

    def __init__(self, user_id: int | None = None) -> None:
        super().__init__(self.message)
        self.user_id = user_id
