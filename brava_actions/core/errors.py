from __future__ import annotations

from brava_actions.core.constants.actions import ActionType


class ActionError(RuntimeError):
    """Base class for every failure that aborts an ``execute_action`` call.

    ``protocol_name`` and ``action_type`` identify where the failure surfaced.
    Errors raised by collaborators (protocol contracts, the host) usually do not
    know them; ``ActionBase`` attaches them before the error leaves the action.
    """

    def __init__(
        self,
        reason: str,
        *,
        protocol_name: str | None = None,
        action_type: ActionType | None = None,
    ):
        self.reason = reason
        self.protocol_name = protocol_name
        self.action_type = action_type
        super().__init__(reason)

    def attach_context(self, protocol_name: str, action_type: ActionType) -> None:
        if self.protocol_name is None:
            self.protocol_name = protocol_name
        if self.action_type is None:
            self.action_type = action_type

    def __str__(self) -> str:
        prefix = " ".join(
            part
            for part in (
                self.protocol_name,
                self.action_type.name if self.action_type is not None else None,
            )
            if part
        )
        return f"{prefix}: {self.reason}" if prefix else self.reason


class ZeroAmountError(ActionError):
    pass


class InvalidPoolError(ActionError):
    pass


class FeeTimestampNotInitializedError(ActionError):
    pass


class SlippageExceededError(ActionError):
    def __init__(self, received: int, minimum: int, **kwargs):
        self.received = received
        self.minimum = minimum
        super().__init__(f"received {received} below minimum {minimum}", **kwargs)


class BoundExceededError(ActionError):
    def __init__(self, reason: str, *, actual: int, bound: int, **kwargs):
        self.actual = actual
        self.bound = bound
        super().__init__(reason, **kwargs)


class ExternalCallError(ActionError):
    pass


class InvalidInputError(ActionError):
    pass


class InvalidFeeBasisError(InvalidInputError):
    def __init__(self, fee_basis: int, **kwargs):
        self.fee_basis = fee_basis
        super().__init__(f"fee basis {fee_basis} not allowed", **kwargs)
