"""Exchange state machine — the single source of legal transitions.

    [new] --request--> REQUESTED
    REQUESTED --approve--> COMPLETED     (points + ownership move atomically)
    REQUESTED --reject---> REJECTED
    REQUESTED --cancel---> (row deleted)
    COMPLETED --report---> DISPUTED      (freeze: nothing is reversed)
    DISPUTED  --restore--> COMPLETED     (last OPEN report rejected by admin)

REJECTED is terminal. There is no persisted APPROVED state: approval lands
directly in COMPLETED inside one transaction.
"""

from enum import Enum

from src.bx_common.enums import ExchangeStatus
from src.bx_common.errors import InvalidTransitionError


class ExchangeEvent(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    REPORT = "report"
    RESTORE = "restore"


# None as a target means the exchange row is deleted.
_TRANSITIONS: dict[tuple[ExchangeStatus, ExchangeEvent], ExchangeStatus | None] = {
    (ExchangeStatus.REQUESTED, ExchangeEvent.APPROVE): ExchangeStatus.COMPLETED,
    (ExchangeStatus.REQUESTED, ExchangeEvent.REJECT): ExchangeStatus.REJECTED,
    (ExchangeStatus.REQUESTED, ExchangeEvent.CANCEL): None,
    (ExchangeStatus.COMPLETED, ExchangeEvent.REPORT): ExchangeStatus.DISPUTED,
    (ExchangeStatus.DISPUTED, ExchangeEvent.RESTORE): ExchangeStatus.COMPLETED,
}


def can_transition(current: str, event: ExchangeEvent) -> bool:
    try:
        status = ExchangeStatus(current)
    except ValueError:
        return False
    return (status, event) in _TRANSITIONS


def next_status(current: str, event: ExchangeEvent) -> ExchangeStatus | None:
    """Target status for `event` from `current`.

    Raises InvalidTransitionError if the transition is not in the table.
    """
    if not can_transition(current, event):
        raise InvalidTransitionError("exchange", current, event.value)
    return _TRANSITIONS[(ExchangeStatus(current), event)]
