import pytest

from src.bx_common.enums import ExchangeStatus
from src.bx_common.errors import InvalidTransitionError
from src.bx_exchange.domain.state_machine import ExchangeEvent, can_transition, next_status


class TestLegalTransitions:
    @pytest.mark.parametrize(
        ("current", "event", "expected"),
        [
            ("REQUESTED", ExchangeEvent.APPROVE, ExchangeStatus.COMPLETED),
            ("REQUESTED", ExchangeEvent.REJECT, ExchangeStatus.REJECTED),
            ("REQUESTED", ExchangeEvent.CANCEL, None),
            ("COMPLETED", ExchangeEvent.REPORT, ExchangeStatus.DISPUTED),
            ("DISPUTED", ExchangeEvent.RESTORE, ExchangeStatus.COMPLETED),
        ],
    )
    def test_next_status(self, current: str, event: ExchangeEvent, expected: object) -> None:
        assert can_transition(current, event)
        assert next_status(current, event) == expected


class TestIllegalTransitions:
    @pytest.mark.parametrize(
        ("current", "event"),
        [
            ("COMPLETED", ExchangeEvent.APPROVE),
            ("REJECTED", ExchangeEvent.APPROVE),
            ("REJECTED", ExchangeEvent.CANCEL),
            ("DISPUTED", ExchangeEvent.REPORT),
            ("REQUESTED", ExchangeEvent.REPORT),
            ("COMPLETED", ExchangeEvent.RESTORE),
            ("DISPUTED", ExchangeEvent.REJECT),
        ],
    )
    def test_raises_invalid_transition(self, current: str, event: ExchangeEvent) -> None:
        assert not can_transition(current, event)
        with pytest.raises(InvalidTransitionError) as exc_info:
            next_status(current, event)
        assert exc_info.value.code == 4002
        assert exc_info.value.status == current

    def test_unknown_status(self) -> None:
        assert not can_transition("APPROVED", ExchangeEvent.APPROVE)
        with pytest.raises(InvalidTransitionError):
            next_status("APPROVED", ExchangeEvent.APPROVE)

    def test_rejected_is_terminal(self) -> None:
        assert not any(can_transition("REJECTED", event) for event in ExchangeEvent)
