"""Testes da máquina de estados do agendamento."""

import pytest

from petcare.core.errors import InvalidStatusTransition
from petcare.domain.lifecycle import (
    AppointmentStatus,
    LifecycleEvent,
    NotificationKind,
    allowed_events,
    decide,
    is_terminal,
)

S = AppointmentStatus
E = LifecycleEvent

LEGAL = {
    (S.PENDING, E.CONFIRM): S.CONFIRMED,
    (S.CONFIRMED, E.START): S.IN_PROGRESS,
    (S.IN_PROGRESS, E.COMPLETE): S.COMPLETED,
    (S.PENDING, E.CANCEL): S.CANCELLED,
    (S.CONFIRMED, E.CANCEL): S.CANCELLED,
    (S.IN_PROGRESS, E.CANCEL): S.CANCELLED,
}

ALL_PAIRS = [(s, e) for s in S for e in E]


class TestTransitionTable:
    @pytest.mark.parametrize("state,event", sorted(LEGAL, key=str))
    def test_legal_pairs(self, state, event):
        assert decide(state, event).target == LEGAL[(state, event)]

    @pytest.mark.parametrize("state,event", [p for p in ALL_PAIRS if p not in LEGAL])
    def test_every_other_pair_is_rejected(self, state, event):
        with pytest.raises(InvalidStatusTransition) as exc:
            decide(state, event)
        assert exc.value.current == state.value

    def test_error_names_attempted_target(self):
        with pytest.raises(InvalidStatusTransition) as exc:
            decide(S.COMPLETED, E.CANCEL)
        assert exc.value.current == "COMPLETED"
        assert exc.value.attempted == "CANCELLED"

    def test_accepts_raw_strings(self):
        assert decide("PENDING", "confirm").target == S.CONFIRMED


class TestEffects:
    def test_confirm_notifies(self):
        assert decide(S.PENDING, E.CONFIRM).effects == [NotificationKind.BOOKING_CONFIRMED]

    def test_start_has_no_effect(self):
        assert decide(S.CONFIRMED, E.START).effects == []

    def test_complete_notifies(self):
        assert decide(S.IN_PROGRESS, E.COMPLETE).effects == [NotificationKind.SERVICE_COMPLETED]

    @pytest.mark.parametrize("state", [S.PENDING, S.CONFIRMED, S.IN_PROGRESS])
    def test_cancel_notifies(self, state):
        assert decide(state, E.CANCEL).effects == [NotificationKind.BOOKING_CANCELLED]


class TestTerminal:
    def test_terminal_states(self):
        assert is_terminal(S.COMPLETED)
        assert is_terminal(S.CANCELLED)
        assert not is_terminal(S.PENDING)

    def test_terminal_states_have_no_events(self):
        assert allowed_events(S.COMPLETED) == []
        assert allowed_events(S.CANCELLED) == []

    def test_pending_events(self):
        assert set(allowed_events(S.PENDING)) == {E.CONFIRM, E.CANCEL}
