"""
Máquina de estados da consulta.

    PENDING -> CONFIRMED -> IN_PROGRESS -> COMPLETED
    (qualquer um dos três primeiros) -> CANCELLED

COMPLETED e CANCELLED são terminais. decide() é pura: devolve o estado de
destino e as notificações a disparar, sem tocar em banco ou e-mail.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from petcare.core.errors import InvalidStatusTransition


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class LifecycleEvent(str, Enum):
    CONFIRM = "confirm"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


class NotificationKind(str, Enum):
    BOOKING_CONFIRMED = "booking_confirmed"
    SERVICE_COMPLETED = "service_completed"
    BOOKING_CANCELLED = "booking_cancelled"


TERMINAL_STATES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})

# status que ainda ocupam a agenda do funcionário
ACTIVE_STATES = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS}
)

EVENT_TARGET = {
    LifecycleEvent.CONFIRM: AppointmentStatus.CONFIRMED,
    LifecycleEvent.START: AppointmentStatus.IN_PROGRESS,
    LifecycleEvent.COMPLETE: AppointmentStatus.COMPLETED,
    LifecycleEvent.CANCEL: AppointmentStatus.CANCELLED,
}


@dataclass(frozen=True)
class Transition:
    from_state: AppointmentStatus
    event: LifecycleEvent
    to_state: AppointmentStatus
    effect: Optional[NotificationKind] = None


TRANSITIONS: List[Transition] = [
    Transition(AppointmentStatus.PENDING, LifecycleEvent.CONFIRM,
               AppointmentStatus.CONFIRMED, NotificationKind.BOOKING_CONFIRMED),
    Transition(AppointmentStatus.CONFIRMED, LifecycleEvent.START,
               AppointmentStatus.IN_PROGRESS),
    Transition(AppointmentStatus.IN_PROGRESS, LifecycleEvent.COMPLETE,
               AppointmentStatus.COMPLETED, NotificationKind.SERVICE_COMPLETED),

    # cancelamento vale de qualquer estado não terminal
    Transition(AppointmentStatus.PENDING, LifecycleEvent.CANCEL,
               AppointmentStatus.CANCELLED, NotificationKind.BOOKING_CANCELLED),
    Transition(AppointmentStatus.CONFIRMED, LifecycleEvent.CANCEL,
               AppointmentStatus.CANCELLED, NotificationKind.BOOKING_CANCELLED),
    Transition(AppointmentStatus.IN_PROGRESS, LifecycleEvent.CANCEL,
               AppointmentStatus.CANCELLED, NotificationKind.BOOKING_CANCELLED),
]


@dataclass(frozen=True)
class Decision:
    source: AppointmentStatus
    target: AppointmentStatus
    effects: List[NotificationKind] = field(default_factory=list)


def decide(current: AppointmentStatus, event: LifecycleEvent) -> Decision:
    """
    Decide a transição para (estado atual, evento).

    Raises:
        InvalidStatusTransition: se o par não está na tabela.
    """
    current = AppointmentStatus(current)
    event = LifecycleEvent(event)

    for t in TRANSITIONS:
        if t.from_state == current and t.event == event:
            effects = [t.effect] if t.effect is not None else []
            return Decision(source=current, target=t.to_state, effects=effects)

    raise InvalidStatusTransition(current.value, EVENT_TARGET[event].value)


def allowed_events(status: AppointmentStatus) -> List[LifecycleEvent]:
    status = AppointmentStatus(status)
    return [t.event for t in TRANSITIONS if t.from_state == status]


def is_terminal(status: AppointmentStatus) -> bool:
    return AppointmentStatus(status) in TERMINAL_STATES
