"""
Notificações ao tutor (e-mail).

Entrega é "best-effort": uma falha aqui é registrada no log e descartada,
nunca desfaz nem falha a mudança de status que a originou.
"""

import logging
from typing import Any, Callable, Dict, Optional, Protocol

from petcare.core.config import settings
from petcare.domain.lifecycle import NotificationKind

logger = logging.getLogger(__name__)

SUBJECTS = {
    NotificationKind.BOOKING_CONFIRMED: "Agendamento confirmado",
    NotificationKind.SERVICE_COMPLETED: "Atendimento concluído",
    NotificationKind.BOOKING_CANCELLED: "Agendamento cancelado",
}


class Notifier(Protocol):
    def notify(self, recipient_email: str, kind: NotificationKind, payload: Dict[str, Any]) -> None: ...


class LoggingNotifier:
    """Notificador padrão: só escreve no log (sem SMTP configurado)."""

    def notify(self, recipient_email: str, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        subject = f"{SUBJECTS.get(kind, kind.value)} - {settings.clinic_name}"
        logger.info("📧 %s -> %s %s", subject, recipient_email, payload)


class NotificationDispatcher:
    """
    Dispara notificações sem afetar o chamador.

    schedule: quando informado (ex.: BackgroundTasks.add_task), a entrega
    roda depois da resposta; senão roda na hora.
    """

    def __init__(self, notifier: Notifier, schedule: Optional[Callable[..., Any]] = None):
        self.notifier = notifier
        self.schedule = schedule

    def dispatch(self, recipient_email: Optional[str], kind: NotificationKind, payload: Dict[str, Any]) -> None:
        if not recipient_email:
            logger.debug("⚠️ Sem e-mail para notificação %s (%s)", kind.value, payload)
            return

        if self.schedule is not None:
            self.schedule(self._deliver, recipient_email, kind, payload)
        else:
            self._deliver(recipient_email, kind, payload)

    def _deliver(self, recipient_email: str, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        try:
            self.notifier.notify(recipient_email, kind, payload)
        except Exception as e:
            logger.error("❌ Falha ao enviar %s para %s: %s", kind.value, recipient_email, e)


def get_notifier() -> Notifier:
    return LoggingNotifier()
