"""Erros de agendamento.

Todos são resultados de validação determinísticos: o serviço levanta,
o handler em main.py converte para HTTP. Nada aqui é re-tentado.
"""

from typing import Any, Dict, Optional


class SchedulingError(Exception):
    status_code = 400
    kind = "scheduling_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.detail}


class NotFound(SchedulingError):
    status_code = 404
    kind = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} com id {entity_id} não encontrado")
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["entity"] = self.entity
        return data


class InvalidTimeRange(SchedulingError):
    kind = "invalid_time_range"


class ScheduleConflict(SchedulingError):
    status_code = 409
    kind = "schedule_conflict"

    def __init__(self, start_time: str, end_time: str, appointment_id: Optional[int] = None):
        super().__init__(f"Funcionário já tem agendamento entre {start_time} e {end_time}")
        self.start_time = start_time
        self.end_time = end_time
        self.appointment_id = appointment_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["conflict"] = {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "appointment_id": self.appointment_id,
        }
        return data


class NoServicesSpecified(SchedulingError):
    kind = "no_services_specified"

    def __init__(self):
        super().__init__("Informe pelo menos um serviço no agendamento")


class InvalidStatusTransition(SchedulingError):
    status_code = 409
    kind = "invalid_status_transition"

    def __init__(self, current: str, attempted: str):
        super().__init__(f"Transição inválida: {current} -> {attempted}")
        self.current = current
        self.attempted = attempted

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current
        data["attempted_status"] = self.attempted
        return data


class InvalidOperationForStatus(SchedulingError):
    status_code = 409
    kind = "invalid_operation_for_status"


class ScheduleAlreadyExists(SchedulingError):
    status_code = 409
    kind = "schedule_already_exists"


class StaffUnavailable(SchedulingError):
    """Fora da escala, no intervalo, escala bloqueada ou clínica fechada."""

    status_code = 409
    kind = "staff_unavailable"

    def __init__(self, detail: str, reason: str):
        super().__init__(detail)
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        return data
