"""Escala de trabalho de um funcionário em um dia.

Registro imutável: toda alteração devolve uma nova Schedule, já validada.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Optional

from petcare.core.errors import InvalidTimeRange
from petcare.core.time_window import (
    contains,
    duration_minutes,
    ensure_ordered,
    overlaps,
    parse_hhmm,
)


def _validate(
    start_time: str,
    end_time: str,
    break_start: Optional[str],
    break_end: Optional[str],
) -> None:
    ensure_ordered(start_time, end_time)

    if (break_start is None) != (break_end is None):
        raise InvalidTimeRange("break_start e break_end devem ser informados juntos")

    if break_start is not None and break_end is not None:
        ensure_ordered(break_start, break_end, what="break_end")
        if not contains(start_time, end_time, break_start, break_end):
            raise InvalidTimeRange(
                f"Intervalo {break_start}-{break_end} fora do expediente {start_time}-{end_time}"
            )


@dataclass(frozen=True)
class Schedule:
    staff_id: int
    work_date: date
    start_time: str
    end_time: str
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    is_available: bool = True
    notes: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self):
        _validate(self.start_time, self.end_time, self.break_start, self.break_end)

    @classmethod
    def create(
        cls,
        staff_id: int,
        work_date: date,
        start_time: str,
        end_time: str,
        break_start: Optional[str] = None,
        break_end: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> "Schedule":
        return cls(
            staff_id=staff_id,
            work_date=work_date,
            start_time=start_time,
            end_time=end_time,
            break_start=break_start,
            break_end=break_end,
            is_available=True,
            notes=notes,
        )

    @classmethod
    def from_row(cls, row: Any) -> "Schedule":
        return cls(
            id=row.id,
            staff_id=row.staff_id,
            work_date=row.work_date,
            start_time=row.start_time,
            end_time=row.end_time,
            break_start=row.break_start,
            break_end=row.break_end,
            is_available=row.is_available,
            notes=row.notes,
        )

    def to_fields(self) -> Dict[str, Any]:
        return {
            "staff_id": self.staff_id,
            "work_date": self.work_date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "break_start": self.break_start,
            "break_end": self.break_end,
            "is_available": self.is_available,
            "notes": self.notes,
        }

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None

    # =========================
    # DISPONIBILIDADE
    # =========================

    def check_availability(self, when: datetime) -> bool:
        """Verifica um instante: dia certo, dentro do expediente, fora do intervalo."""
        if not self.is_available:
            return False

        if when.date() != self.work_date:
            return False

        minute = when.hour * 60 + when.minute
        if minute < parse_hhmm(self.start_time) or minute >= parse_hhmm(self.end_time):
            return False

        if self.has_break:
            if parse_hhmm(self.break_start) <= minute < parse_hhmm(self.break_end):
                return False

        return True

    def fits_within_schedule(self, window_start: str, window_end: str) -> bool:
        # não olha o intervalo; quem chama decide
        if not self.is_available:
            return False
        return contains(self.start_time, self.end_time, window_start, window_end)

    def has_conflict_with(self, range_start: str, range_end: str) -> bool:
        return overlaps(self.start_time, self.end_time, range_start, range_end)

    def overlaps_break(self, window_start: str, window_end: str) -> bool:
        if not self.has_break:
            return False
        return overlaps(window_start, window_end, self.break_start, self.break_end)

    def working_hours(self) -> float:
        return duration_minutes(self.start_time, self.end_time, self.break_start, self.break_end) / 60

    # =========================
    # TRANSIÇÕES
    # =========================

    def with_times(self, start_time: str, end_time: str) -> "Schedule":
        return replace(self, start_time=start_time, end_time=end_time)

    def with_break(self, break_start: str, break_end: str) -> "Schedule":
        return replace(self, break_start=break_start, break_end=break_end)

    def without_break(self) -> "Schedule":
        return replace(self, break_start=None, break_end=None)

    def mark_available(self) -> "Schedule":
        return replace(self, is_available=True)

    def mark_unavailable(self, reason: Optional[str] = None) -> "Schedule":
        if reason:
            return replace(self, is_available=False, notes=reason)
        return replace(self, is_available=False)

    def with_notes(self, notes: Optional[str]) -> "Schedule":
        return replace(self, notes=notes)
