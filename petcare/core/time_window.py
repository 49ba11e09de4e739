"""Aritmética de horários "HH:MM".

Todos os intervalos são semiabertos [início, fim): um horário que termina
às 10:30 não conflita com outro que começa às 10:30.
"""

import re
from datetime import datetime, timezone
from typing import Iterator, Optional, Tuple

from petcare.core.errors import InvalidTimeRange

_HHMM = re.compile(r"^(\d{2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Converte "HH:MM" em minutos desde a meia-noite."""
    match = _HHMM.match(value or "")
    if not match:
        raise InvalidTimeRange(f"Horário inválido: {value!r} (use HH:MM)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeRange(f"Horário fora do intervalo: {value!r}")

    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    if minutes < 0 or minutes > MINUTES_PER_DAY:
        raise InvalidTimeRange(f"Minutos fora do dia: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def ensure_ordered(start: str, end: str, what: str = "end_time") -> Tuple[int, int]:
    s, e = parse_hhmm(start), parse_hhmm(end)
    if e <= s:
        raise InvalidTimeRange(f"{what} deve ser maior que o início ({start} - {end})")
    return s, e


def overlaps(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """Retorna True se [a_start, a_end) sobrepõe [b_start, b_end)."""
    return parse_hhmm(a_start) < parse_hhmm(b_end) and parse_hhmm(a_end) > parse_hhmm(b_start)


def contains(outer_start: str, outer_end: str, start: str, end: str) -> bool:
    return parse_hhmm(start) >= parse_hhmm(outer_start) and parse_hhmm(end) <= parse_hhmm(outer_end)


def duration_minutes(
    start: str,
    end: str,
    break_start: Optional[str] = None,
    break_end: Optional[str] = None,
) -> int:
    total = parse_hhmm(end) - parse_hhmm(start)

    # tira o intervalo só quando os dois lados existem
    if break_start and break_end:
        total -= parse_hhmm(break_end) - parse_hhmm(break_start)

    return total


def iter_slots(start: str, end: str, step_minutes: int) -> Iterator[Tuple[str, str]]:
    """Fatias fixas de step_minutes que cabem inteiras em [start, end)."""
    if step_minutes <= 0:
        raise InvalidTimeRange(f"Tamanho de slot inválido: {step_minutes}")

    current, limit = ensure_ordered(start, end)
    while current + step_minutes <= limit:
        yield format_hhmm(current), format_hhmm(current + step_minutes)
        current += step_minutes


def utcnow() -> datetime:
    """Agora em UTC, com fuso (o banco recusa datetime sem tzinfo)."""
    return datetime.now(timezone.utc)
