"""Проверка пересечения брони с существующими

Один и тот же предикат используется и для разовой брони,
и для каждого занятия серии.
"""

from typing import Iterable, List, Optional

from database.models import BookingStatus, Reservation
from utils.datetime_utils import time_to_minutes


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Пересечение полуоткрытых интервалов [start, end)

    Касание (end_a == start_b) пересечением не считается.
    """
    return start_a < end_b and end_a > start_b


def find_conflicts(
    candidate,
    existing: Iterable[Reservation],
    exclude_id: Optional[int] = None,
) -> List[Reservation]:
    """Все неотменённые брони того же корта и даты, пересекающиеся с кандидатом

    Args:
        candidate: объект с court_id, date, start_time, end_time
        existing: снимок существующих броней (не изменяется)
        exclude_id: id брони, которую не учитывать (при редактировании)
    """
    start = time_to_minutes(candidate.start_time)
    end = time_to_minutes(candidate.end_time)

    conflicts = []
    for booking in existing:
        if booking.status == BookingStatus.CANCELED:
            continue
        if booking.court_id != candidate.court_id or booking.date != candidate.date:
            continue
        if exclude_id is not None and booking.id == exclude_id:
            continue
        if intervals_overlap(
            start,
            end,
            time_to_minutes(booking.start_time),
            time_to_minutes(booking.end_time),
        ):
            conflicts.append(booking)
    return conflicts


def has_conflict(
    candidate,
    existing: Iterable[Reservation],
    exclude_id: Optional[int] = None,
) -> bool:
    """Занят ли слот кандидата"""
    return bool(find_conflicts(candidate, existing, exclude_id=exclude_id))
