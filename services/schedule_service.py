"""Представления расписания: сетка дня и неделя"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from database.models import Reservation
from services.time_slots import generate_time_slots
from utils.datetime_utils import add_days, time_to_minutes, week_start


@dataclass(frozen=True)
class SlotCell:
    """Ячейка расписания: время и бронь, которая его занимает"""

    time: str
    reservation: Optional[Reservation] = None

    @property
    def is_free(self) -> bool:
        return self.reservation is None

    @property
    def is_booking_start(self) -> bool:
        return (
            self.reservation is not None and self.reservation.start_time == self.time
        )


def visible_reservations(
    reservations: Iterable[Reservation], include_canceled: bool = False
) -> List[Reservation]:
    """Брони для календаря; отменённые по умолчанию скрыты"""
    return [item for item in reservations if include_canceled or not item.is_canceled]


def reservations_at_slot(
    reservations: Iterable[Reservation], court_id: int, date_str: str, time_str: str
) -> List[Reservation]:
    """Брони корта, покрывающие момент time_str (start <= time < end)"""
    slot_minutes = time_to_minutes(time_str)
    return [
        item
        for item in reservations
        if item.court_id == court_id
        and item.date == date_str
        and time_to_minutes(item.start_time)
        <= slot_minutes
        < time_to_minutes(item.end_time)
    ]


def day_grid(
    reservations: Iterable[Reservation],
    court_id: int,
    date_str: str,
    opening_time: str,
    closing_time: str,
) -> List[SlotCell]:
    """Сетка получасовых слотов корта на день"""
    visible = visible_reservations(reservations)
    cells = []
    for time_str in generate_time_slots(opening_time, closing_time).slots:
        found = reservations_at_slot(visible, court_id, date_str, time_str)
        cells.append(SlotCell(time=time_str, reservation=found[0] if found else None))
    return cells


def week_days(date_str: str) -> List[str]:
    """Семь дат недели (Пн-Вс), в которую попадает дата"""
    monday = week_start(date_str)
    return [add_days(monday, i) for i in range(7)]


def group_by_date(reservations: Iterable[Reservation]) -> Dict[str, List[Reservation]]:
    """Брони по датам, внутри даты по времени начала"""
    grouped: Dict[str, List[Reservation]] = {}
    for item in sorted(reservations, key=lambda r: (r.date, r.start_time)):
        grouped.setdefault(item.date, []).append(item)
    return grouped
