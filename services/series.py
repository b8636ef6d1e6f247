"""Принадлежность брони к серии

Новые занятия серии получают явный series_id. Для броней без него
(созданных до появления series_id) серия определяется по корту
и времени начала/окончания.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from database.models import Reservation


class SeriesKey(ABC):
    """Стратегия группировки занятий в серию"""

    @abstractmethod
    def same_series(self, a: Reservation, b: Reservation) -> bool:
        pass


class StructuralSeriesKey(SeriesKey):
    """Серия = тот же корт, то же время начала и окончания"""

    def same_series(self, a: Reservation, b: Reservation) -> bool:
        return (
            a.court_id == b.court_id
            and a.start_time == b.start_time
            and a.end_time == b.end_time
        )


class SeriesIdKey(SeriesKey):
    """Серия = общий series_id

    Если series_id есть только у одной из броней, это разные серии.
    Структурный ключ - только когда series_id нет у обеих.
    """

    def __init__(self, fallback: Optional[SeriesKey] = None):
        self.fallback = fallback or StructuralSeriesKey()

    def same_series(self, a: Reservation, b: Reservation) -> bool:
        if a.series_id or b.series_id:
            return a.series_id == b.series_id
        return self.fallback.same_series(a, b)


DEFAULT_SERIES_KEY = SeriesIdKey()


def series_members(
    reservation: Reservation,
    reservations: Iterable[Reservation],
    key: SeriesKey = DEFAULT_SERIES_KEY,
    include_canceled: bool = False,
) -> List[Reservation]:
    """Все занятия серии (включая саму бронь), по возрастанию даты"""
    members = [
        item
        for item in reservations
        if key.same_series(reservation, item)
        and (include_canceled or not item.is_canceled)
    ]
    return sorted(members, key=lambda item: (item.date, item.id))


def members_from_date(
    reservation: Reservation,
    reservations: Iterable[Reservation],
    key: SeriesKey = DEFAULT_SERIES_KEY,
) -> List[Reservation]:
    """Неотменённые занятия серии начиная с даты брони"""
    return [
        item
        for item in series_members(reservation, reservations, key)
        if item.date >= reservation.date
    ]


def last_series_date(members: Iterable[Reservation]) -> Optional[str]:
    """Дата последнего занятия серии"""
    dates = [item.date for item in members]
    return max(dates) if dates else None
