"""Еженедельные серии: даты занятий и создание серии

Каноническая форма серии - количество занятий. Дата окончания
(дата последнего занятия, включительно) выводится из него.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional

from database.models import BookingStatus, Reservation, ReservationDraft
from services.conflicts import has_conflict
from services.exceptions import ValidationError
from utils.datetime_utils import add_days, localize_date, parse_date

DAYS_IN_WEEK = 7

# Сколько пропущенных дат показывать в сводке
SKIPPED_PREVIEW_LIMIT = 5


class SeriesOutcome(str, Enum):
    """Итог создания серии"""

    NONE_CREATED = "none_created"
    PARTIAL = "partial"
    SUCCESS = "success"


class SkipReason(str, Enum):
    CONFLICT = "conflict"
    ERROR = "error"


@dataclass(frozen=True)
class SkippedOccurrence:
    date: str
    reason: SkipReason
    detail: str = ""


@dataclass
class SeriesExpansion:
    """Результат создания серии"""

    created: int = 0
    created_ids: List = field(default_factory=list)
    skipped: List[SkippedOccurrence] = field(default_factory=list)
    series_id: Optional[str] = None

    @property
    def skipped_dates(self) -> List[str]:
        return [item.date for item in self.skipped]

    @property
    def outcome(self) -> SeriesOutcome:
        if self.created == 0:
            return SeriesOutcome.NONE_CREATED
        if self.skipped:
            return SeriesOutcome.PARTIAL
        return SeriesOutcome.SUCCESS

    def summary(self) -> str:
        """Сводка для сотрудника"""
        if self.outcome == SeriesOutcome.NONE_CREATED:
            return (
                "Не удалось создать ни одного бронирования. "
                "Все выбранные слоты уже заняты или произошла ошибка."
            )
        if self.outcome == SeriesOutcome.PARTIAL:
            preview = ", ".join(
                localize_date(d) for d in self.skipped_dates[:SKIPPED_PREVIEW_LIMIT]
            )
            if len(self.skipped) > SKIPPED_PREVIEW_LIMIT:
                preview += "..."
            return (
                f"Создано бронирований: {self.created}\n\n"
                f"Пропущено дат: {len(self.skipped)}\n({preview})"
            )
        return f"Успешно создано {self.created} регулярных бронирований!"


def series_end_date(start_date: str, session_count: int) -> str:
    """Дата последнего занятия серии из N занятий"""
    return add_days(start_date, DAYS_IN_WEEK * (session_count - 1))


def session_count_until(start_date: str, end_date: str) -> int:
    """Количество занятий от start_date до end_date включительно"""
    days = (parse_date(end_date) - parse_date(start_date)).days
    return days // DAYS_IN_WEEK + 1


def approximate_sessions(start_date: str, end_date: str) -> int:
    """Примерное число занятий для подсказки в форме"""
    days = (parse_date(end_date) - parse_date(start_date)).days
    return math.ceil(days / DAYS_IN_WEEK) + 1


def resolve_session_count(
    start_date: str,
    end_date: Optional[str] = None,
    session_count: Optional[int] = None,
) -> int:
    """Привести параметры серии к количеству занятий

    Raises:
        ValidationError: если не задан ни один параметр, заданы оба
            или дата окончания не позже даты начала
    """
    if (end_date is None) == (session_count is None):
        raise ValidationError("Specify exactly one of end_date or session_count")

    if session_count is not None:
        if session_count < 1:
            raise ValidationError("Session count must be positive")
        return session_count

    try:
        start, end = parse_date(start_date), parse_date(end_date)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if end <= start:
        raise ValidationError("Recurrence end date must be after the start date")
    return session_count_until(start_date, end_date)


def occurrence_dates(
    start_date: str,
    end_date: Optional[str] = None,
    session_count: Optional[int] = None,
) -> List[str]:
    """Даты занятий: start_date, +7д, +14д, ... (в порядке возрастания)"""
    count = resolve_session_count(start_date, end_date, session_count)
    return [add_days(start_date, DAYS_IN_WEEK * i) for i in range(count)]


async def expand_series(
    template: ReservationDraft,
    existing: Iterable[Reservation],
    create_one: Callable[[ReservationDraft], Awaitable],
    end_date: Optional[str] = None,
    session_count: Optional[int] = None,
) -> SeriesExpansion:
    """Создание занятий серии по шаблону

    Конфликтующие даты и даты, на которых create_one упал, пропускаются;
    серия не прерывается. Занятия создаются строго по возрастанию даты.
    Не идемпотентно: повторный вызов без обновлённого existing создаст дубли.

    Args:
        template: шаблон первого занятия
        existing: снимок существующих броней (не изменяется)
        create_one: async-функция, сохраняющая занятие и возвращающая id
        end_date: дата последнего занятия (включительно)
        session_count: количество занятий
    """
    dates = occurrence_dates(template.date, end_date, session_count)

    accumulated = list(existing)
    result = SeriesExpansion()

    for date_str in dates:
        occurrence = replace(template, date=date_str)

        if has_conflict(occurrence, accumulated):
            logging.info(f"Series occurrence {date_str} skipped: slot taken")
            result.skipped.append(SkippedOccurrence(date_str, SkipReason.CONFLICT))
            continue

        try:
            occurrence_id = await create_one(occurrence)
        except Exception as e:
            logging.warning(f"Series occurrence {date_str} failed: {e}")
            result.skipped.append(
                SkippedOccurrence(date_str, SkipReason.ERROR, detail=str(e))
            )
            continue

        result.created += 1
        result.created_ids.append(occurrence_id)
        accumulated.append(
            Reservation(
                id=occurrence_id,
                court_id=occurrence.court_id,
                date=occurrence.date,
                start_time=occurrence.start_time,
                end_time=occurrence.end_time,
                activity=occurrence.activity,
                status=BookingStatus.HOLD,
            )
        )

    logging.info(
        f"Series from {template.date}: created {result.created}, "
        f"skipped {len(result.skipped)}"
    )
    return result
