"""Генерация слотов расписания по времени работы клуба"""

from dataclasses import dataclass
from typing import List, Optional

from services.exceptions import ValidationError
from utils.datetime_utils import minutes_to_time, time_to_minutes

SLOT_MINUTES = 30

# Длительности брони в минутах: от 30 минут до 5 часов с шагом полчаса
ALL_DURATIONS = list(range(SLOT_MINUTES, 5 * 60 + 1, SLOT_MINUTES))


@dataclass(frozen=True)
class TimeSlots:
    """Получасовые слоты для бронирования и часовые отметки для отображения"""

    slots: List[str]
    hour_marks: List[str]


def generate_time_slots(opening_time: str, closing_time: str) -> TimeSlots:
    """Слоты времени в интервале [открытие, закрытие)

    Args:
        opening_time: Время открытия, например "08:00"
        closing_time: Время закрытия, например "22:00" (допускается "24:00")

    Returns:
        TimeSlots: все получасовые границы и подмножество целых часов

    Raises:
        ValidationError: если время открытия не раньше закрытия
    """
    try:
        open_minutes = time_to_minutes(opening_time)
        close_minutes = time_to_minutes(closing_time)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    if open_minutes >= close_minutes:
        raise ValidationError(
            f"Opening time {opening_time} must be before closing time {closing_time}"
        )

    slots = []
    hour_marks = []
    for minute in range(open_minutes, close_minutes, SLOT_MINUTES):
        time_str = minutes_to_time(minute)
        slots.append(time_str)
        if minute % 60 == 0:
            hour_marks.append(time_str)

    return TimeSlots(slots=slots, hour_marks=hour_marks)


def valid_durations(
    start_time: str, closing_time: str, durations: Optional[List[int]] = None
) -> List[int]:
    """Длительности (мин), при которых бронь заканчивается не позже закрытия"""
    closing_minutes = time_to_minutes(closing_time)
    start_minutes = time_to_minutes(start_time)
    return [
        duration
        for duration in (durations or ALL_DURATIONS)
        if start_minutes + duration <= closing_minutes
    ]


def format_duration(minutes: int) -> str:
    """Отображение длительности в читаемом формате"""
    hours, rest = divmod(minutes, 60)

    if hours and rest:
        return f"{hours} ч {rest} мин"
    elif hours:
        return f"{hours} ч"
    else:
        return f"{rest} мин"
