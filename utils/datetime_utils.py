"""Утилиты для работы с датами и временем

Все даты и время наивные (локальное время клуба):
дата - строка YYYY-MM-DD, время - строка HH:MM.
"""

import re
from datetime import date, datetime, timedelta
from typing import Tuple


_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


def time_to_minutes(time_str: str) -> int:
    """Перевод HH:MM в минуты от полуночи

    "24:00" допускается и означает полночь в конце дня (1440).

    Raises:
        ValueError: если строка не в формате HH:MM
    """
    match = _TIME_RE.match(time_str.strip()) if isinstance(time_str, str) else None
    if not match:
        raise ValueError(f"Invalid time format: {time_str!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    total = hours * 60 + minutes
    if minutes >= 60 or total > MINUTES_PER_DAY:
        raise ValueError(f"Invalid time value: {time_str!r}")
    return total


def minutes_to_time(total_minutes: int) -> str:
    """Перевод минут от полуночи в HH:MM"""
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def end_time_for(start_time: str, duration_minutes: int) -> str:
    """Время окончания по началу и длительности"""
    return minutes_to_time(time_to_minutes(start_time) + duration_minutes)


def parse_time_range(text: str) -> Tuple[str, str]:
    """'8:00-17:30' -> ('08:00', '17:30')

    Raises:
        ValueError: если строка не в формате HH:MM-HH:MM
    """
    parts = re.split(r"\s*[-–]\s*", (text or "").strip())
    if len(parts) != 2:
        raise ValueError(f"Invalid time range: {text!r}")
    start, end = (minutes_to_time(time_to_minutes(part)) for part in parts)
    return start, end


def parse_date(date_str: str) -> date:
    """Парсинг даты YYYY-MM-DD

    Raises:
        ValueError: если дата невалидна
    """
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def format_date(date_obj: date) -> str:
    """date -> YYYY-MM-DD"""
    return date_obj.strftime("%Y-%m-%d")


def localize_date(date_str: str) -> str:
    """YYYY-MM-DD -> дд.мм.гггг (для сообщений сотрудникам)"""
    return parse_date(date_str).strftime("%d.%m.%Y")


def add_days(date_str: str, days: int) -> str:
    """Сдвиг даты на N дней"""
    return format_date(parse_date(date_str) + timedelta(days=days))


def week_start(date_str: str) -> str:
    """Понедельник недели, в которую попадает дата"""
    date_obj = parse_date(date_str)
    return format_date(date_obj - timedelta(days=date_obj.weekday()))
