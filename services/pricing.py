"""Расчёт стоимости аренды по прайсу клуба

Цена в RateSlot - руб/час для своего диапазона. Будние = Пн-Пт,
выходные = Сб-Вс. Пересекающиеся диапазоны одного прайса суммируются.
"""

from typing import List, Optional

from database.models import DayClass, RateSlot, RateTable
from services.exceptions import ValidationError
from utils.datetime_utils import parse_date, parse_time_range, time_to_minutes


def day_class_for(date_str: str) -> DayClass:
    """Будний или выходной день"""
    return DayClass.WEEKEND if parse_date(date_str).weekday() >= 5 else DayClass.WEEKDAY


def price_for(rate_table: RateTable, date_str: str, start_time: str, end_time: str) -> int:
    """Стоимость аренды (руб) за интервал [start_time, end_time)

    Округление до целого рубля, половина округляется вверх.
    """
    slots = rate_table.slots_for(day_class_for(date_str))
    if not slots:
        return 0

    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)

    # Сумма в руб*мин, чтобы округлять точное значение
    total = 0
    for slot in slots:
        overlap = min(end, slot.end_minutes) - max(start, slot.start_minutes)
        if overlap > 0:
            total += overlap * slot.price_rub

    return (total + 30) // 60


def has_pricing(rate_table: Optional[RateTable]) -> bool:
    """Есть ли в прайсе хотя бы один диапазон"""
    return rate_table is not None and not rate_table.is_empty()


def validate_rate_table(rate_table: RateTable) -> None:
    """Проверка прайса перед сохранением

    Raises:
        ValidationError: если диапазон пустой или цена отрицательная
    """
    for day_class in DayClass:
        for slot in rate_table.slots_for(day_class):
            try:
                start, end = slot.start_minutes, slot.end_minutes
            except ValueError as e:
                raise ValidationError(str(e)) from e
            if start >= end:
                raise ValidationError(
                    f"Rate slot {slot.start_time}-{slot.end_time} has no duration"
                )
            if slot.price_rub < 0:
                raise ValidationError(f"Negative price in slot {slot.start_time}")


def parse_rate_slots(text: str) -> List[RateSlot]:
    """Диапазоны прайса из текста сотрудника

    Одна строка - один диапазон: "08:00-17:00 1000". Прочерк "-"
    означает пустой прайс.

    Raises:
        ValidationError: если строку не удалось разобрать
    """
    text = (text or "").strip()
    if text == "-":
        return []

    slots = []
    for line in filter(None, (line.strip() for line in text.splitlines())):
        range_text, _, price_text = line.rpartition(" ")
        try:
            start_time, end_time = parse_time_range(range_text)
            price = int(price_text)
        except ValueError as e:
            raise ValidationError(f"Invalid rate line {line!r}") from e
        slots.append(RateSlot(start_time, end_time, price))

    if not slots:
        raise ValidationError("No rate slots given")
    return slots


def format_rate_slots(slots: List[RateSlot]) -> str:
    """Диапазоны в том же формате, в каком их вводит сотрудник"""
    return "\n".join(f"{slot.start_time}-{slot.end_time} {slot.price_rub}" for slot in slots)
