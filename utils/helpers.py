"""Вспомогательные функции"""

from datetime import datetime

from config import ADMIN_IDS, DAY_NAMES, TIMEZONE
from database.models import FacilitySettings, RateTable, Reservation
from utils.datetime_utils import format_date, localize_date, parse_date


def now_local() -> datetime:
    """Текущее время в таймзоне клуба"""
    return datetime.now(TIMEZONE)


def today_str() -> str:
    """Сегодняшняя дата YYYY-MM-DD"""
    return format_date(now_local().date())


def format_date_human(date_str: str) -> str:
    """Форматирование даты для отображения"""
    date_obj = parse_date(date_str)
    day_name = DAY_NAMES[date_obj.weekday()]
    return f"{date_obj.strftime('%d.%m.%Y')} ({day_name})"


def format_price(amount: int) -> str:
    """1500 -> '1 500 ₽'"""
    return f"{amount:,}".replace(",", " ") + " ₽"


def is_admin(user_id: int) -> bool:
    """Проверка прав сотрудника"""
    return user_id in ADMIN_IDS


def format_reservation(reservation: Reservation, series_size: int = 0) -> str:
    """Карточка брони для сотрудника"""
    lines = [
        f"📅 {format_date_human(reservation.date)}",
        f"🕒 {reservation.start_time}–{reservation.end_time}",
        f"🎾 {reservation.court_name or reservation.court_id}",
        f"🏷 {reservation.activity.label}",
        f"💳 {reservation.status.label}",
    ]
    if reservation.coach:
        lines.append(f"🧑‍🏫 Тренер: {reservation.coach}")
    if reservation.client_name:
        lines.append(f"👤 {reservation.client_name}")
    if reservation.comment:
        lines.append(f"💬 {reservation.comment}")
    if series_size > 1:
        lines.append(
            f"🔁 Серия: {series_size} занятий, до {localize_date(reservation.recurring_end_date or reservation.date)}"
        )
    return "\n".join(lines)


def format_facility(facility: FacilitySettings, rate_table: RateTable) -> str:
    """Часы работы и прайс клуба"""
    text = f"🏟 {facility.name}\n🕒 {facility.opening_time}–{facility.closing_time}\n"
    if rate_table.is_empty():
        return text + "\n💰 Прайс не настроен"

    for title, slots in (("Будни", rate_table.weekday), ("Выходные", rate_table.weekend)):
        text += f"\n{title}:\n"
        if not slots:
            text += "  не настроено\n"
        for slot in slots:
            text += f"  {slot.start_time}–{slot.end_time}: {format_price(slot.price_rub)}/ч\n"
    return text
