"""Клавиатуры консоли сотрудника"""

from typing import List

from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

from config import DAY_NAMES_SHORT
from database.models import ActivityKind, BookingStatus, Court, DayClass, Reservation
from services.schedule_service import SlotCell
from services.time_slots import format_duration
from utils.datetime_utils import add_days, localize_date, parse_date

# Главное меню
MAIN_MENU = ReplyKeyboardMarkup(
    keyboard=[
        [KeyboardButton(text="📅 Расписание")],
        [KeyboardButton(text="ℹ️ Клуб"), KeyboardButton(text="⚙️ Настройки")],
    ],
    resize_keyboard=True,
    one_time_keyboard=False,
)

ACTIVITY_EMOJI = {
    ActivityKind.ONE_TIME: "🎾",
    ActivityKind.GROUP: "👥",
    ActivityKind.REGULAR: "🔁",
    ActivityKind.TOURNAMENT: "🏆",
    ActivityKind.PERSONAL_TRAINING: "🧑‍🏫",
}

STATUS_EMOJI = {
    BookingStatus.HOLD: "⏳",
    BookingStatus.CONFIRMED: "✅",
    BookingStatus.CANCELED: "❌",
}

CANCEL_FLOW_BUTTON = InlineKeyboardButton(text="« Отмена", callback_data="flow_cancel")


def courts_keyboard(courts: List[Court], date_str: str) -> InlineKeyboardMarkup:
    """Выбор корта"""
    keyboard = [
        [
            InlineKeyboardButton(
                text=court.name, callback_data=f"court:{court.id}:{date_str}"
            )
        ]
        for court in courts
    ]
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def day_schedule_keyboard(
    cells: List[SlotCell], court_id: int, date_str: str
) -> InlineKeyboardMarkup:
    """Слоты корта на день: свободные - создать бронь, занятые - карточка"""
    keyboard = []
    date_obj = parse_date(date_str)
    keyboard.append(
        [
            InlineKeyboardButton(
                text="◀️", callback_data=f"court:{court_id}:{add_days(date_str, -1)}"
            ),
            InlineKeyboardButton(
                text=f"{date_obj.strftime('%d.%m')} {DAY_NAMES_SHORT[date_obj.weekday()]}",
                callback_data="ignore",
            ),
            InlineKeyboardButton(
                text="▶️", callback_data=f"court:{court_id}:{add_days(date_str, 1)}"
            ),
        ]
    )

    row = []
    for cell in cells:
        if cell.is_free:
            button = InlineKeyboardButton(
                text=f"🟢 {cell.time}",
                callback_data=f"slot:{court_id}:{date_str}:{cell.time}",
            )
        else:
            reservation = cell.reservation
            button = InlineKeyboardButton(
                text=f"{ACTIVITY_EMOJI[reservation.activity]} {cell.time}",
                callback_data=f"res:{reservation.id}",
            )
        row.append(button)
        if len(row) == 4:
            keyboard.append(row)
            row = []
    if row:
        keyboard.append(row)

    keyboard.append(
        [
            InlineKeyboardButton(text="🗓 Неделя", callback_data=f"week:{court_id}:{date_str}"),
            InlineKeyboardButton(text="🔙 К кортам", callback_data="courts"),
        ]
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def week_keyboard(court_id: int, days: List[str]) -> InlineKeyboardMarkup:
    """Неделя корта: переход к дню и соседним неделям"""
    day_row = [
        InlineKeyboardButton(
            text=DAY_NAMES_SHORT[parse_date(day).weekday()],
            callback_data=f"court:{court_id}:{day}",
        )
        for day in days
    ]
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="◀️", callback_data=f"week:{court_id}:{add_days(days[0], -7)}"
                ),
                InlineKeyboardButton(
                    text=f"{localize_date(days[0])} – {localize_date(days[-1])}",
                    callback_data="ignore",
                ),
                InlineKeyboardButton(
                    text="▶️", callback_data=f"week:{court_id}:{add_days(days[0], 7)}"
                ),
            ],
            day_row,
            [InlineKeyboardButton(text="🔙 К кортам", callback_data="courts")],
        ]
    )


def durations_keyboard(durations: List[int]) -> InlineKeyboardMarkup:
    """Выбор длительности брони"""
    keyboard = []
    row = []
    for minutes in durations:
        row.append(
            InlineKeyboardButton(text=format_duration(minutes), callback_data=f"dur:{minutes}")
        )
        if len(row) == 3:
            keyboard.append(row)
            row = []
    if row:
        keyboard.append(row)
    keyboard.append([CANCEL_FLOW_BUTTON])
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def activity_keyboard() -> InlineKeyboardMarkup:
    """Выбор типа брони"""
    keyboard = [
        [
            InlineKeyboardButton(
                text=f"{ACTIVITY_EMOJI[kind]} {kind.label}",
                callback_data=f"act:{kind.value}",
            )
        ]
        for kind in ActivityKind
    ]
    keyboard.append([CANCEL_FLOW_BUTTON])
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def skip_keyboard(callback_data: str = "skip") -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="⏭ Пропустить", callback_data=callback_data)],
            [CANCEL_FLOW_BUTTON],
        ]
    )


def yes_no_keyboard(prefix: str) -> InlineKeyboardMarkup:
    """Кнопки Да/Нет с callback '{prefix}:1' / '{prefix}:0'"""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="✅ Да", callback_data=f"{prefix}:1"),
                InlineKeyboardButton(text="❌ Нет", callback_data=f"{prefix}:0"),
            ],
            [CANCEL_FLOW_BUTTON],
        ]
    )


def _back_to_day_button(reservation: Reservation) -> InlineKeyboardButton:
    return InlineKeyboardButton(
        text="🔙 К расписанию",
        callback_data=f"court:{reservation.court_id}:{reservation.date}",
    )


def booking_card_keyboard(reservation: Reservation, in_series: bool) -> InlineKeyboardMarkup:
    """Действия с бронью"""
    keyboard = []
    if reservation.status == BookingStatus.HOLD:
        keyboard.append(
            [
                InlineKeyboardButton(
                    text="💰 Отметить оплату", callback_data=f"pay:{reservation.id}"
                )
            ]
        )
    if not reservation.is_canceled:
        keyboard.append(
            [
                InlineKeyboardButton(text="✏️ Изменить", callback_data=f"edit:{reservation.id}"),
                InlineKeyboardButton(
                    text="💬 Комментарий", callback_data=f"cmt:{reservation.id}"
                ),
            ]
        )
        keyboard.append(
            [
                InlineKeyboardButton(
                    text="❌ Отменить бронь", callback_data=f"cancel:{reservation.id}"
                )
            ]
        )
        if in_series:
            keyboard.append(
                [
                    InlineKeyboardButton(
                        text="🔁 Отменить серию с этой даты",
                        callback_data=f"cancel_series:{reservation.id}",
                    )
                ]
            )
    else:
        keyboard.append(
            [InlineKeyboardButton(text="🗑 Удалить", callback_data=f"del:{reservation.id}")]
        )
    if reservation.client_id:
        keyboard.append(
            [
                InlineKeyboardButton(
                    text="👤 Брони клиента", callback_data=f"client:{reservation.client_id}"
                )
            ]
        )
    keyboard.append([_back_to_day_button(reservation)])
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def edit_keyboard(reservation: Reservation) -> InlineKeyboardMarkup:
    """Что изменить в брони"""
    keyboard = [
        [InlineKeyboardButton(text="🕒 Время", callback_data=f"edit_time:{reservation.id}")],
        [InlineKeyboardButton(text="🏷 Тип брони", callback_data=f"edit_act:{reservation.id}")],
    ]
    if reservation.activity.allows_coach:
        keyboard.append(
            [
                InlineKeyboardButton(
                    text="🧑‍🏫 Тренер", callback_data=f"edit_coach:{reservation.id}"
                )
            ]
        )
    keyboard.append(
        [InlineKeyboardButton(text="🗑 Удалить", callback_data=f"del:{reservation.id}")]
    )
    keyboard.append(
        [InlineKeyboardButton(text="🔙 Назад", callback_data=f"res:{reservation.id}")]
    )
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def back_to_day_keyboard(reservation: Reservation) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[_back_to_day_button(reservation)]])


def confirm_keyboard(
    confirm_data: str, back_data: str, confirm_text: str = "✅ Да, отменить"
) -> InlineKeyboardMarkup:
    """Подтверждение необратимого действия"""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text=confirm_text, callback_data=confirm_data),
                InlineKeyboardButton(text="🔙 Нет", callback_data=back_data),
            ]
        ]
    )


def comment_scope_keyboard() -> InlineKeyboardMarkup:
    """Применить комментарий к одной брони или ко всей серии"""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Только эта бронь", callback_data="cmt_scope:one")],
            [InlineKeyboardButton(text="Вся серия", callback_data="cmt_scope:all")],
            [CANCEL_FLOW_BUTTON],
        ]
    )


def settings_keyboard() -> InlineKeyboardMarkup:
    """Настройки клуба"""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🕒 Часы работы", callback_data="set_hours")],
            [
                InlineKeyboardButton(
                    text="💰 Прайс: будни", callback_data=f"set_rates:{DayClass.WEEKDAY.value}"
                )
            ],
            [
                InlineKeyboardButton(
                    text="💰 Прайс: выходные",
                    callback_data=f"set_rates:{DayClass.WEEKEND.value}",
                )
            ],
        ]
    )


def cancel_flow_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[CANCEL_FLOW_BUTTON]])
