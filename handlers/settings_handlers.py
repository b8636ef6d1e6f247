"""Обработчики настроек клуба: часы работы и прайс"""

import logging
from dataclasses import replace

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from database.models import DayClass, RateTable
from database.repositories import CourtRepository, PricingRepository
from keyboards.booking_keyboards import MAIN_MENU, cancel_flow_keyboard, settings_keyboard
from services.booking_service import BookingService
from services.exceptions import ExternalServiceError, ValidationError
from services.pricing import format_rate_slots, parse_rate_slots, validate_rate_table
from services.time_slots import generate_time_slots
from utils.datetime_utils import parse_time_range
from utils.helpers import format_facility, is_admin
from utils.states import SettingsStates

router = Router()

DAY_CLASS_TITLES = {
    DayClass.WEEKDAY: "будни (Пн–Пт)",
    DayClass.WEEKEND: "выходные (Сб–Вс)",
}


@router.message(F.text == "⚙️ Настройки")
async def settings_menu(
    message: Message,
    state: FSMContext,
    booking_service: BookingService,
    pricing_repository: PricingRepository,
):
    """Текущие настройки клуба"""
    if not is_admin(message.from_user.id):
        return
    await state.clear()

    rate_table = await pricing_repository.get_rate_table()
    await message.answer(
        "⚙️ НАСТРОЙКИ\n\n" + format_facility(booking_service.facility, rate_table),
        reply_markup=settings_keyboard(),
    )


# === ЧАСЫ РАБОТЫ ===


@router.callback_query(F.data == "set_hours")
async def hours_start(callback: CallbackQuery, state: FSMContext):
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    await state.set_state(SettingsStates.entering_hours)
    await callback.message.answer(
        "🕒 Введите часы работы в формате ЧЧ:ММ-ЧЧ:ММ, например 07:00-23:00",
        reply_markup=cancel_flow_keyboard(),
    )
    await callback.answer()


@router.message(SettingsStates.entering_hours)
async def hours_entered(
    message: Message,
    state: FSMContext,
    booking_service: BookingService,
    court_repository: CourtRepository,
):
    try:
        opening_time, closing_time = parse_time_range(message.text or "")
        generate_time_slots(opening_time, closing_time)
    except (ValueError, ValidationError):
        await message.answer("⚠️ Нужен интервал ЧЧ:ММ-ЧЧ:ММ, открытие раньше закрытия")
        return

    settings = replace(
        booking_service.facility, opening_time=opening_time, closing_time=closing_time
    )
    try:
        await court_repository.update_settings(settings)
    except ExternalServiceError:
        await state.clear()
        await message.answer("❌ Не удалось сохранить настройки", reply_markup=MAIN_MENU)
        return

    booking_service.facility = settings
    await state.clear()
    logging.info(f"Opening hours changed to {opening_time}-{closing_time}")
    await message.answer(
        f"✅ Часы работы: {opening_time}–{closing_time}", reply_markup=MAIN_MENU
    )


# === ПРАЙС ===


@router.callback_query(F.data.startswith("set_rates:"))
async def rates_start(
    callback: CallbackQuery, state: FSMContext, pricing_repository: PricingRepository
):
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    try:
        day_class = DayClass(callback.data.split(":", 1)[1])
    except ValueError:
        await callback.answer("❌ Ошибка: неверные данные", show_alert=True)
        return

    await state.set_state(SettingsStates.entering_rates)
    await state.update_data(day_class=day_class.value)

    current = (await pricing_repository.get_rate_table()).slots_for(day_class)
    text = f"💰 Прайс: {DAY_CLASS_TITLES[day_class]}\n\n"
    if current:
        text += f"Сейчас:\n{format_rate_slots(current)}\n\n"
    text += (
        "Введите диапазоны, по одному в строке:\n"
        "ЧЧ:ММ-ЧЧ:ММ цена_за_час\n\n"
        "Например:\n08:00-17:00 1000\n17:00-23:00 1500\n\n"
        "Прочерк «-» очищает прайс."
    )
    await callback.message.answer(text, reply_markup=cancel_flow_keyboard())
    await callback.answer()


@router.message(SettingsStates.entering_rates)
async def rates_entered(
    message: Message, state: FSMContext, pricing_repository: PricingRepository
):
    data = await state.get_data()
    day_class = DayClass(data["day_class"])

    try:
        slots = parse_rate_slots(message.text or "")
        current = await pricing_repository.get_rate_table()
        table = RateTable(weekday=list(current.weekday), weekend=list(current.weekend))
        setattr(table, day_class.value, slots)
        validate_rate_table(table)
    except ValidationError as e:
        await message.answer(f"⚠️ Не удалось разобрать прайс: {e}")
        return

    try:
        await pricing_repository.replace_rate_table(table)
    except ExternalServiceError:
        await state.clear()
        await message.answer("❌ Не удалось сохранить прайс", reply_markup=MAIN_MENU)
        return

    await state.clear()
    await message.answer(
        f"✅ Прайс сохранён: {DAY_CLASS_TITLES[day_class]}\n\n"
        + (format_rate_slots(slots) or "пусто"),
        reply_markup=MAIN_MENU,
    )
