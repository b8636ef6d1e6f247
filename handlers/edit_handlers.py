"""Обработчики изменения и удаления брони"""

import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from database.models import ActivityKind, Reservation
from keyboards.booking_keyboards import (
    MAIN_MENU,
    activity_keyboard,
    back_to_day_keyboard,
    booking_card_keyboard,
    cancel_flow_keyboard,
    confirm_keyboard,
    durations_keyboard,
    edit_keyboard,
)
from services.booking_service import BookingService
from services.exceptions import (
    BookingError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from services.time_slots import valid_durations
from utils.datetime_utils import end_time_for, minutes_to_time, time_to_minutes
from utils.helpers import format_reservation, is_admin
from utils.states import EditStates

router = Router()


def _parse_id(data: str) -> int:
    return int(data.split(":", 1)[1])


async def _load(booking_service: BookingService, reservation_id: int) -> Reservation:
    reservation = await booking_service.repository.get_reservation(reservation_id)
    if reservation.is_canceled:
        raise ValidationError("Canceled booking cannot be edited")
    return reservation


@router.callback_query(F.data.startswith("edit:"))
async def edit_menu(callback: CallbackQuery, state: FSMContext, booking_service: BookingService):
    """Что изменить в брони"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    await state.clear()

    try:
        reservation = await _load(booking_service, _parse_id(callback.data))
    except (ValueError, BookingError):
        await callback.answer("❌ Бронь нельзя изменить", show_alert=True)
        return

    await callback.message.edit_text(
        "✏️ ИЗМЕНЕНИЕ БРОНИ\n\n" + format_reservation(reservation),
        reply_markup=edit_keyboard(reservation),
    )
    await callback.answer()


async def _save(
    target: Message,
    state: FSMContext,
    booking_service: BookingService,
    **changes,
) -> bool:
    """Сохранить изменения брони из состояния FSM

    Returns:
        True, если бронь сохранена (состояние очищено)
    """
    data = await state.get_data()
    try:
        reservation = await _load(booking_service, data["reservation_id"])
        updated = await booking_service.update_booking(reservation, **changes)
    except ConflictError:
        await target.answer("❌ Этот слот уже занят. Выберите другое время.")
        return False
    except ValidationError as e:
        await target.answer(f"❌ Неверные данные брони: {e}")
        return False
    except (KeyError, NotFoundError):
        await state.clear()
        await target.answer("❌ Бронь не найдена", reply_markup=MAIN_MENU)
        return True
    except BookingError as e:
        logging.error(f"Booking update failed: {e}")
        await state.clear()
        await target.answer("❌ Ошибка сохранения брони", reply_markup=MAIN_MENU)
        return True

    await state.clear()
    members = await booking_service.series_members(updated)
    await target.answer(
        "✅ БРОНЬ ИЗМЕНЕНА\n\n" + format_reservation(updated, len(members)),
        reply_markup=booking_card_keyboard(updated, len(members) > 1),
    )
    return True


# === ВРЕМЯ ===


@router.callback_query(F.data.startswith("edit_time:"))
async def edit_time_start(callback: CallbackQuery, state: FSMContext):
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    await state.set_state(EditStates.entering_start)
    await state.update_data(reservation_id=_parse_id(callback.data))
    await callback.message.answer(
        "🕒 Введите новое время начала (ЧЧ:ММ):", reply_markup=cancel_flow_keyboard()
    )
    await callback.answer()


@router.message(EditStates.entering_start)
async def edit_start_entered(
    message: Message, state: FSMContext, booking_service: BookingService
):
    try:
        start_time = minutes_to_time(time_to_minutes(message.text or ""))
    except ValueError:
        await message.answer("⚠️ Время в формате ЧЧ:ММ, например 18:30")
        return

    durations = valid_durations(start_time, booking_service.facility.closing_time)
    if not durations:
        await message.answer("⚠️ До закрытия клуба слишком мало времени, введите другое время")
        return

    await state.update_data(start_time=start_time)
    await state.set_state(EditStates.choosing_duration)
    await message.answer(
        f"🕒 Начало: {start_time}\n\nВыберите длительность:",
        reply_markup=durations_keyboard(durations),
    )


@router.callback_query(EditStates.choosing_duration, F.data.startswith("dur:"))
async def edit_duration_chosen(
    callback: CallbackQuery, state: FSMContext, booking_service: BookingService
):
    data = await state.get_data()
    start_time = data["start_time"]
    end_time = end_time_for(start_time, int(callback.data.split(":", 1)[1]))

    saved = await _save(
        callback.message, state, booking_service, start_time=start_time, end_time=end_time
    )
    if not saved:
        # Слот занят: можно ввести другое время
        await state.set_state(EditStates.entering_start)
    await callback.answer()


# === ТИП БРОНИ ===


@router.callback_query(F.data.startswith("edit_act:"))
async def edit_activity_start(callback: CallbackQuery, state: FSMContext):
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    await state.set_state(EditStates.choosing_activity)
    await state.update_data(reservation_id=_parse_id(callback.data))
    await callback.message.edit_text(
        "🏷 Выберите новый тип брони:", reply_markup=activity_keyboard()
    )
    await callback.answer()


@router.callback_query(EditStates.choosing_activity, F.data.startswith("act:"))
async def edit_activity_chosen(
    callback: CallbackQuery, state: FSMContext, booking_service: BookingService
):
    try:
        activity = ActivityKind(callback.data.split(":", 1)[1])
    except ValueError:
        await callback.answer("❌ Неизвестный тип брони", show_alert=True)
        return

    await _save(callback.message, state, booking_service, activity=activity)
    await callback.answer()


# === ТРЕНЕР ===


@router.callback_query(F.data.startswith("edit_coach:"))
async def edit_coach_start(callback: CallbackQuery, state: FSMContext):
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    await state.set_state(EditStates.entering_coach)
    await state.update_data(reservation_id=_parse_id(callback.data))
    await callback.message.answer(
        "🧑‍🏫 Введите имя тренера:", reply_markup=cancel_flow_keyboard()
    )
    await callback.answer()


@router.message(EditStates.entering_coach)
async def edit_coach_entered(
    message: Message, state: FSMContext, booking_service: BookingService
):
    await _save(message, state, booking_service, coach=(message.text or "").strip())


# === УДАЛЕНИЕ ===


@router.callback_query(F.data.startswith("del:"))
async def delete_request(callback: CallbackQuery):
    """Подтверждение удаления брони"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    reservation_id = _parse_id(callback.data)
    await callback.message.edit_reply_markup(
        reply_markup=confirm_keyboard(
            f"del_ok:{reservation_id}", f"res:{reservation_id}", confirm_text="🗑 Да, удалить"
        )
    )
    await callback.answer("Бронь будет удалена без истории. Удалить?", show_alert=True)


@router.callback_query(F.data.startswith("del_ok:"))
async def delete_confirmed(callback: CallbackQuery, booking_service: BookingService):
    """Удаление брони"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    try:
        reservation = await booking_service.repository.get_reservation(_parse_id(callback.data))
        await booking_service.delete_booking(reservation)
    except BookingError as e:
        await callback.answer(f"❌ {e}", show_alert=True)
        return

    await callback.message.edit_text(
        "🗑 БРОНЬ УДАЛЕНА\n\n" + format_reservation(reservation),
        reply_markup=back_to_day_keyboard(reservation),
    )
    await callback.answer()
