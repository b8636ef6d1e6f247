"""Обработчики создания брони"""

import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from config import DEFAULT_PAYMENT_AMOUNT, MAX_SERIES_SESSIONS
from database.models import ActivityKind, ReservationDraft
from database.repositories import ClientRepository, PricingRepository
from keyboards.booking_keyboards import (
    MAIN_MENU,
    activity_keyboard,
    durations_keyboard,
    skip_keyboard,
    yes_no_keyboard,
)
from services.booking_service import BookingService
from services.exceptions import BookingError, ConflictError, ValidationError
from services.notification_service import NotificationService
from services.recurrence import SeriesOutcome
from services.time_slots import format_duration, valid_durations
from utils.datetime_utils import end_time_for
from utils.helpers import format_date_human, format_reservation, is_admin
from utils.states import BookingStates

router = Router()


@router.callback_query(F.data.startswith("slot:"))
async def booking_start(
    callback: CallbackQuery, state: FSMContext, booking_service: BookingService
):
    """Свободный слот: начало создания брони"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return

    try:
        # время "10:00" само содержит двоеточие
        _, court_id, date_str, time_str = callback.data.split(":", 3)
        court_id = int(court_id)
    except ValueError as e:
        logging.error(f"Invalid callback_data in booking_start: {callback.data}, error: {e}")
        await callback.answer("❌ Ошибка: неверные данные", show_alert=True)
        return

    durations = valid_durations(time_str, booking_service.facility.closing_time)
    if not durations:
        await callback.answer("⚠️ До закрытия клуба слишком мало времени", show_alert=True)
        return

    await state.clear()
    await state.set_state(BookingStates.choosing_duration)
    await state.update_data(court_id=court_id, date=date_str, start_time=time_str)

    await callback.message.edit_text(
        "📍 НОВАЯ БРОНЬ\n\n"
        f"📅 {format_date_human(date_str)}\n"
        f"🕒 Начало: {time_str}\n\n"
        "Выберите длительность:",
        reply_markup=durations_keyboard(durations),
    )
    await callback.answer()


@router.callback_query(BookingStates.choosing_duration, F.data.startswith("dur:"))
async def duration_chosen(callback: CallbackQuery, state: FSMContext):
    minutes = int(callback.data.split(":", 1)[1])
    data = await state.get_data()
    end_time = end_time_for(data["start_time"], minutes)

    await state.update_data(end_time=end_time)
    await state.set_state(BookingStates.choosing_activity)
    await callback.message.edit_text(
        f"🕒 {data['start_time']}–{end_time} ({format_duration(minutes)})\n\n"
        "Выберите тип брони:",
        reply_markup=activity_keyboard(),
    )
    await callback.answer()


@router.callback_query(BookingStates.choosing_activity, F.data.startswith("act:"))
async def activity_chosen(callback: CallbackQuery, state: FSMContext):
    try:
        activity = ActivityKind(callback.data.split(":", 1)[1])
    except ValueError:
        await callback.answer("❌ Неизвестный тип брони", show_alert=True)
        return

    await state.update_data(activity=activity.value)
    if activity.allows_coach:
        await state.set_state(BookingStates.entering_coach)
        await callback.message.edit_text(
            f"{activity.label}\n\n🧑‍🏫 Введите имя тренера:",
            reply_markup=skip_keyboard("skip_coach"),
        )
    else:
        await _ask_client(callback.message, state)
    await callback.answer()


async def _ask_client(message: Message, state: FSMContext):
    await state.set_state(BookingStates.entering_client)
    await message.answer("👤 Введите ФИО клиента:", reply_markup=skip_keyboard("skip_client"))


@router.message(BookingStates.entering_coach)
async def coach_entered(message: Message, state: FSMContext):
    await state.update_data(coach=(message.text or "").strip())
    await _ask_client(message, state)


@router.callback_query(BookingStates.entering_coach, F.data == "skip_coach")
async def coach_skipped(callback: CallbackQuery, state: FSMContext):
    await _ask_client(callback.message, state)
    await callback.answer()


async def _after_client(message: Message, state: FSMContext):
    data = await state.get_data()
    if ActivityKind(data["activity"]).is_recurring:
        await state.set_state(BookingStates.entering_sessions)
        await message.answer(
            f"🔁 Сколько еженедельных занятий создать? (1–{MAX_SERIES_SESSIONS})"
        )
    else:
        await _ask_comment(message, state)


@router.message(BookingStates.entering_client)
async def client_entered(
    message: Message, state: FSMContext, client_repository: ClientRepository
):
    try:
        client_id = await client_repository.ensure_client(message.text or "")
    except ValidationError:
        await message.answer("⚠️ ФИО не может быть пустым", reply_markup=skip_keyboard("skip_client"))
        return

    await state.update_data(client_id=client_id, client_name=message.text.strip())
    await _after_client(message, state)


@router.callback_query(BookingStates.entering_client, F.data == "skip_client")
async def client_skipped(callback: CallbackQuery, state: FSMContext):
    await _after_client(callback.message, state)
    await callback.answer()


@router.message(BookingStates.entering_sessions)
async def sessions_entered(message: Message, state: FSMContext):
    try:
        sessions = int((message.text or "").strip())
        if not 1 <= sessions <= MAX_SERIES_SESSIONS:
            raise ValueError("out of range")
    except ValueError:
        await message.answer(f"⚠️ Введите число от 1 до {MAX_SERIES_SESSIONS}")
        return

    await state.update_data(session_count=sessions)
    await _ask_comment(message, state)


async def _ask_comment(message: Message, state: FSMContext):
    await state.set_state(BookingStates.entering_comment)
    await message.answer("💬 Комментарий к брони:", reply_markup=skip_keyboard("skip_comment"))


async def _ask_paid(message: Message, state: FSMContext):
    await state.set_state(BookingStates.choosing_paid)
    await message.answer("💳 Бронь уже оплачена?", reply_markup=yes_no_keyboard("paid"))


@router.message(BookingStates.entering_comment)
async def comment_entered(message: Message, state: FSMContext):
    await state.update_data(comment=(message.text or "").strip())
    await _ask_paid(message, state)


@router.callback_query(BookingStates.entering_comment, F.data == "skip_comment")
async def comment_skipped(callback: CallbackQuery, state: FSMContext):
    await _ask_paid(callback.message, state)
    await callback.answer()


@router.callback_query(BookingStates.choosing_paid, F.data.startswith("paid:"))
async def paid_chosen(
    callback: CallbackQuery,
    state: FSMContext,
    booking_service: BookingService,
    pricing_repository: PricingRepository,
    notification_service: NotificationService,
):
    paid = callback.data.endswith(":1")
    data = await state.get_data()

    # Ссылка на оплату только для разовой неоплаченной брони
    if not paid and ActivityKind(data["activity"]) == ActivityKind.ONE_TIME:
        await state.set_state(BookingStates.choosing_payment_link)
        await callback.message.edit_text(
            "🔗 Создать ссылку на оплату?", reply_markup=yes_no_keyboard("link")
        )
        await callback.answer()
        return

    await _finish(callback, state, booking_service, pricing_repository, notification_service, paid)


@router.callback_query(BookingStates.choosing_payment_link, F.data.startswith("link:"))
async def payment_link_chosen(
    callback: CallbackQuery,
    state: FSMContext,
    booking_service: BookingService,
    pricing_repository: PricingRepository,
    notification_service: NotificationService,
):
    await _finish(
        callback,
        state,
        booking_service,
        pricing_repository,
        notification_service,
        paid=False,
        with_link=callback.data.endswith(":1"),
    )


def _draft_from_state(data: dict) -> ReservationDraft:
    return ReservationDraft(
        court_id=data["court_id"],
        date=data["date"],
        start_time=data["start_time"],
        end_time=data["end_time"],
        activity=ActivityKind(data["activity"]),
        comment=data.get("comment", ""),
        coach=data.get("coach"),
        client_id=data.get("client_id"),
        client_name=data.get("client_name"),
    )


async def _finish(
    callback: CallbackQuery,
    state: FSMContext,
    booking_service: BookingService,
    pricing_repository: PricingRepository,
    notification_service: NotificationService,
    paid: bool,
    with_link: bool = False,
):
    """Создание брони, серии или брони со ссылкой на оплату"""
    data = await state.get_data()
    await state.clear()
    draft = _draft_from_state(data)
    actor_id = callback.from_user.id

    try:
        if draft.activity.is_recurring:
            result = await booking_service.create_series(
                draft, session_count=data.get("session_count", 1), paid=paid
            )
            await callback.message.edit_text(result.summary())
            await callback.answer()
            if result.outcome != SeriesOutcome.NONE_CREATED:
                first = await booking_service.repository.get_reservation(result.created_ids[0])
                await notification_service.notify_new_series(
                    first, result.created, len(result.skipped), actor_id=actor_id
                )
            return

        if with_link:
            rate_table = await pricing_repository.get_rate_table(draft.court_id)
            booking = await booking_service.create_booking_with_payment_link(
                draft, amount=DEFAULT_PAYMENT_AMOUNT, rate_table=rate_table
            )
            reservation = booking.reservation
            text = "✅ БРОНЬ СОЗДАНА\n\n" + format_reservation(reservation)
            if booking.payment_url:
                text += f"\n\n🔗 Ссылка на оплату:\n{booking.payment_url}"
            else:
                text += "\n\n⚠️ Бронь сохранена, но ссылку на оплату создать не удалось"
        else:
            reservation = await booking_service.create_booking(draft, paid=paid)
            text = "✅ БРОНЬ СОЗДАНА\n\n" + format_reservation(reservation)
    except ConflictError:
        await callback.message.edit_text("❌ Этот слот уже занят. Выберите другое время.")
        await callback.answer("❌ Слот занят", show_alert=True)
        return
    except ValidationError as e:
        await callback.message.edit_text(f"❌ Неверные данные брони: {e}")
        await callback.answer()
        return
    except BookingError as e:
        logging.error(f"Booking creation failed: {e}")
        await callback.message.edit_text("❌ Ошибка создания брони")
        await callback.answer()
        return

    await callback.message.edit_text(text)
    await callback.answer("✅ Бронь создана")
    await notification_service.notify_new_booking(reservation, actor_id=actor_id)


@router.callback_query(F.data == "flow_cancel")
async def cancel_flow(callback: CallbackQuery, state: FSMContext):
    """Отмена создания брони"""
    await state.clear()
    await callback.message.edit_text("❌ Действие отменено", reply_markup=None)
    await callback.message.answer("Вы вернулись в главное меню", reply_markup=MAIN_MENU)
    await callback.answer()
