"""Обработчики расписания и карточки брони"""

import logging

from aiogram import F, Router
from aiogram.filters import CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from database.repositories import CourtRepository, PricingRepository
from keyboards.booking_keyboards import (
    MAIN_MENU,
    STATUS_EMOJI,
    booking_card_keyboard,
    comment_scope_keyboard,
    confirm_keyboard,
    courts_keyboard,
    day_schedule_keyboard,
    week_keyboard,
)
from services.booking_service import BookingService
from services.exceptions import BookingError, NotFoundError
from services.notification_service import NotificationService
from services.schedule_service import day_grid
from utils.datetime_utils import localize_date
from utils.helpers import (
    format_date_human,
    format_facility,
    format_reservation,
    is_admin,
    today_str,
)
from utils.states import CommentStates

router = Router()

# Сколько броней клиента показывать в списке
CLIENT_BOOKINGS_SHOWN = 20


def _parse_id(data: str) -> int:
    return int(data.split(":", 1)[1])


@router.message(CommandStart())
async def start(message: Message, state: FSMContext):
    """Вход в консоль"""
    if not is_admin(message.from_user.id):
        await message.answer("⛔ Консоль доступна только сотрудникам клуба")
        return
    await state.clear()
    await message.answer("🎾 Консоль бронирования кортов", reply_markup=MAIN_MENU)


@router.message(F.text == "📅 Расписание")
async def schedule(message: Message, state: FSMContext, court_repository: CourtRepository):
    """Выбор корта на сегодня"""
    if not is_admin(message.from_user.id):
        return
    await state.clear()

    courts = await court_repository.list_courts()
    if not courts:
        await message.answer("📭 Корты не настроены", reply_markup=MAIN_MENU)
        return
    await message.answer(
        "📅 РАСПИСАНИЕ\n\nВыберите корт:", reply_markup=courts_keyboard(courts, today_str())
    )


@router.message(F.text == "ℹ️ Клуб")
async def facility_info(
    message: Message,
    booking_service: BookingService,
    pricing_repository: PricingRepository,
):
    """Часы работы и прайс клуба"""
    if not is_admin(message.from_user.id):
        return

    rate_table = await pricing_repository.get_rate_table()
    await message.answer(
        format_facility(booking_service.facility, rate_table), reply_markup=MAIN_MENU
    )


@router.callback_query(F.data == "courts")
async def back_to_courts(callback: CallbackQuery, court_repository: CourtRepository):
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    courts = await court_repository.list_courts()
    await callback.message.edit_text(
        "📅 РАСПИСАНИЕ\n\nВыберите корт:", reply_markup=courts_keyboard(courts, today_str())
    )
    await callback.answer()


@router.callback_query(F.data.startswith("court:"))
async def court_day(
    callback: CallbackQuery,
    state: FSMContext,
    booking_service: BookingService,
    court_repository: CourtRepository,
):
    """Расписание корта на день"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    await state.clear()

    try:
        _, court_id, date_str = callback.data.split(":", 2)
        court = await court_repository.get_court(int(court_id))
    except (ValueError, NotFoundError) as e:
        logging.error(f"Invalid callback_data in court_day: {callback.data}, error: {e}")
        await callback.answer("❌ Ошибка: неверные данные", show_alert=True)
        return

    facility = booking_service.facility
    reservations = await booking_service.list_day(court.id, date_str)
    cells = day_grid(
        reservations, court.id, date_str, facility.opening_time, facility.closing_time
    )

    text = f"🎾 {court.name}\n📅 {format_date_human(date_str)}\n\n"
    if reservations:
        for item in reservations:
            text += (
                f"{STATUS_EMOJI[item.status]} {item.start_time}–{item.end_time} "
                f"{item.activity.label}"
            )
            text += f" ({item.comment})\n" if item.comment else "\n"
    else:
        text += "Свободно весь день\n"

    await callback.message.edit_text(
        text, reply_markup=day_schedule_keyboard(cells, court.id, date_str)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("week:"))
async def court_week(
    callback: CallbackQuery,
    booking_service: BookingService,
    court_repository: CourtRepository,
):
    """Расписание корта на неделю"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return

    try:
        _, court_id, date_str = callback.data.split(":", 2)
        court = await court_repository.get_court(int(court_id))
        week = await booking_service.list_week(court.id, date_str)
    except (ValueError, NotFoundError) as e:
        logging.error(f"Invalid callback_data in court_week: {callback.data}, error: {e}")
        await callback.answer("❌ Ошибка: неверные данные", show_alert=True)
        return

    text = f"🎾 {court.name}\n🗓 НЕДЕЛЯ\n"
    for day, reservations in week.items():
        text += f"\n{format_date_human(day)}\n"
        if not reservations:
            text += "  свободно\n"
        for item in reservations:
            text += (
                f"  {STATUS_EMOJI[item.status]} {item.start_time}–{item.end_time} "
                f"{item.activity.label}"
            )
            text += f" ({item.comment})\n" if item.comment else "\n"

    await callback.message.edit_text(text, reply_markup=week_keyboard(court.id, list(week)))
    await callback.answer()


async def _show_card(callback: CallbackQuery, booking_service: BookingService, reservation_id: int):
    reservation = await booking_service.repository.get_reservation(reservation_id)
    members = await booking_service.series_members(reservation)
    await callback.message.edit_text(
        format_reservation(reservation, len(members)),
        reply_markup=booking_card_keyboard(reservation, len(members) > 1),
    )


@router.callback_query(F.data.startswith("res:"))
async def booking_card(callback: CallbackQuery, booking_service: BookingService):
    """Карточка брони"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    try:
        await _show_card(callback, booking_service, _parse_id(callback.data))
    except (ValueError, NotFoundError):
        await callback.answer("❌ Бронь не найдена", show_alert=True)
        return
    await callback.answer()


@router.callback_query(F.data.startswith("client:"))
async def client_bookings(callback: CallbackQuery, booking_service: BookingService):
    """Брони клиента"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return

    try:
        bookings, active = await booking_service.list_client_bookings(_parse_id(callback.data))
    except ValueError:
        await callback.answer("❌ Ошибка: неверные данные", show_alert=True)
        return
    if not bookings:
        await callback.answer("📭 У клиента нет броней", show_alert=True)
        return

    text = f"👤 {bookings[0].client_name or 'Клиент'}\n"
    text += f"Броней: {len(bookings)}, активных: {active}\n\n"
    for item in bookings[:CLIENT_BOOKINGS_SHOWN]:
        text += (
            f"{STATUS_EMOJI[item.status]} {localize_date(item.date)} "
            f"{item.start_time}–{item.end_time} {item.court_name or item.court_id}\n"
        )
    if len(bookings) > CLIENT_BOOKINGS_SHOWN:
        text += "..."
    await callback.message.answer(text)
    await callback.answer()


@router.callback_query(F.data.startswith("pay:"))
async def mark_paid(callback: CallbackQuery, booking_service: BookingService):
    """Отметить оплату"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    try:
        reservation = await booking_service.repository.get_reservation(_parse_id(callback.data))
        await booking_service.mark_paid(reservation)
        await _show_card(callback, booking_service, reservation.id)
    except BookingError as e:
        await callback.answer(f"❌ {e}", show_alert=True)
        return
    await callback.answer("✅ Оплата отмечена")


@router.callback_query(F.data.startswith("cancel:"))
async def cancel_request(callback: CallbackQuery):
    """Подтверждение отмены брони"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    reservation_id = _parse_id(callback.data)
    await callback.message.edit_reply_markup(
        reply_markup=confirm_keyboard(f"cancel_ok:{reservation_id}", f"res:{reservation_id}")
    )
    await callback.answer("Точно отменить?")


@router.callback_query(F.data.startswith("cancel_ok:"))
async def cancel_confirmed(
    callback: CallbackQuery,
    booking_service: BookingService,
    notification_service: NotificationService,
):
    """Подтверждённая отмена одной брони"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    try:
        reservation = await booking_service.repository.get_reservation(_parse_id(callback.data))
        already_canceled = reservation.is_canceled
        reservation = await booking_service.cancel_one(reservation)
    except BookingError as e:
        await callback.answer(f"❌ {e}", show_alert=True)
        return

    await callback.message.edit_text(
        "✅ БРОНЬ ОТМЕНЕНА\n\n" + format_reservation(reservation),
        reply_markup=booking_card_keyboard(reservation, False),
    )
    await callback.answer("✅ Отменено")

    if not already_canceled:
        await notification_service.notify_cancellation(
            reservation, actor_id=callback.from_user.id
        )


@router.callback_query(F.data.startswith("cancel_series:"))
async def cancel_series_request(callback: CallbackQuery):
    """Подтверждение отмены серии"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    reservation_id = _parse_id(callback.data)
    await callback.message.edit_reply_markup(
        reply_markup=confirm_keyboard(
            f"cancel_series_ok:{reservation_id}", f"res:{reservation_id}"
        )
    )
    await callback.answer("Отменить это и все следующие занятия серии?", show_alert=True)


@router.callback_query(F.data.startswith("cancel_series_ok:"))
async def cancel_series_confirmed(
    callback: CallbackQuery,
    booking_service: BookingService,
    notification_service: NotificationService,
):
    """Отмена серии начиная с выбранной даты"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    try:
        reservation = await booking_service.repository.get_reservation(_parse_id(callback.data))
    except BookingError as e:
        await callback.answer(f"❌ {e}", show_alert=True)
        return

    result = await booking_service.cancel_series_from_here(reservation)

    text = f"✅ Отменено бронирований: {result.canceled}"
    if result.failed:
        text += f"\n⚠️ Не удалось отменить: {result.failed}"
    await callback.message.edit_text(text + "\n\n" + format_reservation(reservation))
    await callback.answer()

    if result.canceled:
        await notification_service.notify_cancellation(
            reservation, canceled=result.canceled, actor_id=callback.from_user.id
        )


# === КОММЕНТАРИЙ ===


@router.callback_query(F.data.startswith("cmt:"))
async def comment_start(callback: CallbackQuery, state: FSMContext):
    """Запрос нового комментария"""
    if not is_admin(callback.from_user.id):
        await callback.answer()
        return
    await state.set_state(CommentStates.entering_comment)
    await state.update_data(reservation_id=_parse_id(callback.data))
    await callback.message.answer("✏️ Введите новый комментарий:")
    await callback.answer()


@router.message(CommentStates.entering_comment)
async def comment_entered(
    message: Message, state: FSMContext, booking_service: BookingService
):
    """Новый комментарий: для серии спрашиваем, куда применить"""
    data = await state.get_data()
    try:
        reservation = await booking_service.repository.get_reservation(data["reservation_id"])
    except (KeyError, NotFoundError):
        await state.clear()
        await message.answer("❌ Бронь не найдена", reply_markup=MAIN_MENU)
        return

    comment = (message.text or "").strip()
    members = await booking_service.series_members(reservation)

    if booking_service.comment_scope_required(reservation, comment, members):
        await state.update_data(comment=comment)
        await state.set_state(CommentStates.choosing_scope)
        await message.answer(
            f"Бронь входит в серию из {len(members)} занятий.\nПрименить комментарий:",
            reply_markup=comment_scope_keyboard(),
        )
        return

    await booking_service.edit_comment(reservation, comment, apply_to_whole_series=False)
    await state.clear()
    await message.answer("✅ Комментарий сохранён", reply_markup=MAIN_MENU)


@router.callback_query(CommentStates.choosing_scope, F.data.startswith("cmt_scope:"))
async def comment_scope(
    callback: CallbackQuery, state: FSMContext, booking_service: BookingService
):
    data = await state.get_data()
    await state.clear()
    try:
        reservation = await booking_service.repository.get_reservation(data["reservation_id"])
    except (KeyError, NotFoundError):
        await callback.answer("❌ Бронь не найдена", show_alert=True)
        return

    whole_series = callback.data.endswith(":all")
    result = await booking_service.edit_comment(
        reservation, data.get("comment", ""), apply_to_whole_series=whole_series
    )
    text = f"✅ Комментарий обновлён: {result.updated}"
    if result.failed:
        text += f"\n⚠️ Ошибок: {result.failed}"
    await callback.message.edit_text(text)
    await callback.answer()


# === ОБРАБОТЧИКИ ОШИБОК ===


@router.callback_query(F.data == "ignore")
async def ignore_callback(callback: CallbackQuery):
    await callback.answer()


@router.callback_query()
async def catch_all_callback(callback: CallbackQuery):
    """Обработчик для всех необработанных callback"""
    logging.warning(
        f"Unhandled callback: {callback.data} from user {callback.from_user.id}"
    )
    await callback.answer("⚠️ Устаревшая кнопка", show_alert=False)
