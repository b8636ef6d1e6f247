"""Тесты обработчиков консоли и уведомлений"""

import pytest

from database.models import ActivityKind, BookingStatus, RateSlot, RateTable
from handlers import booking_handlers, edit_handlers, schedule_handlers, settings_handlers
from services.exceptions import NotFoundError
from services.notification_service import NotificationService
from utils.states import BookingStates, CommentStates, EditStates, SettingsStates

MONDAY = "2025-03-03"


@pytest.fixture
def notification_service(mock_bot):
    return NotificationService(mock_bot, admin_ids=[12345, 67890])


class TestNotificationService:
    """Уведомления сотрудникам"""

    @pytest.mark.asyncio
    async def test_actor_not_notified(self, notification_service, mock_bot, make_reservation):
        sent = await notification_service.notify_new_booking(
            make_reservation(comment="Иванов"), actor_id=12345
        )

        assert sent == 1
        assert [msg["chat_id"] for msg in mock_bot.sent_messages] == [67890]
        assert "03.03.2025 10:00–11:00" in mock_bot.sent_messages[0]["text"]
        assert "Иванов" in mock_bot.sent_messages[0]["text"]

    @pytest.mark.asyncio
    async def test_failed_delivery_does_not_stop_others(self, mock_bot, make_reservation):
        async def failing_send(chat_id, text, **kwargs):
            if chat_id == 1:
                raise RuntimeError("bot was blocked by the user")
            mock_bot.sent_messages.append({"chat_id": chat_id, "text": text})

        mock_bot.send_message = failing_send
        service = NotificationService(mock_bot, admin_ids=[1, 2])

        sent = await service.notify_cancellation(make_reservation(), canceled=3)

        assert sent == 1
        assert "Отмена серии: 3" in mock_bot.sent_messages[0]["text"]

    @pytest.mark.asyncio
    async def test_series_notification(self, notification_service, mock_bot, make_reservation):
        await notification_service.notify_new_series(make_reservation(), created=3, skipped=1)

        assert len(mock_bot.sent_messages) == 2
        assert "Новая серия: 3 занятий, пропущено 1" in mock_bot.sent_messages[0]["text"]


class TestScheduleHandlers:
    """Расписание и карточка брони"""

    @pytest.mark.asyncio
    async def test_court_day(
        self, mock_callback_query, mock_state, booking_service, court_repository, make_draft
    ):
        await booking_service.create_booking(make_draft(comment="Иванов"))
        callback = mock_callback_query(data=f"court:1:{MONDAY}")

        await schedule_handlers.court_day(callback, mock_state, booking_service, court_repository)

        text = callback.message.edit_text.await_args.args[0]
        assert "Корт 1" in text
        assert "10:00–11:00" in text
        assert "Иванов" in text

    @pytest.mark.asyncio
    async def test_court_day_invalid_court(
        self, mock_callback_query, mock_state, booking_service, court_repository
    ):
        callback = mock_callback_query(data=f"court:99:{MONDAY}")

        await schedule_handlers.court_day(callback, mock_state, booking_service, court_repository)

        callback.message.edit_text.assert_not_awaited()
        callback.answer.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_admin_ignored(
        self, mock_callback_query, mock_state, booking_service, court_repository
    ):
        callback = mock_callback_query(data=f"court:1:{MONDAY}", user_id=555)

        await schedule_handlers.court_day(callback, mock_state, booking_service, court_repository)

        callback.message.edit_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_confirmed(
        self,
        mock_callback_query,
        booking_service,
        booking_repository,
        notification_service,
        mock_bot,
        make_draft,
    ):
        reservation = await booking_service.create_booking(make_draft())
        callback = mock_callback_query(data=f"cancel_ok:{reservation.id}")

        await schedule_handlers.cancel_confirmed(callback, booking_service, notification_service)

        stored = await booking_repository.get_reservation(reservation.id)
        assert stored.status == BookingStatus.CANCELED
        assert [msg["chat_id"] for msg in mock_bot.sent_messages] == [67890]

    @pytest.mark.asyncio
    async def test_comment_asks_scope_for_series(
        self, mock_message, mock_state, booking_service, booking_repository, make_draft
    ):
        result = await booking_service.create_series(
            make_draft(activity=ActivityKind.REGULAR), session_count=2
        )
        await mock_state.set_state(CommentStates.entering_comment)
        await mock_state.update_data(reservation_id=result.created_ids[0])

        await schedule_handlers.comment_entered(
            mock_message(text="Новый комментарий"), mock_state, booking_service
        )

        assert await mock_state.get_state() == CommentStates.choosing_scope.state
        assert (await mock_state.get_data())["comment"] == "Новый комментарий"


class TestBookingFlow:
    """Создание брони через консоль"""

    @pytest.mark.asyncio
    async def test_one_time_paid_booking(
        self,
        mock_callback_query,
        mock_state,
        booking_service,
        booking_repository,
        pricing_repository,
        notification_service,
        mock_bot,
    ):
        await booking_handlers.booking_start(
            mock_callback_query(data=f"slot:1:{MONDAY}:10:00"), mock_state, booking_service
        )
        assert await mock_state.get_state() == BookingStates.choosing_duration.state

        await booking_handlers.duration_chosen(mock_callback_query(data="dur:90"), mock_state)
        assert (await mock_state.get_data())["end_time"] == "11:30"

        await booking_handlers.activity_chosen(mock_callback_query(data="act:one_time"), mock_state)
        assert await mock_state.get_state() == BookingStates.entering_client.state

        await booking_handlers.client_skipped(mock_callback_query(data="skip_client"), mock_state)
        assert await mock_state.get_state() == BookingStates.entering_comment.state

        await booking_handlers.comment_skipped(mock_callback_query(data="skip_comment"), mock_state)
        assert await mock_state.get_state() == BookingStates.choosing_paid.state

        final = mock_callback_query(data="paid:1")
        await booking_handlers.paid_chosen(
            final, mock_state, booking_service, pricing_repository, notification_service
        )

        stored = await booking_repository.list_reservations(1, MONDAY)
        assert len(stored) == 1
        assert stored[0].end_time == "11:30"
        assert stored[0].status == BookingStatus.CONFIRMED
        assert await mock_state.get_state() is None
        assert len(mock_bot.sent_messages) == 1

    @pytest.mark.asyncio
    async def test_unpaid_one_time_offers_payment_link(
        self,
        mock_callback_query,
        mock_state,
        booking_service,
        pricing_repository,
        notification_service,
    ):
        await mock_state.set_state(BookingStates.choosing_paid)
        await mock_state.update_data(
            court_id=1, date=MONDAY, start_time="10:00", end_time="11:00", activity="one_time"
        )

        await booking_handlers.paid_chosen(
            mock_callback_query(data="paid:0"),
            mock_state,
            booking_service,
            pricing_repository,
            notification_service,
        )

        assert await mock_state.get_state() == BookingStates.choosing_payment_link.state

    @pytest.mark.asyncio
    async def test_conflict_reported(
        self,
        mock_callback_query,
        mock_state,
        booking_service,
        booking_repository,
        pricing_repository,
        notification_service,
        mock_bot,
        make_draft,
    ):
        await booking_service.create_booking(make_draft())
        await mock_state.set_state(BookingStates.choosing_paid)
        await mock_state.update_data(
            court_id=1, date=MONDAY, start_time="10:30", end_time="11:30", activity="tournament"
        )
        callback = mock_callback_query(data="paid:1")

        await booking_handlers.paid_chosen(
            callback, mock_state, booking_service, pricing_repository, notification_service
        )

        assert "уже занят" in callback.message.edit_text.await_args.args[0]
        assert len(await booking_repository.list_reservations(1, MONDAY)) == 1
        assert mock_bot.sent_messages == []

    @pytest.mark.asyncio
    async def test_sessions_validated(self, mock_message, mock_state):
        await mock_state.set_state(BookingStates.entering_sessions)

        await booking_handlers.sessions_entered(mock_message(text="100"), mock_state)
        assert await mock_state.get_state() == BookingStates.entering_sessions.state

        await booking_handlers.sessions_entered(mock_message(text="8"), mock_state)
        assert await mock_state.get_state() == BookingStates.entering_comment.state
        assert (await mock_state.get_data())["session_count"] == 8


def _callbacks(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


class TestConsoleViews:
    """Неделя корта, брони клиента и права доступа"""

    @pytest.mark.asyncio
    async def test_court_week(
        self, mock_callback_query, booking_service, court_repository, make_draft
    ):
        await booking_service.create_booking(make_draft(comment="Иванов"))
        await booking_service.create_booking(
            make_draft(date="2025-03-05", start_time="18:00", end_time="19:30")
        )
        callback = mock_callback_query(data="week:1:2025-03-06")

        await schedule_handlers.court_week(callback, booking_service, court_repository)

        text = callback.message.edit_text.await_args.args[0]
        assert "03.03.2025" in text and "09.03.2025" in text
        assert "10:00–11:00" in text and "Иванов" in text
        assert "18:00–19:30" in text
        assert "свободно" in text

        markup = callback.message.edit_text.await_args.kwargs["reply_markup"]
        assert "week:1:2025-03-10" in _callbacks(markup)
        assert f"court:1:{MONDAY}" in _callbacks(markup)

    @pytest.mark.asyncio
    async def test_client_bookings(
        self, mock_callback_query, booking_service, client_repository, make_draft
    ):
        client_id = await client_repository.ensure_client("Петров Пётр")
        first = await booking_service.create_booking(
            make_draft(client_id=client_id, client_name="Петров Пётр")
        )
        await booking_service.create_booking(
            make_draft(date="2025-03-04", client_id=client_id, client_name="Петров Пётр")
        )
        await booking_service.cancel_one(first)
        callback = mock_callback_query(data=f"client:{client_id}")

        await schedule_handlers.client_bookings(callback, booking_service)

        text = callback.message.answer.await_args.args[0]
        assert "Петров Пётр" in text
        assert "Броней: 2, активных: 1" in text

    @pytest.mark.asyncio
    async def test_client_without_bookings(self, mock_callback_query, booking_service):
        callback = mock_callback_query(data="client:42")

        await schedule_handlers.client_bookings(callback, booking_service)

        callback.message.answer.assert_not_awaited()
        assert "нет броней" in callback.answer.await_args.args[0]

    @pytest.mark.asyncio
    async def test_one_off_card_has_no_series_action(
        self, mock_callback_query, booking_service, make_draft
    ):
        await booking_service.create_series(
            make_draft(date="2025-02-24", activity=ActivityKind.REGULAR), session_count=3
        )
        one_off = await booking_service.create_booking(make_draft(date="2025-03-17"))
        callback = mock_callback_query(data=f"res:{one_off.id}")

        await schedule_handlers.booking_card(callback, booking_service)

        actions = _callbacks(callback.message.edit_text.await_args.kwargs["reply_markup"])
        assert f"cancel:{one_off.id}" in actions
        assert f"edit:{one_off.id}" in actions
        assert f"cancel_series:{one_off.id}" not in actions

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "handler, data",
        [
            (schedule_handlers.cancel_request, "cancel:1"),
            (schedule_handlers.cancel_series_request, "cancel_series:1"),
            (edit_handlers.delete_request, "del:1"),
        ],
    )
    async def test_confirmations_require_admin(self, mock_callback_query, handler, data):
        callback = mock_callback_query(data=data, user_id=555)

        await handler(callback)

        callback.message.edit_reply_markup.assert_not_awaited()
        callback.answer.assert_awaited_once_with()


class TestEditFlow:
    """Изменение и удаление брони"""

    @pytest.mark.asyncio
    async def test_edit_menu(self, mock_callback_query, mock_state, booking_service, make_draft):
        reservation = await booking_service.create_booking(
            make_draft(activity=ActivityKind.PERSONAL_TRAINING)
        )
        callback = mock_callback_query(data=f"edit:{reservation.id}")

        await edit_handlers.edit_menu(callback, mock_state, booking_service)

        actions = _callbacks(callback.message.edit_text.await_args.kwargs["reply_markup"])
        assert f"edit_time:{reservation.id}" in actions
        assert f"edit_coach:{reservation.id}" in actions

    @pytest.mark.asyncio
    async def test_change_time(
        self,
        mock_callback_query,
        mock_message,
        mock_state,
        booking_service,
        booking_repository,
        make_draft,
    ):
        reservation = await booking_service.create_booking(make_draft())

        await edit_handlers.edit_time_start(
            mock_callback_query(data=f"edit_time:{reservation.id}"), mock_state
        )
        assert await mock_state.get_state() == EditStates.entering_start.state

        await edit_handlers.edit_start_entered(mock_message(text="12:00"), mock_state, booking_service)
        assert await mock_state.get_state() == EditStates.choosing_duration.state

        callback = mock_callback_query(data="dur:90")
        await edit_handlers.edit_duration_chosen(callback, mock_state, booking_service)

        stored = await booking_repository.get_reservation(reservation.id)
        assert (stored.start_time, stored.end_time) == ("12:00", "13:30")
        assert await mock_state.get_state() is None
        assert "БРОНЬ ИЗМЕНЕНА" in callback.message.answer.await_args.args[0]

    @pytest.mark.asyncio
    async def test_change_time_into_taken_slot(
        self,
        mock_callback_query,
        mock_state,
        booking_service,
        booking_repository,
        make_draft,
    ):
        reservation = await booking_service.create_booking(make_draft())
        await booking_service.create_booking(make_draft(start_time="14:00", end_time="15:00"))
        await mock_state.set_state(EditStates.choosing_duration)
        await mock_state.update_data(reservation_id=reservation.id, start_time="14:30")
        callback = mock_callback_query(data="dur:60")

        await edit_handlers.edit_duration_chosen(callback, mock_state, booking_service)

        stored = await booking_repository.get_reservation(reservation.id)
        assert (stored.start_time, stored.end_time) == ("10:00", "11:00")
        assert "уже занят" in callback.message.answer.await_args.args[0]
        assert await mock_state.get_state() == EditStates.entering_start.state

    @pytest.mark.asyncio
    async def test_start_after_closing_rejected(self, mock_message, mock_state, booking_service):
        await mock_state.set_state(EditStates.entering_start)
        await mock_state.update_data(reservation_id=1)

        await edit_handlers.edit_start_entered(mock_message(text="22:00"), mock_state, booking_service)

        assert await mock_state.get_state() == EditStates.entering_start.state

    @pytest.mark.asyncio
    async def test_change_activity(
        self, mock_callback_query, mock_state, booking_service, booking_repository, make_draft
    ):
        reservation = await booking_service.create_booking(make_draft())

        await edit_handlers.edit_activity_start(
            mock_callback_query(data=f"edit_act:{reservation.id}"), mock_state
        )
        await edit_handlers.edit_activity_chosen(
            mock_callback_query(data="act:tournament"), mock_state, booking_service
        )

        stored = await booking_repository.get_reservation(reservation.id)
        assert stored.activity == ActivityKind.TOURNAMENT
        assert await mock_state.get_state() is None

    @pytest.mark.asyncio
    async def test_delete_confirmed(
        self, mock_callback_query, booking_service, booking_repository, make_draft
    ):
        reservation = await booking_service.create_booking(make_draft())
        await booking_service.cancel_one(reservation)
        callback = mock_callback_query(data=f"del_ok:{reservation.id}")

        await edit_handlers.delete_confirmed(callback, booking_service)

        with pytest.raises(NotFoundError):
            await booking_repository.get_reservation(reservation.id)
        assert "БРОНЬ УДАЛЕНА" in callback.message.edit_text.await_args.args[0]


class TestSettingsFlow:
    """Часы работы и прайс"""

    @pytest.mark.asyncio
    async def test_change_opening_hours(
        self, mock_message, mock_state, booking_service, court_repository
    ):
        await mock_state.set_state(SettingsStates.entering_hours)

        await settings_handlers.hours_entered(
            mock_message(text="07:00-23:00"), mock_state, booking_service, court_repository
        )

        stored = await court_repository.get_settings()
        assert (stored.opening_time, stored.closing_time) == ("07:00", "23:00")
        assert booking_service.facility.closing_time == "23:00"
        assert await mock_state.get_state() is None

    @pytest.mark.asyncio
    async def test_invalid_hours_rejected(
        self, mock_message, mock_state, booking_service, court_repository
    ):
        await mock_state.set_state(SettingsStates.entering_hours)

        await settings_handlers.hours_entered(
            mock_message(text="22:00-08:00"), mock_state, booking_service, court_repository
        )

        assert booking_service.facility.opening_time == "08:00"
        assert (await court_repository.get_settings()).updated_at is None
        assert await mock_state.get_state() == SettingsStates.entering_hours.state

    @pytest.mark.asyncio
    async def test_weekday_rates_saved(
        self, mock_callback_query, mock_message, mock_state, pricing_repository
    ):
        weekend = [RateSlot("08:00", "22:00", 2000)]
        await pricing_repository.replace_rate_table(RateTable(weekend=weekend))

        await settings_handlers.rates_start(
            mock_callback_query(data="set_rates:weekday"), mock_state, pricing_repository
        )
        assert await mock_state.get_state() == SettingsStates.entering_rates.state

        await settings_handlers.rates_entered(
            mock_message(text="08:00-17:00 1000\n17:00-22:00 1500"), mock_state, pricing_repository
        )

        table = await pricing_repository.get_rate_table()
        assert table.weekday == [
            RateSlot("08:00", "17:00", 1000),
            RateSlot("17:00", "22:00", 1500),
        ]
        assert table.weekend == weekend
        assert await mock_state.get_state() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["12:00-10:00 1000", "08:00-17:00 -5", "утро 1000"])
    async def test_invalid_rates_not_saved(
        self, mock_message, mock_state, pricing_repository, text
    ):
        await mock_state.set_state(SettingsStates.entering_rates)
        await mock_state.update_data(day_class="weekend")

        message = mock_message(text=text)
        await settings_handlers.rates_entered(message, mock_state, pricing_repository)

        assert (await pricing_repository.get_rate_table()).is_empty()
        assert await mock_state.get_state() == SettingsStates.entering_rates.state
        assert "Не удалось разобрать прайс" in message.answer.await_args.args[0]
