"""Сервис управления бронированием

Жизненный цикл брони: hold → confirmed, hold|confirmed → canceled.
Из canceled переходов нет. Серийные операции (отмена с даты,
комментарий на всю серию) выполняются по одной брони и не
прерываются на первой ошибке.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from database.models import (
    ActivityKind,
    BookingStatus,
    FacilitySettings,
    RateTable,
    Reservation,
    ReservationDraft,
)
from database.repositories.booking_repository import BookingRepository
from services.conflicts import find_conflicts
from services.exceptions import (
    ConflictError,
    ExternalServiceError,
    InvalidTransitionError,
    ValidationError,
)
from services.payment_service import YooKassaGateway, build_description
from services.pricing import has_pricing, price_for
from services.recurrence import (
    SeriesExpansion,
    expand_series,
    resolve_session_count,
    series_end_date,
)
from services.schedule_service import group_by_date, week_days
from services.series import DEFAULT_SERIES_KEY, SeriesKey, members_from_date, series_members
from utils.datetime_utils import parse_date, time_to_minutes

# Поля, которые можно менять при редактировании брони
EDITABLE_FIELDS = {
    "court_id",
    "date",
    "start_time",
    "end_time",
    "activity",
    "comment",
    "coach",
    "client_id",
    "client_name",
}
SLOT_FIELDS = {"court_id", "date", "start_time", "end_time"}


@dataclass
class BookingResult:
    """Результат создания разовой брони со ссылкой на оплату"""

    reservation: Reservation
    payment_url: Optional[str] = None
    payment_error: Optional[str] = None


@dataclass
class BatchResult:
    """Результат пакетной операции над серией"""

    succeeded_ids: List[int] = field(default_factory=list)
    failed_ids: List[int] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.succeeded_ids)

    @property
    def failed(self) -> int:
        return len(self.failed_ids)


class SeriesCancellation(BatchResult):
    @property
    def canceled(self) -> int:
        return self.succeeded


class CommentUpdate(BatchResult):
    @property
    def updated(self) -> int:
        return self.succeeded


class BookingService:
    """Сервис для работы с бронированием"""

    def __init__(
        self,
        repository: BookingRepository,
        payment_gateway: Optional[YooKassaGateway] = None,
        facility: Optional[FacilitySettings] = None,
        series_key: SeriesKey = DEFAULT_SERIES_KEY,
    ):
        self.repository = repository
        self.payment_gateway = payment_gateway
        self.facility = facility
        self.series_key = series_key

    # === ВАЛИДАЦИЯ ===

    def validate_draft(self, draft: ReservationDraft) -> ReservationDraft:
        """Проверка и нормализация данных брони

        Raises:
            ValidationError: неверная дата/время, пустая длительность
                или выход за часы работы клуба
        """
        try:
            parse_date(draft.date)
            start = time_to_minutes(draft.start_time)
            end = time_to_minutes(draft.end_time)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if start >= end:
            raise ValidationError("Booking duration must be positive")

        if self.facility:
            opening = time_to_minutes(self.facility.opening_time)
            closing = time_to_minutes(self.facility.closing_time)
            if start < opening or end > closing:
                raise ValidationError(
                    f"Booking must fit into opening hours "
                    f"{self.facility.opening_time}-{self.facility.closing_time}"
                )

        coach = (draft.coach or "").strip()
        client_name = (draft.client_name or "").strip()
        return replace(
            draft,
            comment=(draft.comment or "").strip(),
            coach=coach if coach and draft.activity.allows_coach else None,
            client_name=client_name or None,
        )

    async def _snapshot(self, court_id: int, start_date: str, end_date: Optional[str] = None):
        return await self.repository.list_reservations(
            court_id, (start_date, end_date or start_date), include_canceled=False
        )

    # === СОЗДАНИЕ ===

    async def create_booking(
        self,
        draft: ReservationDraft,
        paid: bool = False,
        existing: Optional[Sequence[Reservation]] = None,
    ) -> Reservation:
        """Создание разовой брони

        Args:
            draft: данные брони
            paid: оплачена ли бронь сразу (confirmed), иначе hold
            existing: снимок броней для проверки; None - загрузить из БД

        Raises:
            ValidationError, ConflictError, NotFoundError, ExternalServiceError
        """
        draft = self.validate_draft(draft)
        if existing is None:
            existing = await self._snapshot(draft.court_id, draft.date)

        conflicts = find_conflicts(draft, existing)
        if conflicts:
            logging.info(
                f"Slot {draft.date} {draft.start_time}-{draft.end_time} "
                f"on court {draft.court_id} not available"
            )
            raise ConflictError("Slot is already taken", conflicts)

        status = BookingStatus.CONFIRMED if paid else BookingStatus.HOLD
        reservation_id = await self.repository.create_reservation(draft, status=status)
        logging.info(f"Booking created: {reservation_id} ({status.value})")
        return await self.repository.get_reservation(reservation_id)

    async def create_booking_with_payment_link(
        self,
        draft: ReservationDraft,
        amount: Optional[int] = None,
        rate_table: Optional[RateTable] = None,
        court_name: Optional[str] = None,
        return_url: Optional[str] = None,
        existing: Optional[Sequence[Reservation]] = None,
    ) -> BookingResult:
        """Неоплаченная бронь + ссылка на оплату

        Сумма берётся из прайса, если он есть, иначе из amount.
        Сбой ЮKassa не откатывает бронь: она остаётся сохранённой,
        ошибка возвращается в payment_error.

        Raises:
            ValidationError: если бронь не разовая или сумму не удалось
                определить (до записи в БД)
        """
        draft = self.validate_draft(draft)
        if draft.activity != ActivityKind.ONE_TIME:
            raise ValidationError("Payment links are available for one-time bookings only")
        if has_pricing(rate_table):
            amount = price_for(rate_table, draft.date, draft.start_time, draft.end_time)
        if not amount or amount <= 0:
            raise ValidationError("Payment amount must be positive")

        reservation = await self.create_booking(draft, paid=False, existing=existing)

        if self.payment_gateway is None:
            return BookingResult(reservation, payment_error="Payment provider is not configured")

        description = build_description(
            court_name or reservation.court_name or str(reservation.court_id),
            reservation.date,
            reservation.start_time,
            reservation.end_time,
            reservation.comment,
        )
        try:
            url = await self.payment_gateway.create_payment_link(
                amount, description, return_url
            )
        except (ExternalServiceError, ValidationError) as e:
            logging.error(f"Payment link failed for booking {reservation.id}: {e}")
            return BookingResult(reservation, payment_error=str(e))

        return BookingResult(reservation, payment_url=url)

    async def create_series(
        self,
        draft: ReservationDraft,
        end_date: Optional[str] = None,
        session_count: Optional[int] = None,
        paid: bool = False,
        existing: Optional[Sequence[Reservation]] = None,
    ) -> SeriesExpansion:
        """Создание еженедельной серии (группа, регулярная бронь)

        Конфликтующие даты пропускаются, итог - в SeriesExpansion.outcome.

        Raises:
            ValidationError: если тип брони не серийный или параметры серии неверны
        """
        draft = self.validate_draft(draft)
        if not draft.activity.is_recurring:
            raise ValidationError(f"Activity {draft.activity.value} is not recurring")

        count = resolve_session_count(draft.date, end_date, session_count)
        last_date = series_end_date(draft.date, count)
        series_id = uuid.uuid4().hex
        status = BookingStatus.CONFIRMED if paid else BookingStatus.HOLD

        if existing is None:
            existing = await self._snapshot(draft.court_id, draft.date, last_date)

        async def create_one(occurrence: ReservationDraft):
            return await self.repository.create_reservation(
                occurrence,
                status=status,
                is_recurring=True,
                recurring_end_date=last_date,
                series_id=series_id,
            )

        result = await expand_series(draft, existing, create_one, session_count=count)
        result.series_id = series_id
        return result

    # === ИЗМЕНЕНИЕ ===

    async def mark_paid(self, reservation: Reservation) -> Reservation:
        """hold → confirmed

        Raises:
            InvalidTransitionError: если бронь отменена
        """
        if reservation.is_canceled:
            raise InvalidTransitionError("Canceled booking cannot be paid")
        if reservation.status == BookingStatus.CONFIRMED:
            return reservation

        await self.repository.update_reservation(
            reservation.id, {"status": BookingStatus.CONFIRMED}
        )
        logging.info(f"Booking {reservation.id} marked as paid")
        return replace(reservation, status=BookingStatus.CONFIRMED)

    async def update_booking(self, reservation: Reservation, **changes) -> Reservation:
        """Редактирование брони

        При смене корта, даты или времени слот проверяется заново
        (без учёта самой брони).

        Raises:
            ValidationError, InvalidTransitionError, ConflictError
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {sorted(unknown)}")
        if reservation.is_canceled:
            raise InvalidTransitionError("Canceled booking cannot be edited")

        current = ReservationDraft(
            court_id=reservation.court_id,
            date=reservation.date,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            activity=reservation.activity,
            comment=reservation.comment,
            coach=reservation.coach,
            client_id=reservation.client_id,
            client_name=reservation.client_name,
        )
        draft = self.validate_draft(replace(current, **changes))

        if SLOT_FIELDS & set(changes):
            existing = await self._snapshot(draft.court_id, draft.date)
            conflicts = find_conflicts(draft, existing, exclude_id=reservation.id)
            if conflicts:
                raise ConflictError("Slot is already taken", conflicts)

        patch = {
            name: getattr(draft, name)
            for name in EDITABLE_FIELDS
            if getattr(draft, name) != getattr(reservation, name)
        }
        if patch:
            await self.repository.update_reservation(reservation.id, patch)
            logging.info(f"Booking {reservation.id} updated: {sorted(patch)}")
        return replace(reservation, **patch)

    async def cancel_one(self, reservation: Reservation) -> Reservation:
        """Отмена одной брони (повторная отмена ничего не делает)"""
        if reservation.is_canceled:
            return reservation

        await self.repository.update_reservation(
            reservation.id, {"status": BookingStatus.CANCELED}
        )
        logging.info(f"Booking {reservation.id} canceled")
        return replace(reservation, status=BookingStatus.CANCELED)

    async def delete_booking(self, reservation: Reservation) -> None:
        """Удаление брони без сохранения истории (обычно нужна отмена)"""
        await self.repository.delete_reservation(reservation.id)

    # === СЕРИИ ===

    async def _series_candidates(self, reservation: Reservation) -> List[Reservation]:
        # Разовая бронь - серия из одного занятия
        if not reservation.is_recurring and not reservation.series_id:
            return [reservation]

        candidates = await self.repository.list_series_candidates(
            reservation.court_id, reservation.start_time, reservation.end_time
        )
        if reservation.series_id:
            known = {item.id for item in candidates}
            candidates.extend(
                item
                for item in await self.repository.list_by_series_id(reservation.series_id)
                if item.id not in known
            )
        return candidates

    async def series_members(
        self,
        reservation: Reservation,
        reservations: Optional[Sequence[Reservation]] = None,
    ) -> List[Reservation]:
        """Неотменённые занятия серии брони"""
        if reservations is None:
            reservations = await self._series_candidates(reservation)
        return series_members(reservation, reservations, self.series_key)

    async def cancel_series_from_here(
        self,
        reservation: Reservation,
        reservations: Optional[Sequence[Reservation]] = None,
    ) -> SeriesCancellation:
        """Отмена занятий серии с даты брони и позже

        Прошедшие занятия серии не трогаются. Ошибка на одном занятии
        не останавливает отмену остальных.
        """
        if reservations is None:
            reservations = await self._series_candidates(reservation)

        result = SeriesCancellation()
        for item in members_from_date(reservation, reservations, self.series_key):
            try:
                await self.repository.update_reservation(
                    item.id, {"status": BookingStatus.CANCELED}
                )
                result.succeeded_ids.append(item.id)
            except Exception as e:
                logging.error(f"Failed to cancel series booking {item.id}: {e}")
                result.failed_ids.append(item.id)

        logging.info(
            f"Series of booking {reservation.id} canceled from {reservation.date}: "
            f"{result.canceled} canceled, {result.failed} failed"
        )
        return result

    @staticmethod
    def comment_scope_required(
        reservation: Reservation, new_comment: str, members: Sequence[Reservation]
    ) -> bool:
        """Нужно ли спрашивать, применить комментарий ко всей серии"""
        changed = (new_comment or "").strip() != (reservation.comment or "")
        return changed and len(members) > 1

    async def edit_comment(
        self,
        reservation: Reservation,
        new_comment: str,
        apply_to_whole_series: bool,
        reservations: Optional[Sequence[Reservation]] = None,
    ) -> CommentUpdate:
        """Изменить комментарий брони или всех неотменённых занятий серии"""
        comment = (new_comment or "").strip()

        if apply_to_whole_series:
            targets = await self.series_members(reservation, reservations)
        else:
            targets = [reservation]

        result = CommentUpdate()
        for item in targets:
            try:
                await self.repository.update_reservation(item.id, {"comment": comment})
                result.succeeded_ids.append(item.id)
            except Exception as e:
                logging.error(f"Failed to update comment of booking {item.id}: {e}")
                result.failed_ids.append(item.id)
        return result

    # === ЧТЕНИЕ ===

    async def list_day(
        self, court_id: Optional[int], date_str: str, include_canceled: bool = False
    ) -> List[Reservation]:
        return await self.repository.list_reservations(
            court_id, date_str, include_canceled=include_canceled
        )

    async def list_week(self, court_id: int, date_str: str) -> Dict[str, List[Reservation]]:
        """Неотменённые брони корта за неделю (Пн-Вс) по дням"""
        days = week_days(date_str)
        reservations = await self.repository.list_reservations(
            court_id, (days[0], days[-1]), include_canceled=False
        )
        grouped = group_by_date(reservations)
        return {day: grouped.get(day, []) for day in days}

    async def list_client_bookings(self, client_id: int):
        """Брони клиента и количество активных"""
        bookings = await self.repository.list_for_client(client_id)
        active = sum(1 for item in bookings if not item.is_canceled)
        return bookings, active
