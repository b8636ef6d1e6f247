"""Репозиторий для работы с бронями"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import aiosqlite

from database.base_repository import BaseRepository
from database.models import ActivityKind, BookingStatus, Reservation, ReservationDraft
from services.exceptions import NotFoundError
from utils.helpers import now_local

_SELECT = """SELECT r.*, c.name AS court_name
    FROM reservations r LEFT JOIN courts c ON c.id = r.court_id"""

# Поля, которые можно менять через update_reservation
UPDATABLE_FIELDS = {
    "court_id",
    "date",
    "start_time",
    "end_time",
    "activity",
    "comment",
    "status",
    "coach",
    "client_id",
    "client_name",
    "is_recurring",
    "recurring_end_date",
    "series_id",
}


def _to_db(value: Any) -> Any:
    if isinstance(value, (ActivityKind, BookingStatus)):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


class BookingRepository(BaseRepository):
    """Хранилище броней (система учёта)"""

    @staticmethod
    def _row_to_reservation(row: aiosqlite.Row) -> Reservation:
        return Reservation(
            id=row["id"],
            court_id=row["court_id"],
            date=row["date"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            activity=ActivityKind(row["activity"]),
            comment=row["comment"] or "",
            status=BookingStatus(row["status"]),
            coach=row["coach"],
            client_id=row["client_id"],
            client_name=row["client_name"],
            is_recurring=bool(row["is_recurring"]),
            recurring_end_date=row["recurring_end_date"],
            series_id=BaseRepository._value(row, "series_id"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            court_name=row["court_name"],
        )

    async def _fetch(self, where: str, params: Tuple = ()) -> List[Reservation]:
        rows = await self._execute_query(
            f"{_SELECT} WHERE {where} ORDER BY r.date, r.start_time, r.id",
            params,
            fetch_all=True,
        )
        return [self._row_to_reservation(row) for row in rows or []]

    async def list_reservations(
        self,
        court_id: Optional[int],
        date_or_range: Union[str, Tuple[str, str]],
        include_canceled: bool = True,
    ) -> List[Reservation]:
        """Брони корта на дату или диапазон дат (включительно)

        Args:
            court_id: id корта; None - все корты
            date_or_range: "YYYY-MM-DD" или (начало, конец)
            include_canceled: включать отменённые
        """
        if isinstance(date_or_range, str):
            start_date = end_date = date_or_range
        else:
            start_date, end_date = date_or_range

        where = "r.date >= ? AND r.date <= ?"
        params: list = [start_date, end_date]
        if court_id is not None:
            where += " AND r.court_id = ?"
            params.append(court_id)
        if not include_canceled:
            where += " AND r.status != 'canceled'"

        return await self._fetch(where, tuple(params))

    async def list_series_candidates(
        self, court_id: int, start_time: str, end_time: str
    ) -> List[Reservation]:
        """Брони с тем же кортом и временем (кандидаты в серию)"""
        return await self._fetch(
            "r.court_id = ? AND r.start_time = ? AND r.end_time = ?",
            (court_id, start_time, end_time),
        )

    async def list_by_series_id(self, series_id: str) -> List[Reservation]:
        return await self._fetch("r.series_id = ?", (series_id,))

    async def list_for_client(self, client_id: int) -> List[Reservation]:
        return await self._fetch("r.client_id = ?", (client_id,))

    async def get_reservation(self, reservation_id: int) -> Reservation:
        """Бронь по id

        Raises:
            NotFoundError: если брони нет
        """
        rows = await self._fetch("r.id = ?", (reservation_id,))
        if not rows:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return rows[0]

    async def create_reservation(
        self,
        draft: ReservationDraft,
        status: BookingStatus = BookingStatus.HOLD,
        is_recurring: bool = False,
        recurring_end_date: Optional[str] = None,
        series_id: Optional[str] = None,
    ) -> int:
        """Сохранить бронь, вернуть её id

        Raises:
            NotFoundError: если корт не существует
        """
        if not await self._exists("courts", "id=?", (draft.court_id,)):
            raise NotFoundError(f"Court {draft.court_id} not found")

        now = now_local().isoformat()
        row_id, _ = await self._execute_query(
            """INSERT INTO reservations
            (court_id, date, start_time, end_time, activity, comment, status,
             coach, client_id, client_name, is_recurring, recurring_end_date,
             series_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                draft.court_id,
                draft.date,
                draft.start_time,
                draft.end_time,
                draft.activity.value,
                draft.comment,
                status.value,
                draft.coach,
                draft.client_id,
                draft.client_name,
                int(is_recurring),
                recurring_end_date,
                series_id,
                now,
                now,
            ),
            commit=True,
        )
        logging.info(
            f"Reservation {row_id} created: court {draft.court_id} "
            f"{draft.date} {draft.start_time}-{draft.end_time}"
        )
        return row_id

    async def update_reservation(self, reservation_id: int, patch: Dict[str, Any]) -> None:
        """Частичное обновление брони

        Raises:
            ValueError: если в patch есть неизвестные поля
            NotFoundError: если брони нет
        """
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown reservation fields: {sorted(unknown)}")
        if not patch:
            return

        fields = sorted(patch)
        assignments = ", ".join(f"{name}=?" for name in fields)
        params = [_to_db(patch[name]) for name in fields]
        params.extend([now_local().isoformat(), reservation_id])

        _, rowcount = await self._execute_query(
            f"UPDATE reservations SET {assignments}, updated_at=? WHERE id=?",
            params,
            commit=True,
        )
        if rowcount == 0:
            raise NotFoundError(f"Reservation {reservation_id} not found")

    async def delete_reservation(self, reservation_id: int) -> None:
        """Удаление брони (не отмена)

        Raises:
            NotFoundError: если брони нет
        """
        _, rowcount = await self._execute_query(
            "DELETE FROM reservations WHERE id=?", (reservation_id,), commit=True
        )
        if rowcount == 0:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        logging.info(f"Reservation {reservation_id} deleted")
