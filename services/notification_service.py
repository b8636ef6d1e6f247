"""Сервис уведомлений"""

import logging
from typing import Iterable, Optional

from aiogram import Bot

from config import ADMIN_IDS
from database.models import Reservation
from utils.datetime_utils import localize_date


class NotificationService:
    """Уведомления сотрудникам о действиях коллег"""

    def __init__(self, bot: Bot, admin_ids: Optional[Iterable[int]] = None):
        self.bot = bot
        self.admin_ids = list(ADMIN_IDS if admin_ids is None else admin_ids)

    async def _broadcast(self, text: str, actor_id: Optional[int] = None) -> int:
        """Отправить всем сотрудникам, кроме автора действия"""
        sent = 0
        for admin_id in self.admin_ids:
            if admin_id == actor_id:
                continue
            try:
                await self.bot.send_message(admin_id, text)
                sent += 1
            except Exception as e:
                logging.error(f"Failed to notify admin {admin_id}: {e}")
        return sent

    @staticmethod
    def _describe(reservation: Reservation) -> str:
        court = reservation.court_name or f"корт {reservation.court_id}"
        text = (
            f"{localize_date(reservation.date)} "
            f"{reservation.start_time}–{reservation.end_time}, {court}\n"
            f"{reservation.activity.label}"
        )
        if reservation.comment:
            text += f"\n{reservation.comment}"
        return text

    async def notify_new_booking(
        self, reservation: Reservation, actor_id: Optional[int] = None
    ) -> int:
        """Уведомление о новой брони"""
        return await self._broadcast(
            f"🔔 Новая бронь\n\n{self._describe(reservation)}", actor_id
        )

    async def notify_new_series(
        self,
        reservation: Reservation,
        created: int,
        skipped: int,
        actor_id: Optional[int] = None,
    ) -> int:
        """Уведомление о новой серии"""
        text = (
            f"🔁 Новая серия: {created} занятий"
            + (f", пропущено {skipped}" if skipped else "")
            + f"\n\n{self._describe(reservation)}"
        )
        return await self._broadcast(text, actor_id)

    async def notify_cancellation(
        self, reservation: Reservation, canceled: int = 1, actor_id: Optional[int] = None
    ) -> int:
        """Уведомление об отмене брони или части серии"""
        header = "❌ Отмена" if canceled == 1 else f"❌ Отмена серии: {canceled} занятий"
        return await self._broadcast(f"{header}\n\n{self._describe(reservation)}", actor_id)
