"""Репозиторий для кортов, настроек клуба и прайса"""

import logging
from typing import List, Optional

from database.base_repository import BaseRepository
from database.models import Court, DayClass, FacilitySettings, RateSlot, RateTable
from services.exceptions import NotFoundError
from utils.helpers import now_local


class CourtRepository(BaseRepository):
    """Репозиторий для кортов"""

    async def list_courts(self) -> List[Court]:
        """Все корты в порядке отображения"""
        rows = await self._execute_query(
            "SELECT * FROM courts ORDER BY display_order, name", fetch_all=True
        )
        return [
            Court(
                id=row["id"],
                name=row["name"],
                display_order=row["display_order"],
                created_at=row["created_at"],
            )
            for row in rows or []
        ]

    async def get_court(self, court_id: int) -> Court:
        """Корт по id

        Raises:
            NotFoundError: если корта нет
        """
        row = await self._execute_query(
            "SELECT * FROM courts WHERE id=?", (court_id,), fetch_one=True
        )
        if not row:
            raise NotFoundError(f"Court {court_id} not found")
        return Court(
            id=row["id"],
            name=row["name"],
            display_order=row["display_order"],
            created_at=row["created_at"],
        )

    async def create_court(self, name: str, display_order: int = 0) -> int:
        row_id, _ = await self._execute_query(
            "INSERT INTO courts (name, display_order) VALUES (?, ?)",
            (name, display_order),
            commit=True,
        )
        return row_id

    async def ensure_courts(self, count: int) -> List[Court]:
        """Создать недостающие корты "Корт 1".."Корт N" """
        existing = {court.name for court in await self.list_courts()}
        for i in range(1, count + 1):
            name = f"Корт {i}"
            if name not in existing:
                await self.create_court(name, display_order=i)
                logging.info(f"Court created: {name}")
        return await self.list_courts()

    async def get_settings(self, default_name: str = "") -> FacilitySettings:
        """Настройки клуба (или значения по умолчанию)"""
        row = await self._execute_query(
            "SELECT * FROM facility_settings WHERE id=1", fetch_one=True
        )
        if not row:
            return FacilitySettings(name=default_name)
        return FacilitySettings(
            name=row["name"],
            opening_time=row["opening_time"],
            closing_time=row["closing_time"],
            updated_at=row["updated_at"],
        )

    async def update_settings(self, settings: FacilitySettings) -> None:
        await self._execute_query(
            """INSERT OR REPLACE INTO facility_settings
            (id, name, opening_time, closing_time, updated_at)
            VALUES (1, ?, ?, ?, ?)""",
            (
                settings.name,
                settings.opening_time,
                settings.closing_time,
                now_local().isoformat(),
            ),
            commit=True,
        )


class PricingRepository(BaseRepository):
    """Репозиторий для прайса"""

    async def _load(self, court_id: Optional[int]) -> RateTable:
        if court_id is None:
            where, params = "court_id IS NULL", ()
        else:
            where, params = "court_id = ?", (court_id,)

        rows = await self._execute_query(
            f"SELECT * FROM rate_slots WHERE {where} ORDER BY position, id",
            params,
            fetch_all=True,
        )
        table = RateTable()
        for row in rows or []:
            slot = RateSlot(
                start_time=row["start_time"],
                end_time=row["end_time"],
                price_rub=row["price_rub"],
            )
            table.slots_for(DayClass(row["day_class"])).append(slot)
        return table

    async def get_rate_table(self, court_id: Optional[int] = None) -> RateTable:
        """Прайс корта; если у корта прайса нет - прайс клуба"""
        if court_id is not None:
            court_table = await self._load(court_id)
            if not court_table.is_empty():
                return court_table
        return await self._load(None)

    async def replace_rate_table(
        self, rate_table: RateTable, court_id: Optional[int] = None
    ) -> None:
        """Заменить прайс клуба (court_id=None) или корта

        Удаление старых диапазонов и запись новых - одна транзакция:
        при ошибке прежний прайс остаётся.
        """
        if court_id is None:
            statements = [("DELETE FROM rate_slots WHERE court_id IS NULL", ())]
        else:
            statements = [("DELETE FROM rate_slots WHERE court_id = ?", (court_id,))]

        for day_class in DayClass:
            for position, slot in enumerate(rate_table.slots_for(day_class)):
                statements.append(
                    (
                        """INSERT INTO rate_slots
                        (court_id, day_class, start_time, end_time, price_rub, position)
                        VALUES (?, ?, ?, ?, ?, ?)""",
                        (
                            court_id,
                            day_class.value,
                            slot.start_time,
                            slot.end_time,
                            slot.price_rub,
                            position,
                        ),
                    )
                )

        await self._execute_transaction(statements)
        logging.info(f"Rate table replaced for court {court_id or 'facility'}")
