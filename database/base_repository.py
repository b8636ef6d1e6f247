"""Базовый репозиторий для работы с SQLite"""

import logging
from typing import Any, Optional, Sequence, Tuple

import aiosqlite

from services.exceptions import ExternalServiceError


class BaseRepository:
    """Общие операции: соединение на запрос, обёртка ошибок БД"""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def _execute_query(
        self,
        query: str,
        params: Sequence[Any] = (),
        commit: bool = False,
        fetch_one: bool = False,
        fetch_all: bool = False,
    ):
        """Выполнить запрос

        Returns:
            строку (fetch_one), список строк (fetch_all),
            иначе (lastrowid, rowcount)

        Raises:
            ExternalServiceError: при ошибке SQLite
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON")
                async with db.execute(query, params) as cursor:
                    if fetch_one:
                        result = await cursor.fetchone()
                    elif fetch_all:
                        result = await cursor.fetchall()
                    else:
                        result = (cursor.lastrowid, cursor.rowcount)
                if commit:
                    await db.commit()
                return result
        except aiosqlite.Error as e:
            logging.error(f"Database error: {e}")
            raise ExternalServiceError(f"Database error: {e}") from e

    async def _execute_transaction(
        self, statements: Sequence[Tuple[str, Sequence[Any]]]
    ) -> None:
        """Выполнить запросы на одном соединении одной транзакцией

        Raises:
            ExternalServiceError: при ошибке SQLite (изменения откатываются)
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("PRAGMA foreign_keys = ON")
                await db.execute("BEGIN IMMEDIATE")
                try:
                    for query, params in statements:
                        await db.execute(query, params)
                    await db.commit()
                except aiosqlite.Error:
                    await db.rollback()
                    raise
        except aiosqlite.Error as e:
            logging.error(f"Database transaction failed: {e}")
            raise ExternalServiceError(f"Database error: {e}") from e

    async def _exists(self, table: str, where: str, params: Sequence[Any] = ()) -> bool:
        row = await self._execute_query(
            f"SELECT 1 FROM {table} WHERE {where} LIMIT 1", params, fetch_one=True
        )
        return row is not None

    @staticmethod
    def _value(row: aiosqlite.Row, key: str, default: Optional[Any] = None):
        return row[key] if key in row.keys() else default
