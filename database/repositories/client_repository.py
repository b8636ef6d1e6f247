"""Репозиторий для работы с клиентами"""

import logging
from typing import List, Optional

import aiosqlite

from database.base_repository import BaseRepository
from database.models import Client
from services.exceptions import NotFoundError, ValidationError
from utils.helpers import now_local


class ClientRepository(BaseRepository):
    """Справочник клиентов клуба"""

    @staticmethod
    def _row_to_client(row: aiosqlite.Row) -> Client:
        return Client(
            id=row["id"],
            name=row["name"],
            contact=row["contact"],
            created_at=row["created_at"],
        )

    async def list_clients(self) -> List[Client]:
        """Все клиенты по алфавиту"""
        rows = await self._execute_query(
            "SELECT * FROM clients ORDER BY name", fetch_all=True
        )
        return [self._row_to_client(row) for row in rows or []]

    async def find_by_name(self, name: str) -> Optional[Client]:
        row = await self._execute_query(
            "SELECT * FROM clients WHERE name=?", (name.strip(),), fetch_one=True
        )
        return self._row_to_client(row) if row else None

    async def ensure_client(self, name: str) -> int:
        """Найти или создать клиента по ФИО (идемпотентно по имени)

        Raises:
            ValidationError: если ФИО пустое
        """
        trimmed = name.strip()
        if not trimmed:
            raise ValidationError("Client name is empty")

        existing = await self.find_by_name(trimmed)
        if existing:
            return existing.id

        row_id, _ = await self._execute_query(
            "INSERT INTO clients (name) VALUES (?)", (trimmed,), commit=True
        )
        logging.info(f"Client created: {row_id}")
        return row_id

    async def update_client(
        self, client_id: int, name: Optional[str] = None, contact: Optional[str] = None
    ) -> None:
        """Обновить ФИО и/или контакт клиента

        Raises:
            NotFoundError: если клиента нет
        """
        assignments = []
        params: list = []
        if name is not None:
            assignments.append("name=?")
            params.append(name.strip())
        if contact is not None:
            assignments.append("contact=?")
            params.append(contact.strip() or None)
        assignments.append("updated_at=?")
        params.extend([now_local().isoformat(), client_id])

        _, rowcount = await self._execute_query(
            f"UPDATE clients SET {', '.join(assignments)} WHERE id=?",
            params,
            commit=True,
        )
        if rowcount == 0:
            raise NotFoundError(f"Client {client_id} not found")
