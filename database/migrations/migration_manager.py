"""Менеджер миграций базы данных"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Type

import aiosqlite


class Migration(ABC):
    """Базовый класс для миграций"""

    version: int
    description: str

    @abstractmethod
    async def upgrade(self, db: aiosqlite.Connection):
        """Применить миграцию"""
        pass

    @abstractmethod
    async def downgrade(self, db: aiosqlite.Connection):
        """Откатить миграцию"""
        pass


class MigrationManager:
    """Управление миграциями базы данных"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.migrations: List[Type[Migration]] = []

    def register(self, *migration_classes: Type[Migration]):
        """Регистрация миграций"""
        self.migrations.extend(migration_classes)
        self.migrations.sort(key=lambda m: m.version)

    @property
    def latest_version(self) -> int:
        return max((m.version for m in self.migrations), default=0)

    async def init_migrations_table(self):
        """Создание таблицы миграций"""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """CREATE TABLE IF NOT EXISTS schema_migrations
                (version INTEGER PRIMARY KEY,
                 description TEXT,
                 applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"""
            )
            await db.commit()

    async def get_current_version(self) -> int:
        """Получить текущую версию схемы"""
        await self.init_migrations_table()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT MAX(version) FROM schema_migrations"
            ) as cursor:
                result = await cursor.fetchone()
                return result[0] if result and result[0] else 0

    async def migrate(self, target_version: Optional[int] = None) -> List[int]:
        """Применить миграции до target_version

        Returns:
            Список применённых версий
        """
        current = await self.get_current_version()
        target = target_version if target_version is not None else self.latest_version
        applied = []

        if current >= target:
            logging.info(f"Database already at version {current}")
            return applied

        async with aiosqlite.connect(self.db_path) as db:
            for migration_class in self.migrations:
                if not current < migration_class.version <= target:
                    continue

                migration = migration_class()
                logging.info(
                    f"Applying migration {migration.version}: {migration.description}"
                )
                try:
                    await db.execute("BEGIN")
                    await migration.upgrade(db)
                    await db.execute(
                        "INSERT INTO schema_migrations (version, description) VALUES (?, ?)",
                        (migration.version, migration.description),
                    )
                    await db.commit()
                    applied.append(migration.version)
                    logging.info(f"Migration {migration.version} applied")
                except Exception as e:
                    await db.rollback()
                    logging.error(f"Migration {migration.version} failed: {e}")
                    raise

        return applied

    async def rollback(self, target_version: int) -> List[int]:
        """Откатить миграции до target_version

        Returns:
            Список откаченных версий
        """
        current = await self.get_current_version()
        rolled_back = []

        if current <= target_version:
            logging.info("Nothing to rollback")
            return rolled_back

        async with aiosqlite.connect(self.db_path) as db:
            for migration_class in reversed(self.migrations):
                if not target_version < migration_class.version <= current:
                    continue

                migration = migration_class()
                logging.info(f"Rolling back migration {migration.version}")
                try:
                    await db.execute("BEGIN")
                    await migration.downgrade(db)
                    await db.execute(
                        "DELETE FROM schema_migrations WHERE version=?",
                        (migration.version,),
                    )
                    await db.commit()
                    rolled_back.append(migration.version)
                    logging.info(f"Migration {migration.version} rolled back")
                except Exception as e:
                    await db.rollback()
                    logging.error(f"Rollback {migration.version} failed: {e}")
                    raise

        return rolled_back


def create_manager(db_path: str) -> MigrationManager:
    """Менеджер со всеми зарегистрированными миграциями"""
    from database.migrations.versions import ALL_MIGRATIONS

    manager = MigrationManager(db_path)
    manager.register(*ALL_MIGRATIONS)
    return manager
