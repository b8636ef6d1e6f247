"""Начальная схема базы данных"""

from database.migrations.migration_manager import Migration


class InitialSchema(Migration):
    version = 1
    description = "Courts, facility settings, pricing, clients and reservations"

    async def upgrade(self, db):
        # Корты
        await db.execute(
            """CREATE TABLE IF NOT EXISTS courts
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            display_order INTEGER DEFAULT 0,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP)"""
        )

        # Настройки клуба (одна строка)
        await db.execute(
            """CREATE TABLE IF NOT EXISTS facility_settings
            (id INTEGER PRIMARY KEY CHECK (id = 1),
            name TEXT NOT NULL,
            opening_time TEXT NOT NULL DEFAULT '08:00',
            closing_time TEXT NOT NULL DEFAULT '22:00',
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP)"""
        )

        # Прайс: court_id IS NULL - прайс клуба, иначе прайс корта
        await db.execute(
            """CREATE TABLE IF NOT EXISTS rate_slots
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            court_id INTEGER REFERENCES courts(id) ON DELETE CASCADE,
            day_class TEXT NOT NULL CHECK (day_class IN ('weekday', 'weekend')),
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            price_rub INTEGER NOT NULL CHECK (price_rub >= 0),
            position INTEGER DEFAULT 0)"""
        )

        # Клиенты
        await db.execute(
            """CREATE TABLE IF NOT EXISTS clients
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            contact TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP)"""
        )

        # Брони
        await db.execute(
            """CREATE TABLE IF NOT EXISTS reservations
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            court_id INTEGER NOT NULL REFERENCES courts(id),
            date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            activity TEXT NOT NULL DEFAULT 'one_time',
            comment TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'hold'
                CHECK (status IN ('hold', 'confirmed', 'canceled')),
            coach TEXT,
            client_id INTEGER REFERENCES clients(id) ON DELETE SET NULL,
            client_name TEXT,
            is_recurring INTEGER NOT NULL DEFAULT 0,
            recurring_end_date TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL)"""
        )

        # Индексы для производительности
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_reservations_court_date ON reservations(court_id, date)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_reservations_series_time "
            "ON reservations(court_id, start_time, end_time)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_reservations_client ON reservations(client_id)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_rate_slots_court ON rate_slots(court_id, day_class)"
        )

    async def downgrade(self, db):
        await db.execute("DROP TABLE IF EXISTS reservations")
        await db.execute("DROP TABLE IF EXISTS clients")
        await db.execute("DROP TABLE IF EXISTS rate_slots")
        await db.execute("DROP TABLE IF EXISTS facility_settings")
        await db.execute("DROP TABLE IF EXISTS courts")
