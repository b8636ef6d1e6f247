"""Явный идентификатор серии у занятий"""

from database.migrations.migration_manager import Migration


class AddSeriesId(Migration):
    version = 2
    description = "Add series_id to reservations"

    async def upgrade(self, db):
        # У старых занятий series_id остаётся NULL: серия по корту и времени
        await db.execute("ALTER TABLE reservations ADD COLUMN series_id TEXT")
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_reservations_series ON reservations(series_id)"
        )

    async def downgrade(self, db):
        await db.execute("DROP INDEX IF EXISTS idx_reservations_series")
        await db.execute("ALTER TABLE reservations DROP COLUMN series_id")
