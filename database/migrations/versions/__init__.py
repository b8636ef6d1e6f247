"""Пакет для версий миграций"""

from database.migrations.versions.v001_initial_schema import InitialSchema
from database.migrations.versions.v002_add_series_id import AddSeriesId

ALL_MIGRATIONS = [InitialSchema, AddSeriesId]

__all__ = ["ALL_MIGRATIONS", "InitialSchema", "AddSeriesId"]
