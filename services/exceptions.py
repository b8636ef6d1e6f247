"""Ошибки бизнес-логики бронирования"""

from typing import Sequence


class BookingError(Exception):
    """Базовая ошибка бронирования"""


class ValidationError(BookingError):
    """Некорректные входные данные (до любой записи в БД)"""


class InvalidTransitionError(ValidationError):
    """Недопустимый переход статуса брони"""


class ConflictError(BookingError):
    """Слот на корте уже занят"""

    def __init__(self, message: str, conflicts: Sequence = ()) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts)


class NotFoundError(BookingError):
    """Корт, бронь или серия не найдены"""


class ExternalServiceError(BookingError):
    """Сбой БД или платёжного провайдера"""
