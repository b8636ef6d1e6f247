"""Репозитории для работы с базой данных"""

from database.repositories.booking_repository import BookingRepository
from database.repositories.client_repository import ClientRepository
from database.repositories.court_repository import CourtRepository, PricingRepository

__all__ = [
    "BookingRepository",
    "ClientRepository",
    "CourtRepository",
    "PricingRepository",
]
