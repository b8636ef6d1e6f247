"""Главный файл приложения"""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage

from config import (
    BOT_TOKEN,
    DATABASE_PATH,
    DEFAULT_CLOSING_TIME,
    DEFAULT_COURTS_COUNT,
    DEFAULT_OPENING_TIME,
    FACILITY_NAME,
    PAYMENT_RETURN_URL,
    PAYMENT_TIMEOUT,
    YOOKASSA_API_URL,
    YOOKASSA_SECRET_KEY,
    YOOKASSA_SHOP_ID,
)
from database.migrations.migration_manager import create_manager
from database.models import FacilitySettings
from database.repositories import (
    BookingRepository,
    ClientRepository,
    CourtRepository,
    PricingRepository,
)
from handlers import booking_handlers, edit_handlers, schedule_handlers, settings_handlers
from services.booking_service import BookingService
from services.notification_service import NotificationService
from services.payment_service import YooKassaGateway

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


async def init_facility(court_repository: CourtRepository) -> FacilitySettings:
    """Корты и настройки клуба при первом запуске"""
    await court_repository.ensure_courts(DEFAULT_COURTS_COUNT)

    facility = await court_repository.get_settings(default_name=FACILITY_NAME)
    if facility.updated_at is None:
        facility = FacilitySettings(
            name=FACILITY_NAME,
            opening_time=DEFAULT_OPENING_TIME,
            closing_time=DEFAULT_CLOSING_TIME,
        )
        await court_repository.update_settings(facility)
    return facility


async def main():
    """Главная функция"""
    # Инициализация
    bot = Bot(token=BOT_TOKEN)
    storage = MemoryStorage()
    dp = Dispatcher(storage=storage)

    # Инициализация БД
    await create_manager(DATABASE_PATH).migrate()

    court_repository = CourtRepository(DATABASE_PATH)
    facility = await init_facility(court_repository)

    # Сервисы
    payment_gateway = YooKassaGateway(
        YOOKASSA_SHOP_ID,
        YOOKASSA_SECRET_KEY,
        api_url=YOOKASSA_API_URL,
        return_url=PAYMENT_RETURN_URL,
        timeout=PAYMENT_TIMEOUT,
    )
    if not payment_gateway.is_configured:
        logging.warning("YooKassa is not configured, payment links are disabled")

    booking_service = BookingService(
        BookingRepository(DATABASE_PATH), payment_gateway=payment_gateway, facility=facility
    )
    notification_service = NotificationService(bot)

    # Регистрация сервисов для dependency injection
    dp["booking_service"] = booking_service
    dp["notification_service"] = notification_service
    dp["court_repository"] = court_repository
    dp["pricing_repository"] = PricingRepository(DATABASE_PATH)
    dp["client_repository"] = ClientRepository(DATABASE_PATH)

    # Регистрация роутеров (ВАЖЕН ПОРЯДОК!)
    dp.include_router(booking_handlers.router)    # 1. Создание брони (FSM)
    dp.include_router(edit_handlers.router)       # 2. Изменение и удаление брони
    dp.include_router(settings_handlers.router)   # 3. Часы работы и прайс
    dp.include_router(schedule_handlers.router)   # 4. Расписание последним (есть catch-all)

    logging.info(f"🚀 Bot started: {facility.name}")

    try:
        await dp.start_polling(bot, skip_updates=True)
    finally:
        await bot.session.close()
        await payment_gateway.aclose()


if __name__ == "__main__":
    asyncio.run(main())
