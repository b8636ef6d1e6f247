"""Конфигурация pytest и общие фикстуры для всех тестов

Этот файл содержит:
- Настройку тестовой среды
- Mock объекты для aiogram (Bot, Message, CallbackQuery)
- Фикстуры для БД (отдельный файл SQLite на каждый тест)
- Фабрики броней и фикстуры сервисов
"""

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import AsyncMock, Mock

import pytest
from aiogram import Bot
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import CallbackQuery, Chat, Message, User

# Добавляем корневую папку в PYTHONPATH
sys.path.insert(0, str(Path(__file__).parent.parent))

# ============================================================================
# НАСТРОЙКА ТЕСТОВОЙ СРЕДЫ
# ============================================================================

# Настройка переменных окружения ДО импорта config
os.environ["BOT_TOKEN"] = "1234567890:ABCdefGHIjklMNOpqrsTUVwxyz12345678"
os.environ["ADMIN_IDS"] = "12345,67890"
os.environ.pop("YOOKASSA_SHOP_ID", None)
os.environ.pop("YOOKASSA_SECRET_KEY", None)

# Теперь можно импортировать модули проекта
from database.migrations.migration_manager import create_manager  # noqa: E402
from database.models import (  # noqa: E402
    ActivityKind,
    BookingStatus,
    FacilitySettings,
    Reservation,
    ReservationDraft,
)
from database.repositories import (  # noqa: E402
    BookingRepository,
    ClientRepository,
    CourtRepository,
    PricingRepository,
)
from services.booking_service import BookingService  # noqa: E402

# Понедельник
MONDAY = "2025-03-03"
SATURDAY = "2025-03-08"


# ============================================================================
# PYTEST КОНФИГУРАЦИЯ
# ============================================================================


def pytest_configure(config):
    """Регистрация пользовательских маркеров"""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: integration test")
    config.addinivalue_line("markers", "unit: unit test")


# ============================================================================
# БАЗА ДАННЫХ
# ============================================================================


@pytest.fixture
def db_path(tmp_path):
    """Путь к файлу тестовой БД"""
    return str(tmp_path / "test_bookings.db")


@pytest.fixture
async def init_database(db_path):
    """Тестовая БД со схемой и двумя кортами"""
    await create_manager(db_path).migrate()
    await CourtRepository(db_path).ensure_courts(2)
    yield db_path


@pytest.fixture
def booking_repository(init_database):
    return BookingRepository(init_database)


@pytest.fixture
def court_repository(init_database):
    return CourtRepository(init_database)


@pytest.fixture
def pricing_repository(init_database):
    return PricingRepository(init_database)


@pytest.fixture
def client_repository(init_database):
    return ClientRepository(init_database)


# ============================================================================
# ФАБРИКИ ДАННЫХ
# ============================================================================


@pytest.fixture
def facility():
    return FacilitySettings(name="Тестовый клуб", opening_time="08:00", closing_time="22:00")


@pytest.fixture
def make_draft():
    """Фабрика ReservationDraft (по умолчанию: корт 1, понедельник 10:00-11:00)"""

    def _create(
        court_id: int = 1,
        date: str = MONDAY,
        start_time: str = "10:00",
        end_time: str = "11:00",
        activity: ActivityKind = ActivityKind.ONE_TIME,
        **kwargs,
    ) -> ReservationDraft:
        return ReservationDraft(
            court_id=court_id,
            date=date,
            start_time=start_time,
            end_time=end_time,
            activity=activity,
            **kwargs,
        )

    return _create


@pytest.fixture
def make_reservation():
    """Фабрика Reservation для тестов без БД"""
    counter = {"id": 0}

    def _create(
        court_id: int = 1,
        date: str = MONDAY,
        start_time: str = "10:00",
        end_time: str = "11:00",
        status: BookingStatus = BookingStatus.HOLD,
        **kwargs,
    ) -> Reservation:
        counter["id"] += 1
        kwargs.setdefault("id", counter["id"])
        return Reservation(
            court_id=court_id,
            date=date,
            start_time=start_time,
            end_time=end_time,
            status=status,
            **kwargs,
        )

    return _create


# ============================================================================
# MOCK BOT
# ============================================================================


class MockBot:
    """Mock Telegram Bot для тестов"""

    def __init__(self):
        self.sent_messages: List[Dict[str, Any]] = []
        self.session = Mock()
        self.session.close = AsyncMock()

    async def send_message(self, chat_id: int, text: str, reply_markup=None, **kwargs):
        """Мок send_message"""
        self.sent_messages.append(
            {"chat_id": chat_id, "text": text, "reply_markup": reply_markup, **kwargs}
        )
        message = Mock(spec=Message)
        message.message_id = len(self.sent_messages)
        message.text = text
        return message

    def clear_history(self):
        """Очистить историю для тестов"""
        self.sent_messages.clear()


@pytest.fixture
def mock_bot():
    """Фикстура mock bot"""
    return MockBot()


# ============================================================================
# MOCK AIOGRAM OBJECTS
# ============================================================================


@pytest.fixture
def mock_user():
    """Создание mock User"""

    def _create_user(user_id: int = 12345, username: str = "staff") -> User:
        user = Mock(spec=User)
        user.id = user_id
        user.username = username
        user.first_name = "Staff"
        user.is_bot = False
        return user

    return _create_user


@pytest.fixture
def mock_message(mock_user):
    """Создание mock Message"""

    def _create_message(text: str = "/start", user_id: int = 12345) -> Message:
        message = Mock(spec=Message)
        message.text = text
        message.message_id = 1
        message.date = datetime.now()
        message.from_user = mock_user(user_id=user_id)
        message.chat = Mock(spec=Chat)
        message.chat.id = user_id

        message.answer = AsyncMock(return_value=Mock(spec=Message))
        message.edit_text = AsyncMock()
        message.edit_reply_markup = AsyncMock()
        return message

    return _create_message


@pytest.fixture
def mock_callback_query(mock_user, mock_message):
    """Создание mock CallbackQuery"""

    def _create_callback(data: str = "test", user_id: int = 12345) -> CallbackQuery:
        callback = Mock(spec=CallbackQuery)
        callback.id = "callback_id_123"
        callback.data = data
        callback.from_user = mock_user(user_id=user_id)
        callback.message = mock_message(text="Test message", user_id=user_id)
        callback.answer = AsyncMock()
        return callback

    return _create_callback


@pytest.fixture
async def mock_state():
    """Создание FSMContext на MemoryStorage"""
    storage = MemoryStorage()
    bot = Mock(spec=Bot)
    bot.id = 123456789

    state = FSMContext(
        storage=storage, key=StorageKey(bot_id=bot.id, chat_id=12345, user_id=12345)
    )

    yield state

    await state.clear()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def booking_service(booking_repository, facility):
    """Фикстура BookingService без платёжного провайдера"""
    return BookingService(booking_repository, facility=facility)
