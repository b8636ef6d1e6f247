"""Конфигурация приложения"""

import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

# Telegram
BOT_TOKEN = os.getenv("BOT_TOKEN")

# Сотрудники клуба, которым доступна консоль (поддержка нескольких)
ADMIN_IDS_STR = os.getenv("ADMIN_IDS", "")
if not ADMIN_IDS_STR:
    raise ValueError("ADMIN_IDS not found in .env file")

ADMIN_IDS = [int(id.strip()) for id in ADMIN_IDS_STR.split(",") if id.strip()]

if not BOT_TOKEN:
    raise ValueError("BOT_TOKEN not found in .env file")
if not ADMIN_IDS:
    raise ValueError("No valid admin IDs provided")

# База данных
DATABASE_PATH = os.getenv("DATABASE_PATH", "bookings.db")

# Клуб
FACILITY_NAME = os.getenv("FACILITY_NAME", "Теннисный клуб")
DEFAULT_OPENING_TIME = os.getenv("OPENING_TIME", "08:00")
DEFAULT_CLOSING_TIME = os.getenv("CLOSING_TIME", "22:00")
DEFAULT_COURTS_COUNT = int(os.getenv("COURTS_COUNT", "4"))

# Временная зона (только для определения "сегодня" в консоли)
TIMEZONE = ZoneInfo(os.getenv("TIMEZONE", "Europe/Moscow"))

# ЮKassa
YOOKASSA_SHOP_ID = os.getenv("YOOKASSA_SHOP_ID")
YOOKASSA_SECRET_KEY = os.getenv("YOOKASSA_SECRET_KEY")
YOOKASSA_API_URL = os.getenv("YOOKASSA_API_URL", "https://api.yookassa.ru/v3/payments")
PAYMENT_RETURN_URL = os.getenv("PAYMENT_RETURN_URL", "https://example.com")
PAYMENT_TIMEOUT = float(os.getenv("PAYMENT_TIMEOUT", "10"))

# Сумма по умолчанию, если у корта нет прайса (руб)
DEFAULT_PAYMENT_AMOUNT = 1000

# Максимум занятий в одной серии при вводе через консоль
MAX_SERIES_SESSIONS = 52

# Названия дней недели
DAY_NAMES = [
    "понедельник",
    "вторник",
    "среда",
    "четверг",
    "пятница",
    "суббота",
    "воскресенье",
]

DAY_NAMES_SHORT = ["Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс"]
