"""Модели данных"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from utils.datetime_utils import time_to_minutes


class ActivityKind(str, Enum):
    """Тип брони"""

    ONE_TIME = "one_time"
    GROUP = "group"
    REGULAR = "regular"
    TOURNAMENT = "tournament"
    PERSONAL_TRAINING = "personal_training"

    @property
    def label(self) -> str:
        return _ACTIVITY_ATTRS[self]["label"]

    @property
    def color(self) -> str:
        return _ACTIVITY_ATTRS[self]["color"]

    @property
    def is_recurring(self) -> bool:
        """Повторяется ли бронь еженедельно (серия)"""
        return _ACTIVITY_ATTRS[self]["recurring"]

    @property
    def allows_coach(self) -> bool:
        return _ACTIVITY_ATTRS[self]["coach"]


_ACTIVITY_ATTRS: Dict[ActivityKind, dict] = {
    ActivityKind.ONE_TIME: {
        "label": "Разовая бронь корта",
        "color": "#7dd3fc",
        "recurring": False,
        "coach": False,
    },
    ActivityKind.GROUP: {
        "label": "Группа",
        "color": "#3b82f6",
        "recurring": True,
        "coach": True,
    },
    ActivityKind.REGULAR: {
        "label": "Регулярная бронь корта",
        "color": "#10b981",
        "recurring": True,
        "coach": False,
    },
    ActivityKind.TOURNAMENT: {
        "label": "Турнир",
        "color": "#fca5a5",
        "recurring": False,
        "coach": False,
    },
    ActivityKind.PERSONAL_TRAINING: {
        "label": "Персональная тренировка",
        "color": "#a78bfa",
        "recurring": False,
        "coach": True,
    },
}


class BookingStatus(str, Enum):
    """Статус брони: hold (не оплачена) → confirmed / canceled"""

    HOLD = "hold"
    CONFIRMED = "confirmed"
    CANCELED = "canceled"

    @property
    def label(self) -> str:
        return {
            BookingStatus.HOLD: "Не оплачена",
            BookingStatus.CONFIRMED: "Оплачена",
            BookingStatus.CANCELED: "Отменена",
        }[self]


class DayClass(str, Enum):
    """Тип дня для прайса"""

    WEEKDAY = "weekday"
    WEEKEND = "weekend"


@dataclass(frozen=True)
class TimeRange:
    """Диапазон времени HH:MM, конец не включается"""

    start_time: str
    end_time: str

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)


@dataclass(frozen=True)
class RateSlot(TimeRange):
    """Диапазон времени с ценой аренды (руб/час)"""

    price_rub: int = 0


@dataclass
class RateTable:
    """Прайс: будние и выходные дни"""

    weekday: List[RateSlot] = field(default_factory=list)
    weekend: List[RateSlot] = field(default_factory=list)

    def slots_for(self, day_class: DayClass) -> List[RateSlot]:
        return self.weekday if day_class == DayClass.WEEKDAY else self.weekend

    def is_empty(self) -> bool:
        return not self.weekday and not self.weekend


@dataclass
class Court:
    """Корт"""

    id: Optional[int]
    name: str
    display_order: int = 0
    created_at: Optional[datetime] = None


@dataclass
class FacilitySettings:
    """Настройки клуба"""

    name: str
    opening_time: str = "08:00"
    closing_time: str = "22:00"
    updated_at: Optional[datetime] = None


@dataclass
class Client:
    """Клиент клуба"""

    id: Optional[int]
    name: str
    contact: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReservationDraft:
    """Данные новой брони (до сохранения)"""

    court_id: int
    date: str
    start_time: str
    end_time: str
    activity: ActivityKind = ActivityKind.ONE_TIME
    comment: str = ""
    coach: Optional[str] = None
    client_id: Optional[int] = None
    client_name: Optional[str] = None

    @property
    def color(self) -> str:
        return self.activity.color


@dataclass(frozen=True)
class Reservation:
    """Бронь корта"""

    id: int
    court_id: int
    date: str
    start_time: str
    end_time: str
    activity: ActivityKind = ActivityKind.ONE_TIME
    comment: str = ""
    status: BookingStatus = BookingStatus.HOLD
    coach: Optional[str] = None
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    is_recurring: bool = False
    recurring_end_date: Optional[str] = None
    series_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # Расширенные поля (загружаются из JOIN)
    court_name: Optional[str] = None

    @property
    def color(self) -> str:
        return self.activity.color

    @property
    def is_canceled(self) -> bool:
        return self.status == BookingStatus.CANCELED
