"""FSM состояния"""

from aiogram.fsm.state import State, StatesGroup


class BookingStates(StatesGroup):
    """Состояния для создания брони"""

    choosing_duration = State()
    choosing_activity = State()
    entering_coach = State()
    entering_client = State()
    entering_sessions = State()
    entering_comment = State()
    choosing_paid = State()
    choosing_payment_link = State()


class CommentStates(StatesGroup):
    """Состояния для изменения комментария"""

    entering_comment = State()
    choosing_scope = State()


class EditStates(StatesGroup):
    """Состояния для изменения брони"""

    entering_start = State()
    choosing_duration = State()
    choosing_activity = State()
    entering_coach = State()


class SettingsStates(StatesGroup):
    """Состояния для настроек клуба"""

    entering_hours = State()
    entering_rates = State()
