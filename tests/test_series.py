"""Тесты принадлежности к серии"""

import pytest

from database.models import BookingStatus
from services.series import (
    SeriesIdKey,
    StructuralSeriesKey,
    last_series_date,
    members_from_date,
    series_members,
)


@pytest.fixture
def structural_series(make_reservation):
    """Четыре занятия без series_id и чужая бронь в другое время"""
    members = [
        make_reservation(date=date)
        for date in ("2025-03-03", "2025-03-10", "2025-03-17", "2025-03-24")
    ]
    other = make_reservation(date="2025-03-10", start_time="12:00", end_time="13:00")
    return members, other


class TestSeriesMembers:
    """Определение серии"""

    @pytest.mark.unit
    def test_structural_key(self, structural_series):
        members, other = structural_series

        found = series_members(members[1], members + [other], StructuralSeriesKey())

        assert found == members

    @pytest.mark.unit
    def test_series_id_key_separates_equal_slots(self, make_reservation):
        ours = [make_reservation(date=d, series_id="a") for d in ("2025-03-03", "2025-03-10")]
        theirs = [make_reservation(date="2025-03-17", series_id="b")]

        assert series_members(ours[0], ours + theirs, SeriesIdKey()) == ours
        assert series_members(ours[0], ours + theirs, StructuralSeriesKey()) == ours + theirs

    @pytest.mark.unit
    def test_series_id_key_is_symmetric(self, make_reservation):
        series = [make_reservation(date=d, series_id="a") for d in ("2025-03-03", "2025-03-10")]
        one_off = make_reservation(date="2025-02-24")

        key = SeriesIdKey()
        assert key.same_series(one_off, series[0]) is False
        assert key.same_series(series[0], one_off) is False
        assert series_members(one_off, series + [one_off], key) == [one_off]

    @pytest.mark.unit
    def test_series_id_key_falls_back_to_structure(self, structural_series):
        members, other = structural_series

        assert series_members(members[0], members + [other], SeriesIdKey()) == members

    @pytest.mark.unit
    def test_canceled_excluded_by_default(self, make_reservation):
        active = make_reservation(date="2025-03-03")
        canceled = make_reservation(date="2025-03-10", status=BookingStatus.CANCELED)

        assert series_members(active, [active, canceled]) == [active]
        assert series_members(active, [active, canceled], include_canceled=True) == [
            active,
            canceled,
        ]

    @pytest.mark.unit
    def test_members_from_date(self, structural_series):
        members, other = structural_series

        assert members_from_date(members[2], members + [other]) == members[2:]

    @pytest.mark.unit
    def test_last_series_date(self, structural_series):
        members, _ = structural_series

        assert last_series_date(members) == "2025-03-24"
        assert last_series_date([]) is None
