from datetime import date, timedelta

from sqlalchemy.exc import OperationalError

from availability import fetch_occupancy, occupied, spots_left
from models import BLOCKED, CANCELLED, PAID, PENDING

TODAY = date.today()
TOMORROW = TODAY + timedelta(days=1)


def test_sums_guests_per_date(store):
    store.insert(TOMORROW, "evening", 4, payment_status=PENDING)
    store.insert(TOMORROW, "evening", 3, payment_status=PAID)
    store.insert(TOMORROW, "evening", 2, payment_status=BLOCKED)
    store.insert(TOMORROW + timedelta(days=1), "evening", 5, payment_status=PAID)

    result = fetch_occupancy(store, "evening", TODAY)

    assert result.ok
    assert result.value == {
        TOMORROW.isoformat(): 9,
        (TOMORROW + timedelta(days=1)).isoformat(): 5,
    }


def test_cancelled_rows_do_not_count(store):
    store.insert(TOMORROW, "evening", 4, payment_status=CANCELLED)
    store.insert(TOMORROW, "evening", 2, payment_status=PENDING)

    assert fetch_occupancy(store, "evening", TODAY).value == {TOMORROW.isoformat(): 2}


def test_only_requested_tour_from_today(store):
    store.insert(TODAY - timedelta(days=1), "evening", 6)
    store.insert(TODAY, "evening", 1)
    store.insert(TOMORROW, "brunch", 8)

    assert fetch_occupancy(store, "evening", TODAY).value == {TODAY.isoformat(): 1}


def test_empty_when_nothing_booked(store):
    result = fetch_occupancy(store, "evening", TODAY)
    assert result.ok
    assert result.unwrap_or({}) == {}


def test_fails_open_on_database_error(store, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(store, "occupancy_rows", broken)

    result = fetch_occupancy(store, "evening", TODAY)

    assert not result.ok
    assert isinstance(result.error, OperationalError)
    assert result.unwrap_or({}) == {}


def test_evening_nine_of_twelve_booked():
    day = date(2026, 6, 1)
    occupancy = {"2026-06-01": 9}
    assert occupied(occupancy, day) == 9
    assert spots_left(occupancy, day, 12) == 3
    assert occupied(occupancy, date(2026, 6, 2)) == 0


def test_spots_left_never_negative():
    assert spots_left({"2026-06-01": 14}, date(2026, 6, 1), 12) == 0
