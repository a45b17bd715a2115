import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from database import BookingStore, StoreResult

logger = logging.getLogger(__name__)

Occupancy = Dict[str, int]


def fetch_occupancy(store: BookingStore, tour_id: str,
                    today: Optional[date] = None) -> StoreResult[Occupancy]:
    """
    Sum booked guests per date for a tour, from today onwards.

    Cancelled rows do not count; pending, paid and blocked rows do. Dates
    without rows are left out of the mapping. A database failure gives a
    failed result whose fallback is the empty mapping, so the calendar still
    renders as if nothing were booked.
    """
    today = today or date.today()
    try:
        rows = store.occupancy_rows(tour_id, today)
    except SQLAlchemyError as e:
        logger.warning("Availability lookup for %s failed: %s", tour_id, e)
        return StoreResult(error=e)

    counts = defaultdict(int)
    for day, guests in rows:
        counts[day.isoformat()] += guests
    return StoreResult(value=dict(counts))


def occupied(occupancy: Occupancy, day: date) -> int:
    return occupancy.get(day.isoformat(), 0)


def spots_left(occupancy: Occupancy, day: date, max_capacity: int) -> int:
    return max(0, max_capacity - occupied(occupancy, day))
