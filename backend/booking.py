import logging
import re
import time as clock
from dataclasses import dataclass
from datetime import date
from typing import Optional
from urllib.parse import urlencode, urlparse

from sqlalchemy.exc import SQLAlchemyError

from availability import Occupancy, spots_left
from calendar_picker import DayStatus, classify_day
from database import BookingStore, StoreResult
from models import CANCELLED, PENDING
from tours import Tour

logger = logging.getLogger(__name__)


class BookingError(Exception):
    pass


class UnknownTourError(BookingError):
    pass


class CheckoutConfigError(BookingError):
    """The tour has no usable checkout URL; booking cannot continue."""


# ================== FORM ==================
class BookingForm:
    """Date, time and guest selection for one tour, with price totals."""

    def __init__(self, tour: Tour, occupancy: Occupancy, today: Optional[date] = None):
        self.tour = tour
        self.occupancy = occupancy
        self.today = today or date.today()
        self.selected_date: Optional[date] = None
        self.selected_time: Optional[str] = None
        self.guests = 1

    def spots_left(self, day: Optional[date] = None) -> int:
        day = day or self.selected_date
        if day is None:
            return self.tour.max_capacity
        return spots_left(self.occupancy, day, self.tour.max_capacity)

    @property
    def max_guests(self) -> int:
        return max(1, self.spots_left())

    def select_date(self, day: date) -> bool:
        status = classify_day(day, self.today, self.occupancy, self.tour.max_capacity)
        if status in (DayStatus.PAST, DayStatus.SOLD_OUT):
            return False
        self.selected_date = day
        if self.guests > self.spots_left(day):
            self.guests = 1
        if self.selected_time is None:
            self.selected_time = self.tour.time
        return True

    def set_guests(self, guests: int) -> int:
        self.guests = min(max(1, guests), self.max_guests)
        return self.guests

    def increment(self) -> int:
        return self.set_guests(self.guests + 1)

    def decrement(self) -> int:
        return self.set_guests(self.guests - 1)

    @property
    def total_price(self) -> int:
        return self.tour.price * self.guests

    @property
    def total_regular_price(self) -> int:
        return self.tour.regular_price * self.guests

    def submit(self, writer: "ReservationWriter",
               reference: Optional[str] = None) -> Optional["CheckoutHandoff"]:
        return writer.reserve(self.tour, self.selected_date, self.selected_time,
                              self.guests, reference=reference)


# ================== REFERENCE & URL ==================
def normalize_start_time(time_range: str) -> str:
    start = time_range.split(" - ")[0].strip()
    return re.sub(r"[^a-zA-Z0-9]", "", start)


def reference_prefix(tour_id: str, day: date, time_range: str, guests: int) -> str:
    return f"{tour_id}_{day.isoformat()}_{normalize_start_time(time_range)}_{guests}_"


def make_reference(tour_id: str, day: date, time_range: str, guests: int,
                   now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(clock.time() * 1000)
    return f"{reference_prefix(tour_id, day, time_range, guests)}{now_ms}"


def validate_checkout_url(url: Optional[str]) -> str:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise CheckoutConfigError(
            "Online booking is not configured for this tour yet. Please contact us to book."
        )
    return url


def build_checkout_url(base: str, params: dict) -> str:
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{urlencode(params)}"


# ================== WRITER ==================
@dataclass
class CheckoutHandoff:
    reference: str
    checkout_url: str
    reserved: bool

    def to_dict(self) -> dict:
        return {"ref": self.reference, "checkout_url": self.checkout_url, "reserved": self.reserved}


class ReservationWriter:
    """
    Inserts a pending row, then hands off to the tour's checkout page.

    The insert is a soft hold: when it fails the checkout still goes ahead.
    A paid/cancelled update is expected from the payment provider later.
    """

    def __init__(self, store: BookingStore):
        self.store = store

    def hold(self, tour: Tour, day: date, guests: int, reference: str) -> StoreResult[bool]:
        try:
            existing = self.store.find_by_reference(reference)
            if existing is not None:
                if existing.payment_status == CANCELLED:
                    logger.info("Reservation %s was cancelled and holds no spots", reference)
                    return StoreResult(value=False)
                logger.info("Reusing pending reservation %s", reference)
                return StoreResult(value=True)
            self.store.insert(day, tour.id, guests, payment_status=PENDING, stripe_id=reference)
        except SQLAlchemyError as e:
            logger.warning("Pending reservation %s not stored: %s", reference, e)
            return StoreResult(error=e)
        return StoreResult(value=True)

    def reserve(self, tour: Tour, day: Optional[date], time_range: Optional[str],
                guests: Optional[int], reference: Optional[str] = None) -> Optional[CheckoutHandoff]:
        if not day or not time_range or not guests:
            logger.warning("Attempted to book %s without date, time or guests", tour.id)
            return None

        base_url = validate_checkout_url(tour.checkout_url)

        prefix = reference_prefix(tour.id, day, time_range, guests)
        if not reference or not reference.startswith(prefix):
            reference = make_reference(tour.id, day, time_range, guests)

        held = self.hold(tour, day, guests, reference)
        if held.ok and not held.value:
            # the earlier row was cancelled, start a fresh hold
            fresh = make_reference(tour.id, day, time_range, guests)
            if fresh == reference:
                fresh = make_reference(tour.id, day, time_range, guests,
                                       now_ms=int(reference[len(prefix):]) + 1)
            reference = fresh
            held = self.hold(tour, day, guests, reference)

        params = {
            "ref": reference,
            "tour": tour.id,
            "date": day.isoformat(),
            "time": time_range,
            "guests": str(guests),
        }
        return CheckoutHandoff(
            reference=reference,
            checkout_url=build_checkout_url(base_url, params),
            reserved=held.unwrap_or(False),
        )
