import logging
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Generic, List, Optional, Tuple, TypeVar

from sqlalchemy import create_engine, select, text
from sqlalchemy.orm import sessionmaker

from models import Base, Booking, CANCELLED, PENDING
from settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of a store call: a value, or the error that replaced it."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        if self.error is not None or self.value is None:
            return default
        return self.value


class BookingStore:
    """Booking rows behind a SQLAlchemy engine. One instance per process."""

    def __init__(self, database_url: str, **engine_kwargs):
        if database_url.startswith("sqlite") and "connect_args" not in engine_kwargs:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def create_all(self):
        Base.metadata.create_all(self.engine)

    def occupancy_rows(self, tour_id: str, since: date) -> List[Tuple[date, int]]:
        with self.SessionLocal() as db:
            rows = db.execute(
                select(Booking.date, Booking.guests).where(
                    Booking.tour_id == tour_id,
                    Booking.date >= since,
                    Booking.payment_status != CANCELLED,
                )
            ).all()
        return [(row.date, row.guests) for row in rows]

    def insert(self, day: date, tour_id: str, guests: int,
               payment_status: str = PENDING, stripe_id: Optional[str] = None) -> Booking:
        booking = Booking(
            date=day,
            tour_id=tour_id,
            guests=guests,
            payment_status=payment_status,
            stripe_id=stripe_id,
        )
        with self.SessionLocal() as db:
            db.add(booking)
            db.commit()
            db.refresh(booking)
        return booking

    def find_by_reference(self, stripe_id: str) -> Optional[Booking]:
        with self.SessionLocal() as db:
            return db.query(Booking).filter(Booking.stripe_id == stripe_id).first()

    def list_bookings(self) -> List[Booking]:
        with self.SessionLocal() as db:
            return db.query(Booking).order_by(Booking.date, Booking.id).all()

    def set_status(self, booking_id: int, payment_status: str) -> Optional[Booking]:
        with self.SessionLocal() as db:
            booking = db.get(Booking, booking_id)
            if booking is None:
                return None
            booking.payment_status = payment_status
            db.commit()
            db.refresh(booking)
            return booking

    def ping(self):
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))


@lru_cache
def get_store() -> BookingStore:
    settings = get_settings()
    store = BookingStore(settings.DATABASE_URL)
    store.create_all()
    logger.info("Booking store ready (%s)", store.engine.url.render_as_string(hide_password=True))
    return store
