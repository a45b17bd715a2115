from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

PENDING = "pending"
PAID = "paid"
CANCELLED = "cancelled"
# closes capacity by hand, without a payment record
BLOCKED = "blocked"

PAYMENT_STATUSES = (PENDING, PAID, CANCELLED, BLOCKED)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    date = Column(Date, nullable=False, index=True)
    tour_id = Column(String, nullable=False, index=True)
    guests = Column(Integer, nullable=False)
    payment_status = Column(String, nullable=False, default=PENDING)
    stripe_id = Column(String, unique=True)
    customer_email = Column(String)
    customer_name = Column(String)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "date": self.date.isoformat(),
            "tour_id": self.tour_id,
            "guests": self.guests,
            "payment_status": self.payment_status,
            "stripe_id": self.stripe_id,
            "customer_email": self.customer_email,
            "customer_name": self.customer_name,
        }
