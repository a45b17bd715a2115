from fastapi import FastAPI, HTTPException, Form, Depends, Query, Response
from fastapi.responses import HTMLResponse
from fastapi.concurrency import run_in_threadpool
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.exc import SQLAlchemyError
from datetime import date
import datetime as dt
from typing import Dict, Optional
import logging
import secrets
import os

from settings import Settings, get_settings
from database import BookingStore, get_store
from models import BLOCKED, CANCELLED
from tours import Tour, build_tours, find_tour
from availability import fetch_occupancy, spots_left
from calendar_picker import CalendarPicker, clamp_month
from booking import BookingForm, ReservationWriter, CheckoutConfigError
from blog import fetch_blog_posts, find_post
from notifications import send_to_business, render_booking_notice, render_contact_message

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
FRONTEND_DIR = os.path.join(BASE_DIR, "frontend")

# ================== APP ==================
app = FastAPI(title="Alentejo Bites")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount("/static", StaticFiles(directory=os.path.join(FRONTEND_DIR, "static")), name="static")

security = HTTPBasic()


# ================== DEPENDENCIES ==================
def get_tours(settings: Settings = Depends(get_settings)) -> Dict[str, Tour]:
    return build_tours(settings)


def get_tour(tour_id: str, tours: Dict[str, Tour] = Depends(get_tours)) -> Tour:
    tour = find_tour(tours, tour_id)
    if tour is None:
        raise HTTPException(404, "Tour not found")
    return tour


def require_admin(credentials: HTTPBasicCredentials = Depends(security),
                  settings: Settings = Depends(get_settings)):
    user_ok = secrets.compare_digest(credentials.username, settings.ADMIN_USER)
    pass_ok = secrets.compare_digest(credentials.password, settings.ADMIN_PASS)
    if not (user_ok and pass_ok):
        raise HTTPException(401, headers={"WWW-Authenticate": "Basic"})
    return credentials.username


# ================== SCHEMAS ==================
class BookingRequest(BaseModel):
    tour: str
    date: Optional[dt.date] = None
    time: Optional[str] = None
    guests: Optional[int] = Field(default=None, ge=1)
    # reference from an earlier attempt, reused so a resubmit does not add a second row
    reference: Optional[str] = Field(default=None, max_length=128)


class ContactRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    message: str = Field(min_length=1)
    topic: str = "General"


class BlockRequest(BaseModel):
    tour: str
    date: dt.date
    guests: Optional[int] = Field(default=None, ge=1)


# ================== TOURS API ==================
@app.get("/api/tours")
def list_tours(tours: Dict[str, Tour] = Depends(get_tours)):
    return list(tours.values())


@app.get("/api/tours/{tour_id}")
def tour_details(tour: Tour = Depends(get_tour)):
    return tour


@app.get("/api/tours/{tour_id}/availability")
def tour_availability(tour: Tour = Depends(get_tour), store: BookingStore = Depends(get_store)):
    result = fetch_occupancy(store, tour.id)
    return {
        "tour": tour.id,
        "max_capacity": tour.max_capacity,
        "occupancy": result.unwrap_or({}),
        "degraded": not result.ok,
    }


@app.get("/api/tours/{tour_id}/calendar")
def tour_calendar(year: Optional[int] = Query(None, ge=1, le=9999),
                  month: Optional[int] = Query(None, ge=1, le=12),
                  selected: Optional[date] = None,
                  tour: Tour = Depends(get_tour),
                  store: BookingStore = Depends(get_store)):
    today = date.today()
    cursor = today
    if year is not None and month is not None:
        cursor = clamp_month(date(year, month, 1), today)
    occupancy = fetch_occupancy(store, tour.id, today).unwrap_or({})
    picker = CalendarPicker(occupancy, tour.max_capacity, today=today, cursor=cursor)
    if selected is not None:
        picker.select(selected)
    return {"tour": tour.id, **picker.to_dict()}


@app.get("/api/tours/{tour_id}/quote")
def tour_quote(date: Optional[date] = None,
               guests: int = 1,
               tour: Tour = Depends(get_tour),
               store: BookingStore = Depends(get_store)):
    form = BookingForm(tour, fetch_occupancy(store, tour.id).unwrap_or({}))
    # guests first, so a date with fewer spots than the party resets the count to 1
    form.set_guests(guests)
    date_ok = form.select_date(date) if date is not None else False
    return {
        "tour": tour.id,
        "date": form.selected_date.isoformat() if form.selected_date else None,
        "date_available": date_ok,
        "time": form.selected_time,
        "spots_left": form.spots_left(),
        "guests": form.guests,
        "max_guests": form.max_guests,
        "total_price": form.total_price,
        "total_regular_price": form.total_regular_price,
    }


# ================== BOOKING ==================
@app.post("/api/book")
async def book(data: BookingRequest,
               tours: Dict[str, Tour] = Depends(get_tours),
               store: BookingStore = Depends(get_store),
               settings: Settings = Depends(get_settings)):
    tour = find_tour(tours, data.tour)
    if tour is None:
        raise HTTPException(404, "Tour not found")

    writer = ReservationWriter(store)
    try:
        handoff = await run_in_threadpool(
            writer.reserve, tour, data.date, data.time, data.guests, reference=data.reference
        )
    except CheckoutConfigError as e:
        logger.error("Checkout URL for %s is not configured: %r", tour.id, tour.checkout_url)
        raise HTTPException(503, str(e))

    if handoff is None:
        return Response(status_code=204)

    await send_to_business(
        settings,
        "New pending booking",
        render_booking_notice(tour.title, handoff.reference, data.date.isoformat(), data.time,
                              data.guests, tour.price * data.guests, handoff.reserved),
    )
    return handoff.to_dict()


# ================== CONTACT ==================
@app.post("/api/contact")
async def contact(data: ContactRequest, settings: Settings = Depends(get_settings)):
    sent = await send_to_business(
        settings,
        f"Website enquiry: {data.topic}",
        render_contact_message(data.name, data.email, data.message, data.topic),
        reply_to=data.email,
    )
    return {"ok": True, "sent": sent}


# ================== BLOG ==================
@app.get("/api/blog")
def blog_posts(settings: Settings = Depends(get_settings)):
    return fetch_blog_posts(settings)


@app.get("/api/blog/{post_id}")
def blog_post(post_id: int, settings: Settings = Depends(get_settings)):
    post = find_post(fetch_blog_posts(settings), post_id)
    if post is None:
        raise HTTPException(404, "Post not found")
    return post


# ================== HEALTH ==================
@app.get("/api/health")
def health(store: BookingStore = Depends(get_store), settings: Settings = Depends(get_settings)):
    database = "ok"
    try:
        store.ping()
    except SQLAlchemyError as e:
        logger.warning("Health check could not reach the booking store: %s", e)
        database = "unreachable"
    return {"backend": "ok", "database": database, "missing_config": settings.missing_keys()}


# ================== PAGES ==================
def page(name: str) -> str:
    with open(os.path.join(FRONTEND_DIR, name), encoding="utf-8") as f:
        return f.read()


@app.get("/", response_class=HTMLResponse)
def index():
    return page("index.html")


@app.get("/tours/{tour_id}", response_class=HTMLResponse)
def tour_page(tour: Tour = Depends(get_tour)):
    return page("tour.html")


@app.get("/blog", response_class=HTMLResponse)
def blog_page():
    return page("blog.html")


@app.get("/success", response_class=HTMLResponse)
def success():
    return page("success.html")


@app.get("/admin", response_class=HTMLResponse)
def admin():
    return page("admin.html")


# ================== ADMIN ==================
@app.post("/admin/login")
def admin_login(user: str = Form(...), password: str = Form(...),
                settings: Settings = Depends(get_settings)):
    if secrets.compare_digest(user, settings.ADMIN_USER) and secrets.compare_digest(password, settings.ADMIN_PASS):
        return {"ok": True}
    raise HTTPException(401)


@app.get("/api/admin/bookings")
def admin_bookings(store: BookingStore = Depends(get_store), _: str = Depends(require_admin)):
    return [b.to_dict() for b in store.list_bookings()]


@app.post("/api/admin/cancel/{id}")
def admin_cancel(id: int, store: BookingStore = Depends(get_store), _: str = Depends(require_admin)):
    booking = store.set_status(id, CANCELLED)
    if booking is None:
        raise HTTPException(404)
    logger.info("Booking %s (%s) cancelled by admin", id, booking.stripe_id)
    return {"ok": True}


@app.post("/api/admin/block")
def admin_block(data: BlockRequest,
                tours: Dict[str, Tour] = Depends(get_tours),
                store: BookingStore = Depends(get_store),
                _: str = Depends(require_admin)):
    tour = find_tour(tours, data.tour)
    if tour is None:
        raise HTTPException(404, "Tour not found")

    occupancy = fetch_occupancy(store, tour.id, data.date)
    if not occupancy.ok:
        raise HTTPException(503, "Booking store unavailable")
    guests = data.guests or spots_left(occupancy.value, data.date, tour.max_capacity)
    if guests <= 0:
        raise HTTPException(400, "Date is already sold out")

    booking = store.insert(data.date, tour.id, guests, payment_status=BLOCKED)
    logger.info("Blocked %s spots for %s on %s", guests, tour.id, data.date)
    return booking.to_dict()
