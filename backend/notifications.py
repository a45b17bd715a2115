import logging
from typing import Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema

from settings import Settings

logger = logging.getLogger(__name__)


def mail_config(settings: Settings) -> Optional[ConnectionConfig]:
    if not settings.mail_enabled:
        return None
    return ConnectionConfig(
        MAIL_USERNAME=settings.MAIL_USERNAME,
        MAIL_PASSWORD=settings.MAIL_PASSWORD,
        MAIL_FROM=settings.MAIL_FROM,
        MAIL_PORT=settings.MAIL_PORT,
        MAIL_SERVER=settings.MAIL_SERVER,
        MAIL_STARTTLS=True,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=True,
    )


def render_booking_notice(tour_title: str, handoff_ref: str, day: str, time: str,
                          guests: int, total: int, reserved: bool):
    held = "yes" if reserved else "NO, the pending row could not be stored"
    return f"""
    <html>
    <body>
        <h2>New pending booking</h2>
        <p>Tour: {tour_title}</p>
        <p>Date & time: {day}, {time}</p>
        <p>Guests: {guests}</p>
        <p>Total: €{total}</p>
        <p>Reference: {handoff_ref}</p>
        <p>Inventory held: {held}</p>
        <p>The guest has been sent to checkout; payment is not confirmed yet.</p>
    </body>
    </html>
    """


def render_contact_message(name: str, email: str, message: str, topic: str):
    return f"""
    <html>
    <body>
        <h2>New enquiry: {topic}</h2>
        <p>Name: {name}</p>
        <p>Email: {email}</p>
        <p>{message}</p>
    </body>
    </html>
    """


async def send_to_business(settings: Settings, subject: str, html_body: str,
                           reply_to: Optional[str] = None) -> bool:
    """Send a message to the business mailbox. Failures are logged, never raised."""
    conf = mail_config(settings)
    if conf is None:
        logger.info("Mail not configured, skipping '%s'", subject)
        return False

    message = MessageSchema(
        subject=subject,
        recipients=[settings.MAIL_USERNAME],
        body=html_body,
        subtype="html",
        reply_to=[reply_to] if reply_to else [],
    )
    try:
        await FastMail(conf).send_message(message)
    except Exception as e:
        logger.error("Sending '%s' failed: %s", subject, e)
        return False
    return True
