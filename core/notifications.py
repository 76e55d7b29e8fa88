"""
Reschedule notifications.

The booking core only builds a ``RescheduleNotice``; delivery happens after
the state change has committed (a FastAPI background task) and its outcome is
only logged.
"""

import logging
from datetime import date
from typing import Protocol

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import BaseModel, EmailStr

from core.config import Settings

logger = logging.getLogger(__name__)


class RescheduleNotice(BaseModel):
    recipient: EmailStr
    patient_name: str
    new_date: date
    new_time: str

    @property
    def subject(self) -> str:
        return "Appointment Rescheduled"

    @property
    def body(self) -> str:
        return f"Your appointment has been rescheduled to {self.new_date.isoformat()} at {self.new_time}."


class Notifier(Protocol):
    async def send(self, notice: RescheduleNotice) -> None: ...


class MailNotifier:
    def __init__(self, conf: ConnectionConfig):
        self.mail = FastMail(conf)

    @classmethod
    def from_settings(cls, settings: Settings) -> "MailNotifier":
        conf = ConnectionConfig(
            MAIL_USERNAME=settings.mail_username,
            MAIL_PASSWORD=settings.mail_password,
            MAIL_FROM=settings.mail_from,
            MAIL_FROM_NAME=settings.mail_from_name,
            MAIL_PORT=settings.mail_port,
            MAIL_SERVER=settings.mail_server,
            MAIL_STARTTLS=settings.mail_starttls,
            MAIL_SSL_TLS=settings.mail_ssl_tls,
            USE_CREDENTIALS=bool(settings.mail_username),
        )
        return cls(conf)

    async def send(self, notice: RescheduleNotice) -> None:
        message = MessageSchema(
            subject=notice.subject,
            recipients=[notice.recipient],
            body=notice.body,
            subtype=MessageType.plain,
        )
        await self.mail.send_message(message)


class LogNotifier:
    """Used when no mail server is configured."""

    async def send(self, notice: RescheduleNotice) -> None:
        logger.info("Notice for %s <%s>: %s", notice.patient_name, notice.recipient, notice.body)


def build_notifier(settings: Settings) -> Notifier:
    if settings.mail_enabled:
        return MailNotifier.from_settings(settings)
    logger.warning("MAIL_SERVER not set, reschedule notices will only be logged")
    return LogNotifier()


async def deliver_notice(notifier: Notifier, notice: RescheduleNotice) -> bool:
    """Attempt delivery once. Never raises: the reschedule has already committed."""
    try:
        await notifier.send(notice)
    except Exception as e:
        logger.error("Error notifying %s of reschedule: %s", notice.recipient, e)
        return False
    logger.info("Reschedule notice sent to %s", notice.recipient)
    return True
