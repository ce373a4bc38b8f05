# barberbook/notifications.py
"""
Customer notifications sent after a booking is admitted.

Delivery is best effort: the dispatcher never raises, it logs the outcome
and records it in the notification_log table.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Protocol

import httpx
from sqlmodel import Session

from barberbook.config import Settings
from barberbook.models import NotificationLog

logger = logging.getLogger(__name__)

CHANNEL_WHATSAPP = "whatsapp"
CHANNEL_EMAIL = "email"
TYPE_CONFIRMATION = "confirmation"

CONFIRMATION_TEMPLATE = (
    "Hello {customer_name}, your {service_name} appointment at {shop_name} "
    "on {date} at {time} is confirmed!"
)

_VARIABLE = re.compile(r"{(\w+)}")


def render_template(content: str, variables: Dict[str, str]) -> str:
    """Replace {name} placeholders; unknown placeholders are left as-is."""
    if not content:
        return ""
    return _VARIABLE.sub(lambda m: variables.get(m.group(1)) or m.group(0), content)


def format_phone(phone: str, country_code: str = "55") -> str:
    digits = re.sub(r"\D", "", phone or "")
    # local numbers come without the country prefix
    if len(digits) <= 11:
        return f"{country_code}{digits}"
    return digits


def snippet(message: str, limit: int = 50) -> str:
    return message[:limit] + ("..." if len(message) > limit else "")


@dataclass
class DeliveryResult:
    success: bool
    error: Optional[str] = None
    log_id: Optional[int] = None


@dataclass(frozen=True)
class AppointmentSummary:
    shop_id: str
    appointment_id: str
    customer_name: str
    customer_phone: str
    service_name: str
    starts_at: datetime
    shop_name: str = "Barbershop"

    def variables(self) -> Dict[str, str]:
        return {
            "customer_name": self.customer_name,
            "service_name": self.service_name,
            "shop_name": self.shop_name,
            "date": self.starts_at.strftime("%d/%m/%Y"),
            "time": self.starts_at.strftime("%H:%M"),
        }


class NotificationProvider(Protocol):
    def send(self, to: str, message: str, channel: str) -> DeliveryResult:
        ...


class ConsoleProvider:
    def send(self, to: str, message: str, channel: str) -> DeliveryResult:
        logger.info("[%s] To: %s | Message: %r", channel.upper(), to, message)
        return DeliveryResult(success=True)


class WhatsAppProvider:
    """Sends text messages through an Evolution API instance."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        instance_name: str,
        country_code: str = "55",
        timeout_seconds: float = 20.0,
        client: Optional[httpx.Client] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.instance_name = instance_name
        self.country_code = country_code
        self.timeout_seconds = timeout_seconds
        self._client = client

    def send(self, to: str, message: str, channel: str) -> DeliveryResult:
        if channel != CHANNEL_WHATSAPP:
            return DeliveryResult(success=False, error=f"WhatsAppProvider does not support '{channel}'")

        url = f"{self.api_url}/message/sendText/{self.instance_name}"
        payload = {
            "number": format_phone(to, self.country_code),
            "options": {"delay": 1200, "presence": "composing", "linkPreview": False},
            "textMessage": {"text": message},
        }
        headers = {"apikey": self.api_key}

        if self._client is not None:
            r = self._client.post(url, json=payload, headers=headers)
        else:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                r = client.post(url, json=payload, headers=headers)

        if r.is_error:
            return DeliveryResult(success=False, error=f"HTTP {r.status_code}: {r.text}")
        return DeliveryResult(success=True)


class NotificationDispatcher:
    def __init__(
        self,
        providers: Dict[str, NotificationProvider],
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        self.providers = providers
        self.session_factory = session_factory

    def dispatch(
        self,
        *,
        shop_id: str,
        appointment_id: Optional[str],
        to: str,
        message: str,
        channel: str = CHANNEL_WHATSAPP,
        type: str = TYPE_CONFIRMATION,
    ) -> DeliveryResult:
        provider = self.providers.get(channel)
        if provider is None:
            logger.error("No notification provider for channel %s", channel)
            return DeliveryResult(success=False, error=f"No provider for channel {channel}")

        try:
            result = provider.send(to, message, channel)
        except Exception as exc:  # delivery must never reach the booking caller
            logger.exception("Error sending %s notification to %s", type, to)
            result = DeliveryResult(success=False, error=str(exc) or exc.__class__.__name__)

        if result.success:
            logger.info("Sent %s notification for appointment %s", type, appointment_id)
        else:
            logger.warning("Failed %s notification for appointment %s: %s", type, appointment_id, result.error)

        result.log_id = self._record(
            shop_id=shop_id,
            appointment_id=appointment_id,
            type=type,
            channel=channel,
            recipient=to,
            status="sent" if result.success else "failed",
            error=result.error,
            message_snippet=snippet(message),
        )
        return result

    def send_confirmation(self, summary: AppointmentSummary, channel: str = CHANNEL_WHATSAPP) -> DeliveryResult:
        message = render_template(CONFIRMATION_TEMPLATE, summary.variables())
        return self.dispatch(
            shop_id=summary.shop_id,
            appointment_id=summary.appointment_id,
            to=summary.customer_phone,
            message=message,
            channel=channel,
            type=TYPE_CONFIRMATION,
        )

    def _record(self, **fields) -> Optional[int]:
        if self.session_factory is None:
            return None
        try:
            with self.session_factory() as session:
                entry = NotificationLog(**fields)
                session.add(entry)
                session.commit()
                session.refresh(entry)
                return entry.id
        except Exception:
            logger.exception("Failed to record notification log for appointment %s", fields.get("appointment_id"))
            return None


def build_dispatcher(settings: Settings, session_factory: Optional[Callable[[], Session]] = None) -> NotificationDispatcher:
    console = ConsoleProvider()
    if settings.use_mock_notifications or not settings.evolution_configured:
        whatsapp = console
    else:
        whatsapp = WhatsAppProvider(
            api_url=settings.evolution_api_url,
            api_key=settings.evolution_api_key,
            instance_name=settings.evolution_instance_name,
            country_code=settings.default_country_code,
            timeout_seconds=settings.notification_timeout_seconds,
        )
    return NotificationDispatcher(
        providers={CHANNEL_WHATSAPP: whatsapp, CHANNEL_EMAIL: console},
        session_factory=session_factory,
    )
