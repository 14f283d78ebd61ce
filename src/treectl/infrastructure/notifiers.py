"""Reference NotificationService implementations.

Real SMS/email transport is out of scope. ``LoggingNotificationService``
reports each delivery as a structured log line; ``InMemoryNotificationService``
records deliveries for dry runs and tests.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from treectl.domain.collaborators import DeliveryResult
from treectl.domain.types import Channel


class LoggingNotificationService:
    """Log every delivery at INFO and report success."""

    def __init__(self, logger_name: str = "treectl.notifier") -> None:
        self._log = structlog.get_logger(logger_name)

    def send_sms(self, phone_number: str, label: str | None) -> DeliveryResult:
        self._log.info("sms.sent", phone_number=phone_number, label=label)
        return DeliveryResult()

    def send_email(self, sender: str, receiver: str, label: str | None) -> DeliveryResult:
        self._log.info("email.sent", sender=sender, receiver=receiver, label=label)
        return DeliveryResult()


@dataclass(frozen=True)
class Delivery:
    """One recorded notification."""

    channel: Channel
    recipient: str
    label: str | None
    sender: str | None = None
    ok: bool = True


class InMemoryNotificationService:
    """Record deliveries in call order.

    Recipients listed in *failing* get ``DeliveryResult(ok=False)``.
    """

    def __init__(self, *, failing: Iterable[str] = ()) -> None:
        self.deliveries: list[Delivery] = []
        self._failing = set(failing)

    def _record(self, delivery: Delivery) -> DeliveryResult:
        self.deliveries.append(delivery)
        if not delivery.ok:
            return DeliveryResult.failed(f"recipient {delivery.recipient} rejected")
        return DeliveryResult()

    def send_sms(self, phone_number: str, label: str | None) -> DeliveryResult:
        return self._record(
            Delivery(
                channel=Channel.SMS,
                recipient=phone_number,
                label=label,
                ok=phone_number not in self._failing,
            )
        )

    def send_email(self, sender: str, receiver: str, label: str | None) -> DeliveryResult:
        return self._record(
            Delivery(
                channel=Channel.EMAIL,
                recipient=receiver,
                label=label,
                sender=sender,
                ok=receiver not in self._failing,
            )
        )
