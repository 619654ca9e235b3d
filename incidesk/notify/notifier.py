from __future__ import annotations

import logging
from typing import Protocol

from incidesk.domain.models import AppConfig, Incident, NotificationIntent

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, intent: NotificationIntent) -> None:
        ...


class LoggingNotifier:
    """Records the intent as a log line; no message leaves the process."""

    def notify(self, intent: NotificationIntent) -> None:
        logger.info(
            "simulated notification | %s",
            intent.message,
            extra={
                "event": intent.event,
                "incident_id": intent.incident_id,
                "incident_type": intent.incident_type.value,
                "recipient": intent.recipient,
                "status": intent.status.value,
            },
        )


class NullNotifier:
    def notify(self, intent: NotificationIntent) -> None:
        return None


def created_intent(incident: Incident, config: AppConfig) -> NotificationIntent:
    recipient = config.email_for(incident.type)
    return NotificationIntent(
        event="created",
        incident_id=incident.id,
        incident_type=incident.type,
        recipient=recipient,
        status=incident.status,
        message=f"new {incident.type.value} incident at {incident.location} for {recipient}",
    )


def status_changed_intent(incident: Incident) -> NotificationIntent:
    # The reporter is the one to tell; contact is free text and may be empty.
    return NotificationIntent(
        event="status_changed",
        incident_id=incident.id,
        incident_type=incident.type,
        recipient=incident.contact,
        status=incident.status,
        message=f"incident {incident.id} status changed to {incident.status.value}",
    )
