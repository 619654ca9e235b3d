from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


def _squash(text: str) -> str:
    # "In Progress", "IN_PROGRESS" and "InProgress" all compare equal.
    return text.strip().lower().replace(" ", "").replace("_", "")


class IncidentType(str, Enum):
    IT = "IT"
    BUILDING = "Building"


class IncidentStatus(str, Enum):
    REPORTED = "Reported"
    RECEIVED = "Received"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"

    @classmethod
    def parse(cls, raw: str) -> "IncidentStatus":
        """Accepts the stored value or the member name, case-insensitive."""
        text = _squash(raw)
        for status in cls:
            if text in (_squash(status.value), _squash(status.name)):
                return status
        raise ValueError(f"unknown incident status: {raw!r}")


@dataclass(frozen=True)
class IncidentDraft:
    type: IncidentType
    location: str
    description: str
    suggestions: str = ""
    contact: str = ""


@dataclass(frozen=True)
class Analysis:
    summary: str
    steps: tuple[str, ...]
    fallback: bool = False


@dataclass(frozen=True)
class Incident:
    id: str
    type: IncidentType
    location: str
    description: str
    timestamp: str
    status: IncidentStatus
    suggestions: str = ""
    contact: str = ""
    ai_summary: str | None = None
    ai_steps: tuple[str, ...] | None = None
    resolved_timestamp: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "location": self.location,
            "timestamp": self.timestamp,
            "description": self.description,
            "suggestions": self.suggestions,
            "contact": self.contact,
            "status": self.status.value,
        }
        if self.ai_summary is not None:
            payload["aiSummary"] = self.ai_summary
        if self.ai_steps is not None:
            payload["aiSteps"] = list(self.ai_steps)
        if self.resolved_timestamp is not None:
            payload["resolvedTimestamp"] = self.resolved_timestamp
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Incident":
        steps = raw.get("aiSteps")
        return cls(
            id=str(raw["id"]),
            type=IncidentType(raw["type"]),
            location=str(raw["location"]),
            description=str(raw["description"]),
            timestamp=str(raw["timestamp"]),
            status=IncidentStatus(raw["status"]),
            suggestions=str(raw.get("suggestions") or ""),
            contact=str(raw.get("contact") or ""),
            ai_summary=raw.get("aiSummary"),
            ai_steps=tuple(str(step) for step in steps) if steps is not None else None,
            resolved_timestamp=raw.get("resolvedTimestamp"),
        )


@dataclass(frozen=True)
class AppConfig:
    spreadsheet_url: str
    it_email: str
    building_email: str

    def email_for(self, incident_type: IncidentType) -> str:
        if incident_type is IncidentType.IT:
            return self.it_email
        return self.building_email

    def to_dict(self) -> dict[str, str]:
        return {
            "spreadsheetUrl": self.spreadsheet_url,
            "itEmail": self.it_email,
            "buildingEmail": self.building_email,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any], defaults: "AppConfig | None" = None) -> "AppConfig":
        # Missing or null keys fall back to the defaults one by one.
        base = defaults or DEFAULT_CONFIG

        def pick(key: str, default: str) -> str:
            value = raw.get(key)
            return default if value is None else str(value)

        return cls(
            spreadsheet_url=pick("spreadsheetUrl", base.spreadsheet_url),
            it_email=pick("itEmail", base.it_email),
            building_email=pick("buildingEmail", base.building_email),
        )


DEFAULT_CONFIG = AppConfig(
    spreadsheet_url="https://docs.google.com/spreadsheets/d/example",
    it_email="14700420.administracion@g.educaand.es",
    building_email="14700420.secretario@g.educaand.es",
)


@dataclass(frozen=True)
class NotificationIntent:
    event: str
    incident_id: str
    incident_type: IncidentType
    recipient: str
    status: IncidentStatus
    message: str
