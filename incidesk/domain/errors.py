from __future__ import annotations


class IncidentError(Exception):
    """Base class for errors surfaced to the user by incidesk."""


class ValidationError(IncidentError):
    def __init__(self, message: str, fields: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.fields = fields


class IncidentNotFoundError(IncidentError):
    def __init__(self, incident_id: str) -> None:
        super().__init__(f"incident not found: {incident_id}")
        self.incident_id = incident_id


class AdminRequiredError(IncidentError):
    pass
