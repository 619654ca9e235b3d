from __future__ import annotations

import dataclasses
import json
import logging
import sqlite3
from datetime import datetime, timedelta, timezone

from incidesk.domain.models import (
    DEFAULT_CONFIG,
    Analysis,
    AppConfig,
    Incident,
    IncidentDraft,
    IncidentStatus,
)
from incidesk.domain.validation import validate_draft
from incidesk.storage.backends import KeyValueStorage

logger = logging.getLogger(__name__)

INCIDENTS_KEY = "incidents_data"
CONFIG_KEY = "app_config"

# sqlite3.Error covers the SQLite backend, OSError the file backend.
STORAGE_ERRORS = (OSError, sqlite3.Error)

HUMAN_TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _instant_id(moment: datetime) -> str:
    # Fixed width so ids sort lexically in creation order.
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


class IncidentStore:
    """Ordered incident collection, newest first, persisted whole after every change."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._incidents: list[Incident] = self._load()

    def _load(self) -> list[Incident]:
        try:
            raw = self._storage.read(INCIDENTS_KEY)
        except STORAGE_ERRORS as exc:
            logger.warning("failed to read incidents, starting empty: %s", exc)
            return []
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            return [Incident.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("stored incidents are corrupt, starting empty: %s", exc)
            return []

    def _persist(self) -> None:
        payload = json.dumps([inc.to_dict() for inc in self._incidents], ensure_ascii=False)
        try:
            self._storage.write(INCIDENTS_KEY, payload)
        except STORAGE_ERRORS as exc:
            logger.warning("failed to persist incidents, keeping them in memory only: %s", exc)

    def list(self) -> list[Incident]:
        return list(self._incidents)

    def get(self, incident_id: str) -> Incident | None:
        for inc in self._incidents:
            if inc.id == incident_id:
                return inc
        return None

    def _unique_instant(self, now: datetime) -> datetime:
        taken = {inc.id for inc in self._incidents}
        while _instant_id(now) in taken:
            now += timedelta(microseconds=1)
        return now

    def create(
        self,
        draft: IncidentDraft,
        analysis: Analysis | None = None,
        now: datetime | None = None,
    ) -> Incident:
        clean = validate_draft(draft)
        created_at = self._unique_instant(now or _utcnow())

        incident = Incident(
            id=_instant_id(created_at),
            type=clean.type,
            location=clean.location,
            description=clean.description,
            timestamp=created_at.astimezone().strftime(HUMAN_TIMESTAMP_FORMAT),
            status=IncidentStatus.REPORTED,
            suggestions=clean.suggestions,
            contact=clean.contact,
            ai_summary=analysis.summary if analysis else None,
            ai_steps=analysis.steps if analysis else None,
        )
        self._incidents.insert(0, incident)
        self._persist()
        return incident

    def update_status(
        self,
        incident_id: str,
        status: IncidentStatus,
        now: datetime | None = None,
    ) -> Incident | None:
        """Returns the updated incident, or None when no incident has this id."""
        for index, inc in enumerate(self._incidents):
            if inc.id != incident_id:
                continue
            changes: dict = {"status": status}
            if status is IncidentStatus.RESOLVED and not inc.resolved_timestamp:
                changes["resolved_timestamp"] = _instant_id(now or _utcnow())
            updated = dataclasses.replace(inc, **changes)
            self._incidents[index] = updated
            self._persist()
            return updated
        return None


class ConfigStore:
    def __init__(self, storage: KeyValueStorage, defaults: AppConfig = DEFAULT_CONFIG) -> None:
        self._storage = storage
        self._defaults = defaults
        self._config = self._load()

    def _load(self) -> AppConfig:
        try:
            raw = self._storage.read(CONFIG_KEY)
        except STORAGE_ERRORS as exc:
            logger.warning("failed to read config, using defaults: %s", exc)
            return self._defaults
        if raw is None:
            return self._defaults
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise TypeError(f"expected an object, got {type(data).__name__}")
            return AppConfig.from_dict(data, defaults=self._defaults)
        except (ValueError, TypeError) as exc:
            logger.warning("stored config is corrupt, using defaults: %s", exc)
            return self._defaults

    def get(self) -> AppConfig:
        return self._config

    def set(self, config: AppConfig) -> None:
        self._config = config
        try:
            self._storage.write(CONFIG_KEY, json.dumps(config.to_dict(), ensure_ascii=False))
        except STORAGE_ERRORS as exc:
            logger.warning("failed to persist config, keeping it in memory only: %s", exc)
