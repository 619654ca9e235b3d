from __future__ import annotations

import logging
from typing import Protocol

from incidesk.domain.errors import IncidentNotFoundError
from incidesk.domain.models import Analysis, AppConfig, Incident, IncidentDraft, IncidentStatus
from incidesk.domain.stats import IncidentStats, aggregate
from incidesk.domain.validation import validate_draft
from incidesk.notify.notifier import LoggingNotifier, Notifier, created_intent, status_changed_intent
from incidesk.session import AdminSession
from incidesk.storage.repository import ConfigStore, IncidentStore

logger = logging.getLogger(__name__)


class Analyzer(Protocol):
    def analyze(self, description: str, suggestion: str = "") -> Analysis:
        ...


class IncidentController:
    """
    Incident lifecycle: creation with AI enrichment and status transitions.

    Transitions are unconstrained, any status may follow any other. The only
    side effect beyond the status write is the one-time resolved timestamp,
    which the store applies.
    """

    def __init__(
        self,
        incidents: IncidentStore,
        config: ConfigStore,
        analyzer: Analyzer,
        notifier: Notifier | None = None,
    ) -> None:
        self._incidents = incidents
        self._config = config
        self._analyzer = analyzer
        self._notifier = notifier or LoggingNotifier()

    def create(self, draft: IncidentDraft) -> Incident:
        clean = validate_draft(draft)

        analysis = self._analyzer.analyze(clean.description, clean.suggestions)
        incident = self._incidents.create(clean, analysis)
        logger.info(
            "incident created | id=%s type=%s ai_fallback=%s",
            incident.id,
            incident.type.value,
            analysis.fallback,
        )

        self._notifier.notify(created_intent(incident, self._config.get()))
        return incident

    def update_status(
        self,
        session: AdminSession,
        incident_id: str,
        status: IncidentStatus,
    ) -> Incident:
        session.require_admin()

        updated = self._incidents.update_status(incident_id, status)
        if updated is None:
            raise IncidentNotFoundError(incident_id)

        logger.info("incident status changed | id=%s status=%s", incident_id, status.value)
        self._notifier.notify(status_changed_intent(updated))
        return updated

    def get(self, incident_id: str) -> Incident:
        incident = self._incidents.get(incident_id)
        if incident is None:
            raise IncidentNotFoundError(incident_id)
        return incident

    def list_incidents(self, session: AdminSession) -> list[Incident]:
        incidents = self._incidents.list()
        if session.is_admin:
            return [inc for inc in incidents if inc.status is not IncidentStatus.RESOLVED]
        return incidents

    def stats(self) -> IncidentStats:
        return aggregate(self._incidents.list())

    def config(self, session: AdminSession) -> AppConfig:
        session.require_admin()
        return self._config.get()

    def save_config(self, session: AdminSession, config: AppConfig) -> AppConfig:
        session.require_admin()
        self._config.set(config)
        logger.info("config saved")
        return config
