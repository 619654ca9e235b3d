from __future__ import annotations

"""
Aggregates for the stats dashboard.

Creation time is read back from the incident id (an ISO-8601 instant),
resolution time from resolved_timestamp.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from incidesk.domain.models import Incident, IncidentStatus, IncidentType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncidentStats:
    total: int
    by_type: dict[IncidentType, int]
    by_status: dict[IncidentStatus, int]
    avg_resolution_seconds: dict[IncidentType, float | None]

    def summary(self) -> str:
        types = " | ".join(f"{t.value}={self.by_type[t]}" for t in IncidentType)
        statuses = " | ".join(f"{s.value}={self.by_status[s]}" for s in IncidentStatus)
        return f"total={self.total} | {types} | {statuses}"


def _parse_instant(value: str) -> datetime | None:
    # fromisoformat only understands a trailing "Z" from Python 3.11 on.
    if isinstance(value, str) and value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolution_seconds(incident: Incident) -> float | None:
    if incident.status is not IncidentStatus.RESOLVED or not incident.resolved_timestamp:
        return None
    created = _parse_instant(incident.id)
    resolved = _parse_instant(incident.resolved_timestamp)
    if created is None or resolved is None:
        logger.warning("unparseable timestamps on incident | id=%s", incident.id)
        return None
    return (resolved - created).total_seconds()


def aggregate(incidents: Iterable[Incident]) -> IncidentStats:
    items = list(incidents)
    type_counts = Counter(inc.type for inc in items)
    status_counts = Counter(inc.status for inc in items)

    durations: dict[IncidentType, list[float]] = {t: [] for t in IncidentType}
    for inc in items:
        seconds = resolution_seconds(inc)
        if seconds is not None:
            durations[inc.type].append(seconds)

    return IncidentStats(
        total=len(items),
        by_type={t: type_counts.get(t, 0) for t in IncidentType},
        by_status={s: status_counts.get(s, 0) for s in IncidentStatus},
        avg_resolution_seconds={
            t: (sum(values) / len(values) if values else None)
            for t, values in durations.items()
        },
    )


def format_duration(seconds: float | None) -> str:
    if seconds is None or seconds <= 0:
        return "N/A"
    minutes = seconds / 60
    if minutes < 60:
        return f"{round(minutes)} min"
    hours = minutes / 60
    if hours < 24:
        return f"{hours:.1f} h"
    return f"{hours / 24:.1f} days"
