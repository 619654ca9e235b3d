from __future__ import annotations

from incidesk.domain.models import AppConfig, Incident, IncidentType
from incidesk.domain.stats import IncidentStats, format_duration
from incidesk.session import AdminSession


def render_home(session: AdminSession) -> str:
    lines = [
        "School incident desk",
        "",
        "  report it        report an IT incident",
        "  report building  report a building incident",
        "  list             view incidents",
        "  stats            view statistics",
    ]
    if session.is_admin:
        lines += [
            "  set-status       change an incident's status",
            "  config           view or change notification settings",
        ]
    return "\n".join(lines)


def render_incident_row(incident: Incident) -> str:
    return (
        f"{incident.id}  [{incident.status.value}]  {incident.type.value} @ {incident.location}"
        f"  ({incident.timestamp})\n    {incident.description}"
    )


def render_list(incidents: list[Incident], session: AdminSession) -> str:
    if not incidents:
        if session.is_admin:
            return "No pending incidents."
        return "No incidents have been reported."
    title = "Pending incidents" if session.is_admin else "Incidents"
    return "\n".join([f"{title} ({len(incidents)})", ""] + [render_incident_row(i) for i in incidents])


def render_detail(incident: Incident) -> str:
    lines = [
        f"Incident {incident.id}",
        f"  Type:        {incident.type.value}",
        f"  Status:      {incident.status.value}",
        f"  Reported:    {incident.timestamp}",
        f"  Location:    {incident.location}",
        f"  Description: {incident.description}",
    ]
    if incident.suggestions:
        lines.append(f"  Suggestions: {incident.suggestions}")
    if incident.contact:
        lines.append(f"  Contact:     {incident.contact}")
    if incident.resolved_timestamp:
        lines.append(f"  Resolved:    {incident.resolved_timestamp}")
    if incident.ai_summary or incident.ai_steps:
        lines += ["", "  AI analysis"]
        if incident.ai_summary:
            lines.append(f"    {incident.ai_summary}")
        for number, step in enumerate(incident.ai_steps or (), start=1):
            lines.append(f"    {number}. {step}")
    return "\n".join(lines)


def render_stats(stats: IncidentStats) -> str:
    if stats.total == 0:
        return "No incident data to show statistics for."

    lines = ["Incident statistics", ""]
    for incident_type in IncidentType:
        lines.append(
            f"  Total {incident_type.value}: {stats.by_type[incident_type]}"
            f"   average resolution: {format_duration(stats.avg_resolution_seconds[incident_type])}"
        )
    lines += ["", "  By status"]
    for status, count in stats.by_status.items():
        lines.append(f"    {status.value:<12} {count}")
    return "\n".join(lines)


def render_config(config: AppConfig) -> str:
    return "\n".join([
        "Settings",
        f"  Spreadsheet URL:     {config.spreadsheet_url}",
        f"  IT email:            {config.it_email}",
        f"  Building email:      {config.building_email}",
    ])
