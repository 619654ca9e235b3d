from __future__ import annotations

from typing import Any

from incidesk.domain.errors import ValidationError
from incidesk.domain.models import IncidentDraft

REQUIRED_FIELDS_MESSAGE = "Location and description are required."


def _safe_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_draft(draft: IncidentDraft) -> IncidentDraft:
    return IncidentDraft(
        type=draft.type,
        location=_safe_text(draft.location),
        description=_safe_text(draft.description),
        suggestions=_safe_text(draft.suggestions),
        contact=_safe_text(draft.contact),
    )


def validate_draft(draft: IncidentDraft) -> IncidentDraft:
    """Returns the trimmed draft or raises ValidationError naming the empty fields."""
    normalized = normalize_draft(draft)
    missing = tuple(
        name for name in ("location", "description") if not getattr(normalized, name)
    )
    if missing:
        raise ValidationError(REQUIRED_FIELDS_MESSAGE, fields=missing)
    return normalized
