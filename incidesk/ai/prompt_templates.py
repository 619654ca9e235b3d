from __future__ import annotations

SYSTEM_PROMPT = (
    "You help the maintenance and IT staff of a school triage incident reports. "
    "Answer only with a JSON object with two keys: "
    '"summary" (one sentence describing the incident) and '
    '"actionable_steps" (an array of exactly three short, clear steps for a technician).'
)

# Gemini structured-output schema for the same object.
RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "summary": {
            "type": "STRING",
            "description": "One-sentence summary of the incident.",
        },
        "actionable_steps": {
            "type": "ARRAY",
            "description": "Three short, clear action steps for a technician.",
            "items": {"type": "STRING"},
        },
    },
    "required": ["summary", "actionable_steps"],
}


def build_user_prompt(description: str, suggestion: str) -> str:
    suggestion = suggestion.strip() or "none"
    return (
        "Analyze the following incident reported at a school, using its description "
        "and the reporter's suggestion. Produce a summary and the steps to follow.\n\n"
        f'Problem description: "{description.strip()}"\n'
        f'Reporter suggestion: "{suggestion}"'
    )
