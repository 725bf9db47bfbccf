# prep_core/notifications/messages.py
from __future__ import annotations

CREATED = "created"
UPDATED = "updated"
DEACTIVATED = "deactivated"

REASON_PHRASES = {
    "home": "your home",
    "household": "your household",
    "home_and_household": "both your home and your household",
    "shared_location": "your home, which is also your household's location",
}


def crisis_message(*, kind: str, event_name: str, severity: str, change_text: str = "", reason: str | None = None) -> str:
    where = REASON_PHRASES.get(reason or "", "your area")

    if kind == CREATED:
        return f"New crisis event '{event_name}' (severity {severity}) affects {where}."
    if kind == UPDATED:
        suffix = f": {change_text}" if change_text else ""
        return f"Crisis event '{event_name}' near {where} was updated{suffix}."
    if kind == DEACTIVATED:
        return f"Crisis event '{event_name}' is no longer active."
    raise ValueError(f"Unknown crisis notification kind: {kind}")
