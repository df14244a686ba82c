"""
AllocationNarrator - Details text for inventory audit entries

Ensures every mutation produces a consistent machine-generated description.
Separates audit narrative formatting from the mutation logic.
"""

from typing import Optional


def _with_notes(text: str, notes: Optional[str]) -> str:
    if notes:
        return f"{text} | Notes: {notes}"
    return text


class AllocationNarrator:
    """Composes the ``details`` text stored on AuditEntry rows"""

    @staticmethod
    def allocated(quantity: int, location_name: str, allocation_type: str, notes: Optional[str] = None) -> str:
        return _with_notes(f"Allocated {quantity} unit(s) to {location_name} ({allocation_type})", notes)

    @staticmethod
    def returned(quantity: int, location_name: str, notes: Optional[str] = None) -> str:
        return _with_notes(f"Returned {quantity} unit(s) from {location_name}", notes)

    @staticmethod
    def moved(from_name: str, to_name: str, notes: Optional[str] = None) -> str:
        return _with_notes(f"Moved from {from_name} to {to_name}", notes)

    @staticmethod
    def requested(quantity_needed: int, event_name: str, notes: Optional[str] = None) -> str:
        return _with_notes(f"Requested {quantity_needed} unit(s) for {event_name}", notes)

    @staticmethod
    def re_requested(previous_id: int, previous_status: str, event_name: str) -> str:
        return f"Re-requested for {event_name} (previous allocation {previous_id} was {previous_status})"

    @staticmethod
    def event_status_changed(
        from_status: str,
        to_status: str,
        event_name: str,
        previous_quantity: Optional[int] = None,
        new_quantity: Optional[int] = None,
        notes: Optional[str] = None
    ) -> str:
        text = f"Status changed: {from_status} → {to_status} for {event_name}"
        if previous_quantity != new_quantity:
            text += f" | Allocated quantity: {previous_quantity} → {new_quantity}"
        return _with_notes(text, notes)

    @staticmethod
    def location_set(from_name: Optional[str], to_name: Optional[str], from_status: str, to_status: str) -> str:
        text = f"Location: {from_name or 'none'} → {to_name or 'none'}"
        if from_status != to_status:
            text += f" | Status: {from_status} → {to_status}"
        return text

    @staticmethod
    def installation_set(
        installation_type: str,
        quantity: int,
        location_name: Optional[str],
        notes: Optional[str] = None
    ) -> str:
        where = f" at {location_name}" if location_name else ""
        return _with_notes(f"Installation set to {installation_type}: {quantity} unit(s){where}", notes)
