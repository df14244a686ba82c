"""
Audit log writer.

Entries are inserted inside the caller's transaction, in a SAVEPOINT, so an
audit failure rolls back only the entry and the mutation still commits.
"""

from typing import Optional

from flask import has_request_context
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.inventory.errors import AuditLogFailure
from app.data.inventory.audit_entry import AuditEntry
from app.logger import get_logger

logger = get_logger("equipment_inventory.buisness.inventory.audit")


def resolve_actor_id(actor) -> int:
    """
    Accepts a user id, a User, or None.

    None falls back to the logged-in user when running inside a request.
    """
    if actor is None and has_request_context() and current_user.is_authenticated:
        actor = current_user
    if actor is None:
        raise ValueError("An actor (user id) is required for inventory mutations")
    return actor if isinstance(actor, int) else actor.id


class AuditLog:

    @staticmethod
    def _build_entry(**fields) -> AuditEntry:
        return AuditEntry(**fields)

    @staticmethod
    def record(
        *,
        item_id: int,
        action_type: str,
        user_id: int,
        allocation=None,
        previous_status: Optional[str] = None,
        new_status: Optional[str] = None,
        previous_location_id: Optional[int] = None,
        new_location_id: Optional[int] = None,
        previous_quantity: Optional[int] = None,
        new_quantity: Optional[int] = None,
        details: Optional[str] = None
    ) -> Optional[AuditEntry]:
        """
        Append one entry for a mutation that is already in the session.

        Returns:
            The new entry, or None when it could not be written
        """
        # The mutation has to reach the database before the savepoint opens
        db.session.flush()

        try:
            with db.session.begin_nested():
                entry = AuditLog._build_entry(
                    item_id=item_id,
                    allocation_kind=allocation.KIND if allocation is not None else None,
                    allocation_id=allocation.id if allocation is not None else None,
                    user_id=user_id,
                    action_type=action_type,
                    previous_status=previous_status,
                    new_status=new_status,
                    previous_location_id=previous_location_id,
                    new_location_id=new_location_id,
                    previous_quantity=previous_quantity,
                    new_quantity=new_quantity,
                    details=details,
                )
                db.session.add(entry)
            return entry
        except SQLAlchemyError as e:
            failure = AuditLogFailure(f"Could not write '{action_type}' audit entry for item {item_id}: {e}")
            logger.error(str(failure), exc_info=True)
            return None
