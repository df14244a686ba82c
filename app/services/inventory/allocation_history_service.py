"""
Allocation History Service
Latest audit entries of an item, newest first.
"""

from typing import Any, Dict, List, Optional

from flask import current_app, has_app_context

from app.buisness.inventory.registries import ItemRegistry
from app.data.inventory.audit_entry import AuditEntry

DEFAULT_HISTORY_LIMIT = 50


class AllocationHistoryService:

    @staticmethod
    def history_limit() -> int:
        if has_app_context():
            return int(current_app.config.get('HISTORY_LIMIT', DEFAULT_HISTORY_LIMIT))
        return DEFAULT_HISTORY_LIMIT

    @staticmethod
    def get_history(item_id: int, limit: Optional[int] = None) -> List[AuditEntry]:
        """
        Audit entries of an item, newest first.

        Args:
            item_id: Item to look up
            limit: Maximum number of entries (default HISTORY_LIMIT, 50)

        Raises:
            NotFoundError: If the item does not exist
        """
        ItemRegistry.get(item_id)
        limit = limit or AllocationHistoryService.history_limit()
        return (
            AuditEntry.query
            .filter_by(item_id=item_id)
            .order_by(AuditEntry.timestamp.desc(), AuditEntry.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_history_dicts(item_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in AllocationHistoryService.get_history(item_id, limit)]
