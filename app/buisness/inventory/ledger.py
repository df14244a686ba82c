"""
Unified view over the two allocation ledgers.

Location and event allocations are stored in separate tables but every
aggregation (availability, conflict detection, location inventory) goes
through AllocationRecord so both ledgers are summed by one code path.
"""

from collections import defaultdict
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional, Tuple

from app import db
from app.buisness.inventory.errors import NotFoundError
from app.buisness.inventory.status_rules import StatusRules, DEFAULT_STATUS_RULES
from app.data.inventory.allocations import LocationAllocation, EventAllocation
from app.data.inventory.statuses import AllocationKind


@dataclass(frozen=True)
class AllocationRecord:
    """One allocation from either ledger, reduced to what aggregation needs"""

    kind: str
    id: int
    item_id: int
    status: str
    quantity: int
    quantity_needed: Optional[int] = None
    location_id: Optional[int] = None
    event_id: Optional[int] = None
    label: Optional[str] = None

    @property
    def key(self) -> Tuple[str, int]:
        return (self.kind, self.id)

    @classmethod
    def from_model(cls, allocation) -> 'AllocationRecord':
        if allocation.KIND == AllocationKind.LOCATION:
            return cls(
                kind=AllocationKind.LOCATION,
                id=allocation.id,
                item_id=allocation.item_id,
                status=allocation.status,
                quantity=allocation.counted_quantity,
                location_id=allocation.location_id,
                event_id=allocation.event_id,
                label=allocation.location.name if allocation.location else f"Location {allocation.location_id}",
            )
        return cls(
            kind=AllocationKind.EVENT,
            id=allocation.id,
            item_id=allocation.item_id,
            status=allocation.status,
            quantity=allocation.counted_quantity,
            quantity_needed=allocation.quantity_needed,
            event_id=allocation.event_id,
            label=allocation.event.name if allocation.event else f"Event {allocation.event_id}",
        )

    def to_dict(self):
        return asdict(self)


class AllocationLedger:
    """Read access to both ledgers, filtered and summed through StatusRules"""

    MODELS = {
        AllocationKind.LOCATION: LocationAllocation,
        AllocationKind.EVENT: EventAllocation,
    }

    def __init__(self, rules: StatusRules = DEFAULT_STATUS_RULES):
        self.rules = rules

    @classmethod
    def model_for(cls, kind: str):
        try:
            return cls.MODELS[kind]
        except KeyError:
            raise ValueError(f"Unknown allocation kind: {kind}")

    @classmethod
    def get(cls, kind: str, allocation_id: int):
        model = cls.model_for(kind)
        allocation = db.session.get(model, allocation_id)
        if allocation is None:
            raise NotFoundError(model.__name__, allocation_id)
        return allocation

    def records_for_item(self, item_id: int) -> List[AllocationRecord]:
        records = []
        for kind in AllocationKind.ALL:
            model = self.MODELS[kind]
            rows = model.query.filter_by(item_id=item_id).order_by(model.id.asc()).all()
            records.extend(AllocationRecord.from_model(row) for row in rows)
        return records

    def active_records(
        self,
        item_id: int,
        exclude: Optional[Tuple[str, int]] = None
    ) -> List[AllocationRecord]:
        """Non-terminal records of the item, optionally without one (kind, id)"""
        return [
            record for record in self.records_for_item(item_id)
            if self.rules.is_active(record.status) and record.key != exclude
        ]

    @staticmethod
    def sum_by_status(records: Iterable[AllocationRecord]) -> Dict[str, Dict[str, int]]:
        """
        Quantities per status, kept separate per ledger.

        Returns:
            {kind: {status: quantity}} with an entry for every kind
        """
        totals = {kind: defaultdict(int) for kind in AllocationKind.ALL}
        for record in records:
            totals[record.kind][record.status] += record.quantity
        return {kind: dict(by_status) for kind, by_status in totals.items()}

    @staticmethod
    def sum_statuses(records: Iterable[AllocationRecord], statuses) -> int:
        return sum(record.quantity for record in records if record.status in statuses)
