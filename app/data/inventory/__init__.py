"""
Inventory allocation data layer.

- statuses.py - closed vocabularies for status/type columns
- allocations/ - location and event allocation ledgers (CRUD only)
- audit_entry.py - append-only audit trail
"""
