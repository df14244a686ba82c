"""
Inventory allocation business layer.

- status_rules.py - status classification table shared by calculator and validator
- state_machine.py - event allocation workflow
- ledger.py - unified read access to both allocation ledgers
- availability_calculator.py - availability views recomputed from the ledgers
- status/status_validator.py - transition validation (conflicts and warnings)
- managers/ - mutating ledger operations
- audit/ - audit trail writer and narrative text
- item_status.py - item status/location derivation
"""
