"""
Domain layer for the equipment inventory engine.
Contains the allocation rules, ledger operations and audit trail,
separated from data persistence concerns.
"""
