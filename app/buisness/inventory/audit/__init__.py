"""Audit trail: narrative text and append-only entries"""
