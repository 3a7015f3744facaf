# accounts/__init__.py
"""
Accounts app - caller identity and authorization for the ledger.

This app provides:
- ActorContext: Explicit caller context passed to every command
- Role defaults: Django groups seeded with ledger permissions

Authentication (JWT/session) is delegated to DRF; user records are Django's
built-in auth users.
"""
