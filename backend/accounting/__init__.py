# accounting/__init__.py
"""
Accounting app - the general-ledger core.

This app provides:
- Account: Chart of Accounts with hierarchy
- Period: Month lock state (open -> closed)
- JournalEntry: Balanced, append-only double-entry postings
- JournalLine: Debit/credit lines

Commands handle all mutations; reports live in the projections app.
"""
