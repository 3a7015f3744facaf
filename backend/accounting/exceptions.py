# accounting/exceptions.py
"""
Exceptions for Python callers of the ledger.

Commands report failures as CommandResult; raise_for_error() turns them
into these. Read-side helpers raise them directly.
"""


class LedgerError(Exception):
    """Base class for ledger failures."""

    error_type = "error"


class LedgerValidationError(LedgerError):
    """Malformed input, unbalanced entry, inactive account, bad period key."""

    error_type = "validation_error"


class LedgerNotFound(LedgerError):
    """Unknown account, entry or period."""

    error_type = "not_found"


class LedgerConflict(LedgerError):
    """Write into a closed period, repeated close, repeated reversal."""

    error_type = "conflict"
