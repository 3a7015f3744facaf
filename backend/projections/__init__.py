"""
Read-side ledger reports: general ledger and trial balance.

Reports are pure functions of the stored journal; they are computed on
request and never written back.
"""
