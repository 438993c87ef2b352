"""
In-memory session storage: transcript messages, ledger entries, and totals.
"""
