"""Value Ledger - peer-recognition value tokens for coaching cohorts."""

__version__ = "1.0.0"
