"""Core enums shared across the value ledger."""
