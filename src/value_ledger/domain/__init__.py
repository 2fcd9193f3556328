"""Domain layer for the value ledger.

Contains pure business logic: identity matching, aggregation and integrity
checks. Nothing in this layer performs I/O.
"""
