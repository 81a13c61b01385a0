# Overview: Row locking helper shared by the stock-changing services.

from __future__ import annotations


def lock_for_update(query):
    """
    Apply row-level locking to a read that precedes a stock write.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Conflicting writes are not retried; the caller sees the error.
    """
    return query.with_for_update()
