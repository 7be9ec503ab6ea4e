# Overview: Service-layer helpers for row locking and guarded updates.

from __future__ import annotations

from ..errors import ConflictError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def require_single_row(result, message: str = "Record was modified concurrently", *, error=ConflictError) -> None:
    """
    Check the rowcount of a guarded UPDATE (one whose WHERE clause restates
    the precondition). Zero rows means the precondition no longer holds.
    """
    if result.rowcount != 1:
        raise error(message)
