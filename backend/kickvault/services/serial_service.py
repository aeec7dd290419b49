# Overview: Per-owner variant serial number allocation.

"""
Serial Service

Every variant carries an integer serial_number unique within its owner
(uq_variants_owner_serial). Serials increase strictly and are never
reused, even after a variant is deleted.

ALLOCATION:
- The current maximum is read with a descending sort limited to one row.
- The owner's high-water mark (User.last_serial_number) is consulted too,
  so serials freed by deleted variants stay retired.
- allocate_serial_range() locks the owner row and advances the mark in
  the caller's transaction. The caller commits together with the variant
  insert; a rollback releases the range.

CONCURRENCY: SQLite ignores FOR UPDATE, so two writers can still pick the
same start. The unique constraint catches that and the inventory service
retries the whole batch (see inventory_service.add_inventory).
"""

from __future__ import annotations

from ..extensions import db
from ..models import User, Variant
from .concurrency import lock_for_update


def current_max_serial(owner_id: int) -> int:
    """Highest serial_number among the owner's variants, or 0 if none exist."""
    row = (
        db.session.query(Variant.serial_number)
        .filter(Variant.owner_id == owner_id)
        .order_by(Variant.serial_number.desc())
        .limit(1)
        .first()
    )
    return row[0] if row else 0


def next_serial_number(owner_id: int) -> int:
    """Next serial the owner would receive. Read-only."""
    owner = db.session.get(User, owner_id)
    high_water = owner.last_serial_number if owner else 0
    return max(high_water or 0, current_max_serial(owner_id)) + 1


def allocate_serial_range(owner_id: int, count: int) -> int:
    """
    Reserve `count` contiguous serials for owner_id and return the first.

    Does not commit. The reserved range is [start, start + count - 1].
    """
    if count < 1:
        raise ValueError("count must be >= 1")

    owner = lock_for_update(db.session.query(User).filter(User.id == owner_id)).first()
    if owner is None:
        raise ValueError("Owner not found")

    start = max(owner.last_serial_number or 0, current_max_serial(owner_id)) + 1
    owner.last_serial_number = start + count - 1
    return start
