"""
Membership store — storage protocol + in-memory implementation.

All methods return Result for explicit error handling.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from kungfu import Result, Ok, Error

from pawpass.errors import ConflictError, NotFoundError, StoreUnavailableError
from pawpass.membership._types import (
    MembershipPatch,
    MembershipRecord,
    MembershipType,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class MembershipStore(Protocol):
    """
    Persistence for membership records.

    Note: the store owns the "one active record per user" constraint.
    `insert` must fail with ConflictError rather than create a second one.
    """

    async def find_active_by_user(
        self, user_id: str
    ) -> Result[MembershipRecord | None, StoreUnavailableError]:
        """Active record for the user. Ok(None) if there is none."""
        ...

    async def insert(
        self, record: MembershipRecord
    ) -> Result[MembershipRecord, StoreUnavailableError | ConflictError]:
        ...

    async def update_by_id(
        self, record_id: str, patch: MembershipPatch
    ) -> Result[MembershipRecord, StoreUnavailableError | NotFoundError | ConflictError]:
        ...

    async def list_expired(
        self, now: datetime
    ) -> Result[list[MembershipRecord], StoreUnavailableError]:
        """Active PREMIUM records whose end date is strictly before `now`."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class _StoredMembership:
    record: MembershipRecord


class MemoryMembershipStore:
    """
    In-memory membership store.

    Note: single process only. Data does not survive a restart.
    """

    def __init__(self, records: list[MembershipRecord] | None = None) -> None:
        self._rows: dict[str, _StoredMembership] = {}
        self._lock = asyncio.Lock()
        for record in records or ():
            self._rows[record.id] = _StoredMembership(record)

    @property
    def records(self) -> list[MembershipRecord]:
        """Every stored record, active or not, in insertion order."""
        return [row.record for row in self._rows.values()]

    async def find_active_by_user(
        self, user_id: str
    ) -> Result[MembershipRecord | None, StoreUnavailableError]:
        async with self._lock:
            return Ok(self._active_for(user_id))

    async def insert(
        self, record: MembershipRecord
    ) -> Result[MembershipRecord, StoreUnavailableError | ConflictError]:
        async with self._lock:
            if record.is_active and self._active_for(record.user_id) is not None:
                return Error(
                    ConflictError(
                        operation="insert",
                        message=f"User {record.user_id} already has an active membership",
                        user_id=record.user_id,
                    )
                )
            if record.id in self._rows:
                return Error(
                    ConflictError(
                        operation="insert",
                        message=f"Membership {record.id} already exists",
                        user_id=record.user_id,
                    )
                )
            self._rows[record.id] = _StoredMembership(record)
            return Ok(record)

    async def update_by_id(
        self, record_id: str, patch: MembershipPatch
    ) -> Result[MembershipRecord, StoreUnavailableError | NotFoundError | ConflictError]:
        async with self._lock:
            row = self._rows.get(record_id)
            if row is None:
                return Error(
                    NotFoundError(
                        operation="update_by_id",
                        message=f"Membership {record_id} not found",
                        entity="membership",
                        entity_id=record_id,
                    )
                )
            row.record = patch.apply(row.record)
            return Ok(row.record)

    async def list_expired(
        self, now: datetime
    ) -> Result[list[MembershipRecord], StoreUnavailableError]:
        async with self._lock:
            return Ok([
                row.record
                for row in self._rows.values()
                if row.record.is_active
                and row.record.membership_type is MembershipType.PREMIUM
                and row.record.is_expired(now)
            ])

    def _active_for(self, user_id: str) -> MembershipRecord | None:
        for row in self._rows.values():
            if row.record.user_id == user_id and row.record.is_active:
                return row.record
        return None


__all__ = ("MembershipStore", "MemoryMembershipStore")
