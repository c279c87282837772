"""
Membership types — records, patches, effective state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# Membership Type — stable identifiers shared with the backend
# ═══════════════════════════════════════════════════════════════════════════════


class MembershipType(Enum):
    PREMIUM = "d83b7eb6-1c27-4fbd-aa0e-aad7d905066c"
    FREE = "d7d719d1-482d-41a9-941b-027e794dd67f"

    @property
    def id(self) -> str:
        return self.value

    @property
    def tag(self) -> str:
        """Denormalized label stored next to the id."""
        return self.name.lower()


# ═══════════════════════════════════════════════════════════════════════════════
# Membership Record
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MembershipRecord:
    """
    One membership row.

    Note: at most one active record per user. `end_date is None` means the
    membership never lapses.
    """

    id: str
    user_id: str
    membership_type_id: str
    is_active: bool
    start_date: datetime
    end_date: datetime | None
    created_at: datetime
    updated_at: datetime
    type: str

    @property
    def membership_type(self) -> MembershipType:
        return MembershipType(self.membership_type_id)

    @property
    def is_premium(self) -> bool:
        return self.membership_type_id == MembershipType.PREMIUM.id

    def is_expired(self, now: datetime) -> bool:
        """Strictly past its end date. A record ending exactly now is still valid."""
        return self.end_date is not None and self.end_date < now


def new_record(
    user_id: str,
    membership_type: MembershipType,
    now: datetime,
    end_date: datetime | None = None,
) -> MembershipRecord:
    return MembershipRecord(
        id=str(uuid.uuid4()),
        user_id=user_id,
        membership_type_id=membership_type.id,
        is_active=True,
        start_date=now,
        end_date=end_date,
        created_at=now,
        updated_at=now,
        type=membership_type.tag,
    )


@dataclass(frozen=True, slots=True)
class MembershipPatch:
    """
    Fields a write may change on an existing record.

    `type` is not part of the patch: it is always derived from the
    membership type so the two cannot drift.
    """

    membership_type: MembershipType
    end_date: datetime | None
    updated_at: datetime
    is_active: bool = True

    @classmethod
    def downgrade(cls, now: datetime) -> MembershipPatch:
        return cls(MembershipType.FREE, end_date=None, updated_at=now)

    @classmethod
    def premium(cls, now: datetime, end_date: datetime) -> MembershipPatch:
        return cls(MembershipType.PREMIUM, end_date=end_date, updated_at=now)

    def apply(self, record: MembershipRecord) -> MembershipRecord:
        return replace(
            record,
            membership_type_id=self.membership_type.id,
            type=self.membership_type.tag,
            end_date=self.end_date,
            updated_at=self.updated_at,
            is_active=self.is_active,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Effective State
# ═══════════════════════════════════════════════════════════════════════════════


class MembershipState(Enum):
    """
    What a user's membership amounts to at a given instant.

        NEEDS_CREATION  → (insert FREE)      → ACTIVE_FREE
        NEEDS_DOWNGRADE → (update to FREE)   → ACTIVE_FREE
        ACTIVE_PREMIUM / ACTIVE_FREE         → unchanged
    """

    ACTIVE_PREMIUM = auto()
    ACTIVE_FREE = auto()
    NEEDS_DOWNGRADE = auto()
    NEEDS_CREATION = auto()


def classify(record: MembershipRecord | None, now: datetime) -> MembershipState:
    if record is None:
        return MembershipState.NEEDS_CREATION
    if record.is_expired(now):
        return MembershipState.NEEDS_DOWNGRADE
    if record.is_premium:
        return MembershipState.ACTIVE_PREMIUM
    return MembershipState.ACTIVE_FREE


class Transition(Enum):
    UNCHANGED = auto()
    CREATED = auto()
    DOWNGRADED = auto()


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving a user's membership."""

    record: MembershipRecord
    state_before: MembershipState
    transition: Transition

    @property
    def is_premium(self) -> bool:
        return self.record.is_premium


@dataclass(frozen=True, slots=True)
class SweepReport:
    found: int
    downgraded: int
    failed: int


__all__ = (
    "MembershipType",
    "MembershipRecord",
    "MembershipPatch",
    "MembershipState",
    "Transition",
    "Resolution",
    "SweepReport",
    "new_record",
    "classify",
)
