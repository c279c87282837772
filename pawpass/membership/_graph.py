"""
Membership resolution graph — ALL routing as nodnod nodes.

Architecture:
    ResolveSpec (injected)
         │
         ▼
    SpecNode
         │
         ▼
    FetchActiveNode
         │
         ├── StoreFailureNode ───────┐
         ├── MissingMembershipNode ──┼── MembershipOutcome (@polymorphic)
         ├── CurrentMembershipNode ──┤             │
         └── ExpiredMembershipNode ──┘             ▼
                                          FinalResolutionNode

Note: no 'from __future__ import annotations' here. nodnod reads the
__compose__ type hints at runtime to wire dependencies.
"""

from dataclasses import dataclass
from datetime import datetime

from nodnod import NodeError, polymorphic, case

from kungfu import Result, Ok, Error

from pawpass import graph as G
from pawpass.errors import ConflictError, CoreError, MembershipPersistenceError
from pawpass.membership._store import MembershipStore
from pawpass.membership._types import (
    MembershipPatch,
    MembershipRecord,
    MembershipState,
    MembershipType,
    Resolution,
    Transition,
    new_record,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Input — Spec (injected)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ResolveSpec:
    user_id: str
    store: MembershipStore
    now: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Entry + Fetch
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class SpecNode:
    def __init__(self, spec: ResolveSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec: ResolveSpec) -> "SpecNode":
        return cls(spec)


@G.node
class FetchActiveNode:
    """Reads the user's active record, keeping a store failure as data."""

    def __init__(
        self,
        record: MembershipRecord | None,
        spec: ResolveSpec,
        store_error: CoreError | None = None,
    ) -> None:
        self.record = record
        self.spec = spec
        self.store_error = store_error

    @classmethod
    async def __compose__(cls, spec_node: SpecNode) -> "FetchActiveNode":
        spec = spec_node.spec
        result = await spec.store.find_active_by_user(spec.user_id)

        match result:
            case Ok(record):
                return cls(record, spec)
            case Error(err):
                return cls(None, spec, store_error=err)


# ═══════════════════════════════════════════════════════════════════════════════
# State Nodes — each validates one branch
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class StoreFailureNode:
    def __init__(self, error: CoreError, spec: ResolveSpec) -> None:
        self.error = error
        self.spec = spec

    @classmethod
    def __compose__(cls, fetch: FetchActiveNode) -> "StoreFailureNode":
        if fetch.store_error is None:
            raise NodeError("Store answered")
        return cls(fetch.store_error, fetch.spec)


@G.node
class MissingMembershipNode:
    """Validates: store answered, no active record."""

    def __init__(self, spec: ResolveSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, fetch: FetchActiveNode) -> "MissingMembershipNode":
        if fetch.store_error is not None:
            raise NodeError("Store error")
        if fetch.record is not None:
            raise NodeError("Record exists")
        return cls(fetch.spec)


@G.node
class CurrentMembershipNode:
    """Validates: active record, end date absent or not yet passed."""

    def __init__(self, record: MembershipRecord, spec: ResolveSpec) -> None:
        self.record = record
        self.spec = spec

    @classmethod
    def __compose__(cls, fetch: FetchActiveNode) -> "CurrentMembershipNode":
        record = fetch.record
        if record is None:
            raise NodeError("No record")
        if record.is_expired(fetch.spec.now):
            raise NodeError("Expired")
        return cls(record, fetch.spec)


@G.node
class ExpiredMembershipNode:
    """Validates: active record whose end date is strictly in the past."""

    def __init__(self, record: MembershipRecord, spec: ResolveSpec) -> None:
        self.record = record
        self.spec = spec

    @classmethod
    def __compose__(cls, fetch: FetchActiveNode) -> "ExpiredMembershipNode":
        record = fetch.record
        if record is None:
            raise NodeError("No record")
        if not record.is_expired(fetch.spec.now):
            raise NodeError("Still valid")
        return cls(record, fetch.spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Outcome Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OutcomeResolved:
    resolution: Resolution


@dataclass(frozen=True)
class OutcomeConflict:
    """Insert lost a race. The caller re-reads."""

    error: ConflictError


@dataclass(frozen=True)
class OutcomeFailed:
    error: MembershipPersistenceError


type Outcome = OutcomeResolved | OutcomeConflict | OutcomeFailed


def _persistence_failure(spec: ResolveSpec, operation: str, cause: CoreError) -> OutcomeFailed:
    return OutcomeFailed(
        MembershipPersistenceError(
            operation=operation,
            message=f"Could not {operation} membership for {spec.user_id}: {cause.message}",
            user_id=spec.user_id,
            cause=cause,
        )
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Polymorphic Outcome
# ═══════════════════════════════════════════════════════════════════════════════


@polymorphic[Outcome]
class MembershipOutcome:
    """
    Polymorphic router — each @case depends on one validated state node.

    Note: checks live in the state nodes, cases only act.
    """

    @case
    def store_failure(cls, node: StoreFailureNode) -> Outcome:
        return _persistence_failure(node.spec, "read", node.error)

    @case
    def keep_current(cls, node: CurrentMembershipNode) -> Outcome:
        state = (
            MembershipState.ACTIVE_PREMIUM
            if node.record.is_premium
            else MembershipState.ACTIVE_FREE
        )
        return OutcomeResolved(Resolution(node.record, state, Transition.UNCHANGED))

    @case
    async def create_free(cls, node: MissingMembershipNode) -> Outcome:
        spec = node.spec
        record = new_record(spec.user_id, MembershipType.FREE, spec.now)

        match await spec.store.insert(record):
            case Ok(saved):
                return OutcomeResolved(
                    Resolution(saved, MembershipState.NEEDS_CREATION, Transition.CREATED)
                )
            case Error(ConflictError() as conflict):
                return OutcomeConflict(conflict)
            case Error(err):
                return _persistence_failure(spec, "create", err)

    @case
    async def downgrade(cls, node: ExpiredMembershipNode) -> Outcome:
        spec = node.spec
        patch = MembershipPatch.downgrade(spec.now)

        match await spec.store.update_by_id(node.record.id, patch):
            case Ok(saved):
                return OutcomeResolved(
                    Resolution(saved, MembershipState.NEEDS_DOWNGRADE, Transition.DOWNGRADED)
                )
            case Error(err):
                return _persistence_failure(spec, "downgrade", err)


# ═══════════════════════════════════════════════════════════════════════════════
# Final Node
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class FinalResolutionNode:
    def __init__(self, outcome: Outcome) -> None:
        self.outcome = outcome

    @classmethod
    def __compose__(cls, outcome: MembershipOutcome) -> "FinalResolutionNode":
        return cls(outcome.value)

    def to_result(self) -> Result[Resolution, MembershipPersistenceError | ConflictError]:
        match self.outcome:
            case OutcomeResolved(resolution):
                return Ok(resolution)
            case OutcomeConflict(error):
                return Error(error)
            case OutcomeFailed(error):
                return Error(error)


async def run_resolution(
    spec: ResolveSpec,
) -> Result[Resolution, MembershipPersistenceError | ConflictError]:
    node = await G.run(FinalResolutionNode).inject(spec)
    return node.to_result()


__all__ = ("ResolveSpec", "run_resolution")
