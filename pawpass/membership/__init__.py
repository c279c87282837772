"""
Membership — lifecycle of a user's FREE / PREMIUM membership.

    from pawpass import membership as M

    store = M.MemoryMembershipStore()
    resolver = M.MembershipResolver(store)

    match await resolver.resolve("user-1"):
        case Ok(resolution):
            resolution.record        # the active record
            resolution.transition    # UNCHANGED | CREATED | DOWNGRADED
        case Error(err):
            err.cause                # the store failure

Persistent storage:

    session_factory, engine = await M.create_database(settings.database_url)
    resolver = M.MembershipResolver(M.SQLAlchemyMembershipStore(session_factory))
"""

from pawpass.membership._types import (
    MembershipType,
    MembershipRecord,
    MembershipPatch,
    MembershipState,
    Transition,
    Resolution,
    SweepReport,
    new_record,
    classify,
)
from pawpass.membership._store import MembershipStore, MemoryMembershipStore
from pawpass.membership._sqlalchemy import (
    Base,
    MembershipTable,
    SQLAlchemyMembershipStore,
    create_database,
)
from pawpass.membership._resolver import MembershipResolver

__all__ = (
    # Types
    "MembershipType",
    "MembershipRecord",
    "MembershipPatch",
    "MembershipState",
    "Transition",
    "Resolution",
    "SweepReport",
    "new_record",
    "classify",
    # Stores
    "MembershipStore",
    "MemoryMembershipStore",
    "Base",
    "MembershipTable",
    "SQLAlchemyMembershipStore",
    "create_database",
    # Resolver
    "MembershipResolver",
)
