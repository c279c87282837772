"""
Membership resolver — the one entry point that decides what a user is.

    resolver = MembershipResolver(store, clock=utcnow)
    match await resolver.resolve(user_id):
        case Ok(resolution):
            premium = resolution.is_premium
        case Error(err):
            ...
"""

from __future__ import annotations

from datetime import datetime, timedelta

import structlog
from combinators import batch_all, lift as L

from kungfu import Result, Ok, Error, LazyCoroResult

from pawpass._types import Clock, utcnow
from pawpass.errors import ConflictError, CoreError, MembershipPersistenceError
from pawpass.membership._graph import ResolveSpec, run_resolution
from pawpass.membership._store import MembershipStore
from pawpass.membership._types import (
    MembershipPatch,
    MembershipRecord,
    MembershipType,
    Resolution,
    SweepReport,
    Transition,
    new_record,
)

logger = structlog.get_logger()


class MembershipResolver:
    def __init__(
        self,
        store: MembershipStore,
        *,
        clock: Clock = utcnow,
        premium_days: int = 30,
        sweep_concurrency: int = 5,
    ) -> None:
        self._store = store
        self._clock = clock
        self._premium_days = premium_days
        self._sweep_concurrency = sweep_concurrency

    # ═══════════════════════════════════════════════════════════════════════════
    # Resolve
    # ═══════════════════════════════════════════════════════════════════════════

    async def resolve(self, user_id: str) -> Result[Resolution, MembershipPersistenceError]:
        """
        Return the user's effective membership, repairing storage as needed.

        Missing → FREE is created. Lapsed (end date strictly before now) →
        downgraded in place to FREE. Otherwise unchanged.

        Note: an insert conflict means a concurrent resolution created the
        record first. It is re-read once. A second conflict is an error.
        """
        result = await run_resolution(ResolveSpec(user_id, self._store, self._clock()))

        match result:
            case Error(ConflictError()):
                logger.info("membership_insert_conflict", user_id=user_id)
                result = await run_resolution(
                    ResolveSpec(user_id, self._store, self._clock())
                )
            case _:
                pass

        match result:
            case Ok(resolution):
                self._log_resolution(resolution)
                return Ok(resolution)
            case Error(MembershipPersistenceError() as err):
                logger.warning(
                    "membership_resolution_failed",
                    user_id=user_id,
                    operation=err.operation,
                    error=err.message,
                )
                return Error(err)
            case Error(err):
                logger.warning("membership_resolution_conflict", user_id=user_id)
                return Error(_persistence_error("resolve", user_id, err))

    def _log_resolution(self, resolution: Resolution) -> None:
        record = resolution.record
        match resolution.transition:
            case Transition.CREATED:
                logger.info("membership_created", user_id=record.user_id, membership_id=record.id)
            case Transition.DOWNGRADED:
                logger.info(
                    "membership_downgraded", user_id=record.user_id, membership_id=record.id
                )
            case Transition.UNCHANGED:
                logger.debug(
                    "membership_resolved",
                    user_id=record.user_id,
                    membership_type=record.type,
                )

    async def is_premium(self, user_id: str) -> Result[bool, MembershipPersistenceError]:
        return (await self.resolve(user_id)).map(lambda r: r.is_premium)

    # ═══════════════════════════════════════════════════════════════════════════
    # Premium activation — payment confirmed
    # ═══════════════════════════════════════════════════════════════════════════

    async def activate_premium(
        self, user_id: str, days: int | None = None
    ) -> Result[MembershipRecord, MembershipPersistenceError]:
        """
        Grant PREMIUM for `days` (default: configured period) from now.

        An active record is updated in place; otherwise a new one is inserted.
        """
        now = self._clock()
        end_date = now + timedelta(days=days if days is not None else self._premium_days)

        match await self._store.find_active_by_user(user_id):
            case Error(err):
                return Error(_persistence_error("activate_premium", user_id, err))
            case Ok(None):
                inserted = await self._store.insert(
                    new_record(user_id, MembershipType.PREMIUM, now, end_date)
                )
                match inserted:
                    case Error(ConflictError()):
                        return await self._upgrade_current(user_id, now, end_date)
                    case _:
                        return self._premium_result(user_id, inserted)
            case Ok(record):
                patched = await self._store.update_by_id(
                    record.id, MembershipPatch.premium(now, end_date)
                )
                return self._premium_result(user_id, patched)

    async def _upgrade_current(
        self, user_id: str, now: datetime, end_date: datetime
    ) -> Result[MembershipRecord, MembershipPersistenceError]:
        match await self._store.find_active_by_user(user_id):
            case Ok(None):
                return Error(
                    MembershipPersistenceError(
                        operation="activate_premium",
                        message=f"Active membership for {user_id} vanished after conflict",
                        user_id=user_id,
                    )
                )
            case Ok(record):
                patched = await self._store.update_by_id(
                    record.id, MembershipPatch.premium(now, end_date)
                )
                return self._premium_result(user_id, patched)
            case Error(err):
                return Error(_persistence_error("activate_premium", user_id, err))

    def _premium_result(
        self, user_id: str, result: Result[MembershipRecord, CoreError]
    ) -> Result[MembershipRecord, MembershipPersistenceError]:
        match result:
            case Ok(record):
                logger.info(
                    "membership_premium_activated",
                    user_id=user_id,
                    membership_id=record.id,
                    end_date=record.end_date.isoformat() if record.end_date else None,
                )
                return Ok(record)
            case Error(err):
                return Error(_persistence_error("activate_premium", user_id, err))

    # ═══════════════════════════════════════════════════════════════════════════
    # Expiry sweep — scheduled job
    # ═══════════════════════════════════════════════════════════════════════════

    async def sweep_expired(self) -> Result[SweepReport, MembershipPersistenceError]:
        """
        Downgrade every lapsed PREMIUM record.

        Per-record failures are counted, not fatal.
        """
        now = self._clock()

        match await self._store.list_expired(now):
            case Error(err):
                return Error(_persistence_error("sweep_expired", "*", err))
            case Ok(records):
                pass

        def downgrade(record: MembershipRecord) -> LazyCoroResult[MembershipRecord, CoreError]:
            return L.call(self._store.update_by_id, record.id, MembershipPatch.downgrade(now))

        outcomes = (
            await batch_all(records, handler=downgrade, concurrency=self._sweep_concurrency)
        ).unwrap()

        failed = 0
        for record, outcome in zip(records, outcomes):
            match outcome:
                case Ok(_):
                    logger.info(
                        "membership_downgraded", user_id=record.user_id, membership_id=record.id
                    )
                case Error(err):
                    failed += 1
                    logger.warning(
                        "membership_downgrade_failed",
                        user_id=record.user_id,
                        membership_id=record.id,
                        error=str(err),
                    )

        report = SweepReport(found=len(records), downgraded=len(records) - failed, failed=failed)
        logger.info(
            "membership_sweep_finished",
            found=report.found,
            downgraded=report.downgraded,
            failed=report.failed,
        )
        return Ok(report)


def _persistence_error(
    operation: str, user_id: str, cause: CoreError
) -> MembershipPersistenceError:
    return MembershipPersistenceError(
        operation=operation,
        message=f"Membership store failed for {user_id}: {cause.message}",
        user_id=user_id,
        cause=cause,
    )


__all__ = ("MembershipResolver",)
