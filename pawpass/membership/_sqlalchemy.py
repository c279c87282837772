"""
SQLAlchemy membership store.

Usage:
    session_factory, engine = await create_database("sqlite+aiosqlite:///:memory:")
    store = SQLAlchemyMembershipStore(session_factory)
    resolver = MembershipResolver(store)

The partial unique index on `user_id WHERE is_active` is what makes a
concurrent second insert fail with ConflictError.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from kungfu import Result, Ok, Error

from pawpass._types import as_utc
from pawpass.errors import ConflictError, NotFoundError, StoreUnavailableError
from pawpass.membership._types import MembershipPatch, MembershipRecord, MembershipType


# ═══════════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class MembershipTable(Base):
    __tablename__ = "user_memberships"
    __table_args__ = (
        Index(
            "uq_user_memberships_active_user",
            "user_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    membership_type_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)

    def to_record(self) -> MembershipRecord:
        return MembershipRecord(
            id=self.id,
            user_id=self.user_id,
            membership_type_id=self.membership_type_id,
            is_active=self.is_active,
            start_date=as_utc(self.start_date),
            end_date=as_utc(self.end_date) if self.end_date is not None else None,
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
            type=self.type,
        )

    @classmethod
    def from_record(cls, record: MembershipRecord) -> "MembershipTable":
        return cls(
            id=record.id,
            user_id=record.user_id,
            membership_type_id=record.membership_type_id,
            is_active=record.is_active,
            start_date=as_utc(record.start_date),
            end_date=as_utc(record.end_date) if record.end_date is not None else None,
            created_at=as_utc(record.created_at),
            updated_at=as_utc(record.updated_at),
            type=record.type,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyMembershipStore:
    """MembershipStore over an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_active_by_user(
        self, user_id: str
    ) -> Result[MembershipRecord | None, StoreUnavailableError]:
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(
                        select(MembershipTable).where(
                            MembershipTable.user_id == user_id,
                            MembershipTable.is_active.is_(True),
                        )
                    )
                ).scalar_one_or_none()
                return Ok(row.to_record() if row is not None else None)
        except Exception as e:
            return Error(_unavailable("find_active_by_user", e))

    async def insert(
        self, record: MembershipRecord
    ) -> Result[MembershipRecord, StoreUnavailableError | ConflictError]:
        try:
            async with self._session_factory() as session:
                session.add(MembershipTable.from_record(record))
                await session.commit()
                return Ok(record)
        except IntegrityError as e:
            return Error(
                ConflictError(
                    operation="insert",
                    message=f"User {record.user_id} already has an active membership: {e.orig}",
                    user_id=record.user_id,
                )
            )
        except Exception as e:
            return Error(_unavailable("insert", e))

    async def update_by_id(
        self, record_id: str, patch: MembershipPatch
    ) -> Result[MembershipRecord, StoreUnavailableError | NotFoundError | ConflictError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(MembershipTable, record_id)
                if row is None:
                    return Error(
                        NotFoundError(
                            operation="update_by_id",
                            message=f"Membership {record_id} not found",
                            entity="membership",
                            entity_id=record_id,
                        )
                    )

                updated = patch.apply(row.to_record())
                row.membership_type_id = updated.membership_type_id
                row.type = updated.type
                row.end_date = as_utc(updated.end_date) if updated.end_date is not None else None
                row.updated_at = as_utc(updated.updated_at)
                row.is_active = updated.is_active
                await session.commit()
                return Ok(updated)
        except IntegrityError as e:
            return Error(
                ConflictError(
                    operation="update_by_id",
                    message=f"Update of {record_id} violates a constraint: {e.orig}",
                )
            )
        except Exception as e:
            return Error(_unavailable("update_by_id", e))

    async def list_expired(
        self, now: datetime
    ) -> Result[list[MembershipRecord], StoreUnavailableError]:
        try:
            async with self._session_factory() as session:
                rows = (
                    await session.execute(
                        select(MembershipTable)
                        .where(
                            MembershipTable.is_active.is_(True),
                            MembershipTable.membership_type_id == MembershipType.PREMIUM.id,
                            MembershipTable.end_date.is_not(None),
                            MembershipTable.end_date < as_utc(now),
                        )
                        .order_by(MembershipTable.end_date)
                    )
                ).scalars().all()
                return Ok([row.to_record() for row in rows])
        except Exception as e:
            return Error(_unavailable("list_expired", e))


def _unavailable(operation: str, cause: Exception) -> StoreUnavailableError:
    return StoreUnavailableError(
        operation=operation,
        message=f"Membership store failed: {cause}",
        cause=cause,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = (
    "Base",
    "MembershipTable",
    "SQLAlchemyMembershipStore",
    "create_database",
)
