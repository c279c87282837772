"""
Error taxonomy.

Errors are values: operations return them inside `Error(...)` instead of
raising. Each one is still an Exception so a host can raise it at its own
boundary.

    CoreError
    ├── ValidationError
    │   ├── EmptyCartError
    │   ├── InvalidBillingError
    │   └── InvalidQuantityError
    ├── TransportError
    │   └── StoreUnavailableError
    ├── ConflictError
    ├── RejectedError
    ├── NotFoundError
    ├── MembershipPersistenceError
    ├── SubmissionInProgressError
    └── InvalidTransitionError
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CoreError(Exception):
    """Base error. `operation` names the call that failed."""

    operation: str
    message: str

    def __str__(self) -> str:
        return f"{self.operation}: {self.message}"


# ═══════════════════════════════════════════════════════════════════════════════
# Validation — bad input, never retried
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ValidationError(CoreError):
    pass


@dataclass(frozen=True, slots=True)
class EmptyCartError(ValidationError):
    pass


@dataclass(frozen=True, slots=True)
class InvalidBillingError(ValidationError):
    missing: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class InvalidQuantityError(ValidationError):
    quantity: int = 0


# ═══════════════════════════════════════════════════════════════════════════════
# Transport — backend unreachable
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TransportError(CoreError):
    """
    Backend could not be reached or answered with a server fault.

    Note: retryable by the caller. The core itself never retries.
    """

    cause: Exception | None = None

    @property
    def retryable(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class StoreUnavailableError(TransportError):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# Backend answers
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ConflictError(CoreError):
    """Uniqueness violation, e.g. a second active membership for a user."""

    user_id: str | None = None


@dataclass(frozen=True, slots=True)
class RejectedError(CoreError):
    """Backend explicitly declined the request. Terminal."""

    status: int | None = None
    body: str | None = None


@dataclass(frozen=True, slots=True)
class NotFoundError(CoreError):
    entity: str = ""
    entity_id: str | int | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Flow errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MembershipPersistenceError(CoreError):
    """Reading or writing a membership failed while resolving it."""

    user_id: str = ""
    cause: CoreError | None = None


@dataclass(frozen=True, slots=True)
class SubmissionInProgressError(CoreError):
    """The cart already has a submission in flight or awaiting payment."""

    order_id: str | None = None


@dataclass(frozen=True, slots=True)
class InvalidTransitionError(CoreError):
    """A payment outcome arrived for an order that is not awaiting one."""

    order_id: str = ""
    state: str = ""


__all__ = (
    "CoreError",
    "ValidationError",
    "EmptyCartError",
    "InvalidBillingError",
    "InvalidQuantityError",
    "TransportError",
    "StoreUnavailableError",
    "ConflictError",
    "RejectedError",
    "NotFoundError",
    "MembershipPersistenceError",
    "SubmissionInProgressError",
    "InvalidTransitionError",
)
