"""
Push registration — store a device token for a user.

The transport itself lives outside the package. Failures never block
membership or order flows: they come back as a value and get logged.
"""

from __future__ import annotations

from typing import Protocol

import structlog
from combinators import lift as L

from kungfu import Result, Ok, Error

from pawpass.errors import TransportError

logger = structlog.get_logger()


class PushRegistrar(Protocol):
    async def register(self, user_id: str, token: str) -> None:
        """Persist the token. May raise."""
        ...


async def register_device(
    registrar: PushRegistrar, user_id: str, token: str
) -> Result[None, TransportError]:
    result = await L.catching_async(
        lambda: registrar.register(user_id, token),
        on_error=lambda e: TransportError(
            operation="register_device",
            message=f"Push registration failed: {e}",
            cause=e,
        ),
    )
    match result:
        case Ok(_):
            logger.info("push_registered", user_id=user_id)
        case Error(err):
            logger.warning("push_registration_failed", user_id=user_id, error=err.message)
    return result


__all__ = ("PushRegistrar", "register_device")
