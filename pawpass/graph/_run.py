"""
Graph runner — compose a target node and everything it depends on.

    node = await run(FinalResolutionNode).inject(ResolveSpec(...))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast
from collections.abc import Callable, Coroutine

from nodnod import Scope, Value, EventLoopAgent, Node

type _AgentRun = Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]]


@dataclass(frozen=True, slots=True)
class Run[T]:
    """Pending execution of `target`. Inputs are keyed by their runtime type."""

    target: type[T]
    inputs: tuple[object, ...] = ()

    def inject(self, value: object) -> Run[T]:
        return Run(self.target, (*self.inputs, value))

    def __await__(self) -> Any:
        return self._execute().__await__()

    async def _execute(self) -> T:
        agent = EventLoopAgent.build({cast(type[Node[Any, Any]], self.target)})
        scope = Scope(detail=f"run:{self.target.__name__}")

        async with scope:
            for value in self.inputs:
                scope.push(Value(type(value), value))

            await cast(_AgentRun, getattr(agent, "run"))(scope, {})

            composed = scope.get(self.target)
            if composed is None:
                raise KeyError(f"{self.target.__name__} was not composed")
            return cast(T, composed.value)


def run[T](target: type[T]) -> Run[T]:
    return Run(target)


__all__ = ("Run", "run")
