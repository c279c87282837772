"""
Graph — decision graphs over nodnod.

    from pawpass import graph as G

    @G.node
    class FetchMembership:
        @classmethod
        async def __compose__(cls, spec: ResolveSpec) -> "FetchMembership":
            return cls(await spec.store.find_active_by_user(spec.user_id))

    node = await G.run(FinalNode).inject(spec)
"""

from nodnod import scalar_node as node

from pawpass.graph._run import Run, run

__all__ = (
    "node",
    "run",
    "Run",
)
