"""Tests for the graph runner."""

from pawpass import graph as G
from pawpass.membership._graph import FinalResolutionNode


class TestRun:
    """Pending runs collect typed inputs."""

    def test_inject_returns_new_run(self) -> None:
        """Injecting leaves the original run untouched."""
        pending = G.run(FinalResolutionNode)

        injected = pending.inject("first").inject(2)

        assert pending.inputs == ()
        assert injected.inputs == ("first", 2)
        assert injected.target is FinalResolutionNode
