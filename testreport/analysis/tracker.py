"""In-flight test bookkeeping for the package under construction.

Tests are kept in an append-only list, looked up by name through an index,
so that the order in which tests were first seen is preserved.  Ending a
test seals its node in place rather than removing it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from testreport.analysis.output import trim_prefix_spaces
from testreport.reporting.models import FAIL, UNKNOWN, Test


@dataclass
class TestNode:
    """Mutable state of a test while its package is being built."""

    __test__ = False

    name: str
    result: str = UNKNOWN
    duration: float = 0.0
    level: int = 0
    output: list[str] = field(default_factory=list)
    paused: bool = False
    sealed: bool = False

    @property
    def running(self) -> bool:
        return not self.paused and not self.sealed

    def freeze(self) -> Test:
        """Snapshot this node as an immutable ``Test``.

        Output of a sealed node was already normalised when it ended; the
        output of a test that never ended is normalised as top-level.
        """
        output = self.output
        if not self.sealed:
            output = [trim_prefix_spaces(line, 0) for line in output]
        return Test(
            name=self.name,
            duration=self.duration,
            result=self.result,
            level=self.level,
            output=tuple(output),
        )


class TestNodeTracker:
    """Tracks the tests of one package by name.

    Only liveness is tracked here (running, paused, sealed).  Which test
    receives an output line is decided by the report builder.
    """

    __test__ = False

    def __init__(self) -> None:
        self._nodes: list[TestNode] = []
        self._index: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    @property
    def nodes(self) -> list[TestNode]:
        """All nodes in the order they were first created."""
        return list(self._nodes)

    def get(self, name: str) -> TestNode | None:
        idx = self._index.get(name)
        if idx is None:
            return None
        return self._nodes[idx]

    def create(self, name: str) -> TestNode:
        """Return the node for *name*, creating a running one if absent."""
        node = self.get(name)
        if node is not None:
            return node
        node = TestNode(name=name)
        self._index[name] = len(self._nodes)
        self._nodes.append(node)
        return node

    def pause(self, name: str) -> TestNode | None:
        """Mark *name* as paused.  Unknown names are ignored."""
        node = self.get(name)
        if node is not None and not node.sealed:
            node.paused = True
        return node

    def cont(self, name: str) -> TestNode | None:
        """Mark *name* as running again.  Unknown names are ignored."""
        node = self.get(name)
        if node is not None and not node.sealed:
            node.paused = False
        return node

    def end(
        self,
        name: str,
        result: str,
        duration: float,
        level: int,
    ) -> TestNode:
        """Seal the node for *name* with its terminal fields.

        A test that was never created is synthesised here.  Output
        collected for the node is normalised with *level*.
        """
        node = self.create(name)
        node.result = result
        node.duration = duration
        node.level = level
        node.output = [trim_prefix_spaces(line, level) for line in node.output]
        node.paused = False
        node.sealed = True
        return node

    def has_failures(self) -> bool:
        """True if any sealed test in this package failed."""
        return any(n.sealed and n.result == FAIL for n in self._nodes)

    def freeze(self) -> tuple[Test, ...]:
        return tuple(node.freeze() for node in self._nodes)
