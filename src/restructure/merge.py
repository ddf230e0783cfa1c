"""Collapse a located pattern occurrence into a single synthetic node."""
from __future__ import annotations

import collections

from restructure.core import getLogger, typing
from restructure.errors import InternalInconsistencyError
from restructure.graph import ControlFlowGraph
from restructure.patterns import Pattern

logger = getLogger("Restructure.merge")


class GraphReducer:
    """Rewrite a graph by replacing matched nodes with a fresh node.

    Synthetic ids are ``<kind><n>`` where ``n`` comes from a per-kind counter
    that only ever increases. An id is never handed out twice in the lifetime
    of a reducer, nor does it ever collide with a node id the reducer has
    seen, so primitives recorded earlier in a run stay unambiguous.
    """

    def __init__(self, reserved: typing.Iterable[str] = ()) -> None:
        self._counters: collections.Counter[str] = collections.Counter()
        self._used: set[str] = set(reserved)

    def reserve(self, nodes: typing.Iterable[str]) -> None:
        """Mark *nodes* as taken so no synthetic id will reuse them."""
        self._used.update(nodes)

    def fresh_id(self, kind: str) -> str:
        while True:
            node = f"{kind}{self._counters[kind]}"
            self._counters[kind] += 1
            if node not in self._used:
                self._used.add(node)
                return node

    def merge(
        self,
        graph: ControlFlowGraph,
        match: typing.Mapping[str, str],
        pattern: Pattern,
    ) -> str:
        """Merge the nodes of *match* into one node and return its id.

        Edges with exactly one endpoint inside the match are rebound to the
        new node and duplicate edges produced by the rebinding collapse into
        one. Edges with both endpoints inside are dropped when the pattern
        predicts them; a boundary edge the pattern does not predict (exit
        back to entry) survives as a self-loop on the new node.
        """
        self._check_match(graph, match, pattern)
        self.reserve(graph)

        role_of = {node: role for role, node in match.items()}
        new = self.fresh_id(pattern.kind)

        incoming: list[str] = []
        outgoing: list[str] = []
        loop = False
        for node in sorted(role_of):
            incoming.extend(p for p in graph.preds(node) if p not in role_of)
            for succ in graph.succs(node):
                if succ not in role_of:
                    outgoing.append(succ)
                elif not pattern.graph.has_edge(role_of[node], role_of[succ]):
                    loop = True

        was_entry = graph.entry in role_of
        for node in role_of:
            graph.remove_node(node)

        graph.add_node(new, label=new)
        for pred in incoming:
            graph.add_edge(pred, new)
        for succ in outgoing:
            graph.add_edge(new, succ)
        if loop:
            graph.add_edge(new, new)
        if was_entry:
            graph.entry = new

        logger.debug(
            "Merged %s into %r (%d in, %d out)",
            sorted(role_of),
            new,
            len(graph.preds(new)),
            len(graph.succs(new)),
        )
        return new

    @staticmethod
    def _check_match(
        graph: ControlFlowGraph,
        match: typing.Mapping[str, str],
        pattern: Pattern,
    ) -> None:
        if not match:
            raise InternalInconsistencyError(f"empty match for pattern {pattern.kind!r}")
        unknown_roles = sorted(set(match) - set(pattern.graph))
        if unknown_roles:
            raise InternalInconsistencyError(
                f"match uses roles {unknown_roles} not defined by pattern {pattern.kind!r}"
            )
        missing = sorted(node for node in match.values() if node not in graph)
        if missing:
            raise InternalInconsistencyError(
                f"match for pattern {pattern.kind!r} references nodes {missing} absent from the graph"
            )
        if len(set(match.values())) != len(match):
            raise InternalInconsistencyError(
                f"match for pattern {pattern.kind!r} assigns one node to several roles"
            )


def merge(
    graph: ControlFlowGraph,
    match: typing.Mapping[str, str],
    pattern: Pattern,
    reducer: GraphReducer | None = None,
) -> str:
    """Merge with a throwaway reducer unless one is supplied."""
    if reducer is None:
        reducer = GraphReducer()
    return reducer.merge(graph, match, pattern)
