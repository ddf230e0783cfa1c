"""Subgraph isomorphism search for control flow patterns.

``search`` locates one occurrence of a pattern inside a control flow graph
and returns the mapping from role names to graph nodes. The search is an
iterative backtracking over an explicit stack of assignment frames: the
entry role is assigned first, every other role is reached along a pattern
edge from an already assigned role, and candidates are always visited in
sorted order so the first match found is stable for a given graph.
"""
from __future__ import annotations

import dataclasses

from restructure.core import getLogger, typing
from restructure.graph import ControlFlowGraph
from restructure.patterns import Pattern

logger = getLogger("Restructure.iso")

Match: typing.TypeAlias = dict[str, str]


@dataclasses.dataclass(slots=True)
class _Frame:
    """Candidates of one role and the position of the next one to try."""

    role: str
    candidates: list[str]
    index: int = 0


class IsomorphismSearcher:
    """Find role assignments realizing a pattern inside a graph.

    The searcher is stateless between calls; one instance may be shared by
    concurrent searches over a graph that is not being mutated.
    """

    def search(self, graph: ControlFlowGraph, pattern: Pattern) -> Match | None:
        """Return the first match of *pattern* in *graph*, or ``None``."""
        order = pattern.search_order
        if len(order) > len(graph):
            return None

        assignment: Match = {}
        used: set[str] = set()
        stack = [_Frame(order[0][0], graph.sorted_nodes())]

        while stack:
            frame = stack[-1]
            # retract the candidate this frame assigned on its previous visit
            prev = assignment.pop(frame.role, None)
            if prev is not None:
                used.discard(prev)

            node = self._next_candidate(graph, pattern, frame, assignment, used)
            if node is None:
                stack.pop()
                continue

            assignment[frame.role] = node
            used.add(node)

            depth = len(stack)
            if depth == len(order):
                if is_valid(graph, pattern, assignment):
                    match = {role: assignment[role] for role in sorted(assignment)}
                    if logger.debug_on:
                        logger.debug("Pattern %r matched: %s", pattern.kind, match)
                    return match
                continue

            role, anchor, forward = order[depth]
            anchor_node = assignment[anchor]
            neighbours = graph.succs(anchor_node) if forward else graph.preds(anchor_node)
            stack.append(_Frame(role, sorted(neighbours)))

        return None

    def _next_candidate(
        self,
        graph: ControlFlowGraph,
        pattern: Pattern,
        frame: _Frame,
        assignment: Match,
        used: set[str],
    ) -> str | None:
        while frame.index < len(frame.candidates):
            node = frame.candidates[frame.index]
            frame.index += 1
            if node in used:
                continue
            if not _degree_compatible(graph, pattern, frame.role, node):
                continue
            if not _edges_consistent(graph, pattern, frame.role, node, assignment):
                if logger.debug_on:
                    logger.debug(
                        "%s: %s=%s rejected by edge check", pattern.kind, frame.role, node
                    )
                continue
            return node
        return None


def _in_degree(graph: ControlFlowGraph, node: str) -> int:
    # The graph entry has an implicit predecessor outside the graph.
    return graph.in_degree(node) + (1 if node == graph.entry else 0)


def _degree_compatible(
    graph: ControlFlowGraph, pattern: Pattern, role: str, node: str
) -> bool:
    p_in = pattern.graph.in_degree(role)
    p_out = pattern.graph.out_degree(role)
    g_in = _in_degree(graph, node)
    g_out = graph.out_degree(node)
    if pattern.preds_open(role):
        if g_in < p_in:
            return False
    elif g_in != p_in:
        return False
    if pattern.succs_open(role):
        return g_out >= p_out
    return g_out == p_out


def _edges_consistent(
    graph: ControlFlowGraph,
    pattern: Pattern,
    role: str,
    node: str,
    assignment: Match,
) -> bool:
    """Check edges between *node* and the nodes already assigned.

    Every pattern edge must be present. A graph edge with no pattern
    counterpart is tolerated only when it leaves the exit role and enters
    the entry role, as both boundaries are open on that side.
    """
    pgraph = pattern.graph
    others = list(assignment.items())
    others.append((role, node))
    for other_role, other_node in others:
        if pgraph.has_edge(role, other_role):
            if not graph.has_edge(node, other_node):
                return False
        elif graph.has_edge(node, other_node):
            if not (pattern.succs_open(role) and pattern.preds_open(other_role)):
                return False
        if other_role == role:
            continue
        if pgraph.has_edge(other_role, role):
            if not graph.has_edge(other_node, node):
                return False
        elif graph.has_edge(other_node, node):
            if not (pattern.succs_open(other_role) and pattern.preds_open(role)):
                return False
    return True


def is_valid(graph: ControlFlowGraph, pattern: Pattern, match: typing.Mapping[str, str]) -> bool:
    """Return True if *match* is a complete, valid mapping of *pattern* into *graph*.

    All nodes and edges are considered, except predecessors of the entry
    role and successors of the exit role.
    """
    if set(match) != set(pattern.graph):
        return False
    if len(set(match.values())) != len(match):
        return False
    for role, node in match.items():
        if node not in graph:
            return False
        want_preds = {match[p] for p in pattern.graph.preds(role)}
        want_succs = {match[s] for s in pattern.graph.succs(role)}
        have_preds = set(graph.preds(node))
        have_succs = set(graph.succs(node))
        if pattern.preds_open(role):
            if not want_preds <= have_preds:
                return False
        elif have_preds != want_preds or node == graph.entry:
            return False
        if pattern.succs_open(role):
            if not want_succs <= have_succs:
                return False
        elif have_succs != want_succs:
            return False
    return True


_searcher = IsomorphismSearcher()


def search(graph: ControlFlowGraph, pattern: Pattern) -> Match | None:
    """Locate an isomorphism of *pattern* in *graph*.

    Returns the mapping from role name to graph node name, or ``None`` when
    the pattern does not occur in the graph.
    """
    return _searcher.search(graph, pattern)
