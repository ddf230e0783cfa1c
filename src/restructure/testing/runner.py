"""Test runner for structuring test cases."""

from __future__ import annotations

from typing import Callable

import pytest

from restructure import dot
from restructure.driver import DriverState, StructuringResult, restructure
from restructure.graph import ControlFlowGraph

from .assertions import (
    assert_consumption,
    assert_references_valid,
    assert_structured,
    replay,
)
from .cases import StructuringCase


def build_graph(case: StructuringCase) -> ControlFlowGraph:
    if case.dot is not None:
        graph = dot.parse_graph(case.dot)
        if case.entry is not None:
            graph.entry = case.entry
        return graph
    return ControlFlowGraph.from_edges(
        case.edges, case.nodes, name=case.name, entry=case.entry
    )


def run_structuring_test(case: StructuringCase) -> StructuringResult:
    """Run a structuring test case.

    1. Build the input graph
    2. Structure it with the default library (reordered by ``case.kinds``)
    3. Compare the primitive sequence with ``case.expected``
    4. Check the sequence invariants against the input graph

    Raises:
        pytest.skip: If the case is marked as skipped.
        AssertionError: If any assertion fails.
    """
    if case.skip:
        pytest.skip(case.skip)

    graph = build_graph(case)
    library = dot.default_library()
    if case.kinds is not None:
        library = library.reordered(case.kinds)

    result = restructure(graph, library)

    if case.stuck:
        if result.state is not DriverState.STUCK:
            raise AssertionError(f"{case.name}: expected an irreducible graph, got {result.state}")
        if result.error is None or result.error.primitives != result.primitives:
            raise AssertionError(f"{case.name}: stuck result does not carry its primitives")
        if case.residual_nodes is not None and len(result.graph) != case.residual_nodes:
            raise AssertionError(
                f"{case.name}: expected {case.residual_nodes} residual nodes, "
                f"got {result.graph.sorted_nodes()}"
            )
        assert_references_valid(graph, result.primitives)
        assert_consumption(result.primitives)
        if replay(graph, result.primitives, library) != result.graph:
            raise AssertionError(f"{case.name}: replayed residual differs from the driver's")
    else:
        if result.state is not DriverState.SUCCESS:
            raise AssertionError(
                f"{case.name}: graph not reduced, residual {result.graph.sorted_nodes()} "
                f"after {[p.node for p in result.primitives]}"
            )
        assert_structured(graph, result.primitives, library)

    if case.expected is not None:
        got = [(p.kind, p.node, dict(p.nodes)) for p in result.primitives]
        want = [(e.kind, e.node, dict(e.nodes)) for e in case.expected]
        if got != want:
            raise AssertionError(
                f"{case.name}: primitive mismatch\n  expected {want}\n  got      {got}"
            )
    return result


def create_parametrized_test(cases: list[StructuringCase]) -> Callable:
    """Return a ``pytest.mark.parametrize`` decorator over *cases*.

    Example::

        @create_parametrized_test(CASES)
        def test_structuring(case):
            run_structuring_test(case)
    """
    return pytest.mark.parametrize("case", cases, ids=lambda c: c.name)
