"""Recover high-level control flow primitives from control flow graphs.

The engine repeatedly locates an occurrence of a canonical pattern (a
sequence, a two-way conditional, a loop, ...) in a control flow graph and
merges it into a single node, until one node is left::

    from restructure import ControlFlowGraph, restructure

    graph = ControlFlowGraph.from_edges(
        [("E", "F"), ("E", "H"), ("F", "G"), ("G", "H")], entry="E"
    )
    result = restructure(graph)
    result.primitives  # list0 {A: F, B: G}, then if0 {A: E, B: list0, C: H}
"""

__version__ = "0.1.0"

from .driver import (
    DriverState,
    Primitive,
    StructuringDriver,
    StructuringResult,
    restructure,
)
from .errors import (
    InputError,
    InternalInconsistencyError,
    IrreducibleGraphError,
    PatternError,
    RestructureError,
)
from .graph import ControlFlowGraph
from .iso import IsomorphismSearcher
from .merge import GraphReducer
from .patterns import Pattern, PatternLibrary

__all__ = [
    "ControlFlowGraph",
    "DriverState",
    "GraphReducer",
    "InputError",
    "InternalInconsistencyError",
    "IrreducibleGraphError",
    "IsomorphismSearcher",
    "Pattern",
    "PatternError",
    "PatternLibrary",
    "Primitive",
    "RestructureError",
    "StructuringDriver",
    "StructuringResult",
    "restructure",
]
