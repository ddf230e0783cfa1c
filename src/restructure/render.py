"""JSON and text renderings of a primitive sequence.

The map format keys each primitive by the node that replaced it::

    {
        "entry": "if0",
        "primitives": {
            "if0": {"primitive": "if", "nodes": {"A": "E", "B": "list0", "C": "H"}},
            "list0": {"primitive": "list", "nodes": {"A": "F", "B": "G"}}
        }
    }
"""
from __future__ import annotations

import json

from restructure.core import typing

if typing.TYPE_CHECKING:
    from restructure.driver import Primitive, StructuringResult
    from restructure.graph import ControlFlowGraph


def to_mapping(primitives: typing.Sequence["Primitive"]) -> dict[str, typing.Any]:
    """Primitives keyed by synthetic node; ``entry`` is the last one."""
    return {
        "entry": primitives[-1].node if primitives else None,
        "primitives": {
            prim.node: {"primitive": prim.kind, "nodes": dict(prim.nodes)}
            for prim in primitives
        },
    }


def to_list(primitives: typing.Sequence["Primitive"]) -> list[dict[str, typing.Any]]:
    """Primitives as a flat list, in the order they were recovered."""
    return [prim.to_dict() for prim in primitives]


def residual_to_dict(graph: "ControlFlowGraph") -> dict[str, typing.Any]:
    return {
        "entry": graph.entry,
        "nodes": graph.sorted_nodes(),
        "edges": [list(edge) for edge in graph.sorted_edges()],
    }


def to_document(result: "StructuringResult", fmt: str = "map") -> typing.Any:
    if fmt == "map":
        doc: typing.Any = to_mapping(result.primitives)
        if not result.primitives:
            doc["entry"] = result.entry
    elif fmt == "list":
        doc = to_list(result.primitives)
    else:
        raise ValueError(f"unknown output format {fmt!r}")
    if result.error is None:
        return doc
    # Partial output: keep the primitives and describe what is left.
    return {
        "error": str(result.error),
        "partial": doc,
        "residual": residual_to_dict(result.graph),
    }


def dumps(result: "StructuringResult", fmt: str = "map", indent: int | None = 2) -> str:
    """Deterministic JSON text of *result*."""
    return json.dumps(to_document(result, fmt), indent=indent, sort_keys=True)


def format_mapping(kind: str, entry: str, nodes: typing.Mapping[str, str]) -> str:
    """Human readable trace line for one reduction step."""
    lines = [f"Isomorphism of {kind!r} found at node {entry!r}:"]
    for role in sorted(nodes):
        lines.append(f"   {role!r}={nodes[role]!r}")
    return "\n".join(lines)
