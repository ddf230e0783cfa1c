"""Structuring test case dataclass definitions.

Test cases are declared as data: the graph to structure and the primitive
sequence expected from the default library (or an explicit pattern order).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ExpectedPrimitive:
    """One expected entry of the primitive sequence."""

    kind: str
    node: str
    nodes: dict[str, str]


@dataclass
class StructuringCase:
    """Definition of a structuring test case.

    Example::

        StructuringCase(
            name="foo",
            edges=[("E", "F"), ("E", "H"), ("F", "G"), ("G", "H")],
            entry="E",
            expected=[
                ExpectedPrimitive("list", "list0", {"A": "F", "B": "G"}),
                ExpectedPrimitive("if", "if0", {"A": "E", "B": "list0", "C": "H"}),
            ],
        )

    Attributes:
        name: Test id.
        edges: Edge list of the input graph.
        nodes: Extra nodes without edges.
        entry: Entry node; guessed by the DOT reader when the case uses ``dot``.
        dot: DOT source used instead of ``edges``/``nodes`` when set.
        kinds: Pattern order to use; the default library order when ``None``.
        expected: Expected primitive sequence. ``None`` skips the comparison.
        stuck: Whether the run is expected to end irreducible.
        residual_nodes: Expected number of residual nodes when stuck.
    """

    name: str
    edges: list[tuple[str, str]] = field(default_factory=list)
    nodes: list[str] = field(default_factory=list)
    entry: Optional[str] = None
    dot: Optional[str] = None
    kinds: Optional[list[str]] = None
    expected: Optional[list[ExpectedPrimitive]] = None
    stuck: bool = False
    residual_nodes: Optional[int] = None
    skip: Optional[str] = None
