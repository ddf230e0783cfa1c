"""Exceptions raised by the structuring engine."""
from __future__ import annotations

import typing

if typing.TYPE_CHECKING:
    from restructure.driver import Primitive
    from restructure.graph import ControlFlowGraph


class RestructureError(Exception):
    """Base class for every error raised by :mod:`restructure`."""


class InputError(RestructureError):
    """The input graph is empty or could not be read."""


class PatternError(RestructureError):
    """A pattern or pattern library failed validation."""


class IrreducibleGraphError(RestructureError):
    """No pattern of the library matches a graph with more than one node.

    This is an expected outcome when the library does not cover the shape
    of the remaining graph. It carries the residual graph and the primitives
    recovered before the driver got stuck.
    """

    def __init__(
        self,
        message: str,
        graph: "ControlFlowGraph",
        primitives: typing.Sequence["Primitive"] = (),
    ) -> None:
        super().__init__(message)
        self.graph = graph
        self.primitives = tuple(primitives)


class InternalInconsistencyError(RestructureError):
    """The reducer was handed a match that does not fit the graph."""
