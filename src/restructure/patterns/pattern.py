"""Canonical control flow shapes.

A :class:`Pattern` is a small graph whose node ids are role names. One role
is the entry of the shape and at most one other role is its exit; together
they are the *boundary* roles. Every other role is *interior* and must be
fully subsumed by a match.

The boundary rules are asymmetric:

* the entry may have predecessors outside the pattern, but its successors
  are exactly those of the pattern;
* the exit may have successors outside the pattern, but its predecessors
  are exactly those of the pattern.
"""
from __future__ import annotations

import enum

from restructure.core import typing
from restructure.errors import PatternError
from restructure.graph import ControlFlowGraph


class RoleKind(enum.Enum):
    ENTRY = "entry"
    EXIT = "exit"
    INTERIOR = "interior"


class Pattern:
    """A named pattern graph with an entry role and an optional exit role."""

    def __init__(
        self,
        kind: str,
        graph: ControlFlowGraph,
        entry: str,
        exit: str | None = None,
    ) -> None:
        self.kind = kind
        self.graph = graph
        self.entry = entry
        self.exit = exit
        self._validate()
        self._search_order = self._compute_search_order()

    @classmethod
    def from_edges(
        cls,
        kind: str,
        edges: typing.Iterable[tuple[str, str]],
        entry: str,
        exit: str | None = None,
        roles: typing.Iterable[str] = (),
    ) -> "Pattern":
        """Build a pattern from an edge list.

        *roles* lists role names explicitly; a repeated name is rejected.
        Roles that only appear in *edges* are added implicitly.
        """
        roles = list(roles)
        duplicates = sorted({r for r in roles if roles.count(r) > 1})
        if duplicates:
            raise PatternError(f"pattern {kind!r}: duplicate role names {duplicates}")
        graph = ControlFlowGraph.from_edges(edges, roles, name=kind)
        return cls(kind, graph, entry, exit)

    def _validate(self) -> None:
        if not self.kind:
            raise PatternError("pattern has no kind name")
        if len(self.graph) == 0:
            raise PatternError(f"pattern {self.kind!r} has no nodes")
        if self.entry not in self.graph:
            raise PatternError(
                f"pattern {self.kind!r}: entry role {self.entry!r} is not a pattern node"
            )
        if self.exit is not None:
            if self.exit not in self.graph:
                raise PatternError(
                    f"pattern {self.kind!r}: exit role {self.exit!r} is not a pattern node"
                )
            if self.exit == self.entry:
                raise PatternError(
                    f"pattern {self.kind!r}: role {self.entry!r} cannot be both entry and exit"
                )
        if self.graph.edge_count() == 0:
            # Without an internal edge a reduction would not shrink the graph.
            raise PatternError(f"pattern {self.kind!r} has no edges")
        if not self.graph.is_weakly_connected():
            raise PatternError(f"pattern {self.kind!r} is not connected")

    def _compute_search_order(self) -> tuple[tuple[str, str | None, bool], ...]:
        """Breadth-first role order starting at the entry.

        Each item is ``(role, anchor, forward)``: the role is reached from the
        already ordered *anchor* along a pattern edge ``anchor -> role`` when
        *forward* is true, ``role -> anchor`` otherwise.
        """
        order: list[tuple[str, str | None, bool]] = [(self.entry, None, True)]
        seen = {self.entry}
        i = 0
        while i < len(order):
            role = order[i][0]
            i += 1
            for succ in sorted(self.graph.succs(role)):
                if succ not in seen:
                    seen.add(succ)
                    order.append((succ, role, True))
            for pred in sorted(self.graph.preds(role)):
                if pred not in seen:
                    seen.add(pred)
                    order.append((pred, role, False))
        return tuple(order)

    @property
    def roles(self) -> list[str]:
        return self.graph.sorted_nodes()

    @property
    def search_order(self) -> tuple[tuple[str, str | None, bool], ...]:
        return self._search_order

    def role_kind(self, role: str) -> RoleKind:
        if role == self.entry:
            return RoleKind.ENTRY
        if role == self.exit:
            return RoleKind.EXIT
        return RoleKind.INTERIOR

    def preds_open(self, role: str) -> bool:
        """True when *role* may have predecessors outside the pattern."""
        return role == self.entry

    def succs_open(self, role: str) -> bool:
        """True when *role* may have successors outside the pattern."""
        return role == self.exit

    @property
    def interior(self) -> list[str]:
        return [r for r in self.roles if self.role_kind(r) is RoleKind.INTERIOR]

    def __len__(self) -> int:
        return len(self.graph)

    def __repr__(self) -> str:
        return f"Pattern(kind={self.kind!r}, roles={self.roles}, entry={self.entry!r}, exit={self.exit!r})"
