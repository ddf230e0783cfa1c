"""Directed control flow graph backed by :class:`networkx.DiGraph`.

Node identifiers are strings. networkx keeps the successor and predecessor
adjacency in step on every mutation, so degree and neighbourhood queries
stay cheap while the graph shrinks during structuring.
"""
from __future__ import annotations

import networkx

from restructure.core import getLogger, typing

logger = getLogger("Restructure")

ENTRY_LABEL = "entry"


def label_tags(label: str | None) -> set[str]:
    """Split a comma separated node label into its tags."""
    if not label:
        return set()
    return {tag.strip() for tag in label.split(",") if tag.strip()}


class ControlFlowGraph:
    """A set of nodes and directed edges, without parallel duplicate edges.

    Self-loops are allowed. Nodes keep their insertion order; every query that
    needs a stable order sorts explicitly.
    """

    def __init__(self, name: str = "", entry: str | None = None) -> None:
        self.name = name
        self._graph = networkx.DiGraph()
        self._entry: str | None = None
        if entry is not None:
            self.entry = entry

    @classmethod
    def from_edges(
        cls,
        edges: typing.Iterable[tuple[str, str]],
        nodes: typing.Iterable[str] = (),
        *,
        name: str = "",
        entry: str | None = None,
    ) -> "ControlFlowGraph":
        """Build a graph from an edge list; *nodes* adds isolated nodes."""
        graph = cls(name=name)
        for node in nodes:
            graph.add_node(node)
        for src, dst in edges:
            graph.add_edge(src, dst)
        if entry is not None:
            graph.entry = entry
        return graph

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------
    def add_node(self, node: str, label: str | None = None) -> None:
        if label is None:
            self._graph.add_node(node)
        else:
            self._graph.add_node(node, label=label)

    def remove_node(self, node: str) -> None:
        """Remove *node* together with all of its incident edges."""
        try:
            self._graph.remove_node(node)
        except networkx.NetworkXError:
            raise KeyError(node) from None
        if self._entry == node:
            self._entry = None

    def has_node(self, node: str) -> bool:
        return self._graph.has_node(node)

    def __contains__(self, node: object) -> bool:
        return node in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __iter__(self) -> typing.Iterator[str]:
        return iter(self._graph)

    @property
    def nodes(self) -> list[str]:
        """Node ids in insertion order."""
        return list(self._graph)

    def sorted_nodes(self) -> list[str]:
        return sorted(self._graph)

    def label(self, node: str) -> str | None:
        if node not in self._graph:
            return None
        return self._graph.nodes[node].get("label")

    def set_label(self, node: str, label: str) -> None:
        if node not in self._graph:
            raise KeyError(node)
        self._graph.nodes[node]["label"] = label

    @property
    def entry(self) -> str | None:
        """The function entry node, which has an implicit outside predecessor."""
        return self._entry

    @entry.setter
    def entry(self, node: str | None) -> None:
        if node is not None and node not in self._graph:
            raise KeyError(node)
        self._entry = node

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------
    def add_edge(self, src: str, dst: str) -> bool:
        """Add ``src -> dst``, creating missing nodes.

        Returns False when the edge was already present.
        """
        if self._graph.has_edge(src, dst):
            return False
        self._graph.add_edge(src, dst)
        return True

    def remove_edge(self, src: str, dst: str) -> None:
        try:
            self._graph.remove_edge(src, dst)
        except networkx.NetworkXError:
            raise KeyError((src, dst)) from None

    def has_edge(self, src: str, dst: str) -> bool:
        return self._graph.has_edge(src, dst)

    @property
    def edges(self) -> list[tuple[str, str]]:
        return list(self._graph.edges)

    def sorted_edges(self) -> list[tuple[str, str]]:
        return sorted(self._graph.edges)

    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    # ------------------------------------------------------------------
    # Adjacency
    # ------------------------------------------------------------------
    def succs(self, node: str) -> typing.Mapping[str, typing.Any]:
        return self._graph.succ[node]

    def preds(self, node: str) -> typing.Mapping[str, typing.Any]:
        return self._graph.pred[node]

    def out_degree(self, node: str) -> int:
        return self._graph.out_degree(node)

    def in_degree(self, node: str) -> int:
        return self._graph.in_degree(node)

    def sources(self) -> list[str]:
        """Nodes without predecessors, in insertion order."""
        return [node for node, degree in self._graph.in_degree() if degree == 0]

    def is_weakly_connected(self) -> bool:
        # networkx refuses to decide connectivity for the null graph
        if not self._graph:
            return True
        return networkx.is_weakly_connected(self._graph)

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------
    def copy(self) -> "ControlFlowGraph":
        other = ControlFlowGraph(name=self.name)
        other._graph = self._graph.copy()
        other._entry = self._entry
        return other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ControlFlowGraph):
            return NotImplemented
        return (
            set(self._graph) == set(other._graph)
            and set(self._graph.edges) == set(other._graph.edges)
            and self._entry == other._entry
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ControlFlowGraph(name={self.name!r}, nodes={len(self)}, edges={self.edge_count()}, entry={self._entry!r})"


def guess_entry(
    graph: ControlFlowGraph, order: typing.Sequence[str] | None = None
) -> str | None:
    """Pick an entry for a graph that does not declare one.

    The node labelled ``entry`` wins, then the only node without
    predecessors, then the first node of *order* (insertion order by default).
    """
    if order is None:
        order = graph.nodes
    labelled = [n for n in order if ENTRY_LABEL in label_tags(graph.label(n))]
    if len(labelled) == 1:
        return labelled[0]
    if len(labelled) > 1:
        logger.warning("Several nodes are labelled %r: %s", ENTRY_LABEL, labelled)
    sources = graph.sources()
    if len(sources) == 1:
        return sources[0]
    return order[0] if order else None
