"""Graphviz DOT input and output.

Control flow graphs and pattern descriptions are both stored as DOT
digraphs. In a pattern, node ids are role names and the ``label`` attribute
marks the boundary roles::

    digraph if {
        A [label="entry"]
        B
        C [label="exit"]
        A -> B
        A -> C
        B -> C
    }
"""
from __future__ import annotations

import functools
import importlib.resources
import pathlib

import pydot

from restructure.core import getLogger, typing
from restructure.errors import InputError, PatternError
from restructure.graph import ENTRY_LABEL, ControlFlowGraph, guess_entry, label_tags
from restructure.patterns import Pattern, PatternLibrary

logger = getLogger("Restructure.dot")

# Default-attribute statements show up as nodes named after their keyword.
_PSEUDO_NODES = frozenset({"node", "edge", "graph"})

EXIT_LABEL = "exit"


def _unquote(text: str | None) -> str | None:
    if text is None:
        return None
    text = str(text).strip()
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return text[1:-1]
    return text


def _node_id(name: typing.Any) -> str:
    if not isinstance(name, str):
        raise InputError(f"unsupported edge endpoint {name!r}")
    name = name.strip()
    if name.startswith('"'):
        end = name.find('"', 1)
        return name[1:end] if end > 0 else name[1:]
    # drop a port suffix such as "A:s"
    return name.split(":", 1)[0]


def _parse_dot(text: str, error: type[Exception]) -> pydot.Dot:
    try:
        graphs = pydot.graph_from_dot_data(text)
    except Exception as e:
        raise error(f"invalid DOT source: {e}") from e
    if not graphs:
        raise error("invalid DOT source: no graph found")
    if len(graphs) > 1:
        logger.warning("DOT source holds %d graphs; using the first", len(graphs))
    return graphs[0]


def _walk(dot: pydot.Graph) -> typing.Iterator[pydot.Graph]:
    yield dot
    for sub in dot.get_subgraphs():
        yield from _walk(sub)


def _collect(dot: pydot.Dot) -> tuple[ControlFlowGraph, list[str]]:
    """Build a graph from *dot*; also return the nodes in declaration order."""
    graph = ControlFlowGraph(name=_unquote(dot.get_name()) or "")
    declared: list[str] = []
    for g in _walk(dot):
        for node in g.get_nodes():
            name = _node_id(node.get_name())
            if name in _PSEUDO_NODES:
                continue
            graph.add_node(name, label=_unquote(node.get("label")))
            if name not in declared:
                declared.append(name)
        for edge in g.get_edges():
            src = _node_id(edge.get_source())
            dst = _node_id(edge.get_destination())
            for name in (src, dst):
                if name not in declared:
                    declared.append(name)
            graph.add_edge(src, dst)
    return graph, declared


# ---------------------------------------------------------------------------
# Control flow graphs
# ---------------------------------------------------------------------------


def parse_graph(text: str) -> ControlFlowGraph:
    """Parse DOT text into a control flow graph.

    The entry is the node labelled ``entry``, else the only node without
    predecessors, else the first node of the source.
    """
    dot = _parse_dot(text, InputError)
    graph, declared = _collect(dot)
    graph.entry = guess_entry(graph, declared)
    logger.debug(
        "Parsed graph %r: %d nodes, %d edges, entry %r",
        graph.name,
        len(graph),
        graph.edge_count(),
        graph.entry,
    )
    return graph


def read_graph(path: str | pathlib.Path) -> ControlFlowGraph:
    path = pathlib.Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InputError(f"unable to read {path}: {e}") from e
    graph = parse_graph(text)
    if not graph.name:
        graph.name = path.stem
    return graph


def write_graph(graph: ControlFlowGraph) -> str:
    """Return DOT text for *graph*, nodes and edges in sorted order."""
    dot = pydot.Dot(graph.name or "G", graph_type="digraph")
    for node in graph.sorted_nodes():
        label = graph.label(node)
        if node == graph.entry and label is None:
            label = ENTRY_LABEL
        if label is not None:
            dot.add_node(pydot.Node(node, label=label))
        else:
            dot.add_node(pydot.Node(node))
    for src, dst in graph.sorted_edges():
        dot.add_edge(pydot.Edge(src, dst))
    return dot.to_string()


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


def parse_pattern(
    text: str, kind: str | None = None, default_kind: str | None = None
) -> Pattern:
    """Parse a pattern description.

    *kind* overrides the DOT graph name; *default_kind* is used when the
    graph is anonymous.
    """
    dot = _parse_dot(text, PatternError)
    graph, declared = _collect(dot)
    if kind is None:
        kind = graph.name or default_kind
    if not kind:
        raise PatternError("pattern description has no name")

    entries = [n for n in declared if ENTRY_LABEL in label_tags(graph.label(n))]
    exits = [n for n in declared if EXIT_LABEL in label_tags(graph.label(n))]
    if len(entries) != 1:
        raise PatternError(
            f"pattern {kind!r} must have exactly one entry node, found {len(entries)}"
        )
    if len(exits) > 1:
        raise PatternError(f"pattern {kind!r} has {len(exits)} exit nodes")
    graph.name = kind
    return Pattern(kind, graph, entries[0], exits[0] if exits else None)


def read_pattern(path: str | pathlib.Path, kind: str | None = None) -> Pattern:
    """Load a pattern file; the kind defaults to the graph name, then the file stem."""
    path = pathlib.Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PatternError(f"unable to read pattern {path}: {e}") from e
    return parse_pattern(text, kind=kind, default_kind=path.stem)


def read_library(paths: typing.Iterable[str | pathlib.Path]) -> PatternLibrary:
    """Load pattern files into a library, keeping the given priority order."""
    return PatternLibrary(read_pattern(p) for p in paths)


def bundled_pattern(name: str) -> Pattern:
    """Return one of the primitives shipped with the package."""
    resource = importlib.resources.files("restructure") / "primitives" / f"{name}.dot"
    if not resource.is_file():
        raise PatternError(f"no bundled primitive named {name!r}")
    return parse_pattern(resource.read_text(encoding="utf-8"), kind=name)


@functools.cache
def default_library() -> PatternLibrary:
    """The bundled primitives in their default priority order."""
    from restructure.core.config import LibraryConfiguration

    return LibraryConfiguration.default().build_library()
