"""Reduction loop that recovers control flow primitives.

The driver repeatedly locates a pattern of its library in the live graph,
merges the occurrence into a single node and records a :class:`Primitive`,
until the graph is reduced to one node or no pattern matches any more.
"""
from __future__ import annotations

import concurrent.futures
import dataclasses
import enum
import types

from restructure.core import StructuringStatistics, getLogger, typing
from restructure.core.logging import RestructureLogger
from restructure.errors import InputError, IrreducibleGraphError
from restructure.graph import ControlFlowGraph, guess_entry
from restructure.iso import IsomorphismSearcher, Match
from restructure.merge import GraphReducer
from restructure.patterns import Pattern, PatternLibrary
from restructure.render import format_mapping

logger = getLogger("Restructure.driver")


class DriverState(enum.Enum):
    RUNNING = "running"
    SUCCESS = "success"
    STUCK = "stuck"


@dataclasses.dataclass(frozen=True)
class Primitive:
    """One recognized control flow primitive.

    ``node`` is the synthetic node that replaced the matched region and
    ``nodes`` maps each role of the pattern to the node that filled it.
    """

    kind: str
    node: str
    nodes: typing.Mapping[str, str]

    def __post_init__(self) -> None:
        frozen = types.MappingProxyType({r: self.nodes[r] for r in sorted(self.nodes)})
        object.__setattr__(self, "nodes", frozen)

    def __hash__(self) -> int:
        return hash((self.kind, self.node, tuple(self.nodes.items())))

    def to_dict(self) -> dict[str, typing.Any]:
        return {"primitive": self.kind, "node": self.node, "nodes": dict(self.nodes)}


@dataclasses.dataclass
class StructuringResult:
    """Terminal outcome of a driver run."""

    state: DriverState
    primitives: tuple[Primitive, ...]
    graph: ControlFlowGraph
    error: IrreducibleGraphError | None = None

    @property
    def ok(self) -> bool:
        return self.state is DriverState.SUCCESS

    @property
    def entry(self) -> str | None:
        """The single remaining node on success, else ``None``."""
        if self.state is not DriverState.SUCCESS:
            return None
        return next(iter(self.graph))

    def raise_for_state(self) -> "StructuringResult":
        if self.error is not None:
            raise self.error
        return self


class StructuringDriver:
    """Reduce a control flow graph with a priority-ordered pattern library.

    The driver works on a private copy of the input graph. With
    ``workers > 1`` the patterns of a step are searched concurrently; the
    winning match is still the one of the first pattern in library order.
    """

    def __init__(
        self,
        graph: ControlFlowGraph,
        library: PatternLibrary,
        *,
        workers: int = 1,
        stats: StructuringStatistics | None = None,
        searcher: IsomorphismSearcher | None = None,
    ) -> None:
        if len(graph) == 0:
            raise InputError("cannot structure an empty graph")
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.library = library
        self.graph = graph.copy()
        if self.graph.entry is None:
            self.graph.entry = guess_entry(self.graph)
            logger.debug("No entry given; using %r", self.graph.entry)
        self.workers = workers
        self.stats = stats if stats is not None else StructuringStatistics()
        self.searcher = searcher if searcher is not None else IsomorphismSearcher()
        self.reducer = GraphReducer(reserved=self.graph)
        self.primitives: list[Primitive] = []
        self.state = DriverState.SUCCESS if len(self.graph) == 1 else DriverState.RUNNING

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def find(self) -> tuple[Pattern, Match] | None:
        """Return the highest priority pattern occurring in the graph."""
        if self.workers > 1 and len(self.library) > 1:
            return self._find_concurrent()
        for pattern in self.library:
            match = self.searcher.search(self.graph, pattern)
            self.stats.record_pattern_tried(pattern.kind, match is not None)
            if match is not None:
                return pattern, match
        return None

    def _find_concurrent(self) -> tuple[Pattern, Match] | None:
        patterns = list(self.library)
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as pool:
            matches = list(
                pool.map(lambda p: self.searcher.search(self.graph, p), patterns)
            )
        for pattern, match in zip(patterns, matches):
            self.stats.record_pattern_tried(pattern.kind, match is not None)
            if match is not None:
                return pattern, match
        return None

    def step(self) -> Primitive | None:
        """Perform one reduction; return its primitive, or None when done."""
        if self.state is not DriverState.RUNNING:
            return None
        RestructureLogger.update_step(len(self.primitives))
        found = self.find()
        if found is None:
            self.state = DriverState.STUCK
            logger.warning(
                "Unable to locate control flow primitive; %d nodes remain",
                len(self.graph),
            )
            self.stats.record_stuck(self.graph)
            return None

        pattern, match = found
        entry = match[pattern.entry]
        if logger.info_on:
            logger.info(format_mapping(pattern.kind, entry, match))
        node = self.reducer.merge(self.graph, match, pattern)
        prim = Primitive(kind=pattern.kind, node=node, nodes=match)
        self.primitives.append(prim)
        self.stats.record_primitive(prim, entry)
        if len(self.graph) == 1:
            self.state = DriverState.SUCCESS
        return prim

    def run(self, max_steps: int | None = None) -> StructuringResult:
        """Reduce until a terminal state, or until *max_steps* reductions."""
        self.stats.record_run_start(len(self.graph))
        try:
            while self.state is DriverState.RUNNING:
                if max_steps is not None and len(self.primitives) >= max_steps:
                    logger.warning("Step budget of %d reductions exhausted", max_steps)
                    self.state = DriverState.STUCK
                    break
                self.step()
        finally:
            RestructureLogger.reset_step()
        result = self.result()
        self.stats.record_run_end(result)
        return result

    def result(self) -> StructuringResult:
        error = None
        if self.state is DriverState.STUCK:
            error = IrreducibleGraphError(
                f"unable to reduce graph: {len(self.graph)} nodes remain after "
                f"{len(self.primitives)} primitive(s)",
                graph=self.graph.copy(),
                primitives=self.primitives,
            )
        return StructuringResult(
            state=self.state,
            primitives=tuple(self.primitives),
            graph=self.graph.copy(),
            error=error,
        )


def restructure(
    graph: ControlFlowGraph,
    library: PatternLibrary | None = None,
    *,
    workers: int = 1,
    max_steps: int | None = None,
    stats: StructuringStatistics | None = None,
) -> StructuringResult:
    """Recover the control flow primitives of *graph*.

    Uses the bundled primitives when no library is given.
    """
    if library is None:
        from restructure.dot import default_library

        library = default_library()
    driver = StructuringDriver(graph, library, workers=workers, stats=stats)
    return driver.run(max_steps=max_steps)
