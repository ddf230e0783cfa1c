from __future__ import annotations

import dataclasses
import json
from collections import defaultdict
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from .logging import getLogger
from .registry import EventEmitter

logger = getLogger("Restructure")


class StructuringEvent(Enum):
    """Events emitted while a graph is being structured."""

    RUN_START = auto()  # Driver is about to take its first step
    PATTERN_TRIED = auto()  # A pattern was searched for in the live graph
    PRIMITIVE_FOUND = auto()  # A match was merged into a synthetic node
    RUN_STUCK = auto()  # No pattern matched a graph with more than one node
    RUN_END = auto()  # Driver reached a terminal state


@dataclasses.dataclass
class PrimitiveExecution:
    """Record of a single reduction step for sequence analysis."""

    kind: str
    node: str
    entry: str
    step: int
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class StructuringStatistics:
    """Centralized statistics for a structuring run.

    Tracks how often each pattern kind was tried and how often it matched,
    keeps the ordered log of reductions and exposes an ``EventEmitter``
    through which the per-step trace is delivered.
    """

    # number of searches per pattern kind
    pattern_trials: Dict[str, int] = dataclasses.field(
        default_factory=lambda: defaultdict(int)
    )

    # number of successful reductions per pattern kind
    pattern_usage: Dict[str, int] = dataclasses.field(
        default_factory=lambda: defaultdict(int)
    )

    execution_log: List[PrimitiveExecution] = dataclasses.field(default_factory=list)

    stuck_runs: int = 0

    events: EventEmitter[StructuringEvent] = dataclasses.field(
        default_factory=lambda: EventEmitter[StructuringEvent]()
    )

    def reset(self) -> None:
        self.pattern_trials.clear()
        self.pattern_usage.clear()
        self.execution_log.clear()
        self.stuck_runs = 0
        # Event handlers persist across runs

    # -------------------------------------------------------------------------
    # Recording APIs
    # -------------------------------------------------------------------------

    def record_run_start(self, nb_nodes: int) -> None:
        self.events.emit(StructuringEvent.RUN_START, nb_nodes)

    def record_pattern_tried(self, kind: str, matched: bool) -> None:
        self.pattern_trials[kind] += 1
        self.events.emit(StructuringEvent.PATTERN_TRIED, kind, matched)

    def record_primitive(self, primitive: Any, entry: str, **metadata) -> None:
        """Record a reduction and publish it as a trace step.

        Args:
            primitive: The :class:`~restructure.driver.Primitive` produced
            entry: Graph node matched by the pattern's entry role
            **metadata: Additional context stored on the log record
        """
        self.pattern_usage[primitive.kind] += 1
        self.execution_log.append(
            PrimitiveExecution(
                kind=primitive.kind,
                node=primitive.node,
                entry=entry,
                step=len(self.execution_log),
                metadata=metadata,
            )
        )
        self.events.emit(StructuringEvent.PRIMITIVE_FOUND, primitive, entry)

    def record_stuck(self, residual: Any) -> None:
        self.stuck_runs += 1
        self.events.emit(StructuringEvent.RUN_STUCK, residual)

    def record_run_end(self, result: Any) -> None:
        self.events.emit(StructuringEvent.RUN_END, result)

    # -------------------------------------------------------------------------
    # Query APIs
    # -------------------------------------------------------------------------

    def get_usage_count(self, kind: str) -> int:
        return int(self.pattern_usage.get(kind, 0))

    def get_trial_count(self, kind: str) -> int:
        return int(self.pattern_trials.get(kind, 0))

    def get_execution_log(self) -> List[PrimitiveExecution]:
        return list(self.execution_log)

    def get_last_execution(self) -> Optional[PrimitiveExecution]:
        return self.execution_log[-1] if self.execution_log else None

    # -------------------------------------------------------------------------
    # Reporting APIs
    # -------------------------------------------------------------------------

    def report(self) -> None:
        for kind, nb_match in self.pattern_usage.items():
            if nb_match > 0:
                logger.info(
                    "Primitive '%s' has been reduced %d times (%d searches)",
                    kind,
                    nb_match,
                    self.pattern_trials.get(kind, 0),
                )
        if self.stuck_runs:
            logger.info("%d run(s) ended with an irreducible graph", self.stuck_runs)

    def summary(self) -> Dict[str, Any]:
        """Get a summary dict for programmatic access."""
        return {
            "primitive_usage": dict(self.pattern_usage),
            "pattern_trials": dict(self.pattern_trials),
            "total_reductions": len(self.execution_log),
            "stuck_runs": self.stuck_runs,
        }

    # -------------------------------------------------------------------------
    # JSON Serialization APIs
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern_usage": dict(self.pattern_usage),
            "pattern_trials": dict(self.pattern_trials),
            "execution_log": [
                {
                    "kind": ex.kind,
                    "node": ex.node,
                    "entry": ex.entry,
                    "step": ex.step,
                }
                for ex in self.execution_log
            ],
            "stuck_runs": self.stuck_runs,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuringStatistics":
        stats = cls()
        stats.pattern_usage.update(data.get("pattern_usage", {}))
        stats.pattern_trials.update(data.get("pattern_trials", {}))
        for ex in data.get("execution_log", []):
            stats.execution_log.append(
                PrimitiveExecution(
                    kind=ex["kind"], node=ex["node"], entry=ex["entry"], step=ex["step"]
                )
            )
        stats.stuck_runs = data.get("stuck_runs", 0)
        return stats

    @classmethod
    def from_json(cls, json_str: str) -> "StructuringStatistics":
        return cls.from_dict(json.loads(json_str))
