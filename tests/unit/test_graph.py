"""Tests for the control flow graph container."""

import pytest

from restructure.graph import ControlFlowGraph, guess_entry, label_tags


class TestConstruction:
    def test_from_edges_creates_nodes(self):
        g = ControlFlowGraph.from_edges([("A", "B"), ("B", "C")], entry="A")
        assert g.nodes == ["A", "B", "C"]
        assert g.entry == "A"
        assert g.edge_count() == 2

    def test_isolated_nodes(self):
        g = ControlFlowGraph.from_edges([], ["X"], entry="X")
        assert len(g) == 1
        assert g.edges == []

    def test_duplicate_edge_is_ignored(self):
        g = ControlFlowGraph()
        assert g.add_edge("A", "B") is True
        assert g.add_edge("A", "B") is False
        assert g.edge_count() == 1

    def test_unknown_entry_rejected(self):
        g = ControlFlowGraph.from_edges([("A", "B")])
        with pytest.raises(KeyError):
            g.entry = "Z"

    def test_self_loop(self):
        g = ControlFlowGraph.from_edges([("L", "L")])
        assert g.has_edge("L", "L")
        assert g.in_degree("L") == 1
        assert g.out_degree("L") == 1


class TestAdjacency:
    def test_preds_and_succs_track_each_other(self, foo_graph):
        assert sorted(foo_graph.succs("E")) == ["F", "H"]
        assert sorted(foo_graph.preds("H")) == ["E", "G"]
        assert foo_graph.in_degree("E") == 0
        assert foo_graph.sources() == ["E"]

    def test_remove_edge(self, foo_graph):
        foo_graph.remove_edge("E", "H")
        assert not foo_graph.has_edge("E", "H")
        assert "E" not in foo_graph.preds("H")

    def test_remove_missing_edge_raises(self, foo_graph):
        with pytest.raises(KeyError):
            foo_graph.remove_edge("H", "E")

    def test_remove_node_drops_incident_edges(self, foo_graph):
        foo_graph.remove_node("F")
        assert "F" not in foo_graph
        assert sorted(foo_graph.succs("E")) == ["H"]
        assert list(foo_graph.preds("G")) == []

    def test_remove_entry_clears_it(self, foo_graph):
        foo_graph.remove_node("E")
        assert foo_graph.entry is None

    def test_remove_node_with_self_loop(self):
        g = ControlFlowGraph.from_edges([("A", "L"), ("L", "L"), ("L", "B")])
        g.remove_node("L")
        assert g.sorted_nodes() == ["A", "B"]
        assert g.edges == []

    def test_weak_connectivity(self):
        assert ControlFlowGraph.from_edges([("A", "B"), ("C", "B")]).is_weakly_connected()
        assert not ControlFlowGraph.from_edges([("A", "B"), ("C", "D")]).is_weakly_connected()

    def test_empty_graph_is_connected(self):
        assert ControlFlowGraph().is_weakly_connected()

    def test_remove_missing_node_raises(self, foo_graph):
        with pytest.raises(KeyError):
            foo_graph.remove_node("Z")


class TestMisc:
    def test_copy_is_independent(self, foo_graph):
        other = foo_graph.copy()
        other.remove_node("G")
        assert "G" in foo_graph
        assert foo_graph.has_edge("F", "G")
        assert other.entry == "E"

    def test_equality_ignores_insertion_order(self):
        a = ControlFlowGraph.from_edges([("A", "B"), ("B", "C")], entry="A")
        b = ControlFlowGraph.from_edges([("B", "C"), ("A", "B")], entry="A")
        assert a == b
        b.entry = "B"
        assert a != b

    def test_labels(self):
        g = ControlFlowGraph()
        g.add_node("A", label="entry")
        assert g.label("A") == "entry"
        assert g.label("B") is None
        g.set_label("A", "exit")
        assert g.label("A") == "exit"
        with pytest.raises(KeyError):
            g.set_label("B", "x")

    def test_sorted_views(self):
        g = ControlFlowGraph.from_edges([("b", "a"), ("B", "a")])
        assert g.sorted_nodes() == ["B", "a", "b"]
        assert g.sorted_edges() == [("B", "a"), ("b", "a")]

    def test_label_survives_re_adding_node(self):
        g = ControlFlowGraph()
        g.add_node("A", label="entry")
        g.add_edge("A", "B")
        assert g.label("A") == "entry"


class TestGuessEntry:
    def test_label_wins(self):
        g = ControlFlowGraph.from_edges([("A", "B"), ("B", "C")])
        g.set_label("B", "head, entry")
        assert guess_entry(g) == "B"

    def test_only_source(self):
        g = ControlFlowGraph.from_edges([("B", "C"), ("A", "B")])
        assert guess_entry(g) == "A"

    def test_first_node_without_a_single_source(self):
        loop = ControlFlowGraph.from_edges([("E", "F"), ("F", "E")])
        assert guess_entry(loop) == "E"
        assert guess_entry(loop, ["F", "E"]) == "F"

    def test_several_labels_fall_through(self, caplog):
        g = ControlFlowGraph.from_edges([("A", "B"), ("C", "B")])
        g.set_label("A", "entry")
        g.set_label("C", "entry")
        with caplog.at_level("WARNING", logger="Restructure"):
            assert guess_entry(g) == "A"
        assert any("Several nodes" in r.getMessage() for r in caplog.records)

    def test_empty_graph(self):
        assert guess_entry(ControlFlowGraph()) is None

    def test_label_tags(self):
        assert label_tags(" entry , exit") == {"entry", "exit"}
        assert label_tags(None) == set()
