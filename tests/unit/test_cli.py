"""Tests for the command-line interface."""

import json
import logging

import pytest

from restructure.cli import build_parser, main
from restructure.core import LoggerConfigurator


@pytest.fixture
def run(tmp_path, restore_loggers):
    """Invoke ``main`` with an isolated options file and log directory."""

    def _run(*argv):
        return main(
            [
                "--config",
                str(tmp_path / "options.json"),
                "--log-dir",
                str(tmp_path / "logs"),
                *map(str, argv),
            ]
        )

    return _run


@pytest.fixture
def chain_dot(tmp_path):
    path = tmp_path / "chain.dot"
    path.write_text("digraph chain { A -> B }\n")
    return path


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["foo.dot"])
        assert args.graph == "foo.dot"
        assert args.prims == ""
        assert args.format is None
        assert args.indent == 2

    def test_single_dash_prims(self):
        args = build_parser().parse_args(["-prims", "a.dot,b.dot", "foo.dot"])
        assert args.prims == "a.dot,b.dot"

    def test_log_level_is_case_insensitive(self):
        args = build_parser().parse_args(["--log-level", "debug", "foo.dot"])
        assert args.log_level == "DEBUG"
        assert build_parser().parse_args(["foo.dot"]).log_level is None

    def test_unknown_log_level(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-level", "loud", "foo.dot"])


class TestMain:
    def test_foo(self, run, testdata_dir, tmp_path, capsys):
        assert run(testdata_dir / "foo.dot") == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc["entry"] == "if0"
        assert doc["primitives"]["list0"] == {
            "primitive": "list",
            "nodes": {"A": "F", "B": "G"},
        }
        assert (tmp_path / "logs" / "restructure.log").exists()

    def test_list_format_to_file(self, run, testdata_dir, tmp_path):
        out = tmp_path / "bar.json"
        assert run("--format", "list", "-o", out, testdata_dir / "bar.dot") == 0
        doc = json.loads(out.read_text())
        assert [d["primitive"] for d in doc] == ["if_else", "pre_loop"]

    def test_format_from_options_file(self, run, testdata_dir, tmp_path, capsys):
        (tmp_path / "options.json").write_text('{"output_format": "list"}')
        assert run("-q", testdata_dir / "do_while.dot") == 0
        doc = json.loads(capsys.readouterr().out)
        assert [d["node"] for d in doc] == ["post_loop0", "list0"]

    def test_irreducible(self, run, testdata_dir, capsys):
        assert run("-q", testdata_dir / "irreducible.dot") == 1
        doc = json.loads(capsys.readouterr().out)
        assert list(doc["partial"]["primitives"]) == ["list0"]
        assert doc["residual"]["nodes"] == ["A", "B", "list0"]

    def test_step_budget(self, run, testdata_dir, capsys):
        assert run("-q", "--max-steps", 1, testdata_dir / "foo.dot") == 1
        doc = json.loads(capsys.readouterr().out)
        assert list(doc["partial"]["primitives"]) == ["list0"]

    def test_custom_prims(self, run, testdata_dir, chain_dot, capsys):
        assert run("-q", "-prims", testdata_dir / "seq.dot", chain_dot) == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc == {
            "entry": "seq0",
            "primitives": {"seq0": {"primitive": "seq", "nodes": {"A": "A", "B": "B"}}},
        }

    def test_custom_prims_may_not_cover_graph(self, run, testdata_dir, capsys):
        assert run("-q", "-prims", testdata_dir / "seq.dot", testdata_dir / "foo.dot") == 1
        doc = json.loads(capsys.readouterr().out)
        assert list(doc["partial"]["primitives"]) == ["seq0"]

    def test_library_file(self, run, testdata_dir, chain_dot, tmp_path, capsys):
        library = tmp_path / "library.json"
        library.write_text(
            json.dumps(
                {
                    "description": "sequences only",
                    "patterns": [
                        {"name": "if", "is_activated": False},
                        {"name": "sequence", "path": str(testdata_dir / "seq.dot")},
                    ],
                }
            )
        )
        assert run("-q", "--library", library, chain_dot) == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc["entry"] == "sequence0"

    def test_invalid_prims(self, run, testdata_dir):
        assert run("-q", "-prims", testdata_dir / "noentry.dot", testdata_dir / "foo.dot") == 1

    def test_missing_library_file(self, run, testdata_dir, tmp_path):
        assert run("-q", "--library", tmp_path / "absent.json", testdata_dir / "foo.dot") == 1

    def test_missing_graph(self, run, tmp_path):
        assert run("-q", tmp_path / "absent.dot") == 1

    def test_malformed_graph(self, run, testdata_dir):
        assert run("-q", testdata_dir / "malformed.dot") == 1

    def test_invalid_workers(self, run, testdata_dir):
        assert run("-q", "--workers", 0, testdata_dir / "foo.dot") == 1

    def test_concurrent(self, run, testdata_dir, capsys):
        assert run("-q", "--workers", 3, testdata_dir / "bar.dot") == 0
        assert json.loads(capsys.readouterr().out)["entry"] == "pre_loop0"

    def test_log_level_reaches_search_loggers(self, run, testdata_dir, tmp_path):
        log_file = tmp_path / "logs" / "restructure.log"
        assert run("-q", testdata_dir / "foo.dot") == 0
        assert "Pattern 'list' matched" not in log_file.read_text()
        assert run("-q", "--log-level", "debug", testdata_dir / "foo.dot") == 0
        assert "Pattern 'list' matched" in log_file.read_text()
        assert LoggerConfigurator.get_level("Restructure.iso") == logging.DEBUG

    def test_clear_logs(self, run, testdata_dir, tmp_path):
        log_dir = tmp_path / "logs"
        log_dir.mkdir()
        (log_dir / "stale.log").write_text("old run\n")
        assert run("-q", "--clear-logs", testdata_dir / "foo.dot") == 0
        assert not (log_dir / "stale.log").exists()
        assert (log_dir / "restructure.log").exists()
