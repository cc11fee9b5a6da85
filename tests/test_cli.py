"""Tests for the code-graph command line."""

import json

import pytest


def _run(capsys, *argv):
    from codegraph.cli import main

    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestParser:
    """Argument parsing."""

    def test_subcommands(self):
        from codegraph.cli import _build_parser

        parser = _build_parser()
        args = parser.parse_args(["related", "src/a.rs", "12", "--root", "src"])
        assert args.command == "related"
        assert args.line == 12
        assert args.root == "src"
        assert args.workers is None

        args = parser.parse_args(["index", ".", "--workers", "4"])
        assert args.directory == "."
        assert args.workers == 4

    def test_command_is_required(self):
        from codegraph.cli import _build_parser

        with pytest.raises(SystemExit):
            _build_parser().parse_args([])


class TestCommands:
    """JSON output and exit status of each command."""

    def test_outline(self, capsys, write_source):
        pytest.importorskip("tree_sitter_java")
        path = write_source("A.java", "class A {\n  void run() {}\n}\n")

        code, out, _ = _run(capsys, "outline", str(path))
        data = json.loads(out)

        assert code == 0
        assert [n["label"] for n in data["nodes"]] == [str(path), "class A", "void run"]
        assert [n["level"] for n in data["nodes"]] == [0, 1, 2]
        assert data["edges"] == [{"from": 0, "to": 1}, {"from": 1, "to": 2}]

    def test_calls(self, capsys, write_source):
        pytest.importorskip("tree_sitter_javascript")
        path = write_source("a.js", "init();\napp.listen(8080);\n")

        code, out, _ = _run(capsys, "calls", str(path))

        assert code == 0
        assert [(c["label"], c["line"], c["kind"]) for c in json.loads(out)] == [
            ("init", 1, "call"),
            ("listen", 2, "call"),
        ]

    def test_index(self, capsys, write_source, tmp_path):
        pytest.importorskip("tree_sitter_c")
        pytest.importorskip("tree_sitter_rust")
        write_source("a.c", "void f(void) { g(); }\n")
        write_source("b/c.rs", "fn h() { k(); }\n")

        code, out, _ = _run(capsys, "index", str(tmp_path))
        data = json.loads(out)

        assert code == 0
        assert [c["label"] for c in data["calls"]] == ["g", "k"]
        assert [child["name"] for child in data["files"]["children"]] == ["a.c", "b"]

    def test_related(self, capsys, write_source, tmp_path):
        pytest.importorskip("tree_sitter_rust")
        lib = write_source("lib.rs", "pub fn parse() {}\n\nfn other() {}\n")
        write_source("main.rs", "fn main() {\n    parse();\n    other();\n}\n")

        code, out, _ = _run(capsys, "related", str(lib), "1")
        data = json.loads(out)

        assert code == 0
        assert len(data) == 1
        assert data[0]["symbol"]["label"] == "pub fn parse"
        assert [(c["label"], c["line"]) for c in data[0]["calls"]] == [("parse", 2)]
        assert data[0]["calls"][0]["file"] == str(tmp_path / "main.rs")

    def test_related_without_definition_at_line(self, capsys, write_source):
        pytest.importorskip("tree_sitter_rust")
        lib = write_source("lib.rs", "pub fn parse() {}\n\nfn other() {}\n")

        code, out, _ = _run(capsys, "related", str(lib), "2")

        assert code == 0
        assert json.loads(out) == []


class TestExitCodes:
    """Failures are reported on stderr with a non-zero status."""

    def test_unsupported_extension(self, capsys, write_source):
        path = write_source("script.py", "print('hi')\n")

        code, out, err = _run(capsys, "outline", str(path))

        assert code == 2
        assert out == ""
        assert "Unsupported file extension: .py" in err

    def test_missing_file(self, capsys, tmp_path):
        code, _, err = _run(capsys, "calls", str(tmp_path / "missing.c"))

        assert code == 1
        assert "Error:" in err

    def test_missing_directory(self, capsys, tmp_path):
        code, _, err = _run(capsys, "index", str(tmp_path / "nope"))

        assert code == 1
        assert "Directory not found" in err

    def test_file_too_large(self, capsys, write_source, monkeypatch):
        from codegraph import extractor

        path = write_source("big.rs", "fn a() {}\n" * 10)
        monkeypatch.setattr(extractor, "MAX_FILE_SIZE", 5)

        code, _, err = _run(capsys, "outline", str(path))

        assert code == 1
        assert "exceeds limit" in err

    def test_missing_grammar(self, capsys, write_source, monkeypatch):
        from codegraph import languages

        path = write_source("a.c", "int x;\n")
        monkeypatch.setattr(languages.CQuery, "get_lang", _raise_unavailable)

        code, _, err = _run(capsys, "outline", str(path))

        assert code == 1
        assert "Grammar for c is unavailable" in err


def _raise_unavailable(self):
    from codegraph.languages import GrammarUnavailableError

    raise GrammarUnavailableError(self.name, "not installed")
