from __future__ import annotations

import io
import sys
from textwrap import dedent

import pytest

from tests.support.harness import (
    NULL,
    ArityError,
    DartiSyntaxError,
    DtInt,
    MissingEntryPointError,
    global_environment,
    run,
    run_main,
    run_program,
)
from darti import runner
from darti.runner import _load_source, main, repl_eval


@pytest.fixture(autouse=True)
def keep_recursion_limit(monkeypatch):
    monkeypatch.setattr(runner, "MIN_RECURSION_LIMIT", 0)


def test_main_receives_arguments() -> None:
    source = dedent(
        """\
        main(args) {
          print(args.length);
          print(args[0]);
        }
    """
    )

    assert run_program(source, ["a", "b"]) == "2\na\n"


def test_main_without_parameters_ignores_arguments() -> None:
    assert run_program("main() { print(\"hi\"); }", ["ignored"]) == "hi\n"


def test_main_return_value() -> None:
    assert run_main("main() => 7;", out=io.StringIO()) == DtInt(7)


@pytest.mark.parametrize(
    "source",
    [
        pytest.param("f() {}", id="no-main"),
        pytest.param("var main = 1;", id="main-not-a-function"),
        pytest.param("", id="empty-program"),
    ],
)
def test_missing_entry_point(source: str) -> None:
    with pytest.raises(MissingEntryPointError):
        run_program(source)


def test_main_with_two_parameters() -> None:
    with pytest.raises(ArityError):
        run_program("main(a, b) {}")


def test_run_returns_top_level_scope() -> None:
    env = run("var x = 1 + 1; f() => x;")

    assert env.lookup("x") == DtInt(2)
    assert env.is_bound("f")


def test_run_in_supplied_environment() -> None:
    out = io.StringIO()
    root = global_environment(out=out)

    run("var x = 1;", root)
    run("main() => print(2);", root)

    assert not root.is_bound("x")
    assert out.getvalue() == ""


def test_repl_eval_keeps_state() -> None:
    out = io.StringIO()
    env = global_environment(out=out).child()

    assert repl_eval("var x = 2;", env) == (NULL, False)
    assert repl_eval("x * 3", env) == (DtInt(6), True)
    assert repl_eval("x + 1;", env) == (DtInt(3), True)
    assert repl_eval("f() => x * 10;", env) == (NULL, False)
    assert repl_eval("f()", env) == (DtInt(20), True)
    assert repl_eval("", env) == (NULL, False)

    repl_eval("print(x);", env)
    assert out.getvalue() == "2\n"


def test_repl_eval_reports_statement_syntax_error() -> None:
    env = global_environment(out=io.StringIO()).child()

    with pytest.raises(DartiSyntaxError):
        repl_eval("var = ;", env)


def test_load_source_reads_file(tmp_path) -> None:
    path = tmp_path / "prog.dart"
    path.write_text("main() {}", encoding="utf-8")

    assert _load_source(str(path)) == "main() {}"


def test_load_source_literal_text() -> None:
    assert _load_source("main() { print(1); }") == "main() { print(1); }"


def test_load_source_stdin(monkeypatch) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO("main() {}"))

    assert _load_source("-") == "main() {}"


def test_load_source_empty_stdin(monkeypatch) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))

    with pytest.raises(SystemExit):
        _load_source(None)


def test_load_source_long_literal() -> None:
    source = "main() {" + " " * 300 + "}"

    assert _load_source(source) == source


def test_directives_are_ignored() -> None:
    source = dedent(
        """\
        library game;
        import 'dart:io';
        import 'dart:math' show Random, max;
        import "package:util/util.dart" as util;
        export 'src/api.dart';
        part 'src/part.dart';
        main() {
          print("hi");
        }
    """
    )

    assert run_program(source) == "hi\n"


def test_directive_after_declaration_is_rejected() -> None:
    with pytest.raises(DartiSyntaxError):
        run_program("main() {}\nimport 'dart:io';")


def test_cli_long_literal_program(capsys) -> None:
    assert main(["main() { print(1); }" + " " * 300]) == 0
    assert capsys.readouterr().out == "1\n"


def test_cli_runs_program(capsys) -> None:
    assert main(["main() { print(1 + 1); }"]) == 0

    captured = capsys.readouterr()
    assert captured.out == "2\n"
    assert captured.err == ""


def test_cli_passes_arguments(tmp_path, capsys) -> None:
    path = tmp_path / "args.dart"
    path.write_text("main(args) { print(args); }", encoding="utf-8")

    assert main([str(path), "x", "-v"]) == 0
    assert capsys.readouterr().out == "[x, -v]\n"


def test_cli_double_dash(capsys) -> None:
    assert main(["--", "main() { print(\"ok\"); }"]) == 0
    assert capsys.readouterr().out == "ok\n"


def test_cli_reports_runtime_error(capsys) -> None:
    assert main(["main() { print(foo); }"]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Error: unbound identifier foo")


def test_cli_reports_syntax_error(capsys) -> None:
    assert main(["main() {"]) == 1
    assert capsys.readouterr().err.startswith("Error: ")


def test_cli_python_trace_on_request(capsys, monkeypatch) -> None:
    monkeypatch.setenv("DARTI_DEBUG_PY_TRACE", "1")

    assert main(["main() { print(1 ~/ 0); }"]) == 1
    assert "Traceback" in capsys.readouterr().err


def test_cli_unknown_option() -> None:
    with pytest.raises(SystemExit):
        main(["--bogus"])


def test_cli_stdin_program(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO("main() { print(stdin.readLineSync()); }\n"))

    assert main(["-"]) == 0
    assert capsys.readouterr().out == "null\n"
