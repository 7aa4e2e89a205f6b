from __future__ import annotations

import pytest

from tests.support.harness import DtInt, global_environment
from darti.repl import _bracket_depth, _handle_slash, _normalize


@pytest.mark.parametrize(
    "text, depth",
    [
        pytest.param("main() {", 1, id="open-brace"),
        pytest.param("f([1, {", 3, id="nested"),
        pytest.param("f() { print(1); }", 0, id="balanced"),
        pytest.param("print(\"(\"", 1, id="brackets-in-strings-ignored"),
        pytest.param("x # y {", 0, id="lex-error"),
    ],
)
def test_bracket_depth(text: str, depth: int) -> None:
    assert _bracket_depth(text) == depth


def test_normalize_strips_invisible_characters() -> None:
    assert _normalize("\u200bx\u00a0+ 1;\r") == "x+ 1;"


def test_plain_input_is_not_a_command() -> None:
    assert not _handle_slash("print(1);", [global_environment()])


def test_reset_replaces_environment(capsys) -> None:
    env = global_environment().child()
    env.declare("x", DtInt(1))
    box = [env]

    assert _handle_slash("/reset", box)
    assert box[0] is not env
    assert not box[0].is_bound("x")
    assert capsys.readouterr().out == "Environment reset.\n"


def test_py_traceback_toggle(monkeypatch, capsys) -> None:
    monkeypatch.delenv("DARTI_DEBUG_PY_TRACE", raising=False)
    box = [global_environment()]

    _handle_slash("/py-traceback on", box)
    _handle_slash("/py-traceback", box)

    assert capsys.readouterr().out == "Python traceback: on\nPython traceback: off\n"


def test_unknown_command(capsys) -> None:
    assert _handle_slash("/nope", [global_environment()])
    assert "Unknown command: /nope" in capsys.readouterr().err
