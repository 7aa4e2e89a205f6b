from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    DartiRuntimeError,
    DartiSyntaxError,
    IntegerDivisionByZeroError,
    ThrownValue,
    TypeMismatchError,
    UnboundNameError,
    UnsupportedFeatureError,
    run_output_case,
    run_program,
)

SCENARIOS = [
    pytest.param(
        "main() { try { throw 1; } catch (e) { print(\"C\"); } }",
        "C\n",
        None,
        id="catch-thrown-value",
    ),
    pytest.param(
        "main() { try { throw 1; } catch (e) { print(\"C\"); } finally { print(\"F\"); } }",
        "C\nF\n",
        None,
        id="catch-then-finally",
    ),
    pytest.param(
        dedent(
            """\
            f() {
              try {
                return 1;
              } finally {
                print("F");
              }
            }
            main() {
              print(f());
            }
        """
        ),
        "F\n1\n",
        None,
        id="finally-runs-before-return",
    ),
    pytest.param(
        dedent(
            """\
            f() {
              try {
                throw "lost";
              } finally {
                return 1;
              }
            }
            main() {
              print(f());
            }
        """
        ),
        "1\n",
        None,
        id="finally-return-discards-error",
    ),
    pytest.param(
        dedent(
            """\
            f() {
              try {
                return 1;
              } finally {
                return 2;
              }
            }
            main() {
              print(f());
            }
        """
        ),
        "2\n",
        None,
        id="finally-return-overrides-return",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              try {
                throw "boom";
              } catch (e) {
                print("caught $e");
              }
            }
        """
        ),
        "caught boom\n",
        None,
        id="throw-string",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              try {
                print(1 ~/ 0);
              } catch (e) {
                print(e);
                print(e.message);
              }
            }
        """
        ),
        "IntegerDivisionByZeroException\nIntegerDivisionByZeroException\n",
        None,
        id="catch-runtime-error",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              try {
                try {
                  throw "inner";
                } catch (e) {
                  print("first");
                  rethrow;
                }
              } catch (e) {
                print("second $e");
              }
            }
        """
        ),
        "first\nsecond inner\n",
        None,
        id="rethrow",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              try {
                try {
                  throw "inner";
                } finally {
                  print("cleanup");
                }
              } catch (e) {
                print(e);
              }
            }
        """
        ),
        "cleanup\ninner\n",
        None,
        id="finally-then-outer-catch",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var e = "outer";
              try {
                throw "x";
              } catch (e) {}
              print(e);
            }
        """
        ),
        "outer\n",
        None,
        id="catch-parameter-scoped",
    ),
    pytest.param(
        "main() { try { throw 1; } on int catch (e) {} }",
        None,
        UnsupportedFeatureError,
        id="typed-catch-when-catching",
    ),
    pytest.param(
        "main() { try { print(\"ok\"); } on int catch (e) {} }",
        "ok\n",
        None,
        id="typed-catch-without-throw",
    ),
    pytest.param(
        "main() { throw \"boom\"; }",
        None,
        ThrownValue,
        id="uncaught-throw",
    ),
    pytest.param(
        "main() { throw null; }",
        None,
        TypeMismatchError,
        id="throw-null",
    ),
    pytest.param(
        "main() { try { 1 ~/ 0; } catch (e) { throw e; } }",
        None,
        IntegerDivisionByZeroError,
        id="rethrow-caught-error-by-value",
    ),
    pytest.param(
        "main() { try { foo; } catch (e) { print(e); } }",
        "unbound identifier foo\n",
        None,
        id="catch-unbound-name",
    ),
    pytest.param(
        "main() { rethrow; }",
        None,
        DartiSyntaxError,
        id="rethrow-outside-catch",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var later;
              try {
                throw "first";
              } catch (e) {
                later = () { rethrow; };
              }
            }
        """
        ),
        None,
        DartiSyntaxError,
        id="rethrow-inside-closure-in-catch",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              try {
                try {
                  throw "inner";
                } catch (e) {
                  if (true) {
                    print("nested");
                    rethrow;
                  }
                }
              } catch (e) {
                print(e);
              }
            }
        """
        ),
        "nested\ninner\n",
        None,
        id="rethrow-in-nested-block-of-catch",
    ),
]


@pytest.mark.parametrize("source, expected_output, expected_exc", SCENARIOS)
def test_error_handling(source: str, expected_output, expected_exc) -> None:
    run_output_case(source, expected_output, expected_exc)


def test_stack_trace_is_string() -> None:
    source = dedent(
        """\
        main() {
          try {
            throw 1;
          } catch (e, s) {
            print(s.isNotEmpty);
          }
        }
    """
    )

    assert run_program(source) == "true\n"


def test_uncaught_throw_carries_value() -> None:
    with pytest.raises(ThrownValue) as exc_info:
        run_program("main() { throw [1, 2]; }")

    assert str(exc_info.value).startswith("Uncaught exception: [1, 2]")


def test_error_location_points_at_failing_expression() -> None:
    source = dedent(
        """\
        main() {
          print(1 ~/ 0);
        }
    """
    )

    with pytest.raises(IntegerDivisionByZeroError) as exc_info:
        run_program(source)

    assert exc_info.value.line == 2
    assert "(line 2" in str(exc_info.value)


def test_unbound_name_stops_before_output() -> None:
    with pytest.raises(UnboundNameError) as exc_info:
        run_program("main() { print(foo); }")

    assert exc_info.value.name == "foo"
    assert exc_info.value.message == "unbound identifier foo"


def test_break_escaping_function_body() -> None:
    from darti.nodes import Block, BlockBody, BreakStatement
    from darti.evaluator import run_function_body
    from tests.support.harness import global_environment

    body = BlockBody(Block([BreakStatement()]))

    with pytest.raises(DartiRuntimeError, match="break outside of a loop"):
        run_function_body(body, global_environment())
