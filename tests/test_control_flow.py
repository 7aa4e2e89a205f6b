from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import DartiSyntaxError, TypeMismatchError, run_output_case

SCENARIOS = [
    pytest.param(
        "fac(n) => n == 0 ? 1 : fac(n - 1) * n; main() { print(fac(10)); }",
        "3628800\n",
        None,
        id="factorial",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var x = 3;
              if (x > 2) print("big"); else print("small");
              if (x > 5) {
                print("huge");
              } else if (x > 1) {
                print("medium");
              }
            }
        """
        ),
        "big\nmedium\n",
        None,
        id="if-else-chain",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              if (true)
                if (false) print("inner");
                else print("dangling");
            }
        """
        ),
        "dangling\n",
        None,
        id="dangling-else-binds-inner",
    ),
    pytest.param(
        "main() { if (1) print(1); }",
        None,
        TypeMismatchError,
        id="if-requires-bool",
    ),
    pytest.param(
        "main() { if (null) print(1); }",
        None,
        TypeMismatchError,
        id="if-null-condition",
    ),
    pytest.param(
        dedent(
            """\
            first(xs) {
              for (var x in xs) {
                if (x > 1) return x;
              }
              return -1;
            }
            main() {
              print(first([1, 2, 3]));
              print(first([]));
            }
        """
        ),
        "2\n-1\n",
        None,
        id="return-from-loop",
    ),
    pytest.param(
        dedent(
            """\
            noop() {}
            early() {
              return;
              print("unreachable");
            }
            main() {
              print(noop());
              print(early());
            }
        """
        ),
        "null\nnull\n",
        None,
        id="implicit-and-bare-return",
    ),
    pytest.param(
        dedent(
            """\
            void greet(String name) {
              print("hi " + name);
            }
            int twice(int x) => x * 2;
            main() {
              greet("bob");
              print(twice(4));
            }
        """
        ),
        "hi bob\n8\n",
        None,
        id="typed-declarations",
    ),
    pytest.param(
        "main() { break; }",
        None,
        DartiSyntaxError,
        id="break-outside-loop",
    ),
    pytest.param(
        "main() { while (true) { var f = () { continue; }; } }",
        None,
        DartiSyntaxError,
        id="continue-inside-closure-in-loop",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              ;
              {}
              print("ok");
            }
        """
        ),
        "ok\n",
        None,
        id="empty-statements",
    ),
]


@pytest.mark.parametrize("source, expected_output, expected_exc", SCENARIOS)
def test_control_flow(source: str, expected_output, expected_exc) -> None:
    run_output_case(source, expected_output, expected_exc)
