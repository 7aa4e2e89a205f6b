from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import UnboundNameError, run_output_case

SCENARIOS = [
    pytest.param(
        dedent(
            """\
            main() {
              var x = 1;
              {
                var x = 2;
                print(x);
              }
              print(x);
            }
        """
        ),
        "2\n1\n",
        None,
        id="block-shadowing",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var x = 1;
              {
                x = 2;
              }
              print(x);
            }
        """
        ),
        "2\n",
        None,
        id="assignment-updates-outer-binding",
    ),
    pytest.param(
        "main() { y = 1; }",
        None,
        UnboundNameError,
        id="assign-undeclared",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              {
                var inner = 1;
              }
              print(inner);
            }
        """
        ),
        None,
        UnboundNameError,
        id="block-binding-not-visible-after",
    ),
    pytest.param(
        dedent(
            """\
            var counter = 0;
            bump() {
              counter++;
            }
            main() {
              bump();
              bump();
              print(counter);
            }
        """
        ),
        "2\n",
        None,
        id="top-level-variable-mutated",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              print(helper());
            }
            helper() => later();
            later() => 42;
        """
        ),
        "42\n",
        None,
        id="forward-references",
    ),
    pytest.param(
        dedent(
            """\
            var x = f();
            f() => 1;
            main() {}
        """
        ),
        None,
        UnboundNameError,
        id="top-level-initializers-run-in-order",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var fs = [];
              for (var i = 0; i < 3; i++) {
                fs.add(() => i);
              }
              print(fs[0]());
              var gs = [];
              for (var x in [1, 2, 3]) {
                gs.add(() => x);
              }
              print(gs[0]());
            }
        """
        ),
        "3\n1\n",
        None,
        id="loop-variable-capture",
    ),
    pytest.param(
        dedent(
            """\
            f(x) {
              x = x + 1;
              return x;
            }
            main() {
              var x = 1;
              print(f(x));
              print(x);
            }
        """
        ),
        "2\n1\n",
        None,
        id="parameters-are-local",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var a = 1, b = a + 1;
              print(b);
              var c;
              print(c);
            }
        """
        ),
        "2\nnull\n",
        None,
        id="declaration-list-and-default-null",
    ),
    pytest.param(
        dedent(
            """\
            var print = 1;
            main() {}
        """
        ),
        "",
        None,
        id="top-level-may-shadow-print",
    ),
]


@pytest.mark.parametrize("source, expected_output, expected_exc", SCENARIOS)
def test_scoping(source: str, expected_output, expected_exc) -> None:
    run_output_case(source, expected_output, expected_exc)
