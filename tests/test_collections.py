from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    HostDelegationError,
    TypeMismatchError,
    UnsupportedFeatureError,
    eval_expression,
    run_output_case,
)

LITERALS = [
    pytest.param("[1, 2, 3]", "[1, 2, 3]", id="list"),
    pytest.param("[]", "[]", id="empty-list"),
    pytest.param("<int>[1]", "[1]", id="typed-list"),
    pytest.param("{}", "{}", id="empty-braces-is-map"),
    pytest.param("<int>{}", "{}", id="typed-empty-set"),
    pytest.param("{1, 2, 2, 3}", "{1, 2, 3}", id="set-dedupes"),
    pytest.param("{\"a\": 1, \"b\": 2}", "{a: 1, b: 2}", id="map"),
    pytest.param("{1: \"x\", 1.0: \"y\"}", "{1: y}", id="map-numeric-key-tower"),
    pytest.param("[1, ...[2, 3], 4]", "[1, 2, 3, 4]", id="spread"),
    pytest.param("[...?[1], ...?null, 2]", "[1, 2]", id="null-aware-spread"),
    pytest.param("[1, ?null, ?2]", "[1, 2]", id="null-aware-element"),
    pytest.param("{?null, ?\"a\": 2}", "{a: 2}", id="null-aware-map-key"),
    pytest.param("{\"a\": ?null, \"b\": 1}", "{b: 1}", id="null-aware-map-value"),
    pytest.param("[1, if (true) 2 else 3, if (false) 4]", "[1, 2]", id="collection-if"),
    pytest.param("{...{\"a\": 1}, \"b\": 2}", "{a: 1, b: 2}", id="map-spread"),
    pytest.param("{...[1, 2], 2, 3}", "{1, 2, 3}", id="set-spread"),
    pytest.param("const [1, 2]", "[1, 2]", id="const-literal"),
    pytest.param("[1, [2, [3]]]", "[1, [2, [3]]]", id="nested"),
    pytest.param("[1, 2, 3].map((x) => x * 2)", "(2, 4, 6)", id="map-is-lazy-iterable"),
    pytest.param("[1, 2, 3].map((x) => x * 2).toList()", "[2, 4, 6]", id="map-to-list"),
    pytest.param("[1, 2, 3].where((x) => x > 1).length", "2", id="where"),
    pytest.param("[1, 2, 3].fold(0, (a, b) => a + b)", "6", id="fold"),
    pytest.param("[1, 2, 3].reduce((a, b) => a * b)", "6", id="reduce"),
    pytest.param("[1, 2].join(\"-\")", "1-2", id="join"),
    pytest.param("[1, 2, 3].contains(2.0)", "true", id="contains-numeric-equality"),
    pytest.param("[1, 2, 3].any((x) => x > 2)", "true", id="any"),
    pytest.param("[1, 2, 3].every((x) => x > 2)", "false", id="every"),
    pytest.param("[3, 4].first + [3, 4].last", "7", id="first-last"),
    pytest.param("[1, 2, 3].reversed", "(3, 2, 1)", id="reversed"),
    pytest.param("[1, 2, 3, 4].sublist(1, 3)", "[2, 3]", id="sublist"),
    pytest.param("[1, 2, 3].skip(1).toList()", "[2, 3]", id="skip"),
    pytest.param("[1, 1, 2].toSet()", "{1, 2}", id="to-set"),
    pytest.param("List.filled(3, 0)", "[0, 0, 0]", id="list-filled"),
    pytest.param("List.generate(3, (i) => i * i)", "[0, 1, 4]", id="list-generate"),
    pytest.param("{\"a\": 1}.keys", "(a)", id="map-keys"),
    pytest.param("{\"a\": 1}.values.toList()", "[1]", id="map-values"),
    pytest.param("{\"a\": 1}[\"a\"]", "1", id="map-index"),
    pytest.param("{\"a\": 1}[\"z\"]", "null", id="map-index-missing"),
    pytest.param("{\"a\": 1}.containsKey(\"a\")", "true", id="map-contains-key"),
    pytest.param("{1, 2}.length", "2", id="set-length"),
]


@pytest.mark.parametrize("expr, expected", LITERALS)
def test_collection_expression(expr: str, expected: str) -> None:
    assert eval_expression(expr) == expected


SCENARIOS = [
    pytest.param(
        dedent(
            """\
            main() {
              var xs = [1, 2];
              xs.add(3);
              xs[0] = 10;
              xs[1] += 5;
              print(xs);
              print(xs.length);
              print(xs.removeLast());
              print(xs.remove(10));
              print(xs);
            }
        """
        ),
        "[10, 7, 3]\n3\n3\ntrue\n[7]\n",
        None,
        id="list-mutation",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var xs = [3, 1, 2];
              xs.sort();
              print(xs);
              xs.sort((a, b) => b - a);
              print(xs);
              xs.insert(1, 9);
              print(xs);
              print(xs.indexOf(9));
            }
        """
        ),
        "[1, 2, 3]\n[3, 2, 1]\n[3, 9, 2, 1]\n1\n",
        None,
        id="list-sort-insert",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var m = {"a": 1};
              m["b"] = 2;
              m["a"]++;
              print(m);
              print(m.putIfAbsent("c", () => 3));
              print(m.remove("a"));
              m.forEach((k, v) { print("$k=$v"); });
            }
        """
        ),
        "{a: 2, b: 2}\n3\n2\nb=2\nc=3\n",
        None,
        id="map-mutation",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var s = {1, 2};
              print(s.add(2));
              print(s.add(3));
              print(s.remove(1));
              print(s);
            }
        """
        ),
        "false\ntrue\ntrue\n{2, 3}\n",
        None,
        id="set-mutation",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var xs = [];
              xs.add(xs);
              print(xs);
            }
        """
        ),
        "[[...]]\n",
        None,
        id="self-containing-list",
    ),
    pytest.param(
        dedent(
            """\
            main() {
              var evaluated = [];
              var xs = [if (false) evaluated.add(1) else 2];
              print(xs);
              print(evaluated);
            }
        """
        ),
        "[2]\n[]\n",
        None,
        id="collection-if-skips-branch",
    ),
    pytest.param("main() { print([...null]); }", None, TypeMismatchError, id="spread-null"),
    pytest.param("main() { print([...1]); }", None, TypeMismatchError, id="spread-non-iterable"),
    pytest.param("main() { print([\"a\": 1]); }", None, TypeMismatchError, id="map-entry-in-list"),
    pytest.param("main() { print({1, \"a\": 2}); }", None, TypeMismatchError, id="mixed-set-map"),
    pytest.param("main() { print([if (1) 2]); }", None, TypeMismatchError, id="collection-if-requires-bool"),
    pytest.param(
        "main() { print([for (var i in [1]) i]); }",
        None,
        UnsupportedFeatureError,
        id="collection-for",
    ),
    pytest.param("main() { print([1][3]); }", None, HostDelegationError, id="index-out-of-range"),
    pytest.param("main() { print([].first); }", None, HostDelegationError, id="first-of-empty"),
]


@pytest.mark.parametrize("source, expected_output, expected_exc", SCENARIOS)
def test_collection_scenarios(source: str, expected_output, expected_exc) -> None:
    run_output_case(source, expected_output, expected_exc)
