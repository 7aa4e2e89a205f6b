from __future__ import annotations

import math

import pytest

from tests.support.harness import DartiRuntimeError, HostDelegationError, eval_expression, run_output_case
from darti.utils import format_double


@pytest.mark.parametrize(
    "value, expected",
    [
        pytest.param(3.0, "3.0", id="whole"),
        pytest.param(0.1 + 0.2, "0.30000000000000004", id="shortest-repr"),
        pytest.param(100.0, "100.0", id="hundred"),
        pytest.param(-0.0, "-0.0", id="negative-zero"),
        pytest.param(1e21, "1e+21", id="exponent-threshold"),
        pytest.param(1.2345678901234568e20, "123456789012345680000.0", id="large-positional"),
        pytest.param(1e-6, "0.000001", id="small-positional"),
        pytest.param(1.5e-7, "1.5e-7", id="small-exponent"),
        pytest.param(math.inf, "Infinity", id="infinity"),
        pytest.param(-math.inf, "-Infinity", id="negative-infinity"),
        pytest.param(math.nan, "NaN", id="nan"),
    ],
)
def test_format_double(value: float, expected: str) -> None:
    assert format_double(value) == expected


EXPRESSIONS = [
    pytest.param("0xFF", "255", id="hex-literal"),
    pytest.param("1e3", "1000.0", id="exponent-literal"),
    pytest.param("int.parse(\"42\") + 1", "43", id="int-parse"),
    pytest.param("int.parse(\" -0x10 \")", "-16", id="int-parse-hex-trimmed"),
    pytest.param("int.tryParse(\"4x\")", "null", id="int-try-parse-failure"),
    pytest.param("double.parse(\"13\")", "13.0", id="double-parse-int-text"),
    pytest.param("double.parse(\"1.5e2\")", "150.0", id="double-parse-exponent"),
    pytest.param("double.tryParse(\"abc\")", "null", id="double-try-parse-failure"),
    pytest.param("num.parse(\"7\")", "7", id="num-parse-int"),
    pytest.param("double.infinity", "Infinity", id="double-infinity"),
    pytest.param("double.nan.isNaN", "true", id="double-nan"),
    pytest.param("3.7.toInt()", "3", id="to-int-truncates"),
    pytest.param("(-3.7).toInt()", "-3", id="to-int-negative"),
    pytest.param("2.5.round()", "3", id="round-half-away"),
    pytest.param("(-2.5).round()", "-3", id="round-half-away-negative"),
    pytest.param("2.4.floor()", "2", id="floor"),
    pytest.param("2.1.ceil()", "3", id="ceil"),
    pytest.param("5.toDouble()", "5.0", id="to-double"),
    pytest.param("(-5).abs()", "5", id="abs"),
    pytest.param("3.14159.toStringAsFixed(2)", "3.14", id="to-string-as-fixed"),
    pytest.param("2.toStringAsFixed(3)", "2.000", id="to-string-as-fixed-int"),
    pytest.param("10.isEven", "true", id="is-even"),
    pytest.param("7.isOdd", "true", id="is-odd"),
    pytest.param("(-2).isNegative", "true", id="is-negative"),
    pytest.param("(-4).sign", "-1", id="sign-int"),
    pytest.param("12.clamp(0, 10)", "10", id="clamp"),
    pytest.param("3.compareTo(5)", "-1", id="compare-to"),
    pytest.param("(-7).remainder(3)", "-1", id="remainder-method"),
    pytest.param("42.toString() + \"!\"", "42!", id="to-string"),
]


@pytest.mark.parametrize("expr, expected", EXPRESSIONS)
def test_number_members(expr: str, expected: str) -> None:
    assert eval_expression(expr) == expected


SCENARIOS = [
    pytest.param("main() { int.parse(\"x\"); }", None, HostDelegationError, id="int-parse-failure"),
    pytest.param("main() { double.parse(\"\"); }", None, HostDelegationError, id="double-parse-empty"),
    pytest.param("main() { print(double.infinity.toInt()); }", None, HostDelegationError, id="infinity-to-int"),
    pytest.param("main() { print(1.0 ~/ 0); }", None, DartiRuntimeError, id="double-trunc-div-by-zero"),
]


@pytest.mark.parametrize("source, expected_output, expected_exc", SCENARIOS)
def test_number_errors(source: str, expected_output, expected_exc) -> None:
    run_output_case(source, expected_output, expected_exc)


def test_int_parse_failure_message() -> None:
    with pytest.raises(HostDelegationError) as exc_info:
        eval_expression("int.parse(\"12a\")")

    assert "FormatException" in str(exc_info.value)
    assert exc_info.value.__cause__ is not None
