from __future__ import annotations

import math
import os as _os
from decimal import Decimal
from typing import Optional, Set, Union

from .types import (
    DartiRuntimeError,
    DtBool,
    DtDouble,
    DtFunction,
    DtHostObject,
    DtHostType,
    DtInt,
    DtIterable,
    DtList,
    DtMap,
    DtNativeFunction,
    DtNull,
    DtSet,
    DtString,
    DtValue,
)


def format_double(value: float) -> str:
    """Render a double the way Dart's `double.toString` does."""
    if math.isnan(value):
        return "NaN"

    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    if value == 0:
        return "-0.0" if math.copysign(1.0, value) < 0 else "0.0"

    shortest = repr(value)
    magnitude = abs(value)

    if 1e-6 <= magnitude < 1e21:
        text = format(Decimal(shortest), "f")
        if "." not in text:
            text += ".0"
        return text

    # repr() always uses exponent form outside the positional range
    mantissa, _, exponent = shortest.partition("e")
    if mantissa.endswith(".0"):
        mantissa = mantissa[:-2]
    exp = int(exponent)
    sign = "+" if exp >= 0 else "-"
    return f"{mantissa}e{sign}{abs(exp)}"


def stringify(value: DtValue, _active: Optional[Set[int]] = None) -> str:
    """Convert a value to text following Dart's `toString` conventions."""
    if isinstance(value, DtString):
        return value.value

    if isinstance(value, DtNull):
        return "null"

    if isinstance(value, DtBool):
        return "true" if value.value else "false"

    if isinstance(value, DtInt):
        return str(value.value)

    if isinstance(value, DtDouble):
        return format_double(value.value)

    if isinstance(value, (DtList, DtMap, DtSet, DtIterable)):
        active = _active if _active is not None else set()
        marker = id(value)

        if marker in active:
            return "{...}" if isinstance(value, (DtMap, DtSet)) else "[...]"

        active.add(marker)
        try:
            match value:
                case DtList(items):
                    return "[" + ", ".join(stringify(x, active) for x in items) + "]"
                case DtIterable(items):
                    return "(" + ", ".join(stringify(x, active) for x in items) + ")"
                case DtSet(members):
                    return "{" + ", ".join(stringify(x, active) for x in members) + "}"
                case DtMap(entries):
                    pairs = (f"{stringify(k, active)}: {stringify(v, active)}" for k, v in entries.items())
                    return "{" + ", ".join(pairs) + "}"
        finally:
            active.discard(marker)

    if isinstance(value, DtFunction):
        suffix = f" from Function '{value.name}'" if value.name else ""
        return f"Closure: ({', '.join(value.params)}) => dynamic{suffix}"

    if isinstance(value, DtNativeFunction):
        return f"Closure: {value.name}"

    if isinstance(value, DtHostType):
        return value.name

    if isinstance(value, DtHostObject):
        obj = value.obj
        if isinstance(obj, DartiRuntimeError):
            return obj.message
        if type(obj).__str__ is object.__str__:
            return f"Instance of '{type(obj).__name__}'"
        return str(obj)

    return str(value)


def type_name(value: DtValue) -> str:
    """Dart-facing name of a value's runtime type, used in error messages."""
    match value:
        case DtNull():
            return "Null"
        case DtBool():
            return "bool"
        case DtInt():
            return "int"
        case DtDouble():
            return "double"
        case DtString():
            return "String"
        case DtList():
            return "List"
        case DtMap():
            return "Map"
        case DtSet():
            return "Set"
        case DtIterable():
            return "Iterable"
        case DtFunction() | DtNativeFunction():
            return "Function"
        case DtHostType():
            return "Type"
        case DtHostObject(obj):
            return type(obj).__name__
        case _:
            return type(value).__name__


def number_value(value: Union[int, float]) -> DtValue:
    return DtInt(value) if isinstance(value, int) else DtDouble(value)


def dart_equals(lhs: DtValue, rhs: DtValue) -> bool:
    """`==` semantics: value equality for primitives, identity for the rest."""
    match lhs:
        case DtNull():
            return isinstance(rhs, DtNull)
        case DtBool(a):
            return isinstance(rhs, DtBool) and rhs.value == a
        case DtInt(a) | DtDouble(a):
            return isinstance(rhs, (DtInt, DtDouble)) and rhs.value == a
        case DtString(a):
            return isinstance(rhs, DtString) and rhs.value == a
        case DtHostType(a):
            return isinstance(rhs, DtHostType) and rhs.name == a
        case DtHostObject(obj):
            return isinstance(rhs, DtHostObject) and rhs.obj is obj
        case _:
            return lhs is rhs


def debug_py_trace_enabled() -> bool:
    return bool(_os.getenv("DARTI_DEBUG_PY_TRACE"))
