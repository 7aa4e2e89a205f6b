from __future__ import annotations

import functools
import math
import random as _random
import re
import sys
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, TextIO, Union

from .runtime import (
    call_value,
    define_global,
    from_host,
    register_getter,
    register_global,
    register_method,
    register_setter,
)
from .types import (
    NULL,
    DtBool,
    DtDouble,
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
    TypeMismatchError,
    is_callable_value,
    is_number,
)
from .utils import dart_equals, number_value, stringify, type_name

# Python-side failures; the host boundary reports them as HostDelegationError.

class FormatException(ValueError):
    pass

class RangeError(IndexError):
    pass

class StateError(RuntimeError):
    pass

# ---------------- argument helpers ----------------

def _int_arg(method: str, value: DtValue) -> int:
    if isinstance(value, DtInt):
        return value.value

    raise TypeMismatchError(f"{method} expects an int argument; got {type_name(value)}")

def _num_arg(method: str, value: DtValue) -> Union[int, float]:
    if is_number(value):
        return value.value

    raise TypeMismatchError(f"{method} expects a num argument; got {type_name(value)}")

def _str_arg(method: str, value: DtValue) -> str:
    if isinstance(value, DtString):
        return value.value

    raise TypeMismatchError(f"{method} expects a String argument; got {type_name(value)}")

def _fn_arg(method: str, value: DtValue) -> DtValue:
    if is_callable_value(value):
        return value

    raise TypeMismatchError(f"{method} expects a function argument; got {type_name(value)}")

def _bool_result(method: str, value: DtValue) -> bool:
    if isinstance(value, DtBool):
        return value.value

    raise TypeMismatchError(f"{method} callback must return a bool; got {type_name(value)}")

def _items(value: DtValue) -> List[DtValue]:
    match value:
        case DtList(items) | DtIterable(items):
            return items
        case DtSet(members):
            return list(members)

    raise TypeMismatchError(f"{type_name(value)} is not iterable")

def _check_index(items: List[DtValue], index: int) -> int:
    if not 0 <= index < len(items):
        if not items:
            raise RangeError(f"Invalid value: Valid value range is empty: {index}")
        raise RangeError(f"Invalid value: Not in inclusive range 0..{len(items) - 1}: {index}")
    return index

def _check_range(length: int, start: int, end: int) -> None:
    if not 0 <= start <= length:
        raise RangeError(f"Invalid value: Not in inclusive range 0..{length}: {start}")
    if not start <= end <= length:
        raise RangeError(f"Invalid value: Not in inclusive range {start}..{length}: {end}")

# ---------------- print / globals ----------------

def make_print(out: Optional[TextIO] = None) -> DtNativeFunction:
    """`print` writing to *out*, or to whatever sys.stdout is at call time."""
    def _print(args: List[DtValue]) -> DtValue:
        stream = out if out is not None else sys.stdout
        stream.write(stringify(args[0]) + "\n")
        return NULL

    return DtNativeFunction(name="print", fn=_print, arity=1)

_PRIMITIVES = (DtNull, DtBool, DtInt, DtDouble, DtString, DtHostType)

@register_global("identical", arity=2)
def _identical(args: List[DtValue]) -> DtValue:
    lhs, rhs = args
    if isinstance(lhs, _PRIMITIVES):
        return DtBool(type(lhs) is type(rhs) and dart_equals(lhs, rhs))
    return DtBool(dart_equals(lhs, rhs))

for _type_name in ("int", "double", "num", "bool", "String", "List", "Map", "Set"):
    define_global(_type_name, DtHostType(_type_name))

# ---------------- int / double / num statics ----------------

_INT_RE = re.compile(r"([+-]?)(0[xX][0-9a-fA-F]+|\d+)")
_DOUBLE_RE = re.compile(r"[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|Infinity|NaN)")

def _parse_int(text: str) -> Optional[int]:
    match = _INT_RE.fullmatch(text.strip())
    if match is None:
        return None

    sign, digits = match.groups()
    value = int(digits, 16) if digits[:2] in ("0x", "0X") else int(digits)
    return -value if sign == "-" else value

def _parse_double(text: str) -> Optional[float]:
    stripped = text.strip()
    if _DOUBLE_RE.fullmatch(stripped) is None:
        return None
    return float(stripped.replace("Infinity", "inf"))

@register_method("int", "parse", arity=1)
def _int_parse(_recv: DtHostType, args: List[DtValue]) -> DtValue:
    text = _str_arg("int.parse", args[0])
    value = _parse_int(text)

    if value is None:
        raise FormatException(f"Invalid radix-10 number: {text}")

    return DtInt(value)

@register_method("int", "tryParse", arity=1)
def _int_try_parse(_recv: DtHostType, args: List[DtValue]) -> DtValue:
    value = _parse_int(_str_arg("int.tryParse", args[0]))
    return NULL if value is None else DtInt(value)

@register_method(("double", "num"), "parse", arity=1)
def _double_parse(recv: DtHostType, args: List[DtValue]) -> DtValue:
    text = _str_arg(f"{recv.name}.parse", args[0])

    if recv.name == "num":
        as_int = _parse_int(text)
        if as_int is not None:
            return DtInt(as_int)

    value = _parse_double(text)
    if value is None:
        raise FormatException(f"Invalid double: {text}")

    return DtDouble(value)

@register_method(("double", "num"), "tryParse", arity=1)
def _double_try_parse(recv: DtHostType, args: List[DtValue]) -> DtValue:
    text = _str_arg(f"{recv.name}.tryParse", args[0])

    if recv.name == "num":
        as_int = _parse_int(text)
        if as_int is not None:
            return DtInt(as_int)

    value = _parse_double(text)
    return NULL if value is None else DtDouble(value)

@register_getter("double", "infinity")
def _double_infinity(_recv: DtHostType) -> DtValue:
    return DtDouble(math.inf)

@register_getter("double", "negativeInfinity")
def _double_negative_infinity(_recv: DtHostType) -> DtValue:
    return DtDouble(-math.inf)

@register_getter("double", "nan")
def _double_nan(_recv: DtHostType) -> DtValue:
    return DtDouble(math.nan)

@register_getter("double", "maxFinite")
def _double_max_finite(_recv: DtHostType) -> DtValue:
    return DtDouble(sys.float_info.max)

@register_method("String", "fromCharCode", arity=1)
def _string_from_char_code(_recv: DtHostType, args: List[DtValue]) -> DtValue:
    return DtString(chr(_int_arg("String.fromCharCode", args[0])))

@register_method("List", "filled", arity=2)
def _list_filled(_recv: DtHostType, args: List[DtValue]) -> DtValue:
    count = _int_arg("List.filled", args[0])
    if count < 0:
        raise RangeError(f"Invalid value: Must be non-negative: {count}")
    return DtList([args[1]] * count)

@register_method("List", "generate", arity=2)
def _list_generate(_recv: DtHostType, args: List[DtValue]) -> DtValue:
    count = _int_arg("List.generate", args[0])
    fn = _fn_arg("List.generate", args[1])
    return DtList([call_value(fn, [DtInt(i)]) for i in range(count)])

@register_method(("List", "Set"), "from", arity=1)
def _collection_from(recv: DtHostType, args: List[DtValue]) -> DtValue:
    items = list(_items(args[0]))
    if recv.name == "Set":
        return DtSet(dict.fromkeys(items))
    return DtList(items)

# ---------------- String ----------------

@register_getter(DtString, "length")
def _string_length(recv: DtString) -> DtValue:
    return DtInt(len(recv.value))

@register_getter(DtString, "isEmpty")
def _string_is_empty(recv: DtString) -> DtValue:
    return DtBool(not recv.value)

@register_getter(DtString, "isNotEmpty")
def _string_is_not_empty(recv: DtString) -> DtValue:
    return DtBool(bool(recv.value))

@register_getter(DtString, "codeUnits")
def _string_code_units(recv: DtString) -> DtValue:
    return DtList([DtInt(ord(c)) for c in recv.value])

@register_method(DtString, "substring", arity=(1, 2))
def _string_substring(recv: DtString, args: List[DtValue]) -> DtValue:
    text = recv.value
    start = _int_arg("substring", args[0])
    end = _int_arg("substring", args[1]) if len(args) > 1 and not isinstance(args[1], DtNull) else len(text)
    _check_range(len(text), start, end)
    return DtString(text[start:end])

@register_method(DtString, "toUpperCase", arity=0)
def _string_upper(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtString(recv.value.upper())

@register_method(DtString, "toLowerCase", arity=0)
def _string_lower(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtString(recv.value.lower())

@register_method(DtString, "trim", arity=0)
def _string_trim(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtString(recv.value.strip())

@register_method(DtString, "trimLeft", arity=0)
def _string_trim_left(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtString(recv.value.lstrip())

@register_method(DtString, "trimRight", arity=0)
def _string_trim_right(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtString(recv.value.rstrip())

@register_method(DtString, "contains", arity=1)
def _string_contains(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtBool(_str_arg("contains", args[0]) in recv.value)

@register_method(DtString, "startsWith", arity=1)
def _string_starts_with(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtBool(recv.value.startswith(_str_arg("startsWith", args[0])))

@register_method(DtString, "endsWith", arity=1)
def _string_ends_with(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtBool(recv.value.endswith(_str_arg("endsWith", args[0])))

@register_method(DtString, "indexOf", arity=1)
def _string_index_of(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtInt(recv.value.find(_str_arg("indexOf", args[0])))

@register_method(DtString, "lastIndexOf", arity=1)
def _string_last_index_of(recv: DtString, args: List[DtValue]) -> DtValue:
    return DtInt(recv.value.rfind(_str_arg("lastIndexOf", args[0])))

@register_method(DtString, "split", arity=1)
def _string_split(recv: DtString, args: List[DtValue]) -> DtValue:
    sep = _str_arg("split", args[0])
    pieces = list(recv.value) if sep == "" else recv.value.split(sep)
    return DtList([DtString(p) for p in pieces])

@register_method(DtString, "replaceAll", arity=2)
def _string_replace_all(recv: DtString, args: List[DtValue]) -> DtValue:
    old = _str_arg("replaceAll", args[0])
    new = _str_arg("replaceAll", args[1])
    return DtString(recv.value.replace(old, new))

def _pad_args(method: str, args: List[DtValue]) -> tuple[int, str]:
    width = _int_arg(method, args[0])
    padding = _str_arg(method, args[1]) if len(args) > 1 else " "
    return width, padding

@register_method(DtString, "padLeft", arity=(1, 2))
def _string_pad_left(recv: DtString, args: List[DtValue]) -> DtValue:
    width, padding = _pad_args("padLeft", args)
    missing = width - len(recv.value)
    return DtString(padding * max(missing, 0) + recv.value)

@register_method(DtString, "padRight", arity=(1, 2))
def _string_pad_right(recv: DtString, args: List[DtValue]) -> DtValue:
    width, padding = _pad_args("padRight", args)
    missing = width - len(recv.value)
    return DtString(recv.value + padding * max(missing, 0))

@register_method(DtString, "codeUnitAt", arity=1)
def _string_code_unit_at(recv: DtString, args: List[DtValue]) -> DtValue:
    chars = list(recv.value)
    index = _check_index(chars, _int_arg("codeUnitAt", args[0]))
    return DtInt(ord(chars[index]))

@register_method(DtString, "[]", arity=1)
def _string_index(recv: DtString, args: List[DtValue]) -> DtValue:
    chars = list(recv.value)
    return DtString(chars[_check_index(chars, _int_arg("[]", args[0]))])

@register_method(DtString, "compareTo", arity=1)
def _string_compare_to(recv: DtString, args: List[DtValue]) -> DtValue:
    other = _str_arg("compareTo", args[0])
    return DtInt((recv.value > other) - (recv.value < other))

# ---------------- num ----------------

_NUMBERS = (DtInt, DtDouble)

def _to_int(value: Union[int, float]) -> int:
    if isinstance(value, int):
        return value
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"Unsupported operation: {stringify(DtDouble(value))}")
    return math.trunc(value)

def _round_half_away(value: float) -> int:
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"Unsupported operation: {stringify(DtDouble(value))}")
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))

@register_getter(DtInt, "isEven")
def _int_is_even(recv: DtInt) -> DtValue:
    return DtBool(recv.value % 2 == 0)

@register_getter(DtInt, "isOdd")
def _int_is_odd(recv: DtInt) -> DtValue:
    return DtBool(recv.value % 2 != 0)

@register_getter(_NUMBERS, "isNegative")
def _num_is_negative(recv: DtValue) -> DtValue:
    value = recv.value
    return DtBool(value < 0 or (isinstance(value, float) and math.copysign(1.0, value) < 0 and value == 0))

@register_getter(_NUMBERS, "isNaN")
def _num_is_nan(recv: DtValue) -> DtValue:
    return DtBool(isinstance(recv.value, float) and math.isnan(recv.value))

@register_getter(_NUMBERS, "isInfinite")
def _num_is_infinite(recv: DtValue) -> DtValue:
    return DtBool(isinstance(recv.value, float) and math.isinf(recv.value))

@register_getter(_NUMBERS, "sign")
def _num_sign(recv: DtValue) -> DtValue:
    value = recv.value
    if isinstance(value, float) and (math.isnan(value) or value == 0):
        return DtDouble(value)
    return number_value(type(value)((value > 0) - (value < 0)))

@register_method(_NUMBERS, "abs", arity=0)
def _num_abs(recv: DtValue, args: List[DtValue]) -> DtValue:
    return number_value(abs(recv.value))

@register_method(_NUMBERS, "toInt", arity=0)
def _num_to_int(recv: DtValue, args: List[DtValue]) -> DtValue:
    return DtInt(_to_int(recv.value))

@register_method(_NUMBERS, "toDouble", arity=0)
def _num_to_double(recv: DtValue, args: List[DtValue]) -> DtValue:
    return DtDouble(float(recv.value))

@register_method(_NUMBERS, "round", arity=0)
def _num_round(recv: DtValue, args: List[DtValue]) -> DtValue:
    if isinstance(recv, DtInt):
        return recv
    return DtInt(_round_half_away(recv.value))

@register_method(_NUMBERS, "floor", arity=0)
def _num_floor(recv: DtValue, args: List[DtValue]) -> DtValue:
    _to_int(recv.value)
    return DtInt(math.floor(recv.value))

@register_method(_NUMBERS, "ceil", arity=0)
def _num_ceil(recv: DtValue, args: List[DtValue]) -> DtValue:
    _to_int(recv.value)
    return DtInt(math.ceil(recv.value))

@register_method(_NUMBERS, "truncate", arity=0)
def _num_truncate(recv: DtValue, args: List[DtValue]) -> DtValue:
    return DtInt(_to_int(recv.value))

@register_method(_NUMBERS, "toStringAsFixed", arity=1)
def _num_to_string_as_fixed(recv: DtValue, args: List[DtValue]) -> DtValue:
    digits = _int_arg("toStringAsFixed", args[0])
    if not 0 <= digits <= 20:
        raise RangeError(f"Invalid value: Not in inclusive range 0..20: {digits}")

    value = float(recv.value)
    if math.isnan(value) or math.isinf(value):
        return DtString(stringify(DtDouble(value)))

    quantum = Decimal(1).scaleb(-digits)
    return DtString(str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)))

@register_method(_NUMBERS, "compareTo", arity=1)
def _num_compare_to(recv: DtValue, args: List[DtValue]) -> DtValue:
    other = _num_arg("compareTo", args[0])
    return DtInt((recv.value > other) - (recv.value < other))

@register_method(_NUMBERS, "clamp", arity=2)
def _num_clamp(recv: DtValue, args: List[DtValue]) -> DtValue:
    low = _num_arg("clamp", args[0])
    high = _num_arg("clamp", args[1])
    if low > high:
        raise ValueError(f"Invalid argument(s): {high} is less than {low}")
    return number_value(min(max(recv.value, low), high))

@register_method(_NUMBERS, "remainder", arity=1)
def _num_remainder(recv: DtValue, args: List[DtValue]) -> DtValue:
    from .eval.expr import apply_binary_operator  # local import to avoid cycle

    _num_arg("remainder", args[0])
    return apply_binary_operator("%", recv, args[0])

# ---------------- Iterable (List, Set, lazy iterables) ----------------

_ITERABLES = (DtList, DtSet, DtIterable)

@register_getter(_ITERABLES, "length")
def _iterable_length(recv: DtValue) -> DtValue:
    return DtInt(len(_items(recv)))

@register_getter(_ITERABLES, "isEmpty")
def _iterable_is_empty(recv: DtValue) -> DtValue:
    return DtBool(not _items(recv))

@register_getter(_ITERABLES, "isNotEmpty")
def _iterable_is_not_empty(recv: DtValue) -> DtValue:
    return DtBool(bool(_items(recv)))

@register_getter(_ITERABLES, "first")
def _iterable_first(recv: DtValue) -> DtValue:
    items = _items(recv)
    if not items:
        raise StateError("No element")
    return items[0]

@register_getter(_ITERABLES, "last")
def _iterable_last(recv: DtValue) -> DtValue:
    items = _items(recv)
    if not items:
        raise StateError("No element")
    return items[-1]

@register_method(_ITERABLES, "contains", arity=1)
def _iterable_contains(recv: DtValue, args: List[DtValue]) -> DtValue:
    return DtBool(any(dart_equals(item, args[0]) for item in _items(recv)))

@register_method(_ITERABLES, "elementAt", arity=1)
def _iterable_element_at(recv: DtValue, args: List[DtValue]) -> DtValue:
    items = _items(recv)
    return items[_check_index(items, _int_arg("elementAt", args[0]))]

@register_method(_ITERABLES, "join", arity=(0, 1))
def _iterable_join(recv: DtValue, args: List[DtValue]) -> DtValue:
    sep = _str_arg("join", args[0]) if args else ""
    return DtString(sep.join(stringify(item) for item in _items(recv)))

@register_method(_ITERABLES, "map", arity=1)
def _iterable_map(recv: DtValue, args: List[DtValue]) -> DtValue:
    fn = _fn_arg("map", args[0])
    return DtIterable([call_value(fn, [item]) for item in _items(recv)])

@register_method(_ITERABLES, "where", arity=1)
def _iterable_where(recv: DtValue, args: List[DtValue]) -> DtValue:
    fn = _fn_arg("where", args[0])
    return DtIterable([item for item in _items(recv) if _bool_result("where", call_value(fn, [item]))])

@register_method(_ITERABLES, "forEach", arity=1)
def _iterable_for_each(recv: DtValue, args: List[DtValue]) -> DtValue:
    fn = _fn_arg("forEach", args[0])
    for item in list(_items(recv)):
        call_value(fn, [item])
    return NULL

@register_method(_ITERABLES, "any", arity=1)
def _iterable_any(recv: DtValue, args: List[DtValue]) -> DtValue:
    fn = _fn_arg("any", args[0])
    return DtBool(any(_bool_result("any", call_value(fn, [item])) for item in _items(recv)))

@register_method(_ITERABLES, "every", arity=1)
def _iterable_every(recv: DtValue, args: List[DtValue]) -> DtValue:
    fn = _fn_arg("every", args[0])
    return DtBool(all(_bool_result("every", call_value(fn, [item])) for item in _items(recv)))

@register_method(_ITERABLES, "fold", arity=2)
def _iterable_fold(recv: DtValue, args: List[DtValue]) -> DtValue:
    acc = args[0]
    fn = _fn_arg("fold", args[1])
    for item in _items(recv):
        acc = call_value(fn, [acc, item])
    return acc

@register_method(_ITERABLES, "reduce", arity=1)
def _iterable_reduce(recv: DtValue, args: List[DtValue]) -> DtValue:
    items = _items(recv)
    if not items:
        raise StateError("No element")
    fn = _fn_arg("reduce", args[0])
    acc = items[0]
    for item in items[1:]:
        acc = call_value(fn, [acc, item])
    return acc

@register_method(_ITERABLES, "skip", arity=1)
def _iterable_skip(recv: DtValue, args: List[DtValue]) -> DtValue:
    return DtIterable(_items(recv)[max(_int_arg("skip", args[0]), 0):])

@register_method(_ITERABLES, "take", arity=1)
def _iterable_take(recv: DtValue, args: List[DtValue]) -> DtValue:
    return DtIterable(_items(recv)[:max(_int_arg("take", args[0]), 0)])

@register_method(_ITERABLES, "toList", arity=0)
def _iterable_to_list(recv: DtValue, args: List[DtValue]) -> DtValue:
    return DtList(list(_items(recv)))

@register_method(_ITERABLES, "toSet", arity=0)
def _iterable_to_set(recv: DtValue, args: List[DtValue]) -> DtValue:
    return DtSet(dict.fromkeys(_items(recv)))

# ---------------- List ----------------

@register_getter(DtList, "reversed")
def _list_reversed(recv: DtList) -> DtValue:
    return DtIterable(recv.items[::-1])

@register_method(DtList, "[]", arity=1)
def _list_index(recv: DtList, args: List[DtValue]) -> DtValue:
    return recv.items[_check_index(recv.items, _int_arg("[]", args[0]))]

@register_method(DtList, "[]=", arity=2)
def _list_index_set(recv: DtList, args: List[DtValue]) -> DtValue:
    recv.items[_check_index(recv.items, _int_arg("[]=", args[0]))] = args[1]
    return args[1]

@register_method(DtList, "add", arity=1)
def _list_add(recv: DtList, args: List[DtValue]) -> DtValue:
    recv.items.append(args[0])
    return NULL

@register_method(DtList, "addAll", arity=1)
def _list_add_all(recv: DtList, args: List[DtValue]) -> DtValue:
    recv.items.extend(list(_items(args[0])))
    return NULL

@register_method(DtList, "insert", arity=2)
def _list_insert(recv: DtList, args: List[DtValue]) -> DtValue:
    index = _int_arg("insert", args[0])
    _check_range(len(recv.items), index, index)
    recv.items.insert(index, args[1])
    return NULL

@register_method(DtList, "remove", arity=1)
def _list_remove(recv: DtList, args: List[DtValue]) -> DtValue:
    for i, item in enumerate(recv.items):
        if dart_equals(item, args[0]):
            del recv.items[i]
            return DtBool(True)
    return DtBool(False)

@register_method(DtList, "removeAt", arity=1)
def _list_remove_at(recv: DtList, args: List[DtValue]) -> DtValue:
    return recv.items.pop(_check_index(recv.items, _int_arg("removeAt", args[0])))

@register_method(DtList, "removeLast", arity=0)
def _list_remove_last(recv: DtList, args: List[DtValue]) -> DtValue:
    if not recv.items:
        raise StateError("No element")
    return recv.items.pop()

@register_method((DtList, DtMap, DtSet), "clear", arity=0)
def _collection_clear(recv: DtValue, args: List[DtValue]) -> DtValue:
    match recv:
        case DtList(items):
            items.clear()
        case DtMap(entries):
            entries.clear()
        case DtSet(members):
            members.clear()
    return NULL

@register_method(DtList, "indexOf", arity=1)
def _list_index_of(recv: DtList, args: List[DtValue]) -> DtValue:
    for i, item in enumerate(recv.items):
        if dart_equals(item, args[0]):
            return DtInt(i)
    return DtInt(-1)

@register_method(DtList, "sublist", arity=(1, 2))
def _list_sublist(recv: DtList, args: List[DtValue]) -> DtValue:
    start = _int_arg("sublist", args[0])
    end = _int_arg("sublist", args[1]) if len(args) > 1 and not isinstance(args[1], DtNull) else len(recv.items)
    _check_range(len(recv.items), start, end)
    return DtList(recv.items[start:end])

def _default_compare(a: DtValue, b: DtValue) -> int:
    if is_number(a) and is_number(b):
        return (a.value > b.value) - (a.value < b.value)
    if isinstance(a, DtString) and isinstance(b, DtString):
        return (a.value > b.value) - (a.value < b.value)
    raise TypeMismatchError(f"Cannot compare {type_name(a)} with {type_name(b)}")

@register_method(DtList, "sort", arity=(0, 1))
def _list_sort(recv: DtList, args: List[DtValue]) -> DtValue:
    if args and not isinstance(args[0], DtNull):
        fn = _fn_arg("sort", args[0])

        def compare(a: DtValue, b: DtValue) -> int:
            result = call_value(fn, [a, b])
            return _int_arg("sort comparator result", result)
    else:
        compare = _default_compare

    recv.items.sort(key=functools.cmp_to_key(compare))
    return NULL

# ---------------- Set ----------------

@register_method(DtSet, "add", arity=1)
def _set_add(recv: DtSet, args: List[DtValue]) -> DtValue:
    if args[0] in recv.members:
        return DtBool(False)
    recv.members[args[0]] = None
    return DtBool(True)

@register_method(DtSet, "remove", arity=1)
def _set_remove(recv: DtSet, args: List[DtValue]) -> DtValue:
    if args[0] in recv.members:
        del recv.members[args[0]]
        return DtBool(True)
    return DtBool(False)

# ---------------- Map ----------------

@register_getter(DtMap, "length")
def _map_length(recv: DtMap) -> DtValue:
    return DtInt(len(recv.entries))

@register_getter(DtMap, "isEmpty")
def _map_is_empty(recv: DtMap) -> DtValue:
    return DtBool(not recv.entries)

@register_getter(DtMap, "isNotEmpty")
def _map_is_not_empty(recv: DtMap) -> DtValue:
    return DtBool(bool(recv.entries))

@register_getter(DtMap, "keys")
def _map_keys(recv: DtMap) -> DtValue:
    return DtIterable(list(recv.entries.keys()))

@register_getter(DtMap, "values")
def _map_values(recv: DtMap) -> DtValue:
    return DtIterable(list(recv.entries.values()))

@register_method(DtMap, "[]", arity=1)
def _map_index(recv: DtMap, args: List[DtValue]) -> DtValue:
    return recv.entries.get(args[0], NULL)

@register_method(DtMap, "[]=", arity=2)
def _map_index_set(recv: DtMap, args: List[DtValue]) -> DtValue:
    recv.entries[args[0]] = args[1]
    return args[1]

@register_method(DtMap, "containsKey", arity=1)
def _map_contains_key(recv: DtMap, args: List[DtValue]) -> DtValue:
    return DtBool(args[0] in recv.entries)

@register_method(DtMap, "containsValue", arity=1)
def _map_contains_value(recv: DtMap, args: List[DtValue]) -> DtValue:
    return DtBool(any(dart_equals(v, args[0]) for v in recv.entries.values()))

@register_method(DtMap, "remove", arity=1)
def _map_remove(recv: DtMap, args: List[DtValue]) -> DtValue:
    return recv.entries.pop(args[0], NULL)

@register_method(DtMap, "putIfAbsent", arity=2)
def _map_put_if_absent(recv: DtMap, args: List[DtValue]) -> DtValue:
    key = args[0]
    if key not in recv.entries:
        recv.entries[key] = call_value(_fn_arg("putIfAbsent", args[1]), [])
    return recv.entries[key]

@register_method(DtMap, "addAll", arity=1)
def _map_add_all(recv: DtMap, args: List[DtValue]) -> DtValue:
    other = args[0]
    if not isinstance(other, DtMap):
        raise TypeMismatchError(f"addAll expects a Map argument; got {type_name(other)}")
    recv.entries.update(other.entries)
    return NULL

@register_method(DtMap, "forEach", arity=1)
def _map_for_each(recv: DtMap, args: List[DtValue]) -> DtValue:
    fn = _fn_arg("forEach", args[0])
    for key, value in list(recv.entries.items()):
        call_value(fn, [key, value])
    return NULL

# ---------------- Console I/O host objects ----------------

class Random:
    """`dart:math` Random, reached from programs through reflection."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = _random.Random(seed)

    def nextInt(self, max: int) -> int:
        if max <= 0:
            raise RangeError(f"max must be in range 0 < max ≤ 2^32, was {max}")
        return self._rng.randrange(max)

    def nextDouble(self) -> float:
        return self._rng.random()

    def nextBool(self) -> bool:
        return self._rng.random() < 0.5

    def __str__(self) -> str:
        return "Instance of 'Random'"


class Stdin:
    """`dart:io` stdin; reads from the given stream or the live sys.stdin."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def readLineSync(self) -> Optional[str]:
        stream = self._stream if self._stream is not None else sys.stdin
        line = stream.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    def __str__(self) -> str:
        return "Instance of 'Stdin'"


def io_globals(stdin: Optional[TextIO] = None) -> Dict[str, DtValue]:
    """Bindings for `Random` and `stdin`, added by the CLI and embedders."""
    return {
        "Random": from_host(Random),
        "stdin": DtHostObject(Stdin(stdin)),
    }
