from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Union

from ..environment import Environment
from ..nodes import (
    ForElement,
    IfElement,
    ListLiteral,
    MapLiteralEntry,
    Node,
    NullAwareElement,
    SetOrMapLiteral,
    SpreadElement,
    StringInterpolation,
)
from ..types import (
    DtList,
    DtMap,
    DtNull,
    DtSet,
    DtString,
    DtValue,
    TypeMismatchError,
    UnsupportedFeatureError,
)
from ..utils import stringify, type_name
from .common import EvalFunc, iterate_value, require_bool

def eval_string_interpolation(node: StringInterpolation, env: Environment, eval_func: EvalFunc) -> DtValue:
    pieces: List[str] = []

    for part in node.parts:
        if isinstance(part, str):
            pieces.append(part)
        else:
            pieces.append(stringify(eval_func(part, env)))

    return DtString("".join(pieces))

# ---------------- collection staging ----------------

@dataclass
class MapEntry:
    key: DtValue
    value: DtValue

Staged = Union[DtValue, MapEntry]

def stage_elements(elements: List[Node], env: Environment, eval_func: EvalFunc) -> List[Staged]:
    """Expand collection elements left to right into a flat staging list."""
    staged: List[Staged] = []

    for element in elements:
        _stage(element, env, eval_func, staged)

    return staged

def _stage(element: Node, env: Environment, eval_func: EvalFunc, out: List[Staged]) -> None:
    match element:
        case MapLiteralEntry():
            key = eval_func(element.key, env)
            if element.null_aware_key and isinstance(key, DtNull):
                return
            value = eval_func(element.value, env)
            if element.null_aware_value and isinstance(value, DtNull):
                return
            out.append(MapEntry(key, value))

        case SpreadElement():
            source = eval_func(element.expression, env)
            if isinstance(source, DtNull):
                if element.null_aware:
                    return
                raise TypeMismatchError("cannot spread null; use '...?' for a nullable source")
            if isinstance(source, DtMap):
                out.extend(MapEntry(k, v) for k, v in source.entries.items())
                return
            try:
                out.extend(iterate_value(source))
            except TypeMismatchError:
                raise TypeMismatchError(f"cannot spread a {type_name(source)}") from None

        case NullAwareElement():
            value = eval_func(element.expression, env)
            if not isinstance(value, DtNull):
                out.append(value)

        case IfElement():
            if require_bool(eval_func(element.condition, env), "collection if condition"):
                _stage(element.then_element, env, eval_func, out)
            elif element.else_element is not None:
                _stage(element.else_element, env, eval_func, out)

        case ForElement():
            raise UnsupportedFeatureError("collection 'for' elements are not supported")

        case _:
            out.append(eval_func(element, env))

def eval_list_literal(node: ListLiteral, env: Environment, eval_func: EvalFunc) -> DtValue:
    items: List[DtValue] = []

    for entry in stage_elements(node.elements, env, eval_func):
        if isinstance(entry, MapEntry):
            raise TypeMismatchError("map entries are not allowed in a list literal")
        items.append(entry)

    return DtList(items)

def eval_set_or_map_literal(node: SetOrMapLiteral, env: Environment, eval_func: EvalFunc) -> DtValue:
    staged = stage_elements(node.elements, env, eval_func)

    # `{}` is a map unless type arguments say otherwise
    if not staged:
        if len(node.type_arguments) == 1:
            return DtSet({})
        return DtMap({})

    if isinstance(staged[0], MapEntry):
        entries: Dict[DtValue, DtValue] = {}
        for entry in staged:
            if not isinstance(entry, MapEntry):
                raise TypeMismatchError("cannot mix set elements into a map literal")
            entries[entry.key] = entry.value
        return DtMap(entries)

    members: Dict[DtValue, None] = {}
    for entry in staged:
        if isinstance(entry, MapEntry):
            raise TypeMismatchError("cannot mix map entries into a set literal")
        members.setdefault(entry, None)
    return DtSet(members)
