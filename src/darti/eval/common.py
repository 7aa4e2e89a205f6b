from __future__ import annotations

from typing import Any, Callable, Iterator

from ..environment import Environment
from ..runtime import from_host
from ..types import (
    Completion,
    DtBool,
    DtHostObject,
    DtIterable,
    DtList,
    DtNumber,
    DtSet,
    DtValue,
    TypeMismatchError,
    is_number,
)
from ..utils import type_name

EvalFunc = Callable[[Any, Environment], DtValue]
ExecFunc = Callable[[Any, Environment], Completion]

def require_bool(value: DtValue, context: str) -> bool:
    if isinstance(value, DtBool):
        return value.value

    raise TypeMismatchError(f"{context} must be a bool; got {type_name(value)}")

def require_number(value: DtValue, context: str) -> DtNumber:
    if is_number(value):
        return value

    raise TypeMismatchError(f"{context} must be a num; got {type_name(value)}")

def iterate_value(value: DtValue) -> Iterator[DtValue]:
    """Yield the elements a for-in loop or spread walks over."""
    match value:
        case DtList(items) | DtIterable(items):
            # snapshot so the body may mutate the collection
            yield from list(items)
            return
        case DtSet(members):
            yield from list(members)
            return
        case DtHostObject(obj) if hasattr(obj, "__iter__"):
            for item in obj:
                yield from_host(item)
            return

    raise TypeMismatchError(f"{type_name(value)} is not iterable")
