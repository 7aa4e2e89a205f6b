"""Host bridge, built-in member registries and the function-call boundary."""
from __future__ import annotations

import importlib
import logging
import types as _pytypes
from typing import Any, Callable, Dict, List, Mapping, Optional, TextIO, Tuple, Union
from typing_extensions import Protocol

from .environment import Environment
from .types import (
    NULL,
    Arity,
    ArityError,
    Builtins,
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
    HostDelegationError,
    HostMember,
    MemberNotFoundError,
    MemberTable,
    StackOverflowError,
    TypeMismatchError,
    is_dt_value,
)
from .utils import stringify, type_name

logger = logging.getLogger(__name__)

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load the stdlib module (idempotent) so its register_* hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module(".stdlib", __package__)
    _STDLIB_INITIALIZED = True
    logger.debug(
        "stdlib loaded: %d globals, %d method owners",
        len(Builtins.globals),
        len(Builtins.methods),
    )

# ---------------- Host bridge ----------------

class HostBridge(Protocol):
    """Seam between evaluated programs and host-provided objects and types."""

    def get_member(self, receiver: DtValue, name: str) -> DtValue: ...

    def set_member(self, receiver: DtValue, name: str, value: DtValue) -> DtValue: ...

    def invoke_member(self, receiver: DtValue, name: str, arguments: List[DtValue]) -> DtValue: ...

    def resolve_global(self, name: str) -> Optional[DtValue]: ...

# ---------------- Registration ----------------

Owner = Union[type, str]

def _register(table: Dict[Any, MemberTable], owners: Union[Owner, Tuple[Owner, ...]], name: str, arity: Arity):
    if not isinstance(owners, tuple):
        owners = (owners,)

    def dec(fn: Callable[..., DtValue]):
        for owner in owners:
            table.setdefault(owner, {})[name] = HostMember(fn=fn, arity=arity)
        return fn

    return dec

def register_method(owners: Union[Owner, Tuple[Owner, ...]], name: str, *, arity: Arity = None):
    """Register `fn(receiver, args)`; a str owner names a host type namespace."""
    return _register(Builtins.methods, owners, name, arity)

def register_getter(owners: Union[Owner, Tuple[Owner, ...]], name: str):
    return _register(Builtins.getters, owners, name, None)

def register_setter(owners: Union[Owner, Tuple[Owner, ...]], name: str):
    return _register(Builtins.setters, owners, name, None)

def register_global(name: str, *, arity: Arity = None):
    def dec(fn: Callable[[List[DtValue]], DtValue]):
        Builtins.globals[name] = DtNativeFunction(name=name, fn=fn, arity=arity)
        return fn

    return dec

def define_global(name: str, value: DtValue) -> None:
    Builtins.globals[name] = value

def _find_member(table: Dict[Any, MemberTable], receiver: DtValue, name: str) -> Optional[HostMember]:
    if isinstance(receiver, DtHostType):
        return table.get(receiver.name, {}).get(name)

    for cls in type(receiver).__mro__:
        members = table.get(cls)
        if members is not None and name in members:
            return members[name]

    return None

def check_arity(label: Optional[str], arity: Arity, count: int) -> None:
    if arity is None:
        return

    low, high = (arity, arity) if isinstance(arity, int) else arity
    if low <= count <= high:
        return

    expected = str(low) if low == high else f"{low} to {high}"
    noun = "argument" if high == 1 else "arguments"
    prefix = f"{label}: " if label else ""
    raise ArityError(f"{prefix}expected {expected} {noun} but got {count}")

def delegate(fn: Callable[..., Any], *args: Any) -> Any:
    """Run host code, wrapping foreign failures in HostDelegationError."""
    try:
        return fn(*args)
    except (DartiRuntimeError, RecursionError):
        raise
    except Exception as exc:
        raise HostDelegationError(f"{type(exc).__name__}: {exc}") from exc

# ---------------- Value conversion ----------------

def to_host(value: DtValue) -> Any:
    match value:
        case DtNull():
            return None
        case DtBool(v) | DtInt(v) | DtDouble(v) | DtString(v):
            return v
        case DtList(items) | DtIterable(items):
            return [to_host(x) for x in items]
        case DtSet(members):
            return {to_host(x) for x in members}
        case DtMap(entries):
            return {to_host(k): to_host(v) for k, v in entries.items()}
        case DtHostObject(obj):
            return obj
        case DtFunction() | DtNativeFunction():
            return lambda *args: to_host(call_value(value, [from_host(a) for a in args]))
        case _:
            return value

_PY_CALLABLES = (
    _pytypes.FunctionType,
    _pytypes.BuiltinFunctionType,
    _pytypes.MethodType,
    _pytypes.BuiltinMethodType,
    type,
)

def from_host(obj: Any) -> DtValue:
    if is_dt_value(obj):
        return obj

    if obj is None:
        return NULL

    if isinstance(obj, bool):
        return DtBool(obj)

    if isinstance(obj, int):
        return DtInt(obj)

    if isinstance(obj, float):
        return DtDouble(obj)

    if isinstance(obj, str):
        return DtString(obj)

    if isinstance(obj, (list, tuple)):
        return DtList([from_host(x) for x in obj])

    if isinstance(obj, dict):
        return DtMap({from_host(k): from_host(v) for k, v in obj.items()})

    if isinstance(obj, (set, frozenset)):
        return DtSet(dict.fromkeys(from_host(x) for x in obj))

    if isinstance(obj, _PY_CALLABLES):
        return python_function(getattr(obj, "__name__", "function"), obj)

    return DtHostObject(obj)

def python_function(name: str, fn: Callable[..., Any]) -> DtNativeFunction:
    """Expose a Python callable to programs, converting arguments and result."""
    def invoke(args: List[DtValue]) -> DtValue:
        return from_host(delegate(fn, *[to_host(a) for a in args]))

    return DtNativeFunction(name=name, fn=invoke)

# ---------------- Default bridge ----------------

class BuiltinHost:
    """Registry-backed bridge for built-in values plus reflection for host objects."""

    def __init__(self, extra_globals: Optional[Mapping[str, DtValue]] = None):
        init_stdlib()
        self.globals: Dict[str, DtValue] = dict(Builtins.globals)
        if extra_globals:
            self.globals.update(extra_globals)

    def resolve_global(self, name: str) -> Optional[DtValue]:
        return self.globals.get(name)

    def get_member(self, receiver: DtValue, name: str) -> DtValue:
        if isinstance(receiver, DtHostObject):
            return self._reflect_get(receiver, name)

        getter = _find_member(Builtins.getters, receiver, name)
        if getter is not None:
            return delegate(getter.fn, receiver)

        method = _find_member(Builtins.methods, receiver, name)
        if method is not None:
            return self._tear_off(receiver, name, method)

        raise MemberNotFoundError(receiver, name)

    def set_member(self, receiver: DtValue, name: str, value: DtValue) -> DtValue:
        if isinstance(receiver, DtHostObject):
            if name.startswith("_") or not hasattr(receiver.obj, name):
                raise MemberNotFoundError(receiver, name)
            delegate(setattr, receiver.obj, name, to_host(value))
            return value

        setter = _find_member(Builtins.setters, receiver, name)
        if setter is None:
            raise MemberNotFoundError(receiver, name)

        delegate(setter.fn, receiver, value)
        return value

    def invoke_member(self, receiver: DtValue, name: str, arguments: List[DtValue]) -> DtValue:
        if isinstance(receiver, DtHostObject):
            return self._reflect_invoke(receiver, name, arguments)

        method = _find_member(Builtins.methods, receiver, name)
        if method is not None:
            check_arity(name, method.arity, len(arguments))
            return delegate(method.fn, receiver, arguments)

        if name == "toString" and not arguments:
            return DtString(stringify(receiver))

        getter = _find_member(Builtins.getters, receiver, name)
        if getter is not None:
            return call_value(delegate(getter.fn, receiver), arguments)

        raise MemberNotFoundError(receiver, name)

    def _tear_off(self, receiver: DtValue, name: str, method: HostMember) -> DtNativeFunction:
        def bound(args: List[DtValue]) -> DtValue:
            return method.fn(receiver, args)

        return DtNativeFunction(name=name, fn=bound, arity=method.arity)

    # Host objects are served by reflection over their public attributes.

    def _reflect_get(self, receiver: DtHostObject, name: str) -> DtValue:
        obj = receiver.obj
        if name.startswith("_") or not hasattr(obj, name):
            raise MemberNotFoundError(receiver, name)

        attr = delegate(getattr, obj, name)
        if callable(attr):
            return python_function(name, attr)
        return from_host(attr)

    def _reflect_invoke(self, receiver: DtHostObject, name: str, arguments: List[DtValue]) -> DtValue:
        obj = receiver.obj
        if name.startswith("_") or not hasattr(obj, name):
            if name == "toString" and not arguments:
                return DtString(stringify(receiver))
            raise MemberNotFoundError(receiver, name)

        attr = delegate(getattr, obj, name)
        if not callable(attr):
            return call_value(from_host(attr), arguments)

        return from_host(delegate(attr, *[to_host(a) for a in arguments]))

# ---------------- Calls ----------------

def call_function(fn: DtFunction, arguments: List[DtValue]) -> DtValue:
    from .evaluator import run_function_body  # local import to avoid cycle

    check_arity(fn.name, len(fn.params), len(arguments))
    callee_env = Environment(parent=fn.env, bindings=dict(zip(fn.params, arguments)))

    try:
        return run_function_body(fn.body, callee_env)
    except RecursionError:
        raise StackOverflowError() from None

def call_value(callee: DtValue, arguments: List[DtValue]) -> DtValue:
    if isinstance(callee, DtFunction):
        return call_function(callee, arguments)

    if isinstance(callee, DtNativeFunction):
        check_arity(None, callee.arity, len(arguments))
        return delegate(callee.fn, arguments)

    raise TypeMismatchError(f"'{type_name(callee)}' value {stringify(callee)} is not a function")

# ---------------- Environments ----------------

def global_environment(
    host: Optional[HostBridge] = None,
    out: Optional[TextIO] = None,
    extra_globals: Optional[Mapping[str, DtValue]] = None,
) -> Environment:
    """Fresh root scope holding `print` and any embedder-supplied bindings."""
    init_stdlib()
    from .stdlib import make_print

    bindings: Dict[str, DtValue] = {"print": make_print(out)}
    if extra_globals:
        bindings.update(extra_globals)

    return Environment(bindings=bindings, host=host if host is not None else BuiltinHost())
