from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple, Union
from typing_extensions import TypeAlias, TypeGuard

if TYPE_CHECKING:
    from .environment import Environment

# ---------- Value Model ----------

@dataclass(frozen=True)
class DtNull:
    def __repr__(self) -> str:
        return "null"

NULL = DtNull()

@dataclass(frozen=True)
class DtBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True, eq=False)
class DtInt:
    value: int

    # ints and doubles share one numeric tower: 2 == 2.0 and both hash alike
    def __eq__(self, other: object) -> bool:
        if isinstance(other, (DtInt, DtDouble)):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return str(self.value)

@dataclass(frozen=True, eq=False)
class DtDouble:
    value: float

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (DtInt, DtDouble)):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        from .utils import format_double
        return format_double(self.value)

@dataclass(frozen=True)
class DtString:
    value: str
    def __repr__(self) -> str:
        return repr(self.value)

@dataclass(eq=False)
class DtList:
    items: List['DtValue']
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.items) + "]"

@dataclass(eq=False)
class DtMap:
    entries: Dict['DtValue', 'DtValue']
    def __repr__(self) -> str:
        return "{" + ", ".join(f"{k!r}: {v!r}" for k, v in self.entries.items()) + "}"

@dataclass(eq=False)
class DtSet:
    # dict keys keep insertion order, values are unused
    members: Dict['DtValue', None]
    def __repr__(self) -> str:
        return "{" + ", ".join(repr(x) for x in self.members) + "}"

@dataclass(eq=False)
class DtIterable:
    """Lazy-looking iterable produced by map/where/keys/values/reversed.

    Items are materialized eagerly; only the rendering differs from a List.
    """
    items: List['DtValue']
    def __repr__(self) -> str:
        return "(" + ", ".join(repr(x) for x in self.items) + ")"

@dataclass(eq=False)
class DtFunction:
    name: Optional[str]
    params: List[str]
    body: Any                 # nodes.FunctionBody
    env: 'Environment'        # closure environment
    def __repr__(self) -> str:
        label = self.name or "<anonymous>"
        return f"<fn {label}({', '.join(self.params)})>"

@dataclass(eq=False)
class DtNativeFunction:
    name: str
    fn: Callable[[List['DtValue']], 'DtValue']
    arity: Optional[Union[int, Tuple[int, int]]] = None  # None accepts any count
    def __repr__(self) -> str:
        return f"<native {self.name}>"

@dataclass(frozen=True)
class DtHostType:
    """A host-provided type namespace such as `int` or `double`."""
    name: str
    def __repr__(self) -> str:
        return self.name

@dataclass(frozen=True, eq=False)
class DtHostObject:
    obj: Any

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DtHostObject):
            return self.obj is other.obj
        return NotImplemented

    def __hash__(self) -> int:
        return id(self.obj)

    def __repr__(self) -> str:
        return f"<host {type(self.obj).__name__}>"

DtValue: TypeAlias = (
    DtNull
    | DtBool
    | DtInt
    | DtDouble
    | DtString
    | DtList
    | DtMap
    | DtSet
    | DtIterable
    | DtFunction
    | DtNativeFunction
    | DtHostType
    | DtHostObject
)

DtNumber: TypeAlias = DtInt | DtDouble

_DT_VALUE_TYPES: Tuple[type, ...] = (
    DtNull,
    DtBool,
    DtInt,
    DtDouble,
    DtString,
    DtList,
    DtMap,
    DtSet,
    DtIterable,
    DtFunction,
    DtNativeFunction,
    DtHostType,
    DtHostObject,
)

def is_dt_value(value: object) -> TypeGuard[DtValue]:
    return isinstance(value, _DT_VALUE_TYPES)

def is_number(value: object) -> TypeGuard[DtNumber]:
    return isinstance(value, (DtInt, DtDouble))

def is_callable_value(value: object) -> bool:
    return isinstance(value, (DtFunction, DtNativeFunction))

# ---------- Statement completions ----------

class CompletionKind(Enum):
    NORMAL = "normal"
    BREAK = "break"
    CONTINUE = "continue"
    RETURN = "return"

@dataclass(frozen=True)
class Completion:
    """Outcome of executing one statement.

    Break/continue/return travel as values; loops and the call boundary
    inspect them instead of catching exceptions.
    """
    kind: CompletionKind
    value: DtValue = NULL

    @property
    def is_abrupt(self) -> bool:
        return self.kind is not CompletionKind.NORMAL

    @staticmethod
    def returning(value: DtValue) -> 'Completion':
        return Completion(CompletionKind.RETURN, value)

NORMAL = Completion(CompletionKind.NORMAL)
BREAK = Completion(CompletionKind.BREAK)
CONTINUE = Completion(CompletionKind.CONTINUE)

# ---------- Exceptions ----------

class DartiRuntimeError(Exception):
    """Base class for every error a running program can raise or catch."""
    line: Optional[int]
    column: Optional[int]

    def __init__(self, message: str):
        super().__init__(message)
        self.line = None
        self.column = None
        self._located = False

    @property
    def message(self) -> str:
        return super().__str__()

    def attach_location(self, line: Optional[int], column: Optional[int]) -> None:
        if self._located or line is None:
            return
        self.line = line
        self.column = column
        self._located = True

    def __str__(self) -> str:
        msg = self.message

        if self.line is None:
            return msg

        if self.column is None:
            return f"{msg} (line {self.line})"

        return f"{msg} (line {self.line}, col {self.column})"

class UnboundNameError(DartiRuntimeError):
    def __init__(self, name: str, message: Optional[str] = None):
        super().__init__(message or f"unbound identifier {name}")
        self.name = name

class MemberNotFoundError(UnboundNameError):
    def __init__(self, receiver: DtValue, name: str):
        from .utils import type_name
        super().__init__(name, f"{type_name(receiver)} has no member '{name}'")
        self.receiver = receiver

class TypeMismatchError(DartiRuntimeError):
    pass

class ArityError(DartiRuntimeError):
    pass

class UnsupportedFeatureError(DartiRuntimeError):
    pass

class HostDelegationError(DartiRuntimeError):
    pass

class IntegerDivisionByZeroError(DartiRuntimeError):
    def __init__(self, message: str = "IntegerDivisionByZeroException"):
        super().__init__(message)

class StackOverflowError(DartiRuntimeError):
    def __init__(self, message: str = "Stack Overflow"):
        super().__init__(message)

class MissingEntryPointError(DartiRuntimeError):
    def __init__(self, message: str = "Missing 'main' function"):
        super().__init__(message)

class ThrownValue(DartiRuntimeError):
    """A value raised by a program's `throw` expression."""
    def __init__(self, value: DtValue):
        from .utils import stringify
        super().__init__(f"Uncaught exception: {stringify(value)}")
        self.value = value

class DartiSyntaxError(Exception):
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        msg = super().__str__()
        if self.line is None:
            return msg
        return f"{msg} (line {self.line}, col {self.column})"

# ---------- Host member registries ----------

HostFn = Callable[..., DtValue]
Arity = Optional[Union[int, Tuple[int, int]]]

@dataclass
class HostMember:
    fn: HostFn
    arity: Arity = None

MemberTable = Dict[str, HostMember]

class Builtins:
    """Registries filled by the decorators in runtime.py (see stdlib.py)."""
    methods: Dict[Any, MemberTable] = {}   # receiver class or host type name -> members
    getters: Dict[Any, MemberTable] = {}
    setters: Dict[Any, MemberTable] = {}
    globals: Dict[str, DtValue] = {}
