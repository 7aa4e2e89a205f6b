"""darti: a tree-walking evaluator for a small Dart subset."""

import logging

from .environment import Environment
from .evaluator import evaluate, execute
from .parser import parse_expression, parse_source, parse_statements
from .runner import main, parse, run, run_main
from .runtime import BuiltinHost, HostBridge, global_environment
from .types import (
    ArityError,
    Completion,
    CompletionKind,
    DartiRuntimeError,
    DartiSyntaxError,
    HostDelegationError,
    IntegerDivisionByZeroError,
    MemberNotFoundError,
    MissingEntryPointError,
    StackOverflowError,
    ThrownValue,
    TypeMismatchError,
    UnboundNameError,
    UnsupportedFeatureError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ArityError",
    "BuiltinHost",
    "Completion",
    "CompletionKind",
    "DartiRuntimeError",
    "DartiSyntaxError",
    "Environment",
    "HostBridge",
    "HostDelegationError",
    "IntegerDivisionByZeroError",
    "MemberNotFoundError",
    "MissingEntryPointError",
    "StackOverflowError",
    "ThrownValue",
    "TypeMismatchError",
    "UnboundNameError",
    "UnsupportedFeatureError",
    "evaluate",
    "execute",
    "global_environment",
    "main",
    "parse",
    "parse_expression",
    "parse_source",
    "parse_statements",
    "run",
    "run_main",
]
