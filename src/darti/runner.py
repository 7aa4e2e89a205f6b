from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, TextIO, Tuple

from .environment import Environment
from .evaluator import evaluate, execute
from .nodes import CompilationUnit, ExpressionStatement
from .parser import parse_expression, parse_source, parse_statements
from .runtime import HostBridge, call_value, global_environment
from .stdlib import io_globals
from .types import (
    NULL,
    ArityError,
    DartiRuntimeError,
    DartiSyntaxError,
    DtFunction,
    DtList,
    DtNativeFunction,
    DtString,
    DtValue,
    MissingEntryPointError,
    UnboundNameError,
)
from .utils import debug_py_trace_enabled

logger = logging.getLogger(__name__)

ENTRY_POINT = "main"

# floor for sys.getrecursionlimit() under the CLI
MIN_RECURSION_LIMIT = 10000

def parse(source: str) -> CompilationUnit:
    return parse_source(source)

def run(
    source: str,
    environment: Optional[Environment] = None,
    *,
    out: Optional[TextIO] = None,
    host: Optional[HostBridge] = None,
) -> Environment:
    """Execute the top-level declarations of *source* and return their scope."""
    unit = parse(source)
    root = environment if environment is not None else global_environment(host=host, out=out)
    env = root.child()
    execute(unit, env)
    return env

def run_main(
    source: str,
    arguments: Optional[Sequence[str]] = None,
    *,
    out: Optional[TextIO] = None,
    host: Optional[HostBridge] = None,
    extra_globals: Optional[Mapping[str, DtValue]] = None,
) -> DtValue:
    """Run *source*, then call its `main` with the given command-line arguments."""
    root = global_environment(host=host, out=out, extra_globals=extra_globals)
    env = run(source, root)

    try:
        entry = env.lookup(ENTRY_POINT)
    except UnboundNameError:
        raise MissingEntryPointError() from None

    if not isinstance(entry, (DtFunction, DtNativeFunction)):
        raise MissingEntryPointError()

    args = list(arguments or [])
    param_count = len(entry.params) if isinstance(entry, DtFunction) else 0
    logger.debug("invoking %s with %d parameter(s), %d argument(s)", ENTRY_POINT, param_count, len(args))

    if isinstance(entry, DtNativeFunction) or param_count == 0:
        return call_value(entry, [])

    if param_count == 1:
        return call_value(entry, [DtList([DtString(a) for a in args])])

    raise ArityError(f"'{ENTRY_POINT}' must take zero or one parameter; it declares {param_count}")

def repl_eval(text: str, env: Environment) -> Tuple[DtValue, bool]:
    """Run REPL input in *env*; returns (value, echo) where echo is set for a trailing expression."""
    try:
        statements = parse_statements(text)
    except DartiSyntaxError as stmt_error:
        # a bare expression without its trailing `;`
        try:
            expr = parse_expression(text)
        except DartiSyntaxError:
            raise stmt_error from None
        return evaluate(expr, env), True

    if not statements:
        return NULL, False

    *head, last = statements
    for stmt in head:
        execute(stmt, env)

    if isinstance(last, ExpressionStatement):
        return evaluate(last.expression, env), True

    execute(last, env)
    return NULL, False

def _load_source(arg: Optional[str]) -> str:
    """Program text for the CLI: stdin for None or "-", a file's contents when
    *arg* names one, else *arg* itself as literal source."""
    if arg is None or arg == "-":
        program = sys.stdin.read()
        if not program:
            raise SystemExit("No program on stdin")
        return program

    try:
        is_file = Path(arg).is_file()
    except OSError:
        # literal source too long or malformed to be a path
        return arg

    if is_file:
        return Path(arg).read_text(encoding="utf-8")

    return arg

def _raise_recursion_limit() -> None:
    if sys.getrecursionlimit() < MIN_RECURSION_LIMIT:
        sys.setrecursionlimit(MIN_RECURSION_LIMIT)

def _report(exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    if debug_py_trace_enabled():
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)

def main(argv: Optional[List[str]] = None) -> int:
    verbose = False
    start_repl = False
    arg: Optional[str] = None
    program_args: List[str] = []
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token in ("-v", "--verbose"):
            verbose = True
            continue

        if token == "--repl":
            start_repl = True
            continue

        if token.startswith("--") and token != "--":
            raise SystemExit(f"Unknown option: {token}")

        # first positional is the program; everything after it belongs to main
        arg = None if token == "--" else token
        if arg is None:
            arg = next(it, None)
        program_args = list(it)
        break

    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

    _raise_recursion_limit()

    if start_repl or (arg is None and sys.stdin.isatty()):
        from .repl import repl  # local import to avoid cycle
        repl()
        return 0

    try:
        source = _load_source(arg)
        run_main(source, program_args, extra_globals=io_globals())
    except (DartiRuntimeError, DartiSyntaxError) as exc:
        _report(exc)
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
