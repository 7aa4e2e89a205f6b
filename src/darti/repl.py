"""Interactive REPL for darti, powered by prompt_toolkit."""

from __future__ import annotations

import logging
import os
import re
import sys
import traceback
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from lark import UnexpectedInput

from .environment import Environment
from .parser import build_parser
from .runner import repl_eval
from .runtime import global_environment
from .stdlib import io_globals
from .types import DartiRuntimeError, DartiSyntaxError, DtNull
from .utils import debug_py_trace_enabled, stringify

logger = logging.getLogger(__name__)

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
}

_DEPTH_OPEN = {"LPAR", "LSQB", "LBRACE"}
_DEPTH_CLOSE = {"RPAR", "RSQB", "RBRACE"}


def _bracket_depth(text: str) -> int:
    """Net count of unclosed (, [ and { in *text*; lex errors count as closed."""
    depth = 0

    try:
        for tok in build_parser().lex(text):
            if tok.type in _DEPTH_OPEN:
                depth += 1
            elif tok.type in _DEPTH_CLOSE:
                depth -= 1
    except UnexpectedInput:
        return 0

    return max(depth, 0)


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _fresh_environment() -> Environment:
    # REPL input runs one scope below the globals, like a program's top level
    return global_environment(extra_globals=io_globals()).child()


def _handle_slash(line: str, env_box: list[Environment]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/py-traceback":
        if arg.lower() in ("on", "1", "true", "yes"):
            os.environ["DARTI_DEBUG_PY_TRACE"] = "1"
        elif arg.lower() in ("off", "0", "false", "no"):
            os.environ.pop("DARTI_DEBUG_PY_TRACE", None)
        elif arg == "":
            if debug_py_trace_enabled():
                os.environ.pop("DARTI_DEBUG_PY_TRACE", None)
            else:
                os.environ["DARTI_DEBUG_PY_TRACE"] = "1"
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        state = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {state}")
        return True

    if cmd == "/reset":
        env_box[0] = _fresh_environment()
        logger.debug("REPL environment reset")
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    # mutable box so /reset can swap the environment
    env_box: list[Environment] = [_fresh_environment()]

    history = InMemoryHistory()
    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        if text.startswith("/"):
            buf.validate_and_handle()
            return

        depth = _bracket_depth(text)
        if depth > 0:
            buf.insert_text("\n" + "  " * depth)
            return

        buf.validate_and_handle()

    session: PromptSession[str] = PromptSession(
        history=history,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("darti repl — Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        if _handle_slash(text, env_box):
            continue

        try:
            result, echo = repl_eval(text, env_box[0])
        except (DartiSyntaxError, DartiRuntimeError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            if debug_py_trace_enabled():
                print("\nPython traceback:", file=sys.stderr)
                print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")
            continue

        if echo and not isinstance(result, DtNull):
            print(stringify(result))
