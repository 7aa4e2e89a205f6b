from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator, Mapping, Optional

from .types import DartiRuntimeError, DtValue, UnboundNameError

if TYPE_CHECKING:
    from .runtime import HostBridge


class Environment:
    """One lexical scope: a name table plus a link to the enclosing scope.

    `lookup` and `update` walk outward to the nearest scope binding the name;
    `declare` always writes to this scope and may shadow outer bindings.
    The host bridge is set on the root and inherited by every child.
    """

    def __init__(
        self,
        parent: Optional['Environment'] = None,
        bindings: Optional[Mapping[str, DtValue]] = None,
        host: Optional['HostBridge'] = None,
    ):
        self.parent = parent
        self.bindings: Dict[str, DtValue] = dict(bindings) if bindings else {}
        self.active_error: Optional[DartiRuntimeError] = None

        if host is None and parent is not None:
            host = parent.host
        self.host = host

    def lookup(self, name: str) -> DtValue:
        if name in self.bindings:
            return self.bindings[name]

        if self.parent is not None:
            return self.parent.lookup(name)

        raise UnboundNameError(name)

    def update(self, name: str, value: DtValue) -> DtValue:
        if name in self.bindings:
            self.bindings[name] = value
            return value

        if self.parent is not None:
            return self.parent.update(name, value)

        raise UnboundNameError(name)

    def declare(self, name: str, value: DtValue) -> None:
        self.bindings[name] = value

    def is_bound(self, name: str) -> bool:
        if name in self.bindings:
            return True
        return self.parent is not None and self.parent.is_bound(name)

    def child(self, bindings: Optional[Mapping[str, DtValue]] = None) -> 'Environment':
        return Environment(parent=self, bindings=bindings)

    def handled_error(self) -> Optional[DartiRuntimeError]:
        """The error whose catch clause encloses this scope, if any."""
        for env in self.chain():
            if env.active_error is not None:
                return env.active_error
        return None

    def chain(self) -> Iterator['Environment']:
        env: Optional[Environment] = self
        while env is not None:
            yield env
            env = env.parent

    def __repr__(self) -> str:
        return f"Environment({sorted(self.bindings)})"
