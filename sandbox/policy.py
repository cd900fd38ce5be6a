"""
What a submission may import and call inside the sandbox child.
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import ModuleType
from typing import cast

BLOCKED_MODULES = (
    "os",
    "sys",
    "subprocess",
    "socket",
    "urllib",
    "requests",
    "httpx",
    "http",
    "ctypes",
    "importlib",
    "shutil",
    "pathlib",
    "multiprocessing",
    "threading",
    "signal",
    "builtins",
    "pickle",
    "marshal",
    "io",
)

BLOCKED_BUILTINS = (
    "__import__",
    "eval",
    "exec",
    "compile",
    "open",
    "input",
    "breakpoint",
    "globals",
    "locals",
    "vars",
)

# Pure computation helpers a challenge solution may reasonably need
ALLOWED_MODULES = (
    "math",
    "random",
    "itertools",
    "functools",
    "collections",
    "typing",
    "dataclasses",
    "string",
    "re",
    "heapq",
    "bisect",
    "statistics",
    "operator",
    "fractions",
    "decimal",
)

ImportHook = Callable[
    [str, Mapping[str, object] | None, Mapping[str, object] | None, Sequence[str], int],
    ModuleType,
]


def _refuse(*_args: object, **_kwargs: object) -> None:
    raise RuntimeError("Blocked by sandbox policy")


@dataclass(frozen=True)
class SandboxPolicy:
    """Import allowlist plus builtin denylist for one submission namespace."""

    allowed_modules: frozenset[str] = frozenset(ALLOWED_MODULES)
    blocked_modules: frozenset[str] = frozenset(BLOCKED_MODULES)
    blocked_builtins: frozenset[str] = frozenset(BLOCKED_BUILTINS)

    @classmethod
    def with_allowed(cls, allowed_modules: Iterable[str] | None) -> "SandboxPolicy":
        if allowed_modules is None:
            return cls()
        return cls(allowed_modules=frozenset(allowed_modules))

    def import_error(self, name: str, level: int = 0) -> str | None:
        """Reason an import is refused, or None when it is permitted."""
        if level:
            return "Relative imports are not available to submissions"
        root = name.partition(".")[0]
        if root in self.blocked_modules or name in self.blocked_modules:
            return f"Import of '{root}' blocked by sandbox policy"
        if root not in self.allowed_modules:
            return f"Import of '{root}' is not allowlisted"
        return None

    def import_guard(self) -> ImportHook:
        real_import = cast(ImportHook, builtins.__import__)

        def guarded_import(
            name: str,
            globals: Mapping[str, object] | None = None,
            locals: Mapping[str, object] | None = None,
            fromlist: Sequence[str] = (),
            level: int = 0,
        ) -> ModuleType:
            reason = self.import_error(name, level)
            if reason is not None:
                raise ImportError(reason)
            return real_import(name, globals, locals, fromlist, level)

        return guarded_import

    def restricted_builtins(self) -> dict[str, object]:
        """
        Builtins mapping for the submission namespace only.

        The interpreter-wide ``builtins`` module is left untouched, so
        standard library code imported by a submission keeps working
        (namedtuple and dataclasses call exec/eval internally).
        """
        namespace_builtins: dict[str, object] = dict(vars(builtins))
        for name in self.blocked_builtins & namespace_builtins.keys():
            namespace_builtins[name] = _refuse
        namespace_builtins["__import__"] = self.import_guard()
        return namespace_builtins
