"""
Wire format between the sandbox parent and its child interpreter.

The parent writes one ``ChildRequest`` as JSON to the child's stdin and
reads one ``ChildResponse`` back from its stdout. Anything the submission
prints is captured separately and travels inside the response.
"""

from __future__ import annotations

import contextlib
import io
import json
import sys
import time
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Callable, cast

from sandbox.policy import ALLOWED_MODULES, SandboxPolicy

CHILD_TEMPLATE = """
from sandbox.protocol import child_main
child_main()
""".strip()

SUBMISSION_MODULE = "__submission__"

# error_type values meaning the program never ran
COMPILE_ERROR_TYPES = frozenset({"SyntaxError", "IndentationError", "TabError", "EntryPointMissing"})

MAX_CAPTURED_STDOUT = 10_000


class EntryPointMissing(Exception):
    """The submission does not define a callable with the expected name."""


class ProtocolError(ValueError):
    """The child answered with something other than a response object."""


@dataclass
class ChildRequest:
    code: str
    entry_point: str = "solution"
    arguments: list[object] = field(default_factory=list)
    allowed_modules: list[str] = field(default_factory=lambda: list(ALLOWED_MODULES))

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "ChildRequest":
        try:
            data = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            data = {}
        if not isinstance(data, Mapping):
            data = {}
        body = cast(Mapping[str, object], data)
        allowed = body.get("allowed_modules")
        return cls(
            code=str(body.get("code") or ""),
            entry_point=str(body.get("entry_point") or "solution"),
            arguments=list(cast(list[object], body.get("arguments") or [])),
            allowed_modules=list(cast(list[str], allowed)) if allowed is not None else list(ALLOWED_MODULES),
        )


@dataclass
class ChildResponse:
    success: bool
    output: str | None = None
    error: str | None = None
    error_type: str | None = None
    stdout: str = ""
    runtime_ms: float = 0.0

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "ChildResponse":
        """Parse a child's answer; raises ProtocolError on anything malformed."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"Invalid JSON from sandbox: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ProtocolError("Invalid response type from sandbox")
        body = cast(Mapping[str, object], data)
        success = bool(body.get("success"))
        error = body.get("error")
        error_type = body.get("error_type")
        runtime = body.get("runtime_ms")
        return cls(
            success=success,
            output=str(body.get("output")) if success else None,
            error=str(error) if error is not None else None,
            error_type=str(error_type) if error_type is not None else None,
            stdout=str(body.get("stdout") or ""),
            runtime_ms=float(runtime) if isinstance(runtime, (int, float)) else 0.0,
        )


def render_output(value: object) -> str:
    """Textual form of a return value, as compared against expected output."""
    return value if isinstance(value, str) else str(value)


def run_submission(request: ChildRequest) -> ChildResponse:
    """Compile the submission, call its entry point once and describe what happened."""
    start = time.perf_counter()
    sandbox_policy = SandboxPolicy.with_allowed(request.allowed_modules)
    namespace: dict[str, object] = {
        "__name__": SUBMISSION_MODULE,
        "__builtins__": sandbox_policy.restricted_builtins(),
    }
    captured = io.StringIO()
    try:
        with contextlib.redirect_stdout(captured):
            exec(compile(request.code, "<submission>", "exec"), namespace, namespace)
            func = namespace.get(request.entry_point)
            if not callable(func):
                raise EntryPointMissing(f"{request.entry_point} function not defined")
            value = cast(Callable[..., object], func)(*request.arguments)
            output = render_output(value)
        response = ChildResponse(success=True, output=output)
    except BaseException as exc:  # noqa: BLE001 - SystemExit from a submission is an error too
        response = ChildResponse(
            success=False,
            error=f"{exc.__class__.__name__}: {exc}",
            error_type=exc.__class__.__name__,
        )
    response.stdout = captured.getvalue()[:MAX_CAPTURED_STDOUT]
    response.runtime_ms = (time.perf_counter() - start) * 1000
    return response


def child_main() -> None:
    """Entry point for the sandbox child process (one test case per process)."""
    response = run_submission(ChildRequest.from_json(sys.stdin.read()))
    _ = sys.stdout.write(response.to_json())


if __name__ == "__main__":
    child_main()
