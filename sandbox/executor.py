"""
Runs one call of untrusted code in a throwaway child interpreter.
"""

from __future__ import annotations

import logging
import math
import os
import subprocess
import sys
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from sandbox.policy import ALLOWED_MODULES
from sandbox.protocol import (
    CHILD_TEMPLATE,
    COMPILE_ERROR_TYPES,
    ChildRequest,
    ChildResponse,
    ProtocolError,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]


@dataclass
class ExecutionResult:
    success: bool
    output: str | None
    error: str | None
    runtime_ms: float
    timed_out: bool = False
    error_type: str | None = None
    stdout: str = ""

    @property
    def compile_error(self) -> bool:
        return self.error_type in COMPILE_ERROR_TYPES

    @classmethod
    def failure(cls, error: str, error_type: str, runtime_ms: float, timed_out: bool = False) -> "ExecutionResult":
        return cls(False, None, error, runtime_ms, timed_out=timed_out, error_type=error_type)

    @classmethod
    def from_response(cls, response: ChildResponse) -> "ExecutionResult":
        return cls(
            success=response.success,
            output=response.output,
            error=response.error,
            runtime_ms=response.runtime_ms,
            error_type=response.error_type,
            stdout=response.stdout,
        )


def child_environment() -> dict[str, str]:
    """Parent environment with this project importable by the child."""
    env = os.environ.copy()
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(PROJECT_ROOT), existing]))
    return env


class SandboxExecutor:
    """
    Execute one call of an untrusted entry point in a child interpreter.

    The child is killed once the wall-clock budget elapses, so a submission
    stuck in an infinite loop never blocks the caller past its timeout.
    On POSIX the child also runs under CPU-time and address-space rlimits;
    elsewhere only the wall-clock kill applies.
    """

    DEFAULT_MEMORY_LIMIT_MB: int = 256

    def __init__(
        self,
        memory_limit_mb: int | None = None,
        allowed_modules: Sequence[str] | None = None,
    ) -> None:
        self.memory_limit_mb: int = memory_limit_mb or self.DEFAULT_MEMORY_LIMIT_MB
        self.allowed_modules: list[str] = list(allowed_modules or ALLOWED_MODULES)

    def execute(
        self,
        code: str,
        entry_point: str,
        arguments: Sequence[object],
        timeout_seconds: float,
    ) -> ExecutionResult:
        request = ChildRequest(
            code=code,
            entry_point=entry_point,
            arguments=list(arguments),
            allowed_modules=self.allowed_modules,
        )

        start = time.perf_counter()
        try:
            completed = subprocess.run(
                [sys.executable, "-c", CHILD_TEMPLATE],
                input=request.to_json(),
                text=True,
                capture_output=True,
                timeout=timeout_seconds,
                env=child_environment(),
                preexec_fn=self.resource_limiter(timeout_seconds) if os.name == "posix" else None,
            )
        except subprocess.TimeoutExpired:
            # subprocess.run has already killed and reaped the child
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug(f"Sandbox child killed after {elapsed_ms:.0f}ms")
            return ExecutionResult.failure(
                f"Timeout after {timeout_seconds:g}s", "Timeout", elapsed_ms, timed_out=True
            )
        elapsed_ms = (time.perf_counter() - start) * 1000

        if not completed.stdout:
            reason = completed.stderr.strip() or describe_exit(completed.returncode)
            return ExecutionResult.failure(reason, "ChildCrashed", elapsed_ms)
        try:
            response = ChildResponse.from_json(completed.stdout)
        except ProtocolError as exc:
            return ExecutionResult.failure(str(exc), "ProtocolError", elapsed_ms)
        return ExecutionResult.from_response(response)

    def resource_limiter(self, timeout_seconds: float) -> Callable[[], None]:
        """preexec_fn applying CPU and memory rlimits inside the child."""
        cpu_seconds = max(1, math.ceil(timeout_seconds) + 1)
        memory_bytes = self.memory_limit_mb * 1024 * 1024

        def apply_limits() -> None:
            import resource

            resource.setrlimit(resource.RLIMIT_CPU, (cpu_seconds, cpu_seconds + 1))
            if hasattr(resource, "RLIMIT_AS"):
                resource.setrlimit(resource.RLIMIT_AS, (memory_bytes, memory_bytes))
            elif hasattr(resource, "RLIMIT_DATA"):
                resource.setrlimit(resource.RLIMIT_DATA, (memory_bytes, memory_bytes))

        return apply_limits


def describe_exit(returncode: int) -> str:
    if returncode < 0:
        return f"Sandbox child terminated by signal {-returncode}"
    return f"Empty response from sandbox (exit code {returncode})"
