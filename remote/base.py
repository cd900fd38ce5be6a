"""Base execution service interface, response schema and HTTP transport."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import cast

import httpx

from grading.errors import ServiceTimeout, ServiceUnavailable
from grading.schemas import TestCase

from .retry import RetryPolicy


def _coerce_mapping(value: object) -> dict[str, object]:
    if isinstance(value, Mapping):
        typed_value = cast(Mapping[str, object], value)
        return {str(key): item for key, item in typed_value.items()}
    return {}


def _coerce_float(value: object, default: float = 0.0) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _coerce_int(value: object, default: int = 0) -> int:
    return int(_coerce_float(value, float(default)))


def _coerce_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def _coerce_text(value: object) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class ServiceResult:
    """One per-test entry of an execution service response."""

    index: int
    input: str
    expected_output: str
    actual_output: str
    passed: bool
    error: str | None = None
    # the service could not be reached for this case
    unavailable: bool = False

    @classmethod
    def unavailable_result(cls, index: int, input: str, expected_output: str, error: str) -> "ServiceResult":
        return cls(
            index=index,
            input=input,
            expected_output=expected_output,
            actual_output="",
            passed=False,
            error=error,
            unavailable=True,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "testCase": self.index + 1,
            "input": self.input,
            "expectedOutput": self.expected_output,
            "actualOutput": self.actual_output,
            "passed": self.passed,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object], position: int) -> "ServiceResult":
        # testCase is 1-based on the wire; fall back to list position
        raw_index = payload.get("testCase")
        index = _coerce_int(raw_index, position + 1) - 1 if raw_index is not None else position
        error = payload.get("error")
        return cls(
            index=index,
            input=_coerce_text(payload.get("input")),
            expected_output=_coerce_text(payload.get("expectedOutput")),
            actual_output=_coerce_text(payload.get("actualOutput")),
            passed=_coerce_bool(payload.get("passed")),
            error=str(error) if error else None,
        )


@dataclass(frozen=True)
class ServiceResponse:
    results: tuple[ServiceResult, ...]
    passed: bool
    passed_tests: int
    total_tests: int
    execution_time: float
    raw_response: dict[str, object] = field(default_factory=dict)

    def result_for(self, index: int) -> ServiceResult | None:
        for result in self.results:
            if result.index == index:
                return result
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "results": [result.to_dict() for result in self.results],
            "passed": self.passed,
            "passedTests": self.passed_tests,
            "totalTests": self.total_tests,
            "executionTime": self.execution_time,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "ServiceResponse":
        raw_results = payload.get("results")
        items = cast(Sequence[object], raw_results) if isinstance(raw_results, list) else []
        results = tuple(
            ServiceResult.from_dict(_coerce_mapping(item), position)
            for position, item in enumerate(items)
        )
        passed_tests = _coerce_int(payload.get("passedTests"), sum(1 for r in results if r.passed))
        total_tests = _coerce_int(payload.get("totalTests"), len(results))
        return cls(
            results=results,
            passed=_coerce_bool(payload.get("passed", passed_tests == total_tests)),
            passed_tests=passed_tests,
            total_tests=total_tests,
            execution_time=_coerce_float(payload.get("executionTime")),
            raw_response=_coerce_mapping(payload),
        )


def post_json(
    client: httpx.Client,
    url: str,
    payload: Mapping[str, object],
    retry_policy: RetryPolicy | None = None,
) -> object:
    """POST a JSON body and decode the JSON answer, mapping transport failures."""

    def _call() -> object:
        response = client.post(url, json=dict(payload))
        response.raise_for_status()
        return response.json()

    try:
        if retry_policy is None:
            return _call()
        return retry_policy.execute(_call)
    except httpx.TimeoutException as exc:
        raise ServiceTimeout(f"Execution service timed out: {exc}") from exc
    except httpx.HTTPStatusError as exc:
        raise ServiceUnavailable(
            f"Execution service returned HTTP {exc.response.status_code}"
        ) from exc
    except httpx.TransportError as exc:
        raise ServiceUnavailable(f"Execution service unreachable: {exc}") from exc
    except ValueError as exc:
        raise ServiceUnavailable(f"Invalid JSON from execution service: {exc}") from exc


class BaseExecutionService(ABC):
    """Abstract interface for remote execution backends."""

    service_id: str

    def __init__(self, service_id: str) -> None:
        self.service_id = service_id
        self._metrics = {
            "calls": 0,
            "total_latency_ms": 0.0,
            "errors": 0,
        }

    def execute(self, code: str, language: str, test_cases: Sequence[TestCase]) -> ServiceResponse:
        """Run a submission against the test cases, recording call metrics."""
        start = time.perf_counter()
        self._metrics["calls"] += 1
        try:
            return self._execute(code, language, test_cases)
        except (ServiceUnavailable, ServiceTimeout):
            self._metrics["errors"] += 1
            raise
        finally:
            self._metrics["total_latency_ms"] += (time.perf_counter() - start) * 1000

    @abstractmethod
    def _execute(self, code: str, language: str, test_cases: Sequence[TestCase]) -> ServiceResponse:
        """Backend-specific execution."""

    @abstractmethod
    def get_service_info(self) -> dict[str, object]:
        """Return metadata about the backend."""

    def get_metrics(self) -> dict[str, object]:
        """Get current metrics."""
        metrics: dict[str, object] = dict(self._metrics)
        calls = int(self._metrics["calls"])
        if calls > 0:
            metrics["avg_latency_ms"] = float(self._metrics["total_latency_ms"]) / calls
        else:
            metrics["avg_latency_ms"] = 0.0
        return metrics
