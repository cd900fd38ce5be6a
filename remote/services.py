"""Execution service implementations."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from typing import cast

import httpx

from grading.compare import compare
from grading.errors import GradingError, ServiceTimeout, ServiceUnavailable, UnsupportedLanguage
from grading.schemas import ExecutionServiceConfig, TestCase

from .base import BaseExecutionService, ServiceResponse, ServiceResult, post_json
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

PISTON_BASE_URL = "https://emkc.org/api/v2/piston"

# catalog language -> (piston language, version)
# python is only sent here when the config drops it from local_languages
PISTON_LANGUAGES: dict[str, tuple[str, str]] = {
    "javascript": ("javascript", "18.15.0"),
    "python": ("python", "3.10.0"),
    "cpp": ("c++", "10.2.0"),
    "java": ("java", "15.0.2"),
    "c": ("c", "10.2.0"),
}


def _build_client(base_url: str, timeout_seconds: float, api_token: str | None) -> httpx.Client:
    headers = {"Content-Type": "application/json"}
    if api_token:
        headers["Authorization"] = f"Bearer {api_token}"
    return httpx.Client(base_url=base_url, headers=headers, timeout=timeout_seconds)


class HttpExecutionService(BaseExecutionService):
    """The web tier's batch endpoint: ``POST /api/execute``."""

    def __init__(
        self,
        service_id: str,
        base_url: str,
        api_token: str | None = None,
        timeout_seconds: float = 10.0,
        retry_policy: RetryPolicy | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(service_id=service_id)
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._retry_policy = retry_policy
        self._client = client or _build_client(base_url, timeout_seconds, api_token)

    def _execute(  # pyright: ignore[reportImplicitOverride]
        self, code: str, language: str, test_cases: Sequence[TestCase]
    ) -> ServiceResponse:
        payload = {
            "code": code,
            "language": language,
            "testCases": [test_case.to_wire() for test_case in test_cases],
        }
        data = post_json(self._client, "/api/execute", payload, self._retry_policy)
        if not isinstance(data, Mapping):
            raise ServiceUnavailable("Invalid response type from execution service")
        return ServiceResponse.from_dict(cast(Mapping[str, object], data))

    def get_service_info(self) -> dict[str, object]:  # pyright: ignore[reportImplicitOverride]
        return {
            "service_id": self.service_id,
            "service_type": "http",
            "base_url": self._base_url,
            "timeout_seconds": self._timeout_seconds,
        }


class PistonService(BaseExecutionService):
    """
    Runs each test case as a program on a Piston instance.

    The test case input is fed on stdin and stdout is compared with the
    expected output. Anything written to stderr fails the test case.
    """

    def __init__(
        self,
        service_id: str,
        base_url: str = PISTON_BASE_URL,
        timeout_seconds: float = 10.0,
        retry_policy: RetryPolicy | None = None,
        client: httpx.Client | None = None,
        languages: Mapping[str, tuple[str, str]] | None = None,
    ) -> None:
        super().__init__(service_id=service_id)
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._retry_policy = retry_policy
        self._client = client or _build_client(base_url, timeout_seconds, None)
        self._languages = dict(languages or PISTON_LANGUAGES)

    def _execute(  # pyright: ignore[reportImplicitOverride]
        self, code: str, language: str, test_cases: Sequence[TestCase]
    ) -> ServiceResponse:
        runtime = self._languages.get(language.lower())
        if runtime is None:
            raise UnsupportedLanguage(language)
        piston_language, version = runtime

        start = time.perf_counter()
        results: list[ServiceResult] = []
        failures: list[ServiceUnavailable | ServiceTimeout] = []
        for index, test_case in enumerate(test_cases):
            payload = {
                "language": piston_language,
                "version": version,
                "files": [{"content": code}],
                "stdin": test_case.input,
            }
            try:
                data = post_json(self._client, "/execute", payload, self._retry_policy)
            except (ServiceUnavailable, ServiceTimeout) as exc:
                logger.warning(f"Piston request for test {index + 1} failed: {exc.message}")
                failures.append(exc)
                results.append(ServiceResult.unavailable_result(index, test_case.input, test_case.expected_output, exc.message))
                continue
            result = self._to_result(index, test_case, data)
            logger.debug(
                f"Piston {piston_language} {version} test {index + 1}/{len(test_cases)}: "
                f"{'passed' if result.passed else 'failed'}"
            )
            results.append(result)

        if failures and len(failures) == len(test_cases):
            raise failures[-1]

        passed_tests = sum(1 for result in results if result.passed)
        return ServiceResponse(
            results=tuple(results),
            passed=passed_tests == len(results),
            passed_tests=passed_tests,
            total_tests=len(results),
            execution_time=(time.perf_counter() - start) * 1000,
        )

    @staticmethod
    def _to_result(index: int, test_case: TestCase, data: object) -> ServiceResult:
        body = cast(Mapping[str, object], data) if isinstance(data, Mapping) else {}
        compile_stage = body.get("compile")
        run_stage = body.get("run")
        compile_info = cast(Mapping[str, object], compile_stage) if isinstance(compile_stage, Mapping) else {}
        run_info = cast(Mapping[str, object], run_stage) if isinstance(run_stage, Mapping) else {}

        stdout = str(run_info.get("stdout") or "")
        error: str | None = None
        if compile_info.get("code"):
            error = str(compile_info.get("stderr") or compile_info.get("output") or "Compilation failed")
        elif run_info.get("stderr"):
            error = str(run_info.get("stderr"))
        elif run_info.get("signal"):
            error = f"Killed by {run_info.get('signal')}"

        return ServiceResult(
            index=index,
            input=test_case.input,
            expected_output=test_case.expected_output,
            actual_output=stdout,
            passed=error is None and compare(stdout, test_case.expected_output),
            error=error,
        )

    def get_service_info(self) -> dict[str, object]:  # pyright: ignore[reportImplicitOverride]
        return {
            "service_id": self.service_id,
            "service_type": "piston",
            "base_url": self._base_url,
            "timeout_seconds": self._timeout_seconds,
            "languages": sorted(self._languages),
        }


class FakeExecutionService(BaseExecutionService):
    """Deterministic offline service for tests and demos.

    Answers each test case from a fixed ``input -> output`` table; inputs
    missing from the table produce empty output.
    """

    def __init__(
        self,
        service_id: str = "fake",
        outputs: Mapping[str, str] | None = None,
        failure: GradingError | None = None,
    ) -> None:
        super().__init__(service_id=service_id)
        self.outputs = dict(outputs or {})
        self.failure = failure
        self.requests: list[dict[str, object]] = []

    def _execute(  # pyright: ignore[reportImplicitOverride]
        self, code: str, language: str, test_cases: Sequence[TestCase]
    ) -> ServiceResponse:
        self.requests.append({"code": code, "language": language, "test_cases": list(test_cases)})
        if self.failure is not None:
            raise self.failure
        results = tuple(
            ServiceResult(
                index=index,
                input=test_case.input,
                expected_output=test_case.expected_output,
                actual_output=self.outputs.get(test_case.input, ""),
                passed=compare(self.outputs.get(test_case.input, ""), test_case.expected_output),
            )
            for index, test_case in enumerate(test_cases)
        )
        passed_tests = sum(1 for result in results if result.passed)
        return ServiceResponse(
            results=results,
            passed=passed_tests == len(results),
            passed_tests=passed_tests,
            total_tests=len(results),
            execution_time=0.0,
        )

    def get_service_info(self) -> dict[str, object]:  # pyright: ignore[reportImplicitOverride]
        return {
            "service_id": self.service_id,
            "service_type": "fake",
        }


def create_service(
    config: ExecutionServiceConfig,
    retry_policy: RetryPolicy | None = None,
) -> BaseExecutionService:
    service_type = config.service_type.lower()
    policy = retry_policy or RetryPolicy(max_retries=config.max_retries)
    if service_type == "http":
        if not config.base_url:
            raise ValueError("base_url is required for the http execution service")
        return HttpExecutionService(
            service_id=service_type,
            base_url=config.base_url,
            api_token=config.api_token,
            timeout_seconds=config.timeout_seconds,
            retry_policy=policy,
        )
    if service_type == "piston":
        return PistonService(
            service_id=service_type,
            base_url=config.base_url or PISTON_BASE_URL,
            timeout_seconds=config.timeout_seconds,
            retry_policy=policy,
        )
    if service_type == "fake":
        return FakeExecutionService(service_id=service_type)
    raise ValueError(f"Unsupported execution service type: {config.service_type}")
