"""Executor variants, selected by challenge language."""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from tqdm import tqdm

from sandbox.executor import SandboxExecutor

from .errors import (
    CompilationFault,
    ExecutionTimeout,
    RuntimeFault,
    ServiceTimeout,
    ServiceUnavailable,
)
from .marshal import marshal
from .schemas import GradingReport, TestCase
from .status import BACKEND_ERROR, Status
from .verdict import CaseOutcome, build_report

if TYPE_CHECKING:
    from remote.base import BaseExecutionService

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_ENTRY_POINT = "solution"
ENTRY_POINT_PATTERN = re.compile(r"^def\s+([A-Za-z_]\w*)\s*\(", re.MULTILINE)


def find_entry_point(source_text: str) -> str:
    """Name of the first top-level function defined in the source."""
    match = ENTRY_POINT_PATTERN.search(source_text)
    return match.group(1) if match else DEFAULT_ENTRY_POINT


class Executor(ABC):
    """One way of running submissions, for a closed set of languages."""

    languages: frozenset[str]

    def supports(self, language: str) -> bool:
        return language.lower() in self.languages

    @abstractmethod
    def run(self, source_text: str, language: str, test_cases: Sequence[TestCase]) -> list[CaseOutcome]:
        """Run every test case and report one outcome per case, in order."""


class LocalExecutor(Executor):
    """Runs Python submissions in a fresh child interpreter per test case."""

    def __init__(
        self,
        sandbox: SandboxExecutor | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        languages: Iterable[str] = ("python",),
        show_progress: bool = False,
    ) -> None:
        self.sandbox = sandbox or SandboxExecutor()
        self.timeout_ms = timeout_ms
        self.languages = frozenset(language.lower() for language in languages)
        self.show_progress = show_progress

    def execute(self, source_text: str, arguments: Sequence[object], timeout_ms: int | None = None) -> str:
        """Call the submission's entry point once and return its textual result."""
        budget_ms = timeout_ms or self.timeout_ms
        entry_point = find_entry_point(source_text)
        result = self.sandbox.execute(
            source_text,
            entry_point=entry_point,
            arguments=arguments,
            timeout_seconds=budget_ms / 1000,
        )
        if result.timed_out:
            raise ExecutionTimeout(budget_ms)
        if not result.success:
            message = result.error or "Unknown sandbox failure"
            if result.compile_error:
                raise CompilationFault(message, stdout=result.stdout)
            raise RuntimeFault(message, stdout=result.stdout)
        return result.output or ""

    def run(self, source_text: str, language: str, test_cases: Sequence[TestCase]) -> list[CaseOutcome]:
        outcomes: list[CaseOutcome] = []
        cases = tqdm(
            test_cases,
            desc="Running tests",
            unit="test",
            leave=False,
            disable=not self.show_progress,
        )
        for index, test_case in enumerate(cases):
            outcome = self.run_case(source_text, test_case, index)
            logger.debug(
                f"Test {index + 1}/{len(test_cases)} finished in {outcome.elapsed_seconds or 0:.3f}s"
                f" (status={outcome.status.name if outcome.status else 'pending'})"
            )
            outcomes.append(outcome)
        return outcomes

    def run_case(self, source_text: str, test_case: TestCase, index: int) -> CaseOutcome:
        start = time.perf_counter()
        outcome = CaseOutcome(test_case=test_case, index=index)
        try:
            outcome.actual_output = self.execute(source_text, marshal(test_case.input))
        except ExecutionTimeout as exc:
            outcome.status = Status.TIME_LIMIT_EXCEEDED
            outcome.error = exc.message
        except CompilationFault as exc:
            outcome.status = Status.COMPILATION_ERROR
            outcome.error = exc.message
        except RuntimeFault as exc:
            outcome.status = Status.RUNTIME_ERROR
            outcome.error = exc.message
        except Exception as exc:  # noqa: BLE001
            logger.warning(f"Sandbox failure on test {index + 1}: {exc}")
            outcome.status = Status.RUNTIME_ERROR
            outcome.error = str(exc) or exc.__class__.__name__
        outcome.elapsed_seconds = time.perf_counter() - start
        return outcome


class RemoteExecutor(Executor):
    """Delegates submissions to an external execution service."""

    DEFAULT_LANGUAGES = ("javascript", "java", "cpp", "c")

    def __init__(
        self,
        service: "BaseExecutionService",
        languages: Iterable[str] | None = None,
    ) -> None:
        self.service = service
        self.languages = frozenset(
            language.lower() for language in (languages or self.DEFAULT_LANGUAGES)
        )

    def run(self, source_text: str, language: str, test_cases: Sequence[TestCase]) -> list[CaseOutcome]:
        try:
            response = self.service.execute(source_text, language, test_cases)
        except (ServiceUnavailable, ServiceTimeout) as exc:
            logger.warning(f"Execution service failed for {language}: {exc.message}")
            return [self._backend_error(test_case, index, exc.message) for index, test_case in enumerate(test_cases)]

        outcomes: list[CaseOutcome] = []
        for index, test_case in enumerate(test_cases):
            item = response.result_for(index)
            if item is None:
                outcomes.append(self._backend_error(test_case, index, "No result returned by execution service"))
                continue
            if item.unavailable:
                outcomes.append(self._backend_error(test_case, index, item.error or "Execution service unavailable"))
                continue
            outcome = CaseOutcome(
                test_case=test_case,
                index=index,
                actual_output=item.actual_output,
                error=item.error,
                passed=item.passed and not item.error,
            )
            if item.error:
                outcome.status = Status.RUNTIME_ERROR
            outcomes.append(outcome)
        return outcomes

    def run_report(self, source_text: str, language: str, test_cases: Sequence[TestCase]) -> GradingReport:
        """Run the batch remotely and aggregate it without the orchestrator."""
        start = time.perf_counter()
        outcomes = self.run(source_text, language, test_cases)
        return build_report(outcomes, (time.perf_counter() - start) * 1000)

    @staticmethod
    def _backend_error(test_case: TestCase, index: int, message: str) -> CaseOutcome:
        return CaseOutcome(
            test_case=test_case,
            index=index,
            status=Status.RUNTIME_ERROR,
            status_description=BACKEND_ERROR,
            error=message,
            passed=False,
        )
