"""Comparison step: turns executor outcomes into test results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .compare import compare
from .schemas import GradingReport, TestCase, TestResult
from .status import Status


def display_name(test_case: TestCase, index: int) -> str:
    return test_case.description or f"Test Case {index + 1}"


@dataclass
class CaseOutcome:
    """
    What an executor observed for one test case.

    ``status`` is set when the execution itself failed; ``passed`` is set
    only by executors whose backend already judged the output. Everything
    else is left to the comparison step.
    """

    test_case: TestCase
    index: int
    actual_output: str = ""
    status: Status | None = None
    status_description: str | None = None
    error: str | None = None
    passed: bool | None = None
    elapsed_seconds: float | None = None


def judge(outcome: CaseOutcome) -> TestResult:
    if outcome.status is not None:
        status = outcome.status
        passed = False
    else:
        passed = outcome.passed
        if passed is None:
            passed = compare(outcome.actual_output, outcome.test_case.expected_output)
        status = Status.ACCEPTED if passed else Status.WRONG_ANSWER

    elapsed = outcome.elapsed_seconds
    return TestResult(
        test_name=display_name(outcome.test_case, outcome.index),
        input=outcome.test_case.input,
        expected_output=outcome.test_case.expected_output,
        actual_output=outcome.actual_output,
        passed=passed,
        status_id=int(status),
        status_description=outcome.status_description or status.description,
        time=f"{elapsed:.3f}" if elapsed is not None else "0.00",
        memory=0,
        error=outcome.error,
    )


def build_report(outcomes: Sequence[CaseOutcome], execution_time_ms: float) -> GradingReport:
    return GradingReport.from_results([judge(outcome) for outcome in outcomes], execution_time_ms)
