"""Grading orchestration: sanitize, execute, compare, aggregate."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from enum import Enum

from .errors import UnsafeSubmission, UnsupportedLanguage
from .executors import Executor, LocalExecutor
from .sanitizer import Sanitizer
from .schemas import Challenge, GradingReport, Submission
from .status import Status
from .verdict import CaseOutcome, build_report

logger = logging.getLogger(__name__)


class GradingState(str, Enum):
    IDLE = "idle"
    SANITIZING = "sanitizing"
    EXECUTING = "executing"
    COMPARING = "comparing"
    AGGREGATED = "aggregated"
    REJECTED = "rejected"


class Grader:
    """
    Grades one submission at a time against a challenge's test cases.

    Every per-test failure ends up in the report as a failed TestResult.
    Only a sanitizer veto escapes, as UnsafeSubmission, because such a
    submission must never be run at all. The grader does not gate
    submissions on the verdict; callers check ``all_passed`` themselves.
    """

    def __init__(
        self,
        executors: Sequence[Executor] | None = None,
        sanitizer: Sanitizer | None = None,
    ) -> None:
        self.executors: list[Executor] = list(executors) if executors is not None else [LocalExecutor()]
        self.sanitizer = sanitizer or Sanitizer()
        self.state = GradingState.IDLE

    def executor_for(self, language: str) -> Executor:
        for executor in self.executors:
            if executor.supports(language):
                return executor
        raise UnsupportedLanguage(language)

    def grade(self, submission: Submission, challenge: Challenge) -> GradingReport:
        # the challenge's language governs both the denylist and the executor
        language = challenge.language
        if submission.language != language:
            logger.warning(
                f"Submission language {submission.language!r} ignored for {challenge.slug} ({language})"
            )

        self.state = GradingState.SANITIZING
        try:
            self.sanitizer.check(submission.code, language)
        except UnsafeSubmission:
            self.state = GradingState.REJECTED
            raise

        executor = self.executor_for(language)
        test_cases = challenge.test_cases
        logger.info(
            f"Grading {challenge.slug} ({language}) with {executor.__class__.__name__}: "
            f"{len(test_cases)} test case(s)"
        )

        self.state = GradingState.EXECUTING
        start = time.perf_counter()
        try:
            outcomes = executor.run(submission.code, language, test_cases)
        except Exception as exc:  # noqa: BLE001
            logger.exception(f"Executor crashed while grading {challenge.slug}")
            outcomes = [
                CaseOutcome(
                    test_case=test_case,
                    index=index,
                    status=Status.RUNTIME_ERROR,
                    error=str(exc) or exc.__class__.__name__,
                )
                for index, test_case in enumerate(test_cases)
            ]
        execution_time_ms = (time.perf_counter() - start) * 1000

        self.state = GradingState.COMPARING
        report = build_report(outcomes, execution_time_ms)

        self.state = GradingState.AGGREGATED
        logger.info(
            f"Graded {challenge.slug}: {report.passed_tests}/{report.total_tests} passed "
            f"in {report.execution_time}ms"
        )
        return report


def verify_all_tests_passed(report: GradingReport) -> bool:
    """Gate for recording a submission: every test case must have passed."""
    return report.all_passed and report.passed_tests == report.total_tests


def grade(submission: Submission, challenge: Challenge, grader: Grader | None = None) -> GradingReport:
    return (grader or Grader()).grade(submission, challenge)
