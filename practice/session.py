"""Editor workflow around one challenge: run freely, submit only when green."""

from __future__ import annotations

import logging

from grading.errors import GradingError
from grading.orchestrator import Grader, verify_all_tests_passed
from grading.schemas import Challenge, GradingReport, Submission, SubmissionReceipt
from remote.submissions import SubmissionRecorder

logger = logging.getLogger(__name__)


class SubmissionBlocked(GradingError):
    """Raised when a submit is attempted without a fully passing run."""

    def __init__(self, message: str = "All tests must pass before submitting!") -> None:
        super().__init__(message)


class EditorSession:
    """Holds the learner's buffer for one challenge and gates submissions."""

    def __init__(
        self,
        challenge: Challenge,
        grader: Grader,
        recorder: SubmissionRecorder | None = None,
    ) -> None:
        self.challenge = challenge
        self.grader = grader
        self.recorder = recorder
        self.code = challenge.starter_code
        self.last_report: GradingReport | None = None

    def _submission(self, code: str | None) -> Submission:
        if code is not None:
            self.code = code
        return Submission(code=self.code, language=self.challenge.language)

    def run(self, code: str | None = None) -> GradingReport:
        """Grade the buffer. UnsafeSubmission propagates as a blocking error."""
        self.last_report = None
        report = self.grader.grade(self._submission(code), self.challenge)
        self.last_report = report
        return report

    def submit(self, code: str | None = None) -> SubmissionReceipt:
        """Grade again and record the submission if, and only if, every test passed."""
        report = self.run(code)
        if not verify_all_tests_passed(report):
            raise SubmissionBlocked()
        if self.recorder is None:
            raise SubmissionBlocked("No submission service configured")
        logger.info(f"Submitting {self.challenge.slug} ({report.passed_tests}/{report.total_tests} passed)")
        return self.recorder.record(
            challenge_id=self.challenge.slug,
            code=self.code,
            language=self.challenge.language,
            report=report,
        )
