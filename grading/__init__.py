"""
Grading Module

Automated grading of learner submissions against challenge test cases.

This module provides:
- Source denylist (sanitizer) applied before execution
- Test case input marshaling
- Local (child interpreter) and remote (execution service) executors
- Output comparison with numeric and case-insensitive equivalence
- Grading orchestration into a uniform report
"""

__version__ = "0.1.0"

from .compare import compare
from .errors import (
    CompilationFault,
    ExecutionTimeout,
    GradingError,
    RuntimeFault,
    ServiceTimeout,
    ServiceUnavailable,
    UnsafeSubmission,
    UnsupportedLanguage,
)
from .marshal import marshal
from .schemas import Challenge, GradingReport, Submission, TestCase, TestResult
from .status import Status, get_status_description

__all__ = [
    "Challenge",
    "CompilationFault",
    "ExecutionTimeout",
    "GradingError",
    "GradingReport",
    "RuntimeFault",
    "ServiceTimeout",
    "ServiceUnavailable",
    "Status",
    "Submission",
    "TestCase",
    "TestResult",
    "UnsafeSubmission",
    "UnsupportedLanguage",
    "compare",
    "get_status_description",
    "marshal",
]
