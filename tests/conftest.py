"""Shared fixtures for grading tests."""

from collections.abc import Callable, Sequence

import pytest

from grading.executors import Executor
from grading.schemas import Challenge, TestCase
from grading.status import Status
from grading.verdict import CaseOutcome


class ScriptedExecutor(Executor):
    """Executor double answering each test case from a function of its input."""

    def __init__(self, answer: Callable[[str], str], languages: Sequence[str] = ("python",)) -> None:
        self.answer = answer
        self.languages = frozenset(languages)
        self.calls: list[tuple[str, str, int]] = []

    def run(self, source_text: str, language: str, test_cases: Sequence[TestCase]) -> list[CaseOutcome]:
        self.calls.append((source_text, language, len(test_cases)))
        outcomes = []
        for index, test_case in enumerate(test_cases):
            try:
                outcomes.append(CaseOutcome(test_case=test_case, index=index, actual_output=self.answer(test_case.input)))
            except Exception as exc:
                outcomes.append(
                    CaseOutcome(test_case=test_case, index=index, status=Status.RUNTIME_ERROR, error=str(exc))
                )
        return outcomes


def make_challenge(
    cases: Sequence[tuple[str, str]],
    language: str = "python",
    slug: str = "py-sample",
    starter_code: str = "def solution():\n    pass\n",
) -> Challenge:
    return Challenge(
        slug=slug,
        title="Sample",
        description="# Sample",
        difficulty="Easy",
        language=language,
        starter_code=starter_code,
        test_cases=[
            TestCase(input=raw_input, expected_output=expected, description=f"case {i + 1}")
            for i, (raw_input, expected) in enumerate(cases)
        ],
    )


@pytest.fixture
def echo_executor() -> ScriptedExecutor:
    return ScriptedExecutor(lambda raw_input: raw_input)


@pytest.fixture
def hello_challenge() -> Challenge:
    return make_challenge([("", "Hello, World!")], slug="py-hello-world")


@pytest.fixture
def challenge_factory() -> Callable[..., Challenge]:
    return make_challenge


@pytest.fixture
def executor_factory() -> type[ScriptedExecutor]:
    return ScriptedExecutor
