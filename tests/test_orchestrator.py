import time

import pytest

from grading.errors import UnsafeSubmission, UnsupportedLanguage
from grading.executors import LocalExecutor, RemoteExecutor
from grading.orchestrator import Grader, GradingState, grade, verify_all_tests_passed
from grading.schemas import Submission
from grading.status import Status
from remote.services import FakeExecutionService


def test_hello_world_passes(hello_challenge):
    submission = Submission(code='def hello_world():\n    return "Hello, World!"\n', language="python")
    report = grade(submission, hello_challenge)
    assert report.total_tests == 1
    assert report.passed_tests == 1
    assert report.all_passed is True
    assert report.results[0].status_id == Status.ACCEPTED
    assert verify_all_tests_passed(report)


def test_fizz_buzz_starter_gets_wrong_answer(challenge_factory):
    challenge = challenge_factory([("15", "FizzBuzz")], slug="py-fizzbuzz")
    submission = Submission(code="def fizz_buzz(n):\n    n = int(n)\n    return str(n)\n", language="python")
    report = Grader().grade(submission, challenge)
    result = report.results[0]
    assert result.passed is False
    assert result.status_id == Status.WRONG_ANSWER
    assert result.actual_output == "15"
    assert result.expected_output == "FizzBuzz"
    assert not verify_all_tests_passed(report)


def test_unsafe_submission_is_rejected_before_execution(echo_executor, hello_challenge):
    grader = Grader(executors=[echo_executor])
    submission = Submission(code='def solution():\n    return eval("1")\n', language="python")
    with pytest.raises(UnsafeSubmission):
        grader.grade(submission, hello_challenge)
    assert grader.state == GradingState.REJECTED
    assert echo_executor.calls == []


def test_one_failing_case_does_not_hide_the_others(challenge_factory):
    challenge = challenge_factory([("a", "a"), ("boom", "x"), ("c", "c")])
    code = "def pick(value):\n    if value == 'boom':\n        raise ValueError('boom')\n    return value\n"
    report = Grader().grade(Submission(code=code, language="python"), challenge)
    assert [result.passed for result in report.results] == [True, False, True]
    assert report.results[1].status_id == Status.RUNTIME_ERROR
    assert "ValueError: boom" in report.results[1].error
    assert report.passed_tests == 2
    assert report.all_passed is False


def test_infinite_loop_is_bounded_by_timeout(challenge_factory):
    challenge = challenge_factory([("x", "x")])
    grader = Grader(executors=[LocalExecutor(timeout_ms=500)])
    code = "def spin(value):\n    while True:\n        pass\n"
    start = time.perf_counter()
    report = grader.grade(Submission(code=code, language="python"), challenge)
    elapsed = time.perf_counter() - start
    assert report.results[0].status_id == Status.TIME_LIMIT_EXCEEDED
    assert report.results[0].status_description == "Time Limit Exceeded"
    assert 0.5 <= elapsed < 10


def test_grading_is_deterministic(challenge_factory):
    challenge = challenge_factory([("[1, 2, 3, 4]", "10"), ("[0.1, 0.2]", "0.3")])
    submission = Submission(code="def sum_list(nums):\n    return sum(nums)\n", language="python")
    grader = Grader()
    first = grader.grade(submission, challenge)
    second = grader.grade(submission, challenge)
    assert [r.passed for r in first.results] == [r.passed for r in second.results] == [True, True]
    assert [r.actual_output for r in first.results] == [r.actual_output for r in second.results]


def test_state_reaches_aggregated(echo_executor, challenge_factory):
    grader = Grader(executors=[echo_executor])
    assert grader.state == GradingState.IDLE
    grader.grade(Submission(code="def f(x):\n    return x\n", language="python"), challenge_factory([("1", "1")]))
    assert grader.state == GradingState.AGGREGATED


def test_executor_selected_by_language(echo_executor, challenge_factory):
    remote = RemoteExecutor(FakeExecutionService(outputs={"-5": "5"}))
    grader = Grader(executors=[echo_executor, remote])
    challenge = challenge_factory([("-5", "5")], language="cpp", slug="cpp-absolute")
    report = grader.grade(Submission(code="int main() {}", language="cpp"), challenge)
    assert report.all_passed is True
    assert echo_executor.calls == []


def test_unsupported_language(echo_executor, challenge_factory):
    grader = Grader(executors=[echo_executor])
    with pytest.raises(UnsupportedLanguage):
        grader.grade(Submission(code="puts 1", language="ruby"), challenge_factory([("", "1")], language="ruby"))


def test_crashing_executor_becomes_runtime_errors(executor_factory, challenge_factory):
    def explode(raw_input):
        raise AssertionError("unreachable")

    class CrashingExecutor(executor_factory):
        def run(self, source_text, language, test_cases):
            raise RuntimeError("executor crashed")

    grader = Grader(executors=[CrashingExecutor(explode)])
    report = grader.grade(Submission(code="def f():\n    pass\n", language="python"), challenge_factory([("", "1"), ("", "2")]))
    assert report.total_tests == 2
    assert all(result.status_id == Status.RUNTIME_ERROR for result in report.results)
    assert report.results[0].error == "executor crashed"


def test_empty_challenge_is_all_passed(echo_executor, challenge_factory):
    grader = Grader(executors=[echo_executor])
    report = grader.grade(Submission(code="def f():\n    pass\n", language="python"), challenge_factory([]))
    assert report.total_tests == 0
    assert report.all_passed is True


def test_challenge_language_decides_denylist_and_executor(challenge_factory):
    service = FakeExecutionService()
    grader = Grader(executors=[RemoteExecutor(service, languages=["javascript", "cpp"])])
    challenge = challenge_factory([("", "1")], language="javascript", slug="js-sample")
    with pytest.raises(UnsafeSubmission):
        grader.grade(Submission(code='eval("1")', language="cpp"), challenge)
    assert service.requests == []


def test_mismatched_submission_runs_as_challenge_language(challenge_factory):
    service = FakeExecutionService(outputs={"-5": "5"})
    grader = Grader(executors=[RemoteExecutor(service, languages=["javascript", "cpp"])])
    challenge = challenge_factory([("-5", "5")], language="cpp", slug="cpp-absolute")
    report = grader.grade(Submission(code="int main() {}", language="javascript"), challenge)
    assert report.all_passed is True
    assert service.requests[0]["language"] == "cpp"


def test_regex_solution_is_graded(challenge_factory):
    challenge = challenge_factory([("a1b22", "3")])
    code = "import re\n\ndef count_digits(s):\n    return len(re.compile(r'\\d').findall(s))\n"
    report = Grader().grade(Submission(code=code, language="python"), challenge)
    assert report.all_passed is True
