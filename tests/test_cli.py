from unittest.mock import MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from grading.schemas import SubmissionReceipt
from practice.cli import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "grader.yaml"
    with open(path, "w") as f:
        yaml.dump({"timeout_ms": 3000, "execution_service": {"service_type": "fake"}}, f)
    return path


def _solution(tmp_path, code):
    path = tmp_path / "solution.py"
    path.write_text(code, encoding="utf-8")
    return str(path)


def test_list_filters_by_language(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "list", "--language", "python"])
    assert result.exit_code == 0
    assert "py-hello-world" in result.output
    assert "js-hello-world" not in result.output


def test_show_hides_hidden_tests(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "show", "py-reverse-string"])
    assert result.exit_code == 0
    assert "1 visible, 1 hidden" in result.output
    assert "'world'" not in result.output
    assert "def reverse_string(s):" in result.output


def test_show_unknown_challenge(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "show", "no-such-challenge"])
    assert result.exit_code == 1
    assert "Challenge not found" in result.output


def test_run_passing_solution(tmp_path, config_file):
    source = _solution(tmp_path, 'def hello_world():\n    return "Hello, World!"\n')
    result = runner.invoke(app, ["--config", str(config_file), "run", "py-hello-world", source])
    assert result.exit_code == 0
    assert "1/1 tests passed" in result.output


def test_run_failing_solution_exits_nonzero(tmp_path, config_file):
    source = _solution(tmp_path, "def fizz_buzz(n):\n    n = int(n)\n    return str(n)\n")
    result = runner.invoke(app, ["--config", str(config_file), "run", "py-fizzbuzz", source])
    assert result.exit_code == 1
    assert "1/4 tests passed" in result.output
    assert "Wrong Answer" in result.output


def test_run_rejects_unsafe_code(tmp_path, config_file):
    source = _solution(tmp_path, 'def hello_world():\n    return eval("1")\n')
    result = runner.invoke(app, ["--config", str(config_file), "run", "py-hello-world", source])
    assert result.exit_code == 1
    assert "Unsafe code detected" in result.output


def test_run_missing_source_file(tmp_path, config_file):
    result = runner.invoke(app, ["--config", str(config_file), "run", "py-hello-world", str(tmp_path / "nope.py")])
    assert result.exit_code == 1
    assert "Source file not found" in result.output


def test_invalid_config_file(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("timeout_ms: -5\n", encoding="utf-8")
    result = runner.invoke(app, ["--config", str(path), "list"])
    assert result.exit_code == 1
    assert "Invalid config" in result.output


def test_submit_blocked_when_tests_fail(tmp_path, config_file):
    source = _solution(tmp_path, "def fizz_buzz(n):\n    return n\n")
    with patch("practice.cli.build_recorder") as build_recorder:
        recorder = MagicMock()
        build_recorder.return_value = recorder
        result = runner.invoke(app, ["--config", str(config_file), "submit", "py-fizzbuzz", source])
    assert result.exit_code == 1
    assert "All tests must pass before submitting!" in result.output
    recorder.record.assert_not_called()


def test_submit_awards_badge(tmp_path, config_file):
    source = _solution(tmp_path, 'def hello_world():\n    return "Hello, World!"\n')
    with patch("practice.cli.build_recorder") as build_recorder:
        recorder = MagicMock()
        recorder.record.return_value = SubmissionReceipt(success=True, badge_awarded=True)
        build_recorder.return_value = recorder
        result = runner.invoke(app, ["--config", str(config_file), "submit", "py-hello-world", source])
    assert result.exit_code == 0
    assert "Badge Earned" in result.output
    assert recorder.record.call_args.kwargs["challenge_id"] == "py-hello-world"


def test_run_remote_challenge_through_fake_service(tmp_path, config_file):
    source = _solution(tmp_path, 'console.log("Hello, World!")\n')
    result = runner.invoke(app, ["--config", str(config_file), "run", "js-hello-world", source])
    # the offline service has no answer table, so the output is empty
    assert result.exit_code == 1
    assert "0/1 tests passed" in result.output


def test_config_values_reach_commands(tmp_path):
    catalog_file = tmp_path / "catalog.yaml"
    catalog_file.write_text(
        yaml.safe_dump(
            [
                {
                    "slug": "py-only-here",
                    "title": "Only Here",
                    "description": "",
                    "language": "python",
                    "starterCode": "def solution():\n    pass\n",
                    "testCases": [{"input": "", "expectedOutput": "x"}],
                }
            ]
        ),
        encoding="utf-8",
    )
    config_path = tmp_path / "grader.yaml"
    config_path.write_text(yaml.safe_dump({"catalog_path": str(catalog_file)}), encoding="utf-8")

    result = runner.invoke(app, ["--config", str(config_path), "list"])
    assert result.exit_code == 0
    assert "py-only-here" in result.output
    assert "py-hello-world" not in result.output
