import pytest

from grading.executors import LocalExecutor, RemoteExecutor
from practice.config import AppConfig, build_grader, build_recorder, load_config, save_config
from remote.services import FakeExecutionService
from remote.submissions import SubmissionRecorder


def test_defaults():
    config = AppConfig()
    assert config.timeout_ms == 5000
    assert config.local_languages == ["python"]
    assert config.execution_service.service_type == "piston"
    assert config.submission_url is None


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "nested" / "grader.yaml"
    config = AppConfig(timeout_ms=2000, submission_url="http://backend.test", log_level="DEBUG")
    save_config(config, path)
    loaded = load_config(path)
    assert loaded.timeout_ms == 2000
    assert loaded.submission_url == "http://backend.test"
    assert loaded.log_level == "DEBUG"


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(empty)

    invalid = tmp_path / "invalid.yaml"
    invalid.write_text("timeout_ms: -1\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(invalid)


def test_api_token_from_environment(monkeypatch):
    monkeypatch.setenv("GRADER_API_TOKEN", "secret")
    assert AppConfig().resolved_api_token() == "secret"
    assert AppConfig(api_token="explicit").resolved_api_token() == "explicit"


def test_build_grader_wires_executors():
    config = AppConfig.from_dict({"timeout_ms": 1200, "execution_service": {"service_type": "fake"}})
    grader = build_grader(config)
    local, remote = grader.executors
    assert isinstance(local, LocalExecutor)
    assert local.timeout_ms == 1200
    assert isinstance(remote, RemoteExecutor)
    assert isinstance(remote.service, FakeExecutionService)
    assert grader.executor_for("java") is remote
    assert grader.executor_for("python") is local


def test_build_recorder():
    assert build_recorder(AppConfig()) is None
    assert isinstance(build_recorder(AppConfig(submission_url="http://backend.test")), SubmissionRecorder)


def test_python_can_be_routed_to_the_remote_service():
    config = AppConfig.from_dict(
        {
            "local_languages": [],
            "remote_languages": ["python"],
            "execution_service": {"service_type": "fake"},
        }
    )
    grader = build_grader(config)
    _, remote = grader.executors
    assert grader.executor_for("python") is remote
