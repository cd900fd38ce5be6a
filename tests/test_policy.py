import pytest

from sandbox.policy import SandboxPolicy
from sandbox.protocol import ChildRequest, ChildResponse, ProtocolError, run_submission


def test_import_rules():
    policy = SandboxPolicy()
    assert policy.import_error("math") is None
    assert policy.import_error("collections.abc") is None
    assert "blocked" in policy.import_error("os.path")
    assert "not allowlisted" in policy.import_error("numpy")
    assert "Relative imports" in policy.import_error("helpers", level=1)


def test_with_allowed_overrides_allowlist():
    policy = SandboxPolicy.with_allowed(["json"])
    assert policy.import_error("json") is None
    assert policy.import_error("math") is not None
    assert SandboxPolicy.with_allowed(None) == SandboxPolicy()


def test_restricted_builtins_leave_real_builtins_alone():
    restricted = SandboxPolicy().restricted_builtins()
    with pytest.raises(RuntimeError):
        restricted["open"]("x")
    assert restricted["len"] is len
    assert callable(open)


def test_run_submission_in_process():
    response = run_submission(
        ChildRequest(code="def double(values):\n    return [v * 2 for v in values]\n", entry_point="double", arguments=[[1, 2]])
    )
    assert response.success is True
    assert response.output == "[2, 4]"


def test_run_submission_blocks_imports_in_process():
    response = run_submission(ChildRequest(code="import subprocess\n"))
    assert response.success is False
    assert response.error_type == "ImportError"


def test_run_submission_reports_missing_entry_point():
    response = run_submission(ChildRequest(code="def other():\n    pass\n", entry_point="solution"))
    assert response.error_type == "EntryPointMissing"


def test_request_round_trip_with_defaults():
    request = ChildRequest.from_json('{"code": "x = 1"}')
    assert request.entry_point == "solution"
    assert request.arguments == []
    assert "math" in request.allowed_modules
    assert ChildRequest.from_json(request.to_json()) == request


def test_garbage_request_becomes_empty_submission():
    assert ChildRequest.from_json("not json").code == ""


def test_response_parsing_errors():
    with pytest.raises(ProtocolError):
        ChildResponse.from_json("not json")
    with pytest.raises(ProtocolError):
        ChildResponse.from_json("[1, 2]")


def test_failed_response_drops_output():
    response = ChildResponse.from_json('{"success": false, "output": "x", "error": "boom", "runtime_ms": 3}')
    assert response.output is None
    assert response.error == "boom"
    assert response.runtime_ms == 3.0
