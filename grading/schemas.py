from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TBaseSchema = TypeVar("TBaseSchema", bound="BaseSchema")

Difficulty = Literal["Easy", "Medium", "Hard"]


class BaseSchema(BaseModel):
    def to_json(self) -> str:
        return self.model_dump_json()

    def to_dict(self) -> dict[str, object]:
        return self.model_dump()

    @classmethod
    def from_json(cls: type[TBaseSchema], data: str) -> TBaseSchema:
        return cls.model_validate_json(data)

    @classmethod
    def from_dict(cls: type[TBaseSchema], data: Mapping[str, object]) -> TBaseSchema:
        return cls.model_validate(data)


class WireSchema(BaseSchema):
    """Records exchanged with the web tier, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)


class TestCase(WireSchema):
    model_config = ConfigDict(frozen=True)

    input: str = ""
    expected_output: str
    description: str = ""
    is_hidden: bool = False


class Challenge(WireSchema):
    model_config = ConfigDict(frozen=True)

    slug: str
    title: str
    description: str
    difficulty: Difficulty = "Medium"
    language: str
    starter_code: str
    test_cases: list[TestCase] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    blurb: str | None = None

    @field_validator("slug", "language")
    @classmethod
    def lowercase_key(cls, value: str) -> str:
        return value.strip().lower()


class Submission(WireSchema):
    model_config = ConfigDict(frozen=True)

    code: str
    language: str

    @field_validator("language")
    @classmethod
    def lowercase_language(cls, value: str) -> str:
        return value.strip().lower()


class TestResult(WireSchema):
    test_name: str
    input: str
    expected_output: str
    actual_output: str = ""
    passed: bool
    status_id: int
    status_description: str
    time: str = "0.00"
    memory: int = 0
    error: str | None = None


class GradingReport(WireSchema):
    results: list[TestResult]
    total_tests: int
    passed_tests: int
    all_passed: bool
    execution_time: int = Field(ge=0)

    @classmethod
    def from_results(cls, results: Sequence[TestResult], execution_time: float) -> "GradingReport":
        passed_tests = sum(1 for result in results if result.passed)
        return cls(
            results=list(results),
            total_tests=len(results),
            passed_tests=passed_tests,
            all_passed=passed_tests == len(results),
            execution_time=max(0, int(round(execution_time))),
        )


class SubmissionReceipt(WireSchema):
    success: bool
    badge_awarded: bool = False
    message: str | None = None


class GradingConfig(BaseSchema):
    timeout_ms: int = Field(default=5000, gt=0)
    memory_limit_mb: int = Field(default=256, gt=0)
    local_languages: list[str] = Field(default_factory=lambda: ["python"])
    allowed_modules: list[str] | None = None
    show_progress: bool = False


class ExecutionServiceConfig(BaseSchema):
    service_type: str = "piston"
    base_url: str | None = None
    api_token: str | None = None
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
