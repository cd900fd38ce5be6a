"""Grader configuration with YAML support."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import Field

from grading.executors import LocalExecutor, RemoteExecutor
from grading.orchestrator import Grader
from grading.schemas import ExecutionServiceConfig, GradingConfig
from remote.retry import RetryPolicy
from remote.services import create_service
from remote.submissions import SubmissionRecorder
from sandbox.executor import SandboxExecutor

API_TOKEN_ENV = "GRADER_API_TOKEN"


class AppConfig(GradingConfig):
    """Full configuration: grading limits plus the collaborators around them."""

    # Languages delegated to the execution service
    remote_languages: list[str] = Field(default_factory=lambda: ["javascript", "java", "cpp", "c"])
    execution_service: ExecutionServiceConfig = Field(default_factory=ExecutionServiceConfig)

    # Web tier used to record passing submissions
    submission_url: str | None = None
    api_token: str | None = None

    catalog_path: str | None = None
    log_level: str = "INFO"

    def resolved_api_token(self) -> str | None:
        return self.api_token or os.getenv(API_TOKEN_ENV)


def load_config(yaml_path: str | Path) -> AppConfig:
    """Load grader configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        AppConfig instance

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or missing required fields
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")

    try:
        return AppConfig.from_dict(data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: AppConfig, yaml_path: str | Path) -> None:
    """Save grader configuration to YAML file.

    Args:
        config: AppConfig to save
        yaml_path: Path where to save YAML file
    """
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.to_dict()

    with open(yaml_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)


def build_grader(config: AppConfig) -> Grader:
    """Wire the local and remote executors described by the configuration."""
    sandbox = SandboxExecutor(
        memory_limit_mb=config.memory_limit_mb,
        allowed_modules=config.allowed_modules,
    )
    local = LocalExecutor(
        sandbox=sandbox,
        timeout_ms=config.timeout_ms,
        languages=config.local_languages,
        show_progress=config.show_progress,
    )
    service_config = config.execution_service
    if service_config.api_token is None and config.resolved_api_token():
        service_config = service_config.model_copy(update={"api_token": config.resolved_api_token()})
    service = create_service(service_config, RetryPolicy(max_retries=service_config.max_retries))
    remote = RemoteExecutor(service, languages=config.remote_languages)
    return Grader(executors=[local, remote])


def build_recorder(config: AppConfig) -> SubmissionRecorder | None:
    if not config.submission_url:
        return None
    return SubmissionRecorder(
        base_url=config.submission_url,
        api_token=config.resolved_api_token(),
        timeout_seconds=config.execution_service.timeout_seconds,
        retry_policy=RetryPolicy(max_retries=config.execution_service.max_retries),
    )
