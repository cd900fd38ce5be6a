"""Client for the submission-recording endpoint of the web tier."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import cast

import httpx

from grading.errors import ServiceUnavailable
from grading.schemas import GradingReport, SubmissionReceipt

from .base import post_json
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/execute/submit"


class SubmissionRecorder:
    """Records fully passing submissions and reports whether a badge was earned."""

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout_seconds: float = 10.0,
        retry_policy: RetryPolicy | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = client or httpx.Client(base_url=base_url, headers=headers, timeout=timeout_seconds)
        self._retry_policy = retry_policy

    def record(
        self,
        challenge_id: str,
        code: str,
        language: str,
        report: GradingReport,
    ) -> SubmissionReceipt:
        payload = {
            "challengeId": challenge_id,
            "code": code,
            "language": language,
            "results": [result.to_wire() for result in report.results],
            "passed": report.all_passed,
            "executionTime": report.execution_time,
        }
        data = post_json(self._client, SUBMIT_PATH, payload, self._retry_policy)
        if not isinstance(data, Mapping):
            raise ServiceUnavailable("Invalid response type from submission service")
        body = cast(Mapping[str, object], data)
        receipt = SubmissionReceipt(
            success=bool(body.get("success")),
            badge_awarded=bool(body.get("badgeAwarded")),
            message=str(body["message"]) if body.get("message") else None,
        )
        logger.info(
            f"Recorded submission for {challenge_id}: success={receipt.success} "
            f"badge_awarded={receipt.badge_awarded}"
        )
        return receipt
