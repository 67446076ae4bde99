# client.py
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from config import settings
from errors import PollingError, SubmissionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollResponse:
    status_code: int
    body: Any  # dict / list (JSON) or str (text)

    def body_text(self) -> str:
        if isinstance(self.body, str):
            return self.body
        # JSON.stringify 相当。非 ASCII はそのまま表示する
        return json.dumps(self.body, ensure_ascii=False, separators=(",", ":"))


class GreenCloudClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        resource_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.resource_id = resource_id or settings.RESOURCE_ID
        self.session = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            transport=transport,
        )

    def create_job(self, payload: Optional[Dict[str, Any]] = None) -> str:
        """
        Create a processing job and return its id.

        Args:
            payload: JSON body for the creation request (defaults to settings.JOB_PAYLOAD)

        Raises:
            SubmissionError: non-2xx status, non-JSON body or missing id
        """
        body = settings.JOB_PAYLOAD if payload is None else payload
        try:
            resp = self.session.post(f"/gc/{self.resource_id}", json=body)
        except httpx.HTTPError as e:
            raise SubmissionError(f"Initial request failed: {e}") from e

        if not resp.is_success:
            raise SubmissionError(f"Initial request failed with status: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise SubmissionError("Initial response was not valid JSON") from e

        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise SubmissionError("Task ID not provided in the response")

        logger.info("Created job %s", job_id)
        return str(job_id)

    def fetch_result(self, job_id: str) -> PollResponse:
        """
        Fetch the result endpoint once. Status handling is left to the caller.

        Raises:
            PollingError: transport failure or undecodable JSON body
        """
        try:
            resp = self.session.get(f"/gc/{job_id}/result")
            content_type = resp.headers.get("content-type", "")
            if "application/json" in content_type:
                body = resp.json()
            else:
                body = resp.text
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Polling error for job %s: %s", job_id, e)
            raise PollingError() from e

        return PollResponse(status_code=resp.status_code, body=body)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
