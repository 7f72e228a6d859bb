# src/tracelog/apis/logs.py
"""Client for the collector's log ingestion endpoint."""

from __future__ import annotations

import httpx
import structlog

from tracelog.apis.base import BaseAPIClient
from tracelog.errors import DeliveryError

logger = structlog.get_logger(__name__)

PUSH_LOGS_PATH = "/api/sdk/v3/log"


class LogsAPI(BaseAPIClient):
    """Pushes newline-delimited serialized records to a log repository.

    Example:
        api = LogsAPI("https://collector.example.com", api_key)
        api.push_logs("repo-123", "trace{id=t1,action=create,data={}}\\n")
    """

    def push_logs(self, repository_id: str, body: str) -> None:
        """Push one chunk of serialized records.

        Args:
            repository_id: Target log repository
            body: Concatenated serialized records, newline-delimited

        Raises:
            DeliveryError: On transport failure, non-2xx status, or an
                error object in the response body
        """
        try:
            response = self._request(
                "POST",
                PUSH_LOGS_PATH,
                params={"id": repository_id},
                content=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise DeliveryError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise DeliveryError(response.text[:500], status_code=response.status_code)

        error = _response_error(response)
        if error is not None:
            raise DeliveryError(error, status_code=response.status_code)


def _response_error(response: httpx.Response) -> str | None:
    """Extract an `error` field from a JSON body, if the collector sent one."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and payload.get("error"):
        error = payload["error"]
        if isinstance(error, dict):
            return str(error.get("message", error))
        return str(error)
    return None
