# src/tracelog/apis/attachments.py
"""Client for signed-URL object storage used by attachments and large logs."""

from __future__ import annotations

import httpx
import structlog

from tracelog.apis.base import API_KEY_HEADER, BaseAPIClient
from tracelog.apis.logs import _response_error
from tracelog.errors import UploadError

logger = structlog.get_logger(__name__)

UPLOAD_URL_PATH = "/api/sdk/v1/log-repositories/attachments/upload-url"

# Large files get more time than regular collector calls
UPLOAD_TIMEOUT_SECONDS = 120.0


class AttachmentAPI(BaseAPIClient):
    """Obtains signed upload URLs and uploads raw bytes to them.

    Example:
        api = AttachmentAPI("https://collector.example.com", api_key)
        url = api.get_upload_url(key, "image/png", len(data))
        api.upload_to_signed_url(url, data, "image/png")
    """

    def get_upload_url(self, key: str, mime_type: str, size: int) -> str:
        """Request a signed URL for uploading one object.

        Raises:
            UploadError: If the collector refuses or cannot be reached
        """
        try:
            response = self._request(
                "GET",
                UPLOAD_URL_PATH,
                params={"key": key, "mimeType": mime_type, "size": str(size)},
            )
        except httpx.HTTPError as e:
            raise UploadError(key, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise UploadError(key, f"upload-url request returned HTTP {response.status_code}")
        error = _response_error(response)
        if error is not None:
            raise UploadError(key, error)

        try:
            url = response.json()["data"]["url"]
        except (ValueError, KeyError, TypeError) as e:
            raise UploadError(key, f"malformed upload-url response: {e}") from e
        if not isinstance(url, str) or not url:
            raise UploadError(key, "upload-url response has no url")
        return url

    def upload_to_signed_url(self, url: str, data: bytes, mime_type: str) -> None:
        """PUT raw bytes to a signed storage URL.

        The collector API key is stripped: the URL belongs to third-party
        storage and carries its own authorization.

        Raises:
            UploadError: On transport failure or non-2xx status
        """
        request = self._client.build_request(
            "PUT",
            url,
            content=data,
            headers={"Content-Type": mime_type},
            timeout=UPLOAD_TIMEOUT_SECONDS,
        )
        del request.headers[API_KEY_HEADER]
        try:
            response = self._send(request)
        except httpx.HTTPError as e:
            raise UploadError(url, f"{type(e).__name__}: {e}") from e
        if not response.is_success:
            raise UploadError(url, f"signed upload returned HTTP {response.status_code}")
        logger.debug("Uploaded to signed URL", mime_type=mime_type, size=len(data))
