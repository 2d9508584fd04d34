"""HTTP transport for the BigQuery v2 REST API.

Wraps a ``google.auth`` ``AuthorizedSession``.  Errors are raised as
``google.api_core.exceptions`` HTTP exceptions and are never retried here.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote, urlencode

import google.auth
import requests
from google.api_core import exceptions
from google.auth.credentials import AnonymousCredentials
from google.auth.transport.requests import AuthorizedSession
from google.resumable_media import InvalidResponse, RetryStrategy
from google.resumable_media.requests import MultipartUpload

from bq_jobs.config import DEFAULT_API_ROOT, DEFAULT_TIMEOUT, ApiConfig

logger = logging.getLogger(__name__)

SCOPES = (
    "https://www.googleapis.com/auth/bigquery",
    "https://www.googleapis.com/auth/cloud-platform",
)


def _decode(response: requests.Response) -> dict[str, Any]:
    if not 200 <= response.status_code < 300:
        raise exceptions.from_http_response(response)
    return response.json()


class Transport:
    """Issues ``jobs.insert`` requests against a BigQuery endpoint.

    Args:
        session: Pre-built authorised session.  When omitted, one is
            created on first use from application default credentials
            (or anonymous credentials for an emulator).
        root: API root, e.g. ``https://bigquery.googleapis.com``.
        timeout: Per-request timeout in seconds.
        emulator: Use anonymous credentials when building the session.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        root: str = DEFAULT_API_ROOT,
        timeout: float = DEFAULT_TIMEOUT,
        emulator: bool = False,
    ) -> None:
        self._session = session
        self.root = root.rstrip("/")
        self.timeout = timeout
        self.emulator = emulator

    @classmethod
    def from_config(cls, config: ApiConfig) -> Transport:
        return cls(root=config.root, timeout=config.timeout, emulator=config.emulator)

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = self._build_session()
        return self._session

    def _build_session(self) -> requests.Session:
        if self.emulator:
            credentials = AnonymousCredentials()
        else:
            credentials, _ = google.auth.default(scopes=SCOPES)
        return AuthorizedSession(credentials)

    def jobs_url(self, billing: str, *, upload: bool = False) -> str:
        """Return the ``jobs`` collection URL for the *billing* project."""
        prefix = "/upload" if upload else ""
        project = quote(billing, safe="")
        return f"{self.root}{prefix}/bigquery/v2/projects/{project}/jobs"

    def post(
        self,
        url: str,
        body: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST a JSON *body* and return the decoded response.

        Raises:
            google.api_core.exceptions.GoogleAPICallError: On a non-2xx
                response.
        """
        logger.debug("POST %s params=%s", url, params)
        response = self.session.post(
            url, json=body, params=params, timeout=self.timeout
        )
        return _decode(response)

    def upload(
        self,
        url: str,
        metadata: dict[str, Any],
        data: bytes,
        content_type: str,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send a ``multipart/related`` upload of *metadata* plus *data*.

        The first part carries *metadata* as JSON, the second carries
        *data* with the given *content_type*.

        Raises:
            google.api_core.exceptions.GoogleAPICallError: On a non-2xx
                response.
        """
        query = {"uploadType": "multipart", **(params or {})}
        upload_url = f"{url}?{urlencode(query)}"
        logger.debug("UPLOAD %s (%d bytes)", upload_url, len(data))

        upload = MultipartUpload(upload_url)
        # jobs.insert without a jobId is not idempotent: a retry would
        # submit a second load job.
        upload._retry_strategy = RetryStrategy(max_retries=0)
        try:
            response = upload.transmit(
                self.session, data, metadata, content_type, timeout=self.timeout
            )
        except InvalidResponse as exc:
            raise exceptions.from_http_response(exc.response) from exc
        return _decode(response)
