"""Authenticated REST call helper shared by REST-backed adapters."""

import json
import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import HttpError

logger = logging.getLogger(__name__)


class RestClient:
    """
    Thin wrapper around a requests session.

    Request bodies are encoded according to the ``Content-Type`` header:
    JSON for ``application/json``, flattened bracketed keys for
    ``multipart/form-data`` (``bytes`` values are sent as file parts), and
    form encoding otherwise. GET parameters go into the query string.
    JSON responses are decoded. Any status >= 400, or a transport failure,
    raises ``HttpError``.
    """

    def __init__(
        self,
        endpoint: str = "",
        headers: Optional[Dict[str, str]] = None,
        retry_config: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = 60.0,
        session: Optional[requests.Session] = None
    ):
        self.endpoint = endpoint.rstrip("/")
        self.headers: Dict[str, str] = {"Content-Type": "application/json"}
        self.headers.update(headers or {})
        self.retry_config = retry_config or {"max_retries": 3, "backoff_factor": 2.0}
        self.timeout = timeout
        self._session = session or self._create_session()

    def close(self) -> None:
        self._session.close()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retries = Retry(
            total=self.retry_config.get("max_retries", 3),
            backoff_factor=self.retry_config.get("backoff_factor", 2.0),
            status_forcelist=[429, 502, 503, 504],
            allowed_methods=["GET", "HEAD", "OPTIONS"],
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    def call(
        self,
        method: str,
        path: str = "",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make an API call.

        Args:
            method: HTTP method
            path: Path relative to the endpoint, or an absolute URL
            headers: Extra headers merged over the client's headers
            params: Request parameters

        Returns:
            Decoded JSON body, text body, or raw bytes

        Raises:
            HttpError: On status >= 400 or transport errors
        """
        method = method.upper()
        merged = {**self.headers, **(headers or {})}
        params = params or {}
        url = path if path.startswith(("http://", "https://")) else f"{self.endpoint}{path}"
        content_type = merged.get("Content-Type", "")

        kwargs: Dict[str, Any] = {"headers": merged, "timeout": self.timeout}

        if method == "GET":
            kwargs["params"] = self.flatten(params) if params else None
        elif content_type.startswith("application/json"):
            kwargs["data"] = json.dumps(params)
        elif content_type.startswith("multipart/form-data"):
            # requests writes the boundary into the header itself.
            merged.pop("Content-Type")
            fields = self.flatten(params)
            kwargs["data"] = {k: v for k, v in fields.items() if not self._is_file(v)}
            kwargs["files"] = {
                k: v if isinstance(v, tuple) else (k, v)
                for k, v in fields.items() if self._is_file(v)
            }
        else:
            kwargs["data"] = self.flatten(params)

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise HttpError(0, str(e)) from e

        body = self._decode(response)

        if response.status_code >= 400:
            raise HttpError(response.status_code, body)

        return body

    def download(self, path: str, headers: Optional[Dict[str, str]] = None) -> bytes:
        """GET a binary body without decoding it."""
        url = path if path.startswith(("http://", "https://")) else f"{self.endpoint}{path}"
        merged = {**self.headers, **(headers or {})}
        merged.pop("Content-Type", None)

        try:
            response = self._session.get(url, headers=merged, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"GET {url} failed: {e}")
            raise HttpError(0, str(e)) from e

        if response.status_code >= 400:
            raise HttpError(response.status_code, self._decode(response))

        return response.content

    @staticmethod
    def _is_file(value: Any) -> bool:
        """A ``bytes`` value or a ``(filename, bytes)`` tuple is a file part."""
        return isinstance(value, bytes) or (
            isinstance(value, tuple) and len(value) == 2 and isinstance(value[1], bytes)
        )

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        response_type = response.headers.get("Content-Type", "").split(";")[0].strip()

        if response_type == "application/json":
            try:
                return response.json()
            except ValueError:
                return response.text
        if response_type.startswith("text/") or not response_type:
            return response.text
        return response.content

    @classmethod
    def flatten(cls, data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        """
        Flatten nested params into bracketed keys.

        ``{"a": {"b": 1}, "c": [2, 3]}`` becomes
        ``{"a[b]": 1, "c[0]": 2, "c[1]": 3}``. Tuples are left intact.
        """
        output: Dict[str, Any] = {}

        for key, value in data.items():
            final_key = f"{prefix}[{key}]" if prefix else str(key)

            if isinstance(value, dict):
                output.update(cls.flatten(value, final_key))
            elif isinstance(value, list):
                output.update(cls.flatten(dict(enumerate(value)), final_key))
            else:
                output[final_key] = value

        return output
