"""API client for Box."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from .config import config
from .exceptions import (
    BoxAPIError,
    BoxAuthenticationError,
    BoxConfigError,
    BoxInvalidResponseError,
    BoxNetworkError,
    BoxNotFoundError,
    BoxPermissionError,
    BoxRateLimitError,
)
from .utils import DEFAULT_CHUNK_SIZE, DEFAULT_PAGE_SIZE, parse_retry_after

logger = logging.getLogger(__name__)

FOLDER_FIELDS = "id,name,type,item_collection"
ITEM_FIELDS = "id,name,type,size"


class BoxClient:
    """Client for the parts of the Box API needed to mirror folders.

    The client never retries: every failure is raised to the caller, which
    decides whether a rate limit is worth waiting for.
    """

    def __init__(
        self,
        access_token: str | None = None,
        api_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize Box API client.

        Args:
            access_token: Optional access token (uses config if not provided)
            api_url: Optional API URL (uses config if not provided)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport (used by tests)
        """
        self.access_token = access_token or config.access_token
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.timeout = timeout
        self._transport = transport

        if not self.access_token:
            raise BoxConfigError(
                "Access token not configured. "
                "Please set BOX_ACCESS_TOKEN environment variable."
            )

        self._client: httpx.Client | None = None
        # root threads share one client; creation and close must not race
        self._client_lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        client = self._client
        if client is not None and not client.is_closed:
            return client
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.Client(
                    headers={"Authorization": f"Bearer {self.access_token}"},
                    timeout=httpx.Timeout(self.timeout),
                    follow_redirects=True,
                    transport=self._transport,
                )
            return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        with self._client_lock:
            if self._client is not None and not self._client.is_closed:
                self._client.close()
            self._client = None

    def __enter__(self) -> BoxClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _error_from_response(self, response: httpx.Response) -> BoxAPIError:
        """Map an error response to the matching exception.

        Args:
            response: The failed HTTP response

        Returns:
            Exception describing the failure (not raised)
        """
        status_code = response.status_code
        headers = dict(response.headers)

        if status_code == 401:
            return BoxAuthenticationError(
                "Invalid access token or unauthorized access",
                status_code=status_code,
                headers=headers,
            )
        elif status_code == 403:
            return BoxPermissionError(
                "Access forbidden - check your permissions",
                status_code=status_code,
                headers=headers,
            )
        elif status_code == 404:
            return BoxNotFoundError(
                "Resource not found", status_code=status_code, headers=headers
            )
        elif status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            return BoxRateLimitError(
                "Rate limit exceeded",
                status_code=status_code,
                headers=headers,
                retry_after=retry_after,
            )

        error_msg = f"API request failed with status {status_code}"
        try:
            if response.content:
                error_data = response.json()
                if isinstance(error_data, dict):
                    msg = error_data.get("message") or error_data.get("code")
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except (ValueError, httpx.ResponseNotRead):
            # Body is not JSON (or was streamed); keep the status-based message
            pass
        return BoxAPIError(error_msg, status_code=status_code, headers=headers)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            BoxAPIError: If the request fails
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        client = self._get_client()

        try:
            response = client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise BoxNetworkError(f"Network error: {e}") from e

        if response.is_error:
            raise self._error_from_response(response)

        content_type = response.headers.get("Content-Type", "")
        if response.content and "application/json" not in content_type:
            raise BoxInvalidResponseError(
                f"Unexpected response type: {content_type}",
                status_code=response.status_code,
                headers=dict(response.headers),
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise BoxInvalidResponseError(
                "Invalid JSON response from server",
                status_code=response.status_code,
                headers=dict(response.headers),
            ) from e

    # =========================
    # Folder Operations
    # =========================

    def get_folder(
        self,
        folder_id: str,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Any:
        """Get a folder with one page of its items.

        Args:
            folder_id: Box folder ID ("0" is the account root)
            offset: Offset of the first item in the embedded item collection
            limit: Maximum number of items in the embedded item collection

        Returns:
            Folder object with ``name`` and ``item_collection``
        """
        params = {"offset": offset, "limit": limit, "fields": FOLDER_FIELDS}
        return self._request("GET", f"/folders/{folder_id}", params=params)

    def get_folder_items(
        self,
        folder_id: str,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Any:
        """Get one page of the items in a folder.

        Args:
            folder_id: Box folder ID
            offset: Offset of the first item to return
            limit: Maximum number of items to return (Box caps this at 1000)

        Returns:
            Item collection with ``entries``, ``offset``, ``limit`` and
            ``total_count``
        """
        params = {"offset": offset, "limit": limit, "fields": ITEM_FIELDS}
        return self._request("GET", f"/folders/{folder_id}/items", params=params)

    # =========================
    # Download Operations
    # =========================

    @contextmanager
    def open_read_stream(
        self,
        file_id: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: float = 60.0,
    ) -> Iterator[Iterator[bytes]]:
        """Open a download stream for a file.

        Usage::

            with client.open_read_stream(file_id) as chunks:
                for chunk in chunks:
                    ...

        Args:
            file_id: Box file ID
            chunk_size: Size of the byte chunks yielded
            timeout: Request timeout in seconds (default: 60)

        Yields:
            Iterator over the file content in chunks

        Raises:
            BoxAPIError: If the download request fails
        """
        url = f"{self.api_url}/files/{file_id}/content"
        client = self._get_client()

        try:
            with client.stream("GET", url, timeout=timeout) as response:
                if response.is_error:
                    response.read()
                    raise self._error_from_response(response)
                yield response.iter_bytes(chunk_size=chunk_size)
        except httpx.RequestError as e:
            raise BoxNetworkError(f"Network error during download: {e}") from e
