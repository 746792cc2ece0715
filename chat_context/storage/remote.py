# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""Remote archive store backed by an HTTP file service.

Endpoints:
    POST {base_url}/archives              -> {"locator_id", "name", "uri"?}
    GET  {base_url}/archives/{locator_id} -> {"content"}
"""

import logging
from typing import Optional

import httpx

from chat_context.core.exceptions import ArchiveStoreError
from chat_context.storage.interfaces import (
    ArchiveLocator,
    ArchiveRequest,
    ArchiveStoreInterface,
)

logger = logging.getLogger(__name__)


class RemoteArchiveStore(ArchiveStoreInterface):
    """Archive store that calls a remote file service.

    Retries are left to the caller; any transport or HTTP error is raised
    as ArchiveStoreError.
    """

    def __init__(
        self,
        base_url: str,
        auth_token: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._http_client

    def _get_headers(self) -> dict[str, str]:
        """Get HTTP headers with authentication."""
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    async def write_archive(self, request: ArchiveRequest) -> ArchiveLocator:
        client = await self._get_client()
        url = f"{self.base_url}/archives"

        try:
            response = await client.post(
                url, json=request.to_dict(), headers=self._get_headers()
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ArchiveStoreError(
                f"Archive upload rejected: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ArchiveStoreError(f"Archive upload failed: {e}") from e

        locator_id = data.get("locator_id") or data.get("file_id")
        if not locator_id:
            raise ArchiveStoreError("Archive service returned no locator")

        logger.info(
            "[RemoteArchiveStore] Archived %s (%d chars) as %s",
            request.name,
            len(request.content),
            locator_id,
        )
        return ArchiveLocator(
            locator_id=str(locator_id),
            name=data.get("name", request.name),
            uri=data.get("uri"),
        )

    async def read_archive(self, locator_id: str) -> Optional[str]:
        client = await self._get_client()
        url = f"{self.base_url}/archives/{locator_id}"

        try:
            response = await client.get(url, headers=self._get_headers())
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json().get("content")
        except httpx.HTTPStatusError as e:
            raise ArchiveStoreError(
                f"Archive read rejected: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ArchiveStoreError(f"Archive read failed: {e}") from e

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
