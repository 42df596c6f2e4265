"""
Avatar blob store - Supabase-compatible Storage REST API over httpx

Operations used by the word service:
    upload(path, data, content_type)
    public_url(path)
    delete(path)

Paths are relative to the configured bucket. Imported rows may store a full
avatar URL instead of a path; public_url() passes those through unchanged.
"""
import logging
from typing import Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class BlobStoreError(Exception):
    """Storage request failed or returned a non-2xx status"""


def is_absolute_url(value: Optional[str]) -> bool:
    return bool(value) and value.lower().startswith(('http://', 'https://'))


class BlobStore:
    """
    Storage client for avatar images.

    Usage:
        store = BlobStore(base_url, service_key, bucket="avatars")
        await store.upload("ab12/av_x5b8r2yj.png", data, "image/png")
        url = store.public_url("ab12/av_x5b8r2yj.png")
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str = "avatars",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> 'BlobStore':
        return cls(
            base_url=settings.storage_url,
            service_key=settings.storage_service_key,
            bucket=settings.storage_bucket,
            timeout=settings.storage_timeout,
        )

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def _object_url(self, path: str) -> str:
        return f"{self.base_url}/object/{self.bucket}/{quote(path.lstrip('/'))}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """
        Upload a blob.

        Returns:
            The stored path

        Raises:
            BlobStoreError: request failed or storage rejected the upload
        """
        headers = self._headers()
        headers["Content-Type"] = content_type
        headers["x-upsert"] = "false"

        try:
            async with self._client() as client:
                response = await client.post(self._object_url(path), content=data, headers=headers)
        except httpx.HTTPError as e:
            raise BlobStoreError(f"upload of {path} failed: {e}") from e

        if response.status_code >= 300:
            raise BlobStoreError(f"upload of {path} failed: {response.status_code} {response.text[:200]}")

        logger.info(f"Uploaded avatar {path} ({len(data)} bytes)")
        return path

    def public_url(self, path: Optional[str]) -> Optional[str]:
        """Public URL for a stored path (None stays None)"""
        if not path:
            return None
        if is_absolute_url(path):
            return path
        return f"{self.base_url}/object/public/{self.bucket}/{quote(path.lstrip('/'))}"

    async def delete(self, path: str) -> None:
        """
        Delete a blob. A missing object counts as deleted.

        Raises:
            BlobStoreError: request failed
        """
        if is_absolute_url(path):
            return

        try:
            async with self._client() as client:
                response = await client.delete(self._object_url(path), headers=self._headers())
        except httpx.HTTPError as e:
            raise BlobStoreError(f"delete of {path} failed: {e}") from e

        if response.status_code >= 300 and response.status_code != 404:
            raise BlobStoreError(f"delete of {path} failed: {response.status_code}")

        logger.info(f"Deleted avatar {path}")
