"""
StorageClient - Supabase Storage REST API over httpx.

One bucket, service-role credentials. Covers exactly what the memorial
pipeline needs: upload, recursive list, public URL, signed URLs, batch remove,
and mapping any owned-bucket URL back to its stable object path.

Usage:
    async with httpx.AsyncClient(timeout=30.0) as http:
        storage = StorageClient(
            base_url="https://xyz.supabase.co",
            service_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
            bucket="memorial_images",
            http_client=http,
        )
        path = await storage.upload("abc.jpg", data, "image/jpeg", upsert=True)
        storage.get_public_url(path)
        # https://xyz.supabase.co/storage/v1/object/public/memorial_images/abc.jpg
"""
import logging
from typing import Dict, List, Optional
from urllib.parse import quote, unquote, urlparse

import httpx

logger = logging.getLogger(__name__)

# Page size for object listing (Supabase caps a single list call)
LIST_PAGE_SIZE = 1000

# URL path forms under /storage/v1/object/ that address a single object
OBJECT_URL_MODES = ('public', 'sign', 'authenticated')


class StorageError(Exception):
    """A storage API call returned a non-success response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StorageClient:
    """
    Thin async client for one Supabase Storage bucket.

    The httpx client is owned by the caller so one connection pool can be
    shared with image fetching.
    """

    def __init__(self, base_url: str, service_key: str, bucket: str, http_client: httpx.AsyncClient):
        self.base_url = base_url.rstrip('/')
        self.bucket = bucket
        self.http = http_client
        self.headers = {
            'Authorization': f'Bearer {service_key}',
            'apikey': service_key,
        }
        self._host = urlparse(self.base_url).netloc.lower()

    # =========================================================================
    # URL HELPERS (no I/O)
    # =========================================================================

    def _object_url(self, *parts: str) -> str:
        return '/'.join([f"{self.base_url}/storage/v1/object", *parts])

    def get_public_url(self, path: str) -> str:
        """Stable public URL for an object path"""
        return self._object_url('public', self.bucket, quote(path, safe='/'))

    def path_from_url(self, url: Optional[str]) -> Optional[str]:
        """
        Map an owned-bucket URL (public, signed, or authenticated form) to its
        object path. Returns None for anything else, including external hosts.
        """
        if not url:
            return None

        parsed = urlparse(url)
        if parsed.netloc.lower() != self._host:
            return None

        for mode in OBJECT_URL_MODES:
            prefix = f"/storage/v1/object/{mode}/{self.bucket}/"
            if parsed.path.startswith(prefix):
                path = unquote(parsed.path[len(prefix):])
                return path or None

        return None

    def is_owned(self, url: Optional[str]) -> bool:
        return self.path_from_url(url) is not None

    # =========================================================================
    # API CALLS
    # =========================================================================

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str):
        if response.is_success:
            return
        try:
            body = response.json()
            detail = body.get('message') or body.get('error') or response.text
        except ValueError:
            detail = response.text
        raise StorageError(f"Storage {action} failed ({response.status_code}): {detail}", response.status_code)

    async def upload(self, path: str, data: bytes, content_type: str, upsert: bool = False) -> str:
        """
        Upload bytes to path.

        Returns:
            The stored object path
        """
        response = await self.http.post(
            self._object_url(self.bucket, quote(path, safe='/')),
            content=data,
            headers={
                **self.headers,
                'Content-Type': content_type,
                'x-upsert': 'true' if upsert else 'false',
            },
        )
        self._raise_for_status(response, f"upload of {path}")
        return path

    async def list(self, prefix: str = "") -> List[str]:
        """
        List every object path under prefix, descending into folders.

        Folder placeholders (entries without an id) are not returned.
        """
        paths = []
        offset = 0
        while True:
            response = await self.http.post(
                self._object_url('list', self.bucket),
                json={
                    'prefix': prefix,
                    'limit': LIST_PAGE_SIZE,
                    'offset': offset,
                    'sortBy': {'column': 'name', 'order': 'asc'},
                },
                headers=self.headers,
            )
            self._raise_for_status(response, "list")
            entries = response.json()

            for entry in entries:
                full_path = f"{prefix}/{entry['name']}" if prefix else entry['name']
                if entry.get('id') is None:
                    paths.extend(await self.list(full_path))
                else:
                    paths.append(full_path)

            if len(entries) < LIST_PAGE_SIZE:
                break
            offset += LIST_PAGE_SIZE

        return paths

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        """Time-limited URL for one object"""
        response = await self.http.post(
            self._object_url('sign', self.bucket, quote(path, safe='/')),
            json={'expiresIn': ttl_seconds},
            headers=self.headers,
        )
        self._raise_for_status(response, f"signing of {path}")
        return f"{self.base_url}/storage/v1{response.json()['signedURL']}"

    async def create_signed_urls(self, paths: List[str], ttl_seconds: int) -> List[Dict]:
        """
        Time-limited URLs for many objects in one call.

        Returns:
            [{'path': ..., 'signedURL': <absolute url or None>, 'error': <str or None>}]
        """
        response = await self.http.post(
            self._object_url('sign', self.bucket),
            json={'expiresIn': ttl_seconds, 'paths': paths},
            headers=self.headers,
        )
        self._raise_for_status(response, "batch signing")

        results = []
        for item in response.json():
            signed = item.get('signedURL')
            results.append({
                'path': item.get('path'),
                'signedURL': f"{self.base_url}/storage/v1{signed}" if signed else None,
                'error': item.get('error'),
            })
        return results

    async def remove(self, paths: List[str]) -> List[str]:
        """
        Delete objects in one call.

        Returns:
            Paths reported as removed
        """
        response = await self.http.request(
            'DELETE',
            self._object_url(self.bucket),
            json={'prefixes': paths},
            headers=self.headers,
        )
        self._raise_for_status(response, "remove")
        removed = []
        for item in response.json():
            name = item.get('name')
            if name:
                removed.append(name)
        return removed
