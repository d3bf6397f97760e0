"""Google Drive document source (Drive API v3 over httpx)."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from contextlib import aclosing
from pathlib import Path
from typing import Any, Protocol

import httpx
import structlog
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import ConfigurationError, Settings
from core.ids import safe_filename
from schemas.documents import SourceFile
from sources.base import DocumentSource, DocumentSourceError
from sources.filetypes import FOLDER_MIME_TYPE, FileTypeFilter

logger = structlog.get_logger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3"
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

FILE_FIELDS = "id,name,mimeType,size,modifiedTime,webViewLink"
LIST_FIELDS = f"nextPageToken,files({FILE_FIELDS})"


class TokenCredentials(Protocol):
    """The slice of google-auth credentials this client relies on."""

    token: str | None

    @property
    def valid(self) -> bool: ...

    def refresh(self, request: Any) -> None: ...


def service_account_credentials(email: str, private_key: str) -> TokenCredentials:
    """Build read-only Drive credentials for a service account."""
    info = {
        "type": "service_account",
        "client_email": email,
        "private_key": private_key,
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=DRIVE_SCOPES)


class GoogleDriveSource(DocumentSource):
    """Lists and downloads supported files under one Drive folder tree."""

    def __init__(
        self,
        folder_id: str,
        credentials: TokenCredentials,
        file_filter: FileTypeFilter | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        page_size: int = 100,
    ) -> None:
        self.folder_id = folder_id
        self.credentials = credentials
        self.file_filter = file_filter or FileTypeFilter()
        self.max_retries = max_retries
        self.page_size = page_size

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls, settings: Settings, folder_id: str | None = None) -> GoogleDriveSource:
        """Create a Drive source from settings.

        Raises:
            ConfigurationError: If credentials or the folder ID are missing
        """
        target = folder_id or settings.drive_folder_id
        if not settings.has_drive or not target:
            raise ConfigurationError(
                "Missing required Google Drive configuration. Set "
                "GOOGLE_DRIVE_SERVICE_ACCOUNT_EMAIL, GOOGLE_DRIVE_PRIVATE_KEY "
                "and GOOGLE_DRIVE_FOLDER_ID."
            )
        credentials = service_account_credentials(
            settings.drive_service_account_email, settings.drive_private_key
        )
        return cls(
            folder_id=target,
            credentials=credentials,
            file_filter=FileTypeFilter.from_settings(settings),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -- auth -------------------------------------------------------------

    async def _refresh_token(self) -> None:
        # google-auth refreshes synchronously
        try:
            await asyncio.to_thread(self.credentials.refresh, Request())
        except GoogleAuthError as e:
            logger.error("Drive token refresh failed", error=str(e))
            raise DocumentSourceError(f"Google Drive authentication failed: {e}") from e

    async def _auth_headers(self, force_refresh: bool = False) -> dict[str, str]:
        if force_refresh or not self.credentials.valid:
            await self._refresh_token()
        return {"Authorization": f"Bearer {self.credentials.token}"}

    # -- requests ---------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        """GET with transient-error retries and a single re-auth on 401."""

        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            reraise=True,
        )
        async def _do_get(force_refresh: bool = False) -> httpx.Response:
            headers = await self._auth_headers(force_refresh)
            return await self._client.get(f"{DRIVE_API}{path}", headers=headers, params=params)

        try:
            response = await _do_get()
            if response.status_code == 401:
                logger.warning("Drive returned 401, refreshing token", path=path)
                response = await _do_get(force_refresh=True)
        except httpx.HTTPError as e:
            raise DocumentSourceError(f"Drive request failed: {e}") from e

        if response.status_code != 200:
            raise DocumentSourceError(
                f"Drive API error {response.status_code}: {response.text[:200]}"
            )
        return response

    async def _list_pages(self, folder_id: str) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield the non-trashed children of a folder one page at a time."""
        page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "q": f"'{folder_id}' in parents and trashed = false",
                "fields": LIST_FIELDS,
                "pageSize": self.page_size,
                "orderBy": "modifiedTime desc",
                "supportsAllDrives": "true",
                "includeItemsFromAllDrives": "true",
            }
            if page_token:
                params["pageToken"] = page_token

            response = await self._get("/files", params)
            data = response.json()
            yield data.get("files", [])

            page_token = data.get("nextPageToken")
            if not page_token:
                return

    # -- DocumentSource ---------------------------------------------------

    async def list_all(self, limit: int | None = None) -> list[SourceFile]:
        """Breadth-first walk of the folder tree.

        The root listing must succeed; an unreadable subfolder is logged and skipped.
        """
        files: list[SourceFile] = []
        pending: deque[str] = deque([self.folder_id])
        visited: set[str] = set()

        while pending:
            folder_id = pending.popleft()
            if folder_id in visited:
                continue
            visited.add(folder_id)

            try:
                async with aclosing(self._list_pages(folder_id)) as pages:
                    async for page in pages:
                        for child in page:
                            mime_type = child.get("mimeType", "")
                            if mime_type == FOLDER_MIME_TYPE:
                                pending.append(child["id"])
                                continue
                            if not self.file_filter.accepts(child.get("name", ""), mime_type):
                                continue

                            files.append(SourceFile.model_validate(child))
                            if limit is not None and len(files) >= limit:
                                return files
            except DocumentSourceError as e:
                if folder_id == self.folder_id:
                    raise
                logger.warning("Skipping unreadable subfolder", folder_id=folder_id, error=str(e))

        logger.info("Listed Drive folder", folder_id=self.folder_id, files=len(files))
        return files

    async def download(self, file: SourceFile, dest_dir: Path) -> Path:
        """Stream a file's bytes into ``dest_dir``."""
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest = dest_dir / f"{file.id}_{safe_filename(file.name)}"

        try:
            headers = await self._auth_headers()
            async with self._client.stream(
                "GET",
                f"{DRIVE_API}/files/{file.id}",
                headers=headers,
                params={"alt": "media", "supportsAllDrives": "true"},
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    raise DocumentSourceError(
                        f"Failed to download {file.name}: HTTP {response.status_code}"
                    )
                with open(dest, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        await asyncio.to_thread(f.write, chunk)
        except httpx.HTTPError as e:
            dest.unlink(missing_ok=True)
            raise DocumentSourceError(f"Failed to download {file.name}: {e}") from e
        except DocumentSourceError:
            dest.unlink(missing_ok=True)
            raise

        return dest

    async def get_metadata(self, file_id: str) -> SourceFile:
        response = await self._get(
            f"/files/{file_id}",
            {"fields": FILE_FIELDS, "supportsAllDrives": "true"},
        )
        return SourceFile.model_validate(response.json())

    async def check_access(self) -> bool:
        try:
            await self._get(f"/files/{self.folder_id}", {"fields": "id,name"})
        except DocumentSourceError as e:
            logger.warning("Drive folder not accessible", folder_id=self.folder_id, error=str(e))
            return False
        return True
