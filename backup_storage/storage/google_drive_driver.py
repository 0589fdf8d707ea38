"""Google Drive storage driver (Drive v3 REST API over httpx)."""

import io
import json
import logging
import uuid
from typing import BinaryIO, Optional

import httpx

from backup_storage.storage.base import (
    BaseStorageDriver,
    SaveContext,
    StorageConnectionError,
    StorageError,
)

TOKEN_URL = "https://oauth2.googleapis.com/token"
FILES_URL = "https://www.googleapis.com/drive/v3/files"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DEFAULT_FOLDER_NAME = "backups"
REQUEST_TIMEOUT = 60.0


class GoogleDriveStorageDriver(BaseStorageDriver):
    """Google Drive storage driver.

    Files are stored by id in one folder (``folder_name``, default
    "backups") at the root of the user's drive. Access tokens are obtained
    from the stored refresh token on every operation.

    Configuration (GoogleDriveStorage row):
        client_id: OAuth client id
        client_secret: OAuth client secret (encrypted)
        token_json: OAuth token document with refresh_token (encrypted)
        folder_name: Drive folder (optional)
    """

    def __init__(self, config, encryptor):
        super().__init__(config, encryptor)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.folder_name = config.folder_name or DEFAULT_FOLDER_NAME

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        try:
            token = json.loads(self._decrypt(self.config.token_json))
        except ValueError as e:
            raise StorageError(f"Invalid Google Drive token: {e}") from e

        response = await client.post(
            TOKEN_URL,
            data={
                "client_id": self.config.client_id,
                "client_secret": self._decrypt(self.config.client_secret),
                "refresh_token": token.get("refresh_token", ""),
                "grant_type": "refresh_token",
            },
        )
        response.raise_for_status()
        return response.json()["access_token"]

    async def _authorize(self, client: httpx.AsyncClient) -> None:
        token = await self._access_token(client)
        client.headers["Authorization"] = f"Bearer {token}"

    async def _find(self, client: httpx.AsyncClient, query: str) -> Optional[str]:
        response = await client.get(
            FILES_URL,
            params={"q": query, "fields": "files(id)", "pageSize": 1, "spaces": "drive"},
        )
        response.raise_for_status()
        files = response.json().get("files", [])
        return files[0]["id"] if files else None

    async def _folder_id(self, client: httpx.AsyncClient, create: bool) -> Optional[str]:
        folder_id = await self._find(
            client,
            f"name = '{self.folder_name}' and mimeType = '{FOLDER_MIME_TYPE}' "
            "and 'root' in parents and trashed = false",
        )
        if folder_id or not create:
            return folder_id

        response = await client.post(
            FILES_URL,
            json={"name": self.folder_name, "mimeType": FOLDER_MIME_TYPE, "parents": ["root"]},
            params={"fields": "id"},
        )
        response.raise_for_status()
        return response.json()["id"]

    async def _file_id(self, client: httpx.AsyncClient, file_id: uuid.UUID) -> Optional[str]:
        folder_id = await self._folder_id(client, create=False)
        if not folder_id:
            return None
        return await self._find(
            client, f"name = '{file_id}' and '{folder_id}' in parents and trashed = false"
        )

    async def save_file(self, ctx: SaveContext, file_id: uuid.UUID, stream: BinaryIO) -> None:
        ctx.raise_if_cancelled()

        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                await self._authorize(client)
                folder_id = await self._folder_id(client, create=True)
                existing_id = await self._file_id(client, file_id)

                # Resumable session, then a single PUT with the whole body
                if existing_id:
                    session = await client.patch(
                        f"{UPLOAD_URL}/{existing_id}", params={"uploadType": "resumable"}, json={}
                    )
                else:
                    session = await client.post(
                        UPLOAD_URL,
                        params={"uploadType": "resumable"},
                        json={"name": str(file_id), "parents": [folder_id]},
                    )
                session.raise_for_status()

                response = await client.put(session.headers["Location"], content=stream.read())
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to upload {file_id} to Google Drive: {e}") from e

        self.logger.debug(f"Uploaded {file_id} to Google Drive folder {self.folder_name}")

    async def get_file(self, file_id: uuid.UUID) -> BinaryIO:
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                await self._authorize(client)
                drive_id = await self._file_id(client, file_id)
                if not drive_id:
                    raise FileNotFoundError(f"File not found: {file_id}")

                response = await client.get(f"{FILES_URL}/{drive_id}", params={"alt": "media"})
                response.raise_for_status()
                return io.BytesIO(response.content)
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to download {file_id} from Google Drive: {e}") from e

    async def delete_file(self, file_id: uuid.UUID) -> None:
        """Delete the file. A missing file is not an error."""
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                await self._authorize(client)
                drive_id = await self._file_id(client, file_id)
                if not drive_id:
                    return

                response = await client.delete(f"{FILES_URL}/{drive_id}")
                if response.status_code != 404:
                    response.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to delete {file_id} from Google Drive: {e}") from e

    async def test_connection(self) -> None:
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                await self._authorize(client)
                await self._folder_id(client, create=True)
        except (httpx.HTTPError, StorageError) as e:
            raise StorageConnectionError(f"Failed to connect to Google Drive: {e}") from e
