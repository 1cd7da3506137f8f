"""File system sub-client for the VTS API.

This module provides FilesClient for the /files endpoints, which operate
on the virtual tree directly without going through the command parser.

This is an internal module. Import from `client` instead.
"""

from datetime import datetime

from pydantic import BaseModel

from client._base import BaseClient
from client.models import OperationResponse


class EntryResponse(BaseModel):
    """One row of a directory listing."""

    name: str
    type: str
    size: int
    permissions: str
    modified: datetime


class ListResponse(BaseModel):
    path: str
    entries: list[EntryResponse]

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]


class ReadResponse(BaseModel):
    path: str
    content: str
    size: int


class DownloadResponse(BaseModel):
    path: str
    size: int


class ExtractResponse(BaseModel):
    target_dir: str
    created: list[str]


class DeleteResponse(BaseModel):
    path: str
    removed: int


class ValidationResponse(BaseModel):
    valid: bool
    issues: list[str]


class FilesClient(BaseClient):
    """Synchronous client for file system endpoints (/files/*).

    Example:
        with VTSClient() as client:
            client.files.write("/tmp/notes.txt", "hello")
            print(client.files.read("/tmp/notes.txt").content)
            print(client.files.list("/tmp").names)
    """

    _BASE_PATH = "/files"

    def list(self, path: str | None = None) -> ListResponse:
        """List a directory (the session's current directory by default).

        Raises:
            NotFoundError: If the directory does not exist.
            ConflictError: If the path is a file.
        """
        data = self._get(f"{self._BASE_PATH}/list", params={"path": path})
        return ListResponse(**data)

    def read(self, path: str) -> ReadResponse:
        """Read a file as UTF-8 text.

        Raises:
            NotFoundError: If the file does not exist.
            ConflictError: If the path is a directory.
        """
        data = self._get(f"{self._BASE_PATH}/read", params={"path": path})
        return ReadResponse(**data)

    def write(self, path: str, content: str) -> OperationResponse:
        data = self._put(f"{self._BASE_PATH}/write", json={"path": path, "content": content})
        return OperationResponse(**data)

    def mkdir(self, path: str, parents: bool = False) -> OperationResponse:
        data = self._post(
            f"{self._BASE_PATH}/mkdir", json={"path": path, "parents": parents}
        )
        return OperationResponse(**data)

    def delete(self, path: str, recursive: bool = False) -> DeleteResponse:
        """Delete a file or directory.

        Raises:
            NotFoundError: If nothing exists at the path.
            ConflictError: If the directory is not empty and ``recursive`` is off.
            APIError: With status 403 when deleting the root.
        """
        data = self._delete(
            self._BASE_PATH, params={"path": path, "recursive": recursive}
        )
        return DeleteResponse(**data)

    def download(self, url: str, path: str) -> DownloadResponse:
        """Have the server fetch ``url`` into the virtual tree.

        Raises:
            ServerError: 502 when the upstream fails, 504 on timeout.
        """
        data = self._post(f"{self._BASE_PATH}/download", json={"url": url, "path": path})
        return DownloadResponse(**data)

    def extract(self, archive_path: str, target_dir: str) -> ExtractResponse:
        data = self._post(
            f"{self._BASE_PATH}/extract",
            json={"archive_path": archive_path, "target_dir": target_dir},
        )
        return ExtractResponse(**data)

    def validate(self) -> ValidationResponse:
        return ValidationResponse(**self._get(f"{self._BASE_PATH}/validate"))
