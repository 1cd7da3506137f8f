"""File system endpoints.

These expose the file system facade directly, bypassing the command
parser. Paths may be absolute or relative to the session's current
directory. Errors are raised as ``FileSystemError`` subclasses and turned
into JSON by the handlers registered in ``main``.
"""

from datetime import datetime

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from api.dependencies import TerminalSessionDep
from api.models import ERROR_RESPONSES, OperationResponse, PathRequest
from models.node import NodeType


router = APIRouter(
    prefix="/files",
    tags=["files"],
    responses=ERROR_RESPONSES,
)


class EntryResponse(BaseModel):
    """One row of a directory listing."""

    name: str
    type: NodeType
    size: int
    permissions: str
    modified: datetime


class ListResponse(BaseModel):
    """Response model for a directory listing.

    Attributes:
        path: Absolute path of the listed directory.
        entries: Immediate children sorted by name.
    """

    path: str
    entries: list[EntryResponse]


class ReadResponse(BaseModel):
    """Response model for reading a file as text.

    Attributes:
        path: Absolute path of the file.
        content: Content decoded as UTF-8 (invalid bytes replaced).
        size: Size in bytes of the raw content.
    """

    path: str
    content: str
    size: int


class WriteRequest(BaseModel):
    path: str = Field(..., min_length=1)
    content: str = Field("", description="Text content, stored as UTF-8")


class MkdirRequest(PathRequest):
    parents: bool = Field(False, description="Create missing ancestors")


class DownloadRequest(BaseModel):
    """Request model for downloading a URL into the tree.

    Attributes:
        url: Remote URL to fetch.
        path: Destination file path.
    """

    url: str = Field(..., min_length=1)
    path: str = Field(..., min_length=1)


class DownloadResponse(BaseModel):
    path: str
    size: int


class ExtractRequest(BaseModel):
    """Request model for extracting a zip archive stored in the tree."""

    archive_path: str = Field(..., min_length=1)
    target_dir: str = Field(..., min_length=1)


class ExtractResponse(BaseModel):
    target_dir: str
    created: list[str]


class DeleteResponse(BaseModel):
    path: str
    removed: int


class ValidationResponse(BaseModel):
    """Response model for a tree consistency check."""

    valid: bool
    issues: list[str]


@router.get("/list", response_model=ListResponse)
def list_directory(session: TerminalSessionDep, path: str | None = Query(None)):
    """List a directory; defaults to the current directory."""
    filesystem = session.filesystem
    entries = filesystem.list_directory(path)
    resolved = filesystem.resolve(path) if path else filesystem.get_current_directory()
    return ListResponse(
        path=resolved,
        entries=[EntryResponse(**entry.to_dict()) for entry in entries],
    )


@router.get("/read", response_model=ReadResponse)
def read_file(session: TerminalSessionDep, path: str = Query(..., min_length=1)):
    filesystem = session.filesystem
    content = filesystem.read_file(path)
    return ReadResponse(
        path=filesystem.resolve(path),
        content=content.decode("utf-8", errors="replace"),
        size=len(content),
    )


@router.put("/write", response_model=OperationResponse)
def write_file(request: WriteRequest, session: TerminalSessionDep):
    """Create or overwrite a text file."""
    with session.lock:
        session.filesystem.write_text_file(request.path, request.content)
    return OperationResponse(
        message="File written", path=session.filesystem.resolve(request.path)
    )


@router.post("/mkdir", response_model=OperationResponse)
def make_directory(request: MkdirRequest, session: TerminalSessionDep):
    with session.lock:
        session.filesystem.create_directory(request.path, parents=request.parents)
    return OperationResponse(
        message="Directory created", path=session.filesystem.resolve(request.path)
    )


@router.delete("", response_model=DeleteResponse)
def delete_path(
    session: TerminalSessionDep,
    path: str = Query(..., min_length=1),
    recursive: bool = Query(False),
):
    """Delete a file or directory.

    Without ``recursive`` only files and empty directories can be removed.
    """
    filesystem = session.filesystem
    with session.lock:
        if recursive:
            removed = filesystem.delete_tree(path)
        else:
            filesystem.delete_entry(path)
            removed = 1
    return DeleteResponse(path=filesystem.resolve(path), removed=removed)


@router.post("/download", response_model=DownloadResponse)
def download(request: DownloadRequest, session: TerminalSessionDep):
    with session.lock:
        size = session.filesystem.download_from_url(request.url, request.path)
    return DownloadResponse(path=session.filesystem.resolve(request.path), size=size)


@router.post("/extract", response_model=ExtractResponse)
def extract(request: ExtractRequest, session: TerminalSessionDep):
    """Unpack a zip archive that already exists in the tree."""
    with session.lock:
        created = session.filesystem.extract_archive(
            request.archive_path, request.target_dir
        )
    return ExtractResponse(
        target_dir=session.filesystem.resolve(request.target_dir), created=created
    )


@router.get("/validate", response_model=ValidationResponse)
def validate(session: TerminalSessionDep):
    issues = session.filesystem.validate_state()
    return ValidationResponse(valid=not issues, issues=issues)
