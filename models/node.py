"""File system node models."""

import base64
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator

from models.paths import ROOT, base_name, parent_path

DIRECTORY_SIZE = 4096
FILE_PERMISSIONS = "-rw-r--r--"
DIRECTORY_PERMISSIONS = "drwxr-xr-x"


class NodeType(str, Enum):
    """Kind of file system entry."""

    FILE = "file"
    DIRECTORY = "directory"


class FileNode(BaseModel):
    """One record in the virtual file store.

    Nodes are keyed by their canonical absolute ``path``. Content is kept as
    raw bytes in memory and serialized as base64 in JSON so binary files
    (downloads, archives) survive a round trip through a persisted image.

    Args:
        path: Canonical absolute path, unique store key.
        type: Whether this node is a file or a directory.
        content: Raw file bytes (always empty for directories).
        permissions: Display-only permission string, never enforced.
        size: Byte length of content for files, 4096 for directories.
        created: When the node was first created.
        modified: When the node was last written.
        parent: Absolute path of the containing directory ("" for root).
    """

    path: str = Field(description="Canonical absolute path, unique store key")
    type: NodeType = Field(description="File or directory")
    content: bytes = Field(default=b"", description="Raw file bytes")
    permissions: str = Field(description="Display-only permission string")
    size: int = Field(ge=0, description="Content length, or 4096 for directories")
    created: datetime = Field(description="Creation time")
    modified: datetime = Field(description="Last modification time")
    parent: str = Field(description="Absolute path of the containing directory")

    @field_validator("content", mode="before")
    @classmethod
    def decode_content(cls, value: Any) -> Any:
        """Accept base64 text for content, as written by ``serialize_content``."""
        if isinstance(value, str):
            return base64.b64decode(value)
        return value

    @field_serializer("content", when_used="json")
    def serialize_content(self, content: bytes) -> str:
        """Encode content as base64 text for JSON output."""
        return base64.b64encode(content).decode("ascii")

    @classmethod
    def new_file(cls, path: str, content: bytes, now: datetime | None = None) -> "FileNode":
        """Build a file node at a canonical path with ``size`` derived from content."""
        now = now or datetime.now(timezone.utc)
        return cls(
            path=path,
            type=NodeType.FILE,
            content=content,
            permissions=FILE_PERMISSIONS,
            size=len(content),
            created=now,
            modified=now,
            parent=parent_path(path),
        )

    @classmethod
    def new_directory(cls, path: str, now: datetime | None = None) -> "FileNode":
        """Build a directory node at a canonical path."""
        now = now or datetime.now(timezone.utc)
        return cls(
            path=path,
            type=NodeType.DIRECTORY,
            content=b"",
            permissions=DIRECTORY_PERMISSIONS,
            size=DIRECTORY_SIZE,
            created=now,
            modified=now,
            parent=parent_path(path),
        )

    @property
    def name(self) -> str:
        """Last path segment, "/" for the root."""
        return base_name(self.path) or ROOT

    @property
    def is_directory(self) -> bool:
        return self.type == NodeType.DIRECTORY

    def to_entry(self) -> "DirectoryEntry":
        """Convert this node to a directory listing row."""
        return DirectoryEntry(
            name=self.name,
            type=self.type,
            size=self.size,
            permissions=self.permissions,
            modified=self.modified,
        )


class DirectoryEntry(BaseModel):
    """A single row returned when listing a directory.

    Args:
        name: Last segment of the entry's path.
        type: File or directory.
        size: Size as stored on the node.
        permissions: Display permission string.
        modified: Last modification time.
    """

    name: str
    type: NodeType
    size: int
    permissions: str
    modified: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert this entry to a JSON-friendly dictionary."""
        return {
            "name": self.name,
            "type": self.type.value,
            "size": self.size,
            "permissions": self.permissions,
            "modified": self.modified.isoformat(),
        }
