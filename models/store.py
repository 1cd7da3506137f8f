"""Virtual file store backends.

The store is a flat key-value map from canonical absolute path to
``FileNode``, plus a free-form ``metadata`` map. It knows nothing about the
current directory or path syntax; that lives in the file-system facade.

Two backends are provided:
- ``MemoryFileStore`` keeps everything in process memory.
- ``JsonFileStore`` additionally rewrites a JSON image on disk after every
  mutation, so the tree survives process restarts.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from models.errors import NotFoundError, StoreCorruptedError
from models.node import FileNode
from models.paths import ROOT

if TYPE_CHECKING:
    from config import Settings

logger = logging.getLogger(__name__)

IMAGE_FORMAT_VERSION = 1
DEFAULT_USERNAME = "cvj"

OS_RELEASE = """PRETTY_NAME="CVJ Terminal OS Rolling"
NAME="CVJ Terminal OS"
VERSION_ID="2024.1"
VERSION="2024.1"
VERSION_CODENAME=cvj-rolling
ID=cvj
ID_LIKE=debian
ANSI_COLOR="1;31"
"""


def seed_directories(username: str) -> list[str]:
    """Return the directories created on first initialization, parents first."""
    return [
        ROOT,
        "/bin",
        "/etc",
        "/home",
        f"/home/{username}",
        "/opt",
        "/usr",
        "/usr/bin",
        "/usr/local",
        "/var",
        "/tmp",
        "/root",
    ]


def passwd_content(username: str) -> str:
    """Return the seeded /etc/passwd text for the given user."""
    return (
        "root:x:0:0:root:/root:/bin/bash\n"
        f"{username}:x:1000:1000:{username},,,:/home/{username}:/bin/bash"
    )


class VirtualFileStore(ABC):
    """Abstract keyed record store for file system nodes.

    Subclasses provide the primitive single-key operations; seeding and
    child listing are implemented once here on top of them. Every write must
    be visible to a subsequent read in the same process.
    """

    @abstractmethod
    def put(self, node: FileNode) -> None:
        """Insert or overwrite the node stored under ``node.path``."""

    @abstractmethod
    def get(self, path: str) -> FileNode | None:
        """Return the node at ``path``, or None when absent."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the node at ``path``.

        Raises:
            NotFoundError: If no node is stored under ``path``.
        """

    @abstractmethod
    def all_nodes(self) -> list[FileNode]:
        """Return every stored node."""

    @abstractmethod
    def get_metadata(self, key: str, default: Any = None) -> Any:
        """Return a metadata value, or ``default`` when the key is unset."""

    @abstractmethod
    def set_metadata(self, key: str, value: Any) -> None:
        """Store a JSON-serializable metadata value."""

    def list_children(self, parent: str) -> list[FileNode]:
        """Return the nodes whose ``parent`` is ``parent``, sorted by path.

        The node at ``parent`` itself is never included, even if it names
        itself as its own parent.
        """
        children = [
            node
            for node in self.all_nodes()
            if node.parent == parent and node.path != parent
        ]
        return sorted(children, key=lambda node: node.path)

    def initialize(self, username: str = DEFAULT_USERNAME) -> bool:
        """Seed the root, standard directories and seed files on first use.

        Safe to call on every start: if the root node already exists nothing
        is written.

        Args:
            username: Name used for the home directory and /etc/passwd.

        Returns:
            True if the store was seeded, False if it was already initialized.
        """
        if self.get(ROOT) is not None:
            logger.debug("Store already initialized, skipping seed")
            return False

        now = datetime.now(timezone.utc)
        for directory in seed_directories(username):
            self.put(FileNode.new_directory(directory, now))

        self.put(FileNode.new_file("/etc/os-release", OS_RELEASE.encode("utf-8"), now))
        self.put(
            FileNode.new_file("/etc/passwd", passwd_content(username).encode("utf-8"), now)
        )

        self.set_metadata("initialized_at", now.isoformat())
        self.set_metadata("seed_user", username)
        logger.info(f"Seeded virtual file system for user '{username}'")
        return True


class MemoryFileStore(VirtualFileStore):
    """Store that lives only in process memory."""

    def __init__(self) -> None:
        self._files: dict[str, FileNode] = {}
        self._metadata: dict[str, Any] = {}

    def put(self, node: FileNode) -> None:
        self._files[node.path] = node

    def get(self, path: str) -> FileNode | None:
        return self._files.get(path)

    def delete(self, path: str) -> None:
        if path not in self._files:
            raise NotFoundError(path)
        del self._files[path]

    def all_nodes(self) -> list[FileNode]:
        return list(self._files.values())

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self._metadata.get(key, default)

    def set_metadata(self, key: str, value: Any) -> None:
        self._metadata[key] = value

    def __len__(self) -> int:
        return len(self._files)


class JsonFileStore(MemoryFileStore):
    """Store persisted to a single JSON image file.

    Image format::

        {
          "version": 1,
          "files": {path: <FileNode as JSON, content base64>},
          "metadata": {key: value}
        }

    The image is loaded once on construction and rewritten after every
    mutation. Writes go to a temporary file in the same directory which then
    replaces the image, so a crash never leaves a half-written image behind.

    Args:
        image_path: Location of the image file. Created on first write.
    """

    def __init__(self, image_path: str) -> None:
        super().__init__()
        self.image_path = image_path
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self.image_path):
            logger.info(f"No store image at {self.image_path}, starting empty")
            return

        try:
            with open(self.image_path, "r", encoding="utf-8") as f:
                document = json.loads(f.read())
            if document.get("version") != IMAGE_FORMAT_VERSION:
                raise ValueError(f"unsupported image version {document.get('version')!r}")
            files = {
                path: FileNode.model_validate(record)
                for path, record in document["files"].items()
            }
            metadata = dict(document.get("metadata", {}))
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise StoreCorruptedError(self.image_path, str(e)) from e

        self._files = files
        self._metadata = metadata
        logger.info(f"Loaded {len(files)} nodes from {self.image_path}")

    def _save(self) -> None:
        document = {
            "version": IMAGE_FORMAT_VERSION,
            "files": {
                path: node.model_dump(mode="json") for path, node in self._files.items()
            },
            "metadata": self._metadata,
        }

        directory = os.path.dirname(os.path.abspath(self.image_path))
        os.makedirs(directory, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".vts-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f)
            os.replace(temp_path, self.image_path)
        except BaseException:
            os.unlink(temp_path)
            raise

    def put(self, node: FileNode) -> None:
        super().put(node)
        self._save()

    def delete(self, path: str) -> None:
        super().delete(path)
        self._save()

    def set_metadata(self, key: str, value: Any) -> None:
        super().set_metadata(key, value)
        self._save()


def create_store(settings: "Settings") -> VirtualFileStore:
    """Build the store backend selected by the settings.

    Args:
        settings: Application settings; ``store_path`` selects the JSON image.

    Returns:
        A ``JsonFileStore`` when ``store_path`` is set, else a ``MemoryFileStore``.
    """
    if settings.store_path:
        return JsonFileStore(settings.store_path)
    return MemoryFileStore()
