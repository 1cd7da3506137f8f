"""Cursor-aware file system facade.

``FileSystem`` is the API the command handlers and HTTP routes talk to. It
owns the current-directory cursor, turns user-supplied paths into canonical
store keys with ``resolve_path``, and enforces the directory semantics the
store itself does not know about (read-on-directory, empty-directory delete,
ancestor handling).

Parent directories are not validated on write by default: a node written
under a directory that does not exist becomes an orphan, reachable only by
its full path. ``AncestorPolicy`` switches this to auto-creation or strict
rejection without touching any call site.
"""

import io
import logging
import zipfile
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import httpx

from models.errors import (
    AlreadyExistsError,
    ArchiveError,
    DirectoryNotEmptyError,
    DownloadError,
    DownloadTimeoutError,
    IsDirectoryError,
    NotDirectoryError,
    NotFoundError,
    PermissionDeniedError,
)
from models.node import FileNode, DirectoryEntry, NodeType
from models.paths import ROOT, ancestors, parent_path, resolve_path
from models.store import VirtualFileStore

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_TIMEOUT = 30.0


class AncestorPolicy(str, Enum):
    """How writes treat parent directories that do not exist yet.

    - RELAXED: write anyway; the new node may be an orphan.
    - CREATE: create every missing ancestor directory first.
    - STRICT: refuse the write with NotFoundError.
    """

    RELAXED = "relaxed"
    CREATE = "create"
    STRICT = "strict"


class FileSystem:
    """Stateful file system API over a ``VirtualFileStore``.

    Multi-step operations (check-then-delete, extraction) are not
    transactional. A single writer per store is assumed.

    Attributes:
        store: The backing node store.
        ancestor_policy: Parent-directory handling for writes.
        strict_cd: Whether ``change_directory`` validates its target.
        download_timeout: Wall-clock limit for ``download_from_url`` in seconds.

    Example:
        >>> fs = FileSystem(MemoryFileStore())
        >>> fs.store.initialize()
        True
        >>> fs.write_text_file("/tmp/notes.txt", "hello")
        >>> fs.change_directory("/tmp")
        '/tmp'
        >>> [entry.name for entry in fs.list_directory()]
        ['notes.txt']
    """

    def __init__(
        self,
        store: VirtualFileStore,
        ancestor_policy: AncestorPolicy = AncestorPolicy.RELAXED,
        strict_cd: bool = False,
        download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the facade with the cursor at the root.

        Args:
            store: Backing store (should already be initialized).
            ancestor_policy: Parent-directory handling for writes.
            strict_cd: Validate ``change_directory`` targets.
            download_timeout: Timeout in seconds for downloads.
            transport: Custom httpx transport (e.g. MockTransport for testing).
        """
        self.store = store
        self.ancestor_policy = ancestor_policy
        self.strict_cd = strict_cd
        self.download_timeout = download_timeout
        self._transport = transport
        self._current_dir = ROOT

    # ===== Path helpers =====

    def resolve(self, path: str) -> str:
        """Resolve ``path`` against the cursor into a canonical absolute path."""
        return resolve_path(self._current_dir, path)

    def _apply_ancestor_policy(
        self, resolved: str, policy: AncestorPolicy | None = None
    ) -> None:
        """Check or create the ancestors of a node about to be written."""
        policy = policy or self.ancestor_policy

        if policy == AncestorPolicy.RELAXED:
            parent = parent_path(resolved)
            if parent and self.store.get(parent) is None:
                logger.warning(f"Writing orphan node {resolved}: {parent} does not exist")
            return

        now = datetime.now(timezone.utc)
        for ancestor in ancestors(resolved):
            node = self.store.get(ancestor)
            if node is None:
                if policy == AncestorPolicy.STRICT:
                    raise NotFoundError(ancestor)
                self.store.put(FileNode.new_directory(ancestor, now))
                logger.debug(f"Created missing ancestor {ancestor}")
            elif not node.is_directory:
                raise NotDirectoryError(ancestor)

    # ===== Files =====

    def write_file(self, path: str, data: bytes) -> None:
        """Create or overwrite a file.

        ``size`` is set to ``len(data)`` and ``modified`` to now; an
        overwritten file keeps its original ``created`` time.

        Args:
            path: Absolute or cursor-relative path.
            data: Raw file content.

        Raises:
            IsDirectoryError: If a directory already exists at the path.
            NotFoundError: If a parent is missing under the strict policy.
        """
        resolved = self.resolve(path)
        existing = self.store.get(resolved)

        if existing is not None and existing.is_directory:
            raise IsDirectoryError(path)
        if existing is None:
            self._apply_ancestor_policy(resolved)

        node = FileNode.new_file(resolved, bytes(data))
        if existing is not None:
            node.created = existing.created
        self.store.put(node)
        logger.debug(f"Wrote {node.size} bytes to {resolved}")

    def read_file(self, path: str) -> bytes:
        """Return the raw content of a file.

        Raises:
            NotFoundError: If nothing exists at the path.
            IsDirectoryError: If the path is a directory.
        """
        node = self.store.get(self.resolve(path))
        if node is None:
            raise NotFoundError(path)
        if node.is_directory:
            raise IsDirectoryError(path)
        return node.content

    def read_text_file(self, path: str) -> str:
        """Return file content decoded as UTF-8 (undecodable bytes replaced)."""
        return self.read_file(path).decode("utf-8", errors="replace")

    def write_text_file(self, path: str, text: str) -> None:
        """Write ``text`` encoded as UTF-8."""
        self.write_file(path, text.encode("utf-8"))

    def exists(self, path: str) -> bool:
        return self.store.get(self.resolve(path)) is not None

    def get_node(self, path: str) -> FileNode:
        """Return the node at ``path``.

        Raises:
            NotFoundError: If nothing exists at the path.
        """
        node = self.store.get(self.resolve(path))
        if node is None:
            raise NotFoundError(path)
        return node

    # ===== Directories =====

    def list_directory(self, path: str | None = None) -> list[DirectoryEntry]:
        """List the immediate children of a directory.

        Args:
            path: Directory to list; defaults to the cursor.

        Returns:
            One entry per child, sorted by name. Not recursive.

        Raises:
            NotFoundError: If the directory does not exist.
            NotDirectoryError: If the path is a file.
        """
        resolved = self.resolve(path) if path is not None else self._current_dir
        display = path if path is not None else resolved

        node = self.store.get(resolved)
        if node is None:
            raise NotFoundError(display)
        if not node.is_directory:
            raise NotDirectoryError(display)

        return [child.to_entry() for child in self.store.list_children(resolved)]

    def create_directory(self, path: str, parents: bool = False) -> None:
        """Create a directory node with nominal size 4096.

        Creating an existing directory is a no-op.

        Args:
            path: Absolute or cursor-relative path.
            parents: Create missing ancestors regardless of the ancestor policy.

        Raises:
            AlreadyExistsError: If a file exists at the path.
            NotFoundError: If a parent is missing under the strict policy.
        """
        resolved = self.resolve(path)
        existing = self.store.get(resolved)
        if existing is not None:
            if existing.is_directory:
                return
            raise AlreadyExistsError(path)

        self._apply_ancestor_policy(
            resolved, AncestorPolicy.CREATE if parents else None
        )
        self.store.put(FileNode.new_directory(resolved))
        logger.debug(f"Created directory {resolved}")

    def delete_entry(self, path: str) -> None:
        """Delete a file or an empty directory.

        The emptiness check and the delete are two separate store calls.

        Raises:
            NotFoundError: If nothing exists at the path.
            DirectoryNotEmptyError: If the path is a directory with children.
            PermissionDeniedError: If the path is the root.
        """
        resolved = self.resolve(path)
        node = self.store.get(resolved)
        if node is None:
            raise NotFoundError(path)
        if resolved == ROOT:
            raise PermissionDeniedError(path, "Cannot remove root directory")
        if node.is_directory and self.store.list_children(resolved):
            raise DirectoryNotEmptyError(path)

        self.store.delete(resolved)
        logger.debug(f"Deleted {resolved}")

    def delete_tree(self, path: str) -> int:
        """Delete a node and, for directories, everything below it.

        Children are removed before their parent through ``delete_entry``.

        Returns:
            Number of nodes removed.
        """
        node = self.get_node(path)
        if node.path == ROOT:
            raise PermissionDeniedError(path, "Cannot remove root directory")
        removed = 0
        if node.type == NodeType.DIRECTORY:
            for child in self.store.list_children(node.path):
                removed += self.delete_tree(child.path)
        self.delete_entry(node.path)
        return removed + 1

    # ===== Cursor =====

    def change_directory(self, path: str) -> str:
        """Move the cursor and return the new absolute path.

        Without ``strict_cd`` the target is not checked, so the cursor can
        point at a path that does not exist.

        Raises:
            NotFoundError: Under ``strict_cd``, if the target does not exist.
            NotDirectoryError: Under ``strict_cd``, if the target is a file.
        """
        resolved = self.resolve(path)
        if self.strict_cd:
            node = self.store.get(resolved)
            if node is None:
                raise NotFoundError(path)
            if not node.is_directory:
                raise NotDirectoryError(path)

        self._current_dir = resolved
        return self._current_dir

    def get_current_directory(self) -> str:
        return self._current_dir

    # ===== Network and archives =====

    def download_from_url(self, url: str, local_path: str) -> int:
        """Fetch ``url`` with an HTTP GET and store the body at ``local_path``.

        Args:
            url: Remote URL.
            local_path: Destination file path.

        Returns:
            Number of bytes written.

        Raises:
            DownloadTimeoutError: If the request exceeds ``download_timeout``.
            DownloadError: On any transport failure or non-success status.
        """
        try:
            with httpx.Client(
                timeout=self.download_timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = client.get(url)
        except httpx.TimeoutException as e:
            raise DownloadTimeoutError(url, self.download_timeout) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DownloadError(url, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise DownloadError(
                url, response.reason_phrase, status_code=response.status_code
            )

        self.write_file(local_path, response.content)
        logger.info(f"Downloaded {len(response.content)} bytes from {url} to {local_path}")
        return len(response.content)

    def extract_archive(self, archive_path: str, target_dir: str) -> list[str]:
        """Unpack a zip archive stored in the tree into ``target_dir``.

        Each entry becomes a ``create_directory`` or ``write_file`` call at
        ``target_dir/<entry name>``; directories implied by entry names are
        created as well. Entries that would land outside ``target_dir``
        abort the extraction.

        Args:
            archive_path: Path of the zip file inside the virtual tree.
            target_dir: Directory to extract into.

        Returns:
            Absolute paths created or overwritten, in archive order.

        Raises:
            NotFoundError: If the archive does not exist.
            IsDirectoryError: If the archive path is a directory.
            ArchiveError: If the data is not a valid zip or an entry escapes.
        """
        data = self.read_file(archive_path)
        target = self.resolve(target_dir)
        prefix = target if target == ROOT else target + "/"

        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise ArchiveError(archive_path, f"not a zip archive ({e})") from e

        created: list[str] = []
        with archive:
            for info in archive.infolist():
                entry_path = resolve_path(target, info.filename)
                if entry_path == target:
                    continue
                if not entry_path.startswith(prefix):
                    raise ArchiveError(
                        archive_path, f"entry '{info.filename}' escapes {target}"
                    )

                for ancestor in ancestors(entry_path):
                    if (ancestor == target or ancestor.startswith(prefix)) and not self.exists(ancestor):
                        self.create_directory(ancestor)
                        created.append(ancestor)

                if info.is_dir():
                    self.create_directory(entry_path)
                else:
                    try:
                        content = archive.read(info)
                    except (zipfile.BadZipFile, NotImplementedError, RuntimeError) as e:
                        raise ArchiveError(
                            archive_path, f"cannot read entry '{info.filename}' ({e})"
                        ) from e
                    self.write_file(entry_path, content)
                created.append(entry_path)

        logger.info(f"Extracted {len(created)} entries from {archive_path} into {target}")
        return created

    # ===== Inspection =====

    def validate_state(self) -> list[str]:
        """Check tree consistency and return any issues found.

        Checks for:
        - A single root directory with an empty parent
        - Every node's parent field matching its path
        - Orphans (parent missing) and nodes under a file
        - File sizes matching content length

        Returns:
            List of issue descriptions (empty when consistent).
        """
        issues = []

        root = self.store.get(ROOT)
        if root is None:
            issues.append("Root directory is missing")
        elif not root.is_directory:
            issues.append("Root node is not a directory")
        elif root.parent != "":
            issues.append(f"Root parent should be empty, got '{root.parent}'")

        for node in self.store.all_nodes():
            if node.path == ROOT:
                continue
            if node.parent != parent_path(node.path):
                issues.append(
                    f"Node {node.path} has parent '{node.parent}', expected '{parent_path(node.path)}'"
                )
            parent = self.store.get(node.parent)
            if parent is None:
                issues.append(f"Orphan node {node.path}: parent {node.parent} does not exist")
            elif not parent.is_directory:
                issues.append(f"Node {node.path} is under file {node.parent}")
            if node.type == NodeType.FILE and node.size != len(node.content):
                issues.append(
                    f"File {node.path} size {node.size} does not match content length {len(node.content)}"
                )

        return issues

    def get_snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable summary of the file system."""
        nodes = self.store.all_nodes()
        directories = sum(1 for node in nodes if node.is_directory)
        return {
            "current_directory": self._current_dir,
            "node_count": len(nodes),
            "directory_count": directories,
            "file_count": len(nodes) - directories,
            "ancestor_policy": self.ancestor_policy.value,
            "strict_cd": self.strict_cd,
        }
