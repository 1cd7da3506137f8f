"""Exception hierarchy for the virtual file system and package simulation.

Every failure raised by the file-system facade, the store and the package
layer derives from one of the two roots below, so callers (the command
dispatcher, the HTTP exception handlers) can catch a whole family at once.

Exception Hierarchy:
    FileSystemError (base)
    ├── NotFoundError - Path does not exist
    ├── IsDirectoryError - File operation attempted on a directory
    ├── NotDirectoryError - Directory operation attempted on a file
    ├── DirectoryNotEmptyError - Delete attempted on a non-empty directory
    ├── AlreadyExistsError - Directory creation over an existing file
    ├── PermissionDeniedError - Operation refused (e.g. deleting root)
    ├── DownloadError - Network or HTTP status failure
    │   └── DownloadTimeoutError - Request exceeded the download timeout
    ├── ArchiveError - Malformed or unsafe archive
    └── StoreCorruptedError - Persisted image could not be decoded

    PackageError (base)
    ├── PackageNotFoundError - Package unknown to the catalogue
    └── PackageNotInstalledError - Remove/inspect of a package that is not installed

Messages follow shell conventions (``<path>: No such file or directory``) so
the dispatcher can prefix them with the command name and show them verbatim.
"""


class FileSystemError(Exception):
    """Base exception for all virtual file system errors.

    Attributes:
        message: Human-readable, shell-style error description.
        path: The path the failing operation was given (if any).
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class NotFoundError(FileSystemError):
    """No node exists at the requested path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path}: No such file or directory", path=path)


class IsDirectoryError(FileSystemError):
    """A file operation was attempted on a directory node."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path}: Is a directory", path=path)


class NotDirectoryError(FileSystemError):
    """A directory operation was attempted on a file node."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path}: Not a directory", path=path)


class DirectoryNotEmptyError(FileSystemError):
    """Deleting a directory that still has children."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path}: Directory not empty", path=path)


class AlreadyExistsError(FileSystemError):
    """A directory cannot be created because a file already holds the path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path}: File exists", path=path)


class PermissionDeniedError(FileSystemError):
    """The operation is refused regardless of the node state."""

    def __init__(self, path: str, reason: str = "Permission denied") -> None:
        super().__init__(f"{path}: {reason}", path=path)


class DownloadError(FileSystemError):
    """Fetching a remote URL failed.

    Raised for transport failures and for any non-success HTTP status.

    Attributes:
        url: The URL that failed.
        status_code: HTTP status code, when the server answered.
        reason: HTTP reason phrase or transport error text.
    """

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        if status_code is not None:
            message = f"Failed to download {url}: HTTP {status_code}: {reason}"
        else:
            message = f"Failed to download {url}: {reason}"
        super().__init__(message)


class DownloadTimeoutError(DownloadError):
    """The download did not complete within the configured timeout.

    Attributes:
        timeout: The timeout value in seconds.
    """

    def __init__(self, url: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(url, f"timed out after {timeout}s")


class ArchiveError(FileSystemError):
    """The archive could not be decoded or would escape its target directory."""

    def __init__(self, path: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"{path}: {reason}", path=path)


class StoreCorruptedError(FileSystemError):
    """The persisted store image exists but cannot be loaded."""

    def __init__(self, path: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"cannot load store image {path}: {reason}", path=path)


class PackageError(Exception):
    """Base exception for package simulation errors.

    Attributes:
        package: Name of the package involved.
        message: Human-readable error description.
    """

    def __init__(self, package: str, message: str) -> None:
        self.package = package
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class PackageNotFoundError(PackageError):
    """The package is not in any configured repository."""

    def __init__(self, package: str) -> None:
        super().__init__(package, f"Unable to locate package {package}")


class PackageNotInstalledError(PackageError):
    """The package is not currently installed."""

    def __init__(self, package: str) -> None:
        super().__init__(package, f"Package '{package}' is not installed")
