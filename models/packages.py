"""Simulated package management.

Nothing here installs real software. "Installing" a package writes a small
bash stub into the virtual tree and records the package in the store's
metadata; the catalogue below is static data used for ``apt show`` and the
packages API.
"""

import io
import logging
import re
import zipfile
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from models.errors import (
    NotFoundError,
    PackageNotFoundError,
    PackageNotInstalledError,
)
from models.filesystem import FileSystem

logger = logging.getLogger(__name__)

BIN_DIR = "/usr/bin"
LOCAL_BIN_DIR = "/usr/local/bin"
INSTALLED_METADATA_KEY = "installed_packages"

STUB_TEMPLATE = (
    "#!/bin/bash\n"
    "# {name} - simulated install via CVJ Terminal (no real binary)\n"
    'echo "{name} is installed and ready to use"'
)

LAUNCHER_TEMPLATE = '#!/bin/bash\ncd {target}\n./{name} "$@"'

_PACKAGE_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9+.\-]*$")


class Package(BaseModel):
    """A package known to the simulated repositories.

    Args:
        name: Package name.
        version: Version string.
        description: One-line description.
        dependencies: Names of packages this one depends on.
        size: Nominal download size in bytes.
    """

    name: str
    version: str
    description: str
    dependencies: list[str] = Field(default_factory=list)
    size: int = Field(default=0, ge=0)


class Repository(BaseModel):
    """A named group of catalogue packages."""

    name: str
    url: str
    packages: list[Package]


class InstalledPackage(BaseModel):
    """Registry record for an installed package.

    Args:
        name: Package name.
        version: Catalogue version, or "1.0.0" when unknown.
        source: "apt" for catalogue installs, or the download URL.
        files: Paths written for the package (removed on uninstall).
        installed_at: When the package was installed.
    """

    name: str
    version: str
    source: str = "apt"
    files: list[str] = Field(default_factory=list)
    installed_at: datetime


def _pkg(name: str, version: str, description: str, size: int, *deps: str) -> Package:
    return Package(
        name=name,
        version=version,
        description=description,
        dependencies=list(deps),
        size=size,
    )


REPOSITORIES = [
    Repository(
        name="cvj-security",
        url="https://security.cvj-os.org/kali",
        packages=[
            _pkg("nmap", "7.94", "Network discovery and security auditing tool", 12582912),
            _pkg("nikto", "2.5.0", "Web server vulnerability scanner", 8388608),
            _pkg("sqlmap", "1.7.11", "Automatic SQL injection and database takeover tool", 24117248, "python3"),
            _pkg("hydra", "9.5", "Very fast network logon cracker", 19660800),
            _pkg("john", "1.9.0", "John the Ripper password cracker", 25165824),
            _pkg("hashcat", "6.2.6", "Advanced password recovery utility", 70778880),
            _pkg("aircrack-ng", "1.7", "WiFi security auditing tools suite", 16252928),
            _pkg("gobuster", "3.6", "Directory/file, DNS and VHost busting tool", 9437184),
            _pkg("wireshark", "4.2.0", "Network protocol analyzer", 94371840, "libpcap"),
            _pkg("netcat", "1.10", "Network swiss army knife", 524288),
        ],
    ),
    Repository(
        name="cvj-utils",
        url="https://utils.cvj-os.org/main",
        packages=[
            _pkg("git", "2.43.0", "Distributed version control system", 10485760),
            _pkg("curl", "8.6.0", "Command line tool for transferring data", 1572864),
            _pkg("wget", "1.21.4", "Network downloader", 2097152),
            _pkg("htop", "3.3.0", "Interactive process viewer", 524288),
            _pkg("tmux", "3.4", "Terminal multiplexer", 1048576),
            _pkg("libpcap", "1.10.4", "System interface for user-level packet capture", 786432),
        ],
    ),
    Repository(
        name="cvj-dev",
        url="https://dev.cvj-os.org/packages",
        packages=[
            _pkg("python3", "3.12.2", "Python 3 programming language", 52428800),
            _pkg("nodejs", "20.11.1", "JavaScript runtime built on Chrome V8", 31457280),
            _pkg("gcc", "13.2.0", "GNU Compiler Collection", 104857600),
            _pkg("make", "4.4.1", "Build automation tool", 1048576),
            _pkg("vim", "9.1", "Vi IMproved text editor", 3145728),
            _pkg("nano", "7.2", "Simple text editor", 524288),
        ],
    ),
]


class PackageManager:
    """Package simulation layer over a ``FileSystem``.

    The installed-package registry is kept in the store's metadata under
    ``installed_packages`` so it persists with the tree.

    Args:
        filesystem: Facade used for every file written or removed.
        repositories: Catalogue to consult (defaults to ``REPOSITORIES``).
    """

    def __init__(
        self,
        filesystem: FileSystem,
        repositories: list[Repository] | None = None,
    ) -> None:
        self.filesystem = filesystem
        self.repositories = repositories if repositories is not None else REPOSITORIES

    # ===== Catalogue =====

    def all_packages(self) -> list[Package]:
        """Return every catalogue package, first repository wins on duplicates."""
        seen: dict[str, Package] = {}
        for repository in self.repositories:
            for package in repository.packages:
                seen.setdefault(package.name, package)
        return list(seen.values())

    def find_package(self, name: str) -> Package | None:
        for package in self.all_packages():
            if package.name == name:
                return package
        return None

    def package_info(self, name: str) -> Package:
        """Return the catalogue entry for ``name``.

        Raises:
            PackageNotFoundError: If no repository carries the package.
        """
        package = self.find_package(name)
        if package is None:
            raise PackageNotFoundError(name)
        return package

    def search_packages(self, query: str) -> list[Package]:
        """Return catalogue packages whose name or description contains ``query``."""
        needle = query.lower()
        return [
            package
            for package in self.all_packages()
            if needle in package.name or needle in package.description.lower()
        ]

    # ===== Registry =====

    def _load_registry(self) -> dict[str, InstalledPackage]:
        raw = self.filesystem.store.get_metadata(INSTALLED_METADATA_KEY, {})
        return {
            name: InstalledPackage.model_validate(record) for name, record in raw.items()
        }

    def _save_registry(self, registry: dict[str, InstalledPackage]) -> None:
        self.filesystem.store.set_metadata(
            INSTALLED_METADATA_KEY,
            {name: entry.model_dump(mode="json") for name, entry in registry.items()},
        )

    def list_installed(self) -> list[InstalledPackage]:
        return sorted(self._load_registry().values(), key=lambda entry: entry.name)

    def is_installed(self, name: str) -> bool:
        return name in self._load_registry()

    # ===== Install / remove =====

    def install_package(self, name: str) -> str:
        """Simulate installing ``name`` by writing an executable stub.

        Writes ``/usr/bin/<name>`` from ``STUB_TEMPLATE`` and nothing else;
        no dependency resolution and no download take place. Reinstalling
        rewrites the stub.

        Args:
            name: Package name (need not be in the catalogue).

        Returns:
            Path of the stub file.

        Raises:
            PackageNotFoundError: If ``name`` is not a valid package name.
        """
        if not _PACKAGE_NAME_PATTERN.match(name):
            raise PackageNotFoundError(name)

        stub_path = f"{BIN_DIR}/{name}"
        self.filesystem.write_text_file(stub_path, STUB_TEMPLATE.format(name=name))

        package = self.find_package(name)
        registry = self._load_registry()
        registry[name] = InstalledPackage(
            name=name,
            version=package.version if package else "1.0.0",
            files=[stub_path],
            installed_at=datetime.now(timezone.utc),
        )
        self._save_registry(registry)

        logger.info(f"Simulated install of {name} at {stub_path}")
        return stub_path

    def remove_package(self, name: str) -> InstalledPackage:
        """Remove an installed package and the files recorded for it.

        Files already deleted by hand are skipped.

        Returns:
            The registry record that was removed.

        Raises:
            PackageNotInstalledError: If the package is not installed.
        """
        registry = self._load_registry()
        entry = registry.pop(name, None)
        if entry is None:
            raise PackageNotInstalledError(name)

        for path in entry.files:
            try:
                self.filesystem.delete_tree(path)
            except NotFoundError:
                logger.debug(f"{path} already gone while removing {name}")

        self._save_registry(registry)
        logger.info(f"Removed package {name}")
        return entry

    def install_from_url(self, url: str, name: str | None = None) -> InstalledPackage:
        """Download a package from ``url`` and unpack it under ``/opt``.

        Zip payloads are extracted into ``/opt/<name>``; anything else is
        copied there as ``/opt/<name>/<name>``. A launcher script is written
        to ``/usr/local/bin/<name>``.

        Args:
            url: Location of the payload.
            name: Package name; derived from the URL's last segment if omitted.

        Returns:
            The registry record for the new package.

        Raises:
            PackageNotFoundError: If the derived name is not a valid package name.
            DownloadError: If the download fails.
            ArchiveError: If a zip payload cannot be extracted.
        """
        name = name or url.rstrip("/").rsplit("/", 1)[-1].split(".")[0] or "package"
        if not _PACKAGE_NAME_PATTERN.match(name):
            raise PackageNotFoundError(name)

        download_path = f"/tmp/{name}.zip"
        size = self.filesystem.download_from_url(url, download_path)

        target = f"/opt/{name}"
        self.filesystem.create_directory(target, parents=True)
        payload = self.filesystem.read_file(download_path)
        if zipfile.is_zipfile(io.BytesIO(payload)):
            self.filesystem.extract_archive(download_path, target)
        else:
            self.filesystem.write_file(f"{target}/{name}", payload)

        launcher = f"{LOCAL_BIN_DIR}/{name}"
        self.filesystem.create_directory(LOCAL_BIN_DIR, parents=True)
        self.filesystem.write_text_file(
            launcher, LAUNCHER_TEMPLATE.format(target=target, name=name)
        )

        entry = InstalledPackage(
            name=name,
            version="1.0.0",
            source=url,
            files=[launcher, target],
            installed_at=datetime.now(timezone.utc),
        )
        registry = self._load_registry()
        registry[name] = entry
        self._save_registry(registry)

        logger.info(f"Installed {name} from {url} ({size} bytes)")
        return entry

    def get_snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable summary of installed packages."""
        installed = self.list_installed()
        return {
            "installed_count": len(installed),
            "installed": [entry.model_dump(mode="json") for entry in installed],
            "repositories": [repository.name for repository in self.repositories],
        }
