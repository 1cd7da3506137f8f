"""Package sub-client for the VTS API.

This is an internal module. Import from `client` instead.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from client._base import BaseClient


class PackageModel(BaseModel):
    """A catalogue package."""

    name: str
    version: str
    description: str
    dependencies: list[str] = Field(default_factory=list)
    size: int = 0


class InstalledPackageModel(BaseModel):
    """Registry record for an installed package."""

    name: str
    version: str
    source: str
    files: list[str]
    installed_at: datetime


class InstalledListResponse(BaseModel):
    packages: list[InstalledPackageModel]
    count: int


class PackageInfoResponse(BaseModel):
    package: PackageModel
    installed: bool


class InstallResponse(BaseModel):
    installed: dict[str, str]
    simulated: bool


class RemoveResponse(BaseModel):
    name: str
    removed_files: list[str]
    removed_at: datetime


class PackagesClient(BaseClient):
    """Synchronous client for package endpoints (/packages/*).

    Example:
        with VTSClient() as client:
            client.packages.install("nmap", "hydra")
            print([p.name for p in client.packages.list_installed().packages])
    """

    _BASE_PATH = "/packages"

    def list_installed(self) -> InstalledListResponse:
        return InstalledListResponse(**self._get(self._BASE_PATH))

    def search(self, query: str) -> list[PackageModel]:
        """Search the catalogue by name or description."""
        data = self._get(f"{self._BASE_PATH}/search", params={"q": query})
        return [PackageModel(**package) for package in data["results"]]

    def info(self, name: str) -> PackageInfoResponse:
        """Return catalogue details for ``name``.

        Raises:
            NotFoundError: If no repository carries the package.
        """
        return PackageInfoResponse(**self._get(f"{self._BASE_PATH}/{name}"))

    def install(self, *names: str) -> InstallResponse:
        data = self._post(f"{self._BASE_PATH}/install", json={"names": list(names)})
        return InstallResponse(**data)

    def install_from_url(self, url: str, name: str | None = None) -> InstalledPackageModel:
        """Install a downloaded payload under /opt with a launcher script."""
        data = self._post(f"{self._BASE_PATH}/install-url", json={"url": url, "name": name})
        return InstalledPackageModel(**data)

    def remove(self, name: str) -> RemoveResponse:
        """Remove an installed package.

        Raises:
            ConflictError: If the package is not installed.
        """
        return RemoveResponse(**self._delete(f"{self._BASE_PATH}/{name}"))
