"""Simulated package management endpoints.

Installing a package writes an executable stub into the virtual tree; no
real software is fetched except for ``POST /packages/install-url``, which
downloads a payload into ``/opt``.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from api.dependencies import PackageManagerDep, TerminalSessionDep
from api.models import ERROR_RESPONSES
from models.packages import InstalledPackage, Package


router = APIRouter(
    prefix="/packages",
    tags=["packages"],
    responses=ERROR_RESPONSES,
)


class InstalledListResponse(BaseModel):
    packages: list[InstalledPackage]
    count: int


class PackageSearchResponse(BaseModel):
    """Response model for a catalogue search.

    Attributes:
        query: The search term as sent.
        results: Matching catalogue packages.
    """

    query: str
    results: list[Package]


class PackageInfoResponse(BaseModel):
    package: Package
    installed: bool


class InstallRequest(BaseModel):
    """Request model for installing catalogue packages."""

    names: list[str] = Field(..., min_length=1, description="Package names to install")


class InstallResponse(BaseModel):
    """Response model for an install.

    Attributes:
        installed: Stub paths keyed by package name.
        simulated: Always true; no real binaries are installed.
    """

    installed: dict[str, str]
    simulated: bool = True


class InstallFromUrlRequest(BaseModel):
    url: str = Field(..., min_length=1)
    name: str | None = None


class RemoveResponse(BaseModel):
    name: str
    removed_files: list[str]
    removed_at: datetime


@router.get("", response_model=InstalledListResponse)
def list_installed(packages: PackageManagerDep):
    """List installed packages sorted by name."""
    installed = packages.list_installed()
    return InstalledListResponse(packages=installed, count=len(installed))


@router.get("/search", response_model=PackageSearchResponse)
def search(packages: PackageManagerDep, q: str = Query(..., min_length=1)):
    return PackageSearchResponse(query=q, results=packages.search_packages(q))


@router.post("/install", response_model=InstallResponse, status_code=status.HTTP_201_CREATED)
def install(
    request: InstallRequest, packages: PackageManagerDep, session: TerminalSessionDep
):
    """Simulate installing each named package, in order."""
    installed = {}
    with session.lock:
        for name in request.names:
            installed[name] = packages.install_package(name)
    return InstallResponse(installed=installed)


@router.post(
    "/install-url", response_model=InstalledPackage, status_code=status.HTTP_201_CREATED
)
def install_from_url(
    request: InstallFromUrlRequest,
    packages: PackageManagerDep,
    session: TerminalSessionDep,
):
    """Download a payload and install it under /opt with a launcher script."""
    with session.lock:
        return packages.install_from_url(request.url, request.name)


@router.get("/{name}", response_model=PackageInfoResponse)
def package_info(name: str, packages: PackageManagerDep):
    return PackageInfoResponse(
        package=packages.package_info(name), installed=packages.is_installed(name)
    )


@router.delete("/{name}", response_model=RemoveResponse)
def remove(name: str, packages: PackageManagerDep, session: TerminalSessionDep):
    with session.lock:
        entry = packages.remove_package(name)
    return RemoveResponse(
        name=entry.name, removed_files=entry.files, removed_at=datetime.now(timezone.utc),
    )
