"""Dependency injection providers for the FastAPI application.

This module defines dependencies that can be injected into route handlers,
providing access to the shared TerminalSession and CommandDispatcher.
"""

import logging
from typing import Annotated

from fastapi import Depends

from config import Settings
from models.commands import CommandDispatcher
from models.filesystem import FileSystem
from models.packages import PackageManager
from models.session import TerminalSession
from models.store import create_store

logger = logging.getLogger(__name__)

# One session per process; the dispatcher holds no state and is shared.
_terminal_session: TerminalSession | None = None
_dispatcher = CommandDispatcher()


def get_terminal_session() -> TerminalSession:
    """Get the shared TerminalSession instance.

    Returns:
        The shared TerminalSession instance.

    Raises:
        RuntimeError: If the session hasn't been initialized yet.

    Example:
        @router.get("/some-endpoint")
        def my_handler(session: TerminalSessionDep):
            return {"cwd": session.filesystem.get_current_directory()}
    """
    if _terminal_session is None:
        raise RuntimeError(
            "TerminalSession not initialized. Call initialize_terminal_session() first."
        )
    return _terminal_session


def get_dispatcher() -> CommandDispatcher:
    return _dispatcher


def get_package_manager(
    session: Annotated[TerminalSession, Depends(get_terminal_session)],
) -> PackageManager:
    """Build a PackageManager over the shared session's file system."""
    return PackageManager(session.filesystem)


def build_session(settings: Settings) -> TerminalSession:
    """Create a store, seed it, and wrap it in a session configured by ``settings``."""
    store = create_store(settings)
    store.initialize(settings.username)

    filesystem = FileSystem(
        store,
        ancestor_policy=settings.ancestor_policy,
        strict_cd=settings.strict_cd,
        download_timeout=settings.download_timeout,
    )
    return TerminalSession(
        filesystem=filesystem,
        username=settings.username,
        hostname=settings.hostname,
    )


def initialize_terminal_session(settings: Settings | None = None) -> TerminalSession:
    """Initialize the shared TerminalSession instance.

    This should be called once when the FastAPI app starts up.

    Args:
        settings: Configuration to use; read from the environment if omitted.

    Returns:
        The newly created TerminalSession instance.
    """
    global _terminal_session

    settings = settings or Settings.from_env()
    _terminal_session = build_session(settings)
    logger.info(
        f"Terminal session {_terminal_session.session_id} ready for {settings.username}"
    )
    return _terminal_session


def shutdown_terminal_session() -> None:
    """Drop the shared session. Persistent stores save on every write."""
    global _terminal_session
    _terminal_session = None


# Type aliases for dependency injection
TerminalSessionDep = Annotated[TerminalSession, Depends(get_terminal_session)]
DispatcherDep = Annotated[CommandDispatcher, Depends(get_dispatcher)]
PackageManagerDep = Annotated[PackageManager, Depends(get_package_manager)]
