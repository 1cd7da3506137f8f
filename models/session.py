"""Terminal session context."""

import threading
import uuid
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from models.filesystem import FileSystem


def default_environment(username: str) -> dict[str, str]:
    """Return the initial environment variables for ``username``."""
    return {
        "PATH": "/usr/local/bin:/usr/bin:/bin:/usr/local/sbin:/usr/sbin:/sbin",
        "HOME": f"/home/{username}",
        "USER": username,
        "SHELL": "/bin/bash",
        "TERM": "xterm-256color",
        "LANG": "en_US.UTF-8",
        "PWD": "/",
    }


class TerminalSession(BaseModel):
    """Everything one shell session carries between commands.

    The command dispatcher is stateless; it receives a session on every call
    and reads or mutates the cursor (through ``filesystem``) and the
    environment here. Several sessions can share one store, each with its
    own cursor.

    Args:
        filesystem: Facade holding the current-directory cursor.
        username: Login name reported by whoami/ls -l.
        hostname: Host name reported by uname.
        environment: Shell variables used for ``$VAR`` expansion.
        session_id: Unique identifier for this session.
    """

    filesystem: FileSystem
    username: str = Field(default="cvj", description="Login name")
    hostname: str = Field(default="cvj-terminal", description="Host name")
    environment: dict[str, str] = Field(
        default_factory=dict, description="Shell environment variables"
    )
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    class Config:
        arbitrary_types_allowed = True

    def __init__(self, **data: Any) -> None:
        """Fill in the default environment and sync PWD with the cursor."""
        super().__init__(**data)
        if not self.environment:
            self.environment = default_environment(self.username)
        self.environment["PWD"] = self.filesystem.get_current_directory()

    @property
    def lock(self) -> threading.Lock:
        """Lock serializing command execution against this session."""
        return self._lock

    @property
    def home(self) -> str:
        return self.environment.get("HOME", f"/home/{self.username}")

    def get_env(self, name: str) -> str | None:
        return self.environment.get(name)

    def set_env(self, name: str, value: str) -> None:
        self.environment[name] = value

    def get_snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable view of the session."""
        return {
            "session_id": self.session_id,
            "username": self.username,
            "hostname": self.hostname,
            "current_directory": self.filesystem.get_current_directory(),
            "environment": dict(self.environment),
        }
