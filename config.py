"""Application settings for the Virtual Terminal Simulator (VTS).

Settings are read from ``VTS_``-prefixed environment variables. A ``.env``
file in the working directory is loaded first, so local overrides can live
there instead of the shell environment.

Example .env::

    VTS_STORE_PATH=./data/vts-image.json
    VTS_USERNAME=cvj
    VTS_ANCESTOR_POLICY=relaxed
    VTS_LOG_LEVEL=DEBUG
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from models.filesystem import AncestorPolicy


class Settings(BaseModel):
    """Runtime configuration.

    Args:
        store_path: JSON image location; empty keeps the store in memory.
        username: Login name, used for $HOME and the seeded /home entry.
        hostname: Host name reported by ``uname``.
        ancestor_policy: Parent-directory handling for writes.
        strict_cd: Reject ``cd`` into paths that are not existing directories.
        download_timeout: Wall-clock limit in seconds for ``wget`` downloads.
        log_level: Root logging level name.
    """

    store_path: str = Field(default="", description="JSON image path, empty for memory")
    username: str = Field(default="cvj", min_length=1, description="Login name")
    hostname: str = Field(default="cvj-terminal", description="Reported host name")
    ancestor_policy: AncestorPolicy = Field(
        default=AncestorPolicy.RELAXED, description="Parent-directory policy for writes"
    )
    strict_cd: bool = Field(default=False, description="Validate cd targets")
    download_timeout: float = Field(
        default=30.0, gt=0, description="Download timeout in seconds"
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """Build settings from the process environment.

        Args:
            load_env_file: Whether to load a ``.env`` file before reading.

        Returns:
            Validated settings; unset variables fall back to field defaults.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        if load_env_file:
            load_dotenv()

        values = {}
        for field_name in cls.model_fields:
            env_value = os.environ.get(f"VTS_{field_name.upper()}")
            if env_value is not None:
                values[field_name] = env_value

        return cls(**values)
