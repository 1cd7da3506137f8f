"""Terminal sub-client for the VTS API.

This module provides TerminalClient for running commands and reading the
shell state through the /terminal endpoints.

This is an internal module. Import from `client` instead.
"""

from pydantic import BaseModel

from client._base import BaseClient


class CommandResultResponse(BaseModel):
    """Result of one executed command line.

    Attributes:
        output: Standard output text.
        error: Standard error text.
        exit_code: Exit status (0 on success, 127 for unknown commands).
        cwd: Current directory after the command ran.
    """

    output: str
    error: str
    exit_code: int
    cwd: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class TerminalClient(BaseClient):
    """Synchronous client for terminal endpoints (/terminal/*).

    Example:
        with VTSClient() as client:
            client.terminal.execute("mkdir -p /tmp/work")
            result = client.terminal.execute("ls /tmp")
            print(result.output)
    """

    _BASE_PATH = "/terminal"

    def execute(self, command: str) -> CommandResultResponse:
        """Run a command line in the server's session.

        A failing command does not raise; check ``exit_code`` instead.

        Args:
            command: Raw command line, e.g. ``"cat /etc/os-release"``.

        Returns:
            The command's output, error text, exit code and resulting cwd.
        """
        data = self._post(f"{self._BASE_PATH}/execute", json={"command": command})
        return CommandResultResponse(**data)

    def cwd(self) -> str:
        return self._get(f"{self._BASE_PATH}/cwd")["cwd"]

    def get_env(self) -> dict[str, str]:
        """Return all environment variables of the session."""
        return self._get(f"{self._BASE_PATH}/env")["environment"]

    def set_env(self, name: str, value: str) -> None:
        """Set one environment variable.

        Raises:
            ValidationError: If ``name`` is not a valid variable name.
        """
        self._put(f"{self._BASE_PATH}/env", json={"name": name, "value": value})
