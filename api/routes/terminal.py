"""Terminal endpoints: run command lines and inspect the shell state.

Command execution is synchronous and serialized per session with the
session lock, so route handlers here are plain ``def`` functions that
FastAPI runs in its threadpool.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.dependencies import DispatcherDep, TerminalSessionDep
from api.models import OperationResponse


router = APIRouter(
    prefix="/terminal",
    tags=["terminal"],
)


class ExecuteRequest(BaseModel):
    """Request model for running a command line.

    Attributes:
        command: The raw command line, e.g. ``"ls -la /home"``.
    """

    command: str = Field(..., description="Command line to execute")


class CommandResultResponse(BaseModel):
    """Response model for an executed command.

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


class CwdResponse(BaseModel):
    cwd: str


class EnvironmentResponse(BaseModel):
    """Response model for the session environment."""

    environment: dict[str, str]


class SetEnvRequest(BaseModel):
    """Request model for setting one environment variable.

    Attributes:
        name: Variable name (letters, digits and underscores).
        value: New value.
    """

    name: str = Field(..., pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    value: str = ""


@router.post("/execute", response_model=CommandResultResponse)
def execute_command(
    request: ExecuteRequest,
    session: TerminalSessionDep,
    dispatcher: DispatcherDep,
):
    """Execute a command line against the session.

    Command failures are reported in the body through ``error`` and
    ``exit_code``; the HTTP status is 200 whenever the command ran.
    """
    with session.lock:
        result = dispatcher.execute(session, request.command)
        cwd = session.filesystem.get_current_directory()

    return CommandResultResponse(**result.model_dump(), cwd=cwd)


@router.get("/cwd", response_model=CwdResponse)
def get_cwd(session: TerminalSessionDep):
    return CwdResponse(cwd=session.filesystem.get_current_directory())


@router.get("/env", response_model=EnvironmentResponse)
def get_environment(session: TerminalSessionDep):
    """Return every environment variable of the session."""
    return EnvironmentResponse(environment=dict(session.environment))


@router.put("/env", response_model=OperationResponse)
def set_environment_variable(request: SetEnvRequest, session: TerminalSessionDep):
    with session.lock:
        session.set_env(request.name, request.value)
    return OperationResponse(message=f"Set {request.name}")
