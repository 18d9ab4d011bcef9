"""Error types for condaexec."""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from mcp.types import ErrorData, INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST

from condaexec.logging import log_with_data

if TYPE_CHECKING:
    from condaexec.types import CommandResult


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log an error with context."""
    logger = logger or logging.getLogger("condaexec.errors")

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error),
    }
    if context:
        error_info["context"] = context
    if isinstance(error, CondaExecError):
        error_info["code"] = error.code
        error_info["details"] = error.details

    log_with_data(logger, logging.ERROR, "condaexec error occurred", error_info)


class CondaExecError(Exception):
    """Base error class for condaexec."""

    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_error_data(self) -> ErrorData:
        """Convert to ErrorData format."""
        return ErrorData(code=self.code, message=str(self), data=self.details)


class MissingArgumentError(CondaExecError):
    """A required argument was not supplied."""

    def __init__(self, argument: str):
        super().__init__(
            f"Argument '{argument}' is required",
            code=INVALID_PARAMS,
            details={"argument": argument},
        )


class InvalidArgumentError(CondaExecError):
    """An argument was supplied with a value outside its allowed set."""

    def __init__(self, argument: str, value: Any, allowed: Any):
        super().__init__(
            f"Invalid value {value!r} for '{argument}', expected one of {list(allowed)}",
            code=INVALID_PARAMS,
            details={"argument": argument, "value": repr(value), "allowed": list(allowed)},
        )


class CommandError(CondaExecError):
    """Child process exited with a non-zero status."""

    def __init__(self, result: "CommandResult"):
        super().__init__(
            f"Command {result.args[0]} failed with status {result.status}",
            code=INTERNAL_ERROR,
            details=result.to_dict(),
        )
        self.result = result


class CommandNotFoundError(CondaExecError):
    """Executable could not be spawned."""

    def __init__(self, command: str):
        super().__init__(
            f"Command {command} not found",
            code=INVALID_REQUEST,
            details={"command": command},
        )


class CommandNotExecutableError(CondaExecError):
    """Executable exists but may not be executed."""

    def __init__(self, command: str):
        super().__init__(
            f"Command {command} is not executable",
            code=INVALID_REQUEST,
            details={"command": command},
        )


class EnvironmentNotFoundError(CondaExecError):
    """Named environment does not exist."""

    def __init__(self, env_name: str):
        super().__init__(
            f"Environment {env_name} does not exist",
            code=INVALID_PARAMS,
            details={"env_name": env_name},
        )


class MicromambaInstallError(CondaExecError):
    """Fetching or extracting the micromamba binary failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INTERNAL_ERROR, details=details)


class UnsupportedPlatformError(CondaExecError):
    """No micromamba build exists for this OS/architecture."""

    def __init__(self, system: str, machine: str):
        super().__init__(
            f"Unsupported platform: {system} {machine}",
            code=INTERNAL_ERROR,
            details={"system": system, "machine": machine},
        )
