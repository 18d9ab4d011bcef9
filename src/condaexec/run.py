"""Running command-line tools inside managed environments."""

import os
from pathlib import Path
from typing import Optional, Union

from condaexec.commands import native_cmd
from condaexec.config import DEFAULT_ENV_NAME, load_settings
from condaexec.environments import get_env_dir
from condaexec.errors import EnvironmentNotFoundError, MissingArgumentError
from condaexec.execution import CAPTURE, Sink, run_process
from condaexec.logging import get_logger
from condaexec.micromamba.platforms import get_platform_info
from condaexec.types import CommandResult, ErrorPolicy, Settings, Verbose

logger = get_logger(__name__)

Arg = Union[str, os.PathLike]


async def run(
    cmd: str,
    *args: Arg,
    env_name: str = DEFAULT_ENV_NAME,
    verbose: Union[Verbose, str, bool] = Verbose.SILENT,
    error: Union[ErrorPolicy, str] = ErrorPolicy.CANCEL,
    stdout: Sink = CAPTURE,
    stderr: Sink = CAPTURE,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> CommandResult:
    """Run ``cmd`` inside an activated environment via ``micromamba run``.

    Arguments are handed over as an argv list. Shell syntax such as pipes,
    globs or redirections is not interpreted; use ``stdout``/``stderr`` file
    sinks to capture output into files.

    Example:
        await run("samtools", "view", "in.bam", env_name="samtools-env")
    """
    if not cmd:
        raise MissingArgumentError("cmd")

    logger.debug({"event": "run", "cmd": cmd, "env_name": env_name})
    return await native_cmd(
        "run",
        ["-n", env_name, cmd],
        *[str(a) for a in args],
        verbose=verbose,
        error=error,
        stdout=stdout,
        stderr=stderr,
        timeout=timeout,
        settings=settings,
    )


def env_bin_path(cmd: str, env_dir: Path) -> Path:
    if get_platform_info().is_windows:
        return env_dir / "Library" / "bin" / f"{cmd}.exe"
    return env_dir / "bin" / cmd


async def run_bin(
    cmd: str,
    *args: Arg,
    env_name: str = DEFAULT_ENV_NAME,
    verbose: Union[Verbose, str, bool] = Verbose.SILENT,
    error: Union[ErrorPolicy, str] = ErrorPolicy.CANCEL,
    stdout: Sink = CAPTURE,
    stderr: Sink = CAPTURE,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> CommandResult:
    """Execute a binary from an environment without activating it.

    The environment's activation scripts and variables are skipped, so most
    callers want :func:`run` instead.
    """
    if not cmd:
        raise MissingArgumentError("cmd")

    settings = settings or load_settings()
    env_dir = get_env_dir(env_name, settings)
    if not env_dir.is_dir():
        raise EnvironmentNotFoundError(env_name)

    return await run_process(
        env_bin_path(cmd, env_dir),
        [str(a) for a in args],
        verbose=verbose,
        error=error,
        stdout=stdout,
        stderr=stderr,
        timeout=timeout,
    )
