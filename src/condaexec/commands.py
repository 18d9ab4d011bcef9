"""Native micromamba command invocation."""

from typing import Optional, Sequence, Union

from condaexec.config import load_settings
from condaexec.errors import MissingArgumentError
from condaexec.execution import CAPTURE, Sink, run_process
from condaexec.logging import get_logger
from condaexec.micromamba import ensure_micromamba
from condaexec.types import CommandResult, ErrorPolicy, Settings, Verbose

logger = get_logger(__name__)

# Ignore user rc files and MAMBA_* / CONDA_* configuration of the caller
FIXED_FLAGS = ("--no-rc", "--no-env")


def build_native_args(
    conda_cmd: str, root_dir: str, conda_args: Sequence[str] = (), extra: Sequence[str] = ()
) -> list[str]:
    """Arguments passed to micromamba for one subcommand."""
    return [*FIXED_FLAGS, conda_cmd, "-r", root_dir, *conda_args, *extra]


async def native_cmd(
    conda_cmd: str,
    conda_args: Sequence[str] = (),
    *extra: str,
    verbose: Union[Verbose, str, bool] = Verbose.FULL,
    error: Union[ErrorPolicy, str] = ErrorPolicy.CANCEL,
    stdout: Sink = CAPTURE,
    stderr: Sink = CAPTURE,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> CommandResult:
    """Run a micromamba subcommand against the managed root prefix.

    Args:
        conda_cmd: Subcommand, e.g. ``create``, ``env``, ``run``, ``--version``
        conda_args: Arguments following the root prefix flag
        extra: Trailing arguments appended after ``conda_args``
    """
    if not conda_cmd:
        raise MissingArgumentError("conda_cmd")

    settings = settings or load_settings()
    bin_path = await ensure_micromamba(settings)

    args = build_native_args(
        conda_cmd,
        str(settings.install_dir),
        [str(a) for a in conda_args],
        [str(a) for a in extra],
    )
    logger.debug({"event": "native_cmd", "subcommand": conda_cmd, "args": args})

    return await run_process(
        bin_path.resolve(),
        args,
        verbose=verbose,
        error=error,
        stdout=stdout,
        stderr=stderr,
        timeout=timeout,
    )
