"""Child process environment and execution."""

import asyncio
import codecs
import os
import shlex
import signal
import sys
import warnings
from contextlib import ExitStack
from pathlib import Path
from typing import IO, Iterable, List, Mapping, Optional, Sequence, Union

import psutil

from condaexec.errors import (
    CommandError,
    CommandNotExecutableError,
    CommandNotFoundError,
    InvalidArgumentError,
)
from condaexec.logging import get_logger
from condaexec.types import CommandResult, ErrorPolicy, Verbose, VerboseStrategy

logger = get_logger(__name__)

Sink = Union[None, str, os.PathLike]

CAPTURE = "|"
READ_CHUNK_SIZE = 8192

# Package manager state of the parent shell plus the host interpreter's home
SCRUBBED_ENV_VARS = frozenset(
    {
        "CONDA_SHLVL",
        "MAMBA_SHLVL",
        "CONDA_ENVS_PATH",
        "CONDA_ROOT_PREFIX",
        "CONDA_PREFIX",
        "MAMBA_ENVS_PATH",
        "MAMBA_ROOT_PREFIX",
        "MAMBA_PREFIX",
        "CONDARC",
        "MAMBARC",
        "CONDA_PROMPT_MODIFIER",
        "MAMBA_PROMPT_MODIFIER",
        "CONDA_DEFAULT_ENV",
        "MAMBA_DEFAULT_ENV",
        "PYTHONHOME",
    }
)

VERBOSE_STRATEGIES = {
    Verbose.SILENT: VerboseStrategy(cmd=False, output=False),
    Verbose.CMD: VerboseStrategy(cmd=True, output=False),
    Verbose.OUTPUT: VerboseStrategy(cmd=False, output=True),
    Verbose.FULL: VerboseStrategy(cmd=True, output=True),
}


def build_child_env(
    ambient: Optional[Mapping[str, str]] = None,
    removed: Iterable[str] = SCRUBBED_ENV_VARS,
) -> dict[str, str]:
    """Copy of the ambient environment without the removed variables."""
    ambient = os.environ if ambient is None else ambient
    removed = set(removed)
    return {key: value for key, value in ambient.items() if key not in removed}


def parse_verbose(verbose: Union[Verbose, str, bool]) -> VerboseStrategy:
    """Translate a verbosity level into echo flags."""
    if isinstance(verbose, bool):
        replacement = Verbose.FULL if verbose else Verbose.SILENT
        warnings.warn(
            f"Logical verbose values are deprecated, use {replacement.value!r} instead",
            DeprecationWarning,
            stacklevel=3,
        )
        return VERBOSE_STRATEGIES[replacement]

    try:
        return VERBOSE_STRATEGIES[Verbose(verbose)]
    except ValueError:
        raise InvalidArgumentError(
            "verbose", verbose, [v.value for v in Verbose]
        ) from None


def parse_error_policy(error: Union[ErrorPolicy, str]) -> ErrorPolicy:
    try:
        return ErrorPolicy(error)
    except ValueError:
        raise InvalidArgumentError(
            "error", error, [e.value for e in ErrorPolicy]
        ) from None


def is_capture(sink: Sink) -> bool:
    return sink is None or sink == CAPTURE


def _open_sink(sink: Sink, stack: ExitStack) -> Union[int, IO[bytes]]:
    if is_capture(sink):
        return asyncio.subprocess.PIPE
    return stack.enter_context(open(Path(sink), "wb"))


async def _pump(
    stream: Optional[asyncio.StreamReader],
    chunks: List[bytes],
    echo: Optional[IO[str]],
) -> None:
    """Drain a child pipe, optionally echoing it live."""
    if stream is None:
        return

    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while chunk := await stream.read(READ_CHUNK_SIZE):
        chunks.append(chunk)
        if echo is not None:
            echo.write(decoder.decode(chunk))
            echo.flush()


def kill_process_tree(pid: int) -> None:
    """Kill a process and all of its descendants.

    On POSIX the child leads its own session, so its process group is killed
    as well. That reaches descendants whose direct parent already exited.
    """
    try:
        parent = psutil.Process(pid)
        procs = [*parent.children(recursive=True), parent]
    except psutil.NoSuchProcess:
        procs = []

    for proc in procs:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue

    if os.name != "nt":
        try:
            os.killpg(pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass

    logger.debug({"event": "process_tree_killed", "pid": pid})


async def run_process(
    command: Union[str, os.PathLike],
    args: Sequence[Union[str, os.PathLike]] = (),
    *,
    verbose: Union[Verbose, str, bool] = Verbose.SILENT,
    error: Union[ErrorPolicy, str] = ErrorPolicy.CANCEL,
    stdout: Sink = CAPTURE,
    stderr: Sink = CAPTURE,
    timeout: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Union[str, os.PathLike]] = None,
) -> CommandResult:
    """Spawn one child process, wait for it, and relay its result.

    Args:
        command: Executable to run
        args: Arguments passed verbatim, never through a shell
        verbose: Which of the command line and its live output are echoed
        error: ``cancel`` raises CommandError on a non-zero exit status,
            ``continue`` returns the result for inspection
        stdout: ``"|"`` (or None) captures the stream, anything else is a
            file path receiving it
        stderr: Same as ``stdout``; a file sink also disables live echo
        timeout: Wall-clock seconds before the process tree is killed
        env: Child environment, defaults to the scrubbed ambient environment
        cwd: Working directory of the child

    Returns:
        CommandResult, with ``timeout`` set when the deadline was hit

    Raises:
        CommandError: Non-zero exit status under the ``cancel`` policy
        CommandNotFoundError: The executable does not exist
        CommandNotExecutableError: The executable lacks execute permission
    """
    strategy = parse_verbose(verbose)
    policy = parse_error_policy(error)
    argv = tuple(str(a) for a in (command, *args))
    child_env = build_child_env() if env is None else dict(env)
    echo_output = strategy.output and is_capture(stderr)

    if strategy.cmd:
        sys.stdout.write(f"Running {shlex.join(argv)}\n")
        sys.stdout.flush()

    logger.debug({"event": "process_spawn", "argv": list(argv), "cwd": str(cwd or "")})

    out_chunks: List[bytes] = []
    err_chunks: List[bytes] = []
    timed_out = False

    with ExitStack() as stack:
        stdout_target = _open_sink(stdout, stack)
        stderr_target = _open_sink(stderr, stack)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=stdout_target,
                stderr=stderr_target,
                env=child_env,
                cwd=cwd,
                start_new_session=os.name != "nt",
            )
        except FileNotFoundError as e:
            logger.error({"event": "process_not_found", "command": argv[0]})
            raise CommandNotFoundError(argv[0]) from e
        except PermissionError as e:
            logger.error({"event": "process_not_executable", "command": argv[0]})
            raise CommandNotExecutableError(argv[0]) from e

        async def communicate() -> int:
            await asyncio.gather(
                _pump(process.stdout, out_chunks, sys.stdout if echo_output else None),
                _pump(process.stderr, err_chunks, sys.stderr if echo_output else None),
            )
            return await process.wait()

        try:
            await asyncio.wait_for(communicate(), timeout)
        except asyncio.TimeoutError:
            timed_out = True
            logger.warning(
                {"event": "process_timeout", "argv": list(argv), "timeout": timeout}
            )
            kill_process_tree(process.pid)
            await process.wait()
        except asyncio.CancelledError:
            kill_process_tree(process.pid)
            raise

    result = CommandResult(
        args=argv,
        status=process.returncode,
        stdout=b"".join(out_chunks).decode(errors="replace") if is_capture(stdout) else None,
        stderr=b"".join(err_chunks).decode(errors="replace") if is_capture(stderr) else None,
        timeout=timed_out,
    )

    logger.debug(
        {
            "event": "process_complete",
            "command": argv[0],
            "status": result.status,
            "timeout": result.timeout,
        }
    )

    if not timed_out and result.status != 0 and policy is ErrorPolicy.CANCEL:
        logger.error(
            {
                "event": "process_failed",
                "argv": list(argv),
                "status": result.status,
                "stderr": result.stderr,
            }
        )
        raise CommandError(result)

    return result
