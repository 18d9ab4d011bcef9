"""Environment lifecycle management."""

import json
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from condaexec.commands import native_cmd
from condaexec.config import DEFAULT_ENV_NAME, load_settings
from condaexec.errors import EnvironmentNotFoundError, MissingArgumentError
from condaexec.logging import get_logger
from condaexec.types import CommandResult, PackageRecord, Settings, Verbose

logger = get_logger(__name__)

VerboseArg = Union[Verbose, str, bool]


def _as_list(values: Union[str, Iterable[str], None]) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        return [values]
    return [str(v) for v in values]


def channel_args(
    channels: Optional[Sequence[str]],
    additional_channels: Sequence[str],
    settings: Settings,
) -> List[str]:
    """``-c`` flags, additional channels first so they take priority."""
    base = settings.channels if channels is None else _as_list(channels)
    ordered = [*_as_list(additional_channels), *base]
    # keep first occurrence only
    unique = list(dict.fromkeys(ordered))
    return ["--override-channels", *[arg for c in unique for arg in ("-c", c)]]


def get_env_dir(env_name: str = DEFAULT_ENV_NAME, settings: Optional[Settings] = None) -> Path:
    """Directory of a named environment, whether or not it exists."""
    settings = settings or load_settings()
    return settings.envs_dir / env_name


async def list_envs(
    verbose: VerboseArg = Verbose.SILENT, settings: Optional[Settings] = None
) -> List[str]:
    """Names of the environments managed under the install dir."""
    settings = settings or load_settings()
    result = await native_cmd(
        "env", ["list", "--quiet", "--json"], verbose=verbose, settings=settings
    )

    prefixes = json.loads(result.stdout or "{}").get("envs", [])
    envs_dir = settings.envs_dir.resolve()
    names = [
        Path(prefix).name
        for prefix in prefixes
        if Path(prefix).resolve().parent == envs_dir
    ]

    logger.debug({"event": "envs_listed", "envs": names})
    return names


async def env_exists(env_name: str, settings: Optional[Settings] = None) -> bool:
    return env_name in await list_envs(settings=settings)


async def remove_env(
    env_name: str = DEFAULT_ENV_NAME,
    verbose: VerboseArg = Verbose.SILENT,
    settings: Optional[Settings] = None,
) -> CommandResult:
    """Remove a named environment."""
    settings = settings or load_settings()
    if not await env_exists(env_name, settings):
        raise EnvironmentNotFoundError(env_name)

    result = await native_cmd(
        "env",
        ["remove", "-n", env_name, "--yes", "--quiet"],
        verbose=verbose,
        settings=settings,
    )
    logger.info({"event": "env_removed", "env_name": env_name})
    return result


async def create_env(
    packages: Union[str, Sequence[str], None] = None,
    env_file: Optional[Union[str, Path]] = None,
    env_name: str = DEFAULT_ENV_NAME,
    channels: Optional[Sequence[str]] = None,
    additional_channels: Sequence[str] = (),
    platform: Optional[str] = None,
    verbose: VerboseArg = Verbose.SILENT,
    overwrite: bool = False,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> CommandResult:
    """Create a named environment from package specs and/or an environment file.

    An existing environment is left untouched unless ``overwrite`` is set, in
    which case it is removed and created again.
    """
    settings = settings or load_settings()

    if await env_exists(env_name, settings):
        if not overwrite:
            logger.info({"event": "env_already_exists", "env_name": env_name})
            return CommandResult(args=(), status=0)
        await remove_env(env_name, verbose=verbose, settings=settings)

    args = ["-n", env_name, "--yes", "--quiet"]
    args += channel_args(channels, additional_channels, settings)
    if platform:
        args += ["--platform", platform]
    if env_file is not None:
        args += ["-f", str(Path(env_file).expanduser())]
    args += _as_list(packages)

    logger.info(
        {
            "event": "env_create",
            "env_name": env_name,
            "packages": _as_list(packages),
            "env_file": str(env_file) if env_file else None,
        }
    )
    return await native_cmd(
        "create", args, verbose=verbose, timeout=timeout, settings=settings
    )


async def install_packages(
    packages: Union[str, Sequence[str]],
    env_name: str = DEFAULT_ENV_NAME,
    channels: Optional[Sequence[str]] = None,
    additional_channels: Sequence[str] = (),
    verbose: VerboseArg = Verbose.SILENT,
    timeout: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> CommandResult:
    """Install packages into an existing environment."""
    packages = _as_list(packages)
    if not packages:
        raise MissingArgumentError("packages")

    settings = settings or load_settings()
    if not await env_exists(env_name, settings):
        raise EnvironmentNotFoundError(env_name)

    args = ["-n", env_name, "--yes", "--quiet"]
    args += channel_args(channels, additional_channels, settings)
    args += packages

    return await native_cmd(
        "install", args, verbose=verbose, timeout=timeout, settings=settings
    )


async def list_packages(
    env_name: str = DEFAULT_ENV_NAME,
    verbose: VerboseArg = Verbose.SILENT,
    settings: Optional[Settings] = None,
) -> List[PackageRecord]:
    """Packages installed inside an environment."""
    result = await native_cmd(
        "list",
        ["-n", env_name, "--quiet", "--json"],
        verbose=verbose,
        settings=settings,
    )
    return [PackageRecord.from_json(p) for p in json.loads(result.stdout or "[]")]


async def clean_cache(
    verbose: VerboseArg = Verbose.SILENT, settings: Optional[Settings] = None
) -> CommandResult:
    """Drop micromamba's package cache and tarballs."""
    return await native_cmd(
        "clean", ["--all", "--yes"], verbose=verbose, settings=settings
    )
