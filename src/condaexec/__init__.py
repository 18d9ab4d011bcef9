"""Run command-line tools inside isolated micromamba environments."""

from condaexec.types import (
    CommandResult,
    ErrorPolicy,
    PackageRecord,
    Settings,
    Verbose,
)
from condaexec.config import DEFAULT_ENV_NAME, get_install_dir, load_settings
from condaexec.micromamba import (
    get_sys_arch,
    install_micromamba,
    micromamba_bin_path,
)
from condaexec.commands import native_cmd
from condaexec.environments import (
    clean_cache,
    create_env,
    env_exists,
    get_env_dir,
    install_packages,
    list_envs,
    list_packages,
    remove_env,
)
from condaexec.run import run, run_bin
from condaexec.errors import (
    CondaExecError,
    CommandError,
    CommandNotExecutableError,
    CommandNotFoundError,
    EnvironmentNotFoundError,
    InvalidArgumentError,
    MicromambaInstallError,
    MissingArgumentError,
    UnsupportedPlatformError,
)

__version__ = "0.1.0"

__all__ = [
    # Types
    "CommandResult",
    "ErrorPolicy",
    "PackageRecord",
    "Settings",
    "Verbose",

    # Configuration
    "DEFAULT_ENV_NAME",
    "get_install_dir",
    "load_settings",

    # Micromamba binary
    "get_sys_arch",
    "install_micromamba",
    "micromamba_bin_path",
    "native_cmd",

    # Environments
    "clean_cache",
    "create_env",
    "env_exists",
    "get_env_dir",
    "install_packages",
    "list_envs",
    "list_packages",
    "remove_env",

    # Running tools
    "run",
    "run_bin",

    # Error types
    "CondaExecError",
    "CommandError",
    "CommandNotExecutableError",
    "CommandNotFoundError",
    "EnvironmentNotFoundError",
    "InvalidArgumentError",
    "MicromambaInstallError",
    "MissingArgumentError",
    "UnsupportedPlatformError",
]
