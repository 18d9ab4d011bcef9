"""Platform detection and mapping."""
import platform
from typing import NamedTuple, Optional

from condaexec.errors import UnsupportedPlatformError
from condaexec.types import PlatformInfo


class PlatformMapping(NamedTuple):
    """Platform-specific values."""
    conda_os: str
    binary_location: str


# Architecture mappings
ARCH_MAPPINGS = {
    "x86_64": "64",
    "amd64": "64",
    "aarch64": "aarch64",
    "arm64": "arm64",
    "ppc64le": "ppc64le",
}

PLATFORM_MAPPINGS = {
    "Linux": PlatformMapping(conda_os="linux", binary_location="bin/micromamba"),
    "Darwin": PlatformMapping(conda_os="osx", binary_location="bin/micromamba"),
    "Windows": PlatformMapping(
        conda_os="win", binary_location="Library/bin/micromamba.exe"
    ),
}

# Builds published for micromamba
SUPPORTED_PLATFORMS = {
    "linux-64",
    "linux-aarch64",
    "linux-ppc64le",
    "osx-64",
    "osx-arm64",
    "win-64",
}


def get_platform_info(
    system: Optional[str] = None, machine: Optional[str] = None
) -> PlatformInfo:
    """Get current platform information."""
    system = system or platform.system()
    machine = (machine or platform.machine()).lower()

    if system not in PLATFORM_MAPPINGS:
        raise UnsupportedPlatformError(system, machine)

    platform_map = PLATFORM_MAPPINGS[system]
    arch = ARCH_MAPPINGS.get(machine)

    # Linux reports arm64 as aarch64, macOS the other way around
    if arch in ("aarch64", "arm64"):
        arch = "arm64" if system == "Darwin" else "aarch64"

    conda_platform = f"{platform_map.conda_os}-{arch}"
    if arch is None or conda_platform not in SUPPORTED_PLATFORMS:
        raise UnsupportedPlatformError(system, machine)

    return PlatformInfo(
        os_name=system.lower(),
        arch=machine,
        conda_platform=conda_platform,
        binary_location=platform_map.binary_location,
    )


def get_sys_arch() -> str:
    """Micromamba platform string for the running system, e.g. ``linux-64``."""
    return get_platform_info().conda_platform
