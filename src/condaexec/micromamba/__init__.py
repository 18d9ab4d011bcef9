"""Micromamba binary management."""
from condaexec.micromamba.fetcher import (
    ensure_micromamba,
    install_micromamba,
    micromamba_bin_path,
)
from condaexec.micromamba.platforms import get_platform_info, get_sys_arch

__all__ = [
    "ensure_micromamba",
    "install_micromamba",
    "micromamba_bin_path",
    "get_platform_info",
    "get_sys_arch",
]
