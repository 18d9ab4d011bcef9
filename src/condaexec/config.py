"""Configuration resolution."""

import os
import platform
from pathlib import Path
from typing import Mapping, Optional

import appdirs

from condaexec.types import Settings

APP_NAME = "condaexec"

DEFAULT_ENV_NAME = "condaexec-env"
DEFAULT_MICROMAMBA_VERSION = "1.5.10-0"
DEFAULT_CHANNELS = ("bioconda", "conda-forge")

HOME_VAR = "CONDAEXEC_HOME"
VERSION_VAR = "CONDAEXEC_MICROMAMBA_VERSION"
CHANNELS_VAR = "CONDAEXEC_CHANNELS"


def get_install_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Directory holding the micromamba binary and every managed environment."""
    environ = os.environ if environ is None else environ

    if environ.get(HOME_VAR):
        return Path(environ[HOME_VAR]).expanduser()

    # micromamba refuses root prefixes containing spaces ("Application Support")
    if platform.system() == "Darwin":
        return Path("~/.local/share").expanduser() / APP_NAME

    return Path(appdirs.user_data_dir(APP_NAME, appauthor=False))


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Resolve settings from OS conventions and CONDAEXEC_* variables."""
    environ = os.environ if environ is None else environ

    channels = DEFAULT_CHANNELS
    if environ.get(CHANNELS_VAR):
        channels = tuple(
            c.strip() for c in environ[CHANNELS_VAR].split(",") if c.strip()
        )

    return Settings(
        install_dir=get_install_dir(environ),
        micromamba_version=environ.get(VERSION_VAR) or DEFAULT_MICROMAMBA_VERSION,
        channels=channels,
    )
