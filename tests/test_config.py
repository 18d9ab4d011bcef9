"""Tests for configuration resolution."""
from pathlib import Path

from condaexec import config
from condaexec.config import (
    DEFAULT_CHANNELS,
    DEFAULT_MICROMAMBA_VERSION,
    get_install_dir,
    load_settings,
)


def test_load_settings_defaults(monkeypatch):
    monkeypatch.setattr(config.platform, "system", lambda: "Linux")
    monkeypatch.setattr(
        config.appdirs, "user_data_dir", lambda name, appauthor=None: f"/data/{name}"
    )

    settings = load_settings({})

    assert settings.install_dir == Path("/data/condaexec")
    assert settings.envs_dir == Path("/data/condaexec/envs")
    assert settings.micromamba_version == DEFAULT_MICROMAMBA_VERSION
    assert settings.channels == DEFAULT_CHANNELS


def test_load_settings_overrides(tmp_path):
    settings = load_settings(
        {
            "CONDAEXEC_HOME": str(tmp_path),
            "CONDAEXEC_MICROMAMBA_VERSION": "2.0.5-0",
            "CONDAEXEC_CHANNELS": "conda-forge, nodefaults ,",
        }
    )

    assert settings.install_dir == tmp_path
    assert settings.micromamba_version == "2.0.5-0"
    assert settings.channels == ("conda-forge", "nodefaults")


def test_install_dir_on_macos_has_no_spaces(monkeypatch):
    monkeypatch.setattr(config.platform, "system", lambda: "Darwin")

    install_dir = get_install_dir({})

    assert install_dir == Path("~/.local/share/condaexec").expanduser()
    assert " " not in str(install_dir)


def test_install_dir_reads_process_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("CONDAEXEC_HOME", str(tmp_path / "home"))

    assert get_install_dir() == tmp_path / "home"
