"""Tests for native micromamba invocation."""
import pytest

from conftest import install_fake_micromamba
from condaexec.commands import build_native_args, native_cmd
from condaexec.errors import CommandError, MissingArgumentError
from condaexec.micromamba import fetcher


def test_build_native_args():
    assert build_native_args("create", "/root", ["-n", "x"], ["samtools"]) == [
        "--no-rc",
        "--no-env",
        "create",
        "-r",
        "/root",
        "-n",
        "x",
        "samtools",
    ]


@pytest.mark.asyncio
async def test_native_cmd_invocation(settings, fake_micromamba, calls):
    result = await native_cmd("clean", ["--all"], "--yes", verbose="silent", settings=settings)

    assert result.status == 0
    assert result.stdout == "cleaned\n"
    assert calls()[-1]["argv"] == [
        "--no-rc",
        "--no-env",
        "clean",
        "-r",
        str(settings.install_dir),
        "--all",
        "--yes",
    ]


@pytest.mark.asyncio
async def test_native_cmd_scrubs_environment(settings, fake_micromamba, calls, monkeypatch):
    monkeypatch.setenv("CONDA_PREFIX", "/opt/conda")
    monkeypatch.setenv("MAMBA_ROOT_PREFIX", "/opt/mamba")
    monkeypatch.setenv("CONDARC", "/opt/conda/.condarc")
    monkeypatch.setenv("CONDAEXEC_MARKER", "kept")

    await native_cmd("clean", ["--all", "--yes"], verbose="silent", settings=settings)

    assert calls()[-1]["env"] == {"CONDAEXEC_MARKER": "kept"}


@pytest.mark.asyncio
async def test_native_cmd_failure_cancel(settings, fake_micromamba):
    with pytest.raises(CommandError) as exc_info:
        await native_cmd("frobnicate", verbose="silent", settings=settings)

    assert exc_info.value.result.status == 2
    assert "unknown subcommand" in exc_info.value.result.stderr


@pytest.mark.asyncio
async def test_native_cmd_failure_continue(settings, fake_micromamba):
    result = await native_cmd(
        "frobnicate", verbose="silent", error="continue", settings=settings
    )

    assert result.status == 2


@pytest.mark.asyncio
async def test_native_cmd_installs_missing_binary(settings, calls, monkeypatch):
    installs = []

    async def fake_install(version=None, force=False, settings=None):
        installs.append(force)
        return install_fake_micromamba(settings)

    monkeypatch.setattr(fetcher, "install_micromamba", fake_install)

    result = await native_cmd("clean", ["--all", "--yes"], verbose="silent", settings=settings)

    assert result.status == 0
    assert installs == [True]
    assert len(calls()) == 1


@pytest.mark.asyncio
async def test_native_cmd_requires_subcommand(settings):
    with pytest.raises(MissingArgumentError):
        await native_cmd("", settings=settings)


@pytest.mark.asyncio
async def test_native_cmd_echoes_command_by_default(settings, fake_micromamba, capsys):
    await native_cmd("clean", ["--all", "--yes"], settings=settings)

    out = capsys.readouterr().out
    assert "Running " in out
    assert "--no-rc --no-env clean" in out
    assert "cleaned" in out
