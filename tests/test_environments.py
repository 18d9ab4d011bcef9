"""Tests for environment lifecycle management."""
import pytest

from condaexec.environments import (
    channel_args,
    clean_cache,
    create_env,
    env_exists,
    get_env_dir,
    install_packages,
    list_envs,
    list_packages,
    remove_env,
)
from condaexec.errors import CommandError, EnvironmentNotFoundError, MissingArgumentError
from condaexec.types import PackageRecord


def subcommands(calls) -> list[str]:
    return [call["argv"][2] for call in calls()]


def test_channel_args_defaults(settings):
    assert channel_args(None, (), settings) == ["--override-channels", "-c", "conda-forge"]


def test_channel_args_additional_first_and_unique(settings):
    assert channel_args(["conda-forge", "bioconda"], ["bioconda"], settings) == [
        "--override-channels",
        "-c",
        "bioconda",
        "-c",
        "conda-forge",
    ]


def test_get_env_dir(settings):
    assert get_env_dir("tools", settings) == settings.install_dir / "envs" / "tools"


@pytest.mark.asyncio
async def test_create_env(settings, fake_micromamba, calls):
    result = await create_env(["samtools=1.20", "bcftools"], env_name="tools", settings=settings)

    assert result.status == 0
    assert get_env_dir("tools", settings).is_dir()
    assert await list_envs(settings=settings) == ["tools"]
    assert calls()[1]["argv"][5:] == [
        "-n",
        "tools",
        "--yes",
        "--quiet",
        "--override-channels",
        "-c",
        "conda-forge",
        "samtools=1.20",
        "bcftools",
    ]


@pytest.mark.asyncio
async def test_create_env_single_package_string(settings, fake_micromamba):
    await create_env("fastqc", env_name="qc", settings=settings)

    packages = await list_packages("qc", settings=settings)
    assert [p.name for p in packages] == ["fastqc"]


@pytest.mark.asyncio
async def test_create_env_platform_and_file(settings, fake_micromamba, calls, tmp_path):
    env_file = tmp_path / "environment.yml"
    env_file.write_text("dependencies: [python]\n")

    await create_env(
        env_file=env_file,
        env_name="from-file",
        platform="osx-64",
        additional_channels=["bioconda"],
        settings=settings,
    )

    argv = calls()[-1]["argv"]
    assert argv[argv.index("--platform") + 1] == "osx-64"
    assert argv[argv.index("-f") + 1] == str(env_file)
    assert argv[argv.index("-c") + 1] == "bioconda"


@pytest.mark.asyncio
async def test_create_existing_env_is_noop(settings, fake_micromamba, calls):
    await create_env(["samtools"], env_name="tools", settings=settings)
    result = await create_env(["bcftools"], env_name="tools", settings=settings)

    assert result.status == 0
    assert result.args == ()
    assert subcommands(calls).count("create") == 1
    assert [p.name for p in await list_packages("tools", settings=settings)] == ["samtools"]


@pytest.mark.asyncio
async def test_create_env_overwrite(settings, fake_micromamba, calls):
    await create_env(["samtools"], env_name="tools", settings=settings)
    await create_env(["bcftools"], env_name="tools", overwrite=True, settings=settings)

    assert subcommands(calls).count("create") == 2
    assert any(call["argv"][2] == "env" and call["argv"][5] == "remove" for call in calls())
    assert [p.name for p in await list_packages("tools", settings=settings)] == ["bcftools"]


@pytest.mark.asyncio
async def test_create_env_failure_raises(settings, fake_micromamba):
    with pytest.raises(CommandError) as exc_info:
        await create_env(["fail-me"], env_name="broken", settings=settings)

    assert "nothing provides" in exc_info.value.result.stderr
    assert not await env_exists("broken", settings=settings)


@pytest.mark.asyncio
async def test_remove_env(settings, fake_micromamba):
    await create_env(["samtools"], env_name="tools", settings=settings)
    await create_env(["fastqc"], env_name="qc", settings=settings)

    await remove_env("tools", settings=settings)

    assert await list_envs(settings=settings) == ["qc"]
    assert not get_env_dir("tools", settings).exists()


@pytest.mark.asyncio
async def test_remove_missing_env(settings, fake_micromamba):
    with pytest.raises(EnvironmentNotFoundError):
        await remove_env("ghost", settings=settings)


@pytest.mark.asyncio
async def test_list_envs_empty(settings, fake_micromamba):
    assert await list_envs(settings=settings) == []


@pytest.mark.asyncio
async def test_list_packages(settings, fake_micromamba):
    await create_env(["samtools", "htslib"], env_name="tools", settings=settings)

    packages = await list_packages("tools", settings=settings)

    assert packages[0] == PackageRecord(
        base_url="https://conda.anaconda.org/conda-forge",
        build_number=0,
        build_string="h0_0",
        channel="conda-forge",
        dist_name="samtools-1.0-h0_0",
        name="samtools",
        platform="linux-64",
        version="1.0",
    )
    assert [p.name for p in packages] == ["samtools", "htslib"]


@pytest.mark.asyncio
async def test_list_packages_empty_env(settings, fake_micromamba):
    await create_env(env_name="empty", settings=settings)

    assert await list_packages("empty", settings=settings) == []


@pytest.mark.asyncio
async def test_install_packages(settings, fake_micromamba):
    await create_env(["samtools"], env_name="tools", settings=settings)

    await install_packages(["bcftools"], env_name="tools", settings=settings)

    names = [p.name for p in await list_packages("tools", settings=settings)]
    assert names == ["samtools", "bcftools"]


@pytest.mark.asyncio
async def test_install_packages_requires_packages(settings, fake_micromamba):
    with pytest.raises(MissingArgumentError):
        await install_packages([], env_name="tools", settings=settings)


@pytest.mark.asyncio
async def test_install_packages_missing_env(settings, fake_micromamba):
    with pytest.raises(EnvironmentNotFoundError):
        await install_packages(["bcftools"], env_name="ghost", settings=settings)


@pytest.mark.asyncio
async def test_clean_cache(settings, fake_micromamba, calls):
    result = await clean_cache(settings=settings)

    assert result.stdout == "cleaned\n"
    assert calls()[-1]["argv"][5:] == ["--all", "--yes"]
