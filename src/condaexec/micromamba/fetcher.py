"""Micromamba download, extraction and installation."""
import hashlib
import os
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Optional

import aiohttp

from condaexec.config import load_settings
from condaexec.errors import MicromambaInstallError
from condaexec.logging import get_logger
from condaexec.micromamba.platforms import get_platform_info
from condaexec.types import Settings

logger = get_logger(__name__)

ARCHIVE_URL_TEMPLATE = "https://micro.mamba.pm/api/micromamba/{platform}/{version}"
RELEASE_URL_TEMPLATE = (
    "https://github.com/mamba-org/micromamba-releases/releases/download/"
    "{version}/micromamba-{platform}"
)
CHUNK_SIZE = 8192


def micromamba_bin_path(settings: Optional[Settings] = None) -> Path:
    """Deterministic location of the managed micromamba binary."""
    settings = settings or load_settings()
    return settings.install_dir / get_platform_info().binary_location


def compute_file_hash(path: Path) -> str:
    """Compute SHA-256 hash of a file."""
    sha256_hash = hashlib.sha256()
    with open(path, "rb") as f:
        for byte_block in iter(lambda: f.read(4096), b""):
            sha256_hash.update(byte_block)
    return sha256_hash.hexdigest()


async def download_file(url: str, dest: Path) -> None:
    """Download a file with streaming."""
    logger.info({"event": "download_start", "url": url, "destination": str(dest)})
    try:
        async with aiohttp.ClientSession(raise_for_status=True) as session:
            async with session.get(url) as response:
                downloaded = 0
                with open(dest, "wb") as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        f.write(chunk)
                        downloaded += len(chunk)

    except aiohttp.ClientError as e:
        if dest.exists():
            dest.unlink()
        logger.error(
            {
                "event": "download_failed",
                "url": url,
                "error": str(e),
                "status": getattr(e, "status", None),
            }
        )
        raise MicromambaInstallError(
            f"Failed to download {url}", details={"url": url, "error": str(e)}
        ) from e

    if downloaded == 0:
        dest.unlink(missing_ok=True)
        raise MicromambaInstallError(
            f"Download from {url} is empty", details={"url": url}
        )

    logger.info({"event": "download_complete", "url": url, "size": downloaded})


def extract_binary(archive_path: Path, binary_location: str, dest_dir: Path) -> Path:
    """Extract the micromamba executable from a ``.tar.bz2`` release archive.

    Raises ``tarfile.CompressionError`` untouched when bzip2 support is missing,
    so the caller can switch to the uncompressed release artifact.
    """
    binary_name = Path(binary_location).name

    try:
        with tarfile.open(archive_path, mode="r:bz2") as archive:
            members = [
                m
                for m in archive.getmembers()
                if m.isfile() and m.name.removeprefix("./") == binary_location
            ]
            if not members:
                logger.error(
                    {
                        "event": "binary_not_found_in_archive",
                        "archive": str(archive_path),
                        "binary_location": binary_location,
                        "available_files": archive.getnames(),
                    }
                )
                raise MicromambaInstallError(
                    f"{binary_location} not found in archive",
                    details={"archive": str(archive_path)},
                )

            extracted_path = dest_dir / binary_name
            source = archive.extractfile(members[0])
            with source, open(extracted_path, "wb") as target:
                shutil.copyfileobj(source, target)

    except tarfile.CompressionError:
        raise
    except tarfile.TarError as e:
        logger.error(
            {"event": "extract_failed", "archive": str(archive_path), "error": str(e)}
        )
        raise MicromambaInstallError(
            f"Failed to extract from {archive_path.name}",
            details={"archive": str(archive_path), "error": str(e)},
        ) from e

    logger.info(
        {
            "event": "binary_extracted",
            "archive": str(archive_path),
            "extracted_to": str(extracted_path),
        }
    )
    return extracted_path


def place_binary(binary: Path, bin_path: Path) -> Path:
    """Move a fetched binary into the install dir and mark it executable."""
    bin_path.parent.mkdir(parents=True, exist_ok=True)
    staging = bin_path.with_name(f".{bin_path.name}.partial")
    shutil.copyfile(binary, staging)
    if os.name != "nt":
        staging.chmod(0o755)
    os.replace(staging, bin_path)
    return bin_path


async def install_micromamba(
    version: Optional[str] = None,
    force: bool = False,
    settings: Optional[Settings] = None,
) -> Path:
    """Ensure micromamba ``version`` lives at its deterministic path.

    A binary already in place is left alone unless ``force`` is set.
    """
    settings = settings or load_settings()
    version = version or settings.micromamba_version
    bin_path = micromamba_bin_path(settings)

    if bin_path.exists() and not force:
        logger.info({"event": "micromamba_present", "path": str(bin_path)})
        return bin_path

    conda_platform = get_platform_info().conda_platform
    logger.info(
        {
            "event": "micromamba_install_start",
            "version": version,
            "platform": conda_platform,
            "install_dir": str(settings.install_dir),
        }
    )

    with tempfile.TemporaryDirectory() as tmpdir:
        tmp_path = Path(tmpdir)
        archive_path = tmp_path / f"micromamba-{version}.tar.bz2"
        archive_url = ARCHIVE_URL_TEMPLATE.format(platform=conda_platform, version=version)

        await download_file(archive_url, archive_path)
        try:
            binary = extract_binary(
                archive_path, get_platform_info().binary_location, tmp_path
            )
        except tarfile.CompressionError as e:
            logger.warning(
                {
                    "event": "bzip2_unavailable",
                    "error": str(e),
                    "fallback": "release_binary",
                }
            )
            binary = tmp_path / bin_path.name
            await download_file(
                RELEASE_URL_TEMPLATE.format(version=version, platform=conda_platform),
                binary,
            )

        place_binary(binary, bin_path)

    logger.info(
        {
            "event": "micromamba_installed",
            "version": version,
            "path": str(bin_path),
            "sha256": compute_file_hash(bin_path),
        }
    )
    return bin_path


async def ensure_micromamba(settings: Optional[Settings] = None) -> Path:
    """Return the micromamba path, installing it first when missing."""
    settings = settings or load_settings()
    bin_path = micromamba_bin_path(settings)
    if bin_path.exists():
        return bin_path

    logger.info({"event": "micromamba_missing", "path": str(bin_path)})
    return await install_micromamba(force=True, settings=settings)
