import json
import sys
from pathlib import Path

import pytest

from condaexec.micromamba import micromamba_bin_path
from condaexec.types import Settings

FAKE_MICROMAMBA = Path(__file__).parent / "fake_micromamba.py"


def install_fake_micromamba(settings: Settings) -> Path:
    """Write the fake micromamba script where the real binary would live."""
    bin_path = micromamba_bin_path(settings)
    bin_path.parent.mkdir(parents=True, exist_ok=True)
    bin_path.write_text(f"#!{sys.executable}\n{FAKE_MICROMAMBA.read_text()}")
    bin_path.chmod(0o755)
    return bin_path


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings rooted in a temporary install dir"""
    return Settings(
        install_dir=tmp_path / "condaexec",
        micromamba_version="1.5.10-0",
        channels=("conda-forge",),
    )


@pytest.fixture
def fake_micromamba(settings: Settings) -> Path:
    return install_fake_micromamba(settings)


@pytest.fixture
def calls(settings: Settings):
    """Invocations recorded by the fake micromamba, oldest first"""

    def read() -> list[dict]:
        log = settings.install_dir / "calls.jsonl"
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text().splitlines()]

    return read
