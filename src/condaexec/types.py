"""Core type definitions"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


class Verbose(str, Enum):
    """How much of an invocation is echoed to the host's terminal."""

    SILENT = "silent"
    CMD = "cmd"
    OUTPUT = "output"
    FULL = "full"


class ErrorPolicy(str, Enum):
    """What happens when a child process exits with a non-zero status."""

    CANCEL = "cancel"
    CONTINUE = "continue"


@dataclass(frozen=True)
class VerboseStrategy:
    """Echo flags derived from a Verbose level"""

    cmd: bool
    output: bool


@dataclass(frozen=True)
class PlatformInfo:
    """Platform information"""

    os_name: str
    arch: str
    conda_platform: str
    binary_location: str

    @property
    def is_windows(self) -> bool:
        return self.os_name == "windows"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single invocation.

    ``stdout`` and ``stderr`` are ``None`` when the stream was sent to a file
    instead of being captured.
    """

    args: Tuple[str, ...]
    status: Optional[int]
    stdout: Optional[str] = ""
    stderr: Optional[str] = ""
    timeout: bool = False

    @property
    def success(self) -> bool:
        return not self.timeout and self.status == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "args": list(self.args),
            "status": self.status,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "timeout": self.timeout,
        }


@dataclass(frozen=True)
class PackageRecord:
    """A package installed inside an environment"""

    base_url: str
    build_number: int
    build_string: str
    channel: str
    dist_name: str
    name: str
    platform: str
    version: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "PackageRecord":
        return cls(
            base_url=data.get("base_url", ""),
            build_number=int(data.get("build_number", 0)),
            build_string=data.get("build_string", ""),
            channel=data.get("channel", ""),
            dist_name=data.get("dist_name", ""),
            name=data["name"],
            platform=data.get("platform", ""),
            version=data.get("version", ""),
        )


@dataclass(frozen=True)
class Settings:
    """Resolved configuration passed to every operation"""

    install_dir: Path
    micromamba_version: str
    channels: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def envs_dir(self) -> Path:
        return self.install_dir / "envs"
