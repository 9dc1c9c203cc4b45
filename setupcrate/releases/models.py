"""Data types for tools and their GitHub releases."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class ToolDescriptor:
    """
    A tool to install from GitHub releases.

    Attributes:
        owner: GitHub owner (user or organization)
        name: GitHub repository name
        version_spec: npm-style version range, or None for the newest release
        bin: Name of the tool binary (defaults to the repository name)
    """

    owner: str
    name: str
    version_spec: Optional[str] = None
    bin: Optional[str] = None

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class ReleaseAsset:
    """A downloadable file attached to a release."""

    name: str
    download_url: str


@dataclass(frozen=True)
class Release:
    """A published release as returned by the listing API."""

    tag_name: str
    assets: List[ReleaseAsset] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict) -> "Release":
        return cls(
            tag_name=data["tag_name"],
            assets=[
                ReleaseAsset(name=asset["name"], download_url=asset["browser_download_url"])
                for asset in data.get("assets") or []
            ],
        )


@dataclass(frozen=True)
class ReleaseCandidate:
    """The release picked for installation."""

    version: str  # tag without its leading "v"
    download_url: str


@dataclass(frozen=True)
class InstalledTool:
    """
    An installed tool.

    Attributes:
        owner: GitHub owner (user or organization)
        name: GitHub repository name
        version: Exact installed version
        directory: Directory containing the tool binary
        bin: Name of the tool binary, if given explicitly
    """

    owner: str
    name: str
    version: str
    directory: Path
    bin: Optional[str] = None
