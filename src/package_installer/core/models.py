"""Data models for the package installer."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_TIMEOUT_MS = 10 * 60 * 1000


class InstallRequest(BaseModel):
    """Everything needed for one installer run, built from the command line."""

    model_config = ConfigDict(frozen=True)

    package_path: str
    sitecore_url: str
    deploy_folder: str
    timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, gt=0)
    verbosity: int = Field(0, ge=0)
    cleanup: bool = False

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class FileSnapshot(BaseModel):
    """Size and last write time of a file at one moment."""

    model_config = ConfigDict(frozen=True)

    path: Path
    exists: bool
    size: Optional[int] = None
    modified: Optional[datetime] = None

    @classmethod
    def of(cls, path: Path) -> "FileSnapshot":
        if not path.is_file():
            return cls(path=path, exists=False)
        st = path.stat()
        return cls(
            path=path,
            exists=True,
            size=st.st_size,
            modified=datetime.fromtimestamp(st.st_mtime),
        )

    def is_stale_against(self, source: "FileSnapshot") -> bool:
        """True when ``source`` should be copied over this file."""
        if not self.exists:
            return True
        return source.size != self.size or source.modified > self.modified


class DeployedArtifact(BaseModel):
    """One connector file placed on the server."""

    source: FileSnapshot
    destination: Path
    copied: bool = False


class ConnectorDeployment(BaseModel):
    """Outcome of deploying the connector; consumed by cleanup."""

    deploy_folder: Path
    ready: bool = False
    artifacts: List[DeployedArtifact] = Field(default_factory=list)
    missing_sources: List[Path] = Field(default_factory=list)

    @property
    def updated(self) -> bool:
        return any(a.copied for a in self.artifacts)

    @property
    def destinations(self) -> List[Path]:
        return [a.destination for a in self.artifacts]
