"""Deploy the TDS package installer connector into a Sitecore web root.

The connector is two files: the service library, copied to ``bin/``, and the
``.asmx`` service descriptor, copied to the connector folder. Both are copied
only when missing or stale so repeated runs leave the server untouched.
"""

from __future__ import annotations

import os
import shutil
import stat
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import structlog

from package_installer.core.config import Settings
from package_installer.core.exceptions import ConnectorSourceMissingError
from package_installer.core.models import ConnectorDeployment, DeployedArtifact, FileSnapshot

logger = structlog.get_logger()


def _make_writable(path: Path) -> None:
    """Clear the read-only bit, the POSIX counterpart of FileAttributes.Normal."""
    mode = path.stat().st_mode
    if not mode & stat.S_IWUSR:
        os.chmod(path, mode | stat.S_IWUSR)


def copy_if_changed(source: Path, destination: Path) -> bool:
    """Copy ``source`` over ``destination`` if it is missing, differs in size or is older.

    Returns True when a copy happened. The source timestamp is preserved on the
    copy, which keeps the next comparison stable.
    """
    src = FileSnapshot.of(source)
    if not src.exists:
        return False

    dst = FileSnapshot.of(destination)
    if not dst.is_stale_against(src):
        return False

    if dst.exists:
        _make_writable(destination)
    shutil.copy2(source, destination)
    _make_writable(destination)
    logger.debug("Copied connector file", source=str(source), destination=str(destination))
    return True


class ConnectorDeployer:
    """Places the connector files under a deploy folder."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def locate_sources(self) -> Tuple[Path, Path]:
        """Return (library, service descriptor) source paths.

        Raises:
            ConnectorSourceMissingError: if either file is absent
        """
        library = self.settings.library_source
        service = self.settings.service_source
        for path in (library, service):
            if not path.is_file():
                raise ConnectorSourceMissingError(str(path))
        return library, service

    def connector_dir(self, deploy_folder: Union[str, Path]) -> Path:
        return Path(deploy_folder) / self.settings.connector_folder

    def destinations(self, deploy_folder: Union[str, Path]) -> Tuple[Path, Path]:
        """Return (library, service descriptor) destination paths."""
        root = Path(deploy_folder)
        return (
            root / "bin" / self.settings.library_file,
            self.connector_dir(root) / self.settings.service_file,
        )

    def plan(self, deploy_folder: Union[str, Path]) -> ConnectorDeployment:
        """Locate the sources and record where each one goes, without copying.

        A missing source file yields a deployment with no artifacts.
        """
        root = Path(deploy_folder)
        logger.debug("Initializing Sitecore connector", deploy_folder=str(root))

        try:
            library_src, service_src = self.locate_sources()
        except ConnectorSourceMissingError as e:
            logger.debug("Connector source file missing", path=e.path)
            return ConnectorDeployment(deploy_folder=root, ready=False, missing_sources=[Path(e.path)])

        library_dst, service_dst = self.destinations(root)
        artifacts = [
            DeployedArtifact(source=FileSnapshot.of(src), destination=dst)
            for src, dst in ((library_src, library_dst), (service_src, service_dst))
        ]
        return ConnectorDeployment(deploy_folder=root, ready=False, artifacts=artifacts)

    def apply(self, deployment: ConnectorDeployment) -> ConnectorDeployment:
        """Copy every planned artifact that is missing or stale; marks the deployment ready."""
        for artifact in deployment.artifacts:
            artifact.destination.parent.mkdir(parents=True, exist_ok=True)
        for artifact in deployment.artifacts:
            artifact.copied = copy_if_changed(artifact.source.path, artifact.destination)

        deployment.ready = True
        if deployment.updated:
            logger.debug("Sitecore connector deployed successfully.")
        else:
            logger.debug("Sitecore connector already deployed.")
        return deployment

    def deploy(self, deploy_folder: Union[str, Path]) -> ConnectorDeployment:
        """Make sure the connector is present and current under ``deploy_folder``.

        The caller checks that ``deploy_folder`` exists. A missing source file
        yields a deployment that is not ready and has no artifacts.
        """
        deployment = self.plan(deploy_folder)
        if deployment.missing_sources:
            return deployment
        return self.apply(deployment)


def remove_connector(deployment: ConnectorDeployment) -> bool:
    """Best-effort removal of the deployed connector files.

    Returns True when every file is gone. Failures are logged, never raised.
    """
    removed = True
    for path in deployment.destinations:
        try:
            if path.exists():
                _make_writable(path)
            path.unlink(missing_ok=True)
        except OSError as e:
            removed = False
            logger.warning("Failed to remove connector file", path=str(path), error=str(e))

    if removed:
        logger.debug("Sitecore connector removed successfully.")
    return removed


@contextmanager
def deployed_connector(
    deployer: ConnectorDeployer,
    deploy_folder: Union[str, Path],
    cleanup: bool = False,
) -> Iterator[ConnectorDeployment]:
    """Deploy the connector for the duration of the block.

    With ``cleanup`` set, the deployed files are removed on every exit path,
    as long as deployment got as far as computing their destinations, even
    when a copy fails partway.
    """
    deployment: Optional[ConnectorDeployment] = None
    try:
        deployment = deployer.plan(deploy_folder)
        if not deployment.missing_sources:
            deployer.apply(deployment)
        yield deployment
    finally:
        if cleanup and deployment is not None and deployment.artifacts:
            remove_connector(deployment)
