"""Sitecore Package Installer - deploys the TDS connector and installs update packages."""

__version__ = "0.1.0"
__author__ = "Package Installer Team"

from package_installer.core.config import Settings
from package_installer.core.models import ConnectorDeployment, InstallRequest

__all__ = ["Settings", "ConnectorDeployment", "InstallRequest", "__version__"]
