"""Client for the connector's package installer web service."""

from .client import InstallerServiceClient, build_service_url

__all__ = ["InstallerServiceClient", "build_service_url"]
