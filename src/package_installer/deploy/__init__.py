"""Connector deployment to the Sitecore web root."""

from .connector import (
    ConnectorDeployer,
    copy_if_changed,
    deployed_connector,
    remove_connector,
)

__all__ = ["ConnectorDeployer", "copy_if_changed", "deployed_connector", "remove_connector"]
