"""SOAP client for the TdsPackageInstaller web service."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional, Tuple

import httpx
import structlog

from package_installer.core.exceptions import RemoteInstallError

logger = structlog.get_logger()

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
INSTALL_OPERATION = "InstallPackage"

ET.register_namespace("soap", SOAP_ENV_NS)


def normalize_base_url(url: str) -> str:
    """Return ``url`` with exactly one trailing slash."""
    return url.rstrip("/") + "/"


def build_service_url(base_url: str, connector_folder: str, service_file: str) -> str:
    """Join the site URL, connector folder and service file with single slashes."""
    return f"{normalize_base_url(base_url)}{connector_folder.strip('/')}/{service_file.lstrip('/')}"


def build_envelope(namespace: str, operation: str, argument: str, value: str) -> bytes:
    """Build a SOAP 1.1 document/literal request with a single string argument."""
    envelope = ET.Element(f"{{{SOAP_ENV_NS}}}Envelope")
    body = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Body")
    call = ET.SubElement(body, f"{{{namespace}}}{operation}")
    ET.SubElement(call, f"{{{namespace}}}{argument}").text = value
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True)


def parse_fault(content: bytes) -> Optional[Tuple[str, str, Optional[str]]]:
    """Extract (faultcode, faultstring, detail) from a SOAP response, if it carries a fault."""
    if not content:
        return None
    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        return None

    fault = root.find(f"{{{SOAP_ENV_NS}}}Body/{{{SOAP_ENV_NS}}}Fault")
    if fault is None:
        return None

    code = (fault.findtext("faultcode") or "").strip() or "soap:Server"
    message = (fault.findtext("faultstring") or "").strip() or "Unknown SOAP fault"
    detail_el = fault.find("detail")
    detail = None
    if detail_el is not None:
        detail = "".join(detail_el.itertext()).strip() or None
    return code, message, detail


class InstallerServiceClient:
    """Calls InstallPackage on a deployed connector.

    Use as a context manager so the underlying HTTP connection is released
    once the call is done.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float,
        namespace: str = "http://tempuri.org/",
        package_argument: str = "path",
    ):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.namespace = namespace if namespace.endswith("/") else namespace + "/"
        self.package_argument = package_argument
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> "InstallerServiceClient":
        self._client = httpx.Client(timeout=httpx.Timeout(self.timeout_seconds))
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    @property
    def soap_action(self) -> str:
        return f'"{self.namespace}{INSTALL_OPERATION}"'

    def install_package(self, package_path: str) -> None:
        """Install the update package at ``package_path`` on the server.

        Blocks until the server answers or the timeout elapses.

        Raises:
            RemoteInstallError: on timeout, transport failure, SOAP fault or HTTP error status
        """
        if self._client is None:
            raise RuntimeError("InstallerServiceClient must be used as a context manager")

        envelope = build_envelope(self.namespace, INSTALL_OPERATION, self.package_argument, package_path)
        headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "SOAPAction": self.soap_action,
        }

        logger.debug("Calling package installer service", url=self.url, package_path=package_path)
        try:
            response = self._client.post(self.url, content=envelope, headers=headers)
        except httpx.TimeoutException as e:
            raise RemoteInstallError(
                f"The operation has timed out after {self.timeout_seconds:g}s",
                kind="Timeout",
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteInstallError(str(e) or type(e).__name__, kind=type(e).__name__, cause=e) from e

        fault = parse_fault(response.content)
        if fault is not None:
            code, message, detail = fault
            raise RemoteInstallError(message, kind=code, detail=detail)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteInstallError(str(e), kind="HTTPStatusError", cause=e) from e

        logger.debug("Package installer service responded", status_code=response.status_code)
