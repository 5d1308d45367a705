"""Custom exceptions for the package installer."""

from enum import IntEnum
from typing import List, Optional


class ExitCode(IntEnum):
    """Process exit codes. Values are stable across releases."""

    SUCCESS = 0
    OPTION_ERROR = 100
    DEPLOYMENT_FAILED = 101
    INSTALL_FAILED = 102
    MISSING_ARGUMENTS = 103
    DEPLOY_FOLDER_NOT_FOUND = 104


class PackageInstallerError(Exception):
    """Base exception for all installer errors."""

    exit_code: ExitCode = ExitCode.INSTALL_FAILED

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class OptionError(PackageInstallerError):
    """Malformed command line options."""

    exit_code = ExitCode.OPTION_ERROR


class MissingArgumentsError(PackageInstallerError):
    """One or more required options were not supplied."""

    exit_code = ExitCode.MISSING_ARGUMENTS

    def __init__(self, missing: List[str]):
        super().__init__("; ".join(missing))
        self.missing = missing


class DeployFolderNotFoundError(PackageInstallerError):
    """The Sitecore deploy folder does not exist."""

    exit_code = ExitCode.DEPLOY_FOLDER_NOT_FOUND

    def __init__(self, folder: str):
        super().__init__(f"Sitecore Deploy Folder {folder} not found.")
        self.folder = folder


class ConnectorSourceMissingError(PackageInstallerError):
    """A bundled connector file could not be found next to the program."""

    exit_code = ExitCode.DEPLOYMENT_FAILED

    def __init__(self, path: str):
        super().__init__(f"Cannot find file {path}")
        self.path = path


class RemoteInstallError(PackageInstallerError):
    """The InstallPackage call failed.

    ``kind`` names the fault (SOAP fault code or transport exception class).
    ``cause`` is the underlying exception, when there is one.
    """

    exit_code = ExitCode.INSTALL_FAILED

    def __init__(
        self,
        message: str,
        kind: str,
        cause: Optional[BaseException] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, code=kind)
        self.kind = kind
        self.cause = cause
        self.detail = detail
