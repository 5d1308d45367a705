"""packageinstaller entry point: deploy the connector, install the package, optionally clean up."""

from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from package_installer import __version__
from package_installer.cli.options import PROG, build_parser, parse_options
from package_installer.core.config import Settings
from package_installer.core.exceptions import (
    DeployFolderNotFoundError,
    ExitCode,
    MissingArgumentsError,
    OptionError,
    RemoteInstallError,
)
from package_installer.core.models import InstallRequest
from package_installer.deploy.connector import ConnectorDeployer, deployed_connector
from package_installer.remote.client import InstallerServiceClient, build_service_url
from package_installer.utils.logging import setup_logging

logger = structlog.get_logger()


def show_error(message: str) -> None:
    print(f"Error: {message}")


def show_hint() -> None:
    print(f"Try `{PROG} --help' for more information.")


def _format_trace(exc: BaseException) -> str:
    return "".join(traceback.format_tb(exc.__traceback__)).rstrip()


def report_exception(exc: BaseException) -> None:
    """Print an install failure with its kind, trace and nested cause."""
    if isinstance(exc, RemoteInstallError):
        message, kind, cause = exc.message, exc.kind, exc.cause
    else:
        message, kind, cause = str(exc), type(exc).__name__, exc.__cause__

    print(f"Exception: {message}({kind})\n{_format_trace(exc)}")
    if isinstance(exc, RemoteInstallError) and exc.detail:
        print(f"Detail: {exc.detail}")

    if cause is not None:
        print(f"\n\nInnerException: {cause}({type(cause).__name__})\n{_format_trace(cause)}")


def install(
    request: InstallRequest,
    settings: Settings,
    deployer: Optional[ConnectorDeployer] = None,
) -> ExitCode:
    """Deploy the connector and call InstallPackage; returns the exit code."""
    deployer = deployer or ConnectorDeployer(settings)
    logger.debug("Initializing update package installation", package_path=request.package_path)

    try:
        with deployed_connector(deployer, request.deploy_folder, cleanup=request.cleanup) as deployment:
            if not deployment.ready:
                for path in deployment.missing_sources:
                    show_error(f"Cannot find file {path}")
                print("Sitecore connector deployment failed.")
                return ExitCode.DEPLOYMENT_FAILED

            url = build_service_url(request.sitecore_url, settings.connector_folder, settings.service_file)
            with InstallerServiceClient(
                url,
                request.timeout_seconds,
                namespace=settings.service_namespace,
                package_argument=settings.package_argument,
            ) as service:
                logger.debug("Initializing package installation ..")
                logger.debug("Service endpoint", url=url, timeout_seconds=request.timeout_seconds)
                service.install_package(request.package_path)
                logger.debug("Update package installed successfully.")
    except Exception as e:
        report_exception(e)
        return ExitCode.INSTALL_FAILED

    return ExitCode.SUCCESS


def run(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    """Run the installer with ``argv`` (defaults to ``sys.argv[1:]``)."""
    argv = sys.argv[1:] if argv is None else list(argv)

    if settings is None:
        try:
            settings = Settings()
        except ValidationError as e:
            show_error(f"Invalid configuration: {e}")
            return ExitCode.OPTION_ERROR

    parser = build_parser()
    try:
        request = parse_options(argv, settings.default_timeout_seconds, parser)
    except OptionError as e:
        show_error(e.message)
        show_hint()
        return e.exit_code
    except MissingArgumentsError as e:
        for message in e.missing:
            show_error(message)
        show_hint()
        return e.exit_code

    if request is None:
        print(parser.format_help())
        return ExitCode.SUCCESS

    setup_logging(request.verbosity, settings.log_format)
    logger.debug("packageinstaller starting", version=__version__)

    if not Path(request.deploy_folder).is_dir():
        err = DeployFolderNotFoundError(request.deploy_folder)
        show_error(err.message)
        show_hint()
        return err.exit_code

    return install(request, settings)


def main() -> None:
    sys.exit(int(run()))


if __name__ == "__main__":
    main()
