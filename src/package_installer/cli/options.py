"""Command line options for packageinstaller."""

from __future__ import annotations

import argparse
from typing import List, Optional, Sequence

from package_installer.core.exceptions import MissingArgumentsError, OptionError
from package_installer.core.models import InstallRequest

PROG = "packageinstaller"

EXAMPLE = (
    'Example:\n'
    '  -v -sitecoreUrl "http://mysite.com/" '
    '-sitecoreDeployFolder "C:\\inetpub\\wwwroot\\mysite\\Website" '
    '-packagePath "C:\\Package1.update"'
)


class _OptionParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing usage and exiting."""

    def error(self, message: str):
        raise OptionError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _OptionParser(
        prog=PROG,
        usage=f"{PROG} [OPTIONS]",
        description=f"Installs a sitecore package.\n\n{EXAMPLE}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    options = parser.add_argument_group("Options")
    options.add_argument(
        "-p", "--packagePath", "-packagePath",
        dest="package_path",
        metavar="PACKAGE_PATH",
        help="The path to the package. The package must be located in a folder reachable by the web server.",
    )
    options.add_argument(
        "-u", "--sitecoreUrl", "-sitecoreUrl",
        dest="sitecore_url",
        metavar="SITECORE_URL",
        help="The url to the root of the Sitecore server.",
    )
    options.add_argument(
        "-f", "--sitecoreDeployFolder", "-sitecoreDeployFolder",
        dest="deploy_folder",
        metavar="SITECORE_DEPLOY_FOLDER",
        help="The UNC path to the Sitecore web root.",
    )
    options.add_argument(
        "-v",
        dest="verbosity",
        action="count",
        default=0,
        help="Increase debug message verbosity.",
    )
    options.add_argument(
        "-h", "--help",
        dest="show_help",
        action="store_true",
        help="Show this message and exit.",
    )
    options.add_argument(
        "-c", "--cleanup",
        dest="cleanup",
        action="store_true",
        help="Remove package installer when done.",
    )
    options.add_argument(
        "-t", "--timeout",
        dest="timeout",
        metavar="SECONDS",
        help="Package installer timeout (in seconds).",
    )
    return parser


def parse_timeout_ms(value: Optional[str], default_seconds: int) -> int:
    """Convert a seconds value to milliseconds, keeping the default when it is not a positive integer."""
    default_ms = default_seconds * 1000
    if value is None:
        return default_ms
    try:
        seconds = int(value.strip())
    except ValueError:
        return default_ms
    if seconds <= 0:
        return default_ms
    return seconds * 1000


def missing_arguments(ns: argparse.Namespace) -> List[str]:
    """One message per required option that was not supplied."""
    missing = []
    if not ns.package_path:
        missing.append("Package Path is required.")
    if not ns.sitecore_url:
        missing.append("Sitecore Web URL is required.")
    if not ns.deploy_folder:
        missing.append("Sitecore Deploy folder is required.")
    return missing


def parse_options(
    argv: Sequence[str],
    default_timeout_seconds: int = 600,
    parser: Optional[argparse.ArgumentParser] = None,
) -> Optional[InstallRequest]:
    """Parse ``argv`` into an InstallRequest.

    Returns None when help was requested or no arguments were given.

    Raises:
        OptionError: on malformed options
        MissingArgumentsError: when required options are absent
    """
    if not argv:
        return None

    parser = parser or build_parser()
    ns = parser.parse_args(list(argv))
    if ns.show_help:
        return None

    missing = missing_arguments(ns)
    if missing:
        raise MissingArgumentsError(missing)

    return InstallRequest(
        package_path=ns.package_path,
        sitecore_url=ns.sitecore_url,
        deploy_folder=ns.deploy_folder,
        timeout_ms=parse_timeout_ms(ns.timeout, default_timeout_seconds),
        verbosity=ns.verbosity,
        cleanup=ns.cleanup,
    )
