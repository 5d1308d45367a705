"""
Pytest configuration and fixtures for package installer tests.
"""

import os
from pathlib import Path

import pytest
import structlog

from package_installer.core.config import Settings

LIBRARY_BYTES = b"MZ fake service library"
SERVICE_BYTES = b'<%@ WebService Language="C#" Class="TdsPackageInstaller" %>'


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """
    Keep tests independent of the developer's environment.

    Removes PACKAGE_INSTALLER_* variables and runs from an empty directory so
    no stray .env file is picked up by Settings.
    """
    for key in list(os.environ):
        if key.upper().startswith("PACKAGE_INSTALLER_"):
            monkeypatch.delenv(key)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


@pytest.fixture
def source_dir(tmp_path) -> Path:
    """Program directory holding the bundled connector files."""
    src = tmp_path / "program"
    (src / "Includes").mkdir(parents=True)
    (src / "HedgehogDevelopment.TDS.PackageInstallerService.dll").write_bytes(LIBRARY_BYTES)
    (src / "Includes" / "TdsPackageInstaller.asmx").write_bytes(SERVICE_BYTES)
    return src


@pytest.fixture
def deploy_folder(tmp_path) -> Path:
    """An existing Sitecore web root."""
    folder = tmp_path / "site" / "Website"
    (folder / "bin").mkdir(parents=True)
    return folder


@pytest.fixture
def settings(source_dir) -> Settings:
    return Settings(connector_source_dir=source_dir)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Drop any logging configuration a previous test installed."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
