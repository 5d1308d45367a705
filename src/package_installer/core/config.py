"""Configuration management for the package installer."""

import sys
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_program_dir() -> Path:
    """Directory the installer runs from (frozen executable or script)."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(sys.argv[0]).resolve().parent


class Settings(BaseSettings):
    """Installer configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="PACKAGE_INSTALLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Connector layout on the Sitecore server
    connector_folder: str = Field("_DEV", min_length=1, description="Connector folder under the web root")
    service_file: str = Field("TdsPackageInstaller.asmx", min_length=1, description="Service descriptor name")
    library_file: str = Field(
        "HedgehogDevelopment.TDS.PackageInstallerService.dll",
        min_length=1,
        description="Service library name, deployed to bin/",
    )
    includes_folder: str = Field("Includes", description="Folder holding the descriptor next to the program")
    connector_source_dir: Optional[Path] = Field(
        None,
        description="Where the bundled connector files live; defaults to the program directory",
    )

    # Web service call
    service_namespace: str = Field("http://tempuri.org/", description="XML namespace of the installer service")
    package_argument: str = Field("path", min_length=1, description="Parameter name of InstallPackage")
    default_timeout_seconds: int = Field(600, gt=0, description="InstallPackage timeout in seconds")

    # Observability
    log_format: str = Field("console", description="console or json")

    @field_validator("connector_folder")
    @classmethod
    def strip_connector_folder(cls, v: str) -> str:
        """Connector folder is joined with separators, so drop any of its own."""
        stripped = v.strip("/\\")
        if not stripped:
            raise ValueError("connector_folder cannot be only separators")
        return stripped

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError(f"log_format must be 'console' or 'json', got: {v}")
        return v

    @property
    def source_dir(self) -> Path:
        return self.connector_source_dir or get_program_dir()

    @property
    def library_source(self) -> Path:
        return self.source_dir / self.library_file

    @property
    def service_source(self) -> Path:
        return self.source_dir / self.includes_folder / self.service_file
