"""
End-to-end tests for the packageinstaller command.
"""

import shutil
from unittest.mock import patch

import httpx
import pytest

from package_installer.cli.main import run
from package_installer.core.config import Settings
from package_installer.core.exceptions import ExitCode

SERVICE_URL = "http://host/site/_DEV/TdsPackageInstaller.asmx"

OK = b"""<?xml version="1.0" encoding="utf-8"?>
<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">
  <soap:Body><InstallPackageResponse xmlns="http://tempuri.org/" /></soap:Body>
</soap:Envelope>"""

FAULT = b"""<?xml version="1.0" encoding="utf-8"?>
<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">
  <soap:Body><soap:Fault><faultcode>soap:Server</faultcode>
  <faultstring>Installation failed</faultstring></soap:Fault></soap:Body>
</soap:Envelope>"""


def _args(deploy_folder, *extra):
    return [
        "--packagePath=C:\\pkg.update",
        "--sitecoreUrl=http://host/site",
        f"--sitecoreDeployFolder={deploy_folder}",
        *extra,
    ]


def _connector_files(deploy_folder):
    return [
        deploy_folder / "bin" / "HedgehogDevelopment.TDS.PackageInstallerService.dll",
        deploy_folder / "_DEV" / "TdsPackageInstaller.asmx",
    ]


@pytest.fixture
def http():
    """Patched httpx client answering InstallPackage successfully."""
    with patch("httpx.Client") as Client:
        client = Client.return_value
        client.post.return_value = httpx.Response(
            200, content=OK, request=httpx.Request("POST", SERVICE_URL)
        )
        yield client


def test_no_arguments_prints_help(http, settings, capsys):
    assert run([], settings) == ExitCode.SUCCESS

    out = capsys.readouterr().out
    assert "packageinstaller [OPTIONS]" in out
    http.post.assert_not_called()


def test_help_flag_prints_help(http, settings, deploy_folder, capsys):
    assert run(_args(deploy_folder, "-h"), settings) == ExitCode.SUCCESS

    assert "Options" in capsys.readouterr().out
    http.post.assert_not_called()
    assert not (deploy_folder / "_DEV").exists()


def test_malformed_option(http, settings, capsys):
    assert run(["--nope"], settings) == ExitCode.OPTION_ERROR

    out = capsys.readouterr().out
    assert out.startswith("Error: ")
    assert "packageinstaller --help" in out
    http.post.assert_not_called()


def test_missing_required_arguments(http, settings, deploy_folder, capsys):
    code = run([f"--sitecoreDeployFolder={deploy_folder}"], settings)

    assert code == ExitCode.MISSING_ARGUMENTS
    assert code != ExitCode.SUCCESS
    out = capsys.readouterr().out
    assert "Error: Package Path is required." in out
    assert "Error: Sitecore Web URL is required." in out
    assert "Sitecore Deploy folder" not in out
    http.post.assert_not_called()
    assert not any(p.exists() for p in _connector_files(deploy_folder))


def test_deploy_folder_not_found(http, settings, tmp_path, capsys):
    missing = tmp_path / "no" / "Website"

    assert run(_args(missing), settings) == ExitCode.DEPLOY_FOLDER_NOT_FOUND

    out = capsys.readouterr().out
    assert f"Sitecore Deploy Folder {missing} not found." in out
    http.post.assert_not_called()
    assert not missing.exists()


def test_successful_install(http, settings, deploy_folder):
    assert run(_args(deploy_folder), settings) == ExitCode.SUCCESS

    args, kwargs = http.post.call_args
    assert args == (SERVICE_URL,)
    assert b"C:\\pkg.update" in kwargs["content"]
    assert http.post.call_count == 1
    assert all(p.exists() for p in _connector_files(deploy_folder))


def test_current_connector_is_not_copied_again(http, settings, deploy_folder):
    run(_args(deploy_folder), settings)

    with patch("package_installer.deploy.connector.shutil.copy2") as copy2:
        assert run(_args(deploy_folder), settings) == ExitCode.SUCCESS

    copy2.assert_not_called()
    assert http.post.call_count == 2


def test_timeout_option_reaches_client(settings, deploy_folder):
    with patch("httpx.Client") as Client:
        Client.return_value.post.return_value = httpx.Response(
            200, content=OK, request=httpx.Request("POST", SERVICE_URL)
        )
        run(_args(deploy_folder, "-t", "42"), settings)

    Client.assert_called_once_with(timeout=httpx.Timeout(42.0))


def test_cleanup_after_success(http, settings, deploy_folder):
    assert run(_args(deploy_folder, "--cleanup"), settings) == ExitCode.SUCCESS

    assert not any(p.exists() for p in _connector_files(deploy_folder))


def test_cleanup_after_failure(http, settings, deploy_folder, capsys):
    http.post.return_value = httpx.Response(
        500, content=FAULT, request=httpx.Request("POST", SERVICE_URL)
    )

    assert run(_args(deploy_folder, "-c"), settings) == ExitCode.INSTALL_FAILED

    out = capsys.readouterr().out
    assert "Exception: Installation failed(soap:Server)" in out
    assert "InnerException" not in out
    assert not any(p.exists() for p in _connector_files(deploy_folder))


def test_failure_without_cleanup_keeps_files(http, settings, deploy_folder):
    http.post.side_effect = httpx.ConnectError("refused")

    assert run(_args(deploy_folder), settings) == ExitCode.INSTALL_FAILED
    assert all(p.exists() for p in _connector_files(deploy_folder))


def test_timeout_reports_inner_exception(http, settings, deploy_folder, capsys):
    http.post.side_effect = httpx.ReadTimeout("read timed out")

    assert run(_args(deploy_folder, "--timeout=1"), settings) == ExitCode.INSTALL_FAILED

    out = capsys.readouterr().out
    assert "(Timeout)" in out
    assert "InnerException: read timed out(ReadTimeout)" in out


def test_missing_connector_source(http, source_dir, deploy_folder, capsys):
    (source_dir / "HedgehogDevelopment.TDS.PackageInstallerService.dll").unlink()
    settings = Settings(connector_source_dir=source_dir)

    assert run(_args(deploy_folder, "-c"), settings) == ExitCode.DEPLOYMENT_FAILED

    out = capsys.readouterr().out
    assert out.count("Cannot find file") == 1
    assert "Sitecore connector deployment failed." in out
    http.post.assert_not_called()


def test_unexpected_error_is_install_failure(http, settings, deploy_folder, capsys):
    with patch(
        "package_installer.deploy.connector.ConnectorDeployer.apply",
        side_effect=PermissionError("access denied"),
    ):
        assert run(_args(deploy_folder), settings) == ExitCode.INSTALL_FAILED

    assert "Exception: access denied(PermissionError)" in capsys.readouterr().out
    http.post.assert_not_called()


def test_verbose_run_logs_progress(http, settings, deploy_folder, capsys):
    run(_args(deploy_folder, "-v"), settings)

    out = capsys.readouterr().out
    assert "Initializing update package installation" in out
    assert "Sitecore connector deployed successfully." in out
    assert "Update package installed successfully." in out


def test_quiet_run_prints_nothing(http, settings, deploy_folder, capsys):
    run(_args(deploy_folder), settings)

    assert capsys.readouterr().out == ""


def test_settings_from_environment(http, source_dir, deploy_folder, monkeypatch):
    monkeypatch.setenv("PACKAGE_INSTALLER_CONNECTOR_SOURCE_DIR", str(source_dir))
    monkeypatch.setenv("PACKAGE_INSTALLER_CONNECTOR_FOLDER", "_TDS")

    assert run(_args(deploy_folder)) == ExitCode.SUCCESS

    assert http.post.call_args[0] == ("http://host/site/_TDS/TdsPackageInstaller.asmx",)
    assert (deploy_folder / "_TDS" / "TdsPackageInstaller.asmx").exists()


def test_invalid_environment_configuration(monkeypatch, capsys):
    monkeypatch.setenv("PACKAGE_INSTALLER_LOG_FORMAT", "xml")

    assert run(["-h"]) == ExitCode.OPTION_ERROR
    assert "Invalid configuration" in capsys.readouterr().out


def test_cleanup_after_partial_deployment(http, settings, deploy_folder):
    real_copy2 = shutil.copy2
    copies = []

    def copy2(src, dst, *args, **kwargs):
        copies.append(dst)
        if len(copies) == 2:
            raise PermissionError("descriptor locked")
        return real_copy2(src, dst, *args, **kwargs)

    with patch("package_installer.deploy.connector.shutil.copy2", side_effect=copy2):
        assert run(_args(deploy_folder, "-c"), settings) == ExitCode.INSTALL_FAILED

    http.post.assert_not_called()
    assert not any(p.exists() for p in _connector_files(deploy_folder))
