"""Allow ``python -m package_installer``."""

from package_installer.cli.main import main


if __name__ == "__main__":
    main()
