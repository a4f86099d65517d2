"""Entry point for ``python -m drivemon``."""

from drivemon.cli import cli

if __name__ == "__main__":
    cli()
