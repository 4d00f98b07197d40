"""Allow ``python -m inceptor``."""

from inceptor.cli.app import app

app()
