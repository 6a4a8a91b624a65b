"""Allow running buildrelay with `python -m buildrelay`."""

from buildrelay.cli import app

app()
