"""Allow ``python -m cadence_qa.cli``."""

from cadence_qa.cli import app

app()
