# cadence_qa/cli/commands: Command modules for the cadence-qa CLI.
#
# Each module in this package provides one or more CLI commands.

from .classify import classify, fallback
from .correct import correct
from .run import run
from .score import score
from .validate import validate

__all__ = [
    # classify.py
    "classify",
    "fallback",
    # correct.py
    "correct",
    # run.py
    "run",
    # score.py
    "score",
    # validate.py
    "validate",
]
