"""
CLI Command Handlers Facade.

Re-exports the handlers from `codemorph.cli.handlers` so the entry point and
tests have a single place to reach them.
"""

from codemorph.cli.handlers.describe import handle_describe
from codemorph.cli.handlers.run import handle_run

__all__ = [
  "handle_describe",
  "handle_run",
]
