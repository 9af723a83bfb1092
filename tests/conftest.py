"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Tracer isolation so trace assertions only see the current test's events.
- Source-module factory fixture.
"""

import sys
from pathlib import Path
from textwrap import dedent
from typing import Callable, Mapping, Optional

import pytest

# Add src to path so we can import 'codemorph' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from codemorph.core.tracer import reset_tracer  # noqa: E402
from codemorph.core.tree import SourceModule  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_tracer():
  """Gives every test an empty thread-local trace log."""
  return reset_tracer()


@pytest.fixture
def make_module() -> Callable[..., SourceModule]:
  """
  Builds a SourceModule from (dedented) source text.
  """

  def _make(code: str, name: Optional[str] = None, bindings: Optional[Mapping[str, str]] = None) -> SourceModule:
    return SourceModule.from_code(dedent(code).lstrip("\n"), name=name, bindings=bindings)

  return _make
