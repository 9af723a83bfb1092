"""
Console output and the `codemorph` logger.

Importing this module has no effect on logging beyond registering the SUCCESS
level: library code logs to the `codemorph` logger, which only carries a
`NullHandler` until an application opts in.

*   `configure_logging()` (called by the CLI) attaches a `RichHandler` that
    renders `codemorph` records on the active console.
*   `set_console()` swaps the console behind the module-level `console` proxy,
    e.g. for a recording console in tests. Logging is routed there as well.
"""

import logging
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Between INFO (20) and WARNING (30).
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

LOGGER_NAME = "codemorph"

_LOGGER = logging.getLogger(LOGGER_NAME)
_LOGGER.addHandler(logging.NullHandler())

_THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "path": "bold blue",
    "code": "bold magenta",
  }
)


def _fresh_console() -> Console:
  return Console(theme=_THEME)


class _ConsoleProxy:
  """
  Stand-in for a `rich.console.Console` whose target can change at runtime.

  Modules keep a reference to the proxy; attribute access is delegated to
  whichever console is current.
  """

  def __init__(self) -> None:
    self._target: Console = _fresh_console()
    self._handler: Optional[RichHandler] = None

  @property
  def backend(self) -> Console:
    return self._target

  def retarget(self, target: Console, attach_logging: bool) -> None:
    self._target = target
    if attach_logging or self._handler is not None:
      self._attach_handler()

  def _attach_handler(self) -> None:
    if self._handler is not None:
      _LOGGER.removeHandler(self._handler)
    self._handler = RichHandler(
      console=self._target,
      show_time=False,
      show_path=False,
      markup=True,
      rich_tracebacks=True,
    )
    _LOGGER.addHandler(self._handler)
    _LOGGER.setLevel(logging.INFO)

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._target.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._target, name)


console = _ConsoleProxy()


def configure_logging() -> None:
  """Renders `codemorph` log records on the active console."""
  console.retarget(console.backend, attach_logging=True)


def set_console(new_console: Console) -> None:
  """
  Routes console output and `codemorph` logging to `new_console`.

  Args:
      new_console (Console): The console to use from now on.
  """
  console.retarget(new_console, attach_logging=True)


def reset_console() -> None:
  """Goes back to a fresh stdout console. Logging follows only if it was configured."""
  console.retarget(_fresh_console(), attach_logging=False)


def get_console() -> Console:
  """Returns the Console currently behind the `console` proxy."""
  return console.backend


def log_info(msg: str) -> None:
  """Logs at INFO. `msg` may contain rich markup."""
  _LOGGER.info(f"ℹ️  {msg}", extra={"markup": True})


def log_success(msg: str) -> None:
  _LOGGER.log(SUCCESS_LEVEL_NUM, f"✅ {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  _LOGGER.warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str) -> None:
  _LOGGER.error(f"❌ {msg}", extra={"markup": True})
