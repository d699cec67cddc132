"""
Arbor console: the text renderer used for help and fault output.

The command layer never formats text itself. It hands marked-up strings to a
Console, which relies on rich for markup ("[bold]NAME[/bold]"), colors and
wrapping, and only adds the two things help layouts need on top of it:

- indentation: an absolute amount per write, plus a nesting level managed by
  the indentation(...) context manager.
- suffix control: every write chooses its own line terminator.

A Console is an injected dependency: applications create one (or receive one)
and pass it down, so tests can capture output with Console(file=io.StringIO()).

Logging
- install_logging(level, console=None) attaches a rich.logging.RichHandler to
  the package logger. Library modules only create loggers; nothing is printed
  unless a host (or Application(debug=True)) installs a handler.
"""
import logging
from contextlib import contextmanager

from rich.console import Console as RichConsole
from rich.logging import RichHandler
from rich.text import Text

from .utils import Unset, coalesce


class Console:
    """
    Renderer collaborator wrapping a rich console.

    Parameters
    - file: a writable text stream (defaults to stdout, or stderr when `stderr` is True).
    - stderr: write to stderr instead of stdout.
    - colorful: when False, markup is still parsed but styles are dropped.
    - width: force a line width (useful for deterministic output in tests).
    """

    def __init__(self, *, file=None, stderr=False, colorful=True, width=None):
        self._colorful = bool(colorful)
        self._indentation = 0
        self._console = RichConsole(
            file=file,
            stderr=stderr,
            width=width,
            no_color=not self._colorful,
            highlight=False,
            emoji=False,
        )

    @property
    def colorful(self):
        return self._colorful

    @property
    def level(self):
        """Current nesting indentation, in columns."""
        return self._indentation

    @property
    def width(self):
        return self._console.width

    @property
    def rich(self):
        """The underlying rich console (for logging handlers and renderables)."""
        return self._console

    @contextmanager
    def indentation(self, level, /):
        """
        Indent every write performed inside the block by `level` more columns.
        """
        if not isinstance(level, int) or level < 0:
            raise ValueError("indentation() argument must be a non-negative integer")
        self._indentation += level
        try:
            yield self
        finally:
            self._indentation -= level

    def format(self, message, /, *, plain=False):
        """
        Turn a marked-up string into a rich Text.

        With plain=True the markup is removed and the result carries no style.
        """
        if isinstance(message, Text):
            text = message.copy()
        else:
            text = Text.from_markup(str(message))
        if plain or not self._colorful:
            return Text(text.plain)
        return text

    def write(self, message, /, *, suffix="\n", indent=0, wrap=False, plain=False):
        """
        Render one message.

        - suffix: string printed after the message (default: a newline).
        - indent: columns added to the current nesting level for every line.
        - wrap: wrap to the console width (continuation lines keep the indent).
        - plain: strip markup instead of rendering it.
        """
        padding = " " * (self._indentation + indent)
        text = self.format(message, plain=plain)

        if wrap:
            lines = text.wrap(self._console, max(self._console.width - len(padding), 1))
        else:
            lines = text.split("\n", allow_blank=True)

        rendered = Text("\n").join(Text(padding) + line for line in lines)
        self._console.print(rendered, end=suffix, soft_wrap=True)

    def error(self, fault, /):
        """
        Render a fault (anything with __rich__) outside of any indentation.
        """
        self._console.print(fault, soft_wrap=True)


def install_logging(level=logging.WARNING, console=Unset, /):
    """
    Attach a RichHandler to the package logger and set its level.

    Calling it again replaces the previously installed handler rather than
    stacking a second one.
    """
    logger = logging.getLogger(__package__)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    console = coalesce(console, None)
    handler = RichHandler(
        console=console.rich if console is not None else RichConsole(stderr=True),
        show_path=False,
        markup=False,
    )
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


__all__ = (
    "Console",
    "install_logging",
)
