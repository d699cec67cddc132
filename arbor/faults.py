"""
Arbor faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing errors.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- ArborError: base type that carries a message + options and knows how to
  render itself in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface a fault at the process boundary
  (render through the console, then exit with a failure status).

Taxonomy
- construction time (programming errors in the embedding application, always raised
  synchronously at declaration time):
  • DuplicateCommandError, DuplicateOptionError
- resolution time (user input errors):
  • UnknownOptionError, AmbiguousOptionError, AmbiguousCommandError,
    MissingArgumentError, UnexpectedArgumentError, ValidationError

Integration
- The core raises faults; the executor catches them exactly once at the top of the
  process and calls trigger(fault, console=...), which renders and exits.
- Hosts may customize the rendering through optional attributes in __main__:
  __styles__ (palette overrides), __prog__ (program name), __codes__ (code labels).
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping (by high-level domain)
    - construction (211xx)
      • DUPLICATE_COMMAND, DUPLICATE_OPTION
    - options (221xx)
      • UNKNOWN_OPTION, AMBIGUOUS_OPTION, MISSING_ARGUMENT, UNEXPECTED_ARGUMENT, INVALID_VALUE
    - commands (231xx)
      • AMBIGUOUS_COMMAND

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- construction errors (21xxx) ---
    DUPLICATE_COMMAND           = 21101
    DUPLICATE_OPTION            = 21102

    # --- option errors (22xxx) ---
    UNKNOWN_OPTION              = 22101
    AMBIGUOUS_OPTION            = 22102
    MISSING_ARGUMENT            = 22103
    UNEXPECTED_ARGUMENT         = 22104
    INVALID_VALUE               = 22111

    # --- command errors (23xxx) ---
    AMBIGUOUS_COMMAND           = 23101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ArborError(Exception):
    """
    base class of every fault raised by the library.

    anatomy
    - message: one-sentence, lowercased description of what went wrong.
    - options: read-only mapping with the fault context. common keys:
      • target: the command (or option) the fault is about.
      • hint: a single actionable suggestion.
      • fault-specific payload (option, value, token, candidates, ...).
      every key is also readable as an attribute (error.option, error.value, ...).

    the class-level `code` and `title` identify the fault kind; options may
    override them for a single instance.
    """
    code = Unset
    title = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # Only reached when regular lookup fails; never recurse on our own storage.
        if name == "options":
            raise AttributeError(name)
        try:
            return self.options[name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    def __str__(self):
        return str(self.message or "")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog", "arbor")), styler("prog-name"))
        code = self.options.get("code", self.code)

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "", styler("code")),
            " | ",
            text(self.options.get("title", self.title).title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))

        if not (hint := self.options.get("hint")):
            return Group(header, message)

        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint")))
        return Group(header, message, hint)

    def __trigger__(self):
        """
        render through the console carried in options (if any) and leave the process.
        """
        if (console := self.options.get("console")) is not None:
            console.error(self)
        else:
            # Imported lazily: the console module depends on this one.
            from .console import Console
            Console(stderr=True, colorful=self.options.get("colorful", True)).error(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateCommandError(ArborError):
    code = FaultCode.DUPLICATE_COMMAND
    title = "duplicate command"


class DuplicateOptionError(ArborError):
    code = FaultCode.DUPLICATE_OPTION
    title = "duplicate option"


class UnknownOptionError(ArborError):
    code = FaultCode.UNKNOWN_OPTION
    title = "unknown option"


class AmbiguousOptionError(ArborError):
    code = FaultCode.AMBIGUOUS_OPTION
    title = "ambiguous option"


class AmbiguousCommandError(ArborError):
    code = FaultCode.AMBIGUOUS_COMMAND
    title = "ambiguous command"


class MissingArgumentError(ArborError):
    code = FaultCode.MISSING_ARGUMENT
    title = "missing argument"


class UnexpectedArgumentError(ArborError):
    code = FaultCode.UNEXPECTED_ARGUMENT
    title = "unexpected argument"


class ValidationError(ArborError):
    code = FaultCode.INVALID_VALUE
    title = "invalid value"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ArborError).
    - options are merged into the fault via __replace__(**options) before triggering.
    - the fault is rendered through options["console"] and the process exits with status 1.

    typical options
    - console, colorful, prog, and any other context the renderer may want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "ArborError",
    "DuplicateCommandError",
    "DuplicateOptionError",
    "UnknownOptionError",
    "AmbiguousOptionError",
    "AmbiguousCommandError",
    "MissingArgumentError",
    "UnexpectedArgumentError",
    "ValidationError",
    "trigger",
)
