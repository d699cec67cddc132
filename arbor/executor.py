"""
Arbor executor: run a command tree against an argument vector.

execute(command, args)
- resolves `args` against `command`;
- when a subcommand was selected, recurses into it with the remaining args;
- otherwise, when the command has an action, runs before -> action -> after;
- otherwise shows the command help (which exits with status 0).

run(application, args=None)
- the process boundary: defaults args to sys.argv[1:], accepts a shell-like string,
  and turns any ArborError into a rendered message plus exit status 1.
"""
import logging
import shlex
import sys
from collections.abc import Iterable

from .faults import ArborError, trigger
from .hooks import dispatch
from .parser import resolve

logger = logging.getLogger(__name__)


def _tokens(args):
    """
    Normalize an argument source into a list of strings.

    - None: the process command line (sys.argv[1:]).
    - str: split with shell rules (shlex.split).
    - Iterable[str]: used as-is.
    """
    if args is None:
        return sys.argv[1:]
    if isinstance(args, str):
        return shlex.split(args)
    if isinstance(args, Iterable):
        tokens = list(args)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("arguments must be a string or an iterable of strings")
        return tokens
    raise TypeError("arguments must be a string or an iterable of strings")


def execute(command, args, /):
    """
    Resolve and run `command` with `args`; return the command whose hooks ran.

    Errors raised during resolution or by the hooks propagate to the caller.
    """
    resolution = resolve(command, _tokens(args))

    if resolution is not None:
        logger.debug("dispatching %r to %r with %r", command.name, resolution.command.name, resolution.args)
        return execute(resolution.command, resolution.args)

    if command.action() is not None:
        for hook in (command.before(), command.action(), command.after()):
            dispatch(hook, command)
        return command

    logger.debug("no action for %r, showing help", command.name)
    command.show_help()


def run(application, args=None, /):
    """
    Execute `application` at the process boundary.

    Any ArborError is rendered once through the application console and the
    process exits with status 1.
    """
    try:
        return execute(application, _tokens(args))
    except ArborError as fault:
        trigger(
            fault,
            console=application.console,
            colorful=application.console.colorful,
            prog=application.name,
        )


__all__ = (
    "execute",
    "run",
)
