"""
Command hooks (before/action/after) as an explicit tagged variant.

A hook is either
- NamedHook(name): the name of a method of the Application, called as
  application.<name>(command), or
- CallbackHook(callback): a one-argument callable, called as callback(command).

hook(value) normalizes user input: strings become NamedHook, one-argument callables
become CallbackHook, anything else is not a hook (None). dispatch() is the only
place where hooks are run.
"""
import logging
from collections import namedtuple

from .utils import arity

logger = logging.getLogger(__name__)

NamedHook = namedtuple("NamedHook", ("name",))
CallbackHook = namedtuple("CallbackHook", ("callback",))


def hook(value, /):
    """
    Build a hook variant from a method name or a callback; return None for anything else.
    """
    match value:
        case NamedHook() | CallbackHook():
            return value
        case str() if value.strip():
            return NamedHook(value.strip())
        case _ if arity(value, 1):
            return CallbackHook(value)
        case _:
            return None


def dispatch(hook, command, /):
    """
    Run one hook against `command`. A missing hook (None) is a no-op.
    """
    match hook:
        case None:
            return
        case NamedHook(name=name):
            logger.debug("running application method %r for %r", name, command.name)
            getattr(command.application, name)(command)
        case CallbackHook(callback=callback):
            logger.debug("running callback %r for %r", getattr(callback, "__name__", callback), command.name)
            callback(command)
        case _:
            raise TypeError("dispatch() argument must be a hook")


__all__ = (
    "NamedHook",
    "CallbackHook",
    "hook",
    "dispatch",
)
