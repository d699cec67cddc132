"""
Internal helpers shared by the options, commands and parser layers.

- Unset: "argument not given" marker, distinct from None (which callers may pass on purpose).
- coalesce(value, default): swap Unset for a default, keep every other value.
- rename(...): give generated functions readable names in tracebacks.
- mirror(name): read-only property over self._<name>, handing out copies of containers.
- arity(callable, count): does the callable take exactly `count` positional arguments?

    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> arity(lambda command, value: None, 2)
    True
"""
import builtins
import functools
import inspect
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset marker.

    There is a single instance; it is falsy and prints as "Unset". It can take
    part in isinstance() unions such as `str | Unset`.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """Return `default` when `object` is Unset, else `object` (None, 0 and "" included)."""
    return object if object is not Unset else default


def rename(*parameters):
    """
    rename(callable, name) sets __name__/__qualname__ and returns the callable;
    rename(name) returns a decorator doing the same.
    """
    match parameters:
        case (target, str() as name):
            if not builtins.callable(target):
                raise TypeError("rename() first argument must be callable")
            try:
                target.__qualname__ = target.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() cannot update the names of %r" % (target,)) from None
            return target
        case (str() as name,):
            return functools.partial(lambda name, target: rename(target, name), name)
        case _:
            raise TypeError("rename() expects (callable, name) or (name)")


def _copy(object):
    """Recursively copy lists, mappings and sets; return anything else unchanged."""
    match object:
        case str():
            return object
        case Sequence():
            return [_copy(item) for item in object]
        case Mapping():
            return {key: _copy(value) for key, value in object.items()}
        case Set():
            return {_copy(item) for item in object}
        case _:
            return object


def mirror(name, /):
    """
    Build a read-only property returning (a copy of) self._<name>.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _copy(getattr(self, "_" + name))

    return property(getter)


def arity(callable, count, /):
    """
    True when `callable` can be called with exactly `count` positional arguments.

    Callables without an inspectable signature (some built-ins) never match.
    """
    if not builtins.callable(callable):
        return False
    try:
        signature = inspect.signature(callable)
        signature.bind(*range(count))
    except (TypeError, ValueError):
        return False

    # *args would also accept other counts.
    return not any(parameter.kind is parameter.VAR_POSITIONAL for parameter in signature.parameters.values())


Unset = UnsetType()


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "arity",
    "UnsetType",
    "Unset",
)
