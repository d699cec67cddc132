r"""
Arbor option model.

Overview
- Option: a single declared flag or value-bearing parameter attached to a Command.
  • identity: name (unique within the owning command), short and long forms.
  • typing: flag (presence only, the default), str, int, float or list.
  • validation: membership, regular expression or predicate (see below).
  • state: the provided value (sticky once set) falling back to the default,
    then to the zero value of the type.
  • behavior: an optional action(owning_command, value) fired when matched.

Forms
- Forms are stored bare (without dashes) and derived from the name when missing:
    Option("name")                 -> short "n", long "name"
    Option("name", "o")            -> short "o", long "name"
    Option("name", ["o", "out"])   -> short "o", long "out"
- complete_short/complete_long/label render them for the command line ("-o", "--out", "-o/--out").

Validators (normalized on assignment)
- None, "", [] and empty patterns     -> no validator.
- re.Pattern                          -> re.search against str(value).
- callable                            -> truthy result accepts.
- any other iterable                  -> membership, duplicates removed (order kept).
- any other scalar                    -> membership in a one-element collection.

Actions
- An action must accept exactly two positional arguments. Callables of any other
  shape are stored as None: the option behaves as if it had no action at all.

Quick example:
    >>> from arbor.options import Option
    >>> level = Option("level", ["l"], type=int, validator={1, 2, 3}, default=1)
    >>> level.set("2")
    True
    >>> level.value
    2
    >>> level.set(5, False)
    False

Public API
- Classes: Option
"""
import builtins
import re
import weakref
from collections.abc import Iterable

from .faults import ValidationError
from .utils import *

# Declared type -> zero value factory. bool stands for "flag" (no value token).
_ZEROS = {
    bool: lambda: False,
    str: str,
    int: int,
    float: float,
    list: list,
}


class OptionType(type):
    """
    Metaclass giving options a stable representation and read-only introspection.

    Responsibilities
    - Expose the names listed in __introspectable__ as read-only properties via mirror().
    - Provide __repr__/__rich_repr__ built from __displayable__ (or __introspectable__).
    - Derive __typename__ from the class name for messages.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join("%s=%r" % pair for pair in self.__rich_repr__()),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_form(cls, value, fallback, /, *, single):
    """
    Internal: normalize a short or long form.

    - None/Unset/empty values fall back to the option name.
    - Leading dashes are stripped ("-o" -> "o", "--out" -> "out").
    - Short forms keep a single character.
    """
    form = str(value).lstrip("-") if value is not None and value is not Unset else ""
    if not form:
        form = fallback
    if re.search(r"[\s=]", form):
        raise ValueError(f"{cls.__typename__} forms cannot contain whitespaces or '='")
    return form[:1] if single else form


def _sanitize_validator(cls, validator, /):
    """
    Internal: normalize a validator into None, a pattern, a predicate or a tuple of choices.
    """
    if validator is None or validator is Unset:
        return None
    if isinstance(validator, re.Pattern):
        return validator if validator.pattern else None
    if isinstance(validator, str):
        return (validator,) if validator.strip() else None
    if callable(validator):
        return validator
    if isinstance(validator, Iterable):
        choices = []
        for choice in validator:
            if choice not in choices:
                choices.append(choice)
        return tuple(choices) or None
    return (validator,)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize the option metadata in place.

    Raises
    - TypeError: on a non-string name/help/meta or an unsupported type.
    - ValueError: on empty strings or malformed forms.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    # A single scalar sets the short form only; a pair sets both.
    forms = metadata.pop("forms")
    if isinstance(forms, str) or not isinstance(forms, Iterable):
        forms = [forms]
    forms = list(forms)
    if len(forms) > 2:
        raise ValueError(f"{cls.__typename__} accepts at most a short and a long form")
    forms.extend([None] * (2 - len(forms)))
    metadata["short"] = _sanitize_form(cls, forms[0], name, single=True)
    metadata["long"] = _sanitize_form(cls, forms[1], name, single=False)

    type = metadata["type"]
    if type is Unset or type is None:
        type = bool
    if type not in _ZEROS:
        raise TypeError(f"{cls.__typename__} 'type' must be one of bool (flag), str, int, float or list")
    metadata["type"] = type

    for field in ("help", "meta"):
        if not isinstance(value := metadata[field], str | Unset):
            raise TypeError(f"{cls.__typename__} '{field}' must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} '{field}' cannot be empty")
        metadata[field] = coalesce(value)

    metadata["validator"] = _sanitize_validator(cls, metadata["validator"])

    # Anything that is not a two-argument callable is treated as "no action".
    metadata["action"] = metadata["action"] if arity(metadata["action"], 2) else None


class Option(metaclass=OptionType):
    """
    Declared flag or value-bearing command-line parameter.

    State
    - provided: becomes True the first time set() succeeds (or a flag action runs)
      and never goes back to False.
    - value: the provided value, else the default (when not None), else the zero
      value of the declared type.

    Properties
    - name, type and help are read-only; short, long, default and validator can be
      reassigned and are normalized like in the constructor.
    """

    __introspectable__ = (
        "name",
        "type",
        "help",
    )

    __displayable__ = (
        "name",
        "short",
        "long",
        "type",
        "default",
        "validator",
        "provided",
    )

    def __init__(
            self,
            name,
            forms=(),
            /,
            *,
            type=Unset,
            help=Unset,
            meta=Unset,
            default=None,
            validator=None,
            action=None,
    ):
        """
        Construct an option.

        Parameters
        - name: str
          Identity of the option; also the default long form (and the source of the short one).
        - forms: str | Iterable
          A short form, or a (short, long) pair. Dashes are optional.
        - type: bool | str | int | float | list
          Declared value type. bool (the default) declares a flag.
        - help: str
          Description shown in help output.
        - meta: str
          Placeholder shown in help for value-bearing options (defaults to the upper-cased name).
        - default: Any
          Value reported while the option is not provided; None means "no default".
        - validator: see the module documentation.
        - action: Callable[[Command, Any], Any]
          Fired when the option is matched during resolution.
        """
        metadata = {
            "name": name,
            "forms": forms,
            "type": type,
            "help": help,
            "meta": meta,
            "validator": validator,
            "action": action,
        }
        _sanitize_metadata(builtins.type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._default = default
        self._value = None
        self._provided = False
        self._parent = None

    # ── Forms ──────────────────────────────────────────────────────────────

    @property
    def short(self):
        return self._short

    @short.setter
    def short(self, value):
        self._short = _sanitize_form(type(self), value, self._name, single=True)

    @property
    def long(self):
        return self._long

    @long.setter
    def long(self, value):
        self._long = _sanitize_form(type(self), value, self._name, single=False)

    @property
    def complete_short(self):
        return "-" + self._short

    @property
    def complete_long(self):
        return "--" + self._long

    @property
    def label(self):
        """Both forms as shown to users, e.g. "-o/--out"."""
        return "%s/%s" % (self.complete_short, self.complete_long)

    @property
    def meta(self):
        if not self.requires_argument():
            return None
        return self._meta or self._name.upper()

    # ── Metadata ───────────────────────────────────────────────────────────

    @property
    def default(self):
        return self._default

    @default.setter
    def default(self, value):
        self._default = value

    @property
    def validator(self):
        return self._validator

    @validator.setter
    def validator(self, value):
        self._validator = _sanitize_validator(type(self), value)

    @property
    def action(self):
        return self._action

    @action.setter
    def action(self, value):
        self._action = value if arity(value, 2) else None

    @property
    def parent(self):
        """The owning command (held weakly), or None when detached."""
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, value):
        self._parent = weakref.ref(value) if value is not None else None

    def has_default(self):
        return self._default is not None

    def has_help(self):
        return bool(self._help)

    def requires_argument(self):
        return self._type is not bool

    # ── State ──────────────────────────────────────────────────────────────

    @property
    def provided(self):
        return self._provided

    @property
    def value(self):
        if self._provided:
            return self._value
        if self._default is not None:
            return self._default
        return _ZEROS[self._type]()

    def _coerce(self, value):
        """
        Convert a raw value to the declared type (flags accept only booleans).

        Raises TypeError/ValueError when the conversion is impossible.
        """
        if self._type is bool:
            if not isinstance(value, bool):
                raise TypeError("flags only take True or False")
            return value
        if self._type is list:
            if isinstance(value, str):
                return value.split(",")
            if isinstance(value, Iterable):
                return list(value)
            return [value]
        return self._type(value)

    def _accepts(self, value):
        match self._validator:
            case None:
                return True
            case re.Pattern() as pattern:
                return pattern.search(str(value)) is not None
            case tuple() as choices:
                return value in choices
            case predicate:
                return bool(predicate(value))

    def _hint(self):
        match self._validator:
            case re.Pattern() as pattern:
                return "the value must match the pattern %r" % pattern.pattern
            case tuple() as choices:
                return "use one of: %s" % ", ".join(map(str, choices))
            case _:
                return "expected a value of type %r" % self._type.__name__

    def set(self, value, raise_on_invalid=True, /):
        """
        Coerce and validate `value`, then store it.

        Returns
        - True when the value was stored (the option becomes provided).
        - False when the value was rejected and raise_on_invalid is False; the
          option state is left exactly as it was.

        Raises
        - ValidationError when the value was rejected and raise_on_invalid is True.
        """
        try:
            coerced = self._coerce(value)
        except (TypeError, ValueError):
            accepted = False
        else:
            accepted = self._accepts(coerced)

        if not accepted:
            if not raise_on_invalid:
                return False
            raise ValidationError(
                "value %r is not valid for option %s" % (value, self.label),
                target=self.parent,
                option=self,
                value=value,
                hint=self._hint(),
            )

        self._value = coerced
        self._provided = True
        return True

    def execute_action(self):
        """
        Fire the action with (owning command, current value).

        A flag that was not set yet becomes provided with True afterwards. Value
        options and options without a (valid) action are left untouched.
        """
        if self._action is None:
            return
        self._action(self.parent, self.value)
        # A flag's presence is its value, unless the action set one itself.
        if self._type is bool and not self._provided:
            self._value = True
            self._provided = True


__all__ = (
    "Option",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del OptionType
