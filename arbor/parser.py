"""
Arbor resolver: map an argument vector onto one command of the tree.

resolve(command, args) walks the tokens once, left to right:

- "--"              ends option parsing; every later token is a plain argument.
- "--name[=value]"  long option. Exact match first, then unambiguous prefix, on the
                    command's options; when nothing there matches, on the
                    application's (global) options.
- "-x"              short option, exact single-character match only.
- anything else     positional. The first one is tried as a subcommand name (exact,
                    then unambiguous prefix); "a:b" tries "a" and pushes "b" back in
                    front of the remaining tokens. A match stops parsing at this level
                    and returns Resolution(child, remaining tokens). Otherwise it is
                    recorded as a plain argument, like every later positional, and
                    parsing goes on.

Value options take their inline value or the next token, then fire their action.
Flags take nothing: they are set to True and fire their action.

Any user error raises (UnknownOptionError, AmbiguousOptionError, AmbiguousCommandError,
MissingArgumentError, UnexpectedArgumentError, ValidationError); nothing is retried.
"""
import difflib
import logging
from collections import deque, namedtuple

from .faults import *

logger = logging.getLogger(__name__)

Resolution = namedtuple("Resolution", ("command", "args"))


def _match(token, candidates):
    """
    Return the candidates selected by `token`: the exact one if any, else every
    candidate starting with it.
    """
    candidates = list(candidates)
    if token in candidates:
        return [token]
    return [candidate for candidate in candidates if candidate.startswith(token)]


def _route(command):
    return " ".join(step.name for step in command.path)


def _scopes(command):
    """The command itself, then its application when they differ."""
    yield command
    if (application := command.application) is not None and application is not command:
        yield application


def _find_option(command, token, text, *, long):
    """
    Locate the option addressed by `token` (whose bare name is `text`).
    """
    known = []
    for scope in _scopes(command):
        if long:
            forms = {option.long: option for option in scope.options.values()}
            matches = _match(text, forms) if text else []
        else:
            forms = {option.short: option for option in scope.options.values()}
            matches = [text] if text in forms else []
        known.extend(("--" if long else "-") + form for form in forms)

        if len(matches) == 1:
            return forms[matches[0]]
        if len(matches) > 1:
            candidates = sorted("--" + match for match in matches)
            raise AmbiguousOptionError(
                "option %r is ambiguous, it matches %s" % (token, ", ".join(candidates)),
                target=command,
                token=token,
                candidates=candidates,
                hint="type more characters to select one of: %s" % ", ".join(candidates),
            )

    suggestions = difflib.get_close_matches(token.partition("=")[0], known, 5)
    try:
        hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], _route(command))
    except IndexError:
        hint = "run '%s --help' to see all available options" % _route(command)
    raise UnknownOptionError(
        "unknown option %r" % token,
        target=command,
        token=token,
        suggestions=suggestions,
        hint=hint,
    )


def _apply(command, option, token, inline, tokens):
    """
    Feed a matched option: consume its value if it needs one, then fire its action.
    """
    if option.requires_argument():
        if inline is None:
            try:
                inline = tokens.popleft()
            except IndexError:
                raise MissingArgumentError(
                    "option %s requires an argument" % option.label,
                    target=command,
                    option=option,
                    token=token,
                    hint="pass a value after it (for example: %s %s)" % (option.complete_long, option.meta),
                ) from None
        option.set(inline, True)
    else:
        if inline is not None:
            raise UnexpectedArgumentError(
                "option %s does not take an argument" % option.label,
                target=command,
                option=option,
                token=token,
                hint="remove everything from '=' (for example: %s)" % option.complete_long,
            )
        option.set(True, True)

    logger.debug("option %s of %r set to %r", option.label, command.name, option.value)
    option.execute_action()


def find_command(token, command, args=(), /):
    """
    Match `token` against the children of `command`.

    Returns
    - Resolution(child, remaining) when exactly one child is selected. For tokens
      like "a:b", "b" is placed in front of the remaining args.
    - None when no child matches (or the command has no children).

    Raises
    - AmbiguousCommandError when several children share the prefix and none is exact.
    """
    if not command.commands:
        return None

    name, separator, rest = token.partition(":")
    if not name:
        return None

    args = list(args)
    if separator and rest:
        args.insert(0, rest)

    matches = _match(name, command.commands)
    if len(matches) > 1:
        candidates = sorted(matches)
        raise AmbiguousCommandError(
            "command %r is ambiguous, it matches %s" % (name, ", ".join(candidates)),
            target=command,
            token=token,
            candidates=candidates,
            hint="type more characters to select one of: %s" % ", ".join(candidates),
        )
    if not matches:
        return None
    return Resolution(command.commands[matches[0]], args)


def resolve(command, args, /):
    """
    Resolve `args` against `command`.

    Returns
    - Resolution(child, remaining_args) when a subcommand was selected.
    - None when the tokens were exhausted without selecting a subcommand; plain
      positionals are then available through command.arguments().

    Side effects
    - The arguments recorded on `command` are reset, options are set and option
      actions are fired as they are met.
    """
    tokens = deque(args)
    command.clear_arguments()
    # Only the first positional may name a subcommand.
    candidate = True

    while tokens:
        token = tokens.popleft()

        if token == "--":
            while tokens:
                command.argument(tokens.popleft())
            break

        if token.startswith("--"):
            text, separator, value = token[2:].partition("=")
            option = _find_option(command, token, text, long=True)
            _apply(command, option, token, value if separator else None, tokens)
        elif token.startswith("-") and token != "-":
            option = _find_option(command, token, token[1:], long=False)
            _apply(command, option, token, None, tokens)
        elif candidate and (resolution := find_command(token, command, tokens)) is not None:
            logger.debug("resolved %r to subcommand %r", token, resolution.command.name)
            return resolution
        else:
            candidate = False
            command.argument(token)

    return None


__all__ = (
    "Resolution",
    "find_command",
    "resolve",
)
