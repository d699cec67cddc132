"""
Arbor command layer: declare command trees and run them.

What this module provides
- Command: a named node owning options, child commands and before/action/after hooks.
  • Construction: command(name, build, **attrs) and option(name, forms, action, **attrs),
    with duplicate detection at declaration time.
  • Introspection: full_name(), path, arguments(), get_options(...).
  • Execution: execute(args) resolves the arguments and runs the hook chain, or
    recurses into the selected subcommand, or shows help.
  • Help: show_help() renders name/synopsis/description/options/subcommands
    through the application console and exits with status 0.

- Application: the root command. It adds a version, the console used for every
  rendering, the executable name, an implicit `help` command (help about any
  command path) and a global -h/--help option.

Quick start
    from arbor import Application

    def build(application):
        deploy = application.command("deploy", description="Deploy the project")
        deploy.option("force", ["f", "force"], help="Skip confirmations")

        @deploy.command("production").action
        def production(command):
            print("deploying, force=%s" % command.get_options()["force"])

    Application.create(build, name="tool", version="1.0.0")

Design notes
- Ownership flows parent -> child only: parent and application back-references are
  weak references resolved at construction time.
- full_name() is recomputed on demand from the ancestor chain; it is never cached.
- Hooks are stored as NamedHook/CallbackHook variants (see arbor.hooks).
"""
import logging
import os
import re
import sys
import weakref
from types import MappingProxyType

from rich.markup import escape

from . import executor, hooks
from .console import Console, install_logging
from .faults import *
from .options import Option
from .parser import find_command
from .utils import *

logger = logging.getLogger(__name__)


class CommandType(type):
    """
    Metaclass giving commands a stable representation and read-only introspection.

    Same conventions as options: __introspectable__ names become read-only
    properties (via mirror), __displayable__ narrows what __rich_repr__ shows.
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


def _sanitize_text(cls, metadata, field, /):
    """
    Internal: trim an optional help-text field; Unset becomes None, empty strings are rejected.
    """
    if not isinstance(value := metadata[field], str | Unset):
        raise TypeError(f"{cls.__typename__} '{field}' must be a string")
    elif isinstance(value, str) and not (value := value.strip()):
        raise ValueError(f"{cls.__typename__} '{field}' cannot be empty")
    metadata[field] = coalesce(value)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize command metadata in place.

    - name: non-empty string.
    - description/banner/synopsis: optional non-empty strings.
    - parent/application: commands (or Unset); the application defaults to the parent's one.
    - before/action/after: normalized into hook variants (or None).
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    for field in ("description", "banner", "synopsis"):
        _sanitize_text(cls, metadata, field)

    for field in ("parent", "application"):
        if not isinstance(metadata[field], Command | Unset):
            raise TypeError(f"{cls.__typename__} '{field}' must be a command")

    if metadata["application"] is Unset and metadata["parent"] is not Unset:
        metadata["application"] = metadata["parent"].application or Unset

    for field in ("before", "action", "after"):
        metadata[field] = hooks.hook(metadata[field])


def _reference(object, /):
    return weakref.ref(object) if object else None


class Command(metaclass=CommandType):
    """
    A named node of the command tree.

    Lifecycle
    - Created while the tree is declared (before any parsing); the topology only
      changes afterwards through clear_commands()/clear_options().
    - Option values and recorded arguments change during resolution.

    Hooks
    - before(hook)/action(hook)/after(hook) assign a hook and return it (so they can
      be used as decorators); called without argument they return the current hook.
    - A hook is the name of an Application method or a one-argument callable that
      receives the command. Only the presence of an action decides whether the hook
      chain runs: commands without an action show their help instead.
    """

    __introspectable__ = (
        "name",
    )

    __displayable__ = (
        "name",
        "description",
        "options",
        "commands",
    )

    def __init__(
            self,
            name,
            /,
            *,
            description=Unset,
            banner=Unset,
            synopsis=Unset,
            before=Unset,
            action=Unset,
            after=Unset,
            parent=Unset,
            application=Unset,
    ):
        metadata = {
            "name": name,
            "description": description,
            "banner": banner,
            "synopsis": synopsis,
            "before": before,
            "action": action,
            "after": after,
            "parent": parent,
            "application": application,
        }
        _sanitize_metadata(type(self), metadata)

        self._parent = _reference(metadata.pop("parent"))
        self._application = _reference(metadata.pop("application"))
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._commands = {}
        self._options = {}
        self._arguments = []

    # ── Tree ───────────────────────────────────────────────────────────────

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def application(self):
        return self._application() if self._application is not None else None

    def is_application(self):
        return False

    @property
    def path(self):
        """
        Return the ancestry from the root to this command as a tuple.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    def full_name(self, suffix=None, separator=":"):
        """
        Join the names from the first non-application ancestor down to this command.

        Example: for application -> deploy -> production, production.full_name()
        is "deploy:production" and full_name("x", " ") is "deploy production x".
        """
        names = [step.name for step in self.path if not step.is_application()]
        if suffix:
            names.append(str(suffix))
        return separator.join(names)

    @property
    def console(self):
        """The renderer of the owning application (a default console when detached)."""
        application = self.application
        return application.console if application is not None else Console()

    # ── Help text ──────────────────────────────────────────────────────────

    @property
    def description(self):
        return self._description

    @description.setter
    def description(self, value):
        self._description = self._text("description", value)

    @property
    def banner(self):
        return self._banner

    @banner.setter
    def banner(self, value):
        self._banner = self._text("banner", value)

    @property
    def synopsis(self):
        return self._synopsis

    @synopsis.setter
    def synopsis(self, value):
        self._synopsis = self._text("synopsis", value)

    def _text(self, field, value):
        metadata = {field: Unset if value is None else value}
        _sanitize_text(type(self), metadata, field)
        return metadata[field]

    def has_description(self):
        return bool(self._description)

    def has_banner(self):
        return bool(self._banner)

    # ── Hooks ──────────────────────────────────────────────────────────────

    def before(self, hook=Unset, /):
        if hook is Unset:
            return self._before
        self._before = hooks.hook(hook)
        return hook

    def action(self, hook=Unset, /):
        if hook is Unset:
            return self._action
        self._action = hooks.hook(hook)
        return hook

    def after(self, hook=Unset, /):
        if hook is Unset:
            return self._after
        self._after = hooks.hook(hook)
        return hook

    # ── Children ───────────────────────────────────────────────────────────

    @property
    def commands(self):
        return MappingProxyType(self._commands)

    @property
    def options(self):
        return MappingProxyType(self._options)

    def has_commands(self):
        return bool(self._commands)

    def has_options(self):
        return bool(self._options)

    def clear_commands(self):
        self._commands.clear()

    def clear_options(self):
        self._options.clear()

    def command(self, name, build=None, /, **attrs):
        """
        Declare a subcommand.

        Parameters
        - name: str
          Unique among the siblings; it cannot contain whitespaces or ':' and cannot start with '-'.
        - build: Callable[[Command], Any]
          Called with the new command to declare its options, hooks and subcommands.
        - **attrs: description, banner, synopsis, before, action, after.

        Behavior
        - The subcommand shares this command's application and receives a -h/--help
          option after `build` ran.

        Raises
        - DuplicateCommandError when the name is already taken.
        - TypeError/ValueError on malformed names or attributes.
        """
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} name must be a string")
        elif not re.fullmatch(r"[^\s:\-][^\s:]*", name := name.strip()):
            raise ValueError(f"{type(self).__typename__} name {name!r} cannot contain whitespaces or ':' or start with '-'")
        if build is not None and not callable(build):
            raise TypeError(f"{type(self).__typename__} builder must be callable")
        if "parent" in attrs or "application" in attrs:
            raise TypeError(f"{type(self).__typename__} parent and application cannot be overridden")

        if name in self._commands:
            raise DuplicateCommandError(
                "command %r is already defined" % self.full_name(name),
                target=self,
                name=name,
                hint="give each subcommand of %r a different name" % (self.full_name() or self.name),
            )

        command = Command(name, parent=self, application=self.application or Unset, **attrs)
        if build is not None:
            build(command)
        command.option("help", ["h", "help"], help="Shows this message.", action=lambda command, _: command.show_help())

        self._commands[name] = command
        logger.debug("declared command %r", command.full_name())
        return command

    def option(self, name, forms=(), /, action=None, **attrs):
        """
        Declare an option on this command.

        Parameters
        - name, forms: see Option.
        - action: Callable[[Command, Any], Any], fired when the option is matched.
        - **attrs: type, help, meta, default, validator.

        Raises
        - DuplicateOptionError when the name is already declared on this command.
        """
        option = Option(name, forms, action=action, **attrs)

        if option.name in self._options:
            where = "globally" if self.is_application() else "for command %r" % self.full_name()
            raise DuplicateOptionError(
                "option %r is already defined %s" % (option.name, where),
                target=self,
                name=option.name,
                hint="give each option of %r a different name" % (self.full_name() or self.name),
            )

        option.parent = self
        self._options[option.name] = option
        return option

    # ── Arguments ──────────────────────────────────────────────────────────

    def argument(self, value, /):
        """Record a plain positional argument."""
        self._arguments.append(str(value))

    def arguments(self):
        return list(self._arguments)

    def clear_arguments(self):
        self._arguments.clear()

    def get_options(self, *, unprovided=False, application="application_", prefix="", whitelist=()):
        """
        Export option values as a dict.

        Parameters
        - unprovided: also include options that were neither provided nor have a
          default, as long as they have no action.
        - application: key prefix for the application's own options (merged first);
          None excludes them. Ignored on the application itself.
        - prefix: key prefix for this command's options.
        - whitelist: option names to include; empty means all.

        On key collisions this command's options win over the application's.
        """
        options = {}

        if application is not None and not self.is_application() and self.application is not None:
            options.update(self.application.get_options(
                unprovided=unprovided, application=None, prefix=application, whitelist=whitelist
            ))

        whitelist = set(map(str, whitelist)) or set(self._options)
        for name, option in self._options.items():
            if name in whitelist and (option.provided or option.has_default() or (unprovided and option.action is None)):
                options[prefix + name] = option.value

        return options

    # ── Execution ──────────────────────────────────────────────────────────

    def execute(self, args=None, /):
        """
        Resolve `args` (default: the process command line) and run the selected command.
        """
        return executor.execute(self, args)

    # ── Help ───────────────────────────────────────────────────────────────

    def _executable(self):
        application = self.application
        return application.executable_name if application is not None else self.name

    def _format_synopsis(self):
        if self.synopsis:
            return self.synopsis
        if self.is_application():
            invocation = "[command [command-options]] " if self.has_commands() else ""
            return "%s [options] %s[arguments]" % (self._executable(), invocation)
        invocation = "[subcommand [subcommand-options]] " if self.has_commands() else ""
        return "%s [options] %s [command-options] %s[arguments]" % (
            self._executable(), self.full_name(separator=" "), invocation
        )

    def _show_summary(self, console):
        if self.is_application():
            console.write("[bold]NAME[/bold]")
            summary = " ".join(part for part in (self.name, getattr(self, "version", None)) if part)
            if self.has_description():
                summary += " - " + self.description
            console.write(escape(summary), indent=4, wrap=True)
            console.write("")

        console.write("[bold]SYNOPSIS[/bold]")
        console.write(escape(self._format_synopsis()), indent=4, wrap=True)

    def _show_banner(self, console):
        console.write("")
        console.write("[bold]DESCRIPTION[/bold]")
        console.write(escape(self.banner), indent=4, wrap=True)

    def _show_options(self, console):
        console.write("")
        console.write("[bold]GLOBAL OPTIONS[/bold]" if self.is_application() else "[bold]OPTIONS[/bold]")

        labels = {}
        for option in self._options.values():
            forms = [option.complete_short, option.complete_long]
            if option.requires_argument():
                forms = ["%s %s" % (form, option.meta) for form in forms]
            labels[", ".join(forms)] = option.help if option.has_help() else "No description provided."

        alignment = max(map(len, labels))
        with console.indentation(4):
            for label in sorted(labels):
                console.write(escape("%s - %s" % (label.ljust(alignment), labels[label])), wrap=True)

    def _show_commands(self, console):
        console.write("")
        console.write("[bold]COMMANDS[/bold]" if self.is_application() else "[bold]SUBCOMMANDS[/bold]")

        alignment = max(map(len, self._commands))
        with console.indentation(4):
            for name in sorted(self._commands):
                command = self._commands[name]
                description = command.description if command.has_description() else "No description provided."
                console.write(escape("%s - %s" % (name.ljust(alignment), description)), wrap=True)

    def show_help(self):
        """
        Render the help of this command and exit the process with status 0.
        """
        console = self.console
        self._show_summary(console)
        if self.has_banner():
            self._show_banner(console)
        if self.has_options():
            self._show_options(console)
        if self.has_commands():
            self._show_commands(console)
        sys.exit(0)


class Application(Command):
    """
    Root of a command tree.

    Adds
    - version: shown in the help summary.
    - console: the renderer used for help and faults (a new Console unless injected).
    - executable_name: program name shown in synopses (basename of sys.argv[0] by default).
    - an implicit `help` command: `tool help deploy:production` (or `tool help deploy production`)
      shows the help of that command path.
    - a global -h/--help option showing the application help.

    Runtime configuration
    - colorful: render with colors (ignored when a console is injected).
    - debug: install a rich logging handler at DEBUG level for the package loggers.
    """

    def __init__(
            self,
            name=Unset,
            /,
            *,
            version=Unset,
            console=Unset,
            colorful=True,
            executable_name=Unset,
            debug=False,
            **attrs,
    ):
        if "parent" in attrs or "application" in attrs:
            raise TypeError(f"{type(self).__typename__} cannot have a parent or an application")
        if not isinstance(console, Console | Unset):
            raise TypeError(f"{type(self).__typename__} 'console' must be a console")
        if not isinstance(executable_name, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'executable_name' must be a string")

        program = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "application"
        super().__init__(coalesce(name, program), **attrs)

        self._version = str(version) if version is not Unset and version is not None else None
        self._console = coalesce(console, None) or Console(colorful=colorful)
        self._executable_name = coalesce(executable_name, program)

        if debug:
            install_logging(logging.DEBUG)

        self.command("help", description="Shows a help about a command.", action=_command_help)
        self.option("help", ["h", "help"], help="Shows this message.", action=lambda application, _: application.show_help())

    @classmethod
    def create(cls, build, /, *, run=True, args=None, **attrs):
        """
        Build an application with `build(application)` and, unless run=False, execute it.

        Faults raised while building or running are rendered through the application
        console and terminate the process with status 1.
        """
        if not callable(build):
            raise TypeError(f"{cls.__typename__} builder must be callable")

        application = cls(attrs.pop("name", Unset), **attrs)
        try:
            build(application)
        except ArborError as fault:
            trigger(fault, console=application.console, colorful=application.console.colorful, prog=application.name)

        if run:
            executor.run(application, args)
        return application

    @property
    def application(self):
        return self

    def is_application(self):
        return True

    @property
    def version(self):
        return self._version

    @property
    def console(self):
        return self._console

    @property
    def executable_name(self):
        return self._executable_name

    def command_help(self, command, /):
        """
        Show the help of the command path given as arguments of `command`.

        Arguments are split on ':' so "deploy:production" and "deploy production"
        address the same command. Descent stops at the first name that matches no
        subcommand; the deepest command reached shows its help.
        """
        target = self
        names = (name.strip() for argument in command.arguments() for name in argument.split(":"))
        for name in filter(None, names):
            if (resolution := find_command(name, target)) is None:
                break
            target = resolution.command
        target.show_help()


def _command_help(command):
    command.application.command_help(command)


__all__ = (
    # Public API surface for consumers of arbor.commands.
    "Command",
    "Application",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del CommandType
