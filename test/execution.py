"""
Executor behavioral tests (hook chain, dispatch, help, process boundary).

Scope
- Validate before -> action -> after ordering and named/callback dispatch.
- Validate the help fallback and the implicit help command/option.
- Validate the process boundary: exit status 0 for help, 1 for faults.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured through a Console bound to an io.StringIO.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from arbor import Application, Console, run


def console():
    stream = io.StringIO()
    return Console(file=stream, colorful=False, width=200), stream


class Recorder(Application):
    def __init__(self, *args, **attrs):
        self.calls = []
        super().__init__(*args, **attrs)

    def prepare(self, command):
        self.calls.append(("prepare", command.name))


class TestHookChain(TestCase):
    """before -> action -> after."""

    def testOrder(self):
        output, _ = console()
        app = Recorder("tool", console=output)
        deploy = app.command(
            "deploy",
            before="prepare",
            action=lambda command: app.calls.append(("action", command.name)),
            after=lambda command: app.calls.append(("after", command.name)),
        )

        self.assertIs(app.execute(["deploy"]), deploy)
        self.assertEqual(app.calls, [("prepare", "deploy"), ("action", "deploy"), ("after", "deploy")])

    def testHooksWithoutActionAreSkipped(self):
        output, _ = console()
        app = Recorder("tool", console=output)
        deploy = app.command("deploy", before="prepare")
        deploy.command("production")

        with self.assertRaises(SystemExit) as context:
            app.execute(["deploy"])
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(app.calls, [])

    def testActionSeesOptionsAndArguments(self):
        output, _ = console()
        app = Application("tool", console=output)
        seen = {}

        def build(production):
            production.option("force", ["f"])

            @production.action
            def deploy(command):
                seen.update(command.get_options(), arguments=command.arguments())

        app.command("deploy").command("production", build)
        app.execute("dep prod --force web")

        self.assertEqual(seen, {"force": True, "arguments": ["web"]})

    def testOptionsBeforeSubcommandBelongToParent(self):
        output, _ = console()
        app = Application("tool", console=output)
        app.option("verbose", ["v"])
        seen = []
        app.command("deploy", action=lambda command: seen.append(command.get_options()))

        app.execute(["-v", "deploy"])
        self.assertEqual(seen, [{"application_verbose": True}])


class TestHelpPaths(TestCase):
    """Implicit help command and option."""

    def testHelpOption(self):
        output, stream = console()
        app = Application("tool", console=output)
        app.command("deploy", action=lambda command: None)

        with self.assertRaises(SystemExit) as context:
            app.execute(["deploy", "--help"])
        self.assertEqual(context.exception.code, 0)
        self.assertIn("SYNOPSIS", stream.getvalue())

    def testHelpCommandWalksPath(self):
        output, stream = console()
        app = Application("tool", console=output, executable_name="tool")
        app.command("deploy").command("production", description="Ship it", action=lambda command: None)

        with self.assertRaises(SystemExit) as context:
            app.execute(["help", "deploy:production"])
        self.assertEqual(context.exception.code, 0)
        self.assertIn("tool [options] deploy production [command-options] [arguments]", stream.getvalue())

    def testHelpCommandStopsAtUnknownName(self):
        output, stream = console()
        app = Application("tool", console=output)
        app.command("deploy", action=lambda command: None)

        with self.assertRaises(SystemExit):
            app.execute(["help", "nothing"])
        self.assertIn("GLOBAL OPTIONS", stream.getvalue())


class TestProcessBoundary(TestCase):
    """run() and Application.create()."""

    def testUnknownOptionExitsWithFailure(self):
        output, stream = console()
        app = Application("tool", console=output)
        app.command("deploy", action=lambda command: None)

        with self.assertRaises(SystemExit) as context:
            run(app, ["--unknown-flag"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unknown option '--unknown-flag'", stream.getvalue())

    def testCreateRunsTheApplication(self):
        output, _ = console()
        seen = []

        def build(application):
            deploy = application.command("deploy")
            deploy.command("production", action=lambda command: seen.append(command.full_name()))

        app = Application.create(build, name="tool", console=output, args=["deploy", "production"])
        self.assertEqual(seen, ["deploy:production"])
        self.assertEqual(app.name, "tool")

    def testCreateWithoutRun(self):
        output, _ = console()
        app = Application.create(lambda application: application.command("deploy"), run=False, console=output)
        self.assertIn("deploy", app.commands)

    def testCreateReportsDeclarationFaults(self):
        output, stream = console()

        def build(application):
            application.command("deploy")
            application.command("deploy")

        with self.assertRaises(SystemExit) as context:
            Application.create(build, name="tool", console=output, run=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("duplicate command", stream.getvalue().lower())

    def testCreateRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            Application.create("build")


if __name__ == "__main__":
    unittest.main()
