"""
Console module behavioral tests (markup, indentation, wrapping, logging).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import logging
import unittest
from unittest import TestCase

from rich.logging import RichHandler

from arbor import Console, install_logging


def console(width=80):
    stream = io.StringIO()
    return Console(file=stream, colorful=False, width=width), stream


class TestConsole(TestCase):
    """Rendering primitives used by help output."""

    def testMarkupIsRendered(self):
        output, stream = console()
        output.write("[bold]NAME[/bold]")
        self.assertEqual(stream.getvalue(), "NAME\n")

    def testSuffix(self):
        output, stream = console()
        output.write("a", suffix="")
        output.write("b", suffix="!\n")
        self.assertEqual(stream.getvalue(), "ab!\n")

    def testIndentation(self):
        output, stream = console()
        with output.indentation(2):
            output.write("one", indent=2)
            self.assertEqual(output.level, 2)
        output.write("two")
        self.assertEqual(stream.getvalue(), "    one\ntwo\n")
        self.assertEqual(output.level, 0)

    def testIndentationRejectsNegativeLevels(self):
        output, _ = console()
        with self.assertRaises(ValueError):
            with output.indentation(-1):
                pass

    def testWrapKeepsIndentation(self):
        output, stream = console(width=20)
        output.write("alpha beta gamma delta epsilon", indent=4, wrap=True)
        lines = stream.getvalue().splitlines()
        self.assertGreater(len(lines), 1)
        for line in lines:
            self.assertTrue(line.startswith("    "))
            self.assertLessEqual(len(line), 20)

    def testPlainStripsMarkup(self):
        output = Console(file=io.StringIO(), colorful=True)
        self.assertEqual(output.format("[red]x[/red]", plain=True).plain, "x")
        self.assertEqual(output.format("[red]x[/red]", plain=True).spans, [])


class TestLogging(TestCase):
    """install_logging() wiring."""

    def tearDown(self):
        logger = logging.getLogger("arbor")
        for handler in list(logger.handlers):
            if isinstance(handler, RichHandler):
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)

    def testInstallReplacesPreviousHandler(self):
        output, _ = console()
        install_logging(logging.INFO, output)
        install_logging(logging.DEBUG, output)

        logger = logging.getLogger("arbor")
        handlers = [handler for handler in logger.handlers if isinstance(handler, RichHandler)]
        self.assertEqual(len(handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)

    def testDebugRecordsReachTheConsole(self):
        output, stream = console(width=200)
        install_logging(logging.DEBUG, output)
        logging.getLogger("arbor.parser").debug("resolved %r", "deploy")
        self.assertIn("resolved 'deploy'", stream.getvalue())


if __name__ == "__main__":
    unittest.main()
