"""
Faults module behavioral tests (codes, options, rendering, trigger).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from arbor import Console, FaultCode, ArborError, UnknownOptionError, ValidationError, trigger


class TestFaults(TestCase):
    """Fault metadata and rendering."""

    def testCodesAreGroupedByDomain(self):
        self.assertEqual(FaultCode.DUPLICATE_COMMAND // 1000, 21)
        self.assertEqual(FaultCode.UNKNOWN_OPTION // 1000, 22)
        self.assertEqual(FaultCode.AMBIGUOUS_COMMAND // 1000, 23)
        self.assertEqual(FaultCode.INVALID_VALUE.normalize(), "22111")

    def testOptionsAreExposedAsAttributes(self):
        fault = UnknownOptionError("unknown option '--x'", token="--x", hint="try --help")
        self.assertEqual(fault.token, "--x")
        self.assertEqual(fault.hint, "try --help")
        self.assertEqual(str(fault), "unknown option '--x'")
        with self.assertRaises(AttributeError):
            fault.missing

    def testOptionsAreReadOnly(self):
        fault = ArborError("boom", value=1)
        with self.assertRaises(TypeError):
            fault.options["value"] = 2  # type: ignore[index]

    def testReplaceMergesOptions(self):
        fault = ValidationError("bad value", value=5)
        replaced = fault.__replace__(prog="tool")
        self.assertIsInstance(replaced, ValidationError)
        self.assertEqual(replaced.value, 5)
        self.assertEqual(replaced.prog, "tool")
        self.assertNotIn("prog", fault.options)

    def testTriggerRendersAndExits(self):
        stream = io.StringIO()
        output = Console(file=stream, colorful=False, width=200)
        fault = ValidationError("value 5 is not valid for option -l/--level", hint="use one of: 1, 2, 3")

        with self.assertRaises(SystemExit) as context:
            trigger(fault, console=output, colorful=False, prog="tool")
        self.assertEqual(context.exception.code, 1)

        rendered = stream.getvalue()
        self.assertIn("[ tool — 22111 | Invalid Value ]", rendered)
        self.assertIn("value 5 is not valid for option -l/--level", rendered)
        self.assertIn("→ use one of: 1, 2, 3", rendered)

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(object())


if __name__ == "__main__":
    unittest.main()
