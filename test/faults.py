"""
Faults module tests (codes, messages, rich rendering and triggering).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
import warnings
from unittest import TestCase

from rich.text import Text

from parley.faults import *


class TestFaults(TestCase):

    def testMessageIsTheUserFacingText(self):
        fault = UnknownOptionError("  error: unknown option --bogus", code=FaultCode.UNKNOWN_OPTION)
        self.assertEqual(str(fault), "  error: unknown option --bogus")
        self.assertIs(fault.code, FaultCode.UNKNOWN_OPTION)

    def testOptionsAreReadOnly(self):
        fault = MissingArgumentError("  error: missing required argument cmd", name="cmd")
        with self.assertRaises(TypeError):
            fault.options["name"] = "other"  # type: ignore[index]

    def testReplaceMergesOptions(self):
        fault = MissingArgumentError("message", name="cmd")
        replaced = fault.__replace__(code=FaultCode.MISSING_ARGUMENT)
        self.assertIsInstance(replaced, MissingArgumentError)
        self.assertEqual(dict(replaced.options), {"name": "cmd", "code": FaultCode.MISSING_ARGUMENT})
        self.assertEqual(dict(fault.options), {"name": "cmd"})

    def testMalformedSchemaIsValueError(self):
        self.assertTrue(issubclass(MalformedSchemaError, ValueError))
        self.assertTrue(issubclass(MalformedSchemaError, CommandException))

    def testRichRenderingIncludesCode(self):
        rendered = UnknownOptionError("boom", code=FaultCode.UNKNOWN_OPTION).__rich__()
        self.assertIsInstance(rendered, Text)
        self.assertEqual(rendered.plain, "boom [21112]")

    def testTriggerRaisesErrors(self):
        with self.assertRaises(MalformedSchemaError) as context:
            trigger(MalformedSchemaError("bad schema"), code=FaultCode.MALFORMED_SCHEMA)
        self.assertIs(context.exception.code, FaultCode.MALFORMED_SCHEMA)

    def testTriggerWarnsWarnings(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            trigger(HandlerOverrideWarning("handler for 'exec' is replaced"), code=FaultCode.HANDLER_OVERRIDE)
        self.assertEqual(len(caught), 1)
        self.assertIsInstance(caught[0].message, HandlerOverrideWarning)

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))

    def testCodesAreStable(self):
        self.assertEqual(FaultCode.MALFORMED_SCHEMA, 21101)
        self.assertEqual(FaultCode.OPTION_ARGUMENT_MISSING.normalize(), "21111")
        self.assertEqual(FaultCode.INVALID_OPTION_VALUE, 21113)


if __name__ == "__main__":
    unittest.main()
