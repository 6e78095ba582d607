"""
Arguments module tests (Option declarations and signature parsing).

Scope
- Derivation of short/long forms, arity and negation from flags strings.
- Canonical keys and exact token matching.
- Signature groups: required/optional, variadic, quoted labels.
- Construction-time faults for malformed declarations.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from parley import Option, Argument, parse_signature, humanize
from parley.faults import MalformedSchemaError


class TestOption(TestCase):
    """Flags string parsing for Option."""

    def testShortAndLongForms(self):
        for flags in ("-p, --pepper", "-p|--pepper", "-p --pepper"):
            with self.subTest(flags=flags):
                option = Option(flags, "add pepper")
                self.assertEqual(option.short, "-p")
                self.assertEqual(option.long, "--pepper")
                self.assertEqual(option.name, "pepper")
                self.assertTrue(option.boolean)

    def testLongOnlyWithPlaceholder(self):
        option = Option("--config <path>")
        self.assertIsNone(option.short)
        self.assertEqual(option.long, "--config")
        self.assertTrue(option.required)
        self.assertFalse(option.optional)

    def testOptionalValue(self):
        option = Option("-s, --size [size]")
        self.assertTrue(option.optional)
        self.assertFalse(option.required)
        self.assertFalse(option.boolean)

    def testNegation(self):
        option = Option("-C, --no-cheese", "remove cheese")
        self.assertTrue(option.negate)
        self.assertEqual(option.name, "cheese")
        self.assertEqual(option.key, "cheese")

    def testKeyIsSnakeCase(self):
        self.assertEqual(Option("--add-sauce").key, "add_sauce")
        self.assertEqual(Option("-b, --bbq-sauce-type <type>").key, "bbq_sauce_type")

    def testExactTokenMatch(self):
        option = Option("-p, --pepper")
        self.assertTrue(option.is_("-p"))
        self.assertTrue(option.is_("--pepper"))
        self.assertFalse(option.is_("--pep"))
        self.assertFalse(option.is_("-P"))

    def testDescriptionDefaultsToEmpty(self):
        self.assertEqual(Option("-q, --quiet").descr, "")

    def testFlagsAreReadOnly(self):
        option = Option("-q, --quiet")
        with self.assertRaises(AttributeError):
            option.required = True  # type: ignore[misc]

    def testMalformedFlagsRaise(self):
        for flags in ("", "   ", "pepper", "-p, pepper", "--", "--no-"):
            with self.subTest(flags=flags):
                with self.assertRaises(MalformedSchemaError):
                    Option(flags)

    def testNonStringFlagsRaiseTypeError(self):
        with self.assertRaises(TypeError):
            Option(42)  # type: ignore[arg-type]

    def testRepr(self):
        self.assertTrue(repr(Option("-q, --quiet")).startswith("option(flags='-q, --quiet'"))


class TestSignature(TestCase):
    """parse_signature() and humanize()."""

    def testRequiredAndOptional(self):
        arguments = parse_signature("<cmd> [target]")
        self.assertEqual([argument.name for argument in arguments], ["cmd", "target"])
        self.assertEqual([argument.required for argument in arguments], [True, False])
        self.assertFalse(any(argument.variadic for argument in arguments))

    def testVariadicLast(self):
        dir, others = parse_signature("<dir> [otherDirs...]")
        self.assertEqual(others.name, "otherDirs")
        self.assertTrue(others.variadic)
        self.assertFalse(dir.variadic)

    def testVariadicNotLastRaises(self):
        with self.assertRaises(MalformedSchemaError) as context:
            parse_signature("[dirs...] <target>")
        self.assertEqual(str(context.exception), "error: variadic arguments must be last dirs")

    def testQuotedLabelOverridesName(self):
        argument, = parse_signature("<'a quoted label'>")
        self.assertEqual(argument.name, "'a quoted label'")
        self.assertTrue(argument.required)

    def testEmptyAndUnbracketedText(self):
        self.assertEqual(parse_signature(""), [])
        self.assertEqual(parse_signature("plain words"), [])

    def testHumanize(self):
        rendered = [humanize(argument) for argument in parse_signature("<dir> [name] <files...> ")]
        self.assertEqual(rendered, ["<dir>", "[name]", "<files...>"])

    def testShortDotsAreNotVariadic(self):
        argument, = parse_signature("[...]")
        self.assertEqual(argument.name, "...")
        self.assertFalse(argument.variadic)

    def testArgumentValidation(self):
        with self.assertRaises(MalformedSchemaError):
            Argument("")
        with self.assertRaises(TypeError):
            Argument(None)  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
