"""
Lexer tests: tokenize() quoting rules, normalize() rewriting rules and
the source indexes reported by normalize_indexed().

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from parley import Option
from parley.lexer import tokenize, normalize, normalize_indexed


class TestTokenize(TestCase):

    def testWhitespaceRuns(self):
        self.assertEqual(tokenize("  exec   ls\t-la "), ["exec", "ls", "-la"])

    def testQuotedRunsKeepQuotes(self):
        self.assertEqual(tokenize('exec "ls -la" now'), ["exec", '"ls -la"', "now"])
        self.assertEqual(tokenize("say 'hello world'"), ["say", "'hello world'"])

    def testEmptyLine(self):
        self.assertEqual(tokenize(""), [])
        self.assertEqual(tokenize("   "), [])

    def testRejectsNonString(self):
        with self.assertRaises(TypeError):
            tokenize(None)  # type: ignore[arg-type]


class TestNormalize(TestCase):

    def testCombinedShortFlagsExplode(self):
        self.assertEqual(normalize(["-abc"]), ["-a", "-b", "-c"])
        self.assertEqual(normalize(["-abc"]), normalize(["-a", "-b", "-c"]))

    def testShortFlagsWithInlineValue(self):
        self.assertEqual(normalize(["-ab=value"]), ["-a", "-b", "value"])
        self.assertEqual(normalize(["-a="]), ["-a"])

    def testLongFlagWithInlineValue(self):
        self.assertEqual(normalize(["--name=value"]), ["--name", "value"])
        self.assertEqual(normalize(["--name=value"]), normalize(["--name", "value"]))
        self.assertEqual(normalize(["--name=a=b"]), ["--name", "a=b"])

    def testTerminatorPassesRestThrough(self):
        self.assertEqual(normalize(["-ab", "--", "-cd", "--x=y"]), ["-a", "-b", "--", "-cd", "--x=y"])

    def testValueOfRequiredOptionIsUntouched(self):
        config = Option("-c, --config <path>")
        lookup = lambda token: config if config.is_(token) else None
        self.assertEqual(normalize(["--config", "-xyz"], lookup), ["--config", "-xyz"])
        self.assertEqual(normalize(["--config", "-xyz"]), ["--config", "-x", "-y", "-z"])

    def testIndexedPairsPointBackToInputTokens(self):
        config = Option("-c, --config <path>")
        lookup = lambda token: config if config.is_(token) else None
        self.assertEqual(
            normalize_indexed(["-vc", "-x", "add", "--name=a", "--", "-y"], lookup),
            [(0, "-v"), (0, "-c"), (1, "-x"), (2, "add"), (3, "--name"), (3, "a"), (4, "--"), (5, "-y")],
        )
        self.assertEqual(normalize_indexed([]), [])

    def testPlainTokens(self):
        self.assertEqual(normalize(["exec", "-", '"ls -la"']), ["exec", "-", '"ls -la"'])


if __name__ == "__main__":
    unittest.main()
