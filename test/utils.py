"""
Tests for the internal helpers.

This module verifies:
- The Unset sentinel (singleton, falsy, distinct from None, picklable, final).
- coalesce(), rename() and mirror().
- snakecase() and pad() used by option keys and help columns.
- mglob() module pattern expansion.
"""
import copy
import pickle
import unittest
from unittest import TestCase

from parley.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPickleRoundTripKeepsIdentity(self):
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testFinal(self):
        with self.assertRaises(TypeError):
            class Derived(UnsetType):  # NOQA
                pass


class HelpersTest(TestCase):

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testRename(self):
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")
        with self.assertRaises(TypeError):
            rename(1)
        with self.assertRaises(TypeError):
            rename("x")(1)

    def testMirrorReturnsCopies(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ["a"]

        holder = Holder()
        holder.items.append("b")
        self.assertEqual(holder.items, ["a"])
        with self.assertRaises(AttributeError):
            holder.items = []

    def testSnakecase(self):
        self.assertEqual(snakecase("add-sauce"), "add_sauce")
        self.assertEqual(snakecase("Add--Sauce"), "add_sauce")
        self.assertEqual(snakecase("cheese"), "cheese")

    def testPad(self):
        self.assertEqual(pad("-p", 4), "-p  ")
        self.assertEqual(pad("--pepper", 4), "--pepper")


class ModuleGlobTest(TestCase):

    def testConcreteNameIsReturnedAsIs(self):
        self.assertEqual(mglob("some.module"), ["some.module"])

    def testWildcardChildren(self):
        matches = mglob("json.*")
        self.assertEqual(matches, sorted(matches))
        self.assertLessEqual({"json.decoder", "json.encoder"}, set(matches))
        self.assertNotIn("json", matches)

    def testMissingPackage(self):
        self.assertEqual(mglob("parley_missing_package.*"), [])

    def testInvalidPatterns(self):
        with self.assertRaises(ValueError):
            mglob("")
        with self.assertRaises(ValueError):
            mglob("*.commands")
        with self.assertRaises(TypeError):
            mglob(None)  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
