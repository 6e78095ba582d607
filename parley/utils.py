"""
Parley utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the arguments/commands layers so that option
  keys, help columns and sentinels behave the same everywhere.

Overview
- UnsetType / Unset
  • Singleton sentinel for “value not provided”, distinct from None (None is a
    legitimate option value: it means “declared but never resolved”).

- coalesce(value, default=None)
  • Replace Unset with a concrete default; other falsey values are preserved.

- @rename("name")
  • Assign stable __name__/__qualname__ to generated callables.

- mirror("attr")
  • Read-only property exposing a private backing field (self._attr) through a
    fresh copy for containers.

- snakecase(text)
  • Canonical attribute key for an option name ("add-sauce" → "add_sauce").

- pad(text, width)
  • Left-justify a help column.

- mglob(pattern)
  • Expand "pkg.**.commands" style module globs into importable module names.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> snakecase("no-cheese")
    'no_cheese'
    >>> pad("-p", 4) + "|"
    '-p  |'
"""
import functools
import importlib
import pkgutil
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions (e.g., isinstance(x, str | Unset)).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns the given object unless it is Unset, in which case `default` is
    returned. None, 0, "" and [] are preserved as-is.
    """
    return object if object is not Unset else default


def rename(name, /):
    """
    Decorator fixing __name__/__qualname__ of a generated callable, so reprs
    and tracebacks show `name` instead of the enclosing factory.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(function):
        if not callable(function):
            raise TypeError("@rename() must be applied to a callable")
        function.__name__ = function.__qualname__ = name
        return function

    return decorator


def _detach(object):
    """
    Copy container values so callers cannot mutate the backing field.

    Sequences (non-string) become lists, mappings dicts and sets sets; the
    copy is shallow, items are shared.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(object)
    elif isinstance(object, Mapping):
        return dict(object)
    elif isinstance(object, Set):
        return set(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Containers are returned as shallow copies.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def snakecase(text, /):
    """
    Turn a dashed option name into an identifier-like key.

    Runs of dashes become a single underscore and the result is lowercased,
    so "add-sauce" and "Add--Sauce" both map to "add_sauce".
    """
    if not isinstance(text, str):
        raise TypeError("snakecase() argument must be a string")
    return re.sub(r"-+", "_", text.strip("-")).lower()


def pad(text, width, /):
    """
    Pad `text` with spaces on the right up to `width` (never truncates).
    """
    return text + " " * max(0, width - len(text))


@functools.cache
def _translate(segment):
    """
    translate a single glob segment into a regex snippet (dots are never matched).
      *       → zero or more non-dot chars
      ?       → exactly one non-dot char
      [...]   → character class
      [!...]  → negated character class
    """
    parts = []
    for token in re.findall(r"\[!?[^\]]+\]|[*?]|[^*?\[]+|\[", segment):
        match token:
            case "*":
                parts.append(r"[^.]*")
            case "?":
                parts.append(r"[^.]")
            case "[":
                parts.append(r"\[")
            case _ if token.startswith("[!"):
                parts.append("[^" + token[2:])
            case _ if token.startswith("["):
                parts.append(token)
            case _:
                parts.append(re.escape(token))
    return "".join(parts)


@functools.cache
def _compile_glob(pattern):
    """
    compile a dotted module glob into a regex; a whole '**' segment spans
    zero or more segments.
    """
    segments = []
    for segment in pattern.split("."):
        if segment == "**":
            segments.append(r"(?:\.[A-Za-z_]\w*)*")
        else:
            segments.append(r"\." + _translate(segment))
    return re.compile("".join(segments).removeprefix(r"\."))


def mglob(source, /):
    """
    expand a dot-separated module glob into fully-qualified module names.

    rules
    - must start with at least one concrete segment (no wildcard-only prefix).
    - matches are case-sensitive and returned in sorted order.
    - a pattern without wildcards is returned as-is (import errors surface later).

    examples
    - "bot.commands.*"   → direct children of bot.commands
    - "bot.**.commands"  → any commands module under bot
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    elif not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")

    if re.fullmatch(r"(?!\d)\w+(\.(?!\d)\w+)*", source):
        return [source]

    prefixes = []
    for segment in source.split("."):
        if not re.fullmatch(r"(?!\d)\w+", segment):
            break
        prefixes.append(segment)

    if not prefixes:
        raise ValueError("mglob() pattern must start with a concrete package segment")

    try:
        package = importlib.import_module(prefix := ".".join(prefixes))
    except ImportError:
        return []

    pattern = _compile_glob(source)
    matches = {prefix} if pattern.fullmatch(prefix) else set()

    if hasattr(package, "__path__"):
        for metadata in pkgutil.walk_packages(package.__path__, prefix + "."):
            if pattern.fullmatch(name := metadata.name):
                matches.add(name)

    return sorted(matches)


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a meaningful value; materialize it with
coalesce(value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "snakecase",
    "pad",
    "mglob",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
