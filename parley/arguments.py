r"""
Parley argument specifications.

Overview
- Specs
  • Option: a named flag declared from a flags string ("-c, --config <path>").
    Its arity (boolean / optional value / required value) and its negation
    ("--no-cache") are derived once from the declaration and never change.
  • Argument: one positional slot (required/optional, variadic) of a command.

- Signature parsing
  • parse_signature("<dir> [otherDirs...]") turns the text that follows a
    command name into an ordered list of Argument specs.
  • humanize(argument) renders a spec back for usage lines ("<dir>", "[dirs...]").

- Introspection & representation
  • SpecType metaclass exposes the fields listed in __introspectable__ as
    read-only properties and provides stable __repr__/__rich_repr__.

Declaration grammar
- Option flags are split on r"[ ,|]+"; all of these are equivalent:
    "-p, --pepper"    "-p|--pepper"    "-p --pepper"
  A value placeholder follows the long form: "<value>" (required) or
  "[value]" (optional).
- Argument groups are "<name>" (required) or "[name]" (optional); a trailing
  "..." marks the group variadic and only the last group may be variadic.
  A quoted literal inside a group replaces the displayed name verbatim:
    "<'a quoted label'>"

Quick example:
    >>> Option("-C, --no-cheese", "remove cheese").key
    'cheese'
    >>> [humanize(x) for x in parse_signature("<dir> [otherDirs...]")]
    ['<dir>', '[otherDirs...]']
"""
import functools
import operator
import re

from rich.text import Text

from .faults import *
from .utils import *


class SpecType(type):
    """
    Metaclass shared by the declarative specs of this module.

    Responsibilities
    - Expose every name in __introspectable__ as a read-only property backed by
      the private "_{name}" field (see mirror()).
    - Provide compact __repr__ and structured __rich_repr__ implementations.
    - Derive __typename__ from the class name for messages.
    """
    __introspectable__ = ()

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
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_flags(cls, metadata, /):
    """
    Internal: derive short/long forms and arity from the raw flags string.

    Rules
    - required iff the flags contain "<"; optional iff they contain "[".
    - after splitting on r"[ ,|]+", when two or more parts remain and the second
      is not a placeholder, the first part is the short form.
    - the long form must be dash-prefixed; a long form starting with "--no-"
      makes the option a negation (default True, False when present).

    Raises
    - MalformedSchemaError for empty or placeholder-only declarations.
    """
    if not isinstance(flags := metadata["flags"], str):
        raise TypeError(f"{cls.__typename__} 'flags' must be a string")
    elif not (flags := flags.strip()):
        raise MalformedSchemaError(
            f"{cls.__typename__} 'flags' cannot be empty",
            code=FaultCode.MALFORMED_SCHEMA,
        )

    parts = re.split(r"[ ,|]+", flags)
    short = parts.pop(0) if len(parts) > 1 and not re.match(r"[\[<]", parts[1]) else None
    long = parts.pop(0)

    if not long.startswith("-") or (short is not None and not short.startswith("-")):
        raise MalformedSchemaError(
            f"{cls.__typename__} flags must start with a dash, got {flags!r}",
            code=FaultCode.MALFORMED_SCHEMA,
            flags=flags,
        )
    if not (name := re.sub(r"^-+", "", long).removeprefix("no-")):
        raise MalformedSchemaError(
            f"{cls.__typename__} flags must name the option, got {flags!r}",
            code=FaultCode.MALFORMED_SCHEMA,
            flags=flags,
        )

    metadata |= {
        "flags": flags,
        "short": short,
        "long": long,
        "name": name,
        "key": snakecase(name),
        "required": "<" in flags,
        "optional": "[" in flags,
        "negate": long.startswith("--no-"),
    }


class Option(metaclass=SpecType):
    """
    Named flag specification.

    Properties
    - flags: the declaration string, verbatim (used in help and error messages).
    - short / long: the matching forms ("-c" / "--config"); short may be None.
    - name: long form without dashes and without a "no-" infix.
    - key: snake_case form of name, where the resolved value is stored.
    - required / optional: value arity; both False means a boolean switch.
    - negate: True for "--no-x" declarations.
    - descr: description shown in help ("" when omitted).
    """

    __introspectable__ = (
        "flags",
        "short",
        "long",
        "name",
        "key",
        "required",
        "optional",
        "negate",
        "descr",
    )

    def __new__(cls, flags, /, descr=Unset):
        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")

        metadata = {"flags": flags, "descr": str(coalesce(descr, "")).strip()}
        _sanitize_flags(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def boolean(self):
        """
        True when the option takes no value at all.
        """
        return not (self.required or self.optional)

    def is_(self, token, /):
        """
        Exact match of a token against the short or long form.
        """
        return token == self._long or (self._short is not None and token == self._short)


class Argument(metaclass=SpecType):
    """
    Positional argument specification (immutable after creation).
    """

    __introspectable__ = (
        "name",
        "required",
        "variadic",
    )

    def __new__(cls, name, /, required=False, variadic=False):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not name:
            raise MalformedSchemaError(
                f"{cls.__typename__} 'name' cannot be empty",
                code=FaultCode.MALFORMED_SCHEMA,
            )
        self = super().__new__(cls)
        self._name = name
        self._required = bool(required)
        self._variadic = bool(variadic)
        return self


def parse_signature(text, /):
    """
    Parse the argument part of a command declaration.

    Behavior
    - Extracts every "<...>" or "[...]" group, in order.
    - "<...>" is required, "[...]" optional.
    - A name longer than three characters ending in "..." is variadic (the
      suffix is dropped); a variadic group anywhere but last raises
      MalformedSchemaError.
    - A quoted literal inside the group replaces the name verbatim.
    - Groups whose name ends up empty are skipped.

    Returns
    - list[Argument]
    """
    if not isinstance(text, str):
        raise TypeError("parse_signature() argument must be a string")

    groups = re.findall(r"<.+?>|\[.+?\]", text)
    arguments = []

    for index, group in enumerate(groups):
        name = group[1:-1].strip()
        variadic = False

        if len(name) > 3 and name.endswith("..."):
            variadic = True
            name = name[:-3]
            if index != len(groups) - 1:
                raise MalformedSchemaError(
                    f"error: variadic arguments must be last {name}",
                    code=FaultCode.MALFORMED_SCHEMA,
                    name=name,
                )

        if quoted := re.search(r"\".+?\"|'.+?'", group):
            name = quoted[0]

        if name:
            arguments.append(Argument(name, required=group.startswith("<"), variadic=variadic))

    return arguments


def humanize(argument, /):
    """
    Render an Argument for usage lines: <name>, [name], <name...>, [name...].
    """
    name = argument.name + ("..." if argument.variadic else "")
    return f"<{name}>" if argument.required else f"[{name}]"


__all__ = (
    # Classes (specifications)
    "Option",
    "Argument",

    # Functions
    "parse_signature",
    "humanize",
)

# Keep the metaclass out of star-imports and docs; it is not public API.
del SpecType
