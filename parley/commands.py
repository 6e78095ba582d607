"""
Parley command layer: declare, compose and run chat-line commands.

What this module provides
- Command: a node of a command tree. It owns its options, its positional
  argument signature, its children and a dispatch table of handlers.
  • Tree building: command(), arguments(), option(), action(), prefix().
  • Parsing: parse(line, metadata) tokenizes a line, matches options, binds
    positionals and invokes the handler (or delegates to a child).
  • Help: help() synthesizes usage text from the declared schema.
  • Extension: extend()/include() let other modules add subcommands.

- Action: the handler wrapper stored in a dispatch table. Calling it binds the
  leftover tokens to the owning node's signature and invokes the callback as
  callback(metadata, *positionals, options).

- ParseOutcome: (args, unknown, faults, positions) produced by
  Command.parse_options().

Quick start
    from parley import Command, Recorder

    replies = Recorder()
    bot = Command(send=replies).prefix("!")
    bot.option("-v, --verbose", "talk more")

    @bot.command("exec <cmd>", descr="run the given remote command").action
    def run(metadata, cmd, options):
        print("exec %r for %s" % (cmd, metadata))

    bot.parse('!exec "ls -la"', "#ops")    # exec 'ls -la' for #ops
    bot.parse("!help exec", "#ops")        # replies.last holds exec's help

Design notes
- Delegation to a child re-tokenizes the raw remainder of the line, so every
  node applies its own option schema: a child's options are never consumed by
  its parent's matcher.
- Parse faults are reported as text through send(metadata, message) and never
  raised out of parse(); schema faults are raised while declaring the tree.
- Option values live on the node and persist between parses (see reset()).
  A tree is not safe for concurrent parses.
"""
import functools
import importlib
import inspect
import logging
import operator
import re
import textwrap
import weakref
from inspect import Parameter
from typing import NamedTuple

from .arguments import Option, parse_signature, humanize
from .faults import *
from .lexer import tokenize, normalize_indexed
from .senders import echo
from .utils import *

logger = logging.getLogger(__name__)

# dispatch key of a root handler: receives whatever no child claimed
WILDCARD = "*"

HELP_FLAGS = ("--help", "-h")


class ParseOutcome(NamedTuple):
    """
    Result of matching a token list against a node's options.

    - args: positional tokens, in order.
    - unknown: flag-shaped tokens no option claimed (plus their paired values).
    - faults: CommandException instances collected while matching.
    - positions: for each positional, the index of the token it was read from.
    """
    args: list
    unknown: list
    faults: list
    positions: list = ()

    @property
    def errors(self):
        """
        The fault messages, as users see them.
        """
        return [str(fault) for fault in self.faults]


def _unquote(token):
    # "ls -la" → ls -la ; only a fully wrapped token is stripped
    if isinstance(token, str) and re.fullmatch(r"([\"']).*\1", token, re.DOTALL):
        return token[1:-1]
    return token


class Action:
    """
    Handler stored in a dispatch table.

    Calling an Action runs the binding phase of its command:
    1. tokens the parent could not place are matched against the command's own
       options (faults are reported and stop the call);
    2. "--help"/"-h" among what is still unknown, or "help" as the first word
       (words left over by step 1 included), emits the command's help;
    3. remaining unknown tokens are an error unless allow_unknown_option;
    4. positionals are bound to the declared signature (quotes stripped,
       variadic captured as a list, missing required → fault, surplus → fault);
    5. the callback receives (metadata, *positionals, options) where
       positionals are padded with None up to the declared arity.

    Keyword-only parameters named `unknown` or `command` (or a **kwargs
    catch-all) additionally receive the unknown tokens and the command node.
    """
    __slots__ = ("command", "callback", "_injected")

    def __init__(self, command, callback, /):
        if not callable(callback):
            raise TypeError("action() argument must be callable")
        self.command = command
        self.callback = callback

        try:
            parameters = inspect.signature(callback).parameters.values()
        except (TypeError, ValueError):
            parameters = ()
        catchall = any(parameter.kind is Parameter.VAR_KEYWORD for parameter in parameters)
        keywords = {parameter.name for parameter in parameters if parameter.kind is Parameter.KEYWORD_ONLY}
        self._injected = tuple(name for name in ("unknown", "command") if catchall or name in keywords)

    def __call__(self, args, unknown, metadata):
        command = self.command
        args = list(args or ())

        # parse any so-far unknown options with this command's own schema
        outcome = command.parse_options(unknown or ())
        if outcome.faults:
            return command.trigger(outcome.faults, metadata)

        # leftover positionals come first: they were written before the unknown tokens
        args = outcome.args + args

        if command._output_help_if_necessary(outcome.unknown, metadata):
            return
        # "<name> help" on a named command; a quoted "help" still binds as a value
        if command.parent is not None and args[:1] == ["help"]:
            command.output_help(metadata)
            return

        if outcome.unknown and not command._allow_unknown_option:
            return command.trigger(UnknownOptionError(
                "  error: unknown option %s" % outcome.unknown[0],
                code=FaultCode.UNKNOWN_OPTION,
                flag=outcome.unknown[0],
            ), metadata)

        faults = []
        signature = command._signature

        for index, argument in enumerate(signature):
            if argument.required and (index >= len(args) or args[index] is None):
                faults.append(MissingArgumentError(
                    "  error: missing required argument %s" % argument.name,
                    code=FaultCode.MISSING_ARGUMENT,
                    name=argument.name,
                ))
            elif argument.variadic:
                args[index:] = [list(map(_unquote, args[index:]))]
            elif index < len(args):
                args[index] = _unquote(args[index])

        # a root handler is the wildcard: it may receive more words than it declares
        if command.parent is not None and not (signature and signature[-1].variadic) and len(args) > len(signature):
            faults.append(UnexpectedArgumentError(
                "  error: unexpected argument %s" % args[len(signature)],
                code=FaultCode.UNEXPECTED_ARGUMENT,
                value=args[len(signature)],
            ))

        if faults:
            return command.trigger(faults, metadata)

        args += [None] * (len(signature) - len(args))
        extras = {"unknown": tuple(outcome.unknown), "command": command}

        logger.debug("invoking %r with %d positional(s)", " ".join(step.name for step in command.path), len(args))
        return self.callback(metadata, *args, command.opts(), **{name: extras[name] for name in self._injected})

    def __repr__(self):
        return f"action(command={self.command.name!r}, callback={getattr(self.callback, '__qualname__', self.callback)!r})"


class CommandType(type):
    """
    Metaclass giving commands read-only introspection and stable reprs.

    - every name in __introspectable__ becomes a property mirroring "_{name}".
    - __rich_repr__ yields the __displayable__ subset (parents are left out so
      printing a tree never recurses upwards).
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
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _process_strings(cls, metadata):
    """
    Validate identity/help scalars.

    - name: string without whitespace; only a root may be nameless.
    - alias/descr/usage: non-empty strings when provided (descr/usage trimmed).
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif re.search(r"\s", name):
        raise MalformedSchemaError(
            f"{cls.__typename__} name {name!r} cannot contain whitespace",
            code=FaultCode.MALFORMED_SCHEMA,
            name=name,
        )
    elif not name and metadata["parent"] is not None:
        raise MalformedSchemaError(
            f"{cls.__typename__} subcommands must have a name",
            code=FaultCode.MALFORMED_SCHEMA,
        )

    for field in ("alias", "descr", "usage"):
        if not isinstance(value := metadata[field], str | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
        elif field == "alias" and isinstance(value, str) and re.search(r"\s", value):
            raise MalformedSchemaError(
                f"{cls.__typename__} alias {value!r} cannot contain whitespace",
                code=FaultCode.MALFORMED_SCHEMA,
                alias=value,
            )
        metadata[field] = coalesce(value)


def _process_config(cls, metadata):
    """
    Resolve parse configuration, inheriting from the parent when Unset.

    send / allow_unknown_option / show_help_on_error are copied from the parent
    at creation time and are independent afterwards. show_help_on_empty is
    never inherited.
    """
    parent = metadata["parent"]

    metadata["send"] = coalesce(metadata["send"], getattr(parent, "_send", echo))
    if not callable(metadata["send"]):
        raise TypeError(f"{cls.__typename__} 'send' must be callable")

    metadata["allow_unknown_option"] = bool(coalesce(
        metadata["allow_unknown_option"], getattr(parent, "_allow_unknown_option", False)
    ))
    metadata["show_help_on_error"] = bool(coalesce(
        metadata["show_help_on_error"], getattr(parent, "_show_help_on_error", True)
    ))
    metadata["show_help_on_empty"] = bool(coalesce(metadata["show_help_on_empty"], False))


def _attach_to_parent(self, parent):
    """
    Register this command under its parent.

    The first non-help child of a node is preceded by an implicit
    "help [cmd]" child. Names and aliases must be unique among siblings.
    """
    if parent is None:
        return

    if not parent._children and self.name != "help":
        parent.command("help [cmd]", descr="display help for [cmd]")

    taken = {
        name for child in parent._children for name in (child.name, child.alias) if name
    }
    for name in (self.name, self.alias):
        if name and name in taken:
            typeof = "subcommand" if parent.parent else "command"
            raise MalformedSchemaError(
                f"{type(self).__typename__} {typeof} name {name!r} is already in use",
                code=FaultCode.MALFORMED_SCHEMA,
                name=name,
            )

    parent._children.append(self)


class Command(metaclass=CommandType):
    """
    A node of a command tree.

    Responsibilities
    - Schema: options (Option), positional signature (Argument), children.
    - Dispatch: a table mapping names to Action handlers; a child's action is
      installed on its parent under the child's name and alias, a root's
      action under the wildcard key.
    - Parsing: parse() follows prefix → tokenize → normalize → match options →
      dispatch (handler, child, wildcard) and reports faults through send.
    - Help: help() renders usage, commands and options.

    Configuration (inherited from the parent when Unset)
    - send: callable(metadata, message); defaults to senders.echo.
    - allow_unknown_option: forward unknown flags to handlers instead of failing.
    - show_help_on_error: append help() to every fault report (default True).
    - show_help_on_empty: show help when a line names no command (not inherited;
      subcommands created with command() enable it).
    """

    __introspectable__ = (
        "name",
        "alias",
        "descr",
        "children",
        "options",
        "signature",
        "prefixes",
        "values",
    )

    __displayable__ = (
        "name",
        "alias",
        "descr",
        "options",
        "signature",
        "children",
    )

    @property
    def parent(self):
        """
        The owning node, or None for a root (non-owning back-reference).
        """
        return self._parent() if self._parent is not None else None

    @property
    def root(self):
        """
        Return the topmost command of the current tree.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def usage(self):
        """
        The usage line after the command name ("[options] [command] <args>"),
        unless one was given explicitly.
        """
        if self._usage is not None:
            return self._usage
        usage = "[options]" + (" [command]" if self._children else "")
        if self._signature:
            usage += " " + " ".join(map(humanize, self._signature))
        return usage

    @property
    def config(self):
        """
        Current parse configuration, as a plain dict.
        """
        return {
            "send": self._send,
            "allow_unknown_option": self._allow_unknown_option,
            "show_help_on_error": self._show_help_on_error,
            "show_help_on_empty": self._show_help_on_empty,
        }

    def __new__(
            cls,
            name="",
            /,
            parent=Unset,
            *,
            descr=Unset,
            alias=Unset,
            usage=Unset,
            no_help=False,
            send=Unset,
            allow_unknown_option=Unset,
            show_help_on_error=Unset,
            show_help_on_empty=Unset
    ):
        """
        Construct a command node.

        Parameters
        - name: str
          Word that selects this command in a line ("" for a nameless root).
        - parent: Command | Unset
          Node to attach under. Prefer parent.command("name <args>").
        - descr, alias, usage: str | Unset
          Help description, alternative name and explicit usage line.
        - no_help: bool
          Leave this command out of its parent's "Commands:" listing.
        - send, allow_unknown_option, show_help_on_error, show_help_on_empty:
          Parse configuration (see class docstring).

        Raises
        - TypeError/ValueError for badly typed metadata.
        - MalformedSchemaError for invalid names or sibling name clashes.
        """
        if not isinstance(parent, Command | Unset | None):
            raise TypeError(f"{cls.__typename__} 'parent' must be a command")

        metadata = {
            "name": name,
            "parent": coalesce(parent),
            "descr": descr,
            "alias": alias,
            "usage": usage,
            "send": send,
            "allow_unknown_option": allow_unknown_option,
            "show_help_on_error": show_help_on_error,
            "show_help_on_empty": show_help_on_empty,
        }
        _process_strings(cls, metadata)
        _process_config(cls, metadata)

        self = super().__new__(cls)
        self._parent = weakref.ref(parent) if metadata.pop("parent") is not None else None
        self._no_help = bool(no_help)
        self._children = []
        self._options = []
        self._signature = []
        self._prefixes = []
        self._handlers = {}
        # value cells: option key -> resolved value (absent until assigned)
        self._values = {}
        self._initial = {}
        self._defaults = {}
        self._converters = {}
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        _attach_to_parent(self, self.parent)
        return self

    # ── tree building ────────────────────────────────────────────────────────

    def command(self, signature, /, *, descr=Unset, alias=Unset, usage=Unset, no_help=False):
        """
        Add a subcommand declared as "name <required> [optional] [rest...]".

        The child inherits this node's parse configuration, shows its help when
        invoked without arguments, and is returned for further chaining:

            bot.command("teardown <dir> [otherDirs...]", descr="run teardown") \\
               .option("-f, --force", "skip checks") \\
               .action(on_teardown)
        """
        if not isinstance(signature, str):
            raise TypeError("command() argument must be a string")
        name, _, rest = signature.strip().partition(" ")
        arguments = parse_signature(rest)

        child = Command(
            name,
            self,
            descr=descr,
            alias=alias,
            usage=usage,
            no_help=no_help,
            show_help_on_empty=True,
        )
        child._signature.extend(arguments)
        return child

    def arguments(self, signature, /):
        """
        Declare positional arguments ("<cmd> [other...]") on this node.
        """
        arguments = parse_signature(signature)
        if arguments and self._signature and self._signature[-1].variadic:
            raise MalformedSchemaError(
                f"error: variadic arguments must be last {self._signature[-1].name}",
                code=FaultCode.MALFORMED_SCHEMA,
                name=self._signature[-1].name,
            )
        self._signature.extend(arguments)
        return self

    def option(self, flags, /, descr=Unset, type=Unset, default=Unset):
        """
        Declare an option.

        Parameters
        - flags: "-s, --long", "-s|--long <required>", "--long [optional]",
          "-N, --no-thing" (negation: True unless given).
        - descr: help text.
        - type: converter applied to supplied values (e.g. int), or a compiled
          re.Pattern: the first match is kept, otherwise the previous value.
        - default: initial value for value-taking options, and the value a
          boolean flag takes when present (True when omitted).

        Examples
            bot.option("-p, --pepper", "add pepper")            # → False/True
            bot.option("-C, --no-cheese", "remove cheese")      # → True/False
            bot.option("-c, --chdir <path>", "change the working directory")
            bot.option("-n, --count <n>", "repeat", type=int, default=1)
        """
        option = Option(flags, descr)

        for declared in self._options:
            forms = {declared.short, declared.long} - {None}
            if option.long in forms or option.short in forms:
                raise MalformedSchemaError(
                    f"option {flags!r} clashes with {declared.flags!r}",
                    code=FaultCode.MALFORMED_SCHEMA,
                    flags=flags,
                )

        if isinstance(type, re.Pattern):
            pattern = type
            converter = lambda value, previous: match[0] if (match := pattern.search(value)) else previous
        elif type is Unset:
            converter = None
        elif callable(type):
            converter = lambda value, previous: type(value)
        else:
            raise TypeError("option() 'type' must be callable or a compiled pattern")

        # preassign defaults only for --no-*, [optional] and <required> options
        if option.negate:
            default = True
        if (option.negate or not option.boolean) and default is not Unset:
            self._values[option.key] = self._initial[option.key] = default

        self._options.append(option)
        self._defaults[option.long] = default
        self._converters[option.long] = converter
        return self

    def action(self, callback, /):
        """
        Register the handler for this command.

        The handler lands in the parent's dispatch table under this command's
        name (and alias); on a root it becomes the wildcard handler. Returns
        the command, so it can be used as a decorator:

            @bot.command("exec <cmd>").action
            def exec(metadata, cmd, options): ...
        """
        action = Action(self, callback)
        parent = self.parent or self
        names = [WILDCARD] if parent is self else [name for name in (self.name, self.alias) if name]

        for name in names:
            if name in parent._handlers:
                trigger(HandlerOverrideWarning(
                    "handler for %r is replaced" % name,
                    code=FaultCode.HANDLER_OVERRIDE,
                    name=name,
                ))
            parent._handlers[name] = action
        return self

    def extend(self, *extensions):
        """
        Call each extension(self); extensions typically add subcommands.
        """
        for extension in extensions:
            if not callable(extension):
                raise TypeError("extend() arguments must be callable")
            extension(self)
        return self

    def include(self, source, /):
        """
        Import the modules matching a module glob ("bot.commands.*") and let
        each module exposing a callable `extend` add itself to this command.

        Modules are processed in sorted name order. ImportError is reported as
        TypeError.
        """
        if not isinstance(source, str):
            raise TypeError("include() argument must be a string")

        for name in mglob(source):
            try:
                module = importlib.import_module(name)
            except ImportError:
                raise TypeError(f"unable to import module {name!r}") from None
            if callable(extension := getattr(module, "extend", None)):
                logger.debug("including %s into %r", name, self.name)
                extension(self)
        return self

    # ── configuration ────────────────────────────────────────────────────────

    def prefix(self, *prefixes):
        """
        Require lines to start with one of `prefixes` (first match wins, in
        declaration order). Not inherited by subcommands.

        Accepts strings or iterables of strings: prefix("!"), prefix("!", "?"),
        prefix(["!", "?"]).
        """
        resolved = []
        for prefix in prefixes:
            for item in [prefix] if isinstance(prefix, str) else prefix:
                if not isinstance(item, str) or not item:
                    raise TypeError("prefix() arguments must be non-empty strings")
                resolved.append(item)
        self._prefixes = resolved
        return self

    def allow_unknown_option(self, flag=True, /):
        self._allow_unknown_option = bool(flag)
        return self

    def show_help_on_error(self, flag=True, /):
        self._show_help_on_error = bool(flag)
        return self

    def show_help_on_empty(self, flag=True, /):
        self._show_help_on_empty = bool(flag)
        return self

    def set_send(self, send, /):
        if not callable(send):
            raise TypeError("set_send() argument must be callable")
        self._send = send
        return self

    def set_parse_options(self, *, send=Unset, allow_unknown_option=Unset, show_help_on_error=Unset):
        """
        Overwrite several parse options at once; subcommands created afterwards
        inherit the new values.
        """
        if send is not Unset:
            self.set_send(send)
        if allow_unknown_option is not Unset:
            self.allow_unknown_option(allow_unknown_option)
        if show_help_on_error is not Unset:
            self.show_help_on_error(show_help_on_error)
        return self

    # ── lookup ───────────────────────────────────────────────────────────────

    def option_for(self, token, /):
        """
        Return the declared option matching `token` exactly, or None.
        """
        for option in self._options:
            if option.is_(token):
                return option
        return None

    def child_for(self, name, /):
        """
        Return the child named or aliased `name`, or None.
        """
        for child in self._children:
            if name in (child.name, child.alias):
                return child
        return None

    # ── option values ────────────────────────────────────────────────────────

    def _assign(self, option, value=Unset):
        """
        Value setter for a matched option (last write wins).

        - supplied values are coerced when a converter was declared; a
          converter failure raises InvalidOptionValueError and leaves the
          cell untouched;
        - while the cell is unset or boolean, a missing value means
          "present": default-or-True for plain options, False for negations;
        - once the cell holds a non-boolean, only supplied values replace it.
        """
        key = option.key
        default = self._defaults.get(option.long, Unset)
        current = self._values.get(key, Unset)

        if value is not Unset and (converter := self._converters.get(option.long)):
            try:
                value = converter(value, coalesce(current, coalesce(default)))
            except Exception as exception:
                raise InvalidOptionValueError(
                    "  error: option %s argument invalid" % option.flags,
                    code=FaultCode.INVALID_OPTION_VALUE,
                    flags=option.flags,
                    value=value,
                ) from exception

        if current is Unset or isinstance(current, bool):
            if value is Unset:
                self._values[key] = False if option.negate else (coalesce(default) or True)
            else:
                self._values[key] = value
        elif value is not Unset:
            self._values[key] = value

    def opts(self):
        """
        Return {key: value} for every declared option (None when unresolved).
        """
        return {option.key: self._values.get(option.key) for option in self._options}

    def reset(self):
        """
        Forget parsed option values, restoring declared defaults.
        """
        self._values = dict(self._initial)
        return self

    # ── parsing ──────────────────────────────────────────────────────────────

    def parse_options(self, tokens, /):
        """
        Match normalized tokens against the declared options.

        Matched options are applied to the value cells as a side effect.
        Returns ParseOutcome(args, unknown, faults, positions), where
        positions[i] is the index in `tokens` that args[i] was read from.
        """
        tokens = list(tokens)
        args = []
        positions = []
        unknown = []
        faults = []
        literal = False

        index = 0
        while index < len(tokens):
            token = tokens[index]

            if literal:
                args.append(token)
                positions.append(index)
            elif token == "--":
                literal = True
            elif (option := self.option_for(token)) is not None:
                value = Unset
                if option.required:
                    index += 1
                    value = tokens[index] if index < len(tokens) else Unset
                    if value is Unset:
                        faults.append(OptionArgumentMissingError(
                            "  error: option %s argument missing" % option.flags,
                            code=FaultCode.OPTION_ARGUMENT_MISSING,
                            flags=option.flags,
                        ))
                elif option.optional:
                    value = tokens[index + 1] if index + 1 < len(tokens) else Unset
                    if value is Unset or (value.startswith("-") and value != "-"):
                        value = Unset
                    else:
                        index += 1
                try:
                    self._assign(option, value)
                except InvalidOptionValueError as fault:
                    faults.append(fault)
            elif len(token) > 1 and token.startswith("-"):
                unknown.append(token)
                # a following non-flag token probably belongs to this unknown option
                if index + 1 < len(tokens) and tokens[index + 1] and not tokens[index + 1].startswith("-"):
                    index += 1
                    unknown.append(tokens[index])
            else:
                args.append(token)
                positions.append(index)

            index += 1

        return ParseOutcome(args, unknown, faults, positions)

    def parse(self, line, metadata=None):
        """
        Parse one line of text, applying options and invoking handlers.

        Lines that do not start with a declared prefix are ignored. Faults and
        help are delivered through send(metadata, message); nothing is raised
        for bad input.
        """
        if not isinstance(line, str):
            raise TypeError("parse() argument must be a string")

        if self._prefixes:
            for prefix in self._prefixes:
                if line.startswith(prefix):
                    line = line[len(prefix):]
                    break
            else:
                logger.debug("ignoring line without prefix for %r", self.name)
                return

        raw = tokenize(line)
        pairs = normalize_indexed(raw, self.option_for)
        outcome = self.parse_options(token for _, token in pairs)
        if outcome.faults:
            self.trigger(outcome.faults, metadata)
            return

        # raw index of every positional, so delegation slices the line where the name was read
        sources = [pairs[position][0] for position in outcome.positions]
        self._dispatch(outcome.args, outcome.unknown, raw, sources, metadata)

    def _dispatch(self, args, unknown, raw, sources, metadata):
        """
        Route positionals: help, own handler, child delegation or wildcard.

        sources[i] is the index in `raw` that args[i] came from.
        """
        if not args or args[0] == "":
            if not self._output_help_if_necessary(unknown, metadata) and self._show_help_on_empty:
                self.output_help(metadata)
            return

        name = args[0]
        trailer = []
        if name == "help":
            if len(args) == 1:
                self.output_help(metadata)
                return
            # "help <name> ..." behaves as "<name> ... --help"
            trailer = ["--help"]
            unknown = [*unknown, "--help"]
            args = args[1:]
            sources = sources[1:]
            name = args[0]

        if (handler := self._handlers.get(name)) is not None:
            logger.debug("dispatching %r to its handler", name)
            handler(args[1:], unknown, metadata)
        elif (child := self.child_for(name)) is not None:
            logger.debug("delegating %r to subcommand", name)
            child.parse(" ".join(raw[sources[0] + 1:] + trailer), metadata)
        elif (handler := self._handlers.get(WILDCARD)) is not None:
            logger.debug("dispatching %r to the wildcard handler", name)
            handler(args, unknown, metadata)
        else:
            logger.debug("no handler or subcommand for %r", name)

    # ── output ───────────────────────────────────────────────────────────────

    def send(self, metadata, message, /):
        """
        Deliver `message` through the configured sender (empty messages are dropped).
        """
        if message:
            self._send(metadata, message)

    def trigger(self, faults, metadata=None, /):
        """
        Report parse faults: their messages, then help() when
        show_help_on_error, joined by newlines and sent in one message.
        """
        if isinstance(faults, CommandException):
            faults = [faults]

        messages = []
        for fault in faults:
            if not isinstance(fault, CommandException):
                raise TypeError("trigger() argument must be command exceptions")
            logger.debug(
                "%s fault in %r: %s",
                fault.code.normalize() if fault.code is not None else "-",
                self.name,
                str(fault).strip(),
            )
            messages.append(str(fault))

        if self._show_help_on_error:
            messages.append(self.help())
        self.send(metadata, "\n".join(messages))

    def _output_help_if_necessary(self, unknown, metadata):
        if any(token in HELP_FLAGS for token in unknown or ()):
            self.output_help(metadata)
            return True
        return False

    def output_help(self, metadata=None, /):
        self.send(metadata, self.help())

    # ── help ─────────────────────────────────────────────────────────────────

    def _option_help(self):
        width = max([len("-h, --help"), *(len(option.flags) for option in self._options)])
        rows = [pad("-h, --help", width) + "  " + "output usage information"]
        rows.extend(pad(option.flags, width) + "  " + option.descr for option in self._options)
        return "\n".join(rows)

    def _command_help(self):
        if not self._children:
            return ""

        rows = []
        for child in self._children:
            if child._no_help:
                continue
            head = child.name + ("|" + child.alias if child.alias else "")
            head += (" [options]" if child._options else "") + " "
            head += " ".join(map(humanize, child._signature))
            rows.append((head, child.descr))

        width = max((len(head) for head, _ in rows), default=0)
        body = "\n".join(pad(head, width) + ("  " + descr if descr else "") for head, descr in rows)

        return "\n".join([
            "",
            "  Commands:",
            "",
            textwrap.indent(body, "    ", lambda line: True),
            "",
        ])

    def help(self):
        """
        Return the help text of this command.
        """
        name = self.name + ("|" + self.alias if self.alias else "")
        sections = ["", "  Usage: " + name + " " + self.usage, ""]

        if commands := self._command_help():
            sections.append(commands)
        if self.descr:
            sections.extend(["  " + self.descr, ""])

        sections.extend([
            "  Options:",
            "",
            textwrap.indent(self._option_help(), "    ", lambda line: True),
            "",
            "",
        ])
        return "\n".join(sections)


__all__ = (
    # Public API surface for consumers of parley.commands.
    "Command",
    "Action",
    "ParseOutcome",
    "WILDCARD",
)

# Keep the metaclass out of star-imports and docs; it is not public API.
del CommandType
