"""
Line splitting and token normalization.

tokenize(line)
- whitespace separates tokens, except inside a "..." or '...' run, which is
  kept as one token with its quotes (they are stripped at binding time).

normalize(tokens, lookup=None)
- explodes combined short flags ("-abc" → "-a", "-b", "-c"),
- splits inline values ("--name=value" → "--name", "value";
  "-ab=value" → "-a", "-b", "value"),
- leaves everything after a literal "--" untouched,
- never touches the token that follows a declared option requiring a value
  (lookup(previous) returns that option, or None when undeclared).

normalize_indexed(tokens, lookup=None)
- the same, as (index, token) pairs pointing back into the input tokens.
"""
import re

# Quoted runs are captured so re.split keeps them; whitespace runs are dropped.
_splitter = re.compile(r"(\".+?\")|('.+?')|\s+")


def tokenize(line, /):
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")
    return [token for token in _splitter.split(line) if token]


def normalize_indexed(tokens, /, lookup=None):
    """
    Same as normalize(), pairing each output token with the index of the
    input token it came from: [(index, token), ...].
    """
    tokens = list(tokens)
    normalized = []

    for index, token in enumerate(tokens):
        previous = lookup(tokens[index - 1]) if lookup and index else None

        if token == "--":
            # honor the option terminator
            normalized.extend(enumerate(tokens[index:], index))
            break
        elif previous is not None and previous.required:
            normalized.append((index, token))
        elif len(token) > 1 and token[0] == "-" and token[1] != "-":
            token, separator, value = token.partition("=")
            normalized.extend((index, "-" + char) for char in token[1:])
            if value:
                normalized.append((index, value))
        elif token.startswith("--") and "=" in token:
            normalized.extend((index, part) for part in token.split("=", 1))
        else:
            normalized.append((index, token))

    return normalized


def normalize(tokens, /, lookup=None):
    return [token for _, token in normalize_indexed(tokens, lookup)]


__all__ = (
    "tokenize",
    "normalize",
    "normalize_indexed",
)
