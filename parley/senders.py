"""
Output callbacks for Command.send.

A sender is any callable taking (metadata, message). Chat transports supply
their own (reply to the channel found in metadata, ...); this module ships the
two the library needs on its own:

- echo: default sender, prints through a rich Console. Fault lines
  ("  error: ...") are highlighted with the "error" palette entry, which the
  host can override through a __styles__ mapping in __main__.
- Recorder: keeps every (metadata, message) pair in memory, for tests and for
  bots that batch their replies.
"""
import logging
from collections import defaultdict

from rich.console import Console
from rich.text import Text

logger = logging.getLogger(__name__)

console = Console(highlight=False)


def echo(metadata, message, /):
    styles = defaultdict(str, {
        "error": "bold #FF4DA6",
        "usage": "bold #00E6FF",
    } | getattr(__import__("__main__"), "__styles__", {}))

    text = Text()
    for line in message.splitlines(keepends=True):
        if line.lstrip().startswith("error:"):
            text.append(line, styles["error"])
        elif line.lstrip().startswith("Usage:"):
            text.append(line, styles["usage"])
        else:
            text.append(line)

    logger.debug("echo %d characters (metadata=%r)", len(message), metadata)
    console.print(text, markup=False, soft_wrap=True)


class Recorder:
    """
    Sender that remembers what it was asked to send.

    Example
        >>> recorder = Recorder()
        >>> recorder("chan", "hello")
        >>> recorder.messages
        ['hello']
    """

    def __init__(self):
        self.calls = []

    def __call__(self, metadata, message, /):
        self.calls.append((metadata, message))

    @property
    def messages(self):
        return [message for _, message in self.calls]

    @property
    def last(self):
        """
        Most recent message, or None when nothing was sent.
        """
        return self.calls[-1][1] if self.calls else None

    def clear(self):
        self.calls.clear()

    def __len__(self):
        return len(self.calls)

    def __repr__(self):
        return f"recorder(calls={len(self.calls)})"


__all__ = (
    "echo",
    "Recorder",
)
