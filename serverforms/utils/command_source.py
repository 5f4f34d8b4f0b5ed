"""
Command sources - the acting user and where their output goes

All engine and command output is routed through a CommandSource. The
engine never writes to a transport directly.

Implementations:
- BufferedCommandSource: collects messages (HTTP responses, tests)
- ConsoleCommandSource: prints to a stream with ANSI colors
"""

import sys
from dataclasses import dataclass
from typing import List, Optional

from serverforms.utils.text_formatter import strip_color, to_ansi


@dataclass(frozen=True)
class Message:
    """
    One line of output.

    Attributes:
        text: Message with '&' color codes
        is_error: Sent through send_error (red styling)
    """
    text: str
    is_error: bool = False

    @property
    def plain_text(self) -> str:
        return strip_color(self.text)


class CommandSource:
    """
    The user executing a command.

    Attributes:
        name: Current display name
        identity: Stable identity (None until resolved)
        is_operator: May run operator-only commands
    """

    def __init__(self, name: str, identity: Optional[str] = None, is_operator: bool = False):
        self.name = name
        self.identity = identity
        self.is_operator = is_operator

    def send_feedback(self, text: str):
        raise NotImplementedError

    def send_error(self, text: str):
        raise NotImplementedError


class BufferedCommandSource(CommandSource):
    """Keeps every message in order"""

    def __init__(self, name: str, identity: Optional[str] = None, is_operator: bool = False):
        super().__init__(name, identity, is_operator)
        self.messages: List[Message] = []

    def send_feedback(self, text: str):
        self.messages.append(Message(text=text, is_error=False))

    def send_error(self, text: str):
        self.messages.append(Message(text=text, is_error=True))

    @property
    def feedback(self) -> List[str]:
        """Plain text of non-error messages"""
        return [m.plain_text for m in self.messages if not m.is_error]

    @property
    def errors(self) -> List[str]:
        """Plain text of error messages"""
        return [m.plain_text for m in self.messages if m.is_error]

    def clear(self):
        self.messages.clear()


class ConsoleCommandSource(CommandSource):
    """Prints messages, errors prefixed and sent to stderr by default"""

    def __init__(self, name: str, identity: Optional[str] = None, is_operator: bool = False,
                 out=None, err=None):
        super().__init__(name, identity, is_operator)
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def send_feedback(self, text: str):
        print(to_ansi(text), file=self.out)

    def send_error(self, text: str):
        print(to_ansi(text), file=self.err)
