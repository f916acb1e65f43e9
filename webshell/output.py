"""Output lines produced by command handlers."""

from dataclasses import dataclass
from collections.abc import Iterable
from typing import Any, List


TEXT = 'text'
ERROR = 'error'
SUCCESS = 'success'
INFO = 'info'
DIRECTORY = 'directory'
CLEAR = 'clear'
COMMAND = 'command'
EXIT = 'exit'

# Kinds that drive the session rather than carry printable text.
CONTROL_KINDS = (CLEAR, EXIT)


@dataclass(frozen=True)
class OutputLine:
    """A single rendered line and how to present it."""
    kind: str
    content: str = ''

    def __str__(self) -> str:
        return self.content

    @property
    def is_error(self) -> bool:
        return self.kind == ERROR


def text(content: Any = '') -> OutputLine:
    return OutputLine(TEXT, str(content))


def error(content: Any) -> OutputLine:
    return OutputLine(ERROR, str(content))


def success(content: Any) -> OutputLine:
    return OutputLine(SUCCESS, str(content))


def info(content: Any) -> OutputLine:
    return OutputLine(INFO, str(content))


def directory(content: Any) -> OutputLine:
    return OutputLine(DIRECTORY, str(content))


def clear() -> OutputLine:
    return OutputLine(CLEAR)


def to_lines(result: Any) -> List[OutputLine]:
    """
    Normalize whatever a handler returned into output lines.

    Handlers may return None, a string (split on newlines), a single line,
    or an iterable mixing strings and lines.
    """
    if result is None:
        return []
    if isinstance(result, OutputLine):
        return [result]
    if isinstance(result, str):
        return [text(line) for line in result.split('\n')]
    if isinstance(result, Iterable):
        return [item if isinstance(item, OutputLine) else text(item) for item in result]
    return [text(result)]


def line_contents(lines: Iterable[Any]) -> List[str]:
    """Plain string content of output lines, for piping into the next stage."""
    return [line.content if isinstance(line, OutputLine) else str(line) for line in lines]


def exit_marker() -> OutputLine:
    return OutputLine(EXIT)
