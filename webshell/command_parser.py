#!/usr/bin/env python3
"""
Command parser for the webshell interpreter.

This module translates command line strings into structured representations
that the executor can dispatch against the command registry.

Design Principles:
- Single responsibility: Parse commands, don't execute them
- Composable: Each parsing step is independent
- Testable: Pure functions with predictable outputs

Operator precedence is exclusive per line: a line containing an unquoted
``&&`` or ``;`` is a chain, otherwise a line containing an unquoted ``|`` is a
pipe, otherwise it is a single command. Chain segments are parsed as single
commands, so a ``|`` inside a chain segment is ordinary text.
"""

import logging
import re
import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .errors import ParseError
from .tokenizer import scan, tokenize

logger = logging.getLogger(__name__)

CHAIN_OPERATORS = ('&&', ';')
PIPE_OPERATOR = '|'

_VARIABLE_PATTERN = re.compile(r'\$(\w+)')
_NEGATIVE_NUMBER = re.compile(r'^-\d')


@dataclass
class Command:
    """
    A single command with its arguments and flags.

    This is the fundamental unit of execution. Each command maps to one
    registered handler.
    """
    name: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, Union[bool, str]] = field(default_factory=dict)
    raw_flags: List[str] = field(default_factory=list)
    raw_args: List[str] = field(default_factory=list)  # Tokens before flag parsing
    raw: str = ''

    def __str__(self) -> str:
        parts = [self.name]
        for key, value in self.flags.items():
            if value is True:
                parts.append(f"-{key}" if len(key) == 1 else f"--{key}")
            else:
                parts.append(f"--{key}={value}")
        parts.extend(shlex.quote(arg) for arg in self.args)
        return ' '.join(parts)


@dataclass
class ChainedCommand:
    """
    Commands joined by ``&&`` or ``;``.

    Each segment carries the separator that ended it; the trailing segment
    has no separator.
    """
    segments: List[Tuple[Command, Optional[str]]]

    def __str__(self) -> str:
        parts = []
        for command, separator in self.segments:
            parts.append(str(command))
            if separator:
                parts.append(separator)
        return ' '.join(parts)


@dataclass
class PipedCommand:
    """Commands joined by ``|``, executed left to right."""
    stages: List[Command]

    def __str__(self) -> str:
        return ' | '.join(str(stage) for stage in self.stages)


ParsedCommand = Union[Command, ChainedCommand, PipedCommand]


class CommandParser:
    """
    Parser for webshell command syntax.

    This parser handles:
    - Basic commands with arguments
    - Flags (short: -a, -abc; long: --flag, --flag=value)
    - Command sequences (;, &&)
    - Pipes (|)
    - Quoting and escaping
    """

    def parse(self, command_line: str) -> Optional[ParsedCommand]:
        """
        Parse a complete command line.

        Returns None for blank input. Raises ParseError when operators leave
        nothing to run.
        """
        if not command_line or not command_line.strip():
            return None

        line = command_line.strip()

        operators = self._find_operators(line, CHAIN_OPERATORS)
        if operators:
            parsed = self._parse_chain(line, operators)
        else:
            pipes = self._find_operators(line, (PIPE_OPERATOR,))
            if pipes:
                parsed = self._parse_pipe(line, pipes)
            else:
                parsed = self._parse_command(line)

        if isinstance(parsed, ChainedCommand) and not parsed.segments:
            raise ParseError(f"syntax error near unexpected token '{operators[0][1]}'")
        if isinstance(parsed, PipedCommand) and not parsed.stages:
            raise ParseError("syntax error near unexpected token '|'")

        logger.debug("parsed %r as %r", command_line, parsed)
        return parsed

    def parse_simple(self, command_str: str) -> Command:
        """
        Parse a simple command without pipes or operators.

        Convenience method for testing and simple cases.
        """
        cmd = self._parse_command(command_str)
        return cmd if cmd else Command(name='')

    def _find_operators(self, line: str, operators: Tuple[str, ...]) -> List[Tuple[int, str]]:
        """Locate unquoted, unescaped operators as (index, operator) pairs."""
        chars = list(scan(line))
        found = []
        skip = 0

        for pos, (index, char, quoted, escaped) in enumerate(chars):
            if skip:
                skip -= 1
                continue
            if quoted or escaped:
                continue

            for op in operators:
                if char != op[0]:
                    continue
                following = chars[pos + 1:pos + len(op)]
                if len(following) != len(op) - 1:
                    continue
                if all(c == expected and not q and not e
                       for (_, c, q, e), expected in zip(following, op[1:])):
                    found.append((index, op))
                    skip = len(op) - 1
                    break

        return found

    def _parse_chain(self, line: str, operators: List[Tuple[int, str]]) -> ChainedCommand:
        """Split a line at chain operators into tagged segments."""
        segments = []
        start = 0

        for index, op in operators:
            command = self._parse_command(line[start:index])
            if command:
                segments.append((command, op))
            start = index + len(op)

        tail = line[start:]
        if tail.strip():
            command = self._parse_command(tail)
            if command:
                segments.append((command, None))

        return ChainedCommand(segments=segments)

    def _parse_pipe(self, line: str, pipes: List[Tuple[int, str]]) -> PipedCommand:
        """Split a line at pipe characters into ordered stages."""
        stages = []
        start = 0

        for index, op in pipes + [(len(line), '')]:
            command = self._parse_command(line[start:index])
            if command:
                stages.append(command)
            start = index + len(op)

        return PipedCommand(stages=stages)

    def _parse_command(self, command_str: str) -> Optional[Command]:
        """Parse a single command with its arguments and flags."""
        raw = command_str.strip()
        tokens = tokenize(raw)
        if not tokens:
            return None

        name = tokens[0]
        raw_args = tokens[1:]
        flags, raw_flags, args = self._parse_flags(raw_args)

        return Command(
            name=name,
            args=args,
            flags=flags,
            raw_flags=raw_flags,
            raw_args=raw_args,
            raw=raw,
        )

    def _parse_flags(self, tokens: List[str]) -> Tuple[Dict[str, Union[bool, str]], List[str], List[str]]:
        """
        Classify tokens into flags and positional arguments.

        Returns (flags, raw_flags, args).
        """
        flags: Dict[str, Union[bool, str]] = {}
        raw_flags: List[str] = []
        args: List[str] = []

        for i, token in enumerate(tokens):
            if token == '--':
                # End of flags marker
                args.extend(tokens[i + 1:])
                break
            elif token.startswith('--'):
                name = token[2:]
                if '=' in name:
                    key, value = name.split('=', 1)
                    flags[key] = value
                    raw_flags.append(f"--{key}")
                else:
                    flags[name] = True
                    raw_flags.append(f"--{name}")
            elif token.startswith('-') and len(token) > 1 and not _NEGATIVE_NUMBER.match(token):
                for char in token[1:]:
                    flags[char] = True
                    raw_flags.append(f"-{char}")
            else:
                args.append(token)

        return flags, raw_flags, args


def expand_variables(text: str, env: Mapping[str, str]) -> str:
    """Replace every ``$NAME`` with its value; unknown names are left as-is."""
    def substitute(match):
        value = env.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return _VARIABLE_PATTERN.sub(substitute, text)


def expand_tilde(path: str, home: str = '~') -> str:
    """Expand a leading ``~`` to the home directory."""
    if path == '~':
        return home
    if path.startswith('~/'):
        return home.rstrip('/') + path[1:]
    return path
