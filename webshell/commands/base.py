"""Helpers shared by the builtin command modules."""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from .. import output
from ..output import OutputLine
from ..virtual_fs import OperationError

_COUNT = re.compile(r'^-(\d+)$')


def split_options(tokens: List[str], valued: Iterable[str]) -> Tuple[Dict[str, str], List[str]]:
    """
    Pull ``-opt value`` pairs out of raw tokens.

    The parser turns ``-name`` into four boolean flags, so commands with
    find(1) style options read the raw tokens instead. Returns the option
    values and the remaining positional tokens (other flags dropped).
    """
    valued = set(valued)
    values: Dict[str, str] = {}
    positional: List[str] = []

    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token in valued and i + 1 < len(tokens):
            values[token] = tokens[i + 1]
            i += 2
            continue
        if not token.startswith('-') or token == '-':
            positional.append(token)
        i += 1

    return values, positional


def line_count(tokens: List[str], default: int = 10) -> Tuple[int, List[str]]:
    """Read ``-n N`` or ``-N`` from raw tokens for head/tail."""
    count = default
    rest: List[str] = []

    i = 0
    while i < len(tokens):
        token = tokens[i]
        match = _COUNT.match(token)
        if token == '-n' and i + 1 < len(tokens):
            try:
                count = int(tokens[i + 1])
            except ValueError:
                raise ValueError(f"invalid number of lines: '{tokens[i + 1]}'")
            i += 2
            continue
        if match:
            count = int(match.group(1))
        elif not token.startswith('-'):
            rest.append(token)
        i += 1

    return count, rest


def read_source(context, paths: List[str]) -> Tuple[List[str], Optional[OutputLine]]:
    """
    Text to operate on: the named files, or the previous pipe stage.

    Returns (lines, error_line).
    """
    if not paths:
        return context.pipe_lines(), None

    lines: List[str] = []
    for path in paths:
        content = context.fs.cat(path)
        if isinstance(content, OperationError):
            return [], output.error(content)
        lines.extend(content.split('\n') if content else [])
    return lines, None
