#!/usr/bin/env python3
"""
Quote and escape aware tokenizer for webshell command lines.

The same quoting rules drive both tokenization and operator detection in the
parser, so ``scan`` is exposed for the parser to walk a line with exactly the
state the tokenizer would see.
"""

from typing import Iterator, List, Tuple


QUOTE_CHARS = ('"', "'")

# Escapes that collapse to a single literal character.
ESCAPES = {
    'n': '\n',
    't': '\t',
    '\\': '\\',
    '"': '"',
    "'": "'",
}


def scan(text: str) -> Iterator[Tuple[int, str, bool, bool]]:
    """
    Walk a line tracking quote state.

    Yields (index, char, quoted, escaped) for every character. ``quoted`` is
    True for characters inside a quoted region, including the closing quote.
    ``escaped`` is True for a backslash and the character it escapes.
    Opening quotes are reported with quoted=False so callers can tell them
    apart from ordinary text.
    """
    quote_char = ''
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if char == '\\' and i + 1 < length:
            yield i, char, bool(quote_char), True
            yield i + 1, text[i + 1], bool(quote_char), True
            i += 2
            continue

        if char in QUOTE_CHARS:
            if not quote_char:
                yield i, char, False, False
                quote_char = char
                i += 1
                continue
            if char == quote_char:
                yield i, char, True, False
                quote_char = ''
                i += 1
                continue

        yield i, char, bool(quote_char), False
        i += 1


def tokenize(text: str) -> List[str]:
    """
    Split a string into tokens.

    Whitespace outside quotes separates tokens. Quote characters are
    stripped; an unterminated quote swallows the rest of the line.

    >>> tokenize('echo "a b" c')
    ['echo', 'a b', 'c']
    """
    tokens: List[str] = []
    current: List[str] = []
    quote_char = ''
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if char == '\\' and i + 1 < length:
            next_char = text[i + 1]
            if next_char in ESCAPES:
                current.append(ESCAPES[next_char])
            else:
                # Unknown escape: keep both characters verbatim
                current.append(char)
                current.append(next_char)
            i += 2
            continue

        if char in QUOTE_CHARS:
            if not quote_char:
                quote_char = char
                i += 1
                continue
            if char == quote_char:
                quote_char = ''
                i += 1
                continue

        if char.isspace() and not quote_char:
            if current:
                tokens.append(''.join(current))
                current = []
            i += 1
            continue

        current.append(char)
        i += 1

    if current:
        tokens.append(''.join(current))

    return tokens
