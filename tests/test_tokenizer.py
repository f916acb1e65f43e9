#!/usr/bin/env python3
"""
Tests for the quote and escape aware tokenizer.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

from webshell.tokenizer import scan, tokenize


class TestTokenize(unittest.TestCase):
    """Test tokenize()."""

    def test_splits_on_whitespace(self):
        self.assertEqual(tokenize('ls  -la\t/tmp'), ['ls', '-la', '/tmp'])

    def test_double_quotes_group_words(self):
        self.assertEqual(tokenize('echo "a b" c'), ['echo', 'a b', 'c'])

    def test_single_quotes_keep_double_quotes(self):
        self.assertEqual(tokenize('echo \'say "hi"\''), ['echo', 'say "hi"'])

    def test_quotes_inside_a_word(self):
        self.assertEqual(tokenize('alias ll="ls -la"'), ['alias', 'll=ls -la'])

    def test_known_escapes(self):
        self.assertEqual(tokenize(r'echo \"hi\"'), ['echo', '"hi"'])
        self.assertEqual(tokenize(r'echo a\nb'), ['echo', 'a\nb'])
        self.assertEqual(tokenize(r'echo a\\b'), ['echo', 'a\\b'])

    def test_unknown_escape_is_kept_verbatim(self):
        self.assertEqual(tokenize(r'echo \x'), ['echo', '\\x'])

    def test_escaped_space_does_not_split(self):
        self.assertEqual(tokenize(r'cat my\ file'), ['cat', 'my\\ file'])

    def test_unterminated_quote_swallows_rest(self):
        self.assertEqual(tokenize('echo "open ended'), ['echo', 'open ended'])

    def test_empty_quotes_produce_no_token(self):
        self.assertEqual(tokenize('echo ""'), ['echo'])

    def test_blank_input(self):
        self.assertEqual(tokenize(''), [])
        self.assertEqual(tokenize('   '), [])


class TestScan(unittest.TestCase):
    """Test the character walker the parser uses for operators."""

    def test_quoted_flags(self):
        states = [(char, quoted) for _, char, quoted, _ in scan('a"b"c')]
        self.assertEqual(states, [('a', False), ('"', False), ('b', True),
                                  ('"', True), ('c', False)])

    def test_escape_marks_both_characters(self):
        escaped = [esc for _, _, _, esc in scan(r'\|x')]
        self.assertEqual(escaped, [True, True, False])


if __name__ == '__main__':
    unittest.main()
