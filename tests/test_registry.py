#!/usr/bin/env python3
"""
Tests for the command registry.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

from webshell.commands import register_builtin_commands
from webshell.registry import CommandDescriptor, CommandRegistry, FlagSpec


def noop(args, flags, ctx):
    return []


class TestCommandRegistry(unittest.TestCase):
    """Test registration and lookup."""

    def setUp(self):
        self.registry = CommandRegistry()

    def test_alias_resolves_to_same_descriptor(self):
        descriptor = self.registry.register_command(
            'clear', CommandDescriptor(name='clear', handler=noop, aliases=('cls',)))
        self.assertIs(self.registry.get_command('clear'), descriptor)
        self.assertIs(self.registry.get_command('cls'), descriptor)

    def test_usage_defaults_to_name(self):
        descriptor = CommandDescriptor(name='pwd', handler=noop)
        self.assertEqual(descriptor.usage, 'pwd')

    def test_unknown_command(self):
        self.assertIsNone(self.registry.get_command('nope'))
        self.assertFalse(self.registry.has_command('nope'))

    def test_get_all_commands_is_deduplicated(self):
        self.registry.register_command(
            'exit', CommandDescriptor(name='exit', handler=noop, aliases=('quit', 'logout')))
        self.registry.register_command('pwd', CommandDescriptor(name='pwd', handler=noop))
        self.assertEqual(sorted(cmd.name for cmd in self.registry.get_all_commands()),
                         ['exit', 'pwd'])
        self.assertEqual(self.registry.get_command_count(), 2)

    def test_reregistration_replaces_and_keeps_position(self):
        for name in ('a', 'b', 'c'):
            self.registry.register_command(
                name, CommandDescriptor(name=name, handler=noop, category='x',
                                        aliases=(name * 2,)))
        replacement = CommandDescriptor(name='b', handler=noop, category='x')
        self.registry.register_command('b', replacement)

        members = self.registry.get_commands_by_category('x')
        self.assertEqual([cmd.name for cmd in members], ['a', 'b', 'c'])
        self.assertIs(members[1], replacement)
        self.assertIsNone(self.registry.get_command('bb'))
        self.assertEqual(self.registry.get_command_count(), 3)

    def test_categories_in_registration_order(self):
        self.registry.register_command('ls', CommandDescriptor(name='ls', handler=noop,
                                                               category='filesystem'))
        self.registry.register_command('date', CommandDescriptor(name='date', handler=noop,
                                                                 category='system'))
        self.assertEqual(self.registry.get_categories(), ['filesystem', 'system'])

    def test_decorator(self):
        @self.registry.command('greet', description='Say hi', category='utils',
                               flags=[('l', 'Loud'), FlagSpec('q', 'Quiet')],
                               requires=('notifications',))
        def greet(args, flags, ctx):
            return ['hi']

        descriptor = self.registry.get_command('greet')
        self.assertIs(descriptor.handler, greet)
        self.assertEqual(descriptor.flags, [FlagSpec('l', 'Loud'), FlagSpec('q', 'Quiet')])
        self.assertEqual(descriptor.requires, ('notifications',))

    def test_help_lines(self):
        descriptor = CommandDescriptor(
            name='ls', handler=noop, description='List', usage='ls [path]',
            flags=[FlagSpec('l', 'Long')], examples=['ls -l'], aliases=('dir',))
        help_text = '\n'.join(descriptor.help_lines())
        self.assertIn('ls - List', help_text)
        self.assertIn('ls [path]', help_text)
        self.assertIn('Aliases: dir', help_text)
        self.assertIn('-l', help_text)
        self.assertIn('ls -l', help_text)


class TestBuiltinRegistration(unittest.TestCase):
    """Test the builtin command set."""

    def test_registries_are_independent(self):
        first = register_builtin_commands(CommandRegistry())
        second = register_builtin_commands(CommandRegistry())
        first.register_command('extra', CommandDescriptor(name='extra', handler=noop))

        self.assertTrue(first.has_command('extra'))
        self.assertFalse(second.has_command('extra'))
        self.assertIsNot(first.get_command('ls'), second.get_command('ls'))

    def test_expected_categories(self):
        registry = register_builtin_commands(CommandRegistry())
        self.assertEqual(registry.get_categories(),
                         ['filesystem', 'system', 'utils', 'apps', 'media'])
        for name in ('ls', 'cd', 'find', 'tree', 'alias', 'history', 'calc',
                     'grep', 'man', 'json', 'reset', 'uname', 'kill',
                     'open', 'ps', 'music', 'notify'):
            self.assertTrue(registry.has_command(name), name)

    def test_window_commands_declare_capability(self):
        registry = register_builtin_commands(CommandRegistry())
        for name in ('open', 'close', 'minimize', 'maximize', 'focus', 'kill', 'ps'):
            self.assertEqual(registry.get_command(name).requires, ('window',))

    def test_pipe_readers_are_marked(self):
        registry = register_builtin_commands(CommandRegistry())
        for name in ('cat', 'head', 'tail', 'wc', 'sort', 'json'):
            self.assertTrue(registry.get_command(name).accepts_pipe, name)
        for name in ('stat', 'file', 'grep', 'sleep', 'open'):
            self.assertFalse(registry.get_command(name).accepts_pipe, name)


if __name__ == '__main__':
    unittest.main()
