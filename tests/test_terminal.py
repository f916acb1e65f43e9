#!/usr/bin/env python3
"""
Tests for the webshell execution engine and terminal session.

This module covers alias and variable expansion, chaining, pipes, history
navigation, failure recovery and host capability checks.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio

import pytest

from webshell import output
from webshell.capabilities import Capabilities
from webshell.command_parser import Command
from webshell.terminal import (
    EXIT_CANNOT_EXECUTE, EXIT_FAILURE, EXIT_NOT_FOUND, EXIT_OK,
    CommandHistory, HistoryDirection, SessionState, TerminalConfig,
    TerminalSession, main,
)
from webshell.virtual_fs import VirtualFileSystem
from conftest import FakeWindows


def contents(lines):
    return [line.content for line in lines]


class TestCommandHistory:
    """Test arrow-key history navigation."""

    def test_empty_history(self):
        history = CommandHistory()
        assert history.previous() is None
        assert history.next() is None

    def test_navigation(self):
        history = CommandHistory()
        for line in ('a', 'b', 'c'):
            history.add(line)

        assert history.navigate(HistoryDirection.UP) == 'c'
        assert history.navigate('up') == 'b'
        assert history.previous() == 'a'
        assert history.previous() == 'a'
        assert history.next() == 'b'
        assert history.next() == 'c'
        assert history.next() == ''
        assert history.previous() == 'c'

    def test_down_without_navigation(self):
        history = CommandHistory()
        history.add('ls')
        assert history.navigate(HistoryDirection.DOWN) == ''

    def test_add_resets_position(self):
        history = CommandHistory()
        history.add('a')
        history.add('b')
        history.previous()
        history.add('c')
        assert history.previous() == 'c'

    def test_blank_lines_are_ignored(self):
        history = CommandHistory()
        history.add('   ')
        assert len(history) == 0

    def test_log_outlives_window(self):
        history = CommandHistory(max_size=2)
        for line in ('a', 'b', 'c'):
            history.add(line)
        assert list(history) == ['a', 'b', 'c']
        assert history.window_start == 1

    def test_navigation_stops_at_window(self):
        history = CommandHistory(max_size=2)
        for line in ('a', 'b', 'c'):
            history.add(line)
        assert history.previous() == 'c'
        assert history.previous() == 'b'
        assert history.previous() == 'b'

    def test_session_history_size(self, fs):
        terminal = TerminalSession(config=TerminalConfig(history_size=2), fs=fs)
        for line in ('pwd', 'whoami', 'hostname'):
            terminal.run_command(line)
        assert len(terminal.history) == 3
        assert terminal.run_command('history') == '    3  hostname\n    4  history'
        assert terminal.run_command('history 5').split('\n')[0] == '    1  pwd'


class TestExecution:
    """Test single commands through the session."""

    @pytest.mark.asyncio
    async def test_blank_line(self, session):
        assert await session.execute_command('   ') == []
        assert len(session.history) == 0

    @pytest.mark.asyncio
    async def test_output_is_recorded(self, session):
        lines = await session.execute_command('pwd')
        assert contents(lines) == ['/']
        assert session.output[0].kind == output.COMMAND
        assert session.output[0].content == 'guest@webos:/$ pwd'
        assert session.output[1].content == '/'

    @pytest.mark.asyncio
    async def test_unknown_command(self, session):
        lines = await session.execute_command('frobnicate now')
        assert lines[0].kind == output.ERROR
        assert lines[0].content == 'frobnicate: command not found'

    @pytest.mark.asyncio
    async def test_missing_operand(self, session):
        lines = await session.execute_command('cat')
        assert contents(lines) == ['cat: missing operand', 'Usage: cat <file>...']

    @pytest.mark.asyncio
    async def test_help_flag(self, session):
        lines = await session.execute_command('ls --help')
        assert 'ls [path] [-l] [-a] [-h]' in '\n'.join(contents(lines))

    @pytest.mark.asyncio
    async def test_handler_exception_is_rendered(self, session):
        @session.registry.command('boom')
        def boom(args, flags, ctx):
            raise RuntimeError('kaboom')

        lines = await session.execute_command('boom')
        assert contents(lines) == ['Error executing boom: kaboom']
        assert session.state is SessionState.IDLE
        assert contents(await session.execute_command('pwd')) == ['/']

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self, session):
        @session.registry.command('later')
        async def later(args, flags, ctx):
            await asyncio.sleep(0)
            return [output.success('done ' + ' '.join(args))]

        lines = await session.execute_command('later a b')
        assert contents(lines) == ['done a b']

    @pytest.mark.asyncio
    async def test_handler_may_return_string(self, session):
        session.registry.command('greet')(lambda args, flags, ctx: 'hello\nworld')
        assert contents(await session.execute_command('greet')) == ['hello', 'world']

    @pytest.mark.asyncio
    async def test_parse_error_is_rendered(self, session):
        lines = await session.execute_command('&&')
        assert lines[0].kind == output.ERROR
        assert 'syntax error' in lines[0].content
        assert session.state is SessionState.IDLE

    @pytest.mark.asyncio
    async def test_clear_empties_output(self, session):
        await session.execute_command('echo one')
        await session.execute_command('clear')
        assert session.output == []

    @pytest.mark.asyncio
    async def test_exit_stops_session(self, session):
        session.running = True
        lines = await session.execute_command('exit')
        assert lines[-1].kind == output.EXIT
        assert session.running is False


class TestExpansion:
    """Test alias and variable expansion."""

    def test_default_alias(self, session):
        assert session.run_command('ll').startswith('total')

    def test_defined_alias_matches_expansion(self, sample_tree):
        terminal = TerminalSession(fs=VirtualFileSystem(sample_tree))
        terminal.run_command("alias ll2='ls -la'")
        assert terminal.run_command('ll2 /Projects') == terminal.run_command('ls -la /Projects')

    def test_alias_to_itself(self, session):
        session.aliases['ls'] = 'ls -l'
        assert session.expand_aliases('ls /Projects') == 'ls -l /Projects'

    def test_alias_chain(self, session):
        session.aliases['a'] = 'b -x'
        session.aliases['b'] = 'echo'
        assert session.expand_aliases('a y') == 'echo -x y'

    def test_alias_cycle_terminates(self, session):
        session.aliases['a'] = 'b'
        session.aliases['b'] = 'a'
        assert session.expand_aliases('a') == 'a'
        assert 'command not found' in session.run_command('a')

    def test_alias_depth_limit(self, fs):
        config = TerminalConfig(max_alias_depth=2, aliases={'a': 'b', 'b': 'c', 'c': 'pwd'})
        terminal = TerminalSession(config=config, fs=fs)
        assert terminal.expand_aliases('a') == 'c'

    def test_alias_only_matches_whole_word(self, session):
        session.aliases['l'] = 'ls'
        assert session.expand_aliases('ln -s') == 'ln -s'

    def test_variables(self, session):
        session.run_command('export NAME=world')
        assert session.run_command('echo hello $NAME') == 'hello world'
        assert session.run_command('echo $MISSING') == '$MISSING'

    def test_pwd_variable_tracks_cwd(self, session):
        session.run_command('cd Projects')
        assert session.run_command('echo $PWD') == '/Projects'

    def test_environment_defaults(self, session):
        assert session.env['USER'] == 'guest'
        assert session.env['HOSTNAME'] == 'webos'
        assert session.env['HOME'] == '/'


class TestChainsAndPipes:
    """Test chained and piped execution."""

    def test_chain_runs_every_segment(self, session):
        assert session.run_command('cd Projects && pwd; echo done') == '/Projects\ndone'

    def test_chain_continues_after_failure(self, session):
        result = session.run_command('nope && echo after')
        assert 'nope: command not found' in result
        assert result.endswith('after')

    def test_strict_chaining(self, fs):
        terminal = TerminalSession(config=TerminalConfig(strict_chaining=True), fs=fs)
        assert 'after' not in terminal.run_command('nope && echo after')
        assert terminal.run_command('nope ; echo after').endswith('after')

    def test_pipe_feeds_next_stage(self, session):
        assert session.run_command('cat README.md | grep two') == 'line two'
        assert session.run_command('ls | wc -l') == '4'

    def test_only_last_stage_is_rendered(self, session):
        assert session.run_command('echo first | echo second') == 'second'

    def test_pipe_stops_on_unknown_command(self, session):
        result = session.run_command('nope | echo hi')
        assert 'nope: command not found' in result
        assert 'hi' not in result.split('\n')

    def test_pipe_stops_on_handler_error(self, session):
        @session.registry.command('boom')
        def boom(args, flags, ctx):
            raise ValueError('bad')

        assert session.run_command('boom | echo hi') == 'Error executing boom: bad'

    def test_pipe_does_not_replace_operands(self, session):
        assert session.run_command('echo README.md | stat') == \
            'stat: missing operand\nUsage: stat <path>'
        assert session.run_command('ls | grep').startswith('grep: missing operand')
        assert session.run_command('echo x | file').startswith('file: missing operand')
        assert session.run_command('echo 1 | sleep').startswith('sleep: missing operand')

    def test_pipe_replaces_operands_when_accepted(self, session):
        assert session.run_command('echo hi | cat') == 'hi'
        assert session.run_command('ls | grep .md') == 'README.md'

    def test_pipe_input_on_context(self, session):
        seen = []

        @session.registry.command('capture')
        def capture(args, flags, ctx):
            seen.append(ctx.pipe_lines())

        session.run_command('seq 3 | capture')
        assert seen == [['1', '2', '3']]


class TestExecutorResults:
    """Test exit codes reported by the executor."""

    @pytest.mark.asyncio
    async def test_exit_codes(self, session):
        executor = session.executor
        assert (await executor.execute_command(Command(name='pwd'))).exit_code == EXIT_OK
        assert (await executor.execute_command(Command(name='nope'))).exit_code == EXIT_NOT_FOUND
        result = await executor.execute_command(Command(name='ls', args=['missing']))
        assert result.exit_code == EXIT_FAILURE
        assert not result.interrupted
        result = await executor.execute_command(Command(name='open', args=['vscode']))
        assert result.exit_code == EXIT_CANNOT_EXECUTE
        assert result.interrupted


class TestCapabilities:
    """Test host capability checks."""

    def test_missing_capability(self, session):
        assert session.run_command('open vscode') == 'open: window capability is not available'

    def test_provided_capability(self, fs):
        windows = FakeWindows()
        terminal = TerminalSession(fs=fs, capabilities=Capabilities(window=windows))
        assert terminal.run_command('open code') == 'Opened vscode'
        assert windows.calls == [('open', 'vscode')]

    def test_available(self):
        caps = Capabilities(window=FakeWindows())
        assert caps.available() == ['window']
        assert caps.has('window')
        assert not caps.has('music')


class TestSessionIsolation:
    """Sessions never share state."""

    def test_filesystem_and_aliases(self, sample_tree):
        first = TerminalSession(fs=VirtualFileSystem(sample_tree))
        second = TerminalSession(fs=VirtualFileSystem(sample_tree))

        first.run_command('mkdir Scratch')
        first.run_command('alias hi="echo hi"')
        first.run_command('export MOOD=good')

        assert 'Scratch/' in first.run_command('ls')
        assert 'Scratch/' not in second.run_command('ls')
        assert 'hi' not in second.aliases
        assert 'MOOD' not in second.env
        assert first.registry is not second.registry


class TestInteractiveHelpers:
    """Test completion, prompt and script helpers."""

    def test_command_suggestions(self, session):
        assert session.get_command_suggestions('h') == ['head', 'help', 'history', 'hostname']

    def test_path_completion(self, session):
        assert session.get_completions('cd Pro') == ['Projects/']
        assert session.get_completions('cat Projects/a') == ['Projects/app.js']

    def test_navigate_history(self, session):
        assert session.navigate_history(HistoryDirection.UP) is None
        session.run_command('pwd')
        session.run_command('whoami')
        assert session.navigate_history(HistoryDirection.UP) == 'whoami'
        assert session.navigate_history(HistoryDirection.UP) == 'pwd'
        assert session.navigate_history(HistoryDirection.DOWN) == 'whoami'
        assert session.navigate_history(HistoryDirection.DOWN) == ''

    def test_prompt(self, session):
        assert session.get_prompt() == 'guest@webos:/$ '

    def test_initial_directory(self, fs):
        terminal = TerminalSession(config=TerminalConfig(initial_dir='/Projects'), fs=fs)
        assert terminal.run_command('pwd') == '/Projects'
        assert terminal.env['PWD'] == '/Projects'

    def test_run_script(self, session):
        outputs = session.run_script([
            '# setup',
            'echo a',
            '',
            'exit',
            'echo b',
        ])
        assert outputs == ['a', 'Goodbye!']


class TestMain:
    """Test the command line entry point."""

    def test_single_command(self, capsys):
        main(['-c', 'echo hi', '--no-color'])
        assert capsys.readouterr().out == 'hi\n'

    def test_tree_file(self, tmp_path, capsys):
        tree = tmp_path / 'tree.json'
        tree.write_text('{"name": "root", "type": "folder", "children": '
                        '[{"name": "hello.txt", "type": "file", "content": "hey"}]}')
        main(['-t', str(tree), '-c', 'cat hello.txt'])
        assert capsys.readouterr().out == 'hey\n'
