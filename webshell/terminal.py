#!/usr/bin/env python3
"""
Terminal session and execution engine for webshell.

This module turns submitted lines into output. It owns the per-session state
(working directory via the virtual filesystem, environment, aliases and
history), expands aliases and variables, hands the line to the parser and
dispatches the parsed commands to registered handlers.

Design Principles:
- Clean separation between parsing and execution
- One registry, filesystem and environment per session, never shared
- A failing command is rendered as an error line; the session carries on
"""

import argparse
import asyncio
import inspect
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from . import output
from .capabilities import Capabilities
from .command_parser import (
    ChainedCommand, Command, CommandParser, ParsedCommand, PipedCommand,
    expand_variables,
)
from .commands import register_builtin_commands
from .errors import CapabilityUnavailable, CommandLookupError, HandlerError
from .output import OutputLine
from .registry import CommandDescriptor, CommandRegistry
from .virtual_fs import VirtualFileSystem

logger = logging.getLogger(__name__)

DEFAULT_ALIASES = {
    'll': 'ls -la',
    'la': 'ls -a',
    '..': 'cd ..',
    '...': 'cd ../..',
}

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANNOT_EXECUTE = 126
EXIT_NOT_FOUND = 127


@dataclass
class TerminalConfig:
    """Configuration for terminal session."""
    user: str = 'guest'
    hostname: str = 'webos'
    home_dir: str = '/'
    initial_dir: str = '/'
    prompt_format: str = '{user}@{hostname}:{cwd}$ '
    enable_colors: bool = True
    history_size: int = 1000
    max_alias_depth: int = 10
    strict_chaining: bool = False  # Stop a chain at the first failing '&&' segment
    env: Dict[str, str] = field(default_factory=dict)
    aliases: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))


class SessionState(Enum):
    IDLE = 'idle'
    RESOLVING = 'resolving'
    PARSING = 'parsing'
    DISPATCHING = 'dispatching'
    RENDERING = 'rendering'


class HistoryDirection(Enum):
    UP = 'up'
    DOWN = 'down'


class CommandHistory:
    """
    Entered lines for the session, with arrow-key style navigation.

    The log is append-only. ``max_size`` bounds the window that navigation
    and the ``history`` command look at, never the log itself.
    """

    def __init__(self, max_size: int = 1000):
        """Initialize with the size of the visible window."""
        self.max_size = max_size
        self.entries: List[str] = []
        self.index: Optional[int] = None  # None while not navigating

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def window_start(self) -> int:
        """Index of the oldest entry inside the visible window."""
        return max(0, len(self.entries) - self.max_size)

    def add(self, command: str):
        """Add a command to history."""
        if command and command.strip():
            self.entries.append(command)
        self.index = None

    def previous(self) -> Optional[str]:
        """Step back towards the oldest visible entry, stopping there."""
        if not self.entries:
            return None
        if self.index is None:
            self.index = len(self.entries) - 1
        else:
            self.index = max(self.window_start, self.index - 1)
        return self.entries[self.index]

    def next(self) -> Optional[str]:
        """Step forward; moving past the newest entry yields ''."""
        if not self.entries:
            return None
        if self.index is None:
            return ''
        self.index += 1
        if self.index >= len(self.entries):
            self.index = None
            return ''
        return self.entries[self.index]

    def navigate(self, direction: HistoryDirection) -> Optional[str]:
        direction = HistoryDirection(direction)
        if direction is HistoryDirection.UP:
            return self.previous()
        return self.next()


@dataclass
class ExecutionContext:
    """Mutable state owned by exactly one terminal session."""
    fs: VirtualFileSystem
    env: Dict[str, str]
    aliases: Dict[str, str]
    history: CommandHistory

    @property
    def cwd(self) -> str:
        return self.fs.pwd()


@dataclass
class CommandContext:
    """Everything a handler may touch while it runs."""
    fs: VirtualFileSystem
    env: Dict[str, str]
    aliases: Dict[str, str]
    history: CommandHistory
    registry: CommandRegistry
    capabilities: Capabilities
    session: 'TerminalSession'
    command: Optional[Command] = None
    pipe_input: Optional[List[OutputLine]] = None

    @property
    def cwd(self) -> str:
        return self.fs.pwd()

    def require(self, name: str):
        """Return a host capability or raise ``CapabilityUnavailable``."""
        return self.capabilities.require(name, self.command.name if self.command else '')

    def pipe_lines(self) -> List[str]:
        """Text of the previous pipe stage, or an empty list."""
        if self.pipe_input is None:
            return []
        return output.line_contents(self.pipe_input)


@dataclass
class CommandResult:
    """Outcome of one command invocation."""
    lines: List[OutputLine]
    exit_code: int = EXIT_OK
    interrupted: bool = False  # The handler never ran to completion

    @property
    def ok(self) -> bool:
        return self.exit_code == EXIT_OK


class CommandExecutor:
    """
    Executes parsed commands by dispatching them to registered handlers.

    Chains run every segment in order; pipes hand each stage's output lines
    to the next stage as ``pipe_input``.
    """

    def __init__(self, registry: CommandRegistry,
                 context_factory: Callable[..., CommandContext],
                 strict_chaining: bool = False):
        self.registry = registry
        self.context_factory = context_factory
        self.strict_chaining = strict_chaining

    async def execute(self, parsed: Optional[ParsedCommand]) -> List[OutputLine]:
        """Execute any parsed command and return the lines to render."""
        if parsed is None:
            return []
        if isinstance(parsed, ChainedCommand):
            return await self._execute_chain(parsed)
        if isinstance(parsed, PipedCommand):
            return await self._execute_pipeline(parsed)
        result = await self.execute_command(parsed)
        return result.lines

    async def _execute_chain(self, chain: ChainedCommand) -> List[OutputLine]:
        lines: List[OutputLine] = []
        for command, separator in chain.segments:
            result = await self.execute_command(command)
            lines.extend(result.lines)
            if self.strict_chaining and separator == '&&' and not result.ok:
                logger.debug("chain stopped after failing %s", command.name)
                break
        return lines

    async def _execute_pipeline(self, pipeline: PipedCommand) -> List[OutputLine]:
        pipe_data: Optional[List[OutputLine]] = None
        for stage in pipeline.stages:
            result = await self.execute_command(stage, pipe_input=pipe_data)
            if result.interrupted:
                return result.lines
            pipe_data = result.lines
        return pipe_data or []

    async def execute_command(self, command: Command,
                              pipe_input: Optional[List[OutputLine]] = None) -> CommandResult:
        """Run one command. Never raises for command level failures."""
        descriptor = self.registry.get_command(command.name)
        if descriptor is None:
            failure = CommandLookupError(command.name)
            logger.debug("%s", failure)
            return CommandResult(
                [output.error(failure), output.text('Type "help" for available commands')],
                exit_code=EXIT_NOT_FOUND,
                interrupted=True,
            )

        if 'help' in command.flags:
            return CommandResult(output.to_lines(descriptor.help_lines()))

        piped = descriptor.accepts_pipe and pipe_input is not None
        if descriptor.requires_args and not command.args and not piped:
            return CommandResult(
                [output.error(f"{command.name}: missing operand"),
                 output.text(f"Usage: {descriptor.usage}")],
                exit_code=EXIT_FAILURE,
            )

        context = self.context_factory(command=command, pipe_input=pipe_input)
        try:
            result = await self._invoke(descriptor, command, context)
        except CapabilityUnavailable as exc:
            logger.debug("%s", exc)
            return CommandResult([output.error(exc)], exit_code=EXIT_CANNOT_EXECUTE,
                                 interrupted=True)
        except Exception as exc:
            failure = HandlerError(command.name, exc)
            logger.warning("%s", failure, exc_info=True)
            return CommandResult([output.error(failure)], exit_code=EXIT_FAILURE,
                                 interrupted=True)

        lines = output.to_lines(result)
        exit_code = EXIT_FAILURE if any(line.is_error for line in lines) else EXIT_OK
        return CommandResult(lines, exit_code=exit_code)

    async def _invoke(self, descriptor: CommandDescriptor, command: Command,
                      context: CommandContext) -> Any:
        for capability in descriptor.requires:
            context.require(capability)

        logger.debug("dispatch %s args=%r flags=%r", command.name, command.args, command.flags)
        result = descriptor.handler(command.args, command.flags, context)
        if inspect.isawaitable(result):
            result = await result
        return result


class TerminalSession:
    """
    Main terminal session manager.

    This class owns the session state and provides line execution, history
    navigation, completion and the REPL loop.
    """

    COLORS = {
        output.ERROR: '\033[31m',
        output.SUCCESS: '\033[32m',
        output.INFO: '\033[36m',
        output.DIRECTORY: '\033[34m',
    }

    def __init__(self, config: Optional[TerminalConfig] = None,
                 fs: Optional[VirtualFileSystem] = None,
                 registry: Optional[CommandRegistry] = None,
                 capabilities: Optional[Capabilities] = None):
        """Initialize terminal session."""
        self.config = config or TerminalConfig()
        self.fs = fs or VirtualFileSystem(owner=self.config.user)
        if registry is None:
            registry = CommandRegistry()
            register_builtin_commands(registry)
        self.registry = registry
        self.capabilities = capabilities or Capabilities()
        self.parser = CommandParser()
        self.history = CommandHistory(self.config.history_size)
        self.context = ExecutionContext(
            fs=self.fs,
            env={},
            aliases=dict(self.config.aliases),
            history=self.history,
        )
        self.executor = CommandExecutor(self.registry, self.make_context,
                                        strict_chaining=self.config.strict_chaining)
        self.output: List[OutputLine] = []
        self.state = SessionState.IDLE
        self.running = False
        self.started = datetime.now()

        self._init_environment()

    def _init_environment(self):
        """Initialize the shell environment."""
        self.env.update({
            'USER': self.config.user,
            'HOSTNAME': self.config.hostname,
            'HOME': self.config.home_dir,
            'PATH': '/bin:/usr/bin:/usr/local/bin',
            'SHELL': '/bin/webshell',
        })
        self.env.update(self.config.env)

        if self.config.initial_dir and self.config.initial_dir != '/':
            result = self.fs.cd(self.config.initial_dir)
            if not isinstance(result, str):
                logger.warning("initial directory unavailable: %s", result)
        self.env['PWD'] = self.fs.pwd()

    @property
    def env(self) -> Dict[str, str]:
        return self.context.env

    @property
    def aliases(self) -> Dict[str, str]:
        return self.context.aliases

    def make_context(self, command: Optional[Command] = None,
                     pipe_input: Optional[List[OutputLine]] = None) -> CommandContext:
        """Build the context handed to a handler."""
        return CommandContext(
            fs=self.fs,
            env=self.env,
            aliases=self.aliases,
            history=self.history,
            registry=self.registry,
            capabilities=self.capabilities,
            session=self,
            command=command,
            pipe_input=pipe_input,
        )

    # Expansion

    def expand_aliases(self, command_line: str) -> str:
        """
        Replace a leading alias with its expansion.

        Expansions are applied repeatedly up to ``max_alias_depth`` times; an
        alias already expanded for this line is never expanded again.
        """
        expanded = command_line.lstrip()
        seen = set()

        for _ in range(self.config.max_alias_depth):
            word = expanded.split(' ', 1)[0]
            if word in seen or word not in self.aliases:
                break
            seen.add(word)
            expanded = self.aliases[word] + expanded[len(word):]
            logger.debug("alias %s -> %r", word, expanded)

        return expanded

    def expand(self, command_line: str) -> str:
        """Alias expansion followed by environment expansion."""
        self.env['PWD'] = self.fs.pwd()
        return expand_variables(self.expand_aliases(command_line), self.env)

    # Execution

    async def execute_command(self, command_line: str) -> List[OutputLine]:
        """
        Execute a command line, render its output and return the new lines.
        """
        if not command_line or not command_line.strip():
            return []

        self.history.add(command_line)
        self.output.append(OutputLine(output.COMMAND, f"{self._plain_prompt()}{command_line}"))

        try:
            self.state = SessionState.RESOLVING
            expanded = self.expand(command_line)

            self.state = SessionState.PARSING
            parsed = self.parser.parse(expanded)

            self.state = SessionState.DISPATCHING
            lines = await self.executor.execute(parsed)
        except Exception as exc:
            logger.warning("failed to run %r", command_line, exc_info=True)
            lines = [output.error(f"Error: {exc}")]

        self.state = SessionState.RENDERING
        self._render(lines)
        self.state = SessionState.IDLE
        return lines

    def _render(self, lines: List[OutputLine]):
        for line in lines:
            if line.kind == output.CLEAR:
                self.output.clear()
            elif line.kind == output.EXIT:
                self.running = False
            else:
                self.output.append(line)

    def clear_output(self):
        self.output.clear()

    # Interactive helpers

    def get_command_suggestions(self, partial: str) -> List[str]:
        """Canonical command names starting with ``partial``."""
        return sorted(cmd.name for cmd in self.registry.get_all_commands()
                      if cmd.name.startswith(partial))

    def get_completions(self, line: str) -> List[str]:
        """Complete the last word of a line: command names first, then paths."""
        parts = line.split(' ')
        if len(parts) == 1:
            return self.get_command_suggestions(parts[0])

        partial = parts[-1]
        if '/' in partial:
            directory, prefix = partial.rsplit('/', 1)
            directory += '/'
        else:
            directory, prefix = '', partial

        search = self.fs.resolve_path(directory or '.')
        if not self.fs.is_directory(search):
            return []

        completions = []
        for child_path, child in self.fs.children(search):
            if child.name.startswith(prefix):
                completions.append(directory + child.display_name)
        return sorted(completions)

    def navigate_history(self, direction) -> Optional[str]:
        """Previous/next entered line; '' past the newest, None when empty."""
        return self.history.navigate(direction)

    def get_prompt(self) -> str:
        """Generate the command prompt."""
        if self.config.enable_colors:
            # Green for user@host, blue for path
            return (f"\033[32m{self.config.user}@{self.config.hostname}\033[0m:"
                    f"\033[34m{self._display_cwd()}\033[0m$ ")
        return self._plain_prompt()

    def _plain_prompt(self) -> str:
        return self.config.prompt_format.format(
            user=self.config.user,
            hostname=self.config.hostname,
            cwd=self._display_cwd(),
            time=datetime.now().strftime('%H:%M:%S'),
        )

    def _display_cwd(self) -> str:
        cwd = self.fs.pwd()
        home = self.config.home_dir
        if home != '/' and (cwd == home or cwd.startswith(home + '/')):
            return '~' + cwd[len(home):]
        return cwd

    def format_line(self, line: OutputLine) -> str:
        color = self.COLORS.get(line.kind) if self.config.enable_colors else None
        return f"{color}{line.content}\033[0m" if color else line.content

    # Synchronous entry points

    def run_command(self, command_line: str) -> str:
        """
        Run a single command and return its printable output.

        This method is useful for non-interactive use.
        """
        lines = asyncio.run(self.execute_command(command_line))
        return '\n'.join(line.content for line in lines if line.kind not in output.CONTROL_KINDS)

    def run_script(self, script_lines: List[str]) -> List[str]:
        """
        Run a script (list of command lines) and return outputs.
        """
        outputs = []
        self.running = True
        for line in script_lines:
            # Skip comments and empty lines
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            outputs.append(self.run_command(line))
            if not self.running:  # exit command
                break

        return outputs

    def run_interactive(self):
        """Run the interactive REPL loop."""
        self.running = True
        loop = asyncio.new_event_loop()

        print("Welcome to webshell")
        print('Type "help" for available commands, "exit" to quit')
        print()

        try:
            while self.running:
                try:
                    command_line = input(self.get_prompt())
                    lines = loop.run_until_complete(self.execute_command(command_line))
                    for line in lines:
                        if line.kind == output.CLEAR:
                            print('\033[2J\033[H', end='')
                        elif line.kind not in output.CONTROL_KINDS:
                            print(self.format_line(line))
                except KeyboardInterrupt:
                    print("^C")
                    continue
                except EOFError:
                    print()
                    break
        finally:
            loop.close()

        print("Goodbye!")


def main(argv: Optional[List[str]] = None):
    """Main entry point for the terminal."""
    parser = argparse.ArgumentParser(description='webshell terminal')
    parser.add_argument('-c', '--command', help='Execute command and exit')
    parser.add_argument('-u', '--user', help='Set username', default='guest')
    parser.add_argument('-d', '--directory', help='Set initial directory', default='/')
    parser.add_argument('-t', '--tree', help='JSON file holding the base filesystem tree')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--no-color', action='store_true', help='Disable ANSI colors')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    config = TerminalConfig(
        user=args.user,
        initial_dir=args.directory,
        enable_colors=not args.no_color and sys.stdout.isatty(),
    )

    fs = None
    if args.tree:
        with open(args.tree, encoding='utf-8') as handle:
            fs = VirtualFileSystem.from_json(handle.read(), owner=config.user)

    session = TerminalSession(config=config, fs=fs)

    if args.command:
        result = session.run_command(args.command)
        if result:
            print(result)
    else:
        session.run_interactive()


if __name__ == '__main__':
    main()
