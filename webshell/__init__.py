"""
webshell - an embeddable command-line interpreter over a virtual filesystem

This package provides a shell-like interpreter for hosting applications: a
quote-aware tokenizer and line parser, a per-session command registry, a
copy-on-write virtual filesystem and an asyncio execution engine that
renders every command as a list of typed output lines.
"""

__version__ = "0.1.0"

from .virtual_fs import (
    VirtualFileSystem,
    FsNode,
    NodeKind,
    ErrorKind,
    OperationError,
)

from .terminal import (
    TerminalSession,
    TerminalConfig,
    CommandExecutor,
    CommandHistory,
    CommandContext,
    CommandResult,
    HistoryDirection,
    SessionState,
)

from .command_parser import (
    Command,
    CommandParser,
    ChainedCommand,
    PipedCommand,
)

from .registry import (
    CommandRegistry,
    CommandDescriptor,
    FlagSpec,
)

from .capabilities import Capabilities

from .commands import register_builtin_commands

from .output import OutputLine

from .errors import (
    ShellError,
    ParseError,
    CommandLookupError,
    HandlerError,
    CapabilityUnavailable,
)

__all__ = [
    # Virtual filesystem
    "VirtualFileSystem",
    "FsNode",
    "NodeKind",
    "ErrorKind",
    "OperationError",

    # Terminal
    "TerminalSession",
    "TerminalConfig",
    "CommandExecutor",
    "CommandHistory",
    "CommandContext",
    "CommandResult",
    "HistoryDirection",
    "SessionState",

    # Command parser
    "Command",
    "CommandParser",
    "ChainedCommand",
    "PipedCommand",

    # Registry
    "CommandRegistry",
    "CommandDescriptor",
    "FlagSpec",
    "register_builtin_commands",

    # Host integration
    "Capabilities",
    "OutputLine",

    # Errors
    "ShellError",
    "ParseError",
    "CommandLookupError",
    "HandlerError",
    "CapabilityUnavailable",

    # Version info
    "__version__",
]
