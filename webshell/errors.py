"""
Exception types for the webshell interpreter.

Every one of these is caught at the boundary of a single command invocation
and rendered as an error line; none of them terminates a session.
Filesystem failures are not exceptions, see ``virtual_fs.OperationError``.
"""


class ShellError(Exception):
    """Base class for interpreter errors."""


class ParseError(ShellError):
    """Raised when a command line cannot be turned into a command tree."""


class CommandLookupError(ShellError):
    """Unknown command name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name}: command not found")


class HandlerError(ShellError):
    """Wraps an exception raised inside a command handler."""

    def __init__(self, command: str, original: BaseException):
        self.command = command
        self.original = original
        super().__init__(f"Error executing {command}: {original}")


class CapabilityUnavailable(ShellError):
    """A handler needs a host capability the session was not given."""

    def __init__(self, capability: str, command: str = ''):
        self.capability = capability
        self.command = command
        prefix = f"{command}: " if command else ''
        super().__init__(f"{prefix}{capability} capability is not available")
