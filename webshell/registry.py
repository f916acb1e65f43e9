"""
Command registry: maps command names and aliases to descriptors.

A registry is plain metadata storage. Nothing here executes handlers. Each
terminal session builds its own registry and passes it to the
``register_*_commands`` functions, so two sessions never share state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# handler(args, flags, context) -> list of output lines, a string, or None.
# Coroutine functions are allowed; the executor awaits them.
Handler = Callable[..., Any]


@dataclass(frozen=True)
class FlagSpec:
    """Documentation for one flag a command understands."""
    flag: str
    description: str = ''


@dataclass(eq=False)
class CommandDescriptor:
    """
    Registered metadata and handler for one command.

    Descriptors compare by identity: a name and all of its aliases resolve to
    the very same instance.
    """
    name: str
    handler: Handler
    description: str = ''
    usage: str = ''
    category: str = 'misc'
    flags: List[FlagSpec] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)
    aliases: Tuple[str, ...] = ()
    requires_args: bool = False
    accepts_pipe: bool = False  # Pipe input stands in for missing arguments
    requires: Tuple[str, ...] = ()  # Capability names, see capabilities.py

    def __post_init__(self):
        if not self.usage:
            self.usage = self.name
        self.aliases = tuple(self.aliases)
        self.requires = tuple(self.requires)

    def help_lines(self) -> List[str]:
        """Render a help page for this command."""
        lines = [f"{self.name} - {self.description or 'No description available'}", '']
        lines.append('Usage:')
        lines.append(f"    {self.usage}")
        if self.aliases:
            lines.append('')
            lines.append(f"Aliases: {', '.join(self.aliases)}")
        if self.flags:
            lines.append('')
            lines.append('Options:')
            for spec in self.flags:
                lines.append(f"    -{spec.flag:<20} {spec.description}")
        if self.examples:
            lines.append('')
            lines.append('Examples:')
            for example in self.examples:
                lines.append(f"    {example}")
        return lines


class CommandRegistry:
    """Central registry for commands, grouped by category."""

    def __init__(self):
        # name or alias -> descriptor
        self.commands: Dict[str, CommandDescriptor] = {}
        # category -> descriptors, one per canonical name
        self.categories: Dict[str, List[CommandDescriptor]] = {}

    def register_command(self, name: str, descriptor: CommandDescriptor) -> CommandDescriptor:
        """
        Register a descriptor under its name and every alias.

        Registering the same canonical name again replaces the previous
        descriptor, its category entry and the aliases that pointed at it.
        """
        if descriptor.name != name:
            descriptor.name = name

        position = None
        previous = self.commands.get(name)
        if previous is not None and previous.name == name:
            logger.debug("replacing command %s", name)
            members = self.categories.get(previous.category, [])
            if previous.category == descriptor.category and previous in members:
                position = members.index(previous)
            self._forget(previous)

        self.commands[name] = descriptor
        for alias in descriptor.aliases:
            self.commands[alias] = descriptor

        members = self.categories.setdefault(descriptor.category, [])
        if not any(cmd.name == name for cmd in members):
            if position is None:
                members.append(descriptor)
            else:
                members.insert(position, descriptor)

        return descriptor

    def command(self, name: str, *, description: str = '', usage: str = '',
                category: str = 'misc', flags: Sequence = (),
                examples: Sequence[str] = (), aliases: Sequence[str] = (),
                requires_args: bool = False, accepts_pipe: bool = False,
                requires: Sequence[str] = ()) -> Callable[[Handler], Handler]:
        """
        Decorator form of ``register_command``.

        ``flags`` accepts FlagSpec instances or (flag, description) pairs.
        """
        def decorator(handler: Handler) -> Handler:
            specs = [spec if isinstance(spec, FlagSpec) else FlagSpec(*spec) for spec in flags]
            self.register_command(name, CommandDescriptor(
                name=name,
                handler=handler,
                description=description,
                usage=usage,
                category=category,
                flags=specs,
                examples=list(examples),
                aliases=tuple(aliases),
                requires_args=requires_args,
                accepts_pipe=accepts_pipe,
                requires=tuple(requires),
            ))
            return handler
        return decorator

    def _forget(self, descriptor: CommandDescriptor) -> None:
        """Drop every mapping and category entry for a descriptor."""
        for key in [k for k, v in self.commands.items() if v is descriptor]:
            del self.commands[key]
        members = self.categories.get(descriptor.category)
        if members is not None:
            members[:] = [cmd for cmd in members if cmd is not descriptor]
            if not members:
                del self.categories[descriptor.category]

    def get_command(self, name: str) -> Optional[CommandDescriptor]:
        """Get a command by name or alias."""
        return self.commands.get(name)

    def get_all_commands(self) -> List[CommandDescriptor]:
        """All commands, one entry per canonical name."""
        unique: Dict[str, CommandDescriptor] = {}
        for descriptor in self.commands.values():
            unique.setdefault(descriptor.name, descriptor)
        return list(unique.values())

    def get_commands_by_category(self, category: str) -> List[CommandDescriptor]:
        return list(self.categories.get(category, []))

    def get_categories(self) -> List[str]:
        return list(self.categories.keys())

    def has_command(self, name: str) -> bool:
        return name in self.commands

    def get_command_count(self) -> int:
        return len(self.get_all_commands())
