"""
Session and environment commands.
"""

import platform
from datetime import datetime, timezone

from .. import __version__
from ..output import error, info, success, text


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def register_system_commands(registry):
    """Register user, environment, alias and history commands."""

    @registry.command(
        'whoami',
        description='Print current user',
        category='system',
    )
    def whoami(args, flags, ctx):
        return [text(ctx.env.get('USER', 'guest'))]

    @registry.command(
        'hostname',
        description='Print system hostname',
        category='system',
    )
    def hostname(args, flags, ctx):
        return [text(ctx.env.get('HOSTNAME', 'localhost'))]

    @registry.command(
        'uname',
        description='Print system information',
        usage='uname [-a]',
        category='system',
        flags=[('a', 'Print all information')],
        examples=['uname', 'uname -a'],
    )
    def uname(args, flags, ctx):
        if not flags.get('a'):
            return [text('webshell')]
        return [text(' '.join([
            'webshell',
            ctx.env.get('HOSTNAME', 'localhost'),
            __version__,
            f"Python {platform.python_version()}",
            platform.system() or 'unknown',
        ]))]

    @registry.command(
        'uptime',
        description='Show how long the session has been running',
        category='system',
    )
    def uptime(args, flags, ctx):
        elapsed = int((datetime.now() - ctx.session.started).total_seconds())
        hours, remainder = divmod(elapsed, 3600)
        minutes, seconds = divmod(remainder, 60)
        return [text(f"up {hours}:{minutes:02d}:{seconds:02d}")]

    @registry.command(
        'env',
        description='Print environment variables',
        category='system',
        aliases=['printenv'],
    )
    def env(args, flags, ctx):
        if args:
            return [text(ctx.env[name]) for name in args if name in ctx.env]
        return [text(f"{key}={value}") for key, value in ctx.env.items()]

    @registry.command(
        'export',
        description='Set an environment variable',
        usage='export KEY=VALUE',
        category='system',
        requires_args=True,
        examples=['export EDITOR=vim', 'export GREETING="hello world"'],
    )
    def export(args, flags, ctx):
        assignment = ' '.join(args)
        key, sep, value = assignment.partition('=')
        key = key.strip()
        if not sep or not key or ' ' in key:
            return [error('export: usage: export KEY=VALUE')]
        ctx.env[key] = _strip_quotes(value)
        return []

    @registry.command(
        'unset',
        description='Remove an environment variable',
        usage='unset <name>...',
        category='system',
        requires_args=True,
    )
    def unset(args, flags, ctx):
        for name in args:
            ctx.env.pop(name, None)
        return []

    @registry.command(
        'alias',
        description='Create or list command aliases',
        usage='alias [name=command]',
        category='system',
        examples=['alias', 'alias ll="ls -la"', 'alias gs="git status"'],
    )
    def alias(args, flags, ctx):
        if not args:
            if not ctx.aliases:
                return [info('No aliases defined')]
            return [text(f"alias {name}='{value}'") for name, value in ctx.aliases.items()]

        definition = ' '.join(args)
        name, sep, value = definition.partition('=')
        name = name.strip()
        if not sep:
            if name in ctx.aliases:
                return [text(f"alias {name}='{ctx.aliases[name]}'")]
            return [error(f"alias: {name}: not found")]
        if not name or ' ' in name:
            return [error('alias: usage: alias name=command')]

        ctx.aliases[name] = _strip_quotes(value.strip())
        return [success(f"Alias created: {name}='{ctx.aliases[name]}'")]

    @registry.command(
        'unalias',
        description='Remove command aliases',
        usage='unalias <name>...',
        category='system',
        requires_args=True,
    )
    def unalias(args, flags, ctx):
        lines = []
        for name in args:
            if ctx.aliases.pop(name, None) is None:
                lines.append(error(f"unalias: {name}: not found"))
        return lines

    @registry.command(
        'history',
        description='Show command history',
        usage='history [N]',
        category='system',
        examples=['history', 'history 5'],
    )
    def history(args, flags, ctx):
        entries = list(ctx.history)
        start = ctx.history.window_start
        if args:
            try:
                count = int(args[0])
            except ValueError:
                return [error(f"history: {args[0]}: numeric argument required")]
            start = max(0, len(entries) - count)
        return [text(f"{number:5d}  {entry}")
                for number, entry in enumerate(entries[start:], start + 1)]

    @registry.command(
        'date',
        description='Print the current date and time',
        usage='date [-u] [-I] [-s]',
        category='system',
        flags=[('u', 'Print UTC time'),
               ('I', 'ISO 8601 format'),
               ('s', 'Seconds since the epoch')],
    )
    def date(args, flags, ctx):
        now = datetime.now(timezone.utc) if flags.get('u') else datetime.now().astimezone()
        if flags.get('s'):
            return [text(str(int(now.timestamp())))]
        if flags.get('I'):
            return [text(now.isoformat(timespec='seconds'))]
        return [text(now.strftime('%a %b %d %H:%M:%S %Z %Y'))]
