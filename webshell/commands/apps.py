"""
Window management commands. All of them need the host's window capability.
"""

from ..output import error, info, success, text

APP_CATALOG = {
    'vscode': 'VS Code / Portfolio',
    'terminal': 'Terminal',
    'messenger': 'AI Chatbot',
    'file-manager': 'File Manager',
    'about-me': 'About Me',
    'notes': 'Quick Notes',
    'settings': 'Settings',
    'blog': 'Blog',
}

APP_ALIASES = {
    'vs': 'vscode',
    'code': 'vscode',
    'term': 'terminal',
    'chat': 'messenger',
    'message': 'messenger',
    'config': 'settings',
    'about': 'about-me',
    'profile': 'about-me',
    'files': 'file-manager',
    'file': 'file-manager',
    'explorer': 'file-manager',
    'note': 'notes',
}


def resolve_app(name: str) -> str:
    """Map a user supplied app name to an app id. Unknown names pass through."""
    name = name.lower()
    return APP_ALIASES.get(name, name)


def _window_action(registry, name, method, verb, description):
    @registry.command(
        name,
        description=description,
        usage=f'{name} <app-name>',
        category='apps',
        requires_args=True,
        requires=('window',),
        examples=[f'{name} vscode', f'{name} terminal'],
    )
    def handler(args, flags, ctx):
        app_id = resolve_app(args[0])
        try:
            getattr(ctx.capabilities.window, method)(app_id)
        except (KeyError, ValueError) as exc:
            return [error(f"{name}: cannot {name} '{args[0]}': {exc}")]
        return [success(f"{verb} {app_id}")]

    return handler


def register_app_commands(registry):
    """Register commands that drive application windows."""

    _window_action(registry, 'open', 'open_app', 'Opened', 'Launch an application')
    _window_action(registry, 'close', 'close_app', 'Closed', 'Close an application')
    _window_action(registry, 'minimize', 'minimize_app', 'Minimized', 'Minimize an application')
    _window_action(registry, 'maximize', 'maximize_app', 'Maximized', 'Maximize an application')
    _window_action(registry, 'focus', 'focus_app', 'Focused', 'Bring an application to the front')

    @registry.command(
        'kill',
        description='Close an app by its id',
        usage='kill <app-id>',
        category='apps',
        requires_args=True,
        requires=('window',),
        examples=['kill terminal', 'kill vscode'],
    )
    def kill(args, flags, ctx):
        app_id = resolve_app(args[0])
        try:
            ctx.capabilities.window.close_app(app_id)
        except (KeyError, ValueError) as exc:
            return [error(f"kill: {exc}")]
        return [success(f"Killed process: {app_id}")]

    @registry.command(
        'ps',
        description='List open windows',
        category='apps',
        requires=('window',),
    )
    def ps(args, flags, ctx):
        windows = ctx.capabilities.window.list_windows()
        if not windows:
            return [info('No apps running')]

        lines = [text(f"{'ID':<16} STATE")]
        for window in windows:
            if window.get('minimized'):
                state = 'minimized'
            elif window.get('focused'):
                state = 'focused'
            else:
                state = 'open'
            lines.append(text(f"{window.get('id', '?'):<16} {state}"))
        return lines

    @registry.command(
        'apps',
        description='List available applications',
        usage='apps [--running]',
        category='apps',
        flags=[('-running', 'Show only running apps')],
        examples=['apps', 'apps --running'],
    )
    def apps(args, flags, ctx):
        if flags.get('running'):
            window = ctx.require('window')
            running = window.list_windows()
            if not running:
                return [info('No apps running')]
            lines = [text('Running Apps:')]
            for entry in running:
                suffix = ' (minimized)' if entry.get('minimized') else ''
                lines.append(text(f"  • {entry.get('id', '?')}{suffix}"))
            return lines

        lines = [text('Available Apps:')]
        lines.extend(text(f"  • {app_id} - {title}") for app_id, title in APP_CATALOG.items())
        return lines
