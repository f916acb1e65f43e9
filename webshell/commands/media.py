"""
Media and preference commands backed by host capabilities.
"""

from ..output import error, info, success, text
from .base import split_options

NOTIFICATION_LEVELS = ('success', 'error', 'info', 'warning')


def volume_bar(level: int) -> str:
    filled = level // 5
    return '[' + '█' * filled + '░' * (20 - filled) + ']'


def _parse_volume(value: str):
    try:
        level = int(value)
    except ValueError:
        return None
    return level if 0 <= level <= 100 else None


def _track_title(track, fallback: str = 'Unknown') -> str:
    if not track:
        return fallback
    return track.get('title') or track.get('name') or fallback


def register_media_commands(registry):
    """Register music, theme, sound, language and notification commands."""

    @registry.command(
        'music',
        description='Control the music player',
        usage='music [play|pause|next|prev|list|vol <0-100>]',
        category='media',
        requires=('music',),
        examples=['music', 'music play', 'music next', 'music list', 'music vol 50'],
    )
    def music(args, flags, ctx):
        player = ctx.capabilities.music
        action = args[0].lower() if args else None

        if action is None:
            status = player.status()
            track = status.get('track')
            volume = status.get('volume', 50)
            lines = [
                text(f"Status: {'Playing' if status.get('playing') else 'Paused'}"),
                text(f"Track: {_track_title(track, 'No track loaded')}"),
            ]
            if track and track.get('artist'):
                lines.append(text(f"Artist: {track['artist']}"))
            lines.append(text(f"Volume: {volume}%"))
            lines.append(info(volume_bar(volume)))
            return lines

        if action in ('play', 'resume'):
            player.play()
            return [success('Music playing')]
        if action in ('pause', 'stop'):
            player.pause()
            return [success('Music paused')]
        if action in ('next', 'skip'):
            player.next_track()
            return [success(f"Skipped to: {_track_title(player.status().get('track'), 'next track')}")]
        if action in ('prev', 'previous', 'back'):
            player.previous_track()
            return [success(f"Skipped to: {_track_title(player.status().get('track'), 'previous track')}")]
        if action in ('list', 'playlist', 'tracks'):
            tracks = player.tracks()
            if not tracks:
                return [info('No tracks available')]
            current = player.status().get('index', 0)
            lines = []
            for index, track in enumerate(tracks):
                artist = f" - {track['artist']}" if track.get('artist') else ''
                entry = f"{'▶ ' if index == current else '  '}{index + 1}. " \
                        f"{_track_title(track, f'Track {index + 1}')}{artist}"
                lines.append(success(entry) if index == current else text(entry))
            lines.append(text(f"Total tracks: {len(tracks)}"))
            return lines
        if action in ('vol', 'volume'):
            if len(args) < 2:
                volume = player.status().get('volume', 50)
                return [text(f"Current volume: {volume}%"), info(volume_bar(volume))]
            level = _parse_volume(args[1])
            if level is None:
                return [error('Volume must be a number between 0 and 100')]
            player.set_volume(level)
            return [success(f"Music volume set to: {level}%"), info(volume_bar(level))]

        return [error(f"Unknown music command: {action}"),
                text('Available commands: play, pause, next, prev, list, vol')]

    @registry.command(
        'volume',
        description='Get or set the playback volume',
        usage='volume [0-100]',
        category='media',
        requires=('music',),
        examples=['volume', 'volume 50'],
    )
    def volume(args, flags, ctx):
        player = ctx.capabilities.music
        if not args:
            level = player.status().get('volume', 50)
            return [text(f"Current volume: {level}%"), info(volume_bar(level))]
        level = _parse_volume(args[0])
        if level is None:
            return [error('Volume must be a number between 0 and 100')]
        player.set_volume(level)
        return [success(f"Volume set to: {level}%"), info(volume_bar(level))]

    @registry.command(
        'mute',
        description='Turn sound on or off',
        usage='mute [on|off]',
        category='media',
        requires=('sound',),
        examples=['mute', 'mute on', 'mute off'],
    )
    def mute(args, flags, ctx):
        sound = ctx.capabilities.sound
        if not args:
            return [text(f"Sound is currently: {'OFF' if sound.is_muted() else 'ON'}")]
        choice = args[0].lower()
        if choice not in ('on', 'off'):
            return [error('Usage: mute [on|off]')]
        sound.set_muted(choice == 'on')
        return [success('Sound muted' if choice == 'on' else 'Sound unmuted')]

    @registry.command(
        'theme',
        description='Get or set the current theme',
        usage='theme [name]',
        category='media',
        requires=('theme',),
        examples=['theme', 'theme dark'],
    )
    def theme(args, flags, ctx):
        themes = ctx.capabilities.theme
        available = themes.list_themes()
        if not args:
            lines = [text(f"Current theme: {themes.current_theme()}"), text(''),
                     text('Available themes:')]
            lines.extend(text(f"  • {name}") for name in available)
            return lines

        name = args[0].lower()
        if name not in available:
            return [error(f"Invalid theme: {name}. Valid themes: {', '.join(available)}")]
        themes.set_theme(name)
        return [success(f"Theme changed to: {name}")]

    @registry.command(
        'lang',
        description='Get or set the interface language',
        usage='lang [code]',
        category='media',
        requires=('language',),
        examples=['lang', 'lang en'],
    )
    def lang(args, flags, ctx):
        language = ctx.capabilities.language
        available = language.list_languages()
        if not args:
            lines = [text(f"Current language: {language.current_language()}"), text(''),
                     text('Available languages:')]
            lines.extend(text(f"  • {code}") for code in available)
            return lines

        code = args[0].lower()
        if code not in available:
            return [error(f"Invalid language: {code}. Use one of: {', '.join(available)}")]
        language.set_language(code)
        return [success(f"Language changed to: {code}")]

    @registry.command(
        'notify',
        description='Send a system notification',
        usage='notify [-t type] <title> [message]',
        category='media',
        flags=[('t', f"Notification type ({'/'.join(NOTIFICATION_LEVELS)})")],
        requires_args=True,
        requires=('notifications',),
        examples=['notify "Task Complete"',
                  'notify -t success "Build Finished" "All green"'],
    )
    def notify(args, flags, ctx):
        options, positional = split_options(ctx.command.raw_args, ('-t',))
        if not positional:
            return [error('Usage: notify <title> [message]')]
        level = options.get('-t', 'info')
        if level not in NOTIFICATION_LEVELS:
            return [error(f"Invalid type: {level}. Use: {', '.join(NOTIFICATION_LEVELS)}")]

        title = positional[0]
        ctx.capabilities.notifications.notify(title, ' '.join(positional[1:]), level)
        return [success(f"Notification sent: {title}")]
