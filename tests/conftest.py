"""Shared fixtures: a small portfolio tree and recording host capabilities."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import copy
from datetime import datetime

import pytest

from webshell.capabilities import Capabilities
from webshell.terminal import TerminalConfig, TerminalSession
from webshell.virtual_fs import VirtualFileSystem

FIXED_TIME = datetime(2024, 3, 15, 12, 30, 0)

SAMPLE_TREE = {
    'name': 'Home',
    'type': 'folder',
    'children': [
        {'name': 'Projects', 'type': 'folder', 'children': [
            {'name': 'app.js', 'type': 'file', 'content': 'console.log(1)'},
            {'name': 'web', 'type': 'folder', 'children': [
                {'name': 'index.html', 'type': 'file', 'content': '<html></html>'},
            ]},
        ]},
        {'name': 'README.md', 'type': 'file',
         'content': 'line one\nline two\nline three'},
        {'name': 'Documents', 'type': 'folder', 'children': []},
        {'name': 'photo.png', 'type': 'file', 'size': 2048},
    ],
}


class FakeWindows:
    def __init__(self):
        self.calls = []
        self.windows = []

    def open_app(self, app_id):
        self.calls.append(('open', app_id))
        self.windows.append({'id': app_id, 'minimized': False, 'focused': True})

    def close_app(self, app_id):
        self.calls.append(('close', app_id))
        self.windows = [w for w in self.windows if w['id'] != app_id]

    def minimize_app(self, app_id):
        self.calls.append(('minimize', app_id))

    def maximize_app(self, app_id):
        self.calls.append(('maximize', app_id))

    def focus_app(self, app_id):
        self.calls.append(('focus', app_id))

    def list_windows(self):
        return list(self.windows)


class FakeMusic:
    def __init__(self):
        self.playing = False
        self.volume = 50
        self.index = 0
        self.playlist = [
            {'title': 'Lo-fi Beats', 'artist': 'Chill'},
            {'title': 'Synthwave', 'artist': 'Retro'},
        ]

    def play(self):
        self.playing = True

    def pause(self):
        self.playing = False

    def next_track(self):
        self.index = (self.index + 1) % len(self.playlist)

    def previous_track(self):
        self.index = (self.index - 1) % len(self.playlist)

    def set_volume(self, level):
        self.volume = level

    def status(self):
        return {'playing': self.playing, 'volume': self.volume, 'index': self.index,
                'track': self.playlist[self.index]}

    def tracks(self):
        return list(self.playlist)


class FakeTheme:
    def __init__(self):
        self.theme = 'dark'

    def current_theme(self):
        return self.theme

    def list_themes(self):
        return ['light', 'dark', 'ocean']

    def set_theme(self, name):
        self.theme = name


class FakeSound:
    def __init__(self):
        self.muted = False

    def set_muted(self, muted):
        self.muted = muted

    def is_muted(self):
        return self.muted


class FakeLanguage:
    def __init__(self):
        self.language = 'en'

    def current_language(self):
        return self.language

    def list_languages(self):
        return ['en', 'id']

    def set_language(self, code):
        self.language = code


class FakeNotifications:
    def __init__(self):
        self.sent = []

    def notify(self, title, message='', level='info'):
        self.sent.append((title, message, level))


@pytest.fixture
def sample_tree():
    return copy.deepcopy(SAMPLE_TREE)


@pytest.fixture
def fs(sample_tree):
    return VirtualFileSystem(sample_tree, clock=lambda: FIXED_TIME)


@pytest.fixture
def session(fs):
    return TerminalSession(config=TerminalConfig(enable_colors=False), fs=fs)


@pytest.fixture
def capabilities():
    return Capabilities(
        window=FakeWindows(),
        music=FakeMusic(),
        theme=FakeTheme(),
        sound=FakeSound(),
        language=FakeLanguage(),
        notifications=FakeNotifications(),
    )


@pytest.fixture
def host_session(sample_tree, capabilities):
    """A session whose host provides every capability."""
    fs = VirtualFileSystem(sample_tree, clock=lambda: FIXED_TIME)
    return TerminalSession(config=TerminalConfig(enable_colors=False), fs=fs,
                           capabilities=capabilities)
