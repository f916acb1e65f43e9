"""
Host capabilities injected into a terminal session.

The hosting application decides which of these it provides. Commands name
the capabilities they need in their descriptor (``requires=('music',)``) and
the executor refuses to run them when one is missing, instead of letting the
handler check for methods itself.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .errors import CapabilityUnavailable


@runtime_checkable
class WindowController(Protocol):
    """Application window lifecycle."""

    def open_app(self, app_id: str) -> None: ...

    def close_app(self, app_id: str) -> None: ...

    def minimize_app(self, app_id: str) -> None: ...

    def maximize_app(self, app_id: str) -> None: ...

    def focus_app(self, app_id: str) -> None: ...

    def list_windows(self) -> List[Dict[str, Any]]: ...


@runtime_checkable
class MusicController(Protocol):

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def next_track(self) -> None: ...

    def previous_track(self) -> None: ...

    def set_volume(self, level: int) -> None: ...

    def status(self) -> Dict[str, Any]: ...

    def tracks(self) -> List[Dict[str, Any]]: ...


@runtime_checkable
class ThemeController(Protocol):

    def current_theme(self) -> str: ...

    def list_themes(self) -> List[str]: ...

    def set_theme(self, name: str) -> None: ...


@runtime_checkable
class SoundController(Protocol):

    def set_muted(self, muted: bool) -> None: ...

    def is_muted(self) -> bool: ...


@runtime_checkable
class LanguageController(Protocol):

    def current_language(self) -> str: ...

    def list_languages(self) -> List[str]: ...

    def set_language(self, code: str) -> None: ...


@runtime_checkable
class NotificationController(Protocol):

    def notify(self, title: str, message: str = '', level: str = 'info') -> None: ...


@dataclass
class Capabilities:
    """Optional host capabilities for one session."""
    window: Optional[WindowController] = None
    music: Optional[MusicController] = None
    theme: Optional[ThemeController] = None
    sound: Optional[SoundController] = None
    language: Optional[LanguageController] = None
    notifications: Optional[NotificationController] = None

    def available(self) -> List[str]:
        """Names of the capabilities that were provided."""
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def has(self, name: str) -> bool:
        return getattr(self, name, None) is not None

    def require(self, name: str, command: str = ''):
        """Return a capability or raise ``CapabilityUnavailable``."""
        capability = getattr(self, name, None)
        if capability is None:
            raise CapabilityUnavailable(name, command)
        return capability
