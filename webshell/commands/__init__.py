"""
Builtin command set.

Each module exposes a ``register_*_commands(registry)`` function that adds
its commands to the registry it is given.
"""

from .apps import register_app_commands
from .filesystem import register_filesystem_commands
from .media import register_media_commands
from .system import register_system_commands
from .utils import register_utility_commands

__all__ = [
    'register_builtin_commands',
    'register_app_commands',
    'register_filesystem_commands',
    'register_media_commands',
    'register_system_commands',
    'register_utility_commands',
]


def register_builtin_commands(registry):
    """Register every builtin command into ``registry`` and return it."""
    register_filesystem_commands(registry)
    register_system_commands(registry)
    register_utility_commands(registry)
    register_app_commands(registry)
    register_media_commands(registry)
    return registry
