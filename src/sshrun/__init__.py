"""sshrun: run commands on SSH remotes with password or public key authentication."""

from .config import (
    ALLOW_ANY_HOSTS,
    AppConfig,
    GlobalSettings,
    RemoteConfig,
    load_config,
)
from .service import Service

__all__ = [
    "ALLOW_ANY_HOSTS",
    "AppConfig",
    "GlobalSettings",
    "RemoteConfig",
    "load_config",
    "Service",
]
