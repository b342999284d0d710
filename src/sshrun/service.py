"""Named remotes plus global settings, and sessions opened against them."""

from __future__ import annotations

import logging
import socket
from typing import Callable, Dict, Iterable, List, Optional, Union

import paramiko

from .config import AppConfig, GlobalSettings, RemoteConfig
from .ssh.credentials import resolve_credentials
from .ssh.errors import ConfigError
from .ssh.session import SSHCommandResult, SSHSession

logger = logging.getLogger(__name__)


class Service:
    """Entry point for running commands on configured remotes."""

    def __init__(
        self,
        settings: Optional[GlobalSettings] = None,
        remotes: Optional[Iterable[RemoteConfig]] = None,
        *,
        transport_factory: Callable[[socket.socket], paramiko.Transport] | None = None,
    ) -> None:
        self.settings = settings or GlobalSettings()
        self.remotes: Dict[str, RemoteConfig] = {}
        self._transport_factory = transport_factory
        for remote in remotes or []:
            self.add_remote(remote)

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs) -> "Service":
        return cls(config.settings, config.remotes.values(), **kwargs)

    def add_remote(self, remote: RemoteConfig) -> RemoteConfig:
        if remote.name in self.remotes:
            logger.debug("Replacing remote %s", remote.name)
        self.remotes[remote.name] = remote
        return remote

    def remote(self, name: str) -> RemoteConfig:
        try:
            return self.remotes[name]
        except KeyError:
            raise ConfigError(f"No such remote: {name}") from None

    def session(self, remote: Union[str, RemoteConfig]) -> SSHSession:
        if isinstance(remote, str):
            remote = self.remote(remote)
        credentials = resolve_credentials(self.settings, remote)
        return SSHSession(credentials, transport_factory=self._transport_factory)

    def run(self, remote: Union[str, RemoteConfig], *commands: str) -> List[SSHCommandResult]:
        """Execute ``commands`` in order in one session, stopping at the first failure."""
        results: List[SSHCommandResult] = []
        with self.session(remote) as session:
            for command in commands:
                results.append(session.execute(command))
        return results
