"""SSH credential helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .errors import ConfigError
from .known_hosts import DEFAULT_KNOWN_HOSTS

if TYPE_CHECKING:  # pragma: no cover
    from ..config import GlobalSettings, IdentitySource, RemoteConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectiveCredentials:
    """Credential payload resolved for a single session attempt."""

    host: str
    username: str
    port: int = 22
    password: Optional[str] = None
    identity: Optional["IdentitySource"] = None
    passphrase: Optional[str] = None
    timeout: int = 20
    known_hosts: str = DEFAULT_KNOWN_HOSTS
    ignore_error: bool = False

    @property
    def auth_method(self) -> Optional[str]:
        if self.password:
            return "password"
        if self.identity:
            return "publickey"
        return None

    @property
    def target(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"

    def validate(self) -> None:
        if not self.username:
            raise ConfigError(f"No user is configured for {self.host}")
        if self.auth_method is None:
            raise ConfigError(
                f"Neither password nor identity is configured for {self.target}"
            )

    def __repr__(self) -> str:
        return (
            f"EffectiveCredentials(target={self.target!r}, "
            f"auth_method={self.auth_method!r})"
        )


def resolve_credentials(
    settings: "GlobalSettings", remote: "RemoteConfig"
) -> EffectiveCredentials:
    """Merge global settings and a remote into the credentials for one attempt.

    The password is overridden field by field. The identity and its
    passphrase are taken together from whichever level supplies the
    identity, so a remote key is never decrypted with the global
    passphrase and vice versa.
    """
    password = remote.password if remote.password is not None else settings.password

    if remote.identity is not None:
        identity, passphrase = remote.identity, remote.passphrase
    else:
        identity, passphrase = settings.identity, settings.passphrase
        if remote.passphrase is not None:
            logger.debug(
                "Ignoring passphrase of remote %s: it has no identity of its own",
                remote.name,
            )

    return EffectiveCredentials(
        host=remote.host,
        port=remote.port,
        username=remote.user,
        password=password,
        identity=identity,
        passphrase=passphrase,
        timeout=settings.timeout,
        known_hosts=settings.known_hosts,
        ignore_error=settings.ignore_error,
    )
