"""User authentication over an established paramiko transport."""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import paramiko

from .credentials import EffectiveCredentials
from .errors import AuthFail, ConfigError, SessionTimeoutError, UserauthFail
from .keys import KeyMaterial

logger = logging.getLogger(__name__)

# paramiko reports an expired auth_timeout as a plain AuthenticationException
_AUTH_TIMEOUT_MESSAGE = "Authentication timeout."


class FailureReason(str, Enum):
    AUTH_FAIL = "AuthFail"
    USERAUTH_FAIL = "UserauthFail"


@dataclass(frozen=True)
class AuthResult:
    accepted: bool
    method: Optional[str] = None
    reason: Optional[FailureReason] = None
    allowed_methods: List[str] = field(default_factory=list)

    def raise_for_failure(self) -> None:
        if self.accepted:
            return
        if self.allowed_methods:
            logger.debug("Server still accepts: %s", ", ".join(self.allowed_methods))
        if self.reason is FailureReason.USERAUTH_FAIL:
            raise UserauthFail()
        raise AuthFail()


class Authenticator:
    """Offers exactly one credential to the server and interprets the reply.

    A password takes precedence over a key. Rejection of the credential is
    ``AuthFail``; a reply that leaves the user unauthenticated (partial
    success) is ``UserauthFail``.
    """

    def __init__(
        self,
        credentials: EffectiveCredentials,
        key_material: Optional[KeyMaterial] = None,
    ) -> None:
        self.credentials = credentials
        self.key_material = key_material

    def authenticate(self, transport: paramiko.Transport) -> AuthResult:
        username = self.credentials.username
        if self.credentials.password:
            method = "password"
        elif self.key_material is not None:
            method = "publickey"
        else:
            raise ConfigError(f"No credential to offer for {self.credentials.target}")

        logger.debug("Trying %s authentication for %s", method, self.credentials.target)
        try:
            if method == "password":
                remaining = transport.auth_password(username, self.credentials.password)
            else:
                remaining = transport.auth_publickey(username, self.key_material.pkey)
        except paramiko.BadAuthenticationType as exc:
            logger.info(
                "Server refused %s authentication for %s (allowed: %s)",
                method,
                self.credentials.target,
                ", ".join(exc.allowed_types),
            )
            return AuthResult(
                accepted=False,
                method=method,
                reason=FailureReason.AUTH_FAIL,
                allowed_methods=list(exc.allowed_types),
            )
        except paramiko.AuthenticationException as exc:
            if str(exc) == _AUTH_TIMEOUT_MESSAGE:
                raise SessionTimeoutError(
                    f"Authentication to {self.credentials.target} timed out"
                ) from exc
            logger.info("Server rejected %s for %s", method, self.credentials.target)
            return AuthResult(accepted=False, method=method, reason=FailureReason.AUTH_FAIL)
        except socket.timeout as exc:
            raise SessionTimeoutError(
                f"Authentication to {self.credentials.target} timed out"
            ) from exc

        if remaining or not transport.is_authenticated():
            logger.info(
                "%s accepted for %s but authentication is incomplete (remaining: %s)",
                method,
                self.credentials.target,
                ", ".join(remaining or []) or "none",
            )
            return AuthResult(
                accepted=False,
                method=method,
                reason=FailureReason.USERAUTH_FAIL,
                allowed_methods=list(remaining or []),
            )

        logger.info("Authenticated %s with %s", self.credentials.target, method)
        return AuthResult(accepted=True, method=method)
