"""SSH utilities for sshrun."""

from .auth import Authenticator, AuthResult, FailureReason
from .credentials import EffectiveCredentials, resolve_credentials
from .errors import (
    AuthFail,
    BadExitStatusError,
    ConfigError,
    HostKeyError,
    KeyDecodeError,
    PassphraseError,
    SessionTimeoutError,
    SSHConnectionError,
    SSHError,
    UserauthFail,
)
from .keys import KeyAlgorithm, KeyMaterial, load_key_material
from .session import SSHCommandResult, SSHSession

__all__ = [
    "Authenticator",
    "AuthResult",
    "FailureReason",
    "EffectiveCredentials",
    "resolve_credentials",
    "AuthFail",
    "BadExitStatusError",
    "ConfigError",
    "HostKeyError",
    "KeyDecodeError",
    "PassphraseError",
    "SessionTimeoutError",
    "SSHConnectionError",
    "SSHError",
    "UserauthFail",
    "KeyAlgorithm",
    "KeyMaterial",
    "load_key_material",
    "SSHCommandResult",
    "SSHSession",
]
