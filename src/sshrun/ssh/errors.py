"""Error taxonomy for SSH sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .session import SSHCommandResult


class SSHError(RuntimeError):
    """Base class for every error raised by sshrun."""

    kind = "SSHError"
    default_message = "SSH error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class AuthFail(SSHError):
    """The server rejected the offered credential."""

    kind = "AuthFail"
    default_message = "Auth fail"


class UserauthFail(SSHError):
    """The credential looked usable but user authentication did not complete.

    Raised for partial success, and for identities that could not be
    decrypted with the configured passphrase.
    """

    kind = "UserauthFail"
    default_message = "USERAUTH fail"


class ConfigError(SSHError):
    kind = "ConfigError"
    default_message = "Invalid configuration"


class KeyDecodeError(SSHError):
    """Private key material is malformed or uses an unsupported algorithm."""

    kind = "DecodeError"
    default_message = "Invalid private key"


class PassphraseError(KeyDecodeError):
    """An encrypted private key could not be decrypted."""

    default_message = "Passphrase is missing or wrong"


class SessionTimeoutError(SSHError):
    kind = "TimeoutError"
    default_message = "Timed out"


class SSHConnectionError(SSHError):
    """Raised when an SSH connection cannot be established."""

    kind = "ConnectionError"
    default_message = "Connection failed"


class HostKeyError(SSHConnectionError):
    default_message = "Host key verification failed"


class BadExitStatusError(SSHError):
    """A command finished with a non-zero exit status."""

    kind = "BadExitStatus"

    def __init__(self, result: "SSHCommandResult") -> None:
        self.result = result
        super().__init__(
            f"Command returned exit status {result.exit_status}: {result.command}"
        )

    @property
    def exit_status(self) -> int:
        return self.result.exit_status
