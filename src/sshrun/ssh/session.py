"""SSH session management built on Paramiko."""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import paramiko

from .auth import Authenticator
from .credentials import EffectiveCredentials
from .errors import (
    BadExitStatusError,
    PassphraseError,
    SessionTimeoutError,
    SSHConnectionError,
    SSHError,
    UserauthFail,
)
from .keys import KeyMaterial, load_key_material
from .known_hosts import verify_host_key

logger = logging.getLogger(__name__)

SocketFactory = Callable[..., socket.socket]

_CHUNK_SIZE = 32768
_POLL_INTERVAL = 0.05


@dataclass
class SSHCommandResult:
    command: str
    stdout: str
    stderr: str
    exit_status: int

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class SSHSession:
    """One authenticated connection to a remote.

    ``connect`` runs load key -> TCP connect -> key exchange -> host key
    check -> user authentication; the transport is closed on every failure.
    Commands are only ever executed on an authenticated transport.
    """

    def __init__(
        self,
        credentials: EffectiveCredentials,
        *,
        transport_factory: Callable[[socket.socket], paramiko.Transport] | None = None,
        socket_factory: SocketFactory | None = None,
    ) -> None:
        self.credentials = credentials
        self._transport_factory = transport_factory or paramiko.Transport
        self._socket_factory = socket_factory or socket.create_connection
        self._transport: Optional[paramiko.Transport] = None

    @property
    def connected(self) -> bool:
        return self._transport is not None

    def __enter__(self) -> "SSHSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def _load_identity(self) -> Optional[KeyMaterial]:
        if self.credentials.auth_method != "publickey":
            return None
        try:
            return load_key_material(self.credentials.identity, self.credentials.passphrase)
        except PassphraseError as exc:
            logger.warning("Could not decrypt identity for %s: %s", self.credentials.target, exc)
            raise UserauthFail() from exc

    def _open_socket(self) -> socket.socket:
        address = (self.credentials.host, self.credentials.port)
        try:
            return self._socket_factory(address, timeout=self.credentials.timeout)
        except socket.timeout as exc:
            raise SessionTimeoutError(f"Connection to {self.credentials.target} timed out") from exc
        except OSError as exc:
            raise SSHConnectionError(
                f"Could not connect to {self.credentials.target}: {exc}"
            ) from exc

    def connect(self) -> None:
        if self._transport:
            return
        self.credentials.validate()
        key_material = self._load_identity()

        sock = self._open_socket()
        try:
            transport = self._transport_factory(sock)
        except Exception:
            sock.close()
            raise
        transport.auth_timeout = self.credentials.timeout
        try:
            transport.start_client(timeout=self.credentials.timeout)
            verify_host_key(
                self.credentials.known_hosts,
                self.credentials.host,
                self.credentials.port,
                transport.get_remote_server_key(),
            )
            result = Authenticator(self.credentials, key_material).authenticate(transport)
            result.raise_for_failure()
        except SSHError:
            transport.close()
            raise
        except socket.timeout as exc:
            transport.close()
            raise SessionTimeoutError(f"Connection to {self.credentials.target} timed out") from exc
        except (paramiko.SSHException, OSError) as exc:
            transport.close()
            raise SSHConnectionError(str(exc)) from exc
        self._transport = transport

    def close(self) -> None:
        if self._transport:
            self._transport.close()
            self._transport = None

    def execute(
        self,
        command: str,
        *,
        timeout: Optional[float] = None,
        ignore_error: Optional[bool] = None,
    ) -> SSHCommandResult:
        """
        Execute a command on the remote server.

        Args:
            command: The command to execute
            timeout: Seconds to wait without any output before giving up
                (default: no limit)
            ignore_error: Return non-zero exit statuses instead of raising
                (default: the ``ignore_error`` setting)

        Returns:
            SSHCommandResult with command output and exit status

        Raises:
            BadExitStatusError: the command exited non-zero and errors are not ignored
            SessionTimeoutError: no output arrived within ``timeout``
        """
        if not self._transport:
            self.connect()
        assert self._transport is not None

        if ignore_error is None:
            ignore_error = self.credentials.ignore_error

        logger.info("Executing on %s: %s", self.credentials.target, command)
        try:
            channel = self._transport.open_session(timeout=self.credentials.timeout)
        except socket.timeout as exc:
            raise SessionTimeoutError(f"Opening a channel on {self.credentials.target} timed out") from exc
        except paramiko.SSHException as exc:
            raise SSHConnectionError(f"Could not open a channel: {exc}") from exc

        try:
            channel.exec_command(command)
            stdout_text, stderr_text = self._drain(channel, command, timeout)
            exit_status = channel.recv_exit_status()
        except socket.timeout as exc:
            raise SessionTimeoutError(
                f"Command did not complete within {timeout} seconds: {command}"
            ) from exc
        except paramiko.SSHException as exc:
            raise SSHConnectionError(f"Command failed on {self.credentials.target}: {exc}") from exc
        finally:
            channel.close()

        result = SSHCommandResult(
            command=command,
            stdout=stdout_text.strip(),
            stderr=stderr_text.strip(),
            exit_status=exit_status,
        )
        logger.debug("Command exited with status %d: %s", exit_status, command)
        if not result.ok and not ignore_error:
            raise BadExitStatusError(result)
        return result

    @staticmethod
    def _drain(
        channel: paramiko.Channel, command: str, timeout: Optional[float]
    ) -> Tuple[str, str]:
        # stdout and stderr share one window; both must be read until exit
        stdout_chunks: List[bytes] = []
        stderr_chunks: List[bytes] = []
        last_activity = time.monotonic()
        while True:
            has_activity = False
            while channel.recv_ready():
                stdout_chunks.append(channel.recv(_CHUNK_SIZE))
                has_activity = True
            while channel.recv_stderr_ready():
                stderr_chunks.append(channel.recv_stderr(_CHUNK_SIZE))
                has_activity = True

            if has_activity:
                last_activity = time.monotonic()
                continue
            if channel.exit_status_ready():
                break
            if timeout is not None and time.monotonic() - last_activity > timeout:
                raise SessionTimeoutError(
                    f"Command did not complete within {timeout} seconds: {command}"
                )
            time.sleep(_POLL_INTERVAL)

        return (
            b"".join(stdout_chunks).decode("utf-8", errors="replace"),
            b"".join(stderr_chunks).decode("utf-8", errors="replace"),
        )

    def run(self, command: str, *, timeout: Optional[float] = None) -> SSHCommandResult:
        """Execute ``command`` and return its result whatever the exit status."""
        return self.execute(command, timeout=timeout, ignore_error=True)
