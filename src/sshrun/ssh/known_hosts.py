"""Server host key verification against a known_hosts file."""

from __future__ import annotations

import logging
import os

import paramiko

from .errors import HostKeyError

logger = logging.getLogger(__name__)

ALLOW_ANY_HOSTS = "allow_any"
DEFAULT_KNOWN_HOSTS = "~/.ssh/known_hosts"


def host_key_entry_name(host: str, port: int) -> str:
    """Return the name a host is stored under in known_hosts."""
    if port == 22:
        return host
    return f"[{host}]:{port}"


def verify_host_key(
    known_hosts: str, host: str, port: int, server_key: paramiko.PKey
) -> None:
    if known_hosts == ALLOW_ANY_HOSTS:
        logger.debug(
            "Accepting %s host key %s without verification",
            host_key_entry_name(host, port),
            server_key.get_name(),
        )
        return

    path = os.path.expanduser(known_hosts)
    if not os.path.isfile(path):
        raise HostKeyError(f"Known hosts file not found: {path}")

    try:
        host_keys = paramiko.HostKeys(path)
    except (OSError, paramiko.SSHException) as exc:
        raise HostKeyError(f"Could not read known hosts file {path}: {exc}") from exc

    name = host_key_entry_name(host, port)
    entry = host_keys.lookup(name)
    if entry is None:
        raise HostKeyError(f"Host {name} is not in {path}")

    expected = entry.get(server_key.get_name())
    if expected is None or expected.asbytes() != server_key.asbytes():
        raise HostKeyError(
            f"Host key of {name} does not match {path} "
            f"(offered {server_key.get_name()})"
        )
    logger.debug("Host key of %s verified against %s", name, path)
