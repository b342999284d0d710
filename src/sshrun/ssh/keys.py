"""Private key loading.

An identity is either a key file or the key text itself; both produce the
same :class:`KeyMaterial`. Keys are decrypted eagerly, so a missing or
wrong passphrase is reported here as :class:`PassphraseError` before any
connection is opened.

Supported containers are traditional PEM (``BEGIN RSA PRIVATE KEY``,
``BEGIN EC PRIVATE KEY``) and OpenSSH (``BEGIN OPENSSH PRIVATE KEY``).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import io
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Type, Union

import paramiko

from .errors import ConfigError, KeyDecodeError, PassphraseError

logger = logging.getLogger(__name__)

_BEGIN_RE = re.compile(r"-----BEGIN ([A-Z0-9 ]+) PRIVATE KEY-----")
_OPENSSH_MAGIC = b"openssh-key-v1\x00"


class KeyAlgorithm(str, Enum):
    """Public key algorithm, named the way the server reports it."""

    RSA = "RSA"
    EC = "EC"


_KEY_CLASSES = {
    KeyAlgorithm.RSA: paramiko.RSAKey,
    KeyAlgorithm.EC: paramiko.ECDSAKey,
}


@dataclass(frozen=True)
class KeyMaterial:
    algorithm: KeyAlgorithm
    private_key: bytes = field(repr=False)
    encrypted: bool
    pkey: paramiko.PKey = field(repr=False)
    source: str = "string"

    @property
    def public_key(self) -> bytes:
        """Public key in SSH wire format."""
        return self.pkey.asbytes()

    @property
    def name(self) -> str:
        return self.pkey.get_name()

    @property
    def fingerprint(self) -> str:
        digest = hashlib.sha256(self.public_key).digest()
        return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def _read_identity(identity: Union[str, bytes, os.PathLike]) -> Tuple[str, str]:
    """Return ``(key_text, source)`` where source is ``file`` or ``string``."""
    if isinstance(identity, bytes):
        try:
            return identity.decode("ascii"), "string"
        except UnicodeDecodeError as exc:
            raise KeyDecodeError("Private key is not ASCII armored") from exc

    if isinstance(identity, str) and "-----BEGIN" in identity:
        return identity, "string"

    path = Path(os.path.expanduser(os.fspath(identity)))
    try:
        return path.read_text(encoding="ascii"), "file"
    except FileNotFoundError as exc:
        raise ConfigError(f"Identity file not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise KeyDecodeError(f"Private key {path} is not ASCII armored") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read identity file {path}: {exc}") from exc


def _algorithm_from_type_name(type_name: str) -> KeyAlgorithm:
    if type_name == "ssh-rsa":
        return KeyAlgorithm.RSA
    if type_name.startswith("ecdsa-sha2-"):
        return KeyAlgorithm.EC
    raise KeyDecodeError(f"Unsupported key algorithm: {type_name}")


def _inspect_openssh(text: str) -> Tuple[KeyAlgorithm, bool]:
    # The header and the public key of the OpenSSH container are never encrypted
    lines = text.strip().splitlines()
    try:
        start = next(i for i, line in enumerate(lines) if line.startswith("-----BEGIN"))
        end = next(i for i, line in enumerate(lines) if line.startswith("-----END"))
        blob = base64.b64decode("".join(lines[start + 1:end]))
    except (StopIteration, binascii.Error) as exc:
        raise KeyDecodeError("Malformed OpenSSH private key") from exc

    if not blob.startswith(_OPENSSH_MAGIC):
        raise KeyDecodeError("Malformed OpenSSH private key")

    try:
        message = paramiko.Message(blob[len(_OPENSSH_MAGIC):])
        cipher_name = message.get_text()
        message.get_text()  # kdf name
        message.get_binary()  # kdf options
        message.get_int()  # number of keys
        public_blob = message.get_binary()
        type_name = paramiko.Message(public_blob).get_text()
    except (UnicodeDecodeError, IndexError, paramiko.SSHException) as exc:
        raise KeyDecodeError("Malformed OpenSSH private key") from exc

    return _algorithm_from_type_name(type_name), cipher_name != "none"


def inspect_key(text: str) -> Tuple[KeyAlgorithm, bool]:
    """Detect ``(algorithm, encrypted)`` without decrypting the key."""
    match = _BEGIN_RE.search(text)
    if match is None:
        raise KeyDecodeError("No private key found in identity")

    label = match.group(1)
    if label == "OPENSSH":
        return _inspect_openssh(text)
    if label == "RSA":
        return KeyAlgorithm.RSA, "Proc-Type: 4,ENCRYPTED" in text
    if label == "EC":
        return KeyAlgorithm.EC, "Proc-Type: 4,ENCRYPTED" in text
    raise KeyDecodeError(f"Unsupported private key format: {label} PRIVATE KEY")


def _decode(
    key_class: Type[paramiko.PKey], text: str, passphrase: Optional[str], encrypted: bool
) -> paramiko.PKey:
    try:
        return key_class.from_private_key(io.StringIO(text), password=passphrase)
    except paramiko.PasswordRequiredException as exc:
        raise PassphraseError("Private key is encrypted but no passphrase was given") from exc
    except (paramiko.SSHException, ValueError, TypeError) as exc:
        if encrypted:
            raise PassphraseError("Could not decrypt private key with the given passphrase") from exc
        raise KeyDecodeError(f"Invalid private key: {exc}") from exc


def load_key_material(
    identity: Union[str, bytes, os.PathLike], passphrase: Optional[str] = None
) -> KeyMaterial:
    text, source = _read_identity(identity)
    algorithm, encrypted = inspect_key(text)

    if encrypted and not passphrase:
        raise PassphraseError("Private key is encrypted but no passphrase was given")

    pkey = _decode(_KEY_CLASSES[algorithm], text, passphrase or None, encrypted)
    material = KeyMaterial(
        algorithm=algorithm,
        private_key=text.encode("ascii"),
        encrypted=encrypted,
        pkey=pkey,
        source=source,
    )
    logger.debug(
        "Loaded %s key from %s (encrypted=%s, fingerprint=%s)",
        material.name,
        source,
        encrypted,
        material.fingerprint,
    )
    return material
