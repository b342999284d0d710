"""Configuration loading utilities for sshrun."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv

from .ssh.errors import ConfigError
from .ssh.known_hosts import ALLOW_ANY_HOSTS, DEFAULT_KNOWN_HOSTS

# Load .env file if it exists
load_dotenv()

_DEFAULT_CONFIG_PATH = Path("sshrun.json")

# A key file (Path or path string) or the key text itself (str or bytes).
IdentitySource = Union[str, bytes, os.PathLike]


@dataclass
class GlobalSettings:
    """Settings shared by every remote; remote values take precedence."""

    identity: Optional[IdentitySource] = None
    passphrase: Optional[str] = None
    password: Optional[str] = None
    known_hosts: str = DEFAULT_KNOWN_HOSTS
    timeout: int = 20
    ignore_error: bool = False


@dataclass(frozen=True)
class RemoteConfig:
    """A named target host."""

    name: str
    host: str
    user: str
    port: int = 22
    password: Optional[str] = None
    identity: Optional[IdentitySource] = None
    passphrase: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"RemoteConfig(name={self.name!r}, host={self.host!r}, "
            f"port={self.port}, user={self.user!r})"
        )


def _strip_comments(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if not k.startswith("_")}


def _check_keys(payload: Dict[str, Any], cls: type, where: str) -> None:
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(payload) - allowed)
    if unknown:
        raise ConfigError(f"Unknown key(s) in {where}: {', '.join(unknown)}")


@dataclass
class AppConfig:
    """Top-level configuration."""

    settings: GlobalSettings = field(default_factory=GlobalSettings)
    remotes: Dict[str, RemoteConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        settings_payload = _strip_comments(payload.get("settings", {}) or {})
        _check_keys(settings_payload, GlobalSettings, "settings")
        settings = GlobalSettings(**{**GlobalSettings().__dict__, **settings_payload})

        remotes: Dict[str, RemoteConfig] = {}
        for name, remote_payload in (payload.get("remotes", {}) or {}).items():
            if name.startswith("_"):
                continue
            remote_payload = _strip_comments(remote_payload or {})
            remote_payload.pop("name", None)
            _check_keys(remote_payload, RemoteConfig, f"remote '{name}'")
            for required in ("host", "user"):
                if not remote_payload.get(required):
                    raise ConfigError(f"Remote '{name}' has no {required}")
            remotes[name] = RemoteConfig(name=name, **remote_payload)

        return cls(settings=settings, remotes=remotes)


def _apply_env_overrides(config: AppConfig) -> None:
    env_identity = os.getenv("SSHRUN_IDENTITY")
    if env_identity:
        config.settings.identity = env_identity

    env_passphrase = os.getenv("SSHRUN_PASSPHRASE")
    if env_passphrase:
        config.settings.passphrase = env_passphrase

    env_password = os.getenv("SSHRUN_PASSWORD")
    if env_password:
        config.settings.password = env_password

    env_known_hosts = os.getenv("SSHRUN_KNOWN_HOSTS")
    if env_known_hosts:
        config.settings.known_hosts = env_known_hosts

    env_timeout = os.getenv("SSHRUN_TIMEOUT")
    if env_timeout:
        try:
            config.settings.timeout = int(env_timeout)
        except ValueError as exc:
            raise ConfigError(f"SSHRUN_TIMEOUT must be an integer, got {env_timeout!r}") from exc


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path` or the default location.

    Environment variables (higher priority than config file):
    - SSHRUN_IDENTITY: global identity (key file path or key text)
    - SSHRUN_PASSPHRASE: passphrase for the global identity
    - SSHRUN_PASSWORD: global password
    - SSHRUN_KNOWN_HOSTS: known_hosts file, or "allow_any"
    - SSHRUN_TIMEOUT: connection timeout in seconds
    """

    candidate_paths = []
    if path:
        candidate_paths.append(Path(path))
    candidate_paths.append(_DEFAULT_CONFIG_PATH)

    for candidate in candidate_paths:
        if candidate.is_file():
            with candidate.open("r", encoding="utf-8") as handle:
                try:
                    data = json.load(handle)
                except json.JSONDecodeError as exc:
                    raise ConfigError(f"Invalid JSON in {candidate}: {exc}") from exc
            config = AppConfig.from_dict(data)
            _apply_env_overrides(config)
            return config

    raise FileNotFoundError(
        f"Could not find configuration file. Looked in: {', '.join(str(p) for p in candidate_paths)}"
    )
