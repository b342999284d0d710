import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from sshrun.config import AppConfig, GlobalSettings, RemoteConfig, load_config
from sshrun.ssh import ConfigError


class ConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)

    def write_config(self, payload: dict) -> str:
        path = self.tmp / "sshrun.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    def test_loads_custom_config(self) -> None:
        path = self.write_config(
            {
                "settings": {"identity": "~/.ssh/id_rsa", "passphrase": "gradle", "timeout": 5},
                "remotes": {
                    "web": {"host": "web.example.com", "user": "deploy", "port": 2222},
                    "db": {"host": "db.example.com", "user": "admin", "password": "pw"},
                },
            }
        )
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_config(path)

        self.assertIsInstance(config, AppConfig)
        self.assertEqual(config.settings.identity, "~/.ssh/id_rsa")
        self.assertEqual(config.settings.passphrase, "gradle")
        self.assertEqual(config.settings.timeout, 5)
        self.assertEqual(config.settings.known_hosts, "~/.ssh/known_hosts")
        self.assertEqual(
            config.remotes["web"],
            RemoteConfig(name="web", host="web.example.com", user="deploy", port=2222),
        )
        self.assertEqual(config.remotes["db"].password, "pw")

    def test_comment_keys_are_ignored(self) -> None:
        config = AppConfig.from_dict(
            {
                "settings": {"_comment": "global", "password": "pw"},
                "remotes": {
                    "_example": {"host": "ignored"},
                    "web": {"_note": "x", "host": "h", "user": "u"},
                },
            }
        )
        self.assertEqual(config.settings.password, "pw")
        self.assertEqual(list(config.remotes), ["web"])

    def test_unknown_keys_are_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            AppConfig.from_dict({"settings": {"pasword": "typo"}})
        with self.assertRaises(ConfigError):
            AppConfig.from_dict({"remotes": {"web": {"host": "h", "user": "u", "hots": "x"}}})

    def test_remote_requires_host_and_user(self) -> None:
        with self.assertRaises(ConfigError):
            AppConfig.from_dict({"remotes": {"web": {"user": "u"}}})
        with self.assertRaises(ConfigError):
            AppConfig.from_dict({"remotes": {"web": {"host": "h"}}})

    def test_env_vars_override_settings(self) -> None:
        path = self.write_config({"settings": {"password": "from-file", "timeout": 5}})
        env = {
            "SSHRUN_PASSWORD": "from-env",
            "SSHRUN_IDENTITY": "/keys/id_ecdsa",
            "SSHRUN_PASSPHRASE": "env-secret",
            "SSHRUN_KNOWN_HOSTS": "allow_any",
            "SSHRUN_TIMEOUT": "30",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_config(path)

        self.assertEqual(config.settings.password, "from-env")
        self.assertEqual(config.settings.identity, "/keys/id_ecdsa")
        self.assertEqual(config.settings.passphrase, "env-secret")
        self.assertEqual(config.settings.known_hosts, "allow_any")
        self.assertEqual(config.settings.timeout, 30)

    def test_invalid_timeout_env_var(self) -> None:
        path = self.write_config({})
        with mock.patch.dict(os.environ, {"SSHRUN_TIMEOUT": "soon"}, clear=True):
            with self.assertRaises(ConfigError):
                load_config(path)

    def test_invalid_json(self) -> None:
        path = self.tmp / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ConfigError):
            load_config(str(path))

    def test_missing_config_file(self) -> None:
        with self.assertRaises(FileNotFoundError) as ctx:
            load_config(str(self.tmp / "missing.json"))
        self.assertIn("missing.json", str(ctx.exception))

    def test_defaults(self) -> None:
        settings = GlobalSettings()
        self.assertIsNone(settings.identity)
        self.assertEqual(settings.timeout, 20)
        self.assertFalse(settings.ignore_error)


if __name__ == "__main__":
    unittest.main()
