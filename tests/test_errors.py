import unittest

from sshrun.ssh import (
    AuthFail,
    BadExitStatusError,
    ConfigError,
    HostKeyError,
    KeyDecodeError,
    PassphraseError,
    SessionTimeoutError,
    SSHCommandResult,
    SSHConnectionError,
    SSHError,
    UserauthFail,
)


class ErrorTaxonomyTests(unittest.TestCase):
    def test_kinds(self) -> None:
        expected = {
            AuthFail: "AuthFail",
            UserauthFail: "UserauthFail",
            ConfigError: "ConfigError",
            KeyDecodeError: "DecodeError",
            PassphraseError: "DecodeError",
            SessionTimeoutError: "TimeoutError",
            SSHConnectionError: "ConnectionError",
            HostKeyError: "ConnectionError",
            BadExitStatusError: "BadExitStatus",
        }
        for error_class, kind in expected.items():
            with self.subTest(error=error_class.__name__):
                self.assertTrue(issubclass(error_class, SSHError))
                self.assertEqual(error_class.kind, kind)

    def test_default_messages(self) -> None:
        self.assertEqual(str(AuthFail()), "Auth fail")
        self.assertEqual(str(UserauthFail()), "USERAUTH fail")
        self.assertEqual(str(AuthFail("custom")), "custom")

    def test_bad_exit_status_carries_result(self) -> None:
        result = SSHCommandResult(command="false", stdout="", stderr="", exit_status=3)
        error = BadExitStatusError(result)

        self.assertIs(error.result, result)
        self.assertEqual(error.exit_status, 3)
        self.assertIn("false", str(error))


if __name__ == "__main__":
    unittest.main()
