import unittest
from unittest.mock import MagicMock, patch

import requests

from sonar_msbuild.credentials import PROPERTY_SONAR_LOGIN, PROPERTY_SONAR_TOKEN
from sonar_msbuild.registry import ServiceConnection
from sonar_msbuild.token_property import ServerVersionTokenProperty
from tools.sonar.api import fetch_server_version, is_sonarcloud, parse_version


def _conn(url: str = "https://sq.corp", token: str = "t") -> ServiceConnection:
    return ServiceConnection(name="x", server_url=url, auth_token=token)


class TestServerVersionTokenProperty(unittest.TestCase):
    def test_modern_server_gets_token_property(self) -> None:
        strategy = ServerVersionTokenProperty(fetch_version=lambda url, tok: "10.4.1.88267")
        self.assertEqual(PROPERTY_SONAR_TOKEN, strategy(_conn()))

    def test_old_server_gets_login_property(self) -> None:
        strategy = ServerVersionTokenProperty(fetch_version=lambda url, tok: "9.9.0.65466")
        self.assertEqual(PROPERTY_SONAR_LOGIN, strategy(_conn()))

    def test_threshold_is_configurable(self) -> None:
        strategy = ServerVersionTokenProperty(fetch_version=lambda url, tok: "9.9", min_major=9)
        self.assertEqual(PROPERTY_SONAR_TOKEN, strategy(_conn()))

    def test_sonarcloud_skips_version_lookup(self) -> None:
        fetch = MagicMock()
        strategy = ServerVersionTokenProperty(fetch_version=fetch)
        self.assertEqual(PROPERTY_SONAR_TOKEN, strategy(_conn("https://sonarcloud.io")))
        fetch.assert_not_called()

    def test_lookup_failure_falls_back_to_login(self) -> None:
        def boom(url, tok):
            raise requests.ConnectionError("down")

        strategy = ServerVersionTokenProperty(fetch_version=boom)
        with self.assertLogs("sonar_msbuild.token_property", level="WARNING"):
            self.assertEqual(PROPERTY_SONAR_LOGIN, strategy(_conn()))

    def test_garbage_version_falls_back_to_login(self) -> None:
        strategy = ServerVersionTokenProperty(fetch_version=lambda url, tok: "<html>")
        with self.assertLogs("sonar_msbuild.token_property", level="WARNING"):
            self.assertEqual(PROPERTY_SONAR_LOGIN, strategy(_conn()))

    def test_token_is_passed_to_lookup(self) -> None:
        fetch = MagicMock(return_value="10.0")
        ServerVersionTokenProperty(fetch_version=fetch)(_conn(token="abc"))
        fetch.assert_called_once_with("https://sq.corp", "abc")


class TestSonarApi(unittest.TestCase):
    def test_parse_version(self) -> None:
        self.assertEqual((10, 4, 1, 88267), parse_version("10.4.1.88267"))
        self.assertEqual((8, 9), parse_version("8.9-SNAPSHOT"))
        with self.assertRaises(ValueError):
            parse_version("")

    def test_is_sonarcloud(self) -> None:
        self.assertTrue(is_sonarcloud("https://sonarcloud.io"))
        self.assertTrue(is_sonarcloud("https://sc-staging.sonarcloud.io/"))
        self.assertFalse(is_sonarcloud("https://notsonarcloud.io"))
        self.assertFalse(is_sonarcloud(""))

    @patch("tools.sonar.api.requests.get")
    def test_fetch_server_version(self, mock_get: MagicMock) -> None:
        mock_get.return_value = MagicMock(text="10.2.0.77647\n", raise_for_status=MagicMock())
        self.assertEqual("10.2.0.77647", fetch_server_version("https://sq.corp/", "tok"))
        args, kwargs = mock_get.call_args
        self.assertEqual("https://sq.corp/api/server/version", args[0])
        self.assertEqual({"Authorization": "Bearer tok"}, kwargs["headers"])
        self.assertEqual(10, kwargs["timeout"])


if __name__ == "__main__":
    unittest.main()
