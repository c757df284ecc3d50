import unittest

from sonar_msbuild.arguments import (
    ArgumentList,
    build_arguments,
    build_property_map,
    is_dotnet_core_tool,
    tokenize,
)
from sonar_msbuild.config import StepConfiguration
from sonar_msbuild.credentials import MASK, PROPERTY_SONAR_LOGIN, PROPERTY_SONAR_TOKEN, is_secret
from sonar_msbuild.errors import ConfigurationError
from sonar_msbuild.registry import ServiceConnection
from sonar_msbuild.token_property import legacy_login_property, token_property


def _service(**overrides) -> ServiceConnection:
    values = dict(
        name="corp",
        server_url="https://sonar.example.com",
        auth_token="abc123",
    )
    values.update(overrides)
    return ServiceConnection(**values)


def _config(**overrides) -> StepConfiguration:
    values = dict(project_key="demo", project_name="Demo", project_version="1.0")
    values.update(overrides)
    return StepConfiguration(**values)


class TestBuildArguments(unittest.TestCase):
    def test_scenario_order(self) -> None:
        args = build_arguments(
            _config(), "/opt/scanner/SonarScanner.MSBuild.exe", _service(), {}, token_property=token_property
        )
        self.assertEqual(
            [
                "/opt/scanner/SonarScanner.MSBuild.exe",
                "begin",
                "/k:demo",
                "/n:Demo",
                "/v:1.0",
                "/d:sonar.host.url=https://sonar.example.com",
                "/d:sonar.token=abc123",
            ],
            args.to_list(),
        )
        self.assertEqual(f"/d:sonar.token={MASK}", args.to_masked_list()[-1])

    def test_masked_and_real_argv_differ_only_on_secrets(self) -> None:
        for strategy in (token_property, legacy_login_property):
            args = build_arguments(
                _config(additional_arguments="/d:sonar.verbose=true"),
                "scanner.exe",
                _service(additional_analysis_properties=(("sonar.cs.opencover.reportsPaths", "cov.xml"),)),
                {},
                token_property=strategy,
            )
            real = args.to_list()
            shown = args.to_masked_list()
            self.assertEqual(len(real), len(shown))
            for r, s in zip(real, shown):
                key = r[3:].split("=", 1)[0] if r.startswith("/d:") else ""
                if key and is_secret(key):
                    self.assertNotEqual(r, s)
                    self.assertEqual(f"/d:{key}={MASK}", s)
                    self.assertIn("abc123", r)
                else:
                    self.assertEqual(r, s)
            self.assertNotIn("abc123", args.to_command_line())

    def test_dotnet_launcher_prepended_for_dll(self) -> None:
        args = build_arguments(_config(), "/opt/s/SonarScanner.MSBuild.dll", _service(), {}, token_property=token_property)
        self.assertEqual(["dotnet", "/opt/s/SonarScanner.MSBuild.dll", "begin"], args.to_list()[:3])

        args = build_arguments(_config(), "/opt/s/SonarScanner.MSBuild.exe", _service(), {}, token_property=token_property)
        self.assertEqual(["/opt/s/SonarScanner.MSBuild.exe", "begin"], args.to_list()[:2])

    def test_dotnet_detector_is_pluggable(self) -> None:
        args = build_arguments(
            _config(), "scanner", _service(), {}, token_property=token_property, dotnet_core=lambda _p: True
        )
        self.assertEqual(["dotnet", "scanner"], args.to_list()[:2])

    def test_project_fields_are_expanded_and_tolerate_missing_vars(self) -> None:
        env = {"BUILD_NUMBER": "7"}
        args = build_arguments(
            _config(project_key="${KEY_PREFIX}demo", project_version="1.$BUILD_NUMBER"),
            "scanner.exe",
            _service(),
            env,
            token_property=token_property,
        )
        self.assertEqual(["/k:${KEY_PREFIX}demo", "/n:Demo", "/v:1.7"], args.to_list()[2:5])

    def test_blank_token_adds_no_credential_property(self) -> None:
        args = build_arguments(_config(), "scanner.exe", _service(auth_token="  "), {}, token_property=token_property)
        d_tokens = [t for t in args.to_list() if t.startswith("/d:")]
        self.assertEqual(["/d:sonar.host.url=https://sonar.example.com"], d_tokens)

    def test_d_token_count_matches_non_empty_properties(self) -> None:
        service = _service(auth_token="")
        props = build_property_map(service, token_property)
        args = build_arguments(_config(), "scanner.exe", service, {}, token_property=token_property)
        d_tokens = [t for t in args.to_list() if t.startswith("/d:")]
        self.assertEqual(len([v for v in props.values() if v]), len(d_tokens))

    def test_property_values_expand_against_env(self) -> None:
        args = build_arguments(
            _config(),
            "scanner.exe",
            _service(server_url="https://${SONAR_HOST}", auth_token="$SECRET"),
            {"SONAR_HOST": "sq.internal", "SECRET": "s3cr3t"},
            token_property=token_property,
        )
        self.assertIn("/d:sonar.host.url=https://sq.internal", args.to_list())
        self.assertIn("/d:sonar.token=s3cr3t", args.to_list())

    def test_missing_server_url_is_a_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_arguments(_config(), "scanner.exe", _service(server_url=""), {}, token_property=token_property)

    def test_service_and_additional_arguments_come_last_in_order(self) -> None:
        service = _service(
            additional_analysis_properties=(("sonar.exclusions", "**/bin/**"), ("sonar.sourceEncoding", "UTF-8")),
            additional_properties='/d:sonar.branch.name=main "/d:sonar.projectDescription=My app"',
        )
        config = _config(additional_arguments='/d:sonar.verbose=true /d:sonar.cs.vstest.reportsPaths="$OUT\\*.trx"')
        args = build_arguments(config, "scanner.exe", service, {"OUT": "C:\\build\\out"}, token_property=token_property)
        self.assertEqual(
            [
                "/d:sonar.token=abc123",
                "/d:sonar.exclusions=**/bin/**",
                "/d:sonar.sourceEncoding=UTF-8",
                "/d:sonar.branch.name=main",
                "/d:sonar.projectDescription=My app",
                "/d:sonar.verbose=true",
                "/d:sonar.cs.vstest.reportsPaths=C:\\build\\out\\*.trx",
            ],
            args.to_list()[6:],
        )

    def test_trailing_tokens_equal_expanded_then_tokenized_additional_arguments(self) -> None:
        env = {"CONF": "Release", "NAME": "my project"}
        raw = '/d:sonar.configuration=$CONF "/d:sonar.label=${NAME}" \'/d:x=a b\''
        args = build_arguments(_config(additional_arguments=raw), "scanner.exe", _service(), env, token_property=token_property)
        expected = ["/d:sonar.configuration=Release", "/d:sonar.label=my project", "/d:x=a b"]
        self.assertEqual(expected, args.to_list()[-len(expected):])

    def test_login_strategy_uses_login_key(self) -> None:
        args = build_arguments(_config(), "scanner.exe", _service(), {}, token_property=legacy_login_property)
        self.assertIn(f"/d:{PROPERTY_SONAR_LOGIN}=abc123", args.to_list())
        self.assertIn(f"/d:{PROPERTY_SONAR_LOGIN}={MASK}", args.to_masked_list())

    def test_property_map_self_references(self) -> None:
        # a token that references the host url resolves from the map itself
        service = _service(auth_token="${sonar.host.url}#tok")
        args = build_arguments(_config(), "scanner.exe", service, {}, token_property=token_property)
        self.assertIn(f"/d:{PROPERTY_SONAR_TOKEN}=https://sonar.example.com#tok", args.to_list())

    def test_deterministic(self) -> None:
        a = build_arguments(_config(), "scanner.exe", _service(), {"A": "1"}, token_property=token_property)
        b = build_arguments(_config(), "scanner.exe", _service(), {"A": "1"}, token_property=token_property)
        self.assertEqual(a.to_list(), b.to_list())
        self.assertEqual(a.to_masked_list(), b.to_masked_list())


class TestTokenize(unittest.TestCase):
    def test_quotes_group_and_backslashes_survive(self) -> None:
        self.assertEqual(
            ["/d:a=1", "/d:path=C:\\My Files\\x", "plain"],
            tokenize('/d:a=1 "/d:path=C:\\My Files\\x"   plain'),
        )

    def test_blank(self) -> None:
        self.assertEqual([], tokenize(None))
        self.assertEqual([], tokenize("   "))

    def test_unbalanced_quote(self) -> None:
        with self.assertRaises(ConfigurationError):
            tokenize('/d:a="oops')


class TestArgumentList(unittest.TestCase):
    def test_command_line_quotes_tokens_with_spaces(self) -> None:
        args = ArgumentList().add("scanner.exe").add("/n:My Project")
        args.add_key_value_pair("/d:", "sonar.token", "abc", mask=True)
        self.assertEqual(f'scanner.exe "/n:My Project" /d:sonar.token={MASK}', args.to_command_line())
        self.assertEqual(3, len(args))
        self.assertNotIn("abc", repr(args))

    def test_is_dotnet_core_tool(self) -> None:
        self.assertTrue(is_dotnet_core_tool("C:\\tools\\SonarScanner.MSBuild.DLL"))
        self.assertFalse(is_dotnet_core_tool("SonarScanner.MSBuild.exe"))
        self.assertFalse(is_dotnet_core_tool(""))


class TestCredentialPolicy(unittest.TestCase):
    def test_markers(self) -> None:
        self.assertTrue(is_secret("sonar.login"))
        self.assertTrue(is_secret("sonar.token"))
        self.assertTrue(is_secret("prefix.sonar.token.suffix"))
        self.assertFalse(is_secret("sonar.host.url"))
        self.assertFalse(is_secret(""))


if __name__ == "__main__":
    unittest.main()
