"""Tests for layered configuration."""

from pathlib import Path

import pytest

from consolehost.config.configuration import (
    ConfigurationBuilder,
    EnvironmentVariablesSource,
    JsonFileSource,
    UserSecretsSource,
    flatten_json,
    user_secrets_path,
)
from consolehost.domain.exceptions import ConfigurationError


class TestFlattenJson:
    def test_nested_objects_join_with_colon(self):
        assert flatten_json({"a": {"b": {"c": "x"}}}) == {"a:b:c": "x"}

    def test_arrays_use_indexes(self):
        assert flatten_json({"items": ["x", "y"]}) == {"items:0": "x", "items:1": "y"}

    def test_scalars_render_as_strings(self):
        flattened = flatten_json(
            {"on": True, "off": False, "none": None, "count": 3, "ratio": 0.5}
        )

        assert flattened == {
            "on": "true",
            "off": "false",
            "none": "",
            "count": "3",
            "ratio": "0.5",
        }


class TestJsonFileSource:
    def test_missing_optional_file_is_empty(self, tmp_path):
        assert JsonFileSource(tmp_path / "absent.json", optional=True).load() == {}

    def test_missing_required_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            JsonFileSource(tmp_path / "absent.json", optional=False).load()

    def test_malformed_required_file_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="could not be parsed"):
            JsonFileSource(path, optional=False).load()

    def test_malformed_optional_file_is_treated_as_absent(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        assert JsonFileSource(path, optional=True).load() == {}

    def test_top_level_array_is_malformed(self, write_json):
        path = write_json(["a", "b"])

        with pytest.raises(ConfigurationError, match="JSON object"):
            JsonFileSource(path, optional=False).load()


class TestEnvironmentVariablesSource:
    def test_prefix_is_stripped_and_double_underscore_nests(self):
        source = EnvironmentVariablesSource(
            "APP_", environ={"APP_appConfig__Name": "B", "OTHER": "x"}
        )

        assert source.load() == {"appConfig:Name": "B"}

    def test_prefix_match_is_case_insensitive(self):
        source = EnvironmentVariablesSource("app_", environ={"APP_Key": "v"})

        assert source.load() == {"Key": "v"}

    def test_empty_prefix_includes_everything(self):
        source = EnvironmentVariablesSource("", environ={"A": "1", "B__C": "2"})

        assert source.load() == {"A": "1", "B:C": "2"}

    def test_variable_equal_to_prefix_is_skipped(self):
        source = EnvironmentVariablesSource("APP_", environ={"APP_": "v"})

        assert source.load() == {}

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("CONSOLEHOST_SRC_TEST_Key", "value")

        assert EnvironmentVariablesSource("CONSOLEHOST_SRC_TEST_").load() == {
            "Key": "value"
        }


class TestUserSecrets:
    def test_path_uses_explicit_root(self, tmp_path):
        path = user_secrets_path("my-app", root=tmp_path)

        assert path == tmp_path / "my-app" / "secrets.json"

    def test_path_honours_root_override_variable(self, tmp_path, monkeypatch):
        monkeypatch.setenv("USER_SECRETS_ROOT", str(tmp_path))

        assert user_secrets_path("my-app") == tmp_path / "my-app" / "secrets.json"

    def test_path_defaults_under_home(self, monkeypatch):
        monkeypatch.delenv("USER_SECRETS_ROOT", raising=False)
        monkeypatch.delenv("APPDATA", raising=False)

        path = user_secrets_path("my-app")

        expected = Path.home() / ".microsoft" / "usersecrets" / "my-app"
        assert path == expected / "secrets.json"

    def test_loads_flat_secret_keys(self, tmp_path, write_json):
        write_json({"appConfig:Name": "secret"}, "my-app/secrets.json")

        source = UserSecretsSource("my-app", root=tmp_path)

        assert source.load() == {"appConfig:Name": "secret"}


class TestLayering:
    def test_later_sources_win(self, tmp_path, write_json):
        write_json({"appConfig": {"Name": "A", "Kept": "file"}})

        configuration = (
            ConfigurationBuilder(tmp_path)
            .add_json_file("appsettings.json")
            .add_environment_variables("APP_", environ={"APP_appConfig__Name": "B"})
            .build()
        )

        assert configuration["appConfig:Name"] == "B"
        assert configuration["appConfig:Kept"] == "file"

    def test_relative_paths_resolve_against_base_dir(self, tmp_path, write_json):
        write_json({"Key": "v"}, "conf/settings.json")

        configuration = (
            ConfigurationBuilder(tmp_path).add_json_file("conf/settings.json").build()
        )

        assert configuration.get("Key") == "v"

    def test_missing_optional_sources_are_skipped(self, tmp_path):
        configuration = (
            ConfigurationBuilder(tmp_path)
            .add_json_file("appsettings.json", optional=True)
            .add_user_secrets("absent", optional=True, root=tmp_path)
            .build()
        )

        assert len(configuration) == 0

    def test_collision_keeps_last_writers_casing(self):
        configuration = (
            ConfigurationBuilder()
            .add_in_memory({"appConfig": {"Name": "A"}})
            .add_in_memory({"APPCONFIG": {"NAME": "B"}})
            .build()
        )

        assert configuration.keys() == ["APPCONFIG:NAME"]
        assert configuration["appconfig:name"] == "B"

    def test_sources_are_kept_in_order(self, tmp_path):
        builder = (
            ConfigurationBuilder(tmp_path)
            .add_json_file("appsettings.json")
            .add_environment_variables("APP_", environ={})
        )

        configuration = builder.build()

        assert [type(s) for s in configuration.sources] == [
            JsonFileSource,
            EnvironmentVariablesSource,
        ]


class TestConfigurationViews:
    @pytest.fixture
    def configuration(self):
        return (
            ConfigurationBuilder()
            .add_in_memory(
                {
                    "appConfig": {"Name": "Ada", "Limits": {"Retries": 3}},
                    "logging": {"Level": "INFO"},
                    "root": "value",
                }
            )
            .build()
        )

    def test_lookup_is_case_insensitive(self, configuration):
        assert configuration.get("APPCONFIG:name") == "Ada"
        assert "appconfig:NAME" in configuration

    def test_missing_key(self, configuration):
        assert configuration.get("absent") is None
        assert configuration.get("absent", "fallback") == "fallback"
        with pytest.raises(KeyError):
            configuration["absent"]

    def test_section_strips_prefix(self, configuration):
        section = configuration.get_section("appConfig")

        assert sorted(section.keys()) == ["Limits:Retries", "Name"]
        assert section["Name"] == "Ada"
        assert section.path == "appConfig"
        assert section.key == "appConfig"

    def test_sections_nest(self, configuration):
        section = configuration.get_section("appConfig").get_section("Limits")

        assert section.path == "appConfig:Limits"
        assert section.key == "Limits"
        assert section["Retries"] == "3"

    def test_missing_section_is_empty(self, configuration):
        section = configuration.get_section("absent")

        assert len(section) == 0
        assert section.exists() is False
        assert section.as_dict() == {}

    def test_section_value(self, configuration):
        assert configuration.get_section("root").value == "value"
        assert configuration.get_section("root").exists() is True
        assert configuration.get_section("appConfig").value is None

    def test_get_children(self, configuration):
        children = configuration.get_children()

        assert [child.key for child in children] == ["appConfig", "logging", "root"]

    def test_as_dict_nests(self, configuration):
        assert configuration.get_section("appConfig").as_dict() == {
            "Limits": {"Retries": "3"},
            "Name": "Ada",
        }

    def test_root_is_read_only(self, configuration):
        with pytest.raises(TypeError):
            configuration["appConfig:Name"] = "Grace"
