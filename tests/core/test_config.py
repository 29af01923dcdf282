# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for Config loading, overrides and binding."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest
from pydantic import BaseModel, ValidationError

from restfly.core.config import Config, config_properties, env_var_name
from restfly.rest.properties import RestProperties


class TestConfig:
    def test_get_nested_value(self):
        config = Config({"restfly": {"rest": {"endpoint": "http://localhost"}}})
        assert config.get("restfly.rest.endpoint") == "http://localhost"

    def test_get_with_default(self):
        assert Config({}).get("missing.key", "default") == "default"

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "restfly.yaml"
        config_file.write_text("restfly:\n  rest:\n    api-version: '2.0'\n")
        config = Config.from_file(config_file)
        assert config.get("restfly.rest.api-version") == "2.0"
        assert str(config_file) in config.loaded_sources

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "restfly.toml"
        config_file.write_text('[restfly.rest]\nendpoint = "http://toml"\n')
        config = Config.from_file(config_file)
        assert config.get("restfly.rest.endpoint") == "http://toml"

    def test_framework_defaults_are_loaded(self):
        config = Config.defaults()
        assert config.get("restfly.rest.strip-expect-header") is False
        assert config.get("restfly.logging.format") == "console"

    def test_defaults_can_be_skipped(self, tmp_path: Path):
        config_file = tmp_path / "restfly.yaml"
        config_file.write_text("app:\n  name: bare\n")
        config = Config.from_file(config_file, load_defaults=False)
        assert config.get("restfly.logging.format") is None

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RESTFLY_REST_ENDPOINT", "http://from-env")
        config = Config({"restfly": {"rest": {"endpoint": "http://from-file"}}})
        assert config.get("restfly.rest.endpoint") == "http://from-env"

    def test_placeholder_resolution(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("COMPUTE_HOST", "compute.example.com")
        config = Config({"restfly": {"rest": {"endpoint": "https://${COMPUTE_HOST}/v2"}}})
        assert config.get("restfly.rest.endpoint") == "https://compute.example.com/v2"

    def test_placeholder_default(self):
        config = Config({"url": "${NOT_SET_ANYWHERE_12345:http://fallback}"})
        assert config.get("url") == "http://fallback"

    def test_unresolvable_placeholder_raises(self):
        config = Config({"url": "${NOT_SET_ANYWHERE_12345}"})
        with pytest.raises(ValueError, match="Cannot resolve placeholder"):
            config.get("url")

    def test_merged_with_overrides_nested_keys(self):
        config = Config({"restfly": {"rest": {"endpoint": "a", "api-version": "1"}}})
        merged = config.merged_with({"restfly": {"rest": {"endpoint": "b"}}})
        assert merged.get("restfly.rest.endpoint") == "b"
        assert merged.get("restfly.rest.api-version") == "1"
        assert config.get("restfly.rest.endpoint") == "a"

    def test_section_keeps_dotted_keys(self):
        config = Config({"restfly": {"rest": {"timeouts": {"ServerApi.list": 5, "default": 30}}}})
        assert config.get_section("restfly.rest.timeouts") == {"ServerApi.list": 5, "default": 30}


    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("restfly.rest.endpoint", "RESTFLY_REST_ENDPOINT"),
            ("restfly.rest.api-version", "RESTFLY_REST_API_VERSION"),
            ("app.name", "RESTFLY_APP_NAME"),
        ],
    )
    def test_env_var_name(self, key, expected):
        assert env_var_name(key) == expected

    def test_missing_file_keeps_only_defaults(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.loaded_sources == ["restfly-defaults.yaml (framework defaults)"]


class TestProfileConfigMerging:
    def test_later_profile_wins(self, tmp_path: Path):
        (tmp_path / "restfly.yaml").write_text("restfly:\n  rest:\n    endpoint: base\n")
        (tmp_path / "restfly-dev.yaml").write_text("restfly:\n  rest:\n    endpoint: dev\n")
        (tmp_path / "restfly-local.yaml").write_text("restfly:\n  rest:\n    endpoint: local\n")

        config = Config.from_file(tmp_path / "restfly.yaml", active_profiles=["dev", "local"])
        assert config.get("restfly.rest.endpoint") == "local"

    def test_missing_profile_file_is_skipped(self, tmp_path: Path):
        (tmp_path / "restfly.yaml").write_text("app:\n  name: test\n")
        config = Config.from_file(tmp_path / "restfly.yaml", active_profiles=["nonexistent"])
        assert config.get("app.name") == "test"


class TestConfigProperties:
    def test_bind_to_dataclass_with_hyphenated_keys(self):
        @config_properties(prefix="client")
        @dataclass
        class ClientSettings:
            read_timeout: int = 5
            verbose: bool = False
            tags: list[str] = field(default_factory=list)

        config = Config({"client": {"read-timeout": "20", "verbose": "yes", "tags": ["a"]}})
        settings = config.bind(ClientSettings)
        assert settings.read_timeout == 20
        assert settings.verbose is True
        assert settings.tags == ["a"]

    def test_bind_requires_decorator(self):
        @dataclass
        class Plain:
            x: int = 1

        with pytest.raises(ValueError, match="not decorated"):
            Config({}).bind(Plain)

    def test_rest_properties_defaults(self):
        properties = Config.defaults().bind(RestProperties)
        assert properties.endpoint == ""
        assert properties.strip_expect_header is False
        assert properties.timeouts == {}
        assert properties.http_timeout == 30.0
        assert properties.follow_redirects is True

    def test_rest_properties_from_config(self):
        config = Config.defaults().merged_with(
            {
                "restfly": {
                    "rest": {
                        "endpoint": "http://localhost:8774/v2",
                        "api-version": "2.0",
                        "strip-expect-header": True,
                        "timeouts": {"ServerApi": 3},
                    }
                }
            }
        )
        properties = config.bind(RestProperties)
        assert properties.endpoint == "http://localhost:8774/v2"
        assert properties.api_version == "2.0"
        assert properties.strip_expect_header is True
        assert properties.timeouts == {"ServerApi": 3}

    def test_bind_to_pydantic_model(self):
        @config_properties(prefix="client")
        class ClientModel(BaseModel):
            read_timeout: float = 1.0
            region: str

        config = Config({"client": {"read-timeout": "2.5", "region": "RegionOne"}})
        settings = config.bind(ClientModel)
        assert settings.read_timeout == 2.5
        assert settings.region == "RegionOne"

    def test_bind_rejects_invalid_values(self):
        with pytest.raises(ValidationError):
            Config({"restfly": {"rest": {"strip-expect-header": "perhaps"}}}).bind(RestProperties)
