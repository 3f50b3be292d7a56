"""Tests for generator configuration."""
import json

import pytest

from asyncapi_gen.config import (
    AppConfig,
    AsyncApiVersion,
    ChannelMode,
    CollisionPolicy,
    GeneratorConfig,
    InferenceDialect,
    ServerConfig,
    TopicSubstitution,
)


class TestGeneratorConfig:
    """Test config construction and conversion."""

    def test_defaults(self):
        config = GeneratorConfig()
        assert config.asyncapi_version == AsyncApiVersion.V3_0
        assert config.channel_mode == ChannelMode.VERBOSE
        assert config.dialect == InferenceDialect.STRICT
        assert config.collision_policy == CollisionPolicy.GENERALIZE
        assert config.include_examples is True

    def test_string_coercion(self):
        config = GeneratorConfig(asyncapi_version="2.6.0", channel_mode="parameterized")
        assert config.asyncapi_version == AsyncApiVersion.V2_6
        assert config.channel_mode == ChannelMode.PARAMETERIZED

    def test_invalid_enum_raises(self):
        with pytest.raises(ValueError):
            GeneratorConfig(asyncapi_version="1.0.0")

    def test_from_dict_camel_case(self):
        config = GeneratorConfig.from_dict({
            "asyncApiVersion": "2.6.0",
            "channelMode": "parameterized",
            "includeExamples": False,
            "topicSubstitutions": [{"levelIndex": 1, "parameterName": "lineId", "values": ["1"]}],
            "info": {"title": "Plant"},
            "servers": [{"name": "prod", "url": "mqtts://broker:8883", "protocol": "mqtts"}],
        })

        assert config.asyncapi_version == AsyncApiVersion.V2_6
        assert config.include_examples is False
        assert config.topic_substitutions[0].parameter_name == "lineId"
        assert config.info.title == "Plant"
        assert config.info.version == "1.0.0"
        assert config.servers[0].protocol == "mqtts"

    def test_to_dict_round_trip(self):
        config = GeneratorConfig(
            topic_substitutions=[TopicSubstitution(level_index=2, parameter_name="m", pattern="^M")],
        )
        assert GeneratorConfig.from_dict(config.to_dict()) == config

    def test_version_key_is_not_the_document_dialect(self):
        config = GeneratorConfig.from_dict({"version": "1.2.3"})
        assert config.asyncapi_version == AsyncApiVersion.V3_0

    @pytest.mark.parametrize("value,expected", [("false", False), ("No", False), ("true", True), ("1", True)])
    def test_include_examples_string_values(self, value, expected):
        assert GeneratorConfig.from_dict({"includeExamples": value}).include_examples is expected

    def test_include_examples_rejects_garbage(self):
        with pytest.raises(ValueError):
            GeneratorConfig.from_dict({"includeExamples": "maybe"})

    def test_server_username_round_trip(self):
        server = ServerConfig.from_dict({"name": "prod", "url": "mqtt://broker:1883", "username": "svc"})
        assert server.username == "svc"
        assert ServerConfig.from_dict(server.to_dict()) == server

    def test_from_file_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("asyncapi_version: 2.6.0\ndialect: report-by-exception\n", encoding="utf-8")
        config = GeneratorConfig.from_file(path)
        assert config.asyncapi_version == AsyncApiVersion.V2_6
        assert config.dialect == InferenceDialect.REPORT_BY_EXCEPTION

    def test_from_file_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"collisionPolicy": "suffix"}), encoding="utf-8")
        assert GeneratorConfig.from_file(path).collision_policy == CollisionPolicy.SUFFIX

    def test_replace(self):
        config = GeneratorConfig()
        changed = config.replace(channel_mode=ChannelMode.PARAMETERIZED)
        assert changed.channel_mode == ChannelMode.PARAMETERIZED
        assert config.channel_mode == ChannelMode.VERBOSE


class TestValidation:
    """Test boundary validation."""

    def test_negative_level(self):
        with pytest.raises(ValueError):
            TopicSubstitution(level_index=-1, parameter_name="x")

    def test_empty_parameter_name(self):
        with pytest.raises(ValueError):
            TopicSubstitution(level_index=0, parameter_name="")

    def test_unknown_protocol(self):
        with pytest.raises(ValueError):
            ServerConfig(name="x", url="amqp://host", protocol="amqp")


class TestAppConfig:
    """Test environment loading."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ASYNCAPI_GEN_OUTPUT_DIR", "/tmp/specs")
        monkeypatch.setenv("ASYNCAPI_GEN_FORMAT", "json")
        monkeypatch.setenv("ASYNCAPI_GEN_FETCH_TIMEOUT", "5")

        config = AppConfig.from_env()

        assert config.output_dir == "/tmp/specs"
        assert config.default_format == "json"
        assert config.fetch_timeout == 5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
