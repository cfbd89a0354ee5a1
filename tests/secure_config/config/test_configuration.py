"""Tests for layered configuration."""

import os
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel, ConfigDict, Field

from secure_config.config.configuration import (
    Configuration,
    environment_values,
    flatten,
    load_configuration,
    parse_command_line,
)
from secure_config.errors import ConfigurationError


class LimitsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_batch: int = Field(alias="MaxBatch")
    regions: list[str] = Field(default_factory=list, alias="Regions")


class TestFlatten:
    def test_nested(self):
        assert flatten({"A": {"B": {"C": 1}}, "D": 2}) == {"A:B:C": 1, "D": 2}

    def test_lists_keyed_by_index(self):
        assert flatten({"A": ["x", "y"]}) == {"A:0": "x", "A:1": "y"}


class TestConfiguration:
    def test_case_insensitive(self):
        config = Configuration({"Logging": {"LogLevel": {"Default": "Information"}}})
        assert config["logging:loglevel:default"] == "Information"
        assert "LOGGING:LOGLEVEL:DEFAULT" in config

    def test_missing_key_is_none(self):
        assert Configuration()["Nope"] is None
        assert Configuration().get("Nope", "fallback") == "fallback"

    def test_later_source_wins(self):
        config = Configuration({"SubscriptionName": "Orders"})
        config.add({"subscriptionname": "Billing"})

        assert config["SubscriptionName"] == "Billing"
        assert config.keys() == ["SubscriptionName"]

    def test_get_section(self):
        config = Configuration({"Limits": {"MaxBatch": 10}, "Other": 1})
        section = config.get_section("limits")

        assert section["MaxBatch"] == 10
        assert section["Other"] is None
        assert config.exists("Limits")
        assert not config.exists("Missing")

    def test_as_dict_rebuilds_lists(self):
        data = {"A": {"Items": [{"Name": "x"}, {"Name": "y"}]}}
        assert Configuration(data).as_dict() == data

    def test_bind(self):
        config = Configuration({"Limits": {"MaxBatch": "25", "Regions": ["east", "west"]}})
        limits = config.bind(LimitsModel, "Limits")

        assert limits.max_batch == 25
        assert limits.regions == ["east", "west"]

    def test_bind_invalid_raises(self):
        config = Configuration({"Limits": {"MaxBatch": "lots"}})
        with pytest.raises(ConfigurationError):
            config.bind(LimitsModel, "Limits")

    def test_set_notifies(self):
        config = Configuration()
        callback = MagicMock()
        config.on_change(callback)

        config["FeatureFlags:Orders"] = "on"

        callback.assert_called_once_with("FeatureFlags:Orders", "on")
        assert config["featureflags:orders"] == "on"

    def test_failing_callback_does_not_break_set(self):
        config = Configuration()
        config.on_change(MagicMock(side_effect=RuntimeError("boom")))

        config.set("Key", "value")

        assert config["Key"] == "value"


class TestCommandLine:
    def test_forms(self):
        values = parse_command_line(
            ["--SubscriptionName=Orders", "--Region", "east", "/Mode=fast", "Debug=true", "stray"]
        )
        assert values == {
            "SubscriptionName": "Orders",
            "Region": "east",
            "Mode": "fast",
            "Debug": "true",
        }

    def test_none(self):
        assert parse_command_line(None) == {}


class TestEnvironmentValues:
    def test_section_separator(self):
        values = environment_values(environ={"Logging__LogLevel__Default": "Debug"})
        assert values == {"Logging:LogLevel:Default": "Debug"}

    def test_prefix(self):
        values = environment_values("APP_", {"APP_Mode": "fast", "OTHER": "x"})
        assert values == {"Mode": "fast"}


class TestLoadConfiguration:
    def test_layering(self, tmp_path, monkeypatch):
        (tmp_path / "appsettings.yaml").write_text(
            "SubscriptionName: Orders\n"
            "Region: ${SCTEST_REGION:-east}\n"
            "Mode: base\n"
            "Limit: base\n"
        )
        (tmp_path / "appsettings.Development.yaml").write_text("Mode: development\n")
        monkeypatch.setenv("SCTEST_Limit", "from-env")

        config = load_configuration(
            base_path=tmp_path,
            environment="Development",
            args=["--SubscriptionName=Billing"],
            env_prefix="SCTEST_",
        )

        assert config["SubscriptionName"] == "Billing"
        assert config["Region"] == "east"
        assert config["Mode"] == "development"
        assert config["Limit"] == "from-env"
        assert config["Environment"] == "Development"

    def test_dotenv_loaded(self, tmp_path):
        (tmp_path / ".env").write_text("SCTEST_DOTENV=from-dotenv\n")
        try:
            config = load_configuration(
                base_path=tmp_path, environment="Test", env_prefix="SCTEST_"
            )
            assert config["DOTENV"] == "from-dotenv"
        finally:
            os.environ.pop("SCTEST_DOTENV", None)

    def test_missing_files(self, tmp_path):
        config = load_configuration(base_path=tmp_path, environment="Test", include_environment=False)
        assert config.keys() == ["Environment"]

    def test_invalid_yaml_raises(self, tmp_path):
        (tmp_path / "appsettings.yaml").write_text("key: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_configuration(base_path=tmp_path, environment="Test", include_environment=False)
