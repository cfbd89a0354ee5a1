"""Tests for the ApplicationSecrets table."""

import json
from unittest.mock import MagicMock

import pytest

from secure_config.auth.credential import AuthCredential
from secure_config.config.configuration import Configuration
from secure_config.config.setup import InitialConfiguration
from secure_config.errors import ConfigurationError, SecretNotFoundError
from secure_config.secrets.models import SecretRecord
from secure_config.secrets.store import ApplicationSecrets


def _configuration():
    return Configuration(
        {
            "ApplicationSecrets": {
                "ConnectionStrings": [
                    {"Name": "Orders.Api", "Value": "", "MetaDataProperties": [
                        {"Name": "TenantId", "Value": "from-file"}
                    ]},
                    {"Name": "FileLogger", "Value": "LogPath=/tmp/logs;LogName=app.log"},
                ]
            }
        }
    )


class TestApplicationSecrets:
    def test_lookup(self):
        secrets = ApplicationSecrets([SecretRecord(name="Db", value="Server=x")])

        assert secrets.secret("Db").value == "Server=x"
        assert secrets.connection_string("Db") == "Server=x"
        assert "Db" in secrets
        assert len(secrets) == 1
        assert secrets.names() == ["Db"]

    def test_missing_secret_returns_none(self):
        secrets = ApplicationSecrets()
        assert secrets.secret("Nope") is None
        assert secrets.connection_string("Nope") is None

    def test_missing_secret_strict_raises(self):
        with pytest.raises(SecretNotFoundError):
            ApplicationSecrets().secret("Nope", strict=True)

    def test_add_requires_name(self):
        with pytest.raises(ConfigurationError):
            ApplicationSecrets().add(SecretRecord(name=""))

    def test_repr_hides_values(self):
        secrets = ApplicationSecrets([SecretRecord(name="Db", value="Password=hunter2")])
        assert "hunter2" not in repr(secrets)


class TestFromDocument:
    def test_connection_strings_document(self):
        secrets = ApplicationSecrets.from_document(
            {"ConnectionStrings": [{"Name": "A", "Value": "1"}, {"Name": "B", "Value": "2"}]}
        )
        assert secrets.names() == ["A", "B"]

    def test_bare_list(self):
        secrets = ApplicationSecrets.from_document([{"Name": "A", "Value": "1"}])
        assert secrets.connection_string("A") == "1"

    def test_non_list_rejected(self):
        with pytest.raises(ConfigurationError):
            ApplicationSecrets.from_document({"ConnectionStrings": "nope"})


class TestFromConfiguration:
    def test_reads_section(self):
        secrets = ApplicationSecrets.from_configuration(_configuration())

        assert secrets.secret("Orders.Api")["TenantId"] == "from-file"
        assert secrets.connection_string("FileLogger") == "LogPath=/tmp/logs;LogName=app.log"

    def test_empty_configuration(self):
        assert len(ApplicationSecrets.from_configuration(Configuration())) == 0

    def test_numeric_values_become_strings(self):
        configuration = Configuration(
            {
                "ApplicationSecrets": {
                    "ConnectionStrings": [
                        {"Name": "Orders.Api", "Value": 42, "MetaDataProperties": [
                            {"Name": "TenantId", "Value": 12345},
                            {"Name": "ClientId", "Value": "cid-1"},
                            {"Name": "TimeoutSeconds", "Value": 10},
                        ]},
                    ]
                }
            }
        )

        secret = ApplicationSecrets.from_configuration(configuration).secret("Orders.Api")
        credential = secret.convert_metadata_to(AuthCredential)

        assert secret.value == "42"
        assert secret["TenantId"] == "12345"
        assert credential is not None
        assert credential.tenant_id == "12345"
        assert credential.timeout_seconds == 10

    def test_key_vault_document_overrides_entries(self):
        key_vault = MagicMock()
        key_vault.get_secret.return_value = json.dumps(
            {
                "ConnectionStrings": [
                    {"Name": "Orders.Api", "Value": "", "MetaDataProperties": [
                        {"Name": "TenantId", "Value": "from-vault"}
                    ]},
                    {"Name": "Redis", "Value": "redis:6379"},
                ]
            }
        )
        setup = InitialConfiguration(KeyVaultName="kv", KeyVaultKey="AppSecrets-dev")

        secrets = ApplicationSecrets.from_configuration(_configuration(), setup, key_vault)

        key_vault.get_secret.assert_called_once_with("AppSecrets-dev")
        assert secrets.secret("Orders.Api")["TenantId"] == "from-vault"
        assert secrets.connection_string("Redis") == "redis:6379"
        assert "FileLogger" in secrets

    def test_missing_key_vault_document_keeps_configuration(self):
        key_vault = MagicMock()
        key_vault.get_secret.return_value = None
        setup = InitialConfiguration(KeyVaultName="kv", KeyVaultKey="AppSecrets")

        secrets = ApplicationSecrets.from_configuration(_configuration(), setup, key_vault)

        assert secrets.secret("Orders.Api")["TenantId"] == "from-file"

    def test_invalid_key_vault_json_raises(self):
        key_vault = MagicMock()
        key_vault.get_secret.return_value = "{not json"
        setup = InitialConfiguration(KeyVaultName="kv", KeyVaultKey="AppSecrets")

        with pytest.raises(ConfigurationError):
            ApplicationSecrets.from_configuration(_configuration(), setup, key_vault)
