"""
Application secrets table.

Secrets come from the ``ApplicationSecrets:ConnectionStrings`` list in
configuration. When Key Vault is configured, the Key Vault secret named by
``InitialConfiguration:KeyVaultKey`` holds a JSON document of the same
shape; its entries replace same-named entries from configuration:

    {"ConnectionStrings": [
        {"Name": "Orders.Api", "Value": "", "Category": "Api",
         "MetaDataProperties": [{"Name": "TenantId", "Value": "..."}]}
    ]}

The table is owned by the application context and built once at startup.
"""

import json
import logging
from collections.abc import Iterable, Iterator

from secure_config.config.configuration import Configuration
from secure_config.config.setup import InitialConfiguration
from secure_config.errors import ConfigurationError, SecretNotFoundError
from secure_config.secrets.models import SecretRecord
from secure_config.types import SecretSource

logger = logging.getLogger(__name__)

APPLICATION_SECRETS_SECTION = "ApplicationSecrets"
CONNECTION_STRINGS_KEY = "ConnectionStrings"


class ApplicationSecrets:
    """Secret records keyed by name."""

    def __init__(self, records: Iterable[SecretRecord] | None = None):
        self._records: dict[str, SecretRecord] = {}
        for record in records or []:
            self.add(record)

    def add(self, record: SecretRecord) -> None:
        """Add or replace a record."""
        if not record.name:
            raise ConfigurationError("Secret entry is missing a Name")
        self._records[record.name] = record

    def secret(self, name: str, strict: bool = False) -> SecretRecord | None:
        """
        Look up a secret record by exact name.

        Raises:
            SecretNotFoundError: If ``strict`` and the secret does not exist
        """
        record = self._records.get(name)
        if record is None:
            if strict:
                raise SecretNotFoundError(name)
            logger.debug("Secret not found", extra={"secret_name": name})
        return record

    def connection_string(self, name: str) -> str | None:
        """Value of the named secret, or None."""
        record = self._records.get(name)
        return record.value if record else None

    def names(self) -> list[str]:
        return list(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SecretRecord]:
        return iter(self._records.values())

    def __repr__(self) -> str:
        return f"ApplicationSecrets(names={self.names()})"

    @classmethod
    def from_document(cls, document: dict) -> "ApplicationSecrets":
        """Build from ``{"ConnectionStrings": [...]}`` (a bare list is accepted too)."""
        entries = document.get(CONNECTION_STRINGS_KEY, []) if isinstance(document, dict) else document
        if not isinstance(entries, list):
            raise ConfigurationError(
                f"'{CONNECTION_STRINGS_KEY}' must be a list of secret entries"
            )
        return cls(SecretRecord.from_dict(entry) for entry in entries)

    @classmethod
    def from_configuration(
        cls,
        configuration: Configuration,
        setup: InitialConfiguration | None = None,
        key_vault: SecretSource | None = None,
        section: str = APPLICATION_SECRETS_SECTION,
    ) -> "ApplicationSecrets":
        """
        Load the secrets table from configuration, overlaid with Key Vault.

        Raises:
            ConfigurationError: If the section or Key Vault document is malformed
            KeyVaultError: If Key Vault cannot be read
        """
        secrets = cls.from_document(configuration.get_section(section).as_dict())
        logger.debug(
            "Loaded secrets from configuration",
            extra={"section": section, "secret_count": len(secrets)},
        )

        if key_vault is not None and setup is not None and setup.key_vault_key:
            raw = key_vault.get_secret(setup.key_vault_key)
            if raw:
                try:
                    document = json.loads(raw)
                except json.JSONDecodeError as e:
                    raise ConfigurationError(
                        f"Key Vault secret '{setup.key_vault_key}' is not valid JSON",
                        cause=e,
                    ) from e
                overlay = cls.from_document(document)
                for record in overlay:
                    secrets.add(record)
                logger.info(
                    "Loaded secrets from Key Vault",
                    extra={"key_vault_key": setup.key_vault_key, "secret_count": len(overlay)},
                )
            else:
                logger.warning(
                    "Key Vault secrets document not found",
                    extra={"key_vault_key": setup.key_vault_key},
                )

        return secrets


__all__ = ["ApplicationSecrets", "APPLICATION_SECRETS_SECTION"]
