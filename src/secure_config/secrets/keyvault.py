"""
Azure Key Vault secret source.

Wraps ``azure.keyvault.secrets.SecretClient``. Used two ways by the host:
as a configuration source (every secret becomes a configuration key) and
to fetch the single secret named by ``InitialConfiguration:KeyVaultKey``
that holds the application secrets document.

Key Vault secret names cannot contain ``:``, so the configuration-provider
convention of ``--`` as the section separator is applied:
``Logging--LogLevel--Default`` becomes ``Logging:LogLevel:Default``.
"""

import logging

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.keyvault.secrets import SecretClient

from secure_config.errors import KeyVaultError

logger = logging.getLogger(__name__)

KEY_DELIMITER = "--"
SECTION_DELIMITER = ":"


def vault_url_for(vault_name: str) -> str:
    """Build the vault URL from a bare vault name; full URLs pass through."""
    if vault_name.startswith("https://"):
        return vault_name if vault_name.endswith("/") else f"{vault_name}/"
    return f"https://{vault_name}.vault.azure.net/"


def secret_name_to_key(secret_name: str) -> str:
    return secret_name.replace(KEY_DELIMITER, SECTION_DELIMITER)


class KeyVaultSecretSource:
    """
    Read-only access to the secrets in one Azure Key Vault.

    Authenticates with DefaultAzureCredential unless a credential is given
    (managed identity in Azure, environment / CLI credentials locally).
    """

    def __init__(self, vault_name: str, credential=None, client: SecretClient | None = None):
        self.vault_url = vault_url_for(vault_name)
        self._credential = credential
        self._client = client

        logger.debug("Initialized Key Vault source", extra={"vault_url": self.vault_url})

    @property
    def client(self) -> SecretClient:
        """Lazy-initialize client."""
        if self._client is None:
            credential = self._credential or DefaultAzureCredential()
            self._client = SecretClient(vault_url=self.vault_url, credential=credential)
        return self._client

    def get_secret(self, name: str) -> str | None:
        """
        Fetch the current version of a secret.

        Returns:
            Secret value, or None if the secret does not exist

        Raises:
            KeyVaultError: On any other Key Vault / transport failure
        """
        try:
            return self.client.get_secret(name).value
        except ResourceNotFoundError:
            logger.warning(
                "Secret not found in Key Vault",
                extra={"secret_name": name, "vault_url": self.vault_url},
            )
            return None
        except AzureError as e:
            raise KeyVaultError(
                f"Failed to read secret '{name}' from {self.vault_url}",
                cause=e,
                context={"secret_name": name},
            ) from e

    def load_configuration(self) -> dict[str, str]:
        """
        Read every enabled secret as a configuration key/value pair.

        Raises:
            KeyVaultError: If the vault cannot be listed
        """
        values: dict[str, str] = {}
        try:
            for properties in self.client.list_properties_of_secrets():
                if properties.enabled is False:
                    continue
                value = self.get_secret(properties.name)
                if value is not None:
                    values[secret_name_to_key(properties.name)] = value
        except AzureError as e:
            raise KeyVaultError(
                f"Failed to list secrets in {self.vault_url}", cause=e
            ) from e

        logger.info(
            "Loaded configuration from Key Vault",
            extra={"vault_url": self.vault_url, "keys_loaded": len(values)},
        )
        return values

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


__all__ = [
    "KeyVaultSecretSource",
    "vault_url_for",
    "secret_name_to_key",
    "KEY_DELIMITER",
]
