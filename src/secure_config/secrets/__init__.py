"""
Secret records and the sources they are loaded from.

Components:
    - SecretRecord / SecretMetadata: named secret with free-form metadata
    - ApplicationSecrets: secrets table built at startup
    - KeyVaultSecretSource: Azure Key Vault reader
"""

from secure_config.secrets.keyvault import KeyVaultSecretSource, vault_url_for
from secure_config.secrets.models import SecretMetadata, SecretRecord
from secure_config.secrets.store import APPLICATION_SECRETS_SECTION, ApplicationSecrets

__all__ = [
    "SecretMetadata",
    "SecretRecord",
    "ApplicationSecrets",
    "APPLICATION_SECRETS_SECTION",
    "KeyVaultSecretSource",
    "vault_url_for",
]
