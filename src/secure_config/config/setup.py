"""Initial (setup) configuration bound from the InitialConfiguration section.

Example appsettings.yaml:

    InitialConfiguration:
      RTE: dev
      KeyVaultName: kv-orders-{RTE}
      KeyVaultKey: ApplicationSecrets-{RTE}
      IsLoggingEnabled: true
      EnabledLoggers: [Console, File]
      SerializationFormat: Json
      TimedCacheRefresh:
        IntervalSeconds: 300
        Keys: [FeatureFlags:Orders, Limits:MaxBatch]

``{RTE}`` in KeyVaultName / KeyVaultKey is replaced by the runtime
environment name. Set ``InitialConfiguration__RTE`` in the environment to
override the file value.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

INITIAL_CONFIGURATION_SECTION = "InitialConfiguration"
RTE_PLACEHOLDER = "{RTE}"


class EnabledLogger(str, Enum):
    CONSOLE = "Console"
    FILE = "File"
    DEBUG = "Debug"


class SerializationFormat(str, Enum):
    JSON = "Json"
    TEXT = "Text"


class TimedCacheRefresh(BaseModel):
    """Which configuration keys are re-read from the cache, and how often."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    interval_seconds: float = Field(default=300, alias="IntervalSeconds", gt=0)
    keys: list[str] = Field(default_factory=list, alias="Keys")


class InitialConfiguration(BaseModel):
    """
    Settings needed before the rest of the application can be configured.

    Attributes:
        rte: Runtime environment name (dev, qa, prod...)
        key_vault_name: Key Vault name or URL, may contain {RTE}
        key_vault_key: Name of the Key Vault secret holding the application
            secrets document, may contain {RTE}
        is_logging_enabled: Master switch for all logging providers
        enabled_loggers: Logging providers to attach
        serialization_format: Log output format
        timed_cache_refresh: Cache-driven configuration refresh settings
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rte: str = Field(default="", alias="RTE")
    key_vault_name: str | None = Field(default=None, alias="KeyVaultName")
    key_vault_key: str | None = Field(default=None, alias="KeyVaultKey")
    is_logging_enabled: bool = Field(default=True, alias="IsLoggingEnabled")
    enabled_loggers: list[EnabledLogger] = Field(
        default_factory=lambda: [EnabledLogger.CONSOLE], alias="EnabledLoggers"
    )
    serialization_format: SerializationFormat = Field(
        default=SerializationFormat.JSON, alias="SerializationFormat"
    )
    timed_cache_refresh: TimedCacheRefresh | None = Field(default=None, alias="TimedCacheRefresh")

    @field_validator("enabled_loggers", mode="before")
    @classmethod
    def _split_logger_names(cls, value):
        # Environment variables and CLI args deliver "Console,File"
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @property
    def has_key_vault(self) -> bool:
        return bool(self.key_vault_name) and bool(self.key_vault_key)

    def is_logger_enabled(self, logger_type: EnabledLogger) -> bool:
        return self.is_logging_enabled and logger_type in self.enabled_loggers

    def resolve_runtime_environment(self) -> "InitialConfiguration":
        """Substitute {RTE} in the Key Vault settings. Returns self."""
        if self.key_vault_name:
            self.key_vault_name = self.key_vault_name.replace(RTE_PLACEHOLDER, self.rte)
        if self.key_vault_key:
            self.key_vault_key = self.key_vault_key.replace(RTE_PLACEHOLDER, self.rte)
        return self


__all__ = [
    "InitialConfiguration",
    "TimedCacheRefresh",
    "EnabledLogger",
    "SerializationFormat",
    "INITIAL_CONFIGURATION_SECTION",
]
