"""
Secret records loaded from the ApplicationSecrets configuration section.

Each entry of ``ApplicationSecrets:ConnectionStrings`` is a JSON/YAML object
with ``Name`` and ``Value`` plus optional ``Category``, ``Description`` and
``MetaDataProperties`` (a list of ``{Name, Value}`` pairs). The metadata
list is free-form; ``convert_metadata_to`` turns it into a typed pydantic
model so API connection details can live alongside the secret itself.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from secure_config.errors import MetadataConversionError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class SecretMetadata:
    """Single named metadata value attached to a secret."""

    name: str
    value: str | None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecretMetadata":
        return cls(
            name=_pick(data, "Name", "name"),
            value=_text(_pick(data, "Value", "value")),
        )


@dataclass
class SecretRecord:
    """
    Named secret with classifier, description and free-form metadata.

    Attributes:
        name: Name of the secret, unique within a secrets table
        value: Secret value (connection string, key, password)
        category: Classifier for the kind of value stored in ``value``
        description: Purpose of this secret
        metadata: Ordered metadata entries; lookups are first-match
    """

    name: str
    value: str | None = field(default=None, repr=False)
    category: str | None = None
    description: str | None = None
    metadata: list[SecretMetadata] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecretRecord":
        """
        Build a record from its configuration shape.

        Accepts the original PascalCase keys (``Name``, ``MetaDataProperties``)
        and snake_case equivalents.
        """
        raw_metadata = _pick(data, "MetaDataProperties", "metadata")
        metadata = None
        if raw_metadata is not None:
            metadata = [SecretMetadata.from_dict(item) for item in raw_metadata]

        return cls(
            name=_pick(data, "Name", "name"),
            value=_text(_pick(data, "Value", "value")),
            category=_pick(data, "Category", "category"),
            description=_pick(data, "Description", "description"),
            metadata=metadata,
        )

    def metadata_property(self, property_name: str) -> str | None:
        """
        Get the value of the first metadata entry named ``property_name``.

        Matching is exact and case-sensitive. Returns None when there is no
        metadata or no entry matches.
        """
        for item in self.metadata or []:
            if item.name == property_name:
                return item.value
        return None

    def __getitem__(self, key: str) -> str | None:
        return self.metadata_property(key)

    def metadata_document(self) -> dict[str, str | None]:
        """Metadata as a dict; later entries overwrite earlier ones with the same name."""
        document: dict[str, str | None] = {}
        for item in self.metadata or []:
            document[item.name] = item.value
        return document

    def convert_metadata_to(self, model: type[ModelT], strict: bool = False) -> ModelT | None:
        """
        Create a ``model`` instance out of all metadata properties.

        Metadata names are matched against the model's field names and
        aliases; entries with no matching field are ignored. Conversion is
        all-or-nothing: any validation failure yields None (or raises
        MetadataConversionError when ``strict`` is set), never a partially
        populated object.

        Args:
            model: Pydantic model class to build
            strict: Raise instead of returning None on failure

        Returns:
            Populated model, or None if conversion failed
        """
        try:
            if self.metadata is None:
                raise MetadataConversionError(
                    f"Secret '{self.name}' has no metadata to convert",
                    context={"secret_name": self.name},
                )
            return model.model_validate(self.metadata_document())
        except MetadataConversionError:
            if strict:
                raise
            logger.warning(
                "Secret has no metadata to convert",
                extra={"secret_name": self.name, "target": model.__name__},
            )
        except (ValidationError, TypeError, AttributeError) as e:
            if strict:
                raise MetadataConversionError(
                    f"Failed to convert metadata of '{self.name}' to {model.__name__}",
                    cause=e,
                    context={"secret_name": self.name},
                ) from e
            logger.warning(
                "Failed to convert secret metadata",
                extra={
                    "secret_name": self.name,
                    "target": getattr(model, "__name__", str(model)),
                    "error": str(e),
                },
            )
        return None


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _text(value: Any) -> str | None:
    # YAML and JSON documents may carry numbers or booleans for values
    if value is None or isinstance(value, str):
        return value
    return str(value)


__all__ = ["SecretMetadata", "SecretRecord"]
