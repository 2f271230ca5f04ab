"""Shared pydantic base classes."""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class QGBaseModel(BaseModel):
    """Base for queryguard models.

    Assignments are validated and enum members are stored by value, so a
    model can be logged or rendered without further conversion.
    """
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        use_enum_values=True,
        validate_assignment=True
    )

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary of the set fields, computed fields included.

        Fields left as None are dropped and python field names are used,
        never wire aliases.
        """
        return _plain(self.model_dump(by_alias=False, exclude_none=True))


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class WireModel(QGBaseModel):
    """Model exchanged with the query service.

    Accepts both snake_case field names and the camelCase names the
    service uses on the wire (``scannedBytes``, ``continuationToken``).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore"
    )
