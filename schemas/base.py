"""Base schema utilities and common types."""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    Fields are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def blank_to_none(value: Any) -> Any:
    """Treat empty or whitespace-only strings as missing values."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Common field types
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
URL_PATTERN = r"^https?://\S+$"

HttpUrl = Annotated[str, Field(max_length=2048, pattern=URL_PATTERN)]
EmailAddress = Annotated[str, Field(max_length=320, pattern=EMAIL_PATTERN)]
