"""Shared pydantic base for wire-compatible schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model whose wire form uses camelCase keys.

    Attributes stay snake_case in Python; dumps for storage and export use
    ``by_alias=True`` so the persisted layout matches what the canvas sends.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump to the camelCase form used in storage and export files."""
        return self.model_dump(by_alias=True, exclude_none=True)
